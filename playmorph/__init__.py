from .config import PlaymorphConfig, load
from .contenttype import ContentType, ContentTypeRegistry
from .errors import MalformedInputError, MetadataProbeError, StructuralError, UnsupportedStructureError
from .export import derive_title, flatten, unroll
from .formats import FormatProvider, ProviderRegistry
from .playlist import Content, Media, Parallel, Playlist, Sequence, normalize
