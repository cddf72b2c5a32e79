from __future__ import annotations

import json
import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional
from urllib.parse import urlsplit
from urllib.request import url2pathname

from mutagen import File as MutagenFile
from mutagen import MutagenError
from PIL import Image, ImageSequence

from .errors import MetadataProbeError
from .playlist import Content, Playlist

if TYPE_CHECKING:
    from .contenttype import ContentTypeRegistry

log = logging.getLogger(__name__)


def local_path(content: Content) -> Path:
    parts = urlsplit(content.uri)
    if parts.scheme == "file":
        return Path(url2pathname(parts.path))
    # a one-letter scheme is a Windows drive letter
    if not parts.scheme or len(parts.scheme) == 1:
        return Path(content.uri)
    raise MetadataProbeError(f"Not a local content: {content.uri}")


def _existing_path(content: Content) -> Path:
    path = local_path(content)
    if not path.is_file():
        raise MetadataProbeError(f"No such file: {path}")
    return path


class ContentMetadataProvider(ABC):
    name: str = ""

    @abstractmethod
    def fill(self, content: Content):
        """Fill width, height and duration of the content, or raise MetadataProbeError."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"


class SoundMetadataProvider(ContentMetadataProvider):
    name = "sound"

    def fill(self, content: Content):
        path = _existing_path(content)
        try:
            f = MutagenFile(str(path))
        except (MutagenError, OSError) as e:
            raise MetadataProbeError(f"mutagen could not read {path.name}: {e}") from e

        if f is None or f.info is None or not hasattr(f.info, "length"):
            raise MetadataProbeError(f"Not a sound file: {path.name}")

        content.width = 0
        content.height = 0
        if f.info.length:
            content.duration = int(round(f.info.length * 1000))
        else:
            log.debug(f"Unknown audio duration for {path.name}")


class ImageMetadataProvider(ContentMetadataProvider):
    name = "image"

    def fill(self, content: Content):
        path = _existing_path(content)
        try:
            with Image.open(path) as image:
                content.width, content.height = image.size
                content.duration = _animation_duration(image)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise MetadataProbeError(f"Pillow could not read {path.name}: {e}") from e


def _animation_duration(image: Image.Image) -> int:
    if not getattr(image, "is_animated", False):
        return 0
    return sum(int(frame.info.get("duration", 0)) for frame in ImageSequence.Iterator(image))


class VideoMetadataProvider(ContentMetadataProvider):
    name = "video"

    def __init__(self, ffprobe: str = "ffprobe", timeout: float = 15):
        self.ffprobe = ffprobe
        self.timeout = timeout

    def fill(self, content: Content):
        path = _existing_path(content)
        payload = self._probe(path)

        video = next(
            (s for s in payload.get("streams") or [] if s.get("codec_type") == "video"),
            None,
        )
        if video is None:
            raise MetadataProbeError(f"No video stream in {path.name}")

        content.width = int(video.get("width") or 0)
        content.height = int(video.get("height") or 0)
        duration = (payload.get("format") or {}).get("duration") or video.get("duration")
        if duration not in (None, ""):
            try:
                content.duration = int(round(float(duration) * 1000))
            except (TypeError, ValueError):
                log.debug(f"ffprobe returned a non-numeric duration for {path.name}")

    def _probe(self, path: Path) -> dict:
        command = [
            self.ffprobe,
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_format",
            "-show_streams",
            str(path),
        ]
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise MetadataProbeError("ffprobe is not installed or not available in PATH") from e
        except subprocess.TimeoutExpired as e:
            raise MetadataProbeError(f"ffprobe timed out while probing: {path}") from e
        except subprocess.CalledProcessError as e:
            stderr_text = (e.stderr or "").strip()
            raise MetadataProbeError(f"ffprobe failed for {path}: {stderr_text or e}") from e

        try:
            return json.loads(completed.stdout or "{}")
        except json.JSONDecodeError as e:
            raise MetadataProbeError(f"ffprobe returned invalid JSON for {path}") from e


class MetadataCenter:
    def __init__(self, providers: Iterable[ContentMetadataProvider]):
        self.providers = list(providers)

    def fill_metadata(self, content: Content) -> bool:
        for provider in self.providers:
            try:
                provider.fill(content)
            except MetadataProbeError as e:
                log.debug(f"Metadata provider {provider} cannot handle content <{content}>: {e}")
                continue
            return True
        return False


def fetch_metadata(
    playlist: Playlist,
    center: MetadataCenter,
    content_types: Optional[ContentTypeRegistry] = None,
) -> int:
    filled = 0
    for media in playlist.media():
        content = media.source
        if content.has_unknown_metadata():
            if center.fill_metadata(content):
                filled += 1
            else:
                log.warning(f"Cannot access media content {content}")

        if content_types is not None:
            content_type = content_types.lookup(content.uri)
            if content_type is not None and content_type.mime_types:
                content.type = content_type.mime_types[0]

    log.info(f"Filled metadata for {filled} media content(s)")
    return filled
