import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from playmorph.config import PlaymorphConfig, build_metadata_center, build_registry, load
from playmorph.contenttype import ContentTypeRegistry
from playmorph.errors import MalformedInputError, StructuralError
from playmorph.formats import FormatProvider, ProviderRegistry
from playmorph.metadata import fetch_metadata

LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"


def _setup_logging(cfg: PlaymorphConfig, verbose: bool):
    level = logging.DEBUG if verbose else getattr(logging, cfg.logging.level, logging.WARNING)
    if cfg.logging.file:
        logging.basicConfig(filename=cfg.logging.file, level=level, format=LOG_FORMAT)
    else:
        logging.basicConfig(stream=sys.stderr, level=level, format=LOG_FORMAT)


def _read_input(source: str) -> bytes:
    if source == "-":
        return sys.stdin.buffer.read()
    return Path(source).read_bytes()


def _output_provider(
    registry: ProviderRegistry,
    type_id: Optional[str],
    output: Optional[str],
    fallback: FormatProvider,
) -> Optional[FormatProvider]:
    if type_id:
        return registry.find_by_id(type_id)
    if output:
        return registry.find_by_extension(output)
    return fallback


def main(
    input_path: str,
    config_path: Path,
    output_type: Optional[str] = None,
    output_path: Optional[str] = None,
    show_generic: bool = False,
    show_input: bool = False,
    fetch: bool = False,
    rss_media: bool = False,
    list_formats: bool = False,
    verbose: bool = False,
) -> int:

    cfg = load(config_path)
    if rss_media:
        cfg.rss.use_media = True
    _setup_logging(cfg, verbose)

    registry = build_registry(cfg)

    if list_formats:
        for provider in registry.providers:
            extensions = ", ".join(e for ct in provider.content_types for e in ct.extensions)
            print(f"{provider.id:6s} {provider.description} ({extensions})")
        return 0

    try:
        data = _read_input(input_path)
    except OSError as e:
        print(f"Cannot read {input_path}: {e}", file=sys.stderr)
        return 2
    name = None if input_path == "-" else input_path
    input_provider = registry.sniff(data) or (registry.find_by_extension(name) if name else None)
    if input_provider is None:
        print(f"Invalid playlist format: {input_path}", file=sys.stderr)
        return 2

    provider = _output_provider(registry, output_type, output_path, input_provider)
    if provider is None:
        print(
            f"Unknown output playlist type <{output_type or output_path}>. "
            f"Supported types: {'/'.join(registry.ids())}",
            file=sys.stderr,
        )
        return 2

    try:
        document = input_provider.read(data)
        if show_input:
            print(f"Input playlist ({input_provider.id}):", file=sys.stderr)
            print(input_provider.write(document).decode("utf-8", errors="replace"), file=sys.stderr)

        playlist = input_provider.to_playlist(document)

        if fetch or cfg.metadata.enabled:
            fetch_metadata(playlist, build_metadata_center(cfg), ContentTypeRegistry(registry))

        if show_generic:
            print("Intermediate generic playlist:", file=sys.stderr)
            print(playlist.describe(), file=sys.stderr)

        rendered = provider.render(playlist, cfg.output.encoding)
    except (StructuralError, MalformedInputError) as e:
        print(str(e), file=sys.stderr)
        return 1

    if output_path:
        Path(output_path).write_bytes(rendered)
    else:
        sys.stdout.buffer.write(rendered)
        sys.stdout.buffer.flush()
    return 0


def cli(argv: Optional[list[str]] = None) -> int:
    args = argparse.ArgumentParser(description="Converts an input playlist to a (possibly new) format")
    args.add_argument("input", nargs="?", default="-", help="Input playlist file ('-' for stdin)")
    args.add_argument("--config", "-c", type=Path, default=Path("playmorph.yaml"), help="Path to configuration file")
    args.add_argument("--type", "-t", dest="output_type", help="Output playlist type. If missing, inferred from --output or the input type")
    args.add_argument("--output", "-o", help="Output file. If missing, stdout is used")
    args.add_argument("--generic", "-g", action="store_true", help="Show the intermediate generic playlist")
    args.add_argument("--show-input", "-i", action="store_true", help="Show the parsed input playlist")
    args.add_argument("--metadata", "-m", action="store_true", help="Fetch the media content metadata where possible")
    args.add_argument("--rss-media", action="store_true", help="The output RSS playlist uses the media RSS extension")
    args.add_argument("--list-formats", action="store_true", help="List supported playlist formats and exit")
    args.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parsed = args.parse_args(argv)

    return main(
        input_path=parsed.input,
        config_path=parsed.config,
        output_type=parsed.output_type,
        output_path=parsed.output,
        show_generic=parsed.generic,
        show_input=parsed.show_input,
        fetch=parsed.metadata,
        rss_media=parsed.rss_media,
        list_formats=parsed.list_formats,
        verbose=parsed.verbose,
    )


if __name__ == "__main__":
    sys.exit(cli())
