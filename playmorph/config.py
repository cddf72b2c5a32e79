from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .formats import ProviderRegistry, default_providers
from .formats.FormatRSS import RSSProvider
from .formats.FormatXSPF import XSPFProvider
from .metadata import (
    ContentMetadataProvider,
    ImageMetadataProvider,
    MetadataCenter,
    SoundMetadataProvider,
    VideoMetadataProvider,
)


@dataclass
class OutputConfig:
    encoding: str = "UTF-8"
    generator: str = "playmorph"


@dataclass
class RSSConfig:
    use_media: bool = False


@dataclass
class MetadataConfig:
    enabled: bool = False
    providers: list[str] = field(default_factory=lambda: ["image", "video", "sound"])
    ffprobe: str = "ffprobe"
    ffprobe_timeout: float = 15.0


@dataclass
class LoggingConfig:
    level: str = "WARNING"
    file: Optional[Path] = None


@dataclass
class PlaymorphConfig:
    output: OutputConfig = field(default_factory=OutputConfig)
    rss: RSSConfig = field(default_factory=RSSConfig)
    metadata: MetadataConfig = field(default_factory=MetadataConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load(path: Path = Path("playmorph.yaml")) -> PlaymorphConfig:
    raw: dict = {}
    if path.exists():
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    output_raw = raw.get("output", {})
    rss_raw = raw.get("rss", {})
    meta_raw = raw.get("metadata", {})
    log_raw = raw.get("logging", {})
    log_file = log_raw.get("file")

    return PlaymorphConfig(
        output=OutputConfig(
            encoding=output_raw.get("encoding", "UTF-8"),
            generator=output_raw.get("generator", "playmorph"),
        ),
        rss=RSSConfig(
            use_media=rss_raw.get("use_media", False),
        ),
        metadata=MetadataConfig(
            enabled=meta_raw.get("enabled", False),
            providers=list(meta_raw.get("providers", ["image", "video", "sound"])),
            ffprobe=meta_raw.get("ffprobe", "ffprobe"),
            ffprobe_timeout=float(meta_raw.get("ffprobe_timeout", 15.0)),
        ),
        logging=LoggingConfig(
            level=str(log_raw.get("level", "WARNING")).upper(),
            file=Path(log_file) if log_file else None,
        ),
    )


def build_registry(cfg: PlaymorphConfig) -> ProviderRegistry:
    def loader():
        providers = default_providers()
        for provider in providers:
            if hasattr(provider, "generator"):
                provider.generator = cfg.output.generator
            if isinstance(provider, XSPFProvider):
                provider.creator = cfg.output.generator
            if isinstance(provider, RSSProvider):
                provider.use_media = cfg.rss.use_media
        return providers

    return ProviderRegistry(loader)


def build_metadata_center(cfg: PlaymorphConfig) -> MetadataCenter:
    available: dict[str, ContentMetadataProvider] = {
        "sound": SoundMetadataProvider(),
        "image": ImageMetadataProvider(),
        "video": VideoMetadataProvider(cfg.metadata.ffprobe, cfg.metadata.ffprobe_timeout),
    }
    unknown = [name for name in cfg.metadata.providers if name not in available]
    if unknown:
        raise ValueError(f"Unknown metadata provider(s): {unknown}")
    return MetadataCenter(available[name] for name in cfg.metadata.providers)
