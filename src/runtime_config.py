"""
Runtime Configuration Module

Manages runtime-configurable settings (engine binaries, encoder options,
probe concurrency). Loads default values from config.py and allows runtime
modifications, e.g. from command-line flags.
"""
from dataclasses import dataclass, asdict
from typing import Optional

# Import defaults from config.py
from config import (
    FFMPEG_BINARY,
    FFPROBE_BINARY,
    RENDER_VIDEO_CODEC,
    RENDER_AUDIO_CODEC,
    RENDER_PRESET,
    RENDER_PIXEL_FORMAT,
    PROBE_MAX_CONCURRENT,
    PROBE_SEEK_SECONDS,
    THUMBNAIL_WIDTH,
    FONT_PATH,
)


@dataclass
class RuntimeConfig:
    """
    Runtime configuration shared by the probe, compiler and engine.
    """
    # Engine binaries
    ffmpeg_path: str = FFMPEG_BINARY
    ffprobe_path: str = FFPROBE_BINARY

    # Encoder settings
    video_codec: str = RENDER_VIDEO_CODEC
    audio_codec: str = RENDER_AUDIO_CODEC
    preset: str = RENDER_PRESET
    pixel_format: str = RENDER_PIXEL_FORMAT
    font_path: str = str(FONT_PATH)

    # Probe settings
    probe_max_concurrent: int = PROBE_MAX_CONCURRENT
    probe_seek_seconds: float = PROBE_SEEK_SECONDS
    thumbnail_width: int = THUMBNAIL_WIDTH

    # Parent directory for the engine's isolated working dir (None: system temp)
    work_dir_root: Optional[str] = None

    def codec_args(self) -> list[str]:
        """Fixed encoding arguments appended after the output mapping."""
        return [
            "-c:v", self.video_codec,
            "-c:a", self.audio_codec,
            "-preset", self.preset,
            "-pix_fmt", self.pixel_format,
        ]

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "RuntimeConfig":
        # Filter only known fields to avoid errors with old/new config versions
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered_data = {k: v for k, v in data.items() if k in known_fields}
        return cls(**filtered_data)

    def reset_to_defaults(self):
        """Reset all settings to default values from config.py."""
        defaults = RuntimeConfig()
        for name in self.__dataclass_fields__:
            setattr(self, name, getattr(defaults, name))


# Global singleton instance
_runtime_config: Optional[RuntimeConfig] = None


def get_config() -> RuntimeConfig:
    """Get the global runtime configuration instance."""
    global _runtime_config
    if _runtime_config is None:
        _runtime_config = RuntimeConfig()
    return _runtime_config


def set_config(config: RuntimeConfig):
    """Set the global runtime configuration instance."""
    global _runtime_config
    _runtime_config = config
