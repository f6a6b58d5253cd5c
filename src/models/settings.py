"""
Settings - Title overlay styles and background-music mixing.

Serialized keys use camelCase so scheme files stay compatible with the
format written by the web editor.
"""
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List

from config import (
    DEFAULT_MAIN_TITLE,
    DEFAULT_SUB_TITLE,
    DEFAULT_MAIN_TITLE_POS,
    DEFAULT_SUB_TITLE_POS,
    DEFAULT_MAIN_TITLE_STYLE,
    DEFAULT_SUB_TITLE_STYLE,
    DEFAULT_BGM_VOLUME,
    DEFAULT_VIDEO_VOLUME,
)


def _clamp_unit(value) -> float:
    return min(max(float(value), 0.0), 1.0)


# ---------------------------------------------------------------------------
# Titles
# ---------------------------------------------------------------------------

@dataclass
class TextStyle:
    """Rendering style for one text overlay.

    Sizes and distances are in editor reference pixels; angle is in degrees
    (any sign), measured counter-clockwise from the +X axis.
    """
    font_size: int = 32
    color: str = "#ffffff"
    shadow_color: str = "#000000"
    shadow_opacity: float = 0.9
    shadow_blur: float = 15
    shadow_distance: float = 5
    shadow_angle: float = -45

    def __post_init__(self):
        self.shadow_opacity = _clamp_unit(self.shadow_opacity)

    def to_dict(self) -> dict:
        return {
            "fontSize": self.font_size,
            "color": self.color,
            "shadowColor": self.shadow_color,
            "shadowOpacity": self.shadow_opacity,
            "shadowBlur": self.shadow_blur,
            "shadowDistance": self.shadow_distance,
            "shadowAngle": self.shadow_angle,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TextStyle":
        return cls(
            font_size=int(data["fontSize"]),
            color=str(data["color"]),
            shadow_color=str(data["shadowColor"]),
            shadow_opacity=float(data["shadowOpacity"]),
            shadow_blur=float(data["shadowBlur"]),
            shadow_distance=float(data["shadowDistance"]),
            shadow_angle=float(data["shadowAngle"]),
        )


@dataclass
class TitlePosition:
    """Signed pixel offset from the canvas center (editor frame)."""
    x: float = 0
    y: float = 0

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict) -> "TitlePosition":
        return cls(x=float(data["x"]), y=float(data["y"]))


@dataclass
class GlobalSettings:
    """Main title and subtitle with their placement and style."""
    main_title: str = DEFAULT_MAIN_TITLE
    sub_title: str = DEFAULT_SUB_TITLE
    main_title_pos: TitlePosition = field(
        default_factory=lambda: TitlePosition(*DEFAULT_MAIN_TITLE_POS))
    sub_title_pos: TitlePosition = field(
        default_factory=lambda: TitlePosition(*DEFAULT_SUB_TITLE_POS))
    main_title_style: TextStyle = field(
        default_factory=lambda: TextStyle.from_dict(DEFAULT_MAIN_TITLE_STYLE))
    sub_title_style: TextStyle = field(
        default_factory=lambda: TextStyle.from_dict(DEFAULT_SUB_TITLE_STYLE))

    def titles(self) -> list[tuple[str, TitlePosition, TextStyle]]:
        """(text, position, style) for main then sub title."""
        return [
            (self.main_title, self.main_title_pos, self.main_title_style),
            (self.sub_title, self.sub_title_pos, self.sub_title_style),
        ]

    def to_dict(self) -> dict:
        return {
            "mainTitle": self.main_title,
            "subTitle": self.sub_title,
            "mainTitlePos": self.main_title_pos.to_dict(),
            "subTitlePos": self.sub_title_pos.to_dict(),
            "mainTitleStyle": self.main_title_style.to_dict(),
            "subTitleStyle": self.sub_title_style.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GlobalSettings":
        return cls(
            main_title=str(data["mainTitle"]),
            sub_title=str(data["subTitle"]),
            main_title_pos=TitlePosition.from_dict(data["mainTitlePos"]),
            sub_title_pos=TitlePosition.from_dict(data["subTitlePos"]),
            main_title_style=TextStyle.from_dict(data["mainTitleStyle"]),
            sub_title_style=TextStyle.from_dict(data["subTitleStyle"]),
        )


# ---------------------------------------------------------------------------
# Background music
# ---------------------------------------------------------------------------

@dataclass
class BgmTrack:
    """One background-music candidate."""
    name: str = ""
    path: str = ""
    uuid: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        if not self.name and self.path:
            self.name = Path(self.path).name


@dataclass
class BgmSettings:
    """Candidate tracks plus the two mix volumes (each in [0, 1])."""
    tracks: List[BgmTrack] = field(default_factory=list)
    bgm_volume: float = DEFAULT_BGM_VOLUME
    video_volume: float = DEFAULT_VIDEO_VOLUME

    def __post_init__(self):
        self.bgm_volume = _clamp_unit(self.bgm_volume)
        self.video_volume = _clamp_unit(self.video_volume)

    @property
    def enabled(self) -> bool:
        return len(self.tracks) > 0

    def set_volumes(self, bgm_volume: Optional[float] = None,
                    video_volume: Optional[float] = None) -> None:
        if bgm_volume is not None:
            self.bgm_volume = _clamp_unit(bgm_volume)
        if video_volume is not None:
            self.video_volume = _clamp_unit(video_volume)

    def add_tracks(self, tracks: list[BgmTrack]) -> list[BgmTrack]:
        """Add tracks whose names are not already present."""
        existing_names = {t.name for t in self.tracks}
        added = []
        for track in tracks:
            if track.name in existing_names:
                continue
            existing_names.add(track.name)
            self.tracks.append(track)
            added.append(track)
        return added

    def remove_track(self, track_uuid: str) -> Optional[BgmTrack]:
        for i, track in enumerate(self.tracks):
            if track.uuid == track_uuid:
                return self.tracks.pop(i)
        return None
