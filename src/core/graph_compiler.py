"""
Graph Compiler - Resolve a timeline into one FFmpeg render program.

Given the timeline, the pools, BGM and title settings, draw one concrete
clip per segment (and one BGM track), then emit a single filter_complex
graph that trims, scales and pads every clip to the portrait canvas,
concatenates them, burns in the titles and mixes in the music.

Compilation is pure: it reads the model, never mutates it, and never
touches the engine. All randomness comes from the ``rng`` argument, so a
seeded ``random.Random`` reproduces the same program.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import math
import random
import re
from typing import Optional

from config import (
    VIDEO_WIDTH,
    VIDEO_HEIGHT,
    TEXT_SCALE_MULTIPLIER,
    RENDER_OUTPUT_NAME,
    FONT_INPUT_NAME,
)
from core.errors import EmptyPool, EmptyTimeline
from models.pool import Pool
from models.settings import BgmSettings, BgmTrack, GlobalSettings, TextStyle, TitlePosition
from models.timeline import Segment
from runtime_config import RuntimeConfig, get_config

VIDEO_OUTPUT = "[outv]"
AUDIO_OUTPUT = "[outa]"

_UNSAFE_NAME_RE = re.compile(r"[^a-zA-Z0-9.]")


@dataclass
class ProgramInput:
    """A file the engine needs in its working space.

    kind is "video", "bgm" or "font". Only video and bgm inputs are passed
    with ``-i``; the font is referenced from inside the filter graph.
    """
    name: str
    path: str
    kind: str = "video"


@dataclass
class RenderProgram:
    """Everything the engine needs for one unit."""
    inputs: list[ProgramInput]
    filter_graph: str
    total_duration: float
    codec_args: list[str] = field(default_factory=list)
    video_output: str = VIDEO_OUTPUT
    audio_output: str = AUDIO_OUTPUT
    output_name: str = RENDER_OUTPUT_NAME
    bgm_track: Optional[BgmTrack] = None

    @property
    def media_inputs(self) -> list[ProgramInput]:
        return [i for i in self.inputs if i.kind in ("video", "bgm")]

    def engine_args(self) -> list[str]:
        args: list[str] = []
        for item in self.media_inputs:
            args += ["-i", item.name]
        args += ["-filter_complex", self.filter_graph]
        args += ["-map", self.video_output, "-map", self.audio_output]
        args += list(self.codec_args)
        args.append(self.output_name)
        return args


def sanitize_name(name: str) -> str:
    """Strip everything FFmpeg's argument/path parsing could trip on."""
    return _UNSAFE_NAME_RE.sub("", name)


def escape_text(text: str) -> str:
    # A typographic apostrophe renders the same but cannot close '...'
    return text.replace("'", "’")


def _num(value: float) -> str:
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _round(value: float) -> int:
    """Round half up (not to even) so offsets stay symmetric with the editor."""
    return int(math.floor(value + 0.5))


def _hex_color(color: str, alpha: int = 255) -> str:
    """'#rrggbb' -> '0xrrggbbAA'."""
    return color.replace("#", "0x") + f"{alpha:02X}"


def shadow_offset(style: TextStyle, scale: float = TEXT_SCALE_MULTIPLIER) -> tuple[int, int]:
    """Pixel offset of the drop shadow on the output canvas.

    Screen Y grows downward, so the vertical component is negated.
    """
    radians = style.shadow_angle * math.pi / 180
    shadow_x = _round(style.shadow_distance * math.cos(radians) * scale)
    shadow_y = _round(style.shadow_distance * -math.sin(radians) * scale)
    return shadow_x, shadow_y


def build_drawtext(text: str, style: TextStyle, pos: TitlePosition,
                   font_name: str = FONT_INPUT_NAME,
                   scale: float = TEXT_SCALE_MULTIPLIER) -> Optional[str]:
    """drawtext filter for one title, or None if the text is blank."""
    if not text or not text.strip():
        return None
    fontcolor = _hex_color(style.color)
    shadowcolor = _hex_color(style.shadow_color, _round(style.shadow_opacity * 255))
    shadow_x, shadow_y = shadow_offset(style, scale)
    font_size = _round(style.font_size * scale)
    offset_x = _round(pos.x * scale)
    offset_y = _round(pos.y * scale)
    return (
        f"drawtext=fontfile={font_name}:text='{escape_text(text)}'"
        f":fontcolor={fontcolor}:fontsize={font_size}"
        f":x=(w-tw)/2+{offset_x}:y=(h-th)/2+{offset_y}"
        f":shadowcolor={shadowcolor}:shadowx={shadow_x}:shadowy={shadow_y}"
    )


def compile_program(
    timeline: list[Segment],
    pools: list[Pool],
    bgm: BgmSettings,
    settings: GlobalSettings,
    rng: Optional[random.Random] = None,
    config: Optional[RuntimeConfig] = None,
) -> RenderProgram:
    """Compile the timeline into a RenderProgram.

    Raises:
        EmptyPool: a segment's pool is missing or has no assets. Raised
            before any output is produced, so no partial program exists.
        EmptyTimeline: there are no segments.
    """
    timeline = list(timeline)
    if not timeline:
        raise EmptyTimeline()
    rng = rng or random.Random()
    config = config or get_config()
    pools_by_id = {p.uuid: p for p in pools}

    # 1-2. Draw one asset per segment and name it for the engine
    inputs: list[ProgramInput] = []
    for i, segment in enumerate(timeline):
        pool = pools_by_id.get(segment.pool_id)
        if pool is None or pool.is_empty:
            raise EmptyPool(i, segment.pool_id, pool.name if pool else "")
        asset = rng.choice(pool.assets)
        inputs.append(ProgramInput(
            name=f"input_{i}_{sanitize_name(asset.name)}",
            path=asset.path,
            kind="video",
        ))

    # 3. Draw the BGM track
    bgm_track = rng.choice(bgm.tracks) if bgm.enabled else None

    # 4. Per-segment trim, rescale, pad
    filter_parts: list[str] = []
    concat_inputs = []
    for i, segment in enumerate(timeline):
        duration = _num(segment.duration)
        filter_parts.append(
            f"[{i}:v]trim=0:{duration},setpts=PTS-STARTPTS,"
            f"scale={VIDEO_WIDTH}:{VIDEO_HEIGHT}:force_original_aspect_ratio=decrease,"
            f"pad={VIDEO_WIDTH}:{VIDEO_HEIGHT}:(ow-iw)/2:(oh-ih)/2[v{i}]"
        )
        filter_parts.append(
            f"[{i}:a]atrim=0:{duration},asetpts=PTS-STARTPTS,"
            f"volume={_num(bgm.video_volume)}[a{i}]"
        )
        concat_inputs.append(f"[v{i}][a{i}]")

    # 5. Concatenate in timeline order
    total = sum(segment.duration for segment in timeline)
    filter_parts.append(
        f"{''.join(concat_inputs)}concat=n={len(timeline)}:v=1:a=1[outv_raw][outa_raw]"
    )

    # 6. Titles (main, then sub)
    draw_filters = []
    for text, pos, style in settings.titles():
        draw = build_drawtext(text, style, pos)
        if draw:
            draw_filters.append(draw)
    if draw_filters:
        filter_parts.append(f"[outv_raw]{','.join(draw_filters)}{VIDEO_OUTPUT}")
    else:
        filter_parts.append(f"[outv_raw]copy{VIDEO_OUTPUT}")

    # 7. Music bed, cut to the video length so it never extends the output
    if bgm_track is not None:
        bgm_index = len(timeline)
        filter_parts.append(
            f"[{bgm_index}:a]atrim=0:{_num(total)},asetpts=PTS-STARTPTS,"
            f"volume={_num(bgm.bgm_volume)}[bgm_trimmed]"
        )
        filter_parts.append(
            f"[outa_raw][bgm_trimmed]amix=inputs=2:duration=first:dropout_transition=0{AUDIO_OUTPUT}"
        )
        inputs.append(ProgramInput(
            name=f"bgm_{sanitize_name(bgm_track.name)}",
            path=bgm_track.path,
            kind="bgm",
        ))
    else:
        filter_parts.append(f"[outa_raw]acopy{AUDIO_OUTPUT}")

    # 8. Shared font for drawtext
    inputs.append(ProgramInput(name=FONT_INPUT_NAME, path=config.font_path, kind="font"))

    return RenderProgram(
        inputs=inputs,
        filter_graph="; ".join(filter_parts),
        total_duration=total,
        codec_args=config.codec_args(),
        bgm_track=bgm_track,
    )
