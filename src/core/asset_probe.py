"""
Asset Probe - Duration and thumbnail extraction for imported clips.

Each probe decodes just enough of the source to learn its duration and grab
one frame. Probes run under the shared admission gate so that importing a
large folder does not spawn dozens of decoders at once.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import subprocess
from typing import Optional

from core.admission_gate import AdmissionGate, get_probe_gate
from core.errors import ProbeFailure
from runtime_config import RuntimeConfig, get_config


@dataclass
class ProbeResult:
    thumbnail: bytes  # JPEG
    duration: float


def sample_time(duration: float, requested: float) -> float:
    """Seek position for the thumbnail frame.

    Never past a short clip's midpoint, and 0 when the duration is unknown.
    """
    if not duration or duration <= 0:
        return 0.0
    return max(0.0, min(requested, duration / 2))


def _probe_duration(path: str, config: RuntimeConfig) -> float:
    try:
        out = subprocess.check_output(
            [
                config.ffprobe_path,
                "-v",
                "error",
                "-show_entries",
                "format=duration",
                "-of",
                "default=noprint_wrappers=1:nokey=1",
                path,
            ],
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
        ).strip()
    except (OSError, subprocess.CalledProcessError) as e:
        raise ProbeFailure(f"Could not load {Path(path).name}: {e}") from e
    try:
        return max(0.0, float(out))
    except ValueError:
        # Streams without a container duration report "N/A"
        return 0.0


def _grab_frame(path: str, seek: float, config: RuntimeConfig) -> bytes:
    cmd = [
        config.ffmpeg_path,
        "-v", "error",
        "-ss", f"{seek:.3f}",
        "-i", path,
        "-frames:v", "1",
        "-vf", f"scale={config.thumbnail_width}:-2",
        "-f", "image2pipe",
        "-c:v", "mjpeg",
        "pipe:1",
    ]
    try:
        proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    except OSError as e:
        raise ProbeFailure(f"Could not start {config.ffmpeg_path}: {e}") from e
    if proc.returncode != 0 or not proc.stdout:
        detail = proc.stderr.decode("utf-8", errors="replace").strip()
        raise ProbeFailure(f"Could not decode a frame from {Path(path).name}: {detail}")
    return proc.stdout


def probe_asset(path: str | Path, gate: Optional[AdmissionGate] = None,
                seek_time: Optional[float] = None,
                config: Optional[RuntimeConfig] = None) -> ProbeResult:
    """Extract (thumbnail, duration) for one media file.

    Blocks until the admission gate grants a slot. The slot is returned on
    every exit path.

    Raises:
        ProbeFailure: the file could not be loaded or decoded.
    """
    config = config or get_config()
    gate = gate or get_probe_gate()
    if seek_time is None:
        seek_time = config.probe_seek_seconds
    path = str(path)

    gate.acquire()
    try:
        if not Path(path).is_file():
            raise ProbeFailure(f"File not found: {path}")
        duration = _probe_duration(path, config)
        thumbnail = _grab_frame(path, sample_time(duration, seek_time), config)
        return ProbeResult(thumbnail=thumbnail, duration=duration)
    finally:
        gate.release()


def probe_asset_safely(path: str | Path, gate: Optional[AdmissionGate] = None,
                       seek_time: Optional[float] = None,
                       config: Optional[RuntimeConfig] = None) -> Optional[ProbeResult]:
    """probe_asset for fire-and-forget callers: failures are logged, not raised."""
    try:
        return probe_asset(path, gate=gate, seek_time=seek_time, config=config)
    except ProbeFailure as e:
        print(f"Warning: thumbnail extraction failed for {Path(path).name}: {e}")
        return None
