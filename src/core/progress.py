"""
Progress estimation from encoder output.

FFmpeg prints lines such as ``frame=  120 fps= 60 ... time=00:00:04.00 ...``
while encoding. The estimator scrapes the position from those lines and
normalizes it by the program's total duration. This is best effort: the
value never reaches 1.0 here, completion is reported by the orchestrator
once the artifact has actually been collected.

Estimators are strategies; an engine that reports reliable native progress
can be paired with a different implementation without touching the
orchestrator.
"""
from __future__ import annotations

import re
from typing import Optional

from models.export_task import MAX_PENDING_PROGRESS

_TIME_RE = re.compile(r"time=(\d{2}):(\d{2}):(\d{2}\.\d{2})")


def parse_timestamp(line: str) -> Optional[float]:
    """Encoder position in seconds from a log line, or None."""
    m = _TIME_RE.search(line)
    if not m:
        return None
    hours = int(m.group(1))
    minutes = int(m.group(2))
    seconds = float(m.group(3))
    return hours * 3600 + minutes * 60 + seconds


def clamp_progress(value: float) -> float:
    return min(max(value, 0.0), MAX_PENDING_PROGRESS)


class ProgressEstimator:
    """Interface: turn engine log lines / native events into a fraction."""

    def on_log(self, line: str) -> Optional[float]:
        raise NotImplementedError

    def on_progress(self, fraction: float) -> Optional[float]:
        raise NotImplementedError


class LogTimeProgressEstimator(ProgressEstimator):
    """Estimate from ``time=HH:MM:SS.ss`` log lines.

    Native fractional progress events are clamped the same way. The two
    sources are not reconciled: whichever arrives is returned.
    """

    def __init__(self, total_duration: float):
        self.total_duration = float(total_duration)

    def on_log(self, line: str) -> Optional[float]:
        seconds = parse_timestamp(line)
        if seconds is None or self.total_duration <= 0:
            return None
        return clamp_progress(seconds / self.total_duration)

    def on_progress(self, fraction: float) -> Optional[float]:
        # Some engine builds emit 0 or negative values before the first frame
        if fraction is None or fraction <= 0:
            return None
        return clamp_progress(float(fraction))
