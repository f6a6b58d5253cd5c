"""
Timeline - Ordered render slots that reference pools.

A segment does not pick its clip at edit time; it only names a pool and a
duration. The concrete clip is drawn when a variant is compiled for export.
"""
import uuid
from dataclasses import dataclass, field

from config import DEFAULT_SEGMENT_DURATION


def _validate_duration(duration) -> float:
    duration = float(duration)
    if not duration > 0:
        raise ValueError(f"Segment duration must be positive, got {duration}")
    return duration


@dataclass
class Segment:
    """One ordered slot in the render timeline.

    Attributes:
        pool_id: UUID of the pool to draw from. Need not resolve while
            editing, but must resolve to a non-empty pool at export time.
        duration: Seconds of the drawn clip to use (always > 0).
    """
    pool_id: str = ""
    duration: float = DEFAULT_SEGMENT_DURATION
    uuid: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        self.duration = _validate_duration(self.duration)

    def set_duration(self, duration: float) -> None:
        self.duration = _validate_duration(duration)

    def copy(self) -> "Segment":
        """Duplicate with a fresh identity."""
        return Segment(pool_id=self.pool_id, duration=self.duration)

    def to_dict(self) -> dict:
        return {
            "id": self.uuid,
            "poolId": self.pool_id,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Segment":
        return cls(
            uuid=str(data["id"]),
            pool_id=str(data["poolId"]),
            duration=data.get("duration", DEFAULT_SEGMENT_DURATION),
        )


def total_duration(segments: list[Segment]) -> float:
    """Sum of segment durations, the canonical length of a render."""
    return sum(seg.duration for seg in segments)
