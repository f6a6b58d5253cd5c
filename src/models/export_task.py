"""
Export tasks - One record per requested output unit.

A task starts in PROCESSING and ends in exactly one terminal state. While
processing, progress only moves forward and stays below 1.0; it reaches 1.0
only when the task is marked done.
"""
import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

MAX_PENDING_PROGRESS = 0.99


class ExportStatus(str, enum.Enum):
    PROCESSING = "processing"
    DONE = "done"
    ERROR = "error"


def format_created_at(moment: Optional[datetime] = None) -> str:
    """Timestamp like 20260222_230809."""
    return (moment or datetime.now()).strftime("%Y%m%d_%H%M%S")


class ExportArtifact:
    """Rendered output bytes, owned by the task that produced them."""

    def __init__(self, data: bytes, filename: str = "output.mp4",
                 mime_type: str = "video/mp4"):
        self._data: Optional[bytes] = data
        self.filename = filename
        self.mime_type = mime_type

    @property
    def released(self) -> bool:
        return self._data is None

    @property
    def data(self) -> bytes:
        if self._data is None:
            raise RuntimeError("Artifact has been released")
        return self._data

    @property
    def size(self) -> int:
        return 0 if self._data is None else len(self._data)

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.data)
        return path

    def release(self) -> None:
        self._data = None


@dataclass
class ExportTask:
    """State of one export unit.

    Attributes:
        uuid: Unique identifier.
        status: processing / done / error.
        progress: Fraction in [0, 1].
        artifact: Rendered output once done.
        created_at: Creation timestamp (YYYYMMDD_HHMMSS).
        error_message: Human readable cause once in error.
    """
    uuid: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: ExportStatus = ExportStatus.PROCESSING
    progress: float = 0.0
    artifact: Optional[ExportArtifact] = None
    created_at: str = field(default_factory=format_created_at)
    error_message: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (ExportStatus.DONE, ExportStatus.ERROR)

    def _ensure_processing(self) -> None:
        if self.is_terminal:
            raise RuntimeError(f"Export task {self.uuid} is already {self.status.value}")

    def update_progress(self, value: float) -> bool:
        """Apply a progress estimate. Returns True if the value moved."""
        self._ensure_processing()
        value = min(max(float(value), 0.0), MAX_PENDING_PROGRESS)
        if value <= self.progress:
            return False
        self.progress = value
        return True

    def mark_done(self, artifact: ExportArtifact) -> None:
        self._ensure_processing()
        self.artifact = artifact
        self.progress = 1.0
        self.status = ExportStatus.DONE

    def mark_error(self, message: str) -> None:
        self._ensure_processing()
        self.error_message = message or "Unknown error while exporting video"
        self.status = ExportStatus.ERROR

    def release(self) -> None:
        """Drop the artifact bytes (called when the session discards the task)."""
        if self.artifact is not None:
            self.artifact.release()
