"""
Encoding engine adapter.

The orchestrator treats the encoder as a black box: named input files are
written into an isolated working space, one program is executed, and the
engine answers with a return code and a line-oriented log. FFmpegEngine
implements that contract on top of the ffmpeg CLI with a private temporary
directory as its file space.

A session owns at most one engine, created lazily through EngineHandle.
"""
from __future__ import annotations

import enum
import os
from pathlib import Path
import shutil
import subprocess
import tempfile
import threading
from typing import Callable, Optional

from core.errors import EngineLoadFailure
from runtime_config import get_config

LogCallback = Callable[[str], None]
ProgressCallback = Callable[[float], None]


class EngineStatus(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


def _check_name(name: str) -> str:
    if not name or Path(name).name != name or name in (".", ".."):
        raise ValueError(f"Engine file names must be plain file names: {name!r}")
    return name


class FFmpegEngine:
    """ffmpeg CLI running inside a private working directory."""

    def __init__(self, ffmpeg_path: Optional[str] = None,
                 work_dir_root: Optional[str] = None):
        config = get_config()
        self.ffmpeg_path = ffmpeg_path or config.ffmpeg_path
        self.work_dir_root = work_dir_root or config.work_dir_root
        self.work_dir: Optional[Path] = None
        self.version: str = ""
        self.last_log: list[str] = []

    @property
    def loaded(self) -> bool:
        return self.work_dir is not None

    def load(self) -> None:
        """Verify the binary and create the working directory."""
        try:
            out = subprocess.check_output(
                [self.ffmpeg_path, "-hide_banner", "-version"],
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except (OSError, subprocess.CalledProcessError) as e:
            raise EngineLoadFailure(f"FFmpeg is not available ({self.ffmpeg_path}): {e}") from e
        self.version = out.splitlines()[0] if out else ""
        self.work_dir = Path(tempfile.mkdtemp(prefix="matrixcut_", dir=self.work_dir_root))

    def _path(self, name: str) -> Path:
        if self.work_dir is None:
            raise RuntimeError("Engine is not loaded")
        return self.work_dir / _check_name(name)

    def write_file(self, name: str, source: str | Path | bytes) -> None:
        target = self._path(name)
        if isinstance(source, (bytes, bytearray)):
            target.write_bytes(source)
        else:
            shutil.copyfile(source, target)

    def read_file(self, name: str) -> bytes:
        return self._path(name).read_bytes()

    def delete_file(self, name: str) -> None:
        self._path(name).unlink(missing_ok=True)

    def list_files(self) -> list[str]:
        if self.work_dir is None:
            return []
        return sorted(p.name for p in self.work_dir.iterdir())

    def exec(self, args: list[str], on_log: Optional[LogCallback] = None,
             on_progress: Optional[ProgressCallback] = None) -> int:
        """Run one program. Blocks until ffmpeg exits; returns its exit code.

        The ffmpeg CLI has no native fractional progress, so on_progress is
        accepted for interface compatibility and never called.
        """
        if self.work_dir is None:
            raise RuntimeError("Engine is not loaded")
        cmd = [self.ffmpeg_path, "-y", "-hide_banner", "-nostdin", *args]
        self.last_log = []

        # A terminal Ctrl+C goes to the whole foreground process group; ffmpeg
        # runs in its own so only the batch loop sees it.
        if os.name == "nt":
            group_kwargs = {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
        else:
            group_kwargs = {"start_new_session": True}

        # Stats lines end in '\r'; universal newlines splits on those too
        proc = subprocess.Popen(
            cmd,
            cwd=str(self.work_dir),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
            universal_newlines=True,
            **group_kwargs,
        )
        if proc.stdout is None:
            raise RuntimeError("Failed to start FFmpeg")

        return_code = None
        try:
            for line in proc.stdout:
                line = line.rstrip("\n")
                self.last_log.append(line)
                if len(self.last_log) > 200:
                    del self.last_log[:-200]
                if on_log:
                    on_log(line)
            return_code = proc.wait()
        finally:
            if return_code is None:
                # Read loop interrupted: stop and reap ffmpeg
                proc.terminate()
                proc.wait()
        return return_code

    def log_tail(self, lines: int = 40) -> str:
        return "\n".join(self.last_log[-lines:])

    def close(self) -> None:
        if self.work_dir is not None:
            shutil.rmtree(self.work_dir, ignore_errors=True)
            self.work_dir = None


class EngineHandle:
    """Lazily created, session-wide engine instance.

    The first acquire() moves the status idle -> loading -> ready (or
    error). Once ready, the same instance is returned forever. After a
    failed load the next acquire() tries again.
    """

    def __init__(self, factory: Callable[[], object] = FFmpegEngine):
        self._factory = factory
        self._engine = None
        self._status = EngineStatus.IDLE
        self._lock = threading.Lock()
        self._listeners: list[Callable[[EngineStatus], None]] = []

    @property
    def status(self) -> EngineStatus:
        return self._status

    @property
    def engine(self):
        return self._engine

    def add_status_listener(self, listener: Callable[[EngineStatus], None]) -> None:
        self._listeners.append(listener)

    def remove_status_listener(self, listener: Callable[[EngineStatus], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _set_status(self, status: EngineStatus) -> None:
        self._status = status
        for listener in list(self._listeners):
            listener(status)

    def acquire(self):
        """Return the ready engine, loading it on first use.

        Raises:
            EngineLoadFailure: the engine could not be initialized.
        """
        with self._lock:
            if self._status == EngineStatus.READY:
                return self._engine
            self._set_status(EngineStatus.LOADING)
            try:
                engine = self._factory()
                engine.load()
            except Exception as e:
                self._engine = None
                self._set_status(EngineStatus.ERROR)
                if isinstance(e, EngineLoadFailure):
                    raise
                raise EngineLoadFailure(f"Failed to initialize FFmpeg: {e}") from e
            self._engine = engine
            self._set_status(EngineStatus.READY)
            return engine

    def preload(self) -> bool:
        """Load in the background of a session start; failures are only logged."""
        try:
            self.acquire()
            return True
        except EngineLoadFailure as e:
            print(f"Warning: silent preload of FFmpeg failed: {e}")
            return False

    def shutdown(self) -> None:
        with self._lock:
            if self._engine is not None:
                self._engine.close()
            self._engine = None
            self._set_status(EngineStatus.IDLE)
