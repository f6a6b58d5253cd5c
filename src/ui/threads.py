from PyQt6.QtCore import QThread, pyqtSignal
from typing import Optional
import random
import traceback

from core.errors import EmptyTimeline, EngineLoadFailure
from exporters.engine import EngineHandle, EngineStatus
from exporters.orchestrator import CancelToken, ExportOrchestrator
from models.export_task import ExportStatus
from models.project import Project


class ExportThread(QThread):
    """Background thread running a batch export (one unit at a time)"""
    task_updated = pyqtSignal(object)  # ExportTask
    engine_status_changed = pyqtSignal(str)  # EngineStatus value
    finished = pyqtSignal(bool, str)  # success, message

    def __init__(self, project: Project, engine_handle: EngineHandle, quantity: int = 1,
                 seed: Optional[int] = None):
        super().__init__()
        self.project = project
        self.engine_handle = engine_handle
        self.quantity = quantity
        self.seed = seed
        self.cancel_token = CancelToken()
        self.tasks = []

    def cancel(self):
        """Stop after the unit currently rendering"""
        self.cancel_token.cancel()

    def _on_engine_status(self, status: EngineStatus):
        self.engine_status_changed.emit(status.value)

    def run(self):
        self.engine_handle.add_status_listener(self._on_engine_status)
        try:
            orchestrator = ExportOrchestrator(
                self.project,
                self.engine_handle,
                rng=random.Random(self.seed),
            )
            self.tasks = orchestrator.run(
                self.quantity,
                cancel_token=self.cancel_token,
                on_task_updated=self.task_updated.emit,
            )
            done = sum(1 for t in self.tasks if t.status == ExportStatus.DONE)
            failed = sum(1 for t in self.tasks if t.status == ExportStatus.ERROR)
            message = f"{done} of {self.quantity} videos exported"
            if failed:
                message += f", {failed} failed"
            if self.cancel_token.is_cancelled and len(self.tasks) < self.quantity:
                message += " (stopped by user)"
            self.finished.emit(failed == 0 and done > 0, message)

        except (EmptyTimeline, EngineLoadFailure) as e:
            self.finished.emit(False, str(e))
        except Exception as e:
            traceback.print_exc()
            self.finished.emit(False, f"Export failed: {str(e)}")

        finally:
            self.engine_handle.remove_status_listener(self._on_engine_status)
