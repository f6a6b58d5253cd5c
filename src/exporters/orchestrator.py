"""
Export Orchestrator - Batch-render N randomized variants of the timeline.

Units run strictly one after another against the single session engine;
running them in parallel would multiply the engine's memory footprint. Each
unit draws its own clips, so every output is a different variant.

Per unit:
  1. register an ExportTask (processing, progress 0)
  2. acquire the engine (a load failure aborts the whole run)
  3. compile the program (an empty pool fails only this unit)
  4. stage inputs into the engine's file space
  5. execute, feeding log lines to the progress estimator
  6-7. collect the artifact, or record the exit code
  8. remove every staged file and the output, whatever happened

Cancellation is cooperative: the token is checked before a unit starts and
never interrupts a unit that is already rendering.
"""
from __future__ import annotations

from pathlib import Path
import random
import threading
import traceback
from typing import Callable, Optional

from core.errors import CompileError, EmptyTimeline, EngineExecFailure, EngineLoadFailure
from core.graph_compiler import RenderProgram, compile_program
from core.progress import LogTimeProgressEstimator, ProgressEstimator
from exporters.engine import EngineHandle
from models.export_task import ExportArtifact, ExportStatus, ExportTask
from models.project import Project
from runtime_config import RuntimeConfig, get_config

TaskCallback = Callable[[ExportTask], None]


class CancelToken:
    """Cooperative stop flag shared between the UI and the export loop."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def reset(self) -> None:
        self._event.clear()


class ExportOrchestrator:
    """Sequential export queue for one project."""

    def __init__(
        self,
        project: Project,
        engine_handle: EngineHandle,
        estimator_factory: Callable[[float], ProgressEstimator] = LogTimeProgressEstimator,
        rng: Optional[random.Random] = None,
        config: Optional[RuntimeConfig] = None,
    ):
        self.project = project
        self.engine_handle = engine_handle
        self.estimator_factory = estimator_factory
        self.rng = rng or random.Random()
        self.config = config or get_config()
        self._run_lock = threading.Lock()

    def run(self, quantity: int = 1, cancel_token: Optional[CancelToken] = None,
            on_task_updated: Optional[TaskCallback] = None) -> list[ExportTask]:
        """Render *quantity* variants.

        Returns:
            The tasks created by this run, in creation order.

        Raises:
            ValueError: quantity < 1.
            EmptyTimeline: nothing to render (no task is created).
            EngineLoadFailure: the engine could not start; the current task
                is marked error and no further units are attempted.
        """
        if quantity < 1:
            raise ValueError("quantity must be at least 1")
        if not self.project.timeline:
            raise EmptyTimeline()
        if not self._run_lock.acquire(blocking=False):
            raise RuntimeError("An export run is already in progress")

        cancel_token = cancel_token or CancelToken()
        notify = on_task_updated or (lambda task: None)
        tasks: list[ExportTask] = []
        try:
            for unit in range(quantity):
                if cancel_token.is_cancelled:
                    print(f"Export cancelled before unit {unit + 1}/{quantity}")
                    break
                task = ExportTask()
                self.project.add_export_task(task)
                tasks.append(task)
                notify(task)
                self._run_unit(task, notify)
        finally:
            self._run_lock.release()
        return tasks

    def _run_unit(self, task: ExportTask, notify: TaskCallback) -> None:
        try:
            engine = self.engine_handle.acquire()
        except EngineLoadFailure as e:
            task.mark_error(str(e))
            notify(task)
            raise

        try:
            program = compile_program(
                self.project.timeline,
                self.project.pools,
                self.project.bgm,
                self.project.settings,
                rng=self.rng,
                config=self.config,
            )
        except CompileError as e:
            print(f"Export unit {task.uuid} skipped: {e}")
            task.mark_error(str(e))
            notify(task)
            return

        self._render(engine, program, task, notify)

    def _render(self, engine, program: RenderProgram, task: ExportTask,
                notify: TaskCallback) -> None:
        estimator = self.estimator_factory(program.total_duration)

        def apply(value: Optional[float]) -> None:
            if value is not None and task.update_progress(value):
                notify(task)

        staged: list[str] = []
        try:
            for item in program.inputs:
                staged.append(item.name)
                engine.write_file(item.name, item.path)

            rc = engine.exec(
                program.engine_args(),
                on_log=lambda line: apply(estimator.on_log(line)),
                on_progress=lambda fraction: apply(estimator.on_progress(fraction)),
            )
            if rc != 0:
                tail = engine.log_tail() if hasattr(engine, "log_tail") else ""
                raise EngineExecFailure(rc, tail)

            data = engine.read_file(program.output_name)
            task.mark_done(ExportArtifact(data, filename=program.output_name))
        except EngineExecFailure as e:
            print(f"Export unit {task.uuid} failed: {e}\n{e.log_tail}")
            task.mark_error(str(e))
        except Exception as e:
            traceback.print_exc()
            task.mark_error(str(e) or "Unknown error while exporting video")
        finally:
            self._cleanup(engine, staged + [program.output_name])
        notify(task)

    def _cleanup(self, engine, names: list[str]) -> None:
        for name in names:
            try:
                engine.delete_file(name)
            except OSError as e:
                print(f"Warning: could not remove {name} from engine workspace: {e}")


def save_artifacts(tasks: list[ExportTask], directory: str | Path) -> list[Path]:
    """Write every finished artifact to *directory*.

    Files are named matrix_video_<n>_<id prefix>.mp4 in the given order.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    saved = []
    done = [t for t in tasks if t.status == ExportStatus.DONE and t.artifact is not None]
    for n, task in enumerate(done, start=1):
        path = directory / f"matrix_video_{n}_{task.uuid[:4]}.mp4"
        saved.append(task.artifact.save(path))
    return saved
