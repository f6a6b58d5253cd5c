"""
MatrixCut - Batch export entry point

Builds a project from a saved scheme (or straight from clip folders),
renders N randomized variants and writes them to an output folder.

Examples:
    python src/main.py --pool clips/hook --pool clips/body --quantity 5 -o out
    python src/main.py --scheme matrix_scheme.json --pool Hook=clips/hook \
        --pool Body=clips/body --bgm music --quantity 10 -o out
"""
import argparse
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
import random
import signal
import sys

# Add src to path for running as script
sys.path.insert(0, str(Path(__file__).parent))

from config import SCHEME_FILENAME, VIDEO_EXTENSIONS
from core.asset_probe import probe_asset_safely
from core.errors import EmptyTimeline, EngineLoadFailure, SchemeError
from exporters.engine import EngineHandle
from exporters.orchestrator import CancelToken, ExportOrchestrator, save_artifacts
from models.export_task import ExportStatus
from models.pool import Asset
from models.project import Project
from runtime_config import get_config


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Render randomized short-video variants")
    parser.add_argument("--scheme", help="scheme JSON exported from the editor")
    parser.add_argument("--pool", action="append", default=[], metavar="[POOL=]DIR",
                        help="clip folder; POOL names the pool (with --scheme: its id or name)")
    parser.add_argument("--bgm", action="append", default=[], metavar="DIR",
                        help="background music folder")
    parser.add_argument("--bgm-volume", type=float, default=None)
    parser.add_argument("--video-volume", type=float, default=None)
    parser.add_argument("--main-title", default=None)
    parser.add_argument("--sub-title", default=None)
    parser.add_argument("-n", "--quantity", type=int, default=1)
    parser.add_argument("-o", "--output", default="exports")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--ffmpeg", default=None, help="path to the ffmpeg binary")
    parser.add_argument("--ffprobe", default=None, help="path to the ffprobe binary")
    parser.add_argument("--font", default=None, help="font file used for titles")
    parser.add_argument("--save-scheme", nargs="?", const=SCHEME_FILENAME, default=None,
                        metavar="PATH", help="also write the project structure as a scheme file")
    args = parser.parse_args(argv)
    if args.quantity < 1:
        parser.error("--quantity must be at least 1")
    return args


def build_project(args) -> Project:
    project = Project()

    if args.scheme:
        project.load_scheme(args.scheme)
        for entry in args.pool:
            key, sep, directory = entry.partition("=")
            if not sep:
                raise SystemExit(f"--pool with --scheme must be POOL=DIR, got {entry!r}")
            pool = project.find_pool(key)
            if pool is None:
                raise SystemExit(f"No pool named {key!r} in scheme")
            files = sorted(p for p in Path(directory).iterdir()
                           if p.is_file() and p.suffix.lower() in VIDEO_EXTENSIONS)
            pool.add_assets([Asset.from_path(p) for p in files])
    else:
        for entry in args.pool:
            name, sep, directory = entry.partition("=")
            if not sep:
                name, directory = "", entry
            # Importing into the trailing empty pool names it after the folder,
            # adds a segment for it and appends the next empty pool.
            pool = project.pools[-1]
            project.import_pool_directory(pool.uuid, directory)
            if name:
                pool.name = name

    for directory in args.bgm:
        project.import_bgm_directory(directory)
    project.bgm.set_volumes(args.bgm_volume, args.video_volume)
    if args.main_title is not None:
        project.settings.main_title = args.main_title
    if args.sub_title is not None:
        project.settings.sub_title = args.sub_title
    return project


def probe_pools(project: Project):
    """Probe every asset and warn about segments longer than their clips"""
    jobs = [(pool, asset) for pool in project.pools for asset in pool.assets]
    if not jobs:
        return
    print(f"Probing {len(jobs)} clips...")
    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(lambda job: probe_asset_safely(job[1].path), jobs))
    for (pool, asset), result in zip(jobs, results):
        if result is not None:
            project.update_asset_probe(pool.uuid, asset.uuid, result.thumbnail, result.duration)

    for i, segment in enumerate(project.timeline):
        pool = project.get_pool(segment.pool_id)
        if pool is None:
            continue
        durations = [a.duration for a in pool.assets if a.duration > 0]
        if durations and min(durations) < segment.duration:
            print(f"Warning: segment {i + 1} is {segment.duration:.1f}s but pool "
                  f"'{pool.name}' has clips as short as {min(durations):.1f}s")


def main(argv=None) -> int:
    args = parse_args(argv)

    config = get_config()
    if args.ffmpeg:
        config.ffmpeg_path = args.ffmpeg
    if args.ffprobe:
        config.ffprobe_path = args.ffprobe
    if args.font:
        config.font_path = args.font

    try:
        project = build_project(args)
    except (SchemeError, OSError) as e:
        print(f"Error: {e}")
        return 2

    if args.save_scheme:
        print(f"Scheme written to {project.save_scheme(args.save_scheme)}")

    probe_pools(project)

    cancel_token = CancelToken()

    def _on_interrupt(signum, frame):
        if cancel_token.is_cancelled:
            raise KeyboardInterrupt
        print("\nStopping after the current video (press Ctrl+C again to abort)...")
        cancel_token.cancel()

    previous_handler = signal.signal(signal.SIGINT, _on_interrupt)

    engine_handle = EngineHandle()
    engine_handle.add_status_listener(lambda status: print(f"FFmpeg: {status.value}"))
    orchestrator = ExportOrchestrator(project, engine_handle, rng=random.Random(args.seed))

    def _report(task):
        if task.status == ExportStatus.PROCESSING:
            print(f"\r[{task.created_at}] {task.progress * 100:5.1f}%", end="", flush=True)
        elif task.status == ExportStatus.DONE:
            print(f"\r[{task.created_at}] done ({task.artifact.size / 1_000_000:.1f} MB)")
        else:
            print(f"\r[{task.created_at}] error: {task.error_message}")

    try:
        tasks = orchestrator.run(args.quantity, cancel_token=cancel_token,
                                 on_task_updated=_report)
    except (EmptyTimeline, EngineLoadFailure) as e:
        print(f"Error: {e}")
        return 1
    except KeyboardInterrupt:
        print("\nAborted")
        return 130
    finally:
        engine_handle.shutdown()
        signal.signal(signal.SIGINT, previous_handler)

    saved = save_artifacts(tasks, args.output)
    failed = sum(1 for t in tasks if t.status == ExportStatus.ERROR)
    print(f"Saved {len(saved)} videos to {Path(args.output).resolve()}"
          + (f", {failed} failed" if failed else ""))
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
