"""
Project - The session's single mutable source of truth.

Brings together:
  1. Pools          - labeled sets of interchangeable clips
  2. Timeline       - ordered segments that reference pools
  3. Settings       - titles and their styles
  4. BGM            - background-music candidates and mix volumes
  5. Export tasks   - records of requested output units (most recent first)

Also implements the scheme file format: a JSON snapshot of settings,
timeline and pool *structure*. Asset bytes are never written; importing a
scheme leaves every pool empty and the user re-populates them.
"""
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List

from config import (
    SCHEME_VERSION,
    DEFAULT_SEGMENT_DURATION,
    IMPORTED_SEGMENT_DURATION,
    VIDEO_EXTENSIONS,
    AUDIO_EXTENSIONS,
)
from core.errors import SchemeParseFailure, SchemeVersionMismatch
from models.pool import Asset, Pool
from models.timeline import Segment, total_duration
from models.settings import BgmSettings, BgmTrack, GlobalSettings
from models.export_task import ExportStatus, ExportTask


def _scan_directory(directory: str | Path, extensions: tuple) -> list[Path]:
    directory = Path(directory)
    if not directory.is_dir():
        raise NotADirectoryError(f"Not a directory: {directory}")
    return sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() in extensions
    )


@dataclass
class Project:
    """Root object of a MatrixCut editing session."""
    pools: List[Pool] = field(default_factory=lambda: [Pool(name="Pool_1")])
    timeline: List[Segment] = field(default_factory=list)
    settings: GlobalSettings = field(default_factory=GlobalSettings)
    bgm: BgmSettings = field(default_factory=BgmSettings)
    exports: List[ExportTask] = field(default_factory=list)

    # -- Pools -------------------------------------------------------------

    def add_pool(self, name: Optional[str] = None) -> Pool:
        pool = Pool(name=name or f"Pool_{len(self.pools) + 1}")
        self.pools.append(pool)
        return pool

    def get_pool(self, pool_id: str) -> Optional[Pool]:
        for pool in self.pools:
            if pool.uuid == pool_id:
                return pool
        return None

    def find_pool(self, key: str) -> Optional[Pool]:
        """Look a pool up by UUID first, then by name."""
        pool = self.get_pool(key)
        if pool is not None:
            return pool
        for pool in self.pools:
            if pool.name == key:
                return pool
        return None

    def _require_pool(self, pool_id: str) -> Pool:
        pool = self.get_pool(pool_id)
        if pool is None:
            raise KeyError(f"Unknown pool: {pool_id}")
        return pool

    def remove_pool(self, pool_id: str) -> None:
        """Remove a pool and every segment that references it."""
        self.pools = [p for p in self.pools if p.uuid != pool_id]
        self.timeline = [s for s in self.timeline if s.pool_id != pool_id]

    def rename_pool(self, pool_id: str, name: str) -> None:
        self._require_pool(pool_id).name = name

    def add_assets_to_pool(self, pool_id: str, assets: list[Asset]) -> list[Asset]:
        return self._require_pool(pool_id).add_assets(assets)

    def remove_asset_from_pool(self, pool_id: str, asset_id: str) -> None:
        self._require_pool(pool_id).remove_asset(asset_id)

    def clear_pool(self, pool_id: str) -> None:
        self._require_pool(pool_id).clear()

    def update_asset_probe(self, pool_id: str, asset_id: str,
                           thumbnail: bytes, duration: float) -> bool:
        """Record probe results. Returns False if the asset is gone."""
        pool = self.get_pool(pool_id)
        asset = pool.get_asset(asset_id) if pool else None
        if asset is None:
            return False
        asset.thumbnail = thumbnail
        asset.duration = max(0.0, float(duration))
        return True

    def import_pool_directory(self, pool_id: str, directory: str | Path) -> list[Asset]:
        """Import all video files in *directory* into a pool.

        On the first import into an empty pool, the pool is renamed after
        the folder, gets a default segment if the timeline has none for it,
        and a fresh empty pool is appended if it was the last one.

        Returns:
            The assets actually added (candidates for probing).
        """
        pool = self._require_pool(pool_id)
        files = _scan_directory(directory, VIDEO_EXTENSIONS)
        if not files:
            return []
        is_first_import = pool.is_empty
        added = pool.add_assets([Asset.from_path(p) for p in files])

        if is_first_import:
            pool.name = Path(directory).name or pool.name
            if not any(s.pool_id == pool_id for s in self.timeline):
                self.add_segment(pool_id, IMPORTED_SEGMENT_DURATION)
            if self.pools and self.pools[-1].uuid == pool_id:
                self.add_pool()
        return added

    def import_bgm_directory(self, directory: str | Path) -> list[BgmTrack]:
        files = _scan_directory(directory, AUDIO_EXTENSIONS)
        return self.bgm.add_tracks([BgmTrack(name=p.name, path=str(p)) for p in files])

    # -- Timeline ----------------------------------------------------------

    def add_segment(self, pool_id: str, duration: float = DEFAULT_SEGMENT_DURATION) -> Segment:
        segment = Segment(pool_id=pool_id, duration=duration)
        self.timeline.append(segment)
        return segment

    def get_segment(self, segment_id: str) -> Optional[Segment]:
        for segment in self.timeline:
            if segment.uuid == segment_id:
                return segment
        return None

    def update_segment(self, segment_id: str, pool_id: Optional[str] = None,
                       duration: Optional[float] = None) -> None:
        segment = self.get_segment(segment_id)
        if segment is None:
            raise KeyError(f"Unknown segment: {segment_id}")
        if duration is not None:
            segment.set_duration(duration)
        if pool_id is not None:
            segment.pool_id = pool_id

    def remove_segment(self, segment_id: str) -> None:
        self.timeline = [s for s in self.timeline if s.uuid != segment_id]

    def duplicate_segment(self, segment_id: str) -> Optional[Segment]:
        """Insert a copy right after the segment."""
        for i, segment in enumerate(self.timeline):
            if segment.uuid == segment_id:
                duplicate = segment.copy()
                self.timeline.insert(i + 1, duplicate)
                return duplicate
        return None

    def reorder_segments(self, old_index: int, new_index: int) -> None:
        segment = self.timeline.pop(old_index)
        self.timeline.insert(new_index, segment)

    def bulk_update_segments(self, segment_ids: list[str], duration: Optional[float] = None,
                             pool_id: Optional[str] = None) -> None:
        # Validate first so a bad duration leaves every segment untouched
        if duration is not None:
            Segment(duration=duration)
        ids = set(segment_ids)
        for segment in self.timeline:
            if segment.uuid in ids:
                if duration is not None:
                    segment.set_duration(duration)
                if pool_id is not None:
                    segment.pool_id = pool_id

    def bulk_remove_segments(self, segment_ids: list[str]) -> None:
        ids = set(segment_ids)
        self.timeline = [s for s in self.timeline if s.uuid not in ids]

    @property
    def total_duration(self) -> float:
        return total_duration(self.timeline)

    # -- Export tasks ------------------------------------------------------

    def add_export_task(self, task: ExportTask) -> None:
        self.exports.insert(0, task)

    def get_export_task(self, task_id: str) -> Optional[ExportTask]:
        for task in self.exports:
            if task.uuid == task_id:
                return task
        return None

    def discard_export_task(self, task_id: str) -> None:
        task = self.get_export_task(task_id)
        if task is not None:
            task.release()
            self.exports.remove(task)

    def completed_exports(self) -> list[ExportTask]:
        return [t for t in self.exports
                if t.status == ExportStatus.DONE and t.artifact is not None]

    # -- Scheme ------------------------------------------------------------

    def to_scheme(self) -> dict:
        return {
            "version": SCHEME_VERSION,
            "settings": self.settings.to_dict(),
            "timeline": [s.to_dict() for s in self.timeline],
            "pools": [p.to_dict() for p in self.pools],
        }

    def save_scheme(self, path: str | Path) -> Path:
        path = Path(path)
        path.write_text(json.dumps(self.to_scheme(), indent=2, ensure_ascii=False),
                        encoding="utf-8")
        return path

    def apply_scheme(self, data: dict) -> None:
        """Replace settings, timeline and pools from a scheme dict.

        Nothing is modified unless the whole scheme parses.

        Raises:
            SchemeVersionMismatch: version is not exactly 1.
            SchemeParseFailure: any part is missing or malformed.
        """
        if not isinstance(data, dict):
            raise SchemeParseFailure("Scheme must be a JSON object")
        version = data.get("version")
        # bool is an int subclass; True must not pass as version 1
        if isinstance(version, bool) or version != SCHEME_VERSION:
            raise SchemeVersionMismatch(version)
        try:
            settings = GlobalSettings.from_dict(data["settings"])
            timeline = [Segment.from_dict(s) for s in data["timeline"]]
            pools = [Pool.from_dict(p) for p in data["pools"]]
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise SchemeParseFailure(f"Malformed scheme: {e!r}") from e

        self.settings = settings
        self.timeline = timeline
        self.pools = pools

    def load_scheme(self, path: str | Path) -> None:
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SchemeParseFailure(f"Failed to read scheme {path}: {e}") from e
        self.apply_scheme(data)
