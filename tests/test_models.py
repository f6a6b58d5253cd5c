"""
Unit tests for the MatrixCut data model layer (models package).

Tests cover:
  - Pools: asset de-duplication, removal, clearing
  - Timeline: segment duration rules, duplicate/reorder/bulk edits
  - Settings: clamping of volumes and shadow opacity
  - Export tasks: monotonic progress, terminal states, artifacts
  - Project: pool removal cascade, folder import linkage
"""
import os
import sys
import tempfile
import unittest
from pathlib import Path

# Ensure src/ is on the path so that absolute imports within models work.
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.pool import Asset, Pool
from models.timeline import Segment, total_duration
from models.settings import BgmSettings, BgmTrack, GlobalSettings, TextStyle
from models.export_task import ExportArtifact, ExportStatus, ExportTask, format_created_at
from models.project import Project


# ---- Pools ---------------------------------------------------------------

class TestPool(unittest.TestCase):
    def test_add_assets_skips_duplicate_names(self):
        pool = Pool(name="Hook")
        first = pool.add_assets([Asset.from_path("/clips/a.mp4"), Asset.from_path("/clips/b.mp4")])
        second = pool.add_assets([Asset.from_path("/other/a.mp4"), Asset.from_path("/clips/c.mp4")])
        self.assertEqual(len(first), 2)
        self.assertEqual([a.name for a in second], ["c.mp4"])
        self.assertEqual([a.name for a in pool.assets], ["a.mp4", "b.mp4", "c.mp4"])

    def test_duplicate_names_within_one_batch(self):
        pool = Pool()
        added = pool.add_assets([Asset.from_path("/x/a.mp4"), Asset.from_path("/y/a.mp4")])
        self.assertEqual(len(added), 1)

    def test_remove_and_clear(self):
        pool = Pool()
        a, b = Asset.from_path("/a.mp4"), Asset.from_path("/b.mp4")
        pool.add_assets([a, b])
        self.assertIs(pool.remove_asset(a.uuid), a)
        self.assertIsNone(pool.remove_asset("missing"))
        pool.clear()
        self.assertTrue(pool.is_empty)

    def test_asset_defaults(self):
        asset = Asset.from_path("/clips/take1.mov")
        self.assertEqual(asset.name, "take1.mov")
        self.assertIsNone(asset.thumbnail)
        self.assertEqual(asset.duration, 0.0)
        self.assertFalse(asset.is_probed)

    def test_negative_duration_clamped(self):
        self.assertEqual(Asset(name="x", duration=-3).duration, 0.0)


# ---- Timeline ------------------------------------------------------------

class TestSegment(unittest.TestCase):
    def test_duration_must_be_positive(self):
        with self.assertRaises(ValueError):
            Segment(pool_id="p", duration=0)
        with self.assertRaises(ValueError):
            Segment(pool_id="p", duration=-1.5)

    def test_set_duration_validates(self):
        seg = Segment(pool_id="p", duration=2.0)
        seg.set_duration(4.5)
        self.assertEqual(seg.duration, 4.5)
        with self.assertRaises(ValueError):
            seg.set_duration(0)
        self.assertEqual(seg.duration, 4.5)

    def test_copy_has_new_identity(self):
        seg = Segment(pool_id="p", duration=2.0)
        dup = seg.copy()
        self.assertNotEqual(dup.uuid, seg.uuid)
        self.assertEqual((dup.pool_id, dup.duration), ("p", 2.0))

    def test_total_duration(self):
        segs = [Segment(pool_id="a", duration=2.5), Segment(pool_id="b", duration=3.0)]
        self.assertEqual(total_duration(segs), 5.5)


class TestTimelineEditing(unittest.TestCase):
    def setUp(self):
        self.project = Project()
        self.pool = self.project.pools[0]
        self.s1 = self.project.add_segment(self.pool.uuid, 1.0)
        self.s2 = self.project.add_segment(self.pool.uuid, 2.0)
        self.s3 = self.project.add_segment(self.pool.uuid, 3.0)

    def test_default_segment_duration(self):
        seg = self.project.add_segment(self.pool.uuid)
        self.assertEqual(seg.duration, 2.5)

    def test_duplicate_inserts_after_target(self):
        dup = self.project.duplicate_segment(self.s1.uuid)
        ids = [s.uuid for s in self.project.timeline]
        self.assertEqual(ids, [self.s1.uuid, dup.uuid, self.s2.uuid, self.s3.uuid])
        self.assertIsNone(self.project.duplicate_segment("missing"))

    def test_reorder(self):
        self.project.reorder_segments(0, 2)
        self.assertEqual([s.duration for s in self.project.timeline], [2.0, 3.0, 1.0])

    def test_update_segment(self):
        other = self.project.add_pool("B")
        self.project.update_segment(self.s2.uuid, pool_id=other.uuid, duration=7)
        self.assertEqual(self.s2.pool_id, other.uuid)
        self.assertEqual(self.s2.duration, 7.0)
        with self.assertRaises(KeyError):
            self.project.update_segment("missing", duration=1)

    def test_bulk_update_is_all_or_nothing(self):
        with self.assertRaises(ValueError):
            self.project.bulk_update_segments([self.s1.uuid, self.s2.uuid], duration=0)
        self.assertEqual([s.duration for s in self.project.timeline], [1.0, 2.0, 3.0])
        self.project.bulk_update_segments([self.s1.uuid, self.s3.uuid], duration=4)
        self.assertEqual([s.duration for s in self.project.timeline], [4.0, 2.0, 4.0])

    def test_bulk_remove(self):
        self.project.bulk_remove_segments([self.s1.uuid, self.s3.uuid])
        self.assertEqual([s.uuid for s in self.project.timeline], [self.s2.uuid])

    def test_total_duration(self):
        self.assertEqual(self.project.total_duration, 6.0)


# ---- Settings ------------------------------------------------------------

class TestSettings(unittest.TestCase):
    def test_bgm_volumes_clamped(self):
        bgm = BgmSettings(bgm_volume=1.7, video_volume=-0.2)
        self.assertEqual((bgm.bgm_volume, bgm.video_volume), (1.0, 0.0))
        bgm.set_volumes(bgm_volume=0.25)
        self.assertEqual((bgm.bgm_volume, bgm.video_volume), (0.25, 0.0))

    def test_bgm_tracks_unique_by_name(self):
        bgm = BgmSettings()
        bgm.add_tracks([BgmTrack(path="/m/a.mp3"), BgmTrack(path="/n/a.mp3")])
        self.assertEqual(len(bgm.tracks), 1)
        self.assertTrue(bgm.enabled)
        bgm.remove_track(bgm.tracks[0].uuid)
        self.assertFalse(bgm.enabled)

    def test_shadow_opacity_clamped(self):
        self.assertEqual(TextStyle(shadow_opacity=2).shadow_opacity, 1.0)

    def test_default_titles(self):
        settings = GlobalSettings()
        self.assertEqual(settings.main_title_pos.y, -220)
        self.assertEqual(settings.sub_title_pos.y, 220)
        self.assertEqual(settings.main_title_style.font_size, 32)
        self.assertEqual(settings.sub_title_style.color, "#fb923c")

    def test_settings_round_trip(self):
        settings = GlobalSettings(main_title="Hi", sub_title="")
        settings.sub_title_style.shadow_angle = 30
        restored = GlobalSettings.from_dict(settings.to_dict())
        self.assertEqual(restored, settings)
        self.assertIn("mainTitlePos", settings.to_dict())


# ---- Export tasks --------------------------------------------------------

class TestExportTask(unittest.TestCase):
    def test_progress_is_monotonic_and_capped(self):
        task = ExportTask()
        self.assertTrue(task.update_progress(0.4))
        self.assertFalse(task.update_progress(0.2))
        self.assertEqual(task.progress, 0.4)
        task.update_progress(1.0)
        self.assertEqual(task.progress, 0.99)

    def test_done_sets_full_progress(self):
        task = ExportTask()
        task.mark_done(ExportArtifact(b"data"))
        self.assertEqual(task.status, ExportStatus.DONE)
        self.assertEqual(task.progress, 1.0)

    def test_terminal_states_are_final(self):
        task = ExportTask()
        task.mark_error("boom")
        with self.assertRaises(RuntimeError):
            task.update_progress(0.5)
        with self.assertRaises(RuntimeError):
            task.mark_done(ExportArtifact(b""))
        self.assertEqual(task.status, ExportStatus.ERROR)
        self.assertEqual(task.error_message, "boom")

    def test_created_at_format(self):
        from datetime import datetime
        self.assertEqual(format_created_at(datetime(2026, 2, 22, 23, 8, 9)), "20260222_230809")
        self.assertRegex(ExportTask().created_at, r"^\d{8}_\d{6}$")

    def test_artifact_save_and_release(self):
        artifact = ExportArtifact(b"mp4bytes")
        with tempfile.TemporaryDirectory() as tmp:
            path = artifact.save(Path(tmp) / "sub" / "out.mp4")
            self.assertEqual(path.read_bytes(), b"mp4bytes")
        artifact.release()
        self.assertTrue(artifact.released)
        self.assertEqual(artifact.size, 0)
        with self.assertRaises(RuntimeError):
            artifact.data


# ---- Project -------------------------------------------------------------

class TestProject(unittest.TestCase):
    def test_starts_with_one_empty_pool(self):
        project = Project()
        self.assertEqual(len(project.pools), 1)
        self.assertEqual(project.pools[0].name, "Pool_1")
        self.assertEqual(project.add_pool().name, "Pool_2")

    def test_remove_pool_removes_its_segments(self):
        project = Project()
        a = project.pools[0]
        b = project.add_pool("B")
        project.add_segment(a.uuid)
        project.add_segment(b.uuid)
        project.add_segment(a.uuid)
        project.remove_pool(a.uuid)
        self.assertEqual([p.uuid for p in project.pools], [b.uuid])
        self.assertEqual([s.pool_id for s in project.timeline], [b.uuid])

    def test_update_asset_probe(self):
        project = Project()
        pool = project.pools[0]
        asset = Asset.from_path("/a.mp4")
        project.add_assets_to_pool(pool.uuid, [asset])
        self.assertTrue(project.update_asset_probe(pool.uuid, asset.uuid, b"jpg", 4.2))
        self.assertEqual(asset.thumbnail, b"jpg")
        self.assertEqual(asset.duration, 4.2)
        self.assertFalse(project.update_asset_probe(pool.uuid, "gone", b"jpg", 1.0))

    def test_export_tasks_most_recent_first(self):
        project = Project()
        first, second = ExportTask(), ExportTask()
        project.add_export_task(first)
        project.add_export_task(second)
        self.assertEqual(project.exports, [second, first])

    def test_discard_export_task_releases_artifact(self):
        project = Project()
        task = ExportTask()
        task.mark_done(ExportArtifact(b"x"))
        project.add_export_task(task)
        self.assertEqual(project.completed_exports(), [task])
        project.discard_export_task(task.uuid)
        self.assertEqual(project.exports, [])
        self.assertTrue(task.artifact.released)


class TestFolderImport(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.hook_dir = self.root / "Hooks"
        self.hook_dir.mkdir()
        for name in ("a.mp4", "b.MOV", "notes.txt"):
            (self.hook_dir / name).write_bytes(b"")

    def tearDown(self):
        self._tmp.cleanup()

    def test_first_import_links_pool(self):
        project = Project()
        pool = project.pools[0]
        added = project.import_pool_directory(pool.uuid, self.hook_dir)

        self.assertEqual(sorted(a.name for a in added), ["a.mp4", "b.MOV"])
        self.assertEqual(pool.name, "Hooks")
        self.assertEqual(len(project.timeline), 1)
        self.assertEqual(project.timeline[0].pool_id, pool.uuid)
        self.assertEqual(project.timeline[0].duration, 3.0)
        # A fresh empty pool is appended after the last one
        self.assertEqual(len(project.pools), 2)
        self.assertTrue(project.pools[1].is_empty)

    def test_second_import_only_adds_new_files(self):
        project = Project()
        pool = project.pools[0]
        project.import_pool_directory(pool.uuid, self.hook_dir)
        (self.hook_dir / "c.mp4").write_bytes(b"")
        added = project.import_pool_directory(pool.uuid, self.hook_dir)
        self.assertEqual([a.name for a in added], ["c.mp4"])
        self.assertEqual(len(project.timeline), 1)
        self.assertEqual(len(project.pools), 2)

    def test_import_bgm_directory(self):
        music = self.root / "music"
        music.mkdir()
        for name in ("x.mp3", "y.flac", "cover.jpg"):
            (music / name).write_bytes(b"")
        project = Project()
        tracks = project.import_bgm_directory(music)
        self.assertEqual(sorted(t.name for t in tracks), ["x.mp3", "y.flac"])


if __name__ == "__main__":
    unittest.main()
