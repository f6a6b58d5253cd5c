"""
Asset Prober - Background thumbnail/duration extraction for imported clips.

Probes run on a thread pool; the shared admission gate caps how many
decoders run at once. Results are handed back to the Qt main thread before
the project model is touched.
"""
from concurrent.futures import ThreadPoolExecutor
import threading
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal, QSize, Qt
from PyQt6.QtGui import QImage

from core.admission_gate import AdmissionGate, get_probe_gate
from core.asset_probe import probe_asset
from core.errors import ProbeFailure
from models.pool import Asset
from models.project import Project


# Thumbnail size for the pool list
THUMBNAIL_SIZE_POOL = QSize(96, 170)


def thumbnail_to_qimage(data: Optional[bytes], size: QSize = THUMBNAIL_SIZE_POOL) -> QImage:
    """Decode probed JPEG bytes for display; a null QImage if unavailable"""
    if not data:
        return QImage()
    image = QImage.fromData(data)
    if image.isNull():
        return image
    return image.scaled(
        size,
        Qt.AspectRatioMode.KeepAspectRatio,
        Qt.TransformationMode.SmoothTransformation
    )


class AssetProber(QObject):
    """
    Queue of probe jobs for one project.

    A failed probe leaves the asset without thumbnail and with duration 0;
    it never affects other probes or exports.
    """

    # pool_id, asset_id
    asset_probed = pyqtSignal(str, str)
    # pool_id, asset_id, message
    probe_failed = pyqtSignal(str, str, str)

    # args: pool_id, asset_id, thumbnail bytes, duration
    _probe_done = pyqtSignal(str, str, object, float)

    def __init__(self, project: Project, gate: Optional[AdmissionGate] = None,
                 max_workers: int = 8):
        super().__init__()
        self.project = project
        self._gate = gate or get_probe_gate()
        self._executor = ThreadPoolExecutor(max_workers=max_workers)
        self._lock = threading.Lock()
        self._pending: set[str] = set()
        self._is_running = True

        # Connect internal signal to main thread handler
        self._probe_done.connect(self._on_probe_done)

    def probe_assets(self, pool_id: str, assets: list[Asset]):
        """Queue probes for assets not already pending"""
        if not self._is_running:
            return
        for asset in assets:
            with self._lock:
                if asset.uuid in self._pending:
                    continue
                self._pending.add(asset.uuid)
            self._executor.submit(self._probe, pool_id, asset.uuid, asset.path)

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def _probe(self, pool_id: str, asset_id: str, path: str):
        """Runs on a worker thread"""
        if not self._is_running:
            return
        try:
            result = probe_asset(path, gate=self._gate)
        except ProbeFailure as e:
            print(f"Thumbnail extraction failed for {path}: {e}")
            with self._lock:
                self._pending.discard(asset_id)
            if self._is_running:
                self.probe_failed.emit(pool_id, asset_id, str(e))
            return

        if not self._is_running:
            return
        try:
            self._probe_done.emit(pool_id, asset_id, result.thumbnail, result.duration)
        except RuntimeError:
            # QObject already deleted during shutdown
            pass

    def _on_probe_done(self, pool_id: str, asset_id: str, thumbnail: bytes, duration: float):
        """Apply results on the main thread"""
        with self._lock:
            self._pending.discard(asset_id)
        if not self._is_running:
            return
        if self.project.update_asset_probe(pool_id, asset_id, thumbnail, duration):
            self.asset_probed.emit(pool_id, asset_id)

    def cleanup(self):
        """Stop accepting work and wait for running probes"""
        self._is_running = False
        self._executor.shutdown(wait=True, cancel_futures=True)
        with self._lock:
            self._pending.clear()
