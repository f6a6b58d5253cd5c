"""
MatrixCut Data Models.

Public API:

  Pools:
    Asset, Pool

  Timeline:
    Segment, total_duration

  Settings:
    TextStyle, TitlePosition, GlobalSettings, BgmTrack, BgmSettings

  Export:
    ExportStatus, ExportTask, ExportArtifact

  Project:
    Project
"""

from models.pool import Asset, Pool
from models.timeline import Segment, total_duration
from models.settings import (
    TextStyle,
    TitlePosition,
    GlobalSettings,
    BgmTrack,
    BgmSettings,
)
from models.export_task import ExportStatus, ExportTask, ExportArtifact
from models.project import Project

__all__ = [
    # Pools
    "Asset",
    "Pool",
    # Timeline
    "Segment",
    "total_duration",
    # Settings
    "TextStyle",
    "TitlePosition",
    "GlobalSettings",
    "BgmTrack",
    "BgmSettings",
    # Export
    "ExportStatus",
    "ExportTask",
    "ExportArtifact",
    # Project
    "Project",
]
