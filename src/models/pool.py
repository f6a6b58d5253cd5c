"""
Pools - Named collections of interchangeable video assets.

An export draws one asset at random from the pool each timeline segment
points at, so assets inside a pool are treated as equivalent takes.
Assets are identified by UUID; within a pool they are also unique by file
name (re-importing the same folder is a no-op).
"""
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List


@dataclass
class Asset:
    """One imported video file.

    Attributes:
        uuid: Unique identifier.
        name: Display name (the file name).
        path: Location of the source bytes.
        thumbnail: JPEG bytes of a representative frame, None until probed.
        duration: Probed duration in seconds, 0 until probed.
    """
    name: str = ""
    path: str = ""
    uuid: str = field(default_factory=lambda: str(uuid.uuid4()))
    thumbnail: Optional[bytes] = None
    duration: float = 0.0

    def __post_init__(self):
        if not self.name and self.path:
            self.name = Path(self.path).name
        self.duration = max(0.0, float(self.duration or 0.0))

    @property
    def is_probed(self) -> bool:
        return self.thumbnail is not None

    @classmethod
    def from_path(cls, path: str | Path) -> "Asset":
        path = Path(path)
        return cls(name=path.name, path=str(path))


@dataclass
class Pool:
    """A named set of assets a segment can draw from."""
    name: str = ""
    uuid: str = field(default_factory=lambda: str(uuid.uuid4()))
    assets: List[Asset] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return len(self.assets) == 0

    def add_assets(self, assets: list[Asset]) -> list[Asset]:
        """Add assets, skipping names already present. Returns those added."""
        existing_names = {a.name for a in self.assets}
        added = []
        for asset in assets:
            if asset.name in existing_names:
                continue
            existing_names.add(asset.name)
            self.assets.append(asset)
            added.append(asset)
        return added

    def remove_asset(self, asset_uuid: str) -> Optional[Asset]:
        for i, asset in enumerate(self.assets):
            if asset.uuid == asset_uuid:
                return self.assets.pop(i)
        return None

    def get_asset(self, asset_uuid: str) -> Optional[Asset]:
        for asset in self.assets:
            if asset.uuid == asset_uuid:
                return asset
        return None

    def clear(self) -> None:
        self.assets.clear()

    def to_dict(self) -> dict:
        # Assets are never serialized: a scheme keeps structure only
        return {"id": self.uuid, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict) -> "Pool":
        return cls(
            uuid=str(data["id"]),
            name=str(data.get("name", "")),
        )
