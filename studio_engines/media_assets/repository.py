from __future__ import annotations

from typing import Dict, Optional, Protocol

from studio_engines.media_assets.models import Asset


class AssetRepository(Protocol):
    def get_asset(self, asset_id: str) -> Optional[Asset]:
        ...


class InMemoryAssetRepository:
    def __init__(self) -> None:
        self.assets: Dict[str, Asset] = {}

    def put_asset(self, asset: Asset) -> Asset:
        self.assets[asset.id] = asset
        return asset

    def get_asset(self, asset_id: str) -> Optional[Asset]:
        return self.assets.get(asset_id)