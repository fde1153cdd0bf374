from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

AssetKind = Literal["video", "audio", "image"]
AssetStatus = Literal["uploading", "processing", "ready", "error"]


class Asset(BaseModel):
    """Asset-store view of an uploaded media file."""
    id: str
    project_id: Optional[str] = None
    kind: AssetKind
    status: AssetStatus = "uploading"
    filename: str = ""
    playback_url: Optional[str] = None
    duration_in_frames: Optional[int] = None
    duration_seconds: Optional[float] = None
    default_properties: Dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_ready(self) -> bool:
        return self.status == "ready"
