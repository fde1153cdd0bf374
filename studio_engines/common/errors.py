"""Typed errors raised by the composition engines.

Every error carries a machine-readable ``kind`` plus the offending element id,
field and value where known, so callers can report it verbatim.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional


class EngineError(Exception):
    """Base class for all engine failures."""

    kind: str = "engine_error"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        element_id: Optional[str] = None,
        field: Optional[str] = None,
        value: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.element_id = element_id
        self.field = field
        self.value = value
        self.details = details or {}

    def to_details(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.details)
        if self.element_id is not None:
            out["element_id"] = self.element_id
        if self.field is not None:
            out["field"] = self.field
        if self.value is not None:
            out["value"] = self.value
        return out

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class NotFound(EngineError):
    kind = "not_found"
    http_status = 404


class InvalidSelector(EngineError):
    kind = "invalid_selector"


class InvalidRange(EngineError):
    kind = "invalid_range"


class InvalidProperty(EngineError):
    kind = "invalid_property"


class AssetNotReady(EngineError):
    kind = "asset_not_ready"
    http_status = 409


class VersionConflict(EngineError):
    kind = "version_conflict"
    http_status = 409

    def __init__(self, composition_id: str, expected_version: int, current_version: int) -> None:
        super().__init__(
            f"Version mismatch on {composition_id}: expected {expected_version}, current {current_version}",
            details={
                "composition_id": composition_id,
                "expected_version": expected_version,
                "current_version": current_version,
            },
        )
        self.composition_id = composition_id
        self.expected_version = expected_version
        self.current_version = current_version


class AmbiguousSelector(EngineError):
    """Selector matched several elements; the caller must pick one.

    Not a failure: ``options`` is the choice prompt shown to the user.
    """

    kind = "ambiguous_selector"
    http_status = 409

    def __init__(self, message: str, options: List[Any]) -> None:
        super().__init__(message, details={"option_count": len(options)})
        self.options = options
