"""Canonical error envelope for composition engine responses.

Standardized structure:
{
  "error": {
    "code": "composition.not_found",
    "message": "string",
    "http_status": 404,
    "resource_kind": "composition | element | asset | selector | null",
    "details": {}
  }
}
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException
from pydantic import BaseModel, Field

from studio_engines.common.errors import EngineError


class ErrorDetail(BaseModel):
    """Canonical error detail structure."""
    code: str
    message: str
    http_status: int
    resource_kind: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorEnvelope(BaseModel):
    """Top-level error envelope returned by composition endpoints."""
    error: ErrorDetail


def build_error_envelope(
    code: str,
    message: str,
    status_code: int = 400,
    resource_kind: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> ErrorEnvelope:
    """Construct an ErrorEnvelope (without raising)."""
    error_detail = ErrorDetail(
        code=code,
        message=message,
        http_status=status_code,
        resource_kind=resource_kind,
        details=details or {},
    )
    return ErrorEnvelope(error=error_detail)


def error_response(
    code: str,
    message: str,
    status_code: int = 400,
    resource_kind: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> HTTPException:
    """Construct and raise a standardized error response.

    Args:
        code: Machine-readable error code (e.g., "composition.invalid_range")
        message: Human-readable error message
        status_code: HTTP status code (default 400)
        resource_kind: The resource type (composition, element, asset...)
        details: Additional context dict

    Returns:
        HTTPException with canonical error envelope body
    """
    envelope = build_error_envelope(
        code=code,
        message=message,
        status_code=status_code,
        resource_kind=resource_kind,
        details=details,
    )
    raise HTTPException(status_code=status_code, detail=envelope.model_dump())


def engine_error_response(exc: EngineError, resource_kind: Optional[str] = "composition") -> HTTPException:
    """Raise the envelope for a typed engine error, keeping kind and offending field/value."""
    return error_response(
        code=f"composition.{exc.kind}",
        message=exc.message,
        status_code=exc.http_status,
        resource_kind=resource_kind,
        details=exc.to_details(),
    )
