"""Runtime configuration helpers for composition engines."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_MAX_SNAPSHOTS = 50
DEFAULT_FPS = 30
DEFAULT_CANVAS_WIDTH = 1920
DEFAULT_CANVAS_HEIGHT = 1080
DEFAULT_COMPOSITION_FRAMES = 300  # 10 seconds at 30fps
DEFAULT_STILL_DURATION_FRAMES = 90


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def _get_positive_int(name: str, default: int) -> int:
    raw = _get_env(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}; using {default}")
        return default
    if value <= 0:
        logger.warning(f"Ignoring non-positive {name}={value}; using {default}")
        return default
    return value


def get_env() -> Optional[str]:
    return _get_env("ENV") or _get_env("APP_ENV")


def get_history_max_snapshots() -> int:
    return _get_positive_int("HISTORY_MAX_SNAPSHOTS", DEFAULT_HISTORY_MAX_SNAPSHOTS)


def get_default_fps() -> int:
    return _get_positive_int("DEFAULT_FPS", DEFAULT_FPS)


def get_default_canvas_width() -> int:
    return _get_positive_int("DEFAULT_CANVAS_WIDTH", DEFAULT_CANVAS_WIDTH)


def get_default_canvas_height() -> int:
    return _get_positive_int("DEFAULT_CANVAS_HEIGHT", DEFAULT_CANVAS_HEIGHT)


def get_default_composition_frames() -> int:
    return _get_positive_int("DEFAULT_COMPOSITION_FRAMES", DEFAULT_COMPOSITION_FRAMES)


def get_default_still_duration_frames() -> int:
    return _get_positive_int("DEFAULT_STILL_DURATION_FRAMES", DEFAULT_STILL_DURATION_FRAMES)


def get_element_id_prefix() -> str:
    return _get_env("ELEMENT_ID_PREFIX") or "el"


def config_snapshot() -> Dict[str, Any]:
    """Non-secret view of the effective configuration, for diagnostics."""
    return {
        "env": get_env(),
        "history_max_snapshots": get_history_max_snapshots(),
        "default_fps": get_default_fps(),
        "default_canvas_width": get_default_canvas_width(),
        "default_canvas_height": get_default_canvas_height(),
        "default_composition_frames": get_default_composition_frames(),
        "default_still_duration_frames": get_default_still_duration_frames(),
        "element_id_prefix": get_element_id_prefix(),
    }
