"""Frame and timecode helpers for the composition timeline."""
from __future__ import annotations

import math
from typing import Iterable

from studio_engines.composition_ir.models import CompositionIR, ElementBase


def seconds_to_frames(seconds: float, fps: int) -> int:
    """Whole frames covered by ``seconds`` at ``fps`` (floored)."""
    return int(math.floor(seconds * fps))


def frames_to_timecode(frames: int, fps: int) -> str:
    """Format a frame count as ``HH:MM:SS:FF``."""
    if fps <= 0:
        raise ValueError("fps must be positive")
    total_seconds = frames // fps
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    remaining = frames % fps
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}:{remaining:02d}"


def timecode_to_frames(timecode: str, fps: int) -> int:
    parts = timecode.split(":")
    if len(parts) != 4:
        raise ValueError("Invalid timecode format. Expected HH:MM:SS:FF")
    hours, minutes, seconds, frames = (int(p) for p in parts)
    return (hours * 3600 + minutes * 60 + seconds) * fps + frames


def format_duration(frames: int, fps: int) -> str:
    """Short human-readable duration: ``500ms``, ``1.5s`` or ``2:05``."""
    seconds = frames / fps
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds // 60)
    return f"{minutes}:{int(seconds % 60):02d}"


def element_end_frame(element: ElementBase) -> int:
    return element.from_frame + element.duration_in_frames


def elements_overlap(a: ElementBase, b: ElementBase) -> bool:
    return a.from_frame < element_end_frame(b) and b.from_frame < element_end_frame(a)


def total_duration(ir: CompositionIR) -> int:
    """Last frame covered by any element (0 for an empty composition)."""
    return max_end_frame(ir.elements)


def max_end_frame(elements: Iterable[ElementBase]) -> int:
    return max((element_end_frame(el) for el in elements), default=0)
