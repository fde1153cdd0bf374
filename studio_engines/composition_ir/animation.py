"""Keyframe sampling for element animations."""
from __future__ import annotations

from typing import Optional

from studio_engines.composition_ir.models import Animation, ElementBase


def apply_easing(t: float, easing: Optional[str] = None) -> float:
    if not easing or easing == "linear":
        return t
    if easing == "ease-in":
        return t * t
    if easing == "ease-out":
        return t * (2 - t)
    if easing == "ease-in-out":
        return 2 * t * t if t < 0.5 else -1 + (4 - 2 * t) * t
    raise ValueError(f"Unknown easing: {easing}")


def sample_animation(animation: Animation, frame: int) -> float:
    """
    Value of the animated property at ``frame`` (relative to the element start).

    Frames before the first keyframe hold the first value, frames after the
    last hold the last value. Easing applies within each keyframe segment.
    """
    keyframes = animation.keyframes
    if not keyframes:
        raise ValueError(f"Animation on {animation.property} has no keyframes")
    if frame <= keyframes[0].frame:
        return keyframes[0].value
    if frame >= keyframes[-1].frame:
        return keyframes[-1].value

    for start, end in zip(keyframes, keyframes[1:]):
        if start.frame <= frame <= end.frame:
            span = end.frame - start.frame
            t = (frame - start.frame) / span if span else 1.0
            eased = apply_easing(t, animation.easing)
            return start.value + (end.value - start.value) * eased
    return keyframes[-1].value


def sample_element_property(element: ElementBase, prop: str, timeline_frame: int) -> Optional[float]:
    """Animated value of ``prop`` at an absolute timeline frame, or None if not animated."""
    anim = element.animation_for(prop)
    if anim is None:
        return None
    return sample_animation(anim, timeline_frame - element.from_frame)
