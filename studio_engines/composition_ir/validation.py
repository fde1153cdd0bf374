"""IR invariant checks.

``validate_ir`` never raises; it returns every violation found so callers can
decide which typed error to surface.
"""
from __future__ import annotations

from typing import Dict, List, Set, Tuple

from studio_engines.composition_ir.models import (
    AudioProperties,
    CompositionIR,
    ElementBase,
    ImageProperties,
    IRViolation,
    ShapeProperties,
    TextProperties,
    VideoProperties,
    animatable_properties,
)

# Documented value domains, inclusive.
PROPERTY_DOMAINS: Dict[str, Tuple[float, float]] = {
    "volume": (0.0, 1.0),
    "opacity": (0.0, 1.0),
    "playback_rate": (0.25, 4.0),
}


def validate_ir(ir: CompositionIR) -> List[IRViolation]:
    violations: List[IRViolation] = []
    violations.extend(_validate_settings(ir))

    seen: Set[str] = set()
    for el in ir.elements:
        if not el.id:
            violations.append(IRViolation(category="identity", message="Element missing ID", field="id"))
        elif el.id in seen:
            violations.append(
                IRViolation(category="identity", message=f"Duplicate element id {el.id}", element_id=el.id, field="id", value=el.id)
            )
        seen.add(el.id)
        violations.extend(_validate_timing(el))
        violations.extend(_validate_properties(el))
        violations.extend(_validate_animations(el))
    return violations


def is_valid(ir: CompositionIR) -> bool:
    return not validate_ir(ir)


def _validate_settings(ir: CompositionIR) -> List[IRViolation]:
    out = []
    s = ir.settings
    for name in ("fps", "width", "height", "duration_in_frames"):
        value = getattr(s, name)
        if value <= 0:
            out.append(IRViolation(category="settings", message=f"{name} must be positive", field=name, value=value))
    return out


def _validate_timing(el: ElementBase) -> List[IRViolation]:
    out = []
    if el.from_frame < 0:
        out.append(
            IRViolation(
                category="range",
                message=f"Element {el.id}: 'from' cannot be negative",
                element_id=el.id,
                field="from_frame",
                value=el.from_frame,
            )
        )
    if el.duration_in_frames <= 0:
        out.append(
            IRViolation(
                category="range",
                message=f"Element {el.id}: duration must be positive",
                element_id=el.id,
                field="duration_in_frames",
                value=el.duration_in_frames,
            )
        )
    return out


def _validate_properties(el: ElementBase) -> List[IRViolation]:
    props = el.properties  # type: ignore[attr-defined]
    if isinstance(props, VideoProperties):
        checked = ["volume", "playback_rate", "opacity"]
    elif isinstance(props, AudioProperties):
        checked = ["volume", "playback_rate"]
    elif isinstance(props, (ImageProperties, TextProperties, ShapeProperties)):
        checked = ["opacity"]
    else:
        return [
            IRViolation(
                category="property",
                message=f"Element {el.id}: unsupported properties for type {el.type}",  # type: ignore[attr-defined]
                element_id=el.id,
                field="properties",
            )
        ]

    out = _check_domains(el, props, checked)
    if isinstance(props, (VideoProperties, AudioProperties)) and props.start_from < 0:
        out.append(
            IRViolation(
                category="property",
                message=f"Element {el.id}: start_from cannot be negative",
                element_id=el.id,
                field="properties.start_from",
                value=props.start_from,
            )
        )
    return out


def _check_domains(el: ElementBase, props, names: List[str]) -> List[IRViolation]:
    out = []
    for name in names:
        value = getattr(props, name)
        low, high = PROPERTY_DOMAINS[name]
        if not (low <= value <= high):
            out.append(
                IRViolation(
                    category="property",
                    message=f"Element {el.id}: {name} must be between {low:g} and {high:g}",
                    element_id=el.id,
                    field=f"properties.{name}",
                    value=value,
                )
            )
    return out


def _validate_animations(el: ElementBase) -> List[IRViolation]:
    out = []
    seen_props: Set[str] = set()
    allowed = animatable_properties(el.type)  # type: ignore[attr-defined]
    for anim in el.animations:
        field = f"animations.{anim.property}"
        if anim.property not in allowed:
            out.append(
                IRViolation(
                    category="property",
                    message=f"Element {el.id}: property {anim.property!r} is not animatable on {el.type}",  # type: ignore[attr-defined]
                    element_id=el.id,
                    field=field,
                    value=anim.property,
                )
            )
        if anim.property in seen_props:
            out.append(
                IRViolation(
                    category="animation",
                    message=f"Element {el.id}: more than one animation for {anim.property}",
                    element_id=el.id,
                    field=field,
                )
            )
        seen_props.add(anim.property)

        if len(anim.keyframes) < 2:
            out.append(
                IRViolation(
                    category="animation",
                    message=f"Element {el.id}: animation on {anim.property} needs at least 2 keyframes",
                    element_id=el.id,
                    field=field,
                    value=len(anim.keyframes),
                )
            )
            continue
        frames = [kf.frame for kf in anim.keyframes]
        if frames[0] < 0:
            out.append(
                IRViolation(
                    category="animation",
                    message=f"Element {el.id}: keyframe frames cannot be negative",
                    element_id=el.id,
                    field=field,
                    value=frames[0],
                )
            )
        if any(b <= a for a, b in zip(frames, frames[1:])):
            out.append(
                IRViolation(
                    category="animation",
                    message=f"Element {el.id}: keyframes on {anim.property} must be strictly increasing",
                    element_id=el.id,
                    field=field,
                    value=frames,
                )
            )
    return out
