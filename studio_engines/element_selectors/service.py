"""
Selector Resolution.

Maps a selector onto concrete elements of an IR. Resolution is a pure
function of (selector, ir): it never guesses between equally valid matches,
it reports them as ambiguous with one option per candidate instead.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from studio_engines.common.errors import AmbiguousSelector, InvalidSelector, NotFound
from studio_engines.composition_ir.models import CompositionIR, ElementBase
from studio_engines.composition_ir.timecode import format_duration
from studio_engines.element_selectors.models import (
    ByIdSelector,
    ByIndexSelector,
    ByLabelSelector,
    ByTypeSelector,
    DisambiguationOption,
    Selector,
    SelectorResult,
)

logger = logging.getLogger(__name__)

_selector_adapter: TypeAdapter = TypeAdapter(Selector)

_KIND_ALIASES = {
    "byid": "by_id",
    "bylabel": "by_label",
    "byindex": "by_index",
    "bytype": "by_type",
}

# Element-level keys a ``where`` predicate may test; anything else is read from properties.
_ELEMENT_FIELDS = {"id", "type", "label", "from_frame", "duration_in_frames"}


def parse_selector(payload: Any) -> Selector:
    """Build a selector from a planner payload, raising InvalidSelector on bad input."""
    if isinstance(payload, (ByIdSelector, ByLabelSelector, ByIndexSelector, ByTypeSelector)):
        return payload
    if not isinstance(payload, dict):
        raise InvalidSelector(f"Selector must be an object, got {type(payload).__name__}", value=payload)

    data = dict(payload)
    raw_kind = str(data.get("kind") or "")
    normalized = raw_kind.replace("-", "").replace("_", "").lower()
    if normalized not in _KIND_ALIASES:
        raise InvalidSelector(f"Unknown selector kind: {raw_kind or '<missing>'}", field="kind", value=raw_kind or None)
    data["kind"] = _KIND_ALIASES[normalized]
    if "from" in (data.get("where") or {}):
        data["where"] = {("from_frame" if k == "from" else k): v for k, v in data["where"].items()}

    try:
        return _selector_adapter.validate_python(data)
    except ValidationError as exc:
        missing = [".".join(str(p) for p in err["loc"][1:]) for err in exc.errors()]
        raise InvalidSelector(
            f"Selector {data['kind']} is missing or has invalid fields: {', '.join(missing)}",
            field=missing[0] if missing else None,
        ) from exc


def resolve_selector(selector: Selector, ir: CompositionIR) -> SelectorResult:
    """
    Resolve ``selector`` against ``ir``.

    Raises:
        NotFound: nothing matches (including an empty composition).
        InvalidSelector: a required field is missing or out of its domain.
    """
    resolver = _RESOLVERS.get(getattr(selector, "kind", None))
    if resolver is None:
        raise InvalidSelector(f"Unknown selector: {selector!r}")
    if not ir.elements:
        raise NotFound("Composition has no elements")
    result = resolver(selector, ir)
    logger.debug(f"Resolved {selector.kind} to {result.element_ids} (ambiguous={result.ambiguous})")
    return result


def require_unambiguous(result: SelectorResult) -> List[str]:
    """Element ids of a resolved set; raises AmbiguousSelector with the options otherwise."""
    if result.ambiguous:
        raise AmbiguousSelector(
            f"Selector matched {len(result.matches)} elements; choose one",
            options=result.options,
        )
    return result.element_ids


def _resolve_by_id(selector: ByIdSelector, ir: CompositionIR) -> SelectorResult:
    if not selector.id.strip():
        raise InvalidSelector("by_id selector requires an id", field="id", value=selector.id)
    element = ir.find(selector.id)
    if element is None:
        raise NotFound(f"Element {selector.id} not found", element_id=selector.id)
    return SelectorResult(matches=[element])


def _resolve_by_label(selector: ByLabelSelector, ir: CompositionIR) -> SelectorResult:
    needle = selector.label.strip().lower()
    if not needle:
        raise InvalidSelector("by_label selector requires a label", field="label", value=selector.label)
    matches = [el for el in ir.elements if el.label and needle in el.label.lower()]
    return _from_matches(ir, matches, selector.match_all, f"label {selector.label!r}")


def _resolve_by_index(selector: ByIndexSelector, ir: CompositionIR) -> SelectorResult:
    candidates = _candidates(ir, selector.element_type, selector.where)
    return SelectorResult(matches=[_pick(candidates, selector.index, selector.element_type)])


def _resolve_by_type(selector: ByTypeSelector, ir: CompositionIR) -> SelectorResult:
    candidates = _candidates(ir, selector.element_type, selector.where)
    if selector.index is not None:
        return SelectorResult(matches=[_pick(candidates, selector.index, selector.element_type)])
    return _from_matches(ir, candidates, selector.match_all, f"type {selector.element_type}")


_RESOLVERS: Dict[Optional[str], Callable[[Any, CompositionIR], SelectorResult]] = {
    "by_id": _resolve_by_id,
    "by_label": _resolve_by_label,
    "by_index": _resolve_by_index,
    "by_type": _resolve_by_type,
}


def _candidates(ir: CompositionIR, element_type: Optional[str], where: Dict[str, Any]) -> List[ElementBase]:
    return [
        el
        for el in ir.elements
        if (element_type is None or el.type == element_type) and _matches_where(el, where)
    ]


def _matches_where(element: ElementBase, where: Dict[str, Any]) -> bool:
    for key, expected in where.items():
        if key in _ELEMENT_FIELDS:
            actual = getattr(element, key)
        else:
            actual = getattr(element.properties, key, None)  # type: ignore[attr-defined]
        if actual is None or actual != expected:
            return False
    return True


def _pick(candidates: List[ElementBase], index: int, element_type: Optional[str]) -> ElementBase:
    if index < 1:
        raise InvalidSelector(f"Selector index is 1-based, got {index}", field="index", value=index)
    if index > len(candidates):
        what = f"{element_type} elements" if element_type else "elements"
        raise NotFound(f"No element #{index}: only {len(candidates)} matching {what}", field="index", value=index)
    return candidates[index - 1]


def _from_matches(ir: CompositionIR, matches: List[ElementBase], match_all: bool, what: str) -> SelectorResult:
    if not matches:
        raise NotFound(f"No element matches {what}")
    if len(matches) == 1 or match_all:
        return SelectorResult(matches=matches)
    return SelectorResult(
        matches=matches,
        ambiguous=True,
        options=[describe_element(ir, el) for el in matches],
    )


def describe_element(ir: CompositionIR, element: ElementBase) -> DisambiguationOption:
    """Option with a short positional description, e.g. ``video #2 at frame 90 (1.5s), layer 3``."""
    same_type = [el.id for el in ir.elements if el.type == element.type]
    ordinal = same_type.index(element.id) + 1
    layer = ir.index_of(element.id)
    duration = format_duration(element.duration_in_frames, ir.settings.fps)
    return DisambiguationOption(
        element_id=element.id,
        label=element.label or f"Unnamed {element.type}",
        type=element.type,
        description=f"{element.type} #{ordinal} at frame {element.from_frame} ({duration}), layer {layer + 1}",
        layer_index=layer,
    )
