"""Edit Executor - applies one resolved edit operation to an IR snapshot.

The input IR is never mutated: every operation works on a deep copy, is
checked with ``validate_ir`` and either returns the new IR with a receipt or
raises a typed error, leaving the caller's IR as it was.
"""
from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from pydantic import ValidationError

from studio_engines.common.errors import AssetNotReady, EngineError, InvalidProperty, InvalidRange, NotFound
from studio_engines.composition_ir.models import (
    PROPERTY_CLASSES,
    Animation,
    CompositionIR,
    ElementBase,
    IRViolation,
    build_element,
    valid_property_keys,
)
from studio_engines.composition_ir.timecode import max_end_frame, seconds_to_frames
from studio_engines.composition_ir.validation import validate_ir
from studio_engines.config import runtime_config
from studio_engines.edit_executor.models import (
    OPERATIONS,
    AnimationChange,
    EditChanges,
    EditPlan,
    ElementChange,
    ExecutionResult,
    FieldChange,
    Receipt,
)
from studio_engines.media_assets.models import Asset

logger = logging.getLogger(__name__)

ASSETLESS_TYPES = ("text", "shape")
_ADD_FIELDS = {"type", "label", "from_frame", "duration_in_frames", "properties", "animations"}
_MOVE_FIELDS = {"from_frame", "duration_in_frames", "to_index", "order"}
_UPDATE_FIELDS = {"label", "from_frame", "duration_in_frames", "properties", "animations"}

HandlerResult = Tuple[str, List[ElementChange]]


def generate_element_id(existing: Set[str]) -> str:
    """``el_<epoch ms>_<random>``, retried until unused in ``existing``."""
    prefix = runtime_config.get_element_id_prefix()
    while True:
        candidate = f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"
        if candidate not in existing:
            return candidate


class EditExecutor:
    """Applies add/update/delete/move to a CompositionIR."""

    def __init__(self, id_factory: Optional[Callable[[Set[str]], str]] = None) -> None:
        self._id_factory = id_factory or generate_element_id

    def apply(
        self,
        ir: CompositionIR,
        plan: EditPlan,
        target_ids: Sequence[str] = (),
        asset: Optional[Asset] = None,
    ) -> ExecutionResult:
        """
        Apply ``plan`` to ``ir`` for the already-resolved ``target_ids``.

        ``asset`` is the asset-store record for an asset-backed add.
        Raises a typed EngineError; ``ir`` is untouched in every case.
        """
        handler = getattr(self, f"_apply_{plan.operation}", None) if plan.operation in OPERATIONS else None
        if handler is None:
            raise InvalidProperty(f"Unknown operation: {plan.operation}", field="operation", value=plan.operation)

        working = ir.model_copy(deep=True)
        targets = list(dict.fromkeys(target_ids))
        summary, element_changes = handler(working, plan, targets, asset)

        violations = validate_ir(working)
        if violations:
            logger.warning(f"Rejected {plan.operation} on {ir.id}: {[v.message for v in violations]}")
            raise _violation_error(violations)

        working.version = ir.version + 1
        receipt = Receipt(
            operation=plan.operation,  # type: ignore[arg-type]
            element_ids=[ec.element_id for ec in element_changes],
            summary=summary,
            elements=element_changes,
            version_before=ir.version,
            version_after=working.version,
        )
        logger.info(f"Applied {plan.operation} to {ir.id} v{ir.version}->v{working.version}: {summary}")
        return ExecutionResult(ir=working, receipt=receipt)

    # --- add ---

    def _apply_add(self, ir: CompositionIR, plan: EditPlan, targets: List[str], asset: Optional[Asset]) -> HandlerResult:
        changes = plan.changes
        fps = ir.settings.fps
        _reject_fields(changes, _ADD_FIELDS, "add", require_changes=False)

        if asset is not None:
            if not asset.is_ready:
                raise AssetNotReady(
                    f"Asset {asset.id} is not ready (status: {asset.status})",
                    field="status",
                    value=asset.status,
                    details={"asset_id": asset.id},
                )
            if changes.provided("type") and changes.type != asset.kind:
                raise InvalidProperty(
                    f"changes.type {changes.type} does not match {asset.kind} asset {asset.id}",
                    field="changes.type",
                    value=changes.type,
                )
            element_type = asset.kind
            raw_props: Dict[str, Any] = dict(asset.default_properties)
            if asset.playback_url:
                raw_props.setdefault("src", asset.playback_url)
            raw_props.update(changes.properties)
            duration = changes.duration_in_frames if changes.duration_in_frames is not None else self._asset_duration(asset, fps)
            label = changes.label or asset.filename or None
        elif plan.asset_id:
            raise NotFound(f"Asset {plan.asset_id} not found", field="asset_id", value=plan.asset_id)
        else:
            if changes.type not in ASSETLESS_TYPES:
                raise InvalidProperty(
                    "Add without an asset needs changes.type of text or shape",
                    field="changes.type",
                    value=changes.type,
                )
            element_type = changes.type
            raw_props = dict(changes.properties)
            duration = changes.duration_in_frames
            if duration is None:
                duration = runtime_config.get_default_still_duration_frames()
            label = changes.label

        if duration <= 0:
            raise InvalidRange(f"Computed duration must be positive, got {duration}", field="duration_in_frames", value=duration)

        from_frame = changes.from_frame if changes.from_frame is not None else max_end_frame(ir.elements)
        properties = _build_properties(element_type, raw_props, element_id=None)
        animations = [
            Animation(property=a.property, keyframes=a.keyframes, easing=a.easing) for a in changes.animations if a.keyframes
        ]

        element = build_element(
            element_type,
            id=self._id_factory(set(ir.element_ids())),
            label=label,
            from_frame=from_frame,
            duration_in_frames=duration,
            properties=properties,
            animations=animations,
        )
        ir.elements.append(element)

        record = _record(element)
        record.changes.append(FieldChange(field="element", before=None, after=element.model_dump(mode="json")))
        summary = f'Added {element_type} element "{label}"' if label else f"Added {element_type} element"
        return summary, [record]

    @staticmethod
    def _asset_duration(asset: Asset, fps: int) -> int:
        if asset.duration_in_frames is not None:
            return asset.duration_in_frames
        if asset.duration_seconds is not None:
            return seconds_to_frames(asset.duration_seconds, fps)
        return runtime_config.get_default_still_duration_frames()

    # --- update ---

    def _apply_update(self, ir: CompositionIR, plan: EditPlan, targets: List[str], asset: Optional[Asset]) -> HandlerResult:
        changes = plan.changes
        if not targets:
            raise NotFound("Update requires at least one resolved element")
        _reject_fields(changes, _UPDATE_FIELDS, "update")

        records = []
        for element_id in targets:
            element = _require(ir, element_id)
            record = _record(element)
            if changes.provided("label"):
                label = changes.label or None  # "" clears the label
                if label != element.label:
                    record.changes.append(FieldChange(field="label", before=element.label, after=label))
                    element.label = label
            _apply_timing(element, changes, record)
            if changes.properties:
                _patch_properties(element, changes.properties, record)
            for anim_change in changes.animations:
                _replace_animation(element, anim_change, record)
            records.append(record)

        return _summary("Updated", records), records

    # --- delete ---

    def _apply_delete(self, ir: CompositionIR, plan: EditPlan, targets: List[str], asset: Optional[Asset]) -> HandlerResult:
        if not targets:
            raise NotFound("Delete requires at least one resolved element")

        records = []
        for element_id in targets:
            element = _require(ir, element_id)
            record = _record(element)
            before = element.model_dump(mode="json")
            before["layer_index"] = ir.index_of(element_id)
            record.changes.append(FieldChange(field="element", before=before, after=None))
            records.append(record)

        doomed = set(targets)
        ir.elements = [el for el in ir.elements if el.id not in doomed]
        return _summary("Deleted", records), records

    # --- move ---

    def _apply_move(self, ir: CompositionIR, plan: EditPlan, targets: List[str], asset: Optional[Asset]) -> HandlerResult:
        changes = plan.changes
        _reject_fields(changes, _MOVE_FIELDS, "move")

        if changes.order is not None:
            if any(changes.provided(name) for name in ("from_frame", "duration_in_frames", "to_index")):
                raise InvalidProperty("order cannot be combined with other move changes", field="changes.order")
            return self._reorder(ir, changes.order)
        if not targets:
            raise NotFound("Move requires at least one resolved element")
        if changes.to_index is not None and len(targets) != 1:
            raise InvalidRange("to_index moves exactly one element", field="to_index", value=changes.to_index)

        records = []
        for element_id in targets:
            element = _require(ir, element_id)
            record = _record(element)
            _apply_timing(element, changes, record)
            records.append(record)

        if changes.to_index is not None:
            element_id = targets[0]
            if not 0 <= changes.to_index < len(ir.elements):
                raise InvalidRange(
                    f"to_index must be between 0 and {len(ir.elements) - 1}",
                    element_id=element_id,
                    field="to_index",
                    value=changes.to_index,
                )
            current = ir.index_of(element_id)
            element = ir.elements.pop(current)
            ir.elements.insert(changes.to_index, element)
            if current != changes.to_index:
                records[0].changes.append(FieldChange(field="layer_index", before=current, after=changes.to_index))

        return _summary("Moved", records), records

    def _reorder(self, ir: CompositionIR, order: List[str]) -> HandlerResult:
        current_ids = ir.element_ids()
        if len(order) != len(current_ids) or set(order) != set(current_ids):
            missing = [i for i in current_ids if i not in order]
            unknown = [i for i in order if i not in current_ids]
            raise InvalidRange(
                f"Reorder must list all {len(current_ids)} elements exactly once",
                field="order",
                value=order,
                details={"missing": missing, "unknown": unknown},
            )
        by_id = {el.id: el for el in ir.elements}
        records = []
        for new_index, element_id in enumerate(order):
            old_index = current_ids.index(element_id)
            if old_index != new_index:
                record = _record(by_id[element_id])
                record.changes.append(FieldChange(field="layer_index", before=old_index, after=new_index))
                records.append(record)
        ir.elements = [by_id[i] for i in order]
        return f"Reordered {len(records)} elements", records


# --- helpers ---

def _record(element: ElementBase) -> ElementChange:
    return ElementChange(element_id=element.id, type=element.type, label=element.label)  # type: ignore[attr-defined]


def _require(ir: CompositionIR, element_id: str) -> ElementBase:
    element = ir.find(element_id)
    if element is None:
        raise NotFound(f"Element {element_id} not found", element_id=element_id)
    return element


def _reject_fields(changes: EditChanges, allowed: Set[str], operation: str, require_changes: bool = True) -> None:
    provided = {name for name in changes.model_fields_set if getattr(changes, name) not in (None, [], {})}
    extra = sorted(provided - allowed)
    if extra:
        raise InvalidProperty(f"{operation} cannot change {', '.join(extra)}", field=f"changes.{extra[0]}")
    if require_changes and not provided:
        raise InvalidProperty(f"{operation} has no changes", field="changes")


def _apply_timing(element: ElementBase, changes: EditChanges, record: ElementChange) -> None:
    for name in ("from_frame", "duration_in_frames"):
        if not changes.provided(name):
            continue
        value = getattr(changes, name)
        before = getattr(element, name)
        if value != before:
            record.changes.append(FieldChange(field=name, before=before, after=value))
            setattr(element, name, value)


def _build_properties(element_type: str, raw: Dict[str, Any], element_id: Optional[str]):
    allowed = valid_property_keys(element_type)
    unknown = sorted(set(raw) - allowed)
    if unknown:
        raise InvalidProperty(
            f"Unknown property {unknown[0]!r} for {element_type} element",
            element_id=element_id,
            field=f"properties.{unknown[0]}",
            value=raw[unknown[0]],
        )
    try:
        return PROPERTY_CLASSES[element_type].model_validate(raw)
    except ValidationError as exc:
        err = exc.errors()[0]
        loc = ".".join(str(p) for p in err["loc"])
        raise InvalidProperty(
            f"Invalid property {loc} for {element_type} element: {err['msg']}",
            element_id=element_id,
            field=f"properties.{loc}",
            value=raw.get(loc),
        ) from exc


def _patch_properties(element: ElementBase, patch: Dict[str, Any], record: ElementChange) -> None:
    current = element.properties.model_dump()  # type: ignore[attr-defined]
    updated = _build_properties(element.type, {**current, **patch}, element.id)  # type: ignore[attr-defined]
    for key in patch:
        before, after = current.get(key), getattr(updated, key)
        if before != after:
            record.changes.append(FieldChange(field=f"properties.{key}", before=before, after=after))
    element.properties = updated  # type: ignore[attr-defined]


def _replace_animation(element: ElementBase, change: AnimationChange, record: ElementChange) -> None:
    """Replace (or with no keyframes, remove) the animation on one property; others are untouched."""
    existing = element.animation_for(change.property)
    before = existing.model_dump(mode="json") if existing else None

    if change.keyframes:
        new = Animation(property=change.property, keyframes=change.keyframes, easing=change.easing)
        if existing is None:
            element.animations.append(new)
        else:
            element.animations[element.animations.index(existing)] = new
        after = new.model_dump(mode="json")
    else:
        if existing is not None:
            element.animations.remove(existing)
        after = None

    if before != after:
        record.changes.append(FieldChange(field=f"animations.{change.property}", before=before, after=after))


def _summary(verb: str, records: List[ElementChange]) -> str:
    if len(records) == 1:
        el = records[0]
        return f'{verb} "{el.label}"' if el.label else f"{verb} {el.type} element"
    return f"{verb} {len(records)} elements"


def _violation_error(violations: List[IRViolation]) -> EngineError:
    first = violations[0]
    cls = InvalidProperty if first.category == "property" else InvalidRange
    return cls(
        "; ".join(v.message for v in violations),
        element_id=first.element_id,
        field=first.field,
        value=first.value,
        details={"violations": [v.model_dump(mode="json") for v in violations]},
    )
