"""
Plan Validator.

Pre-flight checks of an EditPlan against the live IR and asset metadata, so
invalid plans fail fast with a typed error before resolution or execution.
"""
from __future__ import annotations

import logging
from numbers import Number
from typing import Any, Dict, Optional

from studio_engines.common.errors import AssetNotReady, InvalidProperty, InvalidRange, InvalidSelector, NotFound
from studio_engines.composition_ir.models import CompositionIR, animatable_properties, valid_property_keys
from studio_engines.composition_ir.validation import PROPERTY_DOMAINS
from studio_engines.edit_executor.models import OPERATIONS, EditChanges, EditPlan
from studio_engines.element_selectors.models import ByIdSelector, ByIndexSelector, ByTypeSelector
from studio_engines.media_assets.models import Asset
from studio_engines.media_assets.repository import AssetRepository

logger = logging.getLogger(__name__)


class PlanValidator:
    def __init__(self, assets: Optional[AssetRepository] = None) -> None:
        self.assets = assets

    def validate(self, plan: EditPlan, ir: CompositionIR) -> Optional[Asset]:
        """
        Check ``plan`` against ``ir``. Returns the ready asset for an asset-backed
        add (None otherwise) so callers need not look it up twice.
        """
        if plan.operation not in OPERATIONS:
            raise InvalidProperty(
                f"Invalid operation: {plan.operation}; expected one of {', '.join(OPERATIONS)}",
                field="operation",
                value=plan.operation,
            )

        asset = None
        if plan.operation == "add":
            asset = self._check_add_source(plan)
        else:
            self._check_target(plan, ir)

        changes = plan.changes
        self._check_ranges(changes, ir)
        element_type = self._known_type(plan, ir, asset)
        self._check_animations(changes, element_type)
        self._check_properties(changes.properties, element_type)
        logger.debug(f"Plan {plan.operation} passed validation against {ir.id} v{ir.version}")
        return asset

    def _check_add_source(self, plan: EditPlan) -> Optional[Asset]:
        if not plan.asset_id:
            if plan.changes.type not in ("text", "shape"):
                raise InvalidProperty(
                    "Add requires an asset_id, or changes.type of text or shape",
                    field="changes.type",
                    value=plan.changes.type,
                )
            return None

        asset = self.assets.get_asset(plan.asset_id) if self.assets else None
        if asset is None:
            raise NotFound(f"Asset {plan.asset_id} not found", field="asset_id", value=plan.asset_id)
        if not asset.is_ready:
            raise AssetNotReady(
                f"Asset is not ready (status: {asset.status}). Please wait for processing to complete.",
                field="status",
                value=asset.status,
                details={"asset_id": asset.id},
            )
        return asset

    def _check_target(self, plan: EditPlan, ir: CompositionIR) -> None:
        if plan.operation == "move" and plan.changes.order is not None:
            return
        if plan.selector is None:
            raise InvalidSelector(f"{plan.operation} operation requires a selector", field="selector")
        if not ir.elements:
            raise NotFound("Composition has no elements")

        selector = plan.selector
        if isinstance(selector, ByIdSelector) and ir.find(selector.id) is None:
            raise NotFound(f"Element {selector.id} not found", element_id=selector.id)
        if isinstance(selector, (ByIndexSelector, ByTypeSelector)) and selector.index is not None and selector.index < 1:
            raise InvalidSelector(f"Selector index is 1-based, got {selector.index}", field="index", value=selector.index)

    def _check_ranges(self, changes: EditChanges, ir: CompositionIR) -> None:
        if changes.from_frame is not None and changes.from_frame < 0:
            raise InvalidRange("Start frame must be non-negative", field="from_frame", value=changes.from_frame)
        if changes.duration_in_frames is not None and changes.duration_in_frames <= 0:
            raise InvalidRange("Duration must be positive", field="duration_in_frames", value=changes.duration_in_frames)
        if changes.to_index is not None and not 0 <= changes.to_index < max(len(ir.elements), 1):
            raise InvalidRange(
                f"to_index must be between 0 and {max(len(ir.elements) - 1, 0)}",
                field="to_index",
                value=changes.to_index,
            )

    def _check_animations(self, changes: EditChanges, element_type: Optional[str]) -> None:
        allowed = animatable_properties(element_type)
        for anim in changes.animations:
            field = f"animations.{anim.property}"
            if anim.property not in allowed:
                on = f" on {element_type}" if element_type else ""
                raise InvalidProperty(f"Property {anim.property!r} is not animatable{on}", field=field, value=anim.property)
            if not anim.keyframes:
                continue  # removal
            frames = [kf.frame for kf in anim.keyframes]
            if len(frames) < 2:
                raise InvalidRange("Animations need at least 2 keyframes", field=field, value=len(frames))
            if frames[0] < 0 or any(b <= a for a, b in zip(frames, frames[1:])):
                raise InvalidRange("Keyframe frames must be non-negative and strictly increasing", field=field, value=frames)

    def _check_properties(self, props: Dict[str, Any], element_type: Optional[str]) -> None:
        if element_type:
            unknown = sorted(set(props) - valid_property_keys(element_type))
            if unknown:
                raise InvalidProperty(
                    f"Unknown property {unknown[0]!r} for {element_type} element",
                    field=f"properties.{unknown[0]}",
                    value=props[unknown[0]],
                )
        for name, (low, high) in PROPERTY_DOMAINS.items():
            if name not in props:
                continue
            value = props[name]
            if isinstance(value, bool) or not isinstance(value, Number) or not low <= value <= high:
                raise InvalidProperty(
                    f"{name} must be between {low:g} and {high:g}",
                    field=f"properties.{name}",
                    value=value,
                )

    @staticmethod
    def _known_type(plan: EditPlan, ir: CompositionIR, asset: Optional[Asset]) -> Optional[str]:
        if plan.operation == "add":
            return asset.kind if asset else plan.changes.type
        selector = plan.selector
        if isinstance(selector, ByIdSelector):
            element = ir.find(selector.id)
            return element.type if element else None  # type: ignore[attr-defined]
        if isinstance(selector, (ByIndexSelector, ByTypeSelector)):
            return selector.element_type
        return None
