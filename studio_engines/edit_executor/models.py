from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from studio_engines.common.errors import InvalidProperty
from studio_engines.composition_ir.models import CompositionIR, Easing, ElementType, Keyframe
from studio_engines.element_selectors.models import Selector
from studio_engines.element_selectors.service import parse_selector

Operation = Literal["add", "update", "delete", "move"]
OPERATIONS = ("add", "update", "delete", "move")


class AnimationChange(BaseModel):
    """Full replacement of the animation on one property. No keyframes removes it."""
    property: str
    keyframes: List[Keyframe] = Field(default_factory=list)
    easing: Easing = "linear"


class EditChanges(BaseModel):
    """
    Payload of an edit plan. Which fields apply depends on the operation:
    add uses type/label/timing/properties/animations, move uses timing,
    to_index and order.
    """
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    type: Optional[ElementType] = None  # assetless add (text/shape)
    label: Optional[str] = None  # "" clears the label on update
    from_frame: Optional[int] = Field(None, alias="from")
    duration_in_frames: Optional[int] = None
    properties: Dict[str, Any] = Field(default_factory=dict)
    animations: List[AnimationChange] = Field(default_factory=list)
    to_index: Optional[int] = None  # 0-based target layer position
    order: Optional[List[str]] = None  # complete new layer order by id

    def provided(self, name: str) -> bool:
        """Explicitly set to a non-null value. A null echoed back by a client counts as absent."""
        return name in self.model_fields_set and getattr(self, name) is not None


class EditPlan(BaseModel):
    """Structured instruction from the planner. ``operation`` is checked by the plan validator."""
    operation: str
    selector: Optional[Selector] = None
    asset_id: Optional[str] = None
    changes: EditChanges = Field(default_factory=EditChanges)


class FieldChange(BaseModel):
    field: str
    before: Any = None
    after: Any = None


class ElementChange(BaseModel):
    element_id: str
    type: ElementType
    label: Optional[str] = None
    changes: List[FieldChange] = Field(default_factory=list)


class Receipt(BaseModel):
    """Human-readable, diff-style record of one applied operation."""
    operation: Operation
    element_ids: List[str]
    summary: str
    elements: List[ElementChange] = Field(default_factory=list)
    version_before: int
    version_after: int

    def lines(self) -> List[str]:
        out = [self.summary]
        for el in self.elements:
            name = el.label or el.element_id
            for ch in el.changes:
                out.append(f"  {name}: {ch.field} {_fmt(ch.before)} -> {_fmt(ch.after)}")
        return out


class ExecutionResult(BaseModel):
    ir: CompositionIR
    receipt: Receipt


def _fmt(value: Any) -> str:
    if value is None:
        return "(none)"
    if isinstance(value, dict):
        return "{" + ", ".join(f"{k}={v}" for k, v in value.items()) + "}"
    return repr(value) if isinstance(value, str) else str(value)


def parse_plan(payload: Dict[str, Any]) -> EditPlan:
    """Build an EditPlan from a planner payload with typed errors instead of pydantic ones."""
    data = dict(payload)
    if data.get("selector") is not None:
        data["selector"] = parse_selector(data["selector"])
    try:
        return EditPlan.model_validate(data)
    except ValidationError as exc:
        err = exc.errors()[0]
        loc = ".".join(str(p) for p in err["loc"])
        raise InvalidProperty(f"Invalid edit plan field {loc}: {err['msg']}", field=loc, value=err.get("input")) from exc
