from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from studio_engines.composition_history.models import HistorySignal, UndoRedoState
from studio_engines.composition_ir.models import CompositionIR
from studio_engines.edit_executor.models import EditPlan, Receipt
from studio_engines.element_selectors.models import DisambiguationOption


class CreateCompositionRequest(BaseModel):
    project_id: str
    fps: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    duration_in_frames: Optional[int] = None


class EditOutcome(BaseModel):
    """
    Result of applying a plan. ``needs_disambiguation`` echoes the plan back;
    the caller resends it with a by_id selector chosen from ``options``.
    """
    status: Literal["applied", "needs_disambiguation"]
    composition_id: str
    version: int
    receipt: Optional[Receipt] = None
    ir: Optional[CompositionIR] = None
    options: List[DisambiguationOption] = Field(default_factory=list)
    pending_plan: Optional[EditPlan] = None
    message: Optional[str] = None


class HistoryMove(BaseModel):
    """Result of undo, redo or restore. ``signal`` is set when undo/redo had nowhere to go and nothing changed."""
    composition_id: str
    version: int
    ir: CompositionIR
    description: str
    state: UndoRedoState
    signal: Optional[HistorySignal] = None


class SnapshotSummary(BaseModel):
    id: str
    version: int
    description: str
    timestamp: float
    element_count: int


class HistoryView(BaseModel):
    state: UndoRedoState
    snapshots: List[SnapshotSummary] = Field(default_factory=list)
