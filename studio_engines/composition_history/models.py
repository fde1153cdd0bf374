from __future__ import annotations

import time
import uuid
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from studio_engines.composition_ir.models import CompositionIR

# Returned instead of an IR when undo/redo is already at the end of history.
HistorySignal = Literal["nothing_to_undo", "nothing_to_redo"]
NOTHING_TO_UNDO = "nothing_to_undo"
NOTHING_TO_REDO = "nothing_to_redo"


class HistorySnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    composition_id: str
    version: int
    ir: CompositionIR  # deep copy, never shared with the live IR
    description: str
    timestamp: float = Field(default_factory=time.time)


class UndoRedoState(BaseModel):
    can_undo: bool
    can_redo: bool
    count: int
    cursor: int
    current_version: Optional[int] = None
    undo_description: Optional[str] = None  # what undo would revert
    redo_description: Optional[str] = None  # what redo would re-apply
