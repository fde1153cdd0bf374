"""Bounded undo/redo history of IR snapshots, one manager per composition."""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from studio_engines.common.errors import NotFound
from studio_engines.composition_history.models import HistorySnapshot, UndoRedoState
from studio_engines.composition_ir.models import CompositionIR
from studio_engines.config import runtime_config

logger = logging.getLogger(__name__)


class HistoryManager:
    """
    Ordered snapshots plus a cursor. The snapshot at the cursor is the live IR.

    ``record`` drops any redo branch; ``restore`` only moves the cursor.
    ``undo``/``redo`` at either end of history are no-ops returning None.
    Once ``max_snapshots`` is exceeded the oldest snapshot is evicted.
    """

    def __init__(self, composition_id: str, max_snapshots: Optional[int] = None) -> None:
        self.composition_id = composition_id
        self.max_snapshots = max_snapshots or runtime_config.get_history_max_snapshots()
        self._snapshots: List[HistorySnapshot] = []
        self._cursor = -1

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._snapshots) - 1

    def __len__(self) -> int:
        return len(self._snapshots)

    def record(self, ir: CompositionIR, description: str) -> HistorySnapshot:
        del self._snapshots[self._cursor + 1:]
        snap = HistorySnapshot(
            composition_id=self.composition_id,
            version=ir.version,
            ir=ir.model_copy(deep=True),
            description=description,
        )
        self._snapshots.append(snap)
        self._cursor = len(self._snapshots) - 1

        while len(self._snapshots) > self.max_snapshots:
            evicted = self._snapshots.pop(0)
            self._cursor -= 1
            logger.debug(f"Evicted snapshot v{evicted.version} of {self.composition_id}")
        return snap

    def undo(self) -> Optional[CompositionIR]:
        if not self.can_undo:
            logger.debug(f"Nothing to undo for {self.composition_id}")
            return None
        self._cursor -= 1
        return self._snapshots[self._cursor].ir.model_copy(deep=True)

    def redo(self) -> Optional[CompositionIR]:
        if not self.can_redo:
            logger.debug(f"Nothing to redo for {self.composition_id}")
            return None
        self._cursor += 1
        return self._snapshots[self._cursor].ir.model_copy(deep=True)

    def restore(self, version: int) -> CompositionIR:
        for idx in range(len(self._snapshots) - 1, -1, -1):
            if self._snapshots[idx].version == version:
                self._cursor = idx
                return self._snapshots[idx].ir.model_copy(deep=True)
        raise NotFound(f"No snapshot for version {version}", field="version", value=version)

    def current(self) -> Optional[HistorySnapshot]:
        if self._cursor < 0:
            return None
        return self._snapshots[self._cursor]

    def list_snapshots(self, limit: int = 20) -> List[HistorySnapshot]:
        """Newest first."""
        return list(reversed(self._snapshots))[:limit]

    def state(self) -> UndoRedoState:
        current = self.current()
        return UndoRedoState(
            can_undo=self.can_undo,
            can_redo=self.can_redo,
            count=len(self._snapshots),
            cursor=self._cursor,
            current_version=current.version if current else None,
            undo_description=current.description if self.can_undo and current else None,
            redo_description=self._snapshots[self._cursor + 1].description if self.can_redo else None,
        )

    def clear(self) -> int:
        removed = len(self._snapshots)
        self._snapshots = []
        self._cursor = -1
        return removed


class HistoryRegistry:
    """In-memory map of composition id to its HistoryManager."""

    def __init__(self, max_snapshots: Optional[int] = None) -> None:
        self.max_snapshots = max_snapshots
        self._managers: Dict[str, HistoryManager] = {}

    def get(self, composition_id: str) -> HistoryManager:
        if composition_id not in self._managers:
            self._managers[composition_id] = HistoryManager(composition_id, self.max_snapshots)
        return self._managers[composition_id]

    def drop(self, composition_id: str) -> None:
        self._managers.pop(composition_id, None)
