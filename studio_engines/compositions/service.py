"""Composition Service.

Runs an edit plan end to end: validate -> resolve -> execute -> commit ->
record history -> notify subscribers. Holds no state between an ambiguity
prompt and the caller's follow-up; the pending plan travels with the caller.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Dict, List, Optional, Union

from studio_engines.common.errors import AmbiguousSelector, EngineError
from studio_engines.composition_history.models import NOTHING_TO_REDO, NOTHING_TO_UNDO, HistorySignal, UndoRedoState
from studio_engines.composition_history.service import HistoryManager, HistoryRegistry
from studio_engines.composition_ir.models import Composition, CompositionIR, CompositionSettings
from studio_engines.compositions.models import EditOutcome, HistoryMove, HistoryView, SnapshotSummary
from studio_engines.compositions.repository import CompositionRepository, InMemoryCompositionRepository
from studio_engines.config import runtime_config
from studio_engines.edit_executor.models import EditPlan, parse_plan
from studio_engines.edit_executor.service import EditExecutor
from studio_engines.element_selectors.service import require_unambiguous, resolve_selector
from studio_engines.media_assets.repository import AssetRepository, InMemoryAssetRepository
from studio_engines.plan_validator.service import PlanValidator

logger = logging.getLogger(__name__)

Subscriber = Callable[[str, CompositionIR, int], None]


class CompositionService:
    def __init__(
        self,
        repo: Optional[CompositionRepository] = None,
        assets: Optional[AssetRepository] = None,
        history: Optional[HistoryRegistry] = None,
        executor: Optional[EditExecutor] = None,
    ) -> None:
        self.repo = repo or InMemoryCompositionRepository()
        self.assets = assets or InMemoryAssetRepository()
        self.history = history or HistoryRegistry()
        self.executor = executor or EditExecutor()
        self.validator = PlanValidator(self.assets)
        self._subscribers: Dict[str, List[Subscriber]] = {}

    # Compositions
    def create_composition(
        self,
        project_id: str,
        fps: Optional[int] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
        duration_in_frames: Optional[int] = None,
        composition_id: Optional[str] = None,
    ) -> Composition:
        composition_id = composition_id or f"comp_{uuid.uuid4().hex}"
        settings = CompositionSettings(
            fps=fps or runtime_config.get_default_fps(),
            width=width or runtime_config.get_default_canvas_width(),
            height=height or runtime_config.get_default_canvas_height(),
            duration_in_frames=duration_in_frames or runtime_config.get_default_composition_frames(),
        )
        composition = Composition(
            id=composition_id,
            project_id=project_id,
            ir=CompositionIR(id=composition_id, version=0, settings=settings),
        )
        self.repo.create(composition)
        self.history.get(composition_id).record(composition.ir, "Created composition")
        logger.info(f"Created composition {composition_id} for project {project_id}")
        return composition

    def get_composition(self, composition_id: str) -> Composition:
        return self.repo.get_current(composition_id)

    def list_compositions(self, project_id: str) -> List[Composition]:
        return self.repo.list_for_project(project_id)

    def delete_composition(self, composition_id: str) -> None:
        """Drop the composition with its history and subscribers."""
        self.repo.get_current(composition_id)
        self.repo.delete(composition_id)
        self.history.drop(composition_id)
        self._subscribers.pop(composition_id, None)
        logger.info(f"Deleted composition {composition_id}")

    # Editing
    def apply_plan(self, composition_id: str, plan: Union[EditPlan, Dict[str, Any]]) -> EditOutcome:
        if not isinstance(plan, EditPlan):
            plan = parse_plan(plan)

        composition = self.repo.get_current(composition_id)
        history = self._history_for(composition)
        ir = composition.ir

        asset = self.validator.validate(plan, ir)

        target_ids: List[str] = []
        if plan.selector is not None and plan.operation != "add":
            try:
                target_ids = require_unambiguous(resolve_selector(plan.selector, ir))
            except AmbiguousSelector as exc:
                logger.info(f"Plan on {composition_id} needs disambiguation between {len(exc.options)} elements")
                return EditOutcome(
                    status="needs_disambiguation",
                    composition_id=composition_id,
                    version=composition.version,
                    options=exc.options,
                    pending_plan=plan,
                    message=exc.message,
                )

        execution = self.executor.apply(ir, plan, target_ids, asset)
        committed = self.repo.commit(composition_id, execution.ir, expected_version=composition.version)
        history.record(committed.ir, execution.receipt.summary)
        self._notify(committed)

        return EditOutcome(
            status="applied",
            composition_id=composition_id,
            version=committed.version,
            receipt=execution.receipt,
            ir=committed.ir,
        )

    # History
    def undo(self, composition_id: str) -> HistoryMove:
        """Step back one snapshot. At the oldest snapshot this is a no-op carrying ``nothing_to_undo``."""
        return self._move(composition_id, lambda h: h.undo(), NOTHING_TO_UNDO)

    def redo(self, composition_id: str) -> HistoryMove:
        return self._move(composition_id, lambda h: h.redo(), NOTHING_TO_REDO)

    def restore(self, composition_id: str, version: int) -> HistoryMove:
        return self._move(composition_id, lambda h: h.restore(version))

    def history_state(self, composition_id: str) -> UndoRedoState:
        composition = self.repo.get_current(composition_id)
        return self._history_for(composition).state()

    def list_history(self, composition_id: str, limit: int = 20) -> HistoryView:
        composition = self.repo.get_current(composition_id)
        history = self._history_for(composition)
        return HistoryView(
            state=history.state(),
            snapshots=[
                SnapshotSummary(
                    id=s.id,
                    version=s.version,
                    description=s.description,
                    timestamp=s.timestamp,
                    element_count=len(s.ir.elements),
                )
                for s in history.list_snapshots(limit)
            ],
        )

    # Consumers
    def subscribe(self, composition_id: str, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback(composition_id, ir, version)``; returns an unsubscribe function."""
        self._subscribers.setdefault(composition_id, []).append(callback)

        def _unsubscribe() -> None:
            callbacks = self._subscribers.get(composition_id, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return _unsubscribe

    def _notify(self, composition: Composition) -> None:
        for callback in list(self._subscribers.get(composition.id, [])):
            try:
                callback(composition.id, composition.ir.model_copy(deep=True), composition.version)
            except Exception as exc:
                logger.error(f"Subscriber failed for {composition.id}: {exc}")

    def _history_for(self, composition: Composition) -> HistoryManager:
        history = self.history.get(composition.id)
        if len(history) == 0:
            history.record(composition.ir, "Initial state")
        return history

    def _move(
        self,
        composition_id: str,
        step: Callable[[HistoryManager], Optional[CompositionIR]],
        signal: Optional[HistorySignal] = None,
    ) -> HistoryMove:
        composition = self.repo.get_current(composition_id)
        history = self._history_for(composition)
        previous_version = history.current().version  # type: ignore[union-attr]

        ir = step(history)
        if ir is None:
            logger.info(f"No history move for {composition_id}: {signal}")
            return HistoryMove(
                composition_id=composition_id,
                version=composition.version,
                ir=composition.ir,
                description=history.current().description,  # type: ignore[union-attr]
                state=history.state(),
                signal=signal,
            )
        try:
            committed = self.repo.commit(composition_id, ir, expected_version=composition.version)
        except EngineError:
            history.restore(previous_version)
            raise
        self._notify(committed)

        snapshot = history.current()
        logger.info(f"History moved {composition_id} to IR v{ir.version} ({snapshot.description})")  # type: ignore[union-attr]
        return HistoryMove(
            composition_id=composition_id,
            version=committed.version,
            ir=committed.ir,
            description=snapshot.description,  # type: ignore[union-attr]
            state=history.state(),
        )


_default_service: Optional[CompositionService] = None


def get_composition_service() -> CompositionService:
    global _default_service
    if _default_service is None:
        _default_service = CompositionService()
    return _default_service


def set_composition_service(service: CompositionService) -> None:
    global _default_service
    _default_service = service
