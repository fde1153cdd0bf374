from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, List, Protocol

from studio_engines.common.errors import NotFound, VersionConflict
from studio_engines.composition_ir.models import Composition, CompositionIR

logger = logging.getLogger(__name__)


class CompositionRepository(Protocol):
    def create(self, composition: Composition) -> Composition:
        ...

    def get_current(self, composition_id: str) -> Composition:
        ...

    def commit(self, composition_id: str, new_ir: CompositionIR, expected_version: int) -> Composition:
        ...

    def list_for_project(self, project_id: str) -> List[Composition]:
        ...

    def delete(self, composition_id: str) -> None:
        ...


class InMemoryCompositionRepository:
    """
    Holds the live IR per composition.
    ``commit`` is an atomic check-and-set on the composition version.
    """

    def __init__(self) -> None:
        self._compositions: Dict[str, Composition] = {}
        self._lock = threading.Lock()

    def create(self, composition: Composition) -> Composition:
        with self._lock:
            self._compositions[composition.id] = composition.model_copy(deep=True)
        return composition

    def get_current(self, composition_id: str) -> Composition:
        stored = self._compositions.get(composition_id)
        if stored is None:
            raise NotFound(f"Composition {composition_id} not found", details={"composition_id": composition_id})
        return stored.model_copy(deep=True)

    def commit(self, composition_id: str, new_ir: CompositionIR, expected_version: int) -> Composition:
        with self._lock:
            stored = self._compositions.get(composition_id)
            if stored is None:
                raise NotFound(f"Composition {composition_id} not found", details={"composition_id": composition_id})
            if stored.version != expected_version:
                logger.warning(
                    f"Conflict on {composition_id}: expected={expected_version} stored={stored.version}"
                )
                raise VersionConflict(composition_id, expected_version, stored.version)

            updated = stored.model_copy(
                update={
                    "ir": new_ir.model_copy(deep=True),
                    "version": stored.version + 1,
                    "updated_at": datetime.now(timezone.utc),
                }
            )
            self._compositions[composition_id] = updated
        return updated.model_copy(deep=True)

    def list_for_project(self, project_id: str) -> List[Composition]:
        return sorted(
            [c.model_copy(deep=True) for c in self._compositions.values() if c.project_id == project_id],
            key=lambda c: c.created_at,
        )

    def delete(self, composition_id: str) -> None:
        with self._lock:
            self._compositions.pop(composition_id, None)
