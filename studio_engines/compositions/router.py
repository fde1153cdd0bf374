from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Body

from studio_engines.common.error_envelope import engine_error_response
from studio_engines.common.errors import EngineError
from studio_engines.composition_ir.models import Composition
from studio_engines.compositions.models import CreateCompositionRequest, EditOutcome, HistoryMove, HistoryView
from studio_engines.compositions.service import get_composition_service

router = APIRouter(prefix="/compositions", tags=["compositions"])


@router.post("", response_model=Composition)
def create_composition(req: CreateCompositionRequest):
    try:
        return get_composition_service().create_composition(
            project_id=req.project_id,
            fps=req.fps,
            width=req.width,
            height=req.height,
            duration_in_frames=req.duration_in_frames,
        )
    except EngineError as exc:
        raise engine_error_response(exc)


@router.get("", response_model=List[Composition])
def list_compositions(project_id: str):
    return get_composition_service().list_compositions(project_id)


@router.get("/{composition_id}", response_model=Composition)
def get_composition(composition_id: str):
    try:
        return get_composition_service().get_composition(composition_id)
    except EngineError as exc:
        raise engine_error_response(exc)


@router.delete("/{composition_id}")
def delete_composition(composition_id: str):
    try:
        get_composition_service().delete_composition(composition_id)
    except EngineError as exc:
        raise engine_error_response(exc)
    return {"deleted": composition_id}


@router.post("/{composition_id}/plans", response_model=EditOutcome)
def apply_plan(composition_id: str, plan: Dict[str, Any] = Body(...)):
    # Raw dict so malformed plans surface as typed engine errors, not 422s.
    try:
        return get_composition_service().apply_plan(composition_id, plan)
    except EngineError as exc:
        raise engine_error_response(exc)


@router.post("/{composition_id}/undo", response_model=HistoryMove)
def undo(composition_id: str):
    try:
        return get_composition_service().undo(composition_id)
    except EngineError as exc:
        raise engine_error_response(exc)


@router.post("/{composition_id}/redo", response_model=HistoryMove)
def redo(composition_id: str):
    try:
        return get_composition_service().redo(composition_id)
    except EngineError as exc:
        raise engine_error_response(exc)


@router.post("/{composition_id}/restore/{version}", response_model=HistoryMove)
def restore(composition_id: str, version: int):
    try:
        return get_composition_service().restore(composition_id, version)
    except EngineError as exc:
        raise engine_error_response(exc)


@router.get("/{composition_id}/history", response_model=HistoryView)
def get_history(composition_id: str, limit: int = 20):
    try:
        return get_composition_service().list_history(composition_id, limit=limit)
    except EngineError as exc:
        raise engine_error_response(exc)
