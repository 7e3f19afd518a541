"""
Combo endpoints.

The board client saves, lists and deletes combos through these routes.
Every response carries a ``success`` flag; any failure is reported as
HTTP 500 with a short ``error`` message, while the underlying cause is
only written to the log.
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from tacboard_api.app.api.deps import get_combo_repository
from tacboard_api.app.core.exceptions import ComboError
from tacboard_api.app.schemas.combo import (
    ComboCreate,
    ComboCreatedResponse,
    ComboListResponse,
    ErrorResponse,
    SuccessResponse,
)
from tacboard_api.app.services.combo_service import ComboRepository

logger = logging.getLogger(__name__)

router = APIRouter()

_error_responses = {status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse}}


def error_response(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error=message).model_dump(),
    )


@router.post(
    "/combos",
    response_model=ComboCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_error_responses,
)
async def create_combo(
    combo_in: ComboCreate,
    repository: ComboRepository = Depends(get_combo_repository),
):
    """Save a combo.  ``author`` defaults to ``"Coach"``."""
    try:
        combo = await repository.create(
            name=combo_in.name,
            author=combo_in.author,
            frames=combo_in.frames,
        )
    except ComboError as exc:
        logger.error("Failed to save combo: %s", exc)
        return error_response("Failed to save combo")
    return ComboCreatedResponse(combo=combo)


@router.get("/combos", response_model=ComboListResponse, responses=_error_responses)
async def list_combos(repository: ComboRepository = Depends(get_combo_repository)):
    """Return every saved combo, newest first."""
    try:
        combos = await repository.list_all()
    except ComboError as exc:
        logger.error("Failed to load combos: %s", exc)
        return error_response("Failed to load combos")
    return ComboListResponse(combos=combos)


@router.delete("/combos/{combo_id}", response_model=SuccessResponse, responses=_error_responses)
async def delete_combo(
    combo_id: str,
    repository: ComboRepository = Depends(get_combo_repository),
):
    """Delete a combo.  Unknown identifiers are treated as already deleted."""
    try:
        await repository.delete_by_id(combo_id)
    except ComboError as exc:
        logger.error("Failed to delete combo %s: %s", combo_id, exc)
        return error_response("Failed to delete combo")
    return SuccessResponse()
