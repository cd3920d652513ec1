"""TasteID endpoints for computing, reading, comparing, and searching fingerprints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from tasteid.api.deps import get_store
from tasteid.core.config import settings
from tasteid.core.errors import (
    ComputationFailure,
    InsufficientData,
    InvalidComparison,
    NotFound,
    TasteIDError,
)
from tasteid.models.taste import TasteID, TasteIDSnapshot, TasteMatch
from tasteid.schema.taste_id import (
    ArchetypeInfo,
    SimilarTasterRead,
    TasteIDRead,
    TasteIDSnapshotRead,
    TasteMatchRead,
)
from tasteid.services import archetype_classifier, compatibility_service, similarity_service, tasteid_service
from tasteid.services.similarity_service import SimilarTaster
from tasteid.services.taste_store import SqlTasteStore

router = APIRouter()

_STATUS_BY_ERROR: tuple[tuple[type[TasteIDError], int], ...] = (
    (InsufficientData, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (InvalidComparison, status.HTTP_400_BAD_REQUEST),
    (ComputationFailure, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def _http_error(exc: TasteIDError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=exc.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message)


@router.get("/archetypes", response_model=list[ArchetypeInfo])
async def list_archetypes() -> list[dict[str, object]]:
    """List every archetype with its display metadata."""
    return [archetype_classifier.archetype_info(archetype.value) for archetype in archetype_classifier.Archetype]


@router.get("/compare/{user_a}/{user_b}", response_model=TasteMatchRead)
async def compare_endpoint(
    user_a: str,
    user_b: str,
    refresh: bool = False,
    store: SqlTasteStore = Depends(get_store),
) -> TasteMatch:
    """Compare two TasteIDs, serving the cached match while it is fresh."""
    try:
        return await compatibility_service.compare_taste_ids(store, user_a, user_b, force_refresh=refresh)
    except TasteIDError as exc:
        raise _http_error(exc) from exc


@router.post("/{user_id}/compute", response_model=TasteIDRead)
async def compute_endpoint(user_id: str, store: SqlTasteStore = Depends(get_store)) -> TasteID:
    """Recompute a user's TasteID from their current reviews."""
    try:
        return await tasteid_service.compute_taste_id(store, user_id)
    except TasteIDError as exc:
        raise _http_error(exc) from exc


@router.get("/{user_id}", response_model=TasteIDRead)
async def get_endpoint(user_id: str, store: SqlTasteStore = Depends(get_store)) -> TasteID:
    try:
        return await tasteid_service.get_taste_id(store, user_id)
    except TasteIDError as exc:
        raise _http_error(exc) from exc


@router.get("/{user_id}/history", response_model=list[TasteIDSnapshotRead])
async def history_endpoint(
    user_id: str,
    limit: int = Query(default=12, ge=1, le=100),
    store: SqlTasteStore = Depends(get_store),
) -> list[TasteIDSnapshot]:
    """Return TasteID snapshots, newest first."""
    try:
        return await tasteid_service.get_taste_history(store, user_id, limit=limit)
    except TasteIDError as exc:
        raise _http_error(exc) from exc


@router.get("/{user_id}/similar", response_model=list[SimilarTasterRead])
async def similar_endpoint(
    user_id: str,
    limit: int = Query(default=settings.similar_users_default_limit, ge=1),
    store: SqlTasteStore = Depends(get_store),
) -> list[SimilarTaster]:
    """Find the users whose genre vectors sit closest to this user's."""
    try:
        return await similarity_service.find_similar(store, user_id, limit)
    except TasteIDError as exc:
        raise _http_error(exc) from exc
