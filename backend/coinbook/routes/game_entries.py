"""Game entry ledger route handlers.

Endpoints:
    POST /api/game-entries                       -- Record one entry.
    POST /api/game-entries/batch                 -- One entry per game name.
    GET  /api/game-entries                       -- Filtered listing.
    GET  /api/game-entries/pending               -- Entries with an open balance.
    GET  /api/game-entries/pending/by-tag        -- Latest pending redeem for a tag.
    POST /api/game-entries/{entry_id}/clear-pending -- Settle an open balance.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import BaseModel

from coinbook.auth.dependencies import get_current_user
from coinbook.dal.database import get_database
from coinbook.dal.game_entries_dal import GameEntryDAL
from coinbook.models.game_entry import EntryFilter, GameEntryCreate
from coinbook.services.game_entry_service import GameEntryService

logger = logging.getLogger("coinbook.routes.game_entries")

router = APIRouter(prefix="/game-entries", tags=["Game Entries"])


def _get_service() -> GameEntryService:
    """Build a GameEntryService wired to the current database."""
    return GameEntryService(GameEntryDAL(get_database()))


def _with_operator(body: GameEntryCreate, user: dict[str, Any]) -> GameEntryCreate:
    """Attribute the entry to the caller unless the body names someone."""
    return body.model_copy(update={
        "username": body.username or user["username"],
        "created_by": body.created_by or user["username"],
    })


class BatchEntryRequest(GameEntryCreate):
    """Shared entry parameters plus the games they apply to."""
    game_names: list[str] = []


class ClearPendingRequest(BaseModel):
    """Optional overrides for POST /clear-pending."""
    total_paid: Any = None
    reduction: Any = None


# ---------------------------------------------------------------------------
# Record
# ---------------------------------------------------------------------------

@router.post("", status_code=status.HTTP_201_CREATED, summary="Record an entry")
async def create_entry(
    body: GameEntryCreate,
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    entry = await _get_service().record_entry(_with_operator(body, user))
    return entry.to_response()


@router.post(
    "/batch",
    status_code=status.HTTP_201_CREATED,
    summary="Record one entry per game",
)
async def create_entries(
    body: BatchEntryRequest,
    user: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    base = GameEntryCreate(**body.model_dump(exclude={"game_names"}))
    entries = await _get_service().record_entries(
        _with_operator(base, user), body.game_names
    )
    return [e.to_response() for e in entries]


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------

@router.get("", summary="List entries")
async def list_entries(
    username: Optional[str] = Query(None),
    player_name: Optional[str] = Query(None),
    player_tag: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    is_pending: Optional[bool] = Query(None),
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    limit: Optional[int] = Query(None),
    user: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    entries = await _get_service().list_entries(
        EntryFilter(
            username=username,
            player_name=player_name,
            player_tag=player_tag,
            type=type,
            is_pending=is_pending,
            date_from=date_from,
            date_to=date_to,
            limit=limit,
        )
    )
    return [e.to_response() for e in entries]


@router.get("/pending", summary="Entries with an open balance")
async def list_pending(
    username: Optional[str] = Query(None),
    user: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    entries = await _get_service().list_pending(username)
    return [e.to_response() for e in entries]


@router.get("/pending/by-tag", summary="Latest pending redeem for a player tag")
async def find_pending_by_tag(
    player_tag: str = Query(...),
    username: Optional[str] = Query(None),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    entry = await _get_service().find_pending_by_tag(player_tag, username)
    return entry.to_response()


# ---------------------------------------------------------------------------
# Settle
# ---------------------------------------------------------------------------

@router.post("/{entry_id}/clear-pending", summary="Clear an open balance")
async def clear_pending(
    body: Optional[ClearPendingRequest] = None,
    entry_id: str = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    body = body or ClearPendingRequest()
    entry = await _get_service().clear_pending(
        entry_id,
        total_paid_override=body.total_paid,
        reduction_override=body.reduction,
    )
    logger.info("%s cleared pending on entry %s", user["username"], entry_id)
    return entry.to_response()
