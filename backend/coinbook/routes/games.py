"""Game coin ledger route handlers.

Endpoints:
    GET    /api/games                          -- List game counters.
    GET    /api/games/suggest?q=               -- Autocomplete game names.
    POST   /api/games                          -- Register a game.
    GET    /api/games/{game_id}                -- Get one counter.
    PUT    /api/games/{game_id}                -- Admin counter override.
    DELETE /api/games/{game_id}                -- Remove a game (admin).
    POST   /api/games/{game_id}/moves          -- Apply freeplay/redeem/deposit deltas.
    POST   /api/games/{game_id}/reset-recharge -- Start a new recharge cycle.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import BaseModel

from coinbook.auth.dependencies import get_current_admin, get_current_user
from coinbook.dal.activities_dal import ActivityDAL
from coinbook.dal.database import get_database
from coinbook.dal.games_dal import GameCounterDAL
from coinbook.services.game_service import GameService

logger = logging.getLogger("coinbook.routes.games")

router = APIRouter(prefix="/games", tags=["Games"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _get_service() -> GameService:
    """Build a GameService wired to the current database."""
    db = get_database()
    return GameService(GameCounterDAL(db), ActivityDAL(db))


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class CreateGameRequest(BaseModel):
    """Request body for POST /api/games. Counters default to 0."""
    name: Any = None
    coins_spent: Any = None
    coins_earned: Any = None
    coins_recharged: Any = None


class GameMoveRequest(BaseModel):
    """Request body for POST /api/games/{game_id}/moves."""
    freeplay_delta: Any = None
    redeem_delta: Any = None
    deposit_delta: Any = None


class OverrideTotalsRequest(BaseModel):
    """Request body for PUT /api/games/{game_id}. Omitted fields are kept."""
    coins_spent: Any = None
    coins_earned: Any = None
    coins_recharged: Any = None
    last_recharge_date: Optional[Any] = None
    clear_recharge_date: bool = False


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@router.get("", summary="List game counters")
async def list_games(
    user: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    games = await _get_service().list_games()
    return [g.to_response() for g in games]


@router.get("/suggest", summary="Autocomplete game names")
async def suggest_names(
    q: str = Query("", max_length=100),
    user: dict[str, Any] = Depends(get_current_user),
) -> list[str]:
    return await _get_service().suggest_names(q)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Register a game")
async def create_game(
    body: CreateGameRequest,
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    game = await _get_service().register_game(
        name=body.name,
        coins_spent=body.coins_spent,
        coins_earned=body.coins_earned,
        coins_recharged=body.coins_recharged,
    )
    return game.to_response()


@router.get("/{game_id}", summary="Get a game counter")
async def get_game(
    game_id: int = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    game = await _get_service().get_game(game_id)
    return game.to_response()


@router.put("/{game_id}", summary="Admin override of counters")
async def override_totals(
    body: OverrideTotalsRequest,
    game_id: int = Path(...),
    admin: dict[str, Any] = Depends(get_current_admin),
) -> dict[str, Any]:
    game = await _get_service().override_totals(
        game_id,
        coins_spent=body.coins_spent,
        coins_earned=body.coins_earned,
        coins_recharged=body.coins_recharged,
        last_recharge_date=body.last_recharge_date,
        clear_recharge_date=body.clear_recharge_date,
    )
    logger.info("Admin %s overrode game %d", admin["username"], game_id)
    return game.to_response()


@router.delete("/{game_id}", summary="Remove a game")
async def delete_game(
    game_id: int = Path(...),
    admin: dict[str, Any] = Depends(get_current_admin),
) -> dict[str, Any]:
    removed = await _get_service().delete_game(game_id)
    logger.info("Admin %s deleted game %d", admin["username"], game_id)
    return {"message": "Game deleted", "game": removed.to_response()}


# ---------------------------------------------------------------------------
# Coin moves
# ---------------------------------------------------------------------------

@router.post("/{game_id}/moves", summary="Apply coin deltas")
async def apply_move(
    body: GameMoveRequest,
    game_id: int = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    game = await _get_service().apply_move(
        game_id,
        freeplay_delta=body.freeplay_delta,
        redeem_delta=body.redeem_delta,
        deposit_delta=body.deposit_delta,
        username=user["username"],
    )
    return game.to_response()


@router.post("/{game_id}/reset-recharge", summary="Reset the recharge cycle")
async def reset_recharge(
    game_id: int = Path(...),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    game = await _get_service().reset_recharge(game_id)
    return game.to_response()
