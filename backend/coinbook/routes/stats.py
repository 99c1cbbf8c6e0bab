"""Dashboard statistics route handlers.

Endpoints:
    GET /api/stats/game-coins?range=day|week|month|year
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from coinbook.auth.dependencies import get_current_user
from coinbook.dal.activities_dal import ActivityDAL
from coinbook.dal.database import get_database
from coinbook.services.stats_service import DEFAULT_RANGE, StatsService

router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("/game-coins", summary="Per-day, per-game coin deltas")
async def game_coins(
    range: str = Query(DEFAULT_RANGE, pattern="^(day|week|month|year)$"),
    user: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    service = StatsService(ActivityDAL(get_database()))
    return await service.game_coins_over_range(range)
