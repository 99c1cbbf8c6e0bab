"""Dashboard statistics derived from the activity log."""

import logging
from datetime import date, timedelta
from typing import Any, Optional

from coinbook.dal.activities_dal import ActivityDAL
from coinbook.services.normalize import sum_money, utc_today

logger = logging.getLogger("coinbook.services.stats")

RANGE_DAYS = {
    "day": 1,
    "week": 7,
    "month": 30,
    "year": 365,
}
DEFAULT_RANGE = "week"


def range_start(range_name: str, today: Optional[str] = None) -> str:
    """First UTC day of a trailing window that includes ``today``."""
    days = RANGE_DAYS.get(range_name.lower(), RANGE_DAYS[DEFAULT_RANGE])
    end = date.fromisoformat(today or utc_today())
    return (end - timedelta(days=days - 1)).isoformat()


class StatsService:
    """Service layer for aggregate dashboard queries."""

    def __init__(self, activity_dal: ActivityDAL) -> None:
        self._activity_dal = activity_dal

    async def game_coins_over_range(
        self, range_name: str = DEFAULT_RANGE
    ) -> list[dict[str, Any]]:
        """Per-day, per-game coin deltas over a trailing window.

        Returns rows ``{date, game_id, game_name, coins_earned,
        coins_spent, coins_recharged}`` sorted by date, then game name.
        """
        start = range_start(range_name)
        activities = await self._activity_dal.list_since(start)

        buckets: dict[tuple[str, int, str], dict[str, list[float]]] = {}
        for act in activities:
            key = (act.date, act.game_id, act.game_name)
            bucket = buckets.setdefault(
                key, {"freeplay": [], "redeem": [], "deposit": []}
            )
            bucket["freeplay"].append(act.freeplay)
            bucket["redeem"].append(act.redeem)
            bucket["deposit"].append(act.deposit)

        rows = [
            {
                "date": day,
                "game_id": game_id,
                "game_name": game_name,
                "coins_earned": sum_money(bucket["freeplay"]),
                "coins_spent": sum_money(bucket["redeem"]),
                "coins_recharged": sum_money(bucket["deposit"]),
            }
            for (day, game_id, game_name), bucket in buckets.items()
        ]
        rows.sort(key=lambda r: (r["date"], r["game_name"]))
        logger.debug("game_coins_over_range(%s): %d rows since %s", range_name, len(rows), start)
        return rows
