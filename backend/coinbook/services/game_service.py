"""Game coin ledger business logic.

Handles game registration, cumulative coin moves (freeplay / redeem /
deposit), recharge-cycle resets and admin corrections. Sits between the
route handlers and ``GameCounterDAL``.

Every counter write is a read-modify-write guarded by the document's
``version``: if another request changed the same game in between, the
cycle is re-run against the fresh state, so concurrent moves on one game
are all reflected.
"""

import logging
from typing import Any, Callable, Optional

from pymongo.errors import DuplicateKeyError, PyMongoError

from coinbook.config import settings
from coinbook.dal.activities_dal import ActivityDAL
from coinbook.dal.games_dal import GameCounterDAL
from coinbook.errors import ConflictError, NotFoundError, ValidationError
from coinbook.models.game import Activity, GameCounter, compute_total_coins
from coinbook.services.normalize import (
    clean_text,
    normalize_optional_date,
    parse_optional_money,
    sum_money,
    utc_now,
    utc_today,
)

logger = logging.getLogger("coinbook.services.game")

DEFAULT_OPERATOR = "Unknown User"


def _parse_delta(raw: Any, field: str) -> float:
    return parse_optional_money(raw, default=0.0, field=field, code="InvalidDelta")


class GameService:
    """Service layer for the game coin ledger."""

    def __init__(
        self,
        game_dal: GameCounterDAL,
        activity_dal: ActivityDAL,
        max_retries: Optional[int] = None,
    ) -> None:
        self._game_dal = game_dal
        self._activity_dal = activity_dal
        self._max_retries = max_retries or settings.GAME_MOVE_MAX_RETRIES

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def get_game(self, game_id: int) -> GameCounter:
        """Fetch a game counter, raising 404 ``GameNotFound`` if absent."""
        game = await self._game_dal.get_by_game_id(game_id)
        if game is None:
            raise NotFoundError("Game not found", code="GameNotFound")
        return game

    async def _mutate(
        self,
        game_id: int,
        compute: Callable[[GameCounter], dict[str, Any]],
    ) -> GameCounter:
        """Apply ``compute(current)`` to a game under an optimistic version check.

        ``compute`` returns the counter fields to overwrite; ``total_coins``
        and ``updated_at`` are always recomputed here from the merged state.

        Raises:
            NotFoundError: The game does not exist (or was deleted mid-cycle).
            ConflictError: Every attempt lost the race.
        """
        for attempt in range(1, self._max_retries + 1):
            current = await self.get_game(game_id)
            fields = compute(current)
            merged = current.model_copy(update=fields)
            fields["total_coins"] = merged.recomputed_total()
            fields["updated_at"] = utc_now()

            if await self._game_dal.compare_and_set(game_id, current.version, fields):
                return current.model_copy(
                    update={**fields, "version": current.version + 1}
                )

            logger.warning(
                "Version conflict on game %d (attempt %d/%d)",
                game_id, attempt, self._max_retries,
            )

        logger.error("Gave up updating game %d after %d attempts", game_id, self._max_retries)
        raise ConflictError(
            "Game was modified concurrently, please retry", code="GameUpdateConflict"
        )

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    async def register_game(
        self,
        name: Any,
        coins_spent: Any = 0,
        coins_earned: Any = 0,
        coins_recharged: Any = 0,
    ) -> GameCounter:
        """Register a new game with optional opening counters.

        Raises:
            ValidationError: Missing name or invalid opening counters.
            ConflictError: A game with this name already exists.
        """
        clean_name = clean_text(name)
        if not clean_name:
            raise ValidationError("Game name is required", code="InvalidName")

        spent = _parse_delta(coins_spent, "coins_spent")
        earned = _parse_delta(coins_earned, "coins_earned")
        recharged = _parse_delta(coins_recharged, "coins_recharged")

        if await self._game_dal.get_by_name(clean_name) is not None:
            raise ConflictError(
                "Game with this name already exists", code="DuplicateGame"
            )

        counter = GameCounter(
            game_id=await self._game_dal.next_game_id(),
            name=clean_name,
            coins_spent=spent,
            coins_earned=earned,
            coins_recharged=recharged,
            total_coins=compute_total_coins(spent, earned, recharged),
        )
        try:
            return await self._game_dal.create(counter)
        except DuplicateKeyError:
            raise ConflictError(
                "Game with this name already exists", code="DuplicateGame"
            )

    async def list_games(self) -> list[GameCounter]:
        return await self._game_dal.list_all()

    async def suggest_names(self, query: str) -> list[str]:
        """Alphabetical game names matching ``query`` for autocomplete."""
        names = await self._game_dal.search_names(query.strip())
        return sorted(set(names), key=str.lower)

    async def delete_game(self, game_id: int) -> GameCounter:
        """Remove a game counter. Entries referencing it are left as-is."""
        removed = await self._game_dal.delete(game_id)
        if removed is None:
            raise NotFoundError("Game not found", code="GameNotFound")
        return removed

    # ------------------------------------------------------------------
    # Coin moves
    # ------------------------------------------------------------------

    async def apply_move(
        self,
        game_id: int,
        freeplay_delta: Any = 0,
        redeem_delta: Any = 0,
        deposit_delta: Any = 0,
        username: Optional[str] = None,
    ) -> GameCounter:
        """Add non-negative deltas to a game's cumulative counters.

        freeplay -> ``coins_earned``, redeem -> ``coins_spent``,
        deposit -> ``coins_recharged`` (and ``last_recharge_date`` = today,
        UTC). A non-empty move is also appended to the activity log; that
        append is best-effort and a storage failure there is only logged.

        Raises:
            ValidationError: ``InvalidDelta`` for a negative or non-finite delta.
            NotFoundError: ``GameNotFound``.
        """
        freeplay = _parse_delta(freeplay_delta, "freeplay_delta")
        redeem = _parse_delta(redeem_delta, "redeem_delta")
        deposit = _parse_delta(deposit_delta, "deposit_delta")
        operator = clean_text(username) or DEFAULT_OPERATOR

        def compute(current: GameCounter) -> dict[str, Any]:
            fields: dict[str, Any] = {
                "coins_earned": sum_money([current.coins_earned, freeplay]),
                "coins_spent": sum_money([current.coins_spent, redeem]),
                "coins_recharged": sum_money([current.coins_recharged, deposit]),
            }
            if deposit > 0:
                fields["last_recharge_date"] = utc_today()
            return fields

        updated = await self._mutate(game_id, compute)

        if freeplay or redeem or deposit:
            # Counter write is committed at this point.
            try:
                await self._activity_dal.create(
                    Activity(
                        username=operator,
                        game_id=updated.game_id,
                        game_name=updated.name,
                        freeplay=freeplay,
                        redeem=redeem,
                        deposit=deposit,
                        date=utc_today(),
                    )
                )
            except PyMongoError:
                logger.exception(
                    "Activity log write failed for game %d by %s "
                    "(freeplay=%.2f redeem=%.2f deposit=%.2f); counter already updated",
                    game_id, operator, freeplay, redeem, deposit,
                )

        logger.info(
            "Game %d moves by %s: freeplay=%.2f redeem=%.2f deposit=%.2f total=%.2f",
            game_id, operator, freeplay, redeem, deposit, updated.total_coins,
        )
        return updated

    async def reset_recharge(self, game_id: int) -> GameCounter:
        """Start a new recharge cycle, keeping earned/spent history."""
        updated = await self._mutate(
            game_id,
            lambda _current: {"coins_recharged": 0.0, "last_recharge_date": None},
        )
        logger.info("Reset recharge cycle for game %d", game_id)
        return updated

    async def override_totals(
        self,
        game_id: int,
        coins_spent: Any = None,
        coins_earned: Any = None,
        coins_recharged: Any = None,
        last_recharge_date: Any = None,
        clear_recharge_date: bool = False,
    ) -> GameCounter:
        """Admin correction: overwrite counters with absolute values.

        Only the supplied fields change. ``total_coins`` is recomputed.
        """
        fields: dict[str, Any] = {}
        if coins_spent is not None:
            fields["coins_spent"] = _parse_delta(coins_spent, "coins_spent")
        if coins_earned is not None:
            fields["coins_earned"] = _parse_delta(coins_earned, "coins_earned")
        if coins_recharged is not None:
            fields["coins_recharged"] = _parse_delta(coins_recharged, "coins_recharged")
        if clear_recharge_date:
            fields["last_recharge_date"] = None
        elif last_recharge_date is not None:
            fields["last_recharge_date"] = normalize_optional_date(last_recharge_date)

        updated = await self._mutate(game_id, lambda _current: dict(fields))
        logger.info("Admin override on game %d: %s", game_id, sorted(fields))
        return updated
