"""Game entry ledger business logic.

Records player transactions (freeplay / deposit / redeem), computes the
deposit-only bonus, initialises the two pending-balance flows and clears
them later:

* our-tag redeem flow: ``remaining_pay`` counts down to 0 as the payout
  is settled, ``is_pending`` marks the open payout;
* player-tag deposit flow: ``reduction`` is what is still owed toward the
  player's tag credit.

All validation happens before anything is written; a batch either
inserts every entry or none.
"""

import logging
from decimal import Decimal
from typing import Any, Optional

from coinbook.config import settings
from coinbook.dal.game_entries_dal import GameEntryDAL
from coinbook.errors import NotFoundError, ValidationError
from coinbook.models.common import EntryMethod, EntryType
from coinbook.models.game_entry import EntryFilter, GameEntry, GameEntryCreate
from coinbook.services.normalize import (
    clamp_limit,
    clean_text,
    normalize_date_string,
    normalize_optional_date,
    parse_money,
    parse_optional_money,
    round_money,
    sum_money,
    utc_now,
    utc_today,
)

logger = logging.getLogger("coinbook.services.game_entries")

_TYPES = {t.value for t in EntryType}
_METHODS = {m.value for m in EntryMethod}
_METHOD_TYPES = {EntryType.DEPOSIT.value, EntryType.REDEEM.value}


def compute_bonus(amount_base: float, bonus_rate: float) -> tuple[float, float]:
    """Return ``(bonus_amount, amount_final)`` for a deposit.

    ``bonus_amount = amount_base * bonus_rate / 100`` and
    ``amount_final = amount_base + bonus_amount``, both rounded half-up
    to cents.
    """
    bonus = round_money(Decimal(str(amount_base)) * Decimal(str(bonus_rate)) / 100)
    return bonus, sum_money([amount_base, bonus])


def parse_entry_type(raw: Any) -> str:
    entry_type = clean_text(raw).lower()
    if entry_type not in _TYPES:
        raise ValidationError("Invalid type", code="InvalidType")
    return entry_type


class GameEntryService:
    """Service layer for game entries."""

    def __init__(self, entry_dal: GameEntryDAL) -> None:
        self._entry_dal = entry_dal

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def get_entry(self, entry_id: str) -> GameEntry:
        entry = await self._entry_dal.get_by_id(entry_id)
        if entry is None:
            raise NotFoundError("Entry not found", code="EntryNotFound")
        return entry

    def build_entry(self, data: GameEntryCreate) -> GameEntry:
        """Validate raw input and compute every derived amount.

        Raises:
            ValidationError: ``InvalidType``, ``MissingIdentity``,
                ``MissingMethod``, ``InvalidMethod``, ``InvalidAmount``,
                ``InvalidDate`` or a missing username / game name.
        """
        entry_type = parse_entry_type(data.type)

        username = clean_text(data.username)
        if not username:
            raise ValidationError("username is required", code="MissingUsername")

        player_name = clean_text(data.player_name)
        player_tag = clean_text(data.player_tag)
        if not player_name and not player_tag:
            raise ValidationError(
                "Either player_name or player_tag is required", code="MissingIdentity"
            )

        game_name = clean_text(data.game_name)
        if not game_name:
            raise ValidationError("game_name is required", code="MissingGameName")

        method: Optional[str] = None
        if entry_type in _METHOD_TYPES:
            method = clean_text(data.method).lower()
            if not method:
                raise ValidationError(
                    "method is required for deposit/redeem", code="MissingMethod"
                )
            if method not in _METHODS:
                raise ValidationError("Invalid method", code="InvalidMethod")

        amount_base = parse_money(data.amount_base, allow_zero=True, field="amount_base")

        bonus_rate = 0.0
        bonus_amount = 0.0
        amount_final = amount_base
        if entry_type == EntryType.DEPOSIT:
            bonus_rate = parse_optional_money(data.bonus_rate, field="bonus_rate")
            bonus_amount, amount_final = compute_bonus(amount_base, bonus_rate)

        total_paid = parse_optional_money(data.total_paid, field="total_paid")
        total_cashout = parse_optional_money(data.total_cashout, field="total_cashout")
        remaining_pay = parse_optional_money(data.remaining_pay, field="remaining_pay")
        reduction = parse_optional_money(
            data.reduction,
            default=max(0.0, round_money(Decimal(str(amount_base)) - Decimal(str(total_cashout)))),
            field="reduction",
        )
        extra_money = max(
            0.0, round_money(Decimal(str(total_paid)) - Decimal(str(total_cashout)))
        )

        now = utc_now()
        return GameEntry(
            type=entry_type,
            method=method,
            username=username,
            created_by=clean_text(data.created_by) or username,
            player_name=player_name,
            player_tag=player_tag,
            game_name=game_name,
            amount_base=amount_base,
            bonus_rate=bonus_rate,
            bonus_amount=bonus_amount,
            amount_final=amount_final,
            note=clean_text(data.note),
            date=normalize_optional_date(data.date) or utc_today(),
            total_paid=total_paid,
            total_cashout=total_cashout,
            remaining_pay=remaining_pay,
            is_pending=bool(data.is_pending),
            extra_money=extra_money,
            reduction=reduction,
            created_at=now,
            updated_at=now,
        )

    # ------------------------------------------------------------------
    # Record
    # ------------------------------------------------------------------

    async def record_entry(self, data: GameEntryCreate) -> GameEntry:
        """Validate, compute and persist a single entry."""
        entry = self.build_entry(data)
        return await self._entry_dal.create(entry)

    async def record_entries(
        self, data: GameEntryCreate, game_names: list[str]
    ) -> list[GameEntry]:
        """One entry per game name, sharing the same financial parameters.

        Every entry is validated before the batch is written.
        """
        names = [clean_text(n) for n in game_names]
        if not names or not all(names):
            raise ValidationError(
                "game_names must be a non-empty list of names", code="MissingGameName"
            )
        entries = [
            self.build_entry(data.model_copy(update={"game_name": name}))
            for name in names
        ]
        return await self._entry_dal.create_many(entries)

    # ------------------------------------------------------------------
    # Pending balances
    # ------------------------------------------------------------------

    async def clear_pending(
        self,
        entry_id: str,
        total_paid_override: Any = None,
        reduction_override: Any = None,
    ) -> GameEntry:
        """Settle an entry's open balance.

        Redeem: ``remaining_pay`` -> 0, ``is_pending`` -> False and
        ``total_paid`` -> the override or ``total_paid + remaining_pay``.
        Deposit with a player tag: ``reduction`` -> the override or 0.
        Other entries are returned unchanged. Clearing twice is harmless.
        """
        entry = await self.get_entry(entry_id)

        fields: dict[str, Any] = {}
        if entry.type == EntryType.REDEEM:
            total_paid = parse_optional_money(
                total_paid_override,
                default=sum_money([entry.total_paid, entry.remaining_pay]),
                field="total_paid",
            )
            fields = {
                "remaining_pay": 0.0,
                "is_pending": False,
                "total_paid": total_paid,
                "extra_money": max(
                    0.0,
                    round_money(Decimal(str(total_paid)) - Decimal(str(entry.total_cashout))),
                ),
            }
        elif entry.type == EntryType.DEPOSIT and entry.player_tag:
            fields = {
                "reduction": parse_optional_money(
                    reduction_override, default=0.0, field="reduction"
                ),
            }

        if not fields:
            return entry

        fields["updated_at"] = utc_now()
        updated = await self._entry_dal.update_fields(entry_id, fields)
        if updated is None:
            raise NotFoundError("Entry not found", code="EntryNotFound")
        logger.info("Cleared pending balance on %s entry %s", entry.type, entry_id)
        return updated

    async def find_pending_by_tag(
        self, player_tag: str, username: Optional[str] = None
    ) -> GameEntry:
        """Most recent redeem for a tag that still has ``remaining_pay``."""
        tag = clean_text(player_tag)
        if not tag:
            raise ValidationError("player_tag is required", code="MissingIdentity")
        entry = await self._entry_dal.find_latest_pending_redeem(
            tag, clean_text(username) or None
        )
        if entry is None:
            raise NotFoundError("No pending redeem for this tag", code="EntryNotFound")
        return entry

    async def list_pending(self, username: Optional[str] = None) -> list[GameEntry]:
        return await self._entry_dal.list_pending(clean_text(username) or None)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def list_entries(self, filters: EntryFilter) -> list[GameEntry]:
        """Filtered listing, newest first, page size capped."""
        entry_type = parse_entry_type(filters.type) if filters.type else None
        limit = clamp_limit(
            filters.limit, settings.ENTRY_PAGE_DEFAULT, settings.ENTRY_PAGE_MAX
        )
        return await self._entry_dal.list_entries(
            limit=limit,
            username=clean_text(filters.username) or None,
            player_name=clean_text(filters.player_name) or None,
            player_tag=clean_text(filters.player_tag) or None,
            entry_type=entry_type,
            is_pending=filters.is_pending,
            date_from=normalize_date_string(filters.date_from) if filters.date_from else None,
            date_to=normalize_date_string(filters.date_to) if filters.date_to else None,
        )
