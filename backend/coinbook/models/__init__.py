"""Pydantic models for Coinbook."""

from coinbook.models.common import (
    ContactPreference,
    EntryMethod,
    EntryType,
    MongoModel,
    PaymentMethod,
    PyObjectId,
    TxType,
    UserRole,
)
from coinbook.models.game import Activity, GameCounter, compute_total_coins
from coinbook.models.game_entry import EntryFilter, GameEntry, GameEntryCreate
from coinbook.models.payment import Payment
from coinbook.models.salary import SalaryRecord
from coinbook.models.user import LoginSession, User
from coinbook.models.lead import FacebookLead

__all__ = [
    # Enums and types
    "ContactPreference",
    "EntryMethod",
    "EntryType",
    "MongoModel",
    "PaymentMethod",
    "PyObjectId",
    "TxType",
    "UserRole",
    # Game coin ledger
    "Activity",
    "GameCounter",
    "compute_total_coins",
    # Game entries
    "EntryFilter",
    "GameEntry",
    "GameEntryCreate",
    # Payments
    "Payment",
    # Salary
    "SalaryRecord",
    # Staff
    "LoginSession",
    "User",
    # Leads
    "FacebookLead",
]
