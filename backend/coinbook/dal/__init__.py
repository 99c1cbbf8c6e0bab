"""Data Access Layer -- MongoDB repository classes and connection management."""

from coinbook.dal.database import (
    connect_to_mongo,
    close_mongo_connection,
    ensure_indexes,
    get_database,
)
from coinbook.dal.activities_dal import ActivityDAL
from coinbook.dal.game_entries_dal import GameEntryDAL
from coinbook.dal.games_dal import GameCounterDAL
from coinbook.dal.leads_dal import LeadDAL
from coinbook.dal.payments_dal import PaymentDAL
from coinbook.dal.salaries_dal import SalaryDAL
from coinbook.dal.users_dal import LoginSessionDAL, UserDAL

__all__ = [
    # Connection management
    "connect_to_mongo",
    "close_mongo_connection",
    "ensure_indexes",
    "get_database",
    # DAL classes
    "ActivityDAL",
    "GameCounterDAL",
    "GameEntryDAL",
    "LeadDAL",
    "LoginSessionDAL",
    "PaymentDAL",
    "SalaryDAL",
    "UserDAL",
]
