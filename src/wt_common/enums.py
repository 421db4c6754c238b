"""Global enums. Values must match the DB CHECK constraints in alembic/versions."""

from enum import Enum


class UserRole(str, Enum):
    CREATOR = "creator"
    USER = "user"


class AssetType(str, Enum):
    STOCK = "stock"
    OPTION = "option"


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


class OrderType(str, Enum):
    MARKET = "market"


class OrderStatus(str, Enum):
    PENDING = "pending"
    FILLED = "filled"
    CANCELLED = "cancelled"


class LedgerEntryType(str, Enum):
    # Fills
    TRADE_BUY = "TRADE_BUY"
    TRADE_SELL = "TRADE_SELL"
    # Creator adjustments
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"
    # Projection rebuild
    RECONCILE = "RECONCILE"


class QuoteSource(str, Enum):
    LIVE = "live"
    MOCK = "mock"


class PerformancePeriod(str, Enum):
    ONE_DAY = "1d"
    SEVEN_DAYS = "7d"
    THIRTY_DAYS = "30d"
    NINETY_DAYS = "90d"
    ONE_YEAR = "1y"
    ALL = "all"


class Granularity(str, Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
