"""Portfolio data models for parsed and consolidated statements.

This module provides the value records produced by statement parsing and
consumed by consolidation:
- Transactions (trades, cash movements, fees, dividends, corporate actions)
- Holdings and dated portfolio breakdowns
- Portfolio periods covering an account over a date range
- Portfolio values from the account summary block

All records are frozen once constructed. Consolidation produces new
instances rather than changing existing ones.
"""

from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Currency(str, Enum):
    """Reporting currencies of the source statements."""

    USD = "USD"


class TransactionType(str, Enum):
    """Kinds of ledger events found in the statements."""

    CASH_TOP_UP = "cash_top_up"
    CASH_WITHDRAWAL = "cash_withdrawal"
    CUSTODY_FEE = "custody_fee"
    DIVIDEND = "dividend"
    SPINOFF = "spinoff"
    STOCK_SPLIT = "stock_split"
    TRADE_LIMIT = "trade_limit"
    TRADE_MARKET = "trade_market"

    @property
    def is_trade(self) -> bool:
        """Returns True for market and limit trades."""
        return self in (TransactionType.TRADE_MARKET, TransactionType.TRADE_LIMIT)

    @property
    def is_corporate_action(self) -> bool:
        """Returns True for splits and spinoffs."""
        return self in (TransactionType.STOCK_SPLIT, TransactionType.SPINOFF)


class TransactionSide(str, Enum):
    """Direction of a trade."""

    BUY = "buy"
    SELL = "sell"


def scaled(value: Optional[Decimal], places: int) -> Optional[Decimal]:
    """Normalize a decimal to a fixed number of places, rounding half-up."""
    if value is None:
        return None
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


class Transaction(BaseModel):
    """A single ledger event on a trading account.

    Value is signed: positive amounts are cash flowing into the account.
    Trades carry quantity, price, side, value, fees and commission. Cash,
    fee and dividend events never carry quantity, price or side.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "examples": [
                {
                    "timestamp": "2023-02-01T14:31:07+00:00",
                    "type": "trade_market",
                    "symbol": "AAPL",
                    "quantity": "2",
                    "price": "143.21",
                    "side": "buy",
                    "value": "287.42",
                    "fees": "0",
                    "commission": "1.00",
                    "currency": "USD",
                }
            ]
        },
    )

    timestamp: datetime = Field(
        description="When the event happened; date-only events are midnight UTC"
    )
    type: TransactionType = Field(description="Kind of ledger event")
    symbol: Optional[str] = Field(
        default=None,
        description="Instrument ticker, absent for pure cash events",
    )
    country: Optional[str] = Field(default=None, description="Issuer country code")
    quantity: Optional[Decimal] = Field(default=None, description="Signed share quantity")
    price: Optional[Decimal] = Field(default=None, description="Unit price")
    value: Optional[Decimal] = Field(default=None, description="Net cash value")
    gross_amount: Optional[Decimal] = Field(
        default=None,
        description="Dividend amount before withholding tax",
    )
    withholding_tax: Optional[Decimal] = Field(
        default=None,
        description="Tax withheld from a dividend",
    )
    side: Optional[TransactionSide] = Field(default=None, description="Trade side")
    fees: Optional[Decimal] = Field(default=None, description="Regulatory fees")
    commission: Optional[Decimal] = Field(default=None, description="Broker commission")
    security_name: Optional[str] = Field(default=None, description="Security display name")
    isin: Optional[str] = Field(default=None, description="International Securities Identification Number")
    currency: Currency = Field(default=Currency.USD, description="Reporting currency")

    @field_validator("timestamp")
    @classmethod
    def require_timezone(cls, v: datetime) -> datetime:
        """Timestamps must be timezone-aware so statements can be ordered."""
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError("timestamp must be timezone-aware")
        return v

    @model_validator(mode="after")
    def check_fields_for_type(self) -> "Transaction":
        """Enforce which fields each transaction kind carries."""
        if self.type.is_trade:
            required = {
                "value": self.value,
                "fees": self.fees,
                "commission": self.commission,
                "quantity": self.quantity,
                "price": self.price,
                "side": self.side,
            }
            missing = [name for name, v in required.items() if v is None]
            if missing:
                raise ValueError(f"{self.type.value} requires {', '.join(missing)}")
        elif self.type.is_corporate_action:
            if self.quantity is None:
                raise ValueError(f"{self.type.value} requires quantity")
            if self.price is not None or self.side is not None:
                raise ValueError(f"{self.type.value} cannot carry price or side")
        else:
            if self.quantity is not None or self.price is not None or self.side is not None:
                raise ValueError(f"{self.type.value} cannot carry quantity, price or side")
        return self

    @property
    def has_time_of_day(self) -> bool:
        """Returns False when only the calendar date is known (midnight)."""
        return self.timestamp.time() != time.min


class Holding(BaseModel):
    """A position line from the portfolio breakdown section."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    company: str
    isin: str
    quantity: Decimal
    price: Decimal
    value: Decimal
    currency: Currency = Currency.USD


class PortfolioBreakdown(BaseModel):
    """Cash and holdings as of one calendar day."""

    model_config = ConfigDict(frozen=True)

    date: date
    cash: dict[Currency, Decimal] = Field(default_factory=dict)
    holdings: list[Holding] = Field(default_factory=list)


class PortfolioValue(BaseModel):
    """Stocks, cash and total account value on one day.

    Taken from the starting/ending columns of the Account Statement summary.
    """

    model_config = ConfigDict(frozen=True)

    account_number: str
    account_name: str
    day: date
    cash_value: Decimal
    stocks_value: Decimal
    total_value: Decimal
    currency: Currency = Currency.USD


class PortfolioPeriod(BaseModel):
    """An account's transactions and snapshots over an inclusive date range.

    Produced once per parsed statement and once per consolidated account.
    """

    model_config = ConfigDict(frozen=True)

    account_number: str = Field(description="Broker account number")
    account_name: str = Field(description="Account holder display name")
    period_from: date = Field(description="First day covered (inclusive)")
    period_to: date = Field(description="Last day covered (inclusive)")
    breakdowns: dict[date, PortfolioBreakdown] = Field(
        default_factory=dict,
        description="Portfolio snapshots keyed by snapshot date",
    )
    transactions: list[Transaction] = Field(
        default_factory=list,
        description="Transactions in chronological order",
    )

    @model_validator(mode="after")
    def check_period_bounds(self) -> "PortfolioPeriod":
        """period_from must not be after period_to."""
        if self.period_from > self.period_to:
            raise ValueError(
                f"period_from {self.period_from} is after period_to {self.period_to}"
            )
        return self


def transaction_identity_key(transaction: Transaction) -> tuple:
    """Key under which two records are the same economic event."""
    return (
        transaction.type,
        transaction.timestamp,
        transaction.symbol,
        scaled(transaction.quantity, 8),
        scaled(transaction.price, 2),
        transaction.side,
        scaled(transaction.value, 2),
        scaled(transaction.fees, 2),
        scaled(transaction.commission, 2),
        transaction.currency,
    )


def dividend_identity_key(transaction: Transaction) -> tuple:
    """Coarser key matching one dividend reported by both statement layouts.

    Only the calendar date is used because the Profit and Loss layout
    reports no time of day.
    """
    return (
        transaction.timestamp.date(),
        transaction.symbol,
        scaled(transaction.value, 2),
        transaction.currency,
    )
