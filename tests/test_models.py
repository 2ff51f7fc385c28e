"""Tests for portfolio data models and identity keys."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from revolut_ledger.models import (
    Currency,
    PortfolioPeriod,
    Transaction,
    TransactionSide,
    TransactionType,
    dividend_identity_key,
    scaled,
    transaction_identity_key,
)


def _trade(**overrides) -> Transaction:
    fields = dict(
        timestamp=datetime(2023, 4, 12, 15, 1, 2, tzinfo=timezone.utc),
        type=TransactionType.TRADE_MARKET,
        symbol="SIRI",
        quantity=Decimal("500"),
        price=Decimal("1.6688"),
        side=TransactionSide.BUY,
        value=Decimal("835.48"),
        fees=Decimal("0"),
        commission=Decimal("1.08"),
    )
    fields.update(overrides)
    return Transaction(**fields)


class TestTransactionType:
    """Tests for TransactionType enum."""

    def test_is_string_enum(self):
        assert TransactionType.TRADE_MARKET == "trade_market"
        assert isinstance(TransactionType.DIVIDEND, str)

    def test_trade_kinds(self):
        assert {t for t in TransactionType if t.is_trade} == {
            TransactionType.TRADE_MARKET,
            TransactionType.TRADE_LIMIT,
        }


class TestTransaction:
    """Tests for Transaction field rules."""

    def test_trade_requires_all_fields(self):
        with pytest.raises(ValidationError, match="side"):
            _trade(side=None)

    def test_cash_event_rejects_quantity(self):
        with pytest.raises(ValidationError):
            Transaction(
                timestamp=datetime(2022, 1, 3, tzinfo=timezone.utc),
                type=TransactionType.CASH_TOP_UP,
                value=Decimal("10"),
                quantity=Decimal("1"),
            )

    def test_split_rejects_price(self):
        with pytest.raises(ValidationError):
            Transaction(
                timestamp=datetime(2022, 8, 27, tzinfo=timezone.utc),
                type=TransactionType.STOCK_SPLIT,
                quantity=Decimal("20"),
                price=Decimal("1"),
            )

    def test_naive_timestamp_rejected(self):
        with pytest.raises(ValidationError):
            _trade(timestamp=datetime(2023, 4, 12, 15, 1, 2))

    def test_frozen(self):
        trade = _trade()

        with pytest.raises(ValidationError):
            trade.price = Decimal("1")

    def test_has_time_of_day(self):
        assert _trade().has_time_of_day
        assert not _trade(timestamp=datetime(2023, 4, 12, tzinfo=timezone.utc)).has_time_of_day

    def test_default_currency(self):
        assert _trade().currency == Currency.USD


class TestPortfolioPeriod:
    """Tests for PortfolioPeriod."""

    def test_period_bounds(self):
        with pytest.raises(ValidationError):
            PortfolioPeriod(
                account_number="RVLT000123",
                account_name="John Smith",
                period_from=date(2022, 2, 1),
                period_to=date(2022, 1, 31),
            )

    def test_single_day_period(self):
        period = PortfolioPeriod(
            account_number="RVLT000123",
            account_name="John Smith",
            period_from=date(2022, 1, 31),
            period_to=date(2022, 1, 31),
        )

        assert period.transactions == []
        assert period.breakdowns == {}


class TestIdentityKeys:
    """Tests for the derived identity keys."""

    def test_scaled_rounds_half_up(self):
        assert scaled(Decimal("1.005"), 2) == Decimal("1.01")
        assert scaled(None, 2) is None

    def test_equal_after_scale_normalization(self):
        """Printed precision differences do not create distinct events."""
        a = _trade(value=Decimal("835.48"), quantity=Decimal("500"))
        b = _trade(value=Decimal("835.480"), quantity=Decimal("500.00000000"))

        assert transaction_identity_key(a) == transaction_identity_key(b)

    def test_distinct_events_differ(self):
        a = _trade()
        b = _trade(timestamp=a.timestamp + timedelta(seconds=1))

        assert transaction_identity_key(a) != transaction_identity_key(b)

    def test_dividend_key_uses_calendar_date(self):
        detailed = Transaction(
            timestamp=datetime(2024, 3, 5, tzinfo=timezone.utc),
            type=TransactionType.DIVIDEND,
            symbol="COP",
            value=Decimal("13.92"),
        )
        coarse = detailed.model_copy(
            update={"timestamp": datetime(2024, 3, 5, 14, 20, 11, tzinfo=timezone.utc)}
        )

        assert dividend_identity_key(detailed) == dividend_identity_key(coarse)
        assert dividend_identity_key(detailed) == (date(2024, 3, 5), "COP", Decimal("13.92"), Currency.USD)
