"""Consolidation of parsed statement periods into one timeline per account.

Statements of one account may overlap (two Account Statements covering the
same month) and may describe the same event at different levels of detail
(an Account Statement dividend carries a time of day, the Profit and Loss
dividend carries gross amount and withholding tax). Consolidation:

1. checks that the periods of an account cover the calendar without gaps;
2. merges portfolio breakdowns by snapshot date;
3. reconciles every trade's declared price with the price implied by its
   value, fees and commission;
4. merges dividends reported by both layouts into one record;
5. drops repeated transactions from overlapping periods;
6. emits the transactions in chronological order.

Inputs are never modified; every result is built from new records.
"""

from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

import structlog

from .config import LedgerSettings
from .exceptions import (
    AccountIdentityMismatchError,
    ConsolidationError,
    InvalidDataError,
    LedgerError,
    NonContinuousPeriodsError,
    PartialConsolidationError,
)
from .models import (
    PortfolioPeriod,
    Transaction,
    TransactionSide,
    TransactionType,
    dividend_identity_key,
    transaction_identity_key,
)

logger = structlog.get_logger()


# Fields coalesced when two reports of one dividend are merged.
DIVIDEND_MERGED_FIELDS = (
    "symbol",
    "security_name",
    "isin",
    "country",
    "currency",
    "gross_amount",
    "withholding_tax",
    "value",
    "fees",
    "commission",
)

# Amounts summed when a dividend is printed as consecutive partial lines.
DIVIDEND_SPLIT_AMOUNT_FIELDS = ("gross_amount", "withholding_tax", "value", "fees", "commission")
DIVIDEND_SPLIT_IDENTITY_FIELDS = (
    "type",
    "symbol",
    "timestamp",
    "isin",
    "security_name",
    "country",
    "currency",
)


# =============================================================================
# RECORD-LEVEL OPERATIONS
# =============================================================================

def merge_dividend(existing: Transaction, incoming: Transaction) -> Transaction:
    """
    Merge two reports of the same dividend.

    The earlier-seen record's non-null fields win. A date-only timestamp
    (midnight) on the existing record is replaced by the incoming record's
    timestamp when that one carries a time of day.

    Args:
        existing: Dividend already held by the consolidation
        incoming: Dividend with the same dividend identity key

    Returns:
        New Transaction; neither argument is modified
    """
    update = {
        name: getattr(incoming, name)
        for name in DIVIDEND_MERGED_FIELDS
        if getattr(existing, name) is None and getattr(incoming, name) is not None
    }
    if not existing.has_time_of_day and incoming.has_time_of_day:
        update["timestamp"] = incoming.timestamp
    return existing.model_copy(update=update) if update else existing


def _is_split_dividend_line(first: Transaction, second: Transaction) -> bool:
    if first.type is not TransactionType.DIVIDEND:
        return False
    return all(
        getattr(first, name) == getattr(second, name)
        for name in DIVIDEND_SPLIT_IDENTITY_FIELDS
    )


def _sum_split_dividend(first: Transaction, second: Transaction) -> Transaction:
    update = {}
    for name in DIVIDEND_SPLIT_AMOUNT_FIELDS:
        a, b = getattr(first, name), getattr(second, name)
        if a is not None and b is not None:
            update[name] = a + b
    return first.model_copy(update=update)


def combine_split_dividends(transactions: Sequence[Transaction]) -> list[Transaction]:
    """
    Combine consecutive dividend lines describing one payment.

    Statements sometimes print a single dividend as several adjacent lines
    with the same symbol, timestamp, ISIN, security name and country. Their
    amounts are summed where both lines carry the amount.
    """
    combined: list[Transaction] = []
    for transaction in transactions:
        if combined and _is_split_dividend_line(combined[-1], transaction):
            combined[-1] = _sum_split_dividend(combined[-1], transaction)
        else:
            combined.append(transaction)
    return combined


def reconcile_trade_price(
    transaction: Transaction,
    settings: Optional[LedgerSettings] = None,
) -> Transaction:
    """
    Check a trade's declared price against the price implied by its value.

    The traded value is ``value - fees - commission`` for a buy and
    ``value + fees + commission`` for a sell. Missing fees or commission
    count as zero.

    Args:
        transaction: Market or limit trade
        settings: Supplies the tolerance and implied price scale

    Returns:
        Copy of the trade whose price is the implied price

    Raises:
        InvalidDataError: If fees or commission are negative, quantity is
            zero, or the implied price differs from the declared price by
            more than the tolerance
    """
    settings = settings or LedgerSettings()
    fees = transaction.fees if transaction.fees is not None else Decimal(0)
    commission = transaction.commission if transaction.commission is not None else Decimal(0)

    if fees < 0:
        raise InvalidDataError(f"Fees can not be negative: {fees}", transaction=transaction)
    if commission < 0:
        raise InvalidDataError(
            f"Commission can not be negative: {commission}", transaction=transaction
        )
    if not transaction.quantity:
        raise InvalidDataError("Trade quantity can not be zero", transaction=transaction)

    if transaction.side is TransactionSide.BUY:
        traded_value = transaction.value - fees - commission
    else:
        traded_value = transaction.value + fees + commission

    implied_price = (traded_value / transaction.quantity).quantize(
        Decimal(1).scaleb(-settings.implied_price_scale),
        rounding=ROUND_HALF_UP,
    )
    delta = abs(implied_price - transaction.price)
    if delta > settings.price_tolerance:
        raise InvalidDataError(
            f"Suspicious delta={delta} calculated from price={transaction.price}, "
            f"quantity={transaction.quantity}, fees={fees}, commission={commission}",
            transaction=transaction,
            details={"implied_price": str(implied_price)},
        )
    return transaction.model_copy(update={"price": implied_price})


# =============================================================================
# ACCOUNT CONSOLIDATION
# =============================================================================

def _check_account_identity(periods: Sequence[PortfolioPeriod]) -> None:
    numbers = list(dict.fromkeys(p.account_number for p in periods))
    names = list(dict.fromkeys(p.account_name for p in periods))
    if len(numbers) > 1:
        raise ConsolidationError(
            f"Periods of different accounts can not be consolidated together: {numbers}",
            account_number=",".join(numbers),
        )
    if len(names) > 1:
        raise AccountIdentityMismatchError(
            f"Account {numbers[0]} is reported under different names",
            names=tuple(names),
            account_number=numbers[0],
        )


def consolidate_account(
    periods: Iterable[PortfolioPeriod],
    settings: Optional[LedgerSettings] = None,
) -> PortfolioPeriod:
    """
    Consolidate the periods of one account into one canonical period.

    Args:
        periods: Parsed periods of a single account, in any order
        settings: Supplies the trade price tolerance

    Returns:
        PortfolioPeriod spanning all inputs with deduplicated transactions
        sorted by timestamp

    Raises:
        ConsolidationError: If no periods are given or account numbers differ
        AccountIdentityMismatchError: If the account name differs
        NonContinuousPeriodsError: If a calendar gap separates two periods
        InvalidDataError: If a trade fails price reconciliation
    """
    settings = settings or LedgerSettings()
    ordered = sorted(periods, key=lambda p: (p.period_from, p.period_to))
    if not ordered:
        raise ConsolidationError("No portfolio periods to consolidate")
    _check_account_identity(ordered)

    account_number = ordered[0].account_number
    account_name = ordered[0].account_name
    period_from = ordered[0].period_from
    period_to = ordered[0].period_to

    breakdowns = {}
    # Insertion-ordered: ("dividend", key) or ("transaction", key) -> record
    entries: dict[tuple, Transaction] = {}

    for period in ordered:
        next_day = period_to + timedelta(days=1)
        if period.period_from > next_day:
            missing_to = period.period_from - timedelta(days=1)
            raise NonContinuousPeriodsError(
                f"Statements of account {account_number} leave a gap "
                f"from {next_day} to {missing_to}",
                missing_from=next_day,
                missing_to=missing_to,
                account_number=account_number,
                account_name=account_name,
            )
        period_to = max(period_to, period.period_to)
        # Holdings and cash are mutable containers; keep no references to the input.
        breakdowns.update(
            (day, breakdown.model_copy(deep=True))
            for day, breakdown in period.breakdowns.items()
        )

        for transaction in combine_split_dividends(period.transactions):
            if transaction.type is TransactionType.DIVIDEND:
                entry = ("dividend", dividend_identity_key(transaction))
                existing = entries.get(entry)
                if existing is not None:
                    entries[entry] = merge_dividend(existing, transaction)
                    continue
            else:
                if transaction.type.is_trade:
                    try:
                        transaction = reconcile_trade_price(transaction, settings)
                    except InvalidDataError as e:
                        e.details.setdefault("account_number", account_number)
                        raise
                entry = ("transaction", transaction_identity_key(transaction))
                if entry in entries:
                    continue
            entries[entry] = transaction

    transactions = sorted(entries.values(), key=lambda t: t.timestamp)
    result = PortfolioPeriod(
        account_number=account_number,
        account_name=account_name,
        period_from=period_from,
        period_to=period_to,
        breakdowns=dict(sorted(breakdowns.items())),
        transactions=transactions,
    )

    logger.info(
        "account_consolidated",
        account_number=account_number,
        periods=len(ordered),
        period_from=str(period_from),
        period_to=str(period_to),
        transactions=len(transactions),
        breakdowns=len(breakdowns),
    )
    return result


def consolidate(
    periods: Iterable[PortfolioPeriod],
    settings: Optional[LedgerSettings] = None,
) -> dict[str, PortfolioPeriod]:
    """
    Group periods by account number and consolidate every account.

    Every account is attempted even when an earlier one fails.

    Args:
        periods: Parsed periods of any number of accounts
        settings: Resolved once and shared by every account

    Returns:
        Consolidated period per account number, in order of first appearance

    Raises:
        PartialConsolidationError: If any account failed; carries the
            results of the accounts that succeeded and the error of each
            account that failed
    """
    settings = settings or LedgerSettings()
    groups: dict[str, list[PortfolioPeriod]] = {}
    for period in periods:
        groups.setdefault(period.account_number, []).append(period)

    results: dict[str, PortfolioPeriod] = {}
    failures: dict[str, LedgerError] = {}
    for account_number, group in groups.items():
        try:
            results[account_number] = consolidate_account(group, settings)
        except LedgerError as e:
            logger.warning(
                "account_consolidation_failed",
                account_number=account_number,
                error_type=type(e).__name__,
                error=str(e),
            )
            failures[account_number] = e

    if failures:
        raise PartialConsolidationError(
            f"Consolidation failed for {len(failures)} of {len(groups)} accounts",
            results=results,
            failures=failures,
        ) from next(iter(failures.values()))
    return results
