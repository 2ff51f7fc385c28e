"""Line extractors turning statement text lines into records.

Each extractor owns the grammar of one record kind:
- holding lines of the Account Statement portfolio breakdown
- transaction lines of the Account Statement
- dividend records of the Profit and Loss Statement, which may span
  several lines

Patterns are compiled once at import time and are safe to share between
threads. Extractors raise LineParseError on any mismatch; the statement
parsers add the line number and section.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Optional, Sequence

from ..exceptions import LineParseError
from ..models import Currency, Holding, Transaction, TransactionSide, TransactionType
from .money import MONEY, NUMBER, QUANTITY, parse_decimal, parse_money, parse_price
from .scanner import ExtractedRecord


# =============================================================================
# ACCOUNT STATEMENT: HOLDINGS
# =============================================================================

HOLDING_LINE_PATTERN = re.compile(
    r"(?P<symbol>\S+)"
    r"\s+(?P<company>.+)"
    r"\s+(?P<isin>\S{12})"
    rf"\s+(?P<quantity>{NUMBER})"
    rf"\s+(?P<price>{MONEY})"
    rf"\s+(?P<value>{MONEY})"
    r"\s+\d+(?:\.\d+)?\s*%"
)


def parse_holding_line(line: str) -> Holding:
    """Parse a portfolio breakdown line such as
    ``AAPL Apple Inc US0378331005 10 $170.00 $1,700.00 25.5%``."""
    match = HOLDING_LINE_PATTERN.fullmatch(line.strip())
    if not match:
        raise LineParseError(f"Could not parse holding line: '{line}'", line=line)

    return Holding(
        symbol=match.group("symbol"),
        company=match.group("company"),
        isin=match.group("isin"),
        quantity=parse_decimal(match.group("quantity")),
        price=parse_money(match.group("price")),
        value=parse_money(match.group("value")),
        currency=Currency.USD,
    )


# =============================================================================
# ACCOUNT STATEMENT: TRANSACTIONS
# =============================================================================

TRANSACTION_TYPE_LABELS: dict[str, TransactionType] = {
    "Custody fee": TransactionType.CUSTODY_FEE,
    "Dividend": TransactionType.DIVIDEND,
    "Cash top-up": TransactionType.CASH_TOP_UP,
    "Cash withdrawal": TransactionType.CASH_WITHDRAWAL,
    "Trade - Market": TransactionType.TRADE_MARKET,
    "Trade - Limit": TransactionType.TRADE_LIMIT,
    "Stock split": TransactionType.STOCK_SPLIT,
    "Spinoff": TransactionType.SPINOFF,
}

_TIMESTAMP = (
    r"\d{2}\s+[A-Za-z]{3}\s+\d{4}\s+\d{2}:\d{2}:\d{2}"
    r"\s+(?:GMT|UTC)(?:[+-]\d{1,2}(?::?\d{2})?)?"
)

TIMESTAMP_PATTERN = re.compile(
    r"(?P<day>\d{2})\s+(?P<month>[A-Za-z]{3})\s+(?P<year>\d{4})"
    r"\s+(?P<clock>\d{2}:\d{2}:\d{2})"
    r"\s+(?:GMT|UTC)(?:(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?)?"
)

TRANSACTION_LINE_PATTERN = re.compile(
    rf"(?P<timestamp>{_TIMESTAMP})"
    r"(?:\s+(?P<symbol>.+))?"
    rf"\s+(?P<label>{'|'.join(re.escape(label) for label in TRANSACTION_TYPE_LABELS)})"
    r"(?:\s+(?P<numbers>.*))?"
)

VALUE_FEES_COMMISSION_PATTERN = re.compile(
    rf"(?P<value>{MONEY})"
    rf"\s+(?P<fees>{MONEY})"
    rf"\s+(?P<commission>{MONEY})"
)

QUANTITY_VALUE_FEES_COMMISSION_PATTERN = re.compile(
    rf"(?P<quantity>{QUANTITY})"
    rf"\s+(?P<value>{MONEY})"
    rf"\s+(?P<fees>{MONEY})"
    rf"\s+(?P<commission>{MONEY})"
)

TRADE_PATTERN = re.compile(
    rf"(?P<quantity>{QUANTITY})"
    rf"\s+(?P<price>{MONEY}|{QUANTITY})"
    r"\s+(?P<side>Buy|Sell)"
    rf"\s+(?P<value>{MONEY})"
    rf"\s+(?P<fees>{MONEY})"
    rf"\s+(?P<commission>{MONEY})"
)


def _numbers_pattern(transaction_type: TransactionType) -> re.Pattern:
    """Pick the grammar of the numeric columns from the type label."""
    if transaction_type.is_trade:
        return TRADE_PATTERN
    if transaction_type.is_corporate_action:
        return QUANTITY_VALUE_FEES_COMMISSION_PATTERN
    return VALUE_FEES_COMMISSION_PATTERN


def parse_statement_timestamp(text: str) -> datetime:
    """Parse ``dd Mon yyyy HH:MM:SS GMT[+h[:mm]]`` into an aware datetime."""
    match = TIMESTAMP_PATTERN.fullmatch(text.strip())
    if not match:
        raise LineParseError(f"Could not parse timestamp: '{text}'", line=text)

    try:
        naive = datetime.strptime(
            f"{match['day']} {match['month']} {match['year']} {match['clock']}",
            "%d %b %Y %H:%M:%S",
        )
    except ValueError as e:
        raise LineParseError(f"Could not parse timestamp: '{text}'", line=text) from e

    offset = timedelta(0)
    if match["sign"]:
        offset = timedelta(hours=int(match["hours"]), minutes=int(match["minutes"] or 0))
        if match["sign"] == "-":
            offset = -offset
    return naive.replace(tzinfo=timezone(offset) if offset else timezone.utc)


def parse_transaction_line(line: str) -> Transaction:
    """
    Parse an Account Statement transaction line.

    Examples:
        ``03 Jan 2022 10:15:30 GMT Cash top-up $1,000.00 $0 $0``
        ``04 Jan 2022 14:30:00 GMT AAPL Trade - Market 5 $170.50 Buy $853.50 $0 $1.00``

    Args:
        line: One stripped text line

    Returns:
        Transaction in USD

    Raises:
        LineParseError: If the line or its numeric columns do not match
    """
    head = TRANSACTION_LINE_PATTERN.fullmatch(line.strip())
    if not head:
        raise LineParseError(f"Could not parse transaction line: '{line}'", line=line)

    transaction_type = TRANSACTION_TYPE_LABELS[head.group("label")]
    numbers = (head.group("numbers") or "").strip()
    match = _numbers_pattern(transaction_type).fullmatch(numbers)
    if not match:
        raise LineParseError(
            f"Could not parse {transaction_type.value} columns: '{line}'",
            line=line,
        )

    fields = {
        "timestamp": parse_statement_timestamp(head.group("timestamp")),
        "type": transaction_type,
        "symbol": head.group("symbol"),
        "value": parse_money(match.group("value")),
        "fees": parse_money(match.group("fees")),
        "commission": parse_money(match.group("commission")),
        "currency": Currency.USD,
    }
    if transaction_type.is_trade:
        fields["quantity"] = parse_decimal(match.group("quantity"))
        fields["price"] = parse_price(match.group("price"))
        fields["side"] = TransactionSide(match.group("side").lower())
    elif transaction_type.is_corporate_action:
        fields["quantity"] = parse_decimal(match.group("quantity"))

    try:
        return Transaction(**fields)
    except ValueError as e:
        raise LineParseError(f"Invalid transaction line: '{line}'", line=line) from e


# =============================================================================
# PROFIT AND LOSS STATEMENT: DIVIDENDS
# =============================================================================

_DIVIDEND_PREFIX = (
    r"(?P<date>\d{4}-\d{2}-\d{2})"
    r"\s+(?P<symbol>\S+)"
    r"\s+(?P<security_name>.+)"
    r"\s+(?P<isin>\S{12})"
    r"\s+(?P<country>\S{2})"
    rf"\s+(?P<gross>{MONEY})"
)

INLINE_TAX_DIVIDEND_PATTERN = re.compile(
    _DIVIDEND_PREFIX + rf"\s+(?P<tax>{MONEY})\s+(?P<net>{MONEY})"
)
DASH_TAX_DIVIDEND_PATTERN = re.compile(_DIVIDEND_PREFIX + rf"\s+-\s+(?P<net>{MONEY})")
FOLLOWING_LINE_TAX_DIVIDEND_PATTERN = re.compile(_DIVIDEND_PREFIX)


def _line_at(lines: Sequence[str], index: int) -> str:
    if index >= len(lines):
        raise LineParseError(
            f"Dividend record truncated, expected a continuation line at offset {index}",
        )
    return (lines[index] or "").strip()


def _inline_tax(match: re.Match, lines: Sequence[str], index: int) -> tuple[Decimal, Decimal, int]:
    return parse_money(match["tax"]), parse_money(match["net"]), 4


def _dash_tax(match: re.Match, lines: Sequence[str], index: int) -> tuple[Decimal, Decimal, int]:
    return Decimal(0), parse_money(match["net"]), 4


def _following_line_tax(
    match: re.Match, lines: Sequence[str], index: int
) -> tuple[Decimal, Decimal, int]:
    # Tax and net amount are wrapped onto later lines, optionally after a "Rate:" line.
    if _line_at(lines, index + 2).startswith("Rate:"):
        tax_line, net_line = _line_at(lines, index + 3), _line_at(lines, index + 5)
    else:
        tax_line, net_line = _line_at(lines, index + 2), _line_at(lines, index + 4)
    tax = Decimal(0) if tax_line in ("", "-") else parse_money(tax_line)
    return tax, parse_money(net_line), 7


@dataclass(frozen=True)
class DividendGrammar:
    """One textual sub-variant of a Profit and Loss dividend record.

    ``resolve`` returns the withholding tax, the net amount and the number
    of lines consumed, counting the start line.
    """

    name: str
    pattern: re.Pattern
    resolve: Callable[[re.Match, Sequence[str], int], tuple[Decimal, Decimal, int]]


DIVIDEND_GRAMMARS: tuple[DividendGrammar, ...] = (
    DividendGrammar("inline_tax", INLINE_TAX_DIVIDEND_PATTERN, _inline_tax),
    DividendGrammar("dash_tax", DASH_TAX_DIVIDEND_PATTERN, _dash_tax),
    DividendGrammar("following_line_tax", FOLLOWING_LINE_TAX_DIVIDEND_PATTERN, _following_line_tax),
)


def _match_dividend_grammar(line: str) -> Optional[tuple[DividendGrammar, re.Match]]:
    for grammar in DIVIDEND_GRAMMARS:
        match = grammar.pattern.fullmatch(line)
        if match:
            return grammar, match
    return None


def parse_dividend_record(lines: Sequence[str], index: int) -> ExtractedRecord:
    """
    Parse a Profit and Loss dividend record starting at ``lines[index]``.

    The sub-variants are tried in priority order: tax inline, tax shown as
    ``-``, tax on a following line. The caller must skip ``consumed`` lines
    to reach the next record.

    Args:
        lines: All statement lines of the section being scanned
        index: Position of the record's first line

    Returns:
        ExtractedRecord with a dividend Transaction dated midnight UTC

    Raises:
        LineParseError: If no sub-variant matches or continuation lines are missing
    """
    line = (lines[index] or "").strip()
    found = _match_dividend_grammar(line)
    if found is None:
        raise LineParseError(f"Could not parse dividend line: '{line}'", line=line)
    grammar, match = found

    withholding_tax, net_amount, consumed = grammar.resolve(match, lines, index)
    paid_on = datetime.strptime(match["date"], "%Y-%m-%d").replace(tzinfo=timezone.utc)

    dividend = Transaction(
        timestamp=paid_on,
        type=TransactionType.DIVIDEND,
        symbol=match["symbol"],
        security_name=match["security_name"],
        isin=match["isin"],
        country=match["country"],
        gross_amount=parse_money(match["gross"]),
        withholding_tax=withholding_tax,
        value=net_amount,
        currency=Currency.USD,
    )
    return ExtractedRecord(record=dividend, consumed=consumed)
