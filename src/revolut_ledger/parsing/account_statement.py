"""Parser for the trading Account Statement layout.

The Account Statement carries the account header, the period-end cash
balance, a portfolio breakdown (holdings) section, an account summary with
starting/ending values, and the USD transactions section.
"""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Sequence

import structlog

from ..exceptions import StatementParseError
from ..models import Currency, PortfolioBreakdown, PortfolioPeriod, PortfolioValue
from .line_extractors import parse_holding_line, parse_transaction_line
from .money import MONEY, parse_money
from .scanner import HeaderField, SectionSpec, scan_header, scan_section, single_line

logger = structlog.get_logger()


PERIOD_DATE_FORMAT = "%d %b %Y"

ACCOUNT_NAME_PATTERN = re.compile(r"Account\s+name\s+(?P<account_name>.+)")
ACCOUNT_NUMBER_PATTERN = re.compile(r"Account\s+number\s+(?P<account_number>.+)")
PERIOD_PATTERN = re.compile(
    r"Period\s+(?P<period_from>\d{2}\s[A-Za-z]{3}\s\d{4})"
    r"\s-\s(?P<period_to>\d{2}\s[A-Za-z]{3}\s\d{4})"
)
CASH_PATTERN = re.compile(rf"Cash\s+value\s+(?P<cash>{MONEY})\s+\d+(?:\.\d+)?\s*%")

ACCOUNT_NAME = HeaderField("account_name", ACCOUNT_NAME_PATTERN)
ACCOUNT_NUMBER = HeaderField("account_number", ACCOUNT_NUMBER_PATTERN)
PERIOD = HeaderField("period", PERIOD_PATTERN)
CASH = HeaderField("cash", CASH_PATTERN)

HEADER_FIELDS = (ACCOUNT_NAME, ACCOUNT_NUMBER, PERIOD, CASH)

# Non-economic transfers between Revolut entities after the EU migration.
INTERNAL_TRANSFER_LINES = (
    "Transfer from Revolut Bank UAB to Revolut Securities Europe UAB",
    "Transfer from Revolut Trading Ltd to Revolut Securities Europe UAB",
)

HOLDINGS_SECTION = SectionSpec(
    name="holdings",
    start_markers=("Portfolio breakdown",),
    column_header=re.compile(
        r"Symbol\s+Company\s+ISIN\s+Quantity\s+Price\s+Value\s+%\s+of\s+Portfolio"
    ),
    end=re.compile(r"Stocks\s+value.*"),
)

TRANSACTIONS_SECTION = SectionSpec(
    name="transactions",
    start_markers=("USD Transactions",),
    column_header=re.compile(
        r"Date\s*Symbol\s*Type\s*Quantity\s*Price\s*Side\s*Value\s*Fees\s*Commission"
    ),
    end=re.compile(r"(?:Report\s+lost\s+or\s+stolen\s+card)|(?:Get\s+help\s+directly\s+In\s+app)"),
    ignored_fragments=INTERNAL_TRANSFER_LINES,
)

SUMMARY_START_PATTERN = re.compile(r"Starting\s+Ending")
SUMMARY_ROW_PATTERNS = {
    "stocks": re.compile(rf"Stocks\s+value\s+(?P<start>{MONEY})\s+(?P<end>{MONEY})"),
    "cash": re.compile(rf"Cash\s+value\s*\*?\s+(?P<start>{MONEY})\s+(?P<end>{MONEY})"),
    "total": re.compile(rf"Total\s+(?P<start>{MONEY})\s+(?P<end>{MONEY})"),
}


def parse_period_date(text: str) -> date:
    """Parse a header period date such as ``01 Jan 2022``."""
    return datetime.strptime(text, PERIOD_DATE_FORMAT).date()


class AccountStatementParser:
    """
    Parse Account Statement lines into a PortfolioPeriod.

    The result carries one PortfolioBreakdown keyed by the period end date
    holding the period-end USD cash and the listed holdings.
    """

    def parse(self, lines: Sequence[str]) -> PortfolioPeriod:
        """
        Parse one Account Statement.

        Args:
            lines: Text lines of the whole document

        Returns:
            PortfolioPeriod with transactions in statement order

        Raises:
            HeaderFieldMissingError: If name, number, period or cash is absent
            StatementParseError: If a section line fails its grammar
        """
        header = scan_header(lines, HEADER_FIELDS)
        account_name = header["account_name"].group("account_name").strip()
        account_number = header["account_number"].group("account_number").strip()
        period_from, period_to = self._parse_period(header["period"])
        cash = parse_money(header["cash"].group("cash"))

        transactions = scan_section(lines, TRANSACTIONS_SECTION, single_line(parse_transaction_line))
        holdings = scan_section(lines, HOLDINGS_SECTION, single_line(parse_holding_line))

        breakdown = PortfolioBreakdown(
            date=period_to,
            cash={Currency.USD: cash},
            holdings=holdings,
        )
        period = PortfolioPeriod(
            account_number=account_number,
            account_name=account_name,
            period_from=period_from,
            period_to=period_to,
            breakdowns={breakdown.date: breakdown},
            transactions=transactions,
        )

        logger.info(
            "account_statement_parsed",
            account_number=account_number,
            period_from=str(period_from),
            period_to=str(period_to),
            transactions=len(transactions),
            holdings=len(holdings),
        )
        return period

    def parse_portfolio_values(self, lines: Sequence[str]) -> list[PortfolioValue]:
        """
        Read the starting and ending values from the account summary block.

        The block is a ``Starting Ending`` line followed by the stocks value,
        cash value and total rows.

        Returns:
            Two PortfolioValue records: period start and period end

        Raises:
            HeaderFieldMissingError: If the header precedes no summary fields
            StatementParseError: If the summary block is absent or malformed
        """
        header = scan_header(lines, (ACCOUNT_NAME, ACCOUNT_NUMBER, PERIOD))
        account_name = header["account_name"].group("account_name").strip()
        account_number = header["account_number"].group("account_number").strip()
        period_from, period_to = self._parse_period(header["period"])

        for index, raw in enumerate(lines):
            if not SUMMARY_START_PATTERN.search((raw or "").strip()):
                continue
            rows = {}
            for offset, (name, pattern) in enumerate(SUMMARY_ROW_PATTERNS.items(), start=1):
                row_index = index + offset
                row = (lines[row_index] if row_index < len(lines) else "").strip()
                match = pattern.search(row)
                if not match:
                    raise StatementParseError(
                        f"Account summary {name} value not found",
                        line_number=row_index + 1,
                        line=row,
                        section="summary",
                    )
                rows[name] = (parse_money(match["start"]), parse_money(match["end"]))

            return [
                self._portfolio_value(account_number, account_name, day, rows, column)
                for column, day in enumerate((period_from, period_to))
            ]

        raise StatementParseError("Account summary not found", section="summary")

    @staticmethod
    def _parse_period(match: re.Match) -> tuple[date, date]:
        return parse_period_date(match["period_from"]), parse_period_date(match["period_to"])

    @staticmethod
    def _portfolio_value(
        account_number: str,
        account_name: str,
        day: date,
        rows: dict[str, tuple[Decimal, Decimal]],
        column: int,
    ) -> PortfolioValue:
        return PortfolioValue(
            account_number=account_number,
            account_name=account_name,
            day=day,
            stocks_value=rows["stocks"][column],
            cash_value=rows["cash"][column],
            total_value=rows["total"][column],
            currency=Currency.USD,
        )
