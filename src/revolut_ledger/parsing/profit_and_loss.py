"""Parser for the Profit and Loss Statement layout.

Only the USD dividends section carries ledger events. The layout has no
holdings and no cash balance, so the resulting period has no breakdowns.
"""

import re
from typing import Sequence

import structlog

from ..models import PortfolioPeriod
from .account_statement import ACCOUNT_NAME, ACCOUNT_NUMBER, PERIOD, parse_period_date
from .line_extractors import parse_dividend_record
from .scanner import SectionSpec, scan_header, scan_section

logger = structlog.get_logger()


HEADER_FIELDS = (ACCOUNT_NAME, ACCOUNT_NUMBER, PERIOD)

DIVIDENDS_COLUMN_HEADER = (
    "Date Symbol Security name ISIN Country Gross Amount Withholding Tax Net Amount"
)

DIVIDENDS_SECTION = SectionSpec(
    name="dividends",
    start_markers=("USD Profit and Loss Statement", "Dividends"),
    column_header=re.compile(re.escape(DIVIDENDS_COLUMN_HEADER)),
    end=re.compile(r"Total\s+.*"),
)


class ProfitAndLossStatementParser:
    """Parse Profit and Loss Statement lines into a PortfolioPeriod."""

    def parse(self, lines: Sequence[str]) -> PortfolioPeriod:
        """
        Parse one Profit and Loss Statement.

        The dividends column header repeats after every page break. Those
        lines are removed before scanning so multi-line dividend records
        are counted over record lines only; reported line numbers still
        refer to the original document.

        Raises:
            HeaderFieldMissingError: If name, number or period is absent
            StatementParseError: If a dividend record fails every grammar
        """
        header = scan_header(lines, HEADER_FIELDS)
        account_name = header["account_name"].group("account_name").strip()
        account_number = header["account_number"].group("account_number").strip()
        period_from = parse_period_date(header["period"]["period_from"])
        period_to = parse_period_date(header["period"]["period_to"])

        kept = [
            (number, line)
            for number, line in enumerate(lines, start=1)
            if (line or "").strip() != DIVIDENDS_COLUMN_HEADER
        ]
        dividends = scan_section(
            [line for _, line in kept],
            DIVIDENDS_SECTION,
            parse_dividend_record,
            line_numbers=[number for number, _ in kept],
        )

        logger.info(
            "profit_and_loss_statement_parsed",
            account_number=account_number,
            period_from=str(period_from),
            period_to=str(period_to),
            dividends=len(dividends),
        )
        return PortfolioPeriod(
            account_number=account_number,
            account_name=account_name,
            period_from=period_from,
            period_to=period_to,
            breakdowns={},
            transactions=dividends,
        )
