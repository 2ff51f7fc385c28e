"""Statement parsing: type detection, section scanning and line grammars.

Example:
    lines = PdfTextReader().read_lines(stream)
    period = parse_statement(lines)
"""

from typing import Sequence

from revolut_ledger.models import PortfolioPeriod
from revolut_ledger.parsing.account_statement import AccountStatementParser
from revolut_ledger.parsing.detection import (
    StatementType,
    detect_statement_type,
    match_statement_title,
)
from revolut_ledger.parsing.profit_and_loss import ProfitAndLossStatementParser

PARSERS = {
    StatementType.ACCOUNT_STATEMENT: AccountStatementParser(),
    StatementType.PROFIT_AND_LOSS_STATEMENT: ProfitAndLossStatementParser(),
}


def parse_statement(lines: Sequence[str]) -> PortfolioPeriod:
    """Detect the statement layout and parse the lines into one period."""
    return PARSERS[detect_statement_type(lines)].parse(lines)


__all__ = [
    "AccountStatementParser",
    "ProfitAndLossStatementParser",
    "StatementType",
    "detect_statement_type",
    "match_statement_title",
    "parse_statement",
]
