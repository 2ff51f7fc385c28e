"""Statement type detection from the document title lines."""

from enum import Enum
from typing import Optional, Sequence

import structlog

from ..exceptions import UnrecognizedStatementError

logger = structlog.get_logger()


class StatementType(str, Enum):
    """Report layouts issued by the broker."""

    ACCOUNT_STATEMENT = "account_statement"
    PROFIT_AND_LOSS_STATEMENT = "profit_and_loss_statement"


# Regional variants first so the longer title is tried before its suffix.
STATEMENT_TITLES: dict[StatementType, tuple[str, ...]] = {
    StatementType.ACCOUNT_STATEMENT: (
        "EUR Account Statement",
        "Account Statement",
    ),
    StatementType.PROFIT_AND_LOSS_STATEMENT: (
        "EUR Profit and Loss Statement",
        "Profit and Loss Statement",
    ),
}

TITLE_LINES_INSPECTED = 2


def _matches_title(line: str, title: str) -> bool:
    if line == title:
        return True
    return line.startswith(title) and line[len(title)].isspace()


def match_statement_title(line: str) -> Optional[StatementType]:
    """Return the statement type whose title the line carries, if any."""
    line = (line or "").strip()
    for statement_type, titles in STATEMENT_TITLES.items():
        if any(_matches_title(line, title) for title in titles):
            return statement_type
    return None


def detect_statement_type(lines: Sequence[str]) -> StatementType:
    """
    Choose the statement layout from the first two non-blank lines.

    Raises:
        UnrecognizedStatementError: If neither line carries a known title
    """
    inspected = []
    for line in lines:
        stripped = (line or "").strip()
        if not stripped:
            continue
        inspected.append(stripped)
        if len(inspected) == TITLE_LINES_INSPECTED:
            break

    for line in inspected:
        statement_type = match_statement_title(line)
        if statement_type is not None:
            logger.debug("statement_type_detected", statement_type=statement_type.value)
            return statement_type

    raise UnrecognizedStatementError(
        "Unrecognized statement type",
        lines=tuple(inspected),
    )
