"""revolut-ledger - Revolut brokerage statement parsing and consolidation."""

__version__ = "0.1.0"

from .consolidation import consolidate, consolidate_account, merge_dividend
from .models import PortfolioPeriod, PortfolioValue, Transaction
from .parsing import parse_statement
from .service import StatementService

__all__ = [
    "consolidate",
    "consolidate_account",
    "merge_dividend",
    "parse_statement",
    "PortfolioPeriod",
    "PortfolioValue",
    "Transaction",
    "StatementService",
]
