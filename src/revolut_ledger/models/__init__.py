"""Data models for revolut-ledger.

This package provides the immutable value records shared by statement
parsing and consolidation:
- Transactions and their identity keys (portfolio.py)
- Holdings and portfolio breakdown snapshots
- Portfolio periods and portfolio values
"""

from revolut_ledger.models.portfolio import (
    # Enumerations
    Currency,
    TransactionType,
    TransactionSide,
    # Records
    Transaction,
    Holding,
    PortfolioBreakdown,
    PortfolioValue,
    PortfolioPeriod,
    # Identity keys
    dividend_identity_key,
    transaction_identity_key,
    scaled,
)

__all__ = [
    "Currency",
    "TransactionType",
    "TransactionSide",
    "Transaction",
    "Holding",
    "PortfolioBreakdown",
    "PortfolioValue",
    "PortfolioPeriod",
    "dividend_identity_key",
    "transaction_identity_key",
    "scaled",
]
