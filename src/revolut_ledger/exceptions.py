"""Custom exceptions for the Revolut ledger.

This module provides a hierarchy of exception classes for consistent error
handling across statement parsing and consolidation. All exceptions inherit
from LedgerError, making it easy to catch all library-specific errors.

Each layer adds its own context to the error it raises or re-raises:
line extractors report the offending line, statement parsers add the line
number and section, the service adds the document source, and the
consolidation engine adds the account identity.

Example:
    try:
        period = parse_statement(lines)
    except StatementParseError as e:
        logger.error("statement_rejected", line=e.line_number, error=str(e))
        raise
    except LedgerError as e:
        # Handle any ledger-related error
        logger.error(f"Operation failed: {e}")
"""

from datetime import date
from typing import Any, Optional


class LedgerError(Exception):
    """Base exception for all ledger errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
        recoverable: Whether the error is potentially recoverable.

    Example:
        >>> raise LedgerError("Something went wrong", details={"code": 500})
        LedgerError: Something went wrong
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        """Initialize LedgerError.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional context about the error.
            recoverable: Whether the error is potentially recoverable. Defaults
                to False; statement data is never retried or patched up.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        """Return string representation of the error."""
        if not self.details:
            return self.message
        context = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        return f"{self.message} ({context})"

    def __repr__(self) -> str:
        """Return detailed representation of the error."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable!r})"
        )


class StatementParseError(LedgerError):
    """Error raised when a statement cannot be parsed.

    Attributes:
        line_number: 1-based number of the offending line (if known).
        line: Text of the offending line (if known).
        section: Statement section being scanned (if applicable).
        source: Document identifier, filled in by the caller that read it.

    Example:
        >>> raise StatementParseError(
        ...     "Could not parse transaction line",
        ...     line_number=42,
        ...     line="01 Feb 2023 ...",
        ...     section="transactions",
        ... )
    """

    def __init__(
        self,
        message: str,
        *,
        line_number: Optional[int] = None,
        line: Optional[str] = None,
        section: Optional[str] = None,
        source: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details)
        self.line_number = line_number
        self.line = line
        self.section = section
        self.source = None

        if line_number is not None:
            self.details["line_number"] = line_number
        if line is not None:
            self.details["line"] = line
        if section:
            self.details["section"] = section
        if source:
            self.attach_source(source)

    def locate(self, *, line_number: int, line: str, section: Optional[str] = None) -> None:
        """Record where in the statement the failure happened.

        The full statement line replaces any token recorded by a decoder.
        """
        if self.line_number is None:
            self.line_number = line_number
            self.details["line_number"] = line_number
        self.line = line
        self.details["line"] = line
        if section and self.section is None:
            self.section = section
            self.details["section"] = section

    def attach_source(self, source: str) -> None:
        """Record which document the failing lines came from."""
        self.source = source
        self.details["source"] = source


class LineParseError(StatementParseError):
    """A single line did not match any candidate grammar for its record kind."""


class HeaderFieldMissingError(StatementParseError):
    """A required header field was never found in the statement.

    Attributes:
        field: Name of the missing header field.
    """

    def __init__(
        self,
        message: str,
        *,
        field: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details)
        self.field = field
        self.details["field"] = field


class UnrecognizedStatementError(StatementParseError):
    """Neither of the inspected title lines matched a known statement type.

    Attributes:
        lines: The lines that were inspected.
    """

    def __init__(
        self,
        message: str,
        *,
        lines: tuple[str, ...] = (),
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details)
        self.lines = lines
        self.details["lines"] = list(lines)


class InvalidDataError(LedgerError):
    """A record is internally inconsistent.

    Raised when a trade's implied price diverges from its declared price
    beyond tolerance, or fees/commission are negative.

    Attributes:
        transaction: The offending record.
    """

    def __init__(
        self,
        message: str,
        *,
        transaction: Optional[Any] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details)
        self.transaction = transaction
        if transaction is not None:
            self.details["transaction"] = repr(transaction)


class ConsolidationError(LedgerError):
    """Error raised when the periods of one account cannot be consolidated.

    Attributes:
        account_number: Account whose consolidation failed.
        account_name: Display name of that account.
    """

    def __init__(
        self,
        message: str,
        *,
        account_number: Optional[str] = None,
        account_name: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details)
        self.account_number = account_number
        self.account_name = account_name

        if account_number:
            self.details["account_number"] = account_number
        if account_name:
            self.details["account_name"] = account_name


class NonContinuousPeriodsError(ConsolidationError):
    """Consecutive statement periods of one account leave a calendar gap.

    Attributes:
        missing_from: First day not covered by any statement.
        missing_to: Last day not covered by any statement.
    """

    def __init__(
        self,
        message: str,
        *,
        missing_from: date,
        missing_to: date,
        account_number: Optional[str] = None,
        account_name: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            account_number=account_number,
            account_name=account_name,
        )
        self.missing_from = missing_from
        self.missing_to = missing_to
        self.details["missing_period"] = f"{missing_from} - {missing_to}"


class AccountIdentityMismatchError(ConsolidationError):
    """Periods sharing an account number disagree on the account name.

    Attributes:
        names: The conflicting account names.
    """

    def __init__(
        self,
        message: str,
        *,
        names: tuple[str, ...],
        account_number: Optional[str] = None,
    ) -> None:
        super().__init__(message, account_number=account_number)
        self.names = names
        self.details["names"] = list(names)


class PartialConsolidationError(ConsolidationError):
    """One or more account groups failed while others consolidated.

    Attributes:
        results: Consolidated periods of the accounts that succeeded.
        failures: Error raised for each account that failed.
    """

    def __init__(
        self,
        message: str,
        *,
        results: dict[str, Any],
        failures: dict[str, LedgerError],
    ) -> None:
        super().__init__(message)
        self.results = results
        self.failures = failures
        self.details["failed_accounts"] = list(failures)


class DocumentReadError(LedgerError):
    """A statement document could not be turned into text lines.

    Attributes:
        source: The document path or identifier being read.
    """

    def __init__(
        self,
        message: str,
        *,
        source: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details)
        self.source = source
        if source:
            self.details["source"] = source


class EncryptedDocumentError(DocumentReadError):
    """The document is encrypted and cannot be read without a password."""


class PartialProcessingError(LedgerError):
    """Some documents or accounts of a batch failed while others succeeded.

    Attributes:
        results: Output built from everything that succeeded.
        failures: Error raised for each document that could not be read or
            parsed, keyed by document source.
        account_failures: Error raised for each account that failed to
            consolidate, keyed by account number.
    """

    def __init__(
        self,
        message: str,
        *,
        results: dict[Any, Any],
        failures: dict[str, LedgerError],
        account_failures: Optional[dict[str, LedgerError]] = None,
    ) -> None:
        super().__init__(message)
        self.results = results
        self.failures = failures
        self.account_failures = account_failures or {}
        self.details["failed_sources"] = list(failures)
        if self.account_failures:
            self.details["failed_accounts"] = list(self.account_failures)


__all__ = [
    "LedgerError",
    "StatementParseError",
    "LineParseError",
    "HeaderFieldMissingError",
    "UnrecognizedStatementError",
    "InvalidDataError",
    "ConsolidationError",
    "NonContinuousPeriodsError",
    "AccountIdentityMismatchError",
    "PartialConsolidationError",
    "DocumentReadError",
    "EncryptedDocumentError",
    "PartialProcessingError",
]
