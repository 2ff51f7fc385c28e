"""
Statement processing service.

Composes the PDF reader, statement parsers and consolidation engine:
each document is read and parsed independently (optionally on a thread
pool), then the resulting periods are consolidated per account.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import date
from pathlib import Path
from typing import BinaryIO, Callable, Iterable, Optional, Sequence, TypeVar, Union

import structlog

from .config import LedgerSettings
from .consolidation import consolidate
from .exceptions import (
    LedgerError,
    PartialConsolidationError,
    PartialProcessingError,
    StatementParseError,
)
from .models import PortfolioPeriod, PortfolioValue
from .parsing import (
    AccountStatementParser,
    StatementType,
    detect_statement_type,
    parse_statement,
)
from .pdf_reader import PdfTextReader

logger = structlog.get_logger()

StatementSupplier = Callable[[], BinaryIO]
LineLoader = Callable[[], list[str]]

T = TypeVar("T")


class StatementService:
    """
    High-level entry point turning statement documents into account timelines.

    A document that can not be read or parsed does not stop the rest of the
    batch: every other document is still consolidated and the failures are
    reported together in a ``PartialProcessingError``.

    Example:
        service = StatementService()
        periods = service.process_statement_files(Path("statements").glob("*.pdf"))
        for account_number, period in periods.items():
            print(account_number, len(period.transactions))
    """

    def __init__(
        self,
        settings: Optional[LedgerSettings] = None,
        reader: Optional[PdfTextReader] = None,
    ):
        self.settings = settings or LedgerSettings()
        self._reader = reader or PdfTextReader()
        self._account_statement_parser = AccountStatementParser()

    def process_statements(
        self, suppliers: Iterable[StatementSupplier]
    ) -> dict[str, PortfolioPeriod]:
        """
        Read, parse and consolidate statements supplied as lazy byte streams.

        Each supplier is called once and the returned stream is closed after
        reading.

        Returns:
            Consolidated period per account number

        Raises:
            PartialProcessingError: If any document could not be read or
                parsed, or any account failed to consolidate; ``results``
                holds the accounts built from the remaining documents
        """
        return self._process(self._stream_loaders(suppliers))

    def process_statement_files(
        self, paths: Iterable[Union[str, Path]]
    ) -> dict[str, PortfolioPeriod]:
        """Read, parse and consolidate statement PDF files."""
        loaders = [
            (str(path), lambda path=path: self._reader.read_file(path))
            for path in paths
        ]
        return self._process(loaders)

    def get_portfolio_values(
        self, suppliers: Iterable[StatementSupplier]
    ) -> dict[date, PortfolioValue]:
        """
        Collect the starting and ending account values of Account Statements.

        Profit and Loss Statements carry no account values and are skipped.
        When several statements report a day, the first value read is kept.

        Returns:
            PortfolioValue per day, sorted by day

        Raises:
            PartialProcessingError: If any document failed; ``results`` holds
                the values of the other documents
        """
        outcomes = self._run_each(self._stream_loaders(suppliers), self._read_portfolio_values)

        values: dict[date, PortfolioValue] = {}
        failures: dict[str, LedgerError] = {}
        for source, outcome in outcomes:
            if isinstance(outcome, LedgerError):
                failures[source] = outcome
                continue
            for value in outcome:
                values.setdefault(value.day, value)

        values = dict(sorted(values.items()))
        if failures:
            raise PartialProcessingError(
                f"{len(failures)} of {len(outcomes)} documents failed",
                results=values,
                failures=failures,
            ) from next(iter(failures.values()))
        return values

    def _stream_loaders(
        self, suppliers: Iterable[StatementSupplier]
    ) -> list[tuple[str, LineLoader]]:
        loaders = []
        for index, supplier in enumerate(suppliers):
            source = f"statement[{index}]"
            loaders.append((source, self._stream_loader(source, supplier)))
        return loaders

    def _stream_loader(self, source: str, supplier: StatementSupplier) -> LineLoader:
        def load() -> list[str]:
            with supplier() as stream:
                return self._reader.read_lines(stream, source=source)

        return load

    def _process(self, loaders: Sequence[tuple[str, LineLoader]]) -> dict[str, PortfolioPeriod]:
        outcomes = self._run_each(loaders, self._parse_document)

        periods: list[PortfolioPeriod] = []
        failures: dict[str, LedgerError] = {}
        for source, outcome in outcomes:
            if isinstance(outcome, LedgerError):
                failures[source] = outcome
            else:
                periods.append(outcome)

        account_failures: dict[str, LedgerError] = {}
        try:
            results = consolidate(periods, self.settings)
        except PartialConsolidationError as e:
            if not failures:
                raise
            results = e.results
            account_failures = e.failures

        if failures:
            raise PartialProcessingError(
                f"{len(failures)} of {len(outcomes)} documents failed",
                results=results,
                failures=failures,
                account_failures=account_failures,
            ) from next(iter(failures.values()))
        return results

    def _parse_document(self, source: str, load: LineLoader) -> PortfolioPeriod:
        lines = load()
        try:
            period = parse_statement(lines)
        except StatementParseError as e:
            e.attach_source(source)
            raise
        logger.info(
            "statement_processed",
            source=source,
            account_number=period.account_number,
            transactions=len(period.transactions),
        )
        return period

    def _read_portfolio_values(self, source: str, load: LineLoader) -> list[PortfolioValue]:
        lines = load()
        try:
            if detect_statement_type(lines) is not StatementType.ACCOUNT_STATEMENT:
                return []
            return self._account_statement_parser.parse_portfolio_values(lines)
        except StatementParseError as e:
            e.attach_source(source)
            raise

    def _run_each(
        self,
        loaders: Sequence[tuple[str, LineLoader]],
        work: Callable[[str, LineLoader], T],
    ) -> list[tuple[str, Union[T, LedgerError]]]:
        """Apply ``work`` to every document, in input order.

        A ``LedgerError`` raised for one document is returned in place of
        its result.
        """

        def attempt(source: str, load: LineLoader) -> tuple[str, Union[T, LedgerError]]:
            try:
                return source, work(source, load)
            except LedgerError as e:
                logger.error(
                    "statement_failed",
                    source=source,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                return source, e

        if self.settings.max_workers == 1 or len(loaders) <= 1:
            return [attempt(source, load) for source, load in loaders]

        with ThreadPoolExecutor(max_workers=self.settings.max_workers) as executor:
            futures = [executor.submit(attempt, source, load) for source, load in loaders]
            return [future.result() for future in futures]
