"""Line-scanning state machine shared by the statement parsers.

A statement is read top to bottom. The header is scanned until every
required field has been seen; each section is scanned from its start
marker(s) to its end marker, skipping the repeated column header line and
dispatching every other non-blank line to a line extractor.

States and transitions are explicit so each parser can be exercised one
state at a time against synthetic line sequences.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Sequence

import structlog

from ..exceptions import HeaderFieldMissingError, StatementParseError

logger = structlog.get_logger()


class ScanState(str, Enum):
    """Where a scan currently is within a statement."""

    SEEKING_HEADER = "seeking_header"
    SEEKING_SECTION_START = "seeking_section_start"
    IN_SECTION = "in_section"
    DONE = "done"


class LineAction(str, Enum):
    """What the driving parser does with the line just scanned."""

    SKIP = "skip"
    DISPATCH = "dispatch"


@dataclass(frozen=True)
class ExtractedRecord:
    """A record together with how many input lines produced it."""

    record: Any
    consumed: int = 1


Extractor = Callable[[Sequence[str], int], ExtractedRecord]


# =============================================================================
# HEADER
# =============================================================================

@dataclass(frozen=True)
class HeaderField:
    """A required header field and the pattern locating it."""

    name: str
    pattern: re.Pattern


class HeaderScanner:
    """
    Collects header fields from statement lines.

    Starts in SEEKING_HEADER and moves to DONE once every field has been
    found. The first occurrence of a field wins; a line fills at most one
    field.
    """

    def __init__(self, fields: Sequence[HeaderField]):
        self._fields = tuple(fields)
        self.matches: dict[str, re.Match] = {}
        self.state = ScanState.SEEKING_HEADER

    def feed(self, line: str) -> ScanState:
        """Scan one line and return the resulting state."""
        line = (line or "").strip()
        if self.state is ScanState.DONE or not line:
            return self.state

        for field in self._fields:
            if field.name in self.matches:
                continue
            match = field.pattern.match(line)
            if match:
                self.matches[field.name] = match
                break

        if len(self.matches) == len(self._fields):
            self.state = ScanState.DONE
        return self.state

    def require(self) -> dict[str, re.Match]:
        """Return the collected fields, failing on the first missing one."""
        for field in self._fields:
            if field.name not in self.matches:
                raise HeaderFieldMissingError(
                    f"Statement header field not found: {field.name}",
                    field=field.name,
                )
        return dict(self.matches)


def scan_header(lines: Sequence[str], fields: Sequence[HeaderField]) -> dict[str, re.Match]:
    """Scan lines until all header fields are found or input runs out."""
    scanner = HeaderScanner(fields)
    for line in lines:
        if scanner.feed(line) is ScanState.DONE:
            break
    return scanner.require()


# =============================================================================
# SECTIONS
# =============================================================================

@dataclass(frozen=True)
class SectionSpec:
    """
    Markers delimiting one statement section.

    Attributes:
        name: Section name used in logs and errors
        start_markers: Exact lines that must be seen, in order, before the
            section starts
        column_header: Whole-line pattern of the column header to skip
        end: Whole-line pattern terminating the section
        ignored_fragments: Lines containing any of these are not records
    """

    name: str
    start_markers: tuple[str, ...]
    column_header: re.Pattern
    end: re.Pattern
    ignored_fragments: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScanPosition:
    """State of a section scan."""

    state: ScanState = ScanState.SEEKING_SECTION_START
    markers_seen: int = 0


def transition(spec: SectionSpec, position: ScanPosition, line: str) -> tuple[ScanPosition, LineAction]:
    """
    Advance a section scan by one stripped line.

    Args:
        spec: Section being scanned
        position: Current scan position
        line: Stripped statement line

    Returns:
        New position and the action to take for this line
    """
    if position.state is ScanState.DONE or not line:
        return position, LineAction.SKIP

    if position.state is ScanState.SEEKING_SECTION_START:
        if line != spec.start_markers[position.markers_seen]:
            return position, LineAction.SKIP
        seen = position.markers_seen + 1
        if seen == len(spec.start_markers):
            return ScanPosition(ScanState.IN_SECTION, seen), LineAction.SKIP
        return ScanPosition(ScanState.SEEKING_SECTION_START, seen), LineAction.SKIP

    if spec.column_header.fullmatch(line):
        return position, LineAction.SKIP
    if spec.end.fullmatch(line):
        return ScanPosition(ScanState.DONE, position.markers_seen), LineAction.SKIP
    if any(fragment in line for fragment in spec.ignored_fragments):
        return position, LineAction.SKIP
    return position, LineAction.DISPATCH


def single_line(parse_line: Callable[[str], Any]) -> Extractor:
    """Adapt a one-line parser to the extractor interface."""

    def extract(lines: Sequence[str], index: int) -> ExtractedRecord:
        return ExtractedRecord(parse_line(lines[index].strip()), 1)

    return extract


def scan_section(
    lines: Sequence[str],
    spec: SectionSpec,
    extract: Extractor,
    line_numbers: Optional[Sequence[int]] = None,
) -> list:
    """
    Extract every record of one section.

    A section that never starts yields an empty list.

    Args:
        lines: Statement lines
        spec: Section markers
        extract: Extractor called for each dispatched line
        line_numbers: 1-based source line numbers of ``lines`` when they were
            filtered from a longer document; defaults to positions

    Returns:
        Records in statement order

    Raises:
        StatementParseError: If an extractor fails, located at the failing line
    """
    records = []
    position = ScanPosition()
    index = 0
    while index < len(lines) and position.state is not ScanState.DONE:
        line = (lines[index] or "").strip()
        position, action = transition(spec, position, line)
        if action is not LineAction.DISPATCH:
            index += 1
            continue

        line_number = line_numbers[index] if line_numbers is not None else index + 1
        try:
            extracted = extract(lines, index)
        except StatementParseError as e:
            e.locate(line_number=line_number, line=line, section=spec.name)
            raise
        except ValueError as e:
            raise StatementParseError(
                f"Exception while parsing line {line_number}: '{line}'",
                line_number=line_number,
                line=line,
                section=spec.name,
            ) from e
        records.append(extracted.record)
        index += extracted.consumed

    logger.debug(
        "section_scanned",
        section=spec.name,
        records=len(records),
        state=position.state.value,
    )
    return records
