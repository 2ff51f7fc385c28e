"""Tests for the header and section scanning state machine."""

import re

import pytest

from revolut_ledger.exceptions import HeaderFieldMissingError, LineParseError, StatementParseError
from revolut_ledger.parsing.scanner import (
    ExtractedRecord,
    HeaderField,
    HeaderScanner,
    LineAction,
    ScanPosition,
    ScanState,
    SectionSpec,
    scan_header,
    scan_section,
    single_line,
    transition,
)

NAME = HeaderField("name", re.compile(r"Name\s+(?P<name>.+)"))
NUMBER = HeaderField("number", re.compile(r"Number\s+(?P<number>\d+)"))

SPEC = SectionSpec(
    name="items",
    start_markers=("Part A", "Items"),
    column_header=re.compile(r"Item\s+Count"),
    end=re.compile(r"Total\s+.*"),
    ignored_fragments=("internal transfer",),
)


def _parse_item(line: str) -> str:
    if not line.startswith("item"):
        raise LineParseError(f"Not an item: '{line}'", line=line)
    return line


class TestHeaderScanner:
    """Tests for HeaderScanner."""

    def test_starts_seeking_header(self):
        scanner = HeaderScanner([NAME, NUMBER])

        assert scanner.state is ScanState.SEEKING_HEADER

    def test_done_once_all_fields_seen(self):
        scanner = HeaderScanner([NAME, NUMBER])

        assert scanner.feed("Name Jane") is ScanState.SEEKING_HEADER
        assert scanner.feed("") is ScanState.SEEKING_HEADER
        assert scanner.feed("Number 42") is ScanState.DONE
        assert scanner.require()["number"].group("number") == "42"

    def test_first_occurrence_wins(self):
        """Later lines never overwrite a field already found."""
        matches = scan_header(["Name Jane", "Name Other", "Number 1"], [NAME, NUMBER])

        assert matches["name"].group("name") == "Jane"

    def test_missing_field_is_named(self):
        with pytest.raises(HeaderFieldMissingError) as exc_info:
            scan_header(["Name Jane", "something else"], [NAME, NUMBER])

        assert exc_info.value.field == "number"
        assert exc_info.value.details["field"] == "number"


class TestTransition:
    """State-by-state tests for section transitions."""

    def test_ignores_lines_before_start_markers(self):
        position, action = transition(SPEC, ScanPosition(), "Items")

        assert position.state is ScanState.SEEKING_SECTION_START
        assert position.markers_seen == 0
        assert action is LineAction.SKIP

    def test_start_markers_are_seen_in_order(self):
        position, _ = transition(SPEC, ScanPosition(), "Part A")
        assert position == ScanPosition(ScanState.SEEKING_SECTION_START, 1)

        position, action = transition(SPEC, position, "Items")
        assert position.state is ScanState.IN_SECTION
        assert action is LineAction.SKIP

    def test_start_marker_must_match_exactly(self):
        position, _ = transition(SPEC, ScanPosition(), "Part A continued")

        assert position.markers_seen == 0

    def test_in_section_dispatch_and_skips(self):
        inside = ScanPosition(ScanState.IN_SECTION, 2)

        assert transition(SPEC, inside, "item 1") == (inside, LineAction.DISPATCH)
        assert transition(SPEC, inside, "Item Count") == (inside, LineAction.SKIP)
        assert transition(SPEC, inside, "") == (inside, LineAction.SKIP)
        assert transition(SPEC, inside, "an internal transfer line") == (inside, LineAction.SKIP)

    def test_end_marker_is_whole_line(self):
        """A line merely containing the end marker text is still dispatched."""
        inside = ScanPosition(ScanState.IN_SECTION, 2)

        assert transition(SPEC, inside, "Subtotal 5")[1] is LineAction.DISPATCH
        position, action = transition(SPEC, inside, "Total 5")
        assert position.state is ScanState.DONE
        assert action is LineAction.SKIP

    def test_done_is_terminal(self):
        done = ScanPosition(ScanState.DONE, 2)

        assert transition(SPEC, done, "item 9") == (done, LineAction.SKIP)


class TestScanSection:
    """Tests for scan_section."""

    def test_collects_records_in_order(self):
        lines = ["Part A", "item 0", "Items", "Item Count", "item 1", "", "item 2", "Total 2", "item 3"]

        assert scan_section(lines, SPEC, single_line(_parse_item)) == ["item 1", "item 2"]

    def test_section_never_started(self):
        assert scan_section(["item 1", "Total 1"], SPEC, single_line(_parse_item)) == []

    def test_multi_line_records_skip_consumed_lines(self):
        lines = ["Part A", "Items", "item a", "continued", "item b", "continued", "Total 2"]

        def extract(all_lines, index):
            return ExtractedRecord(all_lines[index], consumed=2)

        assert scan_section(lines, SPEC, extract) == ["item a", "item b"]

    def test_failure_is_located(self):
        lines = ["Part A", "Items", "item 1", "garbage", "Total 1"]

        with pytest.raises(LineParseError) as exc_info:
            scan_section(lines, SPEC, single_line(_parse_item))

        assert exc_info.value.line_number == 4
        assert exc_info.value.line == "garbage"
        assert exc_info.value.section == "items"

    def test_failure_uses_source_line_numbers(self):
        lines = ["Part A", "Items", "garbage"]

        with pytest.raises(StatementParseError) as exc_info:
            scan_section(lines, SPEC, single_line(_parse_item), line_numbers=[3, 7, 12])

        assert exc_info.value.line_number == 12

    def test_value_error_is_wrapped(self):
        lines = ["Part A", "Items", "item 1"]

        def explode(line):
            raise ValueError("bad")

        with pytest.raises(StatementParseError) as exc_info:
            scan_section(lines, SPEC, single_line(explode))

        assert isinstance(exc_info.value.__cause__, ValueError)
        assert exc_info.value.line_number == 3
