"""Tests for regex patterns and ticket key matching.

These tests cover the pure parts of the sync (patterns, ticket
recognition) without Watson, Jira or Tempo.
"""

import pytest

from patterns import Patterns
from report import parse_duration
from tickets import extract_tickets, is_ticket_pattern


# ---------------------------------------------------------------------------
# TICKET_KEY / is_ticket_pattern - ABC-123, anchored both ends
# ---------------------------------------------------------------------------

class TestTicketPattern:

    @pytest.mark.parametrize("name", ["FK-3080", "CHIM-850", "LOG-16", "A-1", "PROJ-0001"])
    def test_matches(self, name):
        assert is_ticket_pattern(name)

    @pytest.mark.parametrize(
        "name",
        [
            "jack",
            "setup",
            "FK3080",       # missing hyphen
            "fk-3080",      # lowercase
            "Fk-3080",
            "FK-3080x",     # trailing garbage
            "FK-3080 ",
            " FK-3080",
            "FK-3080\n",
            "FK_3080",
            "FK--3080",
            "FK-",
            "-3080",
            "FK1-3080",     # digit in the prefix
            "",
        ],
    )
    def test_rejects(self, name):
        assert not is_ticket_pattern(name)

    def test_extract_keeps_order(self):
        tags = ["CHIM-850", "FK-3080", "jack", "liam", "FK-3083"]
        assert extract_tickets(tags) == ["CHIM-850", "FK-3080", "FK-3083"]

    def test_extract_nothing(self):
        assert extract_tickets(["review", "meeting"]) == []


# ---------------------------------------------------------------------------
# Report line patterns
# ---------------------------------------------------------------------------

class TestProjectLine:

    @pytest.mark.parametrize(
        "line, name, h, m, s",
        [
            ("packaday - 2h 28m 32s", "packaday", "2", "28", "32"),
            ("cr - 51m 02s", "cr", None, "51", "02"),
            ("architecture - 25m 46s", "architecture", None, "25", "46"),
            ("tiny - 12s", "tiny", None, None, "12"),
        ],
    )
    def test_matches(self, line, name, h, m, s):
        match = Patterns.PROJECT_LINE.fullmatch(line)
        assert match is not None
        assert match.group("name") == name
        assert (match.group("h"), match.group("m"), match.group("s")) == (h, m, s)

    @pytest.mark.parametrize(
        "line",
        [
            "my-project - 1h",   # hyphen in the name
            "two words - 1h",
            "cr 51m 02s",        # no separator
            "cr - 51x",
        ],
    )
    def test_rejects(self, line):
        assert Patterns.PROJECT_LINE.fullmatch(line) is None


class TestTagLine:

    def test_matches(self):
        match = Patterns.TAG_LINE.fullmatch("\t[FK-3080     33m 35s]")
        assert match.group("name") == "FK-3080"
        assert match.group("m") == "33"
        assert match.group("s") == "35"

    def test_duration_part_parses_on_its_own(self):
        match = Patterns.TAG_LINE.fullmatch("\t[FK-3080     1h 02s]")
        assert Patterns.DURATION.fullmatch(match.group("duration")) is not None
        assert parse_duration(match.group("duration")).seconds == 3602

    @pytest.mark.parametrize(
        "line",
        [
            "[FK-3080 33m 35s]",      # no tab
            "\t[FK-3080 33m 35s",     # no closing bracket
            "    [FK-3080 33m 35s]",  # spaces instead of tab
        ],
    )
    def test_rejects(self, line):
        assert Patterns.TAG_LINE.fullmatch(line) is None


class TestDayArguments:

    @pytest.mark.parametrize("value", ["-1", "-30"])
    def test_offset(self, value):
        assert Patterns.DAY_OFFSET.match(value)

    @pytest.mark.parametrize("value", ["1", "-", "-1d", "2026-02-03"])
    def test_not_offset(self, value):
        assert Patterns.DAY_OFFSET.match(value) is None

    def test_date_format(self):
        assert Patterns.DATE_FORMAT.match("2026-02-03")
        assert Patterns.DATE_FORMAT.match("03.02.2026") is None
