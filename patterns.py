"""Centralized regex patterns for worklog sync."""

import re

# "1h 20m 39s", "51m 02s", "12s" - every part optional, always in h/m/s order
_DURATION = r"(?:(?P<h>\d+)h *)?(?:(?P<m>\d+)m *)?(?:(?P<s>\d+)s *)?"
_DURATION_GROUP = r"(?P<duration>" + _DURATION + r")"


class Patterns:
    """Regex patterns used throughout the sync process."""

    # Jira ticket key: ABC-123
    TICKET_KEY = re.compile(r"^[A-Z]+-[0-9]+$")

    # Duration on its own
    DURATION = re.compile(_DURATION)

    # Watson report project line: "cr - 51m 02s"
    PROJECT_LINE = re.compile(r"(?P<name>[^\s-]+) *- *" + _DURATION_GROUP)

    # Watson report tag line: "\t[FK-3080     33m 35s]"
    TAG_LINE = re.compile(r"\t\[(?P<name>[^\s\]]+) *" + _DURATION_GROUP + r"\]")

    # Watson report footer: "Total: 2h 37m 27s"
    TOTAL_LINE = re.compile(r"Total: " + _DURATION_GROUP)

    # Date format: YYYY-MM-DD
    DATE_FORMAT = re.compile(r"^\d{4}-\d{2}-\d{2}$")

    # Relative day offset: -1, -7
    DAY_OFFSET = re.compile(r"^-\d+$")
