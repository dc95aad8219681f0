"""Utility functions for Watson to Tempo sync."""

from datetime import date, datetime, timedelta

from patterns import Patterns


def parse_date(value: str) -> date:
    """Parse YYYY-MM-DD, raising ValueError with a readable message."""
    if not Patterns.DATE_FORMAT.match(value):
        raise ValueError(f"Invalid date '{value}'. Expected YYYY-MM-DD (e.g., 2026-02-03)")
    return datetime.strptime(value, "%Y-%m-%d").date()


def get_date_range(date_from: str, date_to: str) -> list[str]:
    """All dates from date_from to date_to, both inclusive."""
    start = parse_date(date_from)
    end = parse_date(date_to)
    if end < start:
        raise ValueError(f"--from {date_from} is after --to {date_to}")
    return [(start + timedelta(days=i)).isoformat() for i in range((end - start).days + 1)]


def resolve_dates(
    day: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    now: date | None = None,
) -> list[str]:
    """Work out which days to sync from the command line arguments.

    Args:
        day: YYYY-MM-DD, or a negative offset like -1 for yesterday
        date_from: Range start (YYYY-MM-DD), requires date_to
        date_to: Range end (YYYY-MM-DD), requires date_from
        now: Reference date for offsets (default: today)

    Returns:
        List of YYYY-MM-DD strings, oldest first
    """
    if day is not None and (date_from or date_to):
        raise ValueError("A single day and --from/--to are mutually exclusive")
    if bool(date_from) != bool(date_to):
        raise ValueError("--from and --to must be used together")

    if date_from and date_to:
        return get_date_range(date_from, date_to)

    reference = now or date.today()
    if day is None:
        return [reference.isoformat()]
    if Patterns.DAY_OFFSET.match(day):
        return [(reference + timedelta(days=int(day))).isoformat()]
    return [parse_date(day).isoformat()]
