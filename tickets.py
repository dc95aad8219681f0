"""Recognize Jira ticket keys among Watson project and tag names."""

from typing import Iterable

from patterns import Patterns


def is_ticket_pattern(name: str) -> bool:
    """True if `name` is exactly a ticket key like FK-3080."""
    return Patterns.TICKET_KEY.fullmatch(name) is not None


def extract_tickets(names: Iterable[str]) -> list[str]:
    """Keep the ticket-shaped names, in order."""
    return [name for name in names if is_ticket_pattern(name)]
