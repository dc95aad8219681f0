"""Turn a Watson entry into worklog decisions.

`process_entry` does no I/O of its own: everything interactive comes in
through the `prompt`, `tag_prompt` and `describe` callbacks, so the same
function drives the CLI and the tests.
"""

from typing import Callable

from models import (
    Accept,
    AutoExtractMapping,
    Decision,
    Entry,
    Mapping,
    PostDecision,
    PromptResponse,
    SkipAlways,
    SkipDecision,
    SkipMapping,
    SkipOnce,
    Split,
    Tag,
    TagAccept,
    TagPromptResponse,
    TagSkip,
    TicketMapping,
)
from tickets import is_ticket_pattern


def _skip_tag(tag: Tag) -> TagPromptResponse:
    return TagSkip()


def _no_description(ticket: str) -> str:
    return ""


def _post_entry(entry: Entry, ticket: str, describe: Callable[[str], str]) -> PostDecision:
    return PostDecision(
        ticket=ticket,
        duration=entry.total.round_5min(),
        source=entry.project,
        description=describe(ticket),
    )


def _post_tag(entry: Entry, tag: Tag, ticket: str, description: str) -> PostDecision:
    return PostDecision(
        ticket=ticket,
        duration=tag.duration.round_5min(),
        source=f"{entry.project}:{tag.name}",
        description=description,
    )


def process_entry(
    entry: Entry,
    cached: Mapping | None,
    prompt: Callable[[Entry], PromptResponse],
    tag_prompt: Callable[[Tag], TagPromptResponse] = _skip_tag,
    describe: Callable[[str], str] = _no_description,
) -> tuple[list[Decision], Mapping | None]:
    """Decide what to do with one entry.

    Returns:
        - decisions: worklogs to post and/or skipped time
        - mapping: new policy to store for entry.project, or None to leave it
    """
    if isinstance(cached, SkipMapping):
        return [SkipDecision(project=entry.project, duration=entry.total)], None

    if isinstance(cached, TicketMapping):
        return [_post_entry(entry, cached.ticket, describe)], None

    if isinstance(cached, AutoExtractMapping):
        decisions: list[Decision] = [
            _post_tag(entry, tag, tag.name, "")
            for tag in entry.tags
            if is_ticket_pattern(tag.name)
        ]
        return decisions, None

    response = prompt(entry)

    if isinstance(response, Accept):
        return [_post_entry(entry, response.ticket, describe)], TicketMapping(response.ticket)

    if isinstance(response, SkipOnce):
        return [], None

    if isinstance(response, SkipAlways):
        return [SkipDecision(project=entry.project, duration=entry.total)], SkipMapping()

    if isinstance(response, Split):
        decisions = []
        for tag in entry.tags:
            answer = tag_prompt(tag)
            if isinstance(answer, TagAccept):
                decisions.append(_post_tag(entry, tag, answer.ticket, describe(answer.ticket)))

        # Skipped tags count too: if every tag looks like a ticket, next time
        # this project is auto-extracted without asking.
        all_tickets = bool(entry.tags) and all(is_ticket_pattern(tag.name) for tag in entry.tags)
        return decisions, AutoExtractMapping() if all_tickets else None

    raise ValueError(f"Unknown prompt response: {response!r}")
