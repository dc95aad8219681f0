"""Interactive terminal prompts.

All reads and writes go through a Console so the whole flow can be driven
from a script in tests.
"""

import getpass
from typing import Protocol

from models import (
    Accept,
    Category,
    CategoryCatalog,
    Duration,
    Entry,
    PromptResponse,
    SkipDecision,
    SkipAlways,
    SkipOnce,
    Split,
    Tag,
    TagAccept,
    TagPromptResponse,
    TagSkip,
    Worklog,
)
from tickets import is_ticket_pattern


class QuitRequested(Exception):
    """User asked to stop the run."""


class Console(Protocol):
    def read_line(self) -> str: ...

    def read_secret(self) -> str: ...

    def write(self, text: str) -> None: ...


class StdioConsole:
    """Console on the real terminal. EOF reads as an empty line."""

    def read_line(self) -> str:
        try:
            return input().strip()
        except EOFError:
            return ""

    def read_secret(self) -> str:
        try:
            return getpass.getpass("").strip()
        except EOFError:
            return ""

    def write(self, text: str) -> None:
        print(text, end="", flush=True)


def say(console: Console, line: str = "") -> None:
    console.write(line + "\n")


def ask(console: Console, question: str) -> str:
    console.write(question)
    return console.read_line().strip()


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


def prompt_secret(console: Console, question: str) -> str:
    console.write(question)
    return console.read_secret().strip()


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------


def prompt_entry(console: Console, entry: Entry) -> PromptResponse:
    """Ask what to do with a project that has no mapping yet."""
    say(console)
    say(console, f"{entry.project} - {entry.total.round_5min()}")
    for tag in entry.tags:
        say(console, f"    [{tag.name}] {tag.duration.round_5min()}")

    options = "  [ticket] assign"
    if entry.tags:
        options += " | [s]plit by tag"
    options += " | [n] skip | [S]kip always | [q]uit"

    while True:
        say(console, options)
        answer = ask(console, "> ")

        if answer in ("", "n"):
            return SkipOnce()
        if answer == "S":
            return SkipAlways()
        if answer == "q":
            raise QuitRequested()
        if answer == "s":
            if entry.tags:
                return Split()
            say(console, "  [!] Nothing to split: this entry has no tags")
            continue

        ticket = answer.upper()
        if is_ticket_pattern(ticket):
            return Accept(ticket)
        say(console, f"  [!] Not a ticket key: {answer}")


def prompt_tag(console: Console, project: str, tag: Tag) -> TagPromptResponse:
    """Ask which ticket a single tag goes to while splitting an entry."""
    default = tag.name if is_ticket_pattern(tag.name) else None

    say(console)
    say(console, f"{project} [{tag.name}] - {tag.duration.round_5min()}")
    hint = f"[Enter] {default}" if default else "[Enter] skip"

    while True:
        say(console, f"  [ticket] assign | {hint} | [n] skip")
        answer = ask(console, "> ")

        if answer == "":
            return TagAccept(default) if default else TagSkip()
        if answer == "n":
            return TagSkip()

        ticket = answer.upper()
        if is_ticket_pattern(ticket):
            return TagAccept(ticket)
        say(console, f"  [!] Not a ticket key: {answer}")


def prompt_description(console: Console, ticket: str) -> str:
    return ask(console, f"  Description for {ticket} (optional): ")


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


def prompt_category(
    console: Console, worklog: Worklog, catalog: CategoryCatalog, current: str | None
) -> tuple[Category, bool] | None:
    """Pick a category for one worklog.

    Returns None when the user asks to refresh the list, otherwise:
        - the chosen category
        - True if the user pinned it for this ticket ("2!")
    """
    options = catalog.options
    selected = catalog.find(current) if current else None
    if selected is None:
        selected = options[0]

    say(console)
    say(console, f"Category for {worklog.ticket} ({worklog.source}, {worklog.duration}):")
    for i, option in enumerate(options, start=1):
        marker = " *" if option == selected else ""
        say(console, f"  {i}. {option.name}{marker}")
    say(console, "  [Enter] keep * | [N]! always use for this ticket | [r] refresh from API")

    while True:
        answer = ask(console, "> ")
        if answer == "":
            return selected, False
        if answer == "r":
            return None

        pin = answer.endswith("!")
        number = answer[:-1] if pin else answer
        if number.isdigit() and 1 <= int(number) <= len(options):
            return options[int(number) - 1], pin
        say(console, f"  [!] Choose 1-{len(options)}")


# ---------------------------------------------------------------------------
# Confirmation
# ---------------------------------------------------------------------------


def print_summary(
    console: Console, date: str, posts: list[Worklog], skips: list[SkipDecision]
) -> None:
    total = sum((w.duration for w in posts), Duration())
    skipped = sum((s.duration for s in skips), Duration())
    say(console)
    say(console, f"[*] {date}: {len(posts)} worklog(s), {total} to post, {len(skips)} skipped ({skipped})")


def confirm_post(
    console: Console, posts: list[Worklog], skips: list[SkipDecision], target: Duration
) -> bool:
    """Show everything that is about to be posted. True means go ahead."""
    say(console)
    say(console, "=== Worklogs to Post ===")
    for w in posts:
        category = w.category.name if w.category else ""
        say(console, f"{w.ticket:<12} {w.source:<20} {str(w.duration):>8}  {category}")
        if w.description:
            say(console, f"{'':<12} {w.description}")
    total = sum((w.duration for w in posts), Duration())
    say(console, f"{'':<33} ------")
    say(console, f"{'Total:':<33} {str(total):>8}  (target: {target})")

    if skips:
        say(console)
        say(console, "=== Skipped ===")
        for s in skips:
            say(console, f"{s.project:<33} {str(s.duration):>8}")

    say(console)
    say(console, "[Enter] post | [n] skip day")
    answer = ask(console, "> ")
    return answer != "n"
