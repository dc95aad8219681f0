"""Data models for Watson to Tempo sync."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Duration:
    """A non-negative amount of time in whole seconds."""

    seconds: int = 0

    @classmethod
    def of_hms(cls, hours: int = 0, mins: int = 0, secs: int = 0) -> "Duration":
        return cls(hours * 3600 + mins * 60 + secs)

    @property
    def minutes(self) -> int:
        return self.seconds // 60

    def round_5min(self) -> "Duration":
        """Round to the nearest 5 minutes, ties going up (28m -> 30m, 33m -> 35m)."""
        rounded = ((self.minutes + 2) // 5) * 5
        return Duration(rounded * 60)

    def __add__(self, other: "Duration") -> "Duration":
        return Duration(self.seconds + other.seconds)

    def __radd__(self, other):
        # sum() starts from 0
        if other == 0:
            return self
        return NotImplemented

    def __str__(self) -> str:
        hours, mins = divmod(self.minutes, 60)
        if hours == 0:
            return f"{mins}m"
        if mins == 0:
            return f"{hours}h"
        return f"{hours}h {mins}m"


# ---------------------------------------------------------------------------
# Watson report
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Tag:
    """A tagged slice of a Watson project entry."""

    name: str
    duration: Duration


@dataclass(frozen=True)
class Entry:
    """One project line of a Watson report."""

    project: str
    total: Duration
    tags: tuple[Tag, ...] = ()


@dataclass(frozen=True)
class Report:
    """A parsed `watson report` for one date range."""

    date_range: str
    entries: tuple[Entry, ...]
    total: Duration


# ---------------------------------------------------------------------------
# Project mappings (persisted policy per Watson project)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TicketMapping:
    """Always log this project to one ticket."""

    ticket: str


@dataclass(frozen=True)
class SkipMapping:
    """Never log this project."""


@dataclass(frozen=True)
class AutoExtractMapping:
    """Log one worklog per ticket-shaped tag, without prompting."""


Mapping = TicketMapping | SkipMapping | AutoExtractMapping


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PostDecision:
    """Post `duration` (already rounded) to `ticket`."""

    ticket: str
    duration: Duration
    source: str  # Watson project, or project:tag
    description: str = ""


@dataclass(frozen=True)
class SkipDecision:
    project: str
    duration: Duration


Decision = PostDecision | SkipDecision


# Answers to the entry prompt


@dataclass(frozen=True)
class Accept:
    ticket: str


@dataclass(frozen=True)
class SkipOnce:
    pass


@dataclass(frozen=True)
class SkipAlways:
    pass


@dataclass(frozen=True)
class Split:
    pass


PromptResponse = Accept | SkipOnce | SkipAlways | Split


# Answers to the per-tag prompt during a split


@dataclass(frozen=True)
class TagAccept:
    ticket: str


@dataclass(frozen=True)
class TagSkip:
    pass


TagPromptResponse = TagAccept | TagSkip


# ---------------------------------------------------------------------------
# Tempo
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Category:
    """One value of the Tempo "Category" work attribute."""

    value: str
    name: str


@dataclass
class CategoryCatalog:
    """Category values fetched from Tempo."""

    options: list[Category] = field(default_factory=list)
    fetched_at: str = ""  # ISO timestamp

    def find(self, value: str) -> Category | None:
        for option in self.options:
            if option.value == value:
                return option
        return None


@dataclass(frozen=True)
class WorkAttribute:
    key: str
    name: str
    type: str = ""


@dataclass(frozen=True)
class IssueInfo:
    """What we need from a Jira issue to log time against it."""

    numeric_id: int
    account_reference: str | None


@dataclass
class Worklog:
    """A decision enriched with everything needed to post it."""

    ticket: str
    duration: Duration
    source: str
    description: str = ""
    category: Category | None = None
    issue_id: int | None = None
    account_key: str | None = None


@dataclass(frozen=True)
class PostResponse:
    status: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@dataclass
class PostOutcome:
    """Result of posting one worklog."""

    ticket: str
    ok: bool
    status: int | None = None  # None when the request never got a response
    body: str = ""
