"""Day-by-day sync of Watson reports to Tempo worklogs.

For each day:
  1. Run `watson report` and parse it
  2. Turn entries into decisions (prompting for unmapped projects)
  3. Pick a category per worklog
  4. Summarize and ask for confirmation
  5. Resolve Jira issue ids / Tempo accounts (cached)
  6. Post worklogs one by one and report the result

The cache is never modified in place: run_day works on its own copy and
hands it back, and the driver saves it after every finished day.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Iterable

from cache import Cache
from clients import ApiError, JiraClient, TempoClient, jira_base_url
from models import (
    AutoExtractMapping,
    CategoryCatalog,
    Decision,
    Duration,
    Entry,
    Mapping,
    PostDecision,
    PostOutcome,
    SkipDecision,
    TicketMapping,
    Worklog,
)
from processor import process_entry
from prompts import (
    Console,
    ask,
    confirm_post,
    print_summary,
    prompt_category,
    prompt_description,
    prompt_entry,
    prompt_secret,
    prompt_tag,
    say,
)
from report import parse, watson_report

ReportSource = Callable[[str], str]


@dataclass
class DayResult:
    """Outcome of one day."""

    cache: Cache
    attempted: int = 0
    posted: int = 0
    failures: list[PostOutcome] = field(default_factory=list)
    no_account: list[str] = field(default_factory=list)


def describe_mapping(mapping: Mapping) -> str:
    if isinstance(mapping, TicketMapping):
        return mapping.ticket
    if isinstance(mapping, AutoExtractMapping):
        return "AUTO-EXTRACT"
    return "SKIP"


# ============================================================================
# Setup
# ============================================================================


def ensure_credentials(cache: Cache, console: Console) -> Cache:
    """Ask for whatever credentials are missing. Returns an updated copy."""
    if cache.has_credentials():
        return cache

    cache = cache.copy()
    say(console, "[*] First run: credentials are stored in the config file.")
    if not cache.tempo_token:
        cache.tempo_token = prompt_secret(console, "Enter Tempo API token: ")
    if not cache.jira_base_url:
        site = ask(console, "Jira site (e.g. mycompany or https://mycompany.atlassian.net): ")
        cache.jira_base_url = jira_base_url(site)
    if not cache.jira_email:
        cache.jira_email = ask(console, "Jira email: ")
    if not cache.jira_token:
        cache.jira_token = prompt_secret(console, "Enter Jira API token: ")
    return cache


def ensure_account_id(cache: Cache, jira: JiraClient, console: Console) -> Cache:
    """Look up the current user's Jira account id once and cache it."""
    if cache.jira_account_id:
        return cache
    cache = cache.copy()
    cache.jira_account_id = jira.get_current_user_id()
    say(console, f"[+] Jira account: {cache.jira_account_id}")
    return cache


# ============================================================================
# Tempo work attributes
# ============================================================================


def discover_attribute_keys(cache: Cache, tempo: TempoClient, console: Console) -> None:
    """Find the Tempo work attribute keys for Account and Category."""
    if cache.account_attr_key and cache.category_attr_key:
        return
    try:
        attributes = tempo.list_work_attributes()
    except ApiError as e:
        say(console, f"[!] WARNING: Could not list Tempo work attributes: {e}")
        return

    for attr in attributes:
        if not cache.account_attr_key and (attr.type == "ACCOUNT" or attr.name.lower() == "account"):
            cache.account_attr_key = attr.key
        elif not cache.category_attr_key and attr.name.lower() == "category":
            cache.category_attr_key = attr.key


def load_category_catalog(
    cache: Cache, tempo: TempoClient, console: Console, refresh: bool = False
) -> CategoryCatalog | None:
    """Return the cached category list, fetching it from Tempo if needed."""
    if cache.category_catalog and cache.category_catalog.options and not refresh:
        return cache.category_catalog

    discover_attribute_keys(cache, tempo, console)
    if not cache.category_attr_key:
        return None

    try:
        options = tempo.get_attribute_values(cache.category_attr_key)
    except ApiError as e:
        say(console, f"[!] WARNING: Could not fetch categories: {e}")
        return cache.category_catalog

    cache.category_catalog = CategoryCatalog(
        options=options, fetched_at=datetime.now().isoformat(timespec="seconds")
    )
    say(console, f"[+] Fetched {len(options)} categories")
    return cache.category_catalog if options else None


def choose_categories(cache: Cache, worklogs: list[Worklog], tempo: TempoClient, console: Console) -> None:
    """Attach a category to every worklog, prompting unless one is pinned."""
    catalog = load_category_catalog(cache, tempo, console)
    if not catalog:
        return

    for wl in worklogs:
        pinned = cache.category_overrides.get(wl.ticket)
        if pinned and catalog.find(pinned):
            wl.category = catalog.find(pinned)
            continue

        choice = prompt_category(console, wl, catalog, cache.ticket_categories.get(wl.ticket))
        while choice is None:
            catalog = load_category_catalog(cache, tempo, console, refresh=True) or catalog
            choice = prompt_category(console, wl, catalog, cache.ticket_categories.get(wl.ticket))

        category, pin = choice
        wl.category = category
        cache.ticket_categories[wl.ticket] = category.value
        if pin:
            cache.category_overrides[wl.ticket] = category.value


# ============================================================================
# Remote resolution & posting
# ============================================================================


def resolve_worklog(cache: Cache, wl: Worklog, jira: JiraClient, tempo: TempoClient, console: Console) -> None:
    """Fill in issue id and account key, from cache or from Jira/Tempo.

    A failed issue lookup raises ApiError; a failed account lookup only warns.
    """
    issue_id = cache.issue_ids.get(wl.ticket)
    account_key = cache.account_keys.get(wl.ticket)
    if issue_id is not None and account_key:
        wl.issue_id = issue_id
        wl.account_key = account_key
        return

    info = jira.get_issue_info(wl.ticket)
    cache.issue_ids[wl.ticket] = info.numeric_id
    wl.issue_id = info.numeric_id

    if not info.account_reference:
        say(console, f"[!] WARNING: {wl.ticket} has no Tempo account, posting without one")
        return

    try:
        wl.account_key = tempo.resolve_account_reference(info.account_reference)
    except ApiError as e:
        say(console, f"[!] WARNING: Could not resolve account for {wl.ticket}: {e}")
        return
    cache.account_keys[wl.ticket] = wl.account_key


def start_times(first: str, worklogs: list[Worklog]) -> list[str]:
    """Stack worklogs back to back, starting at `first` (HH:MM).

    Nothing starts after 23:59, so a long day never spills into the next date.
    """
    start = datetime.strptime(first, "%H:%M")
    last = start.replace(hour=23, minute=59)
    times = []
    elapsed = 0
    for wl in worklogs:
        times.append(min(start + timedelta(seconds=elapsed), last).strftime("%H:%M:%S"))
        elapsed += wl.duration.seconds
    return times


def runs_past_midnight(first: str, worklogs: list[Worklog]) -> bool:
    start = datetime.strptime(first, "%H:%M")
    elapsed = sum(wl.duration.seconds for wl in worklogs[:-1])
    return start + timedelta(seconds=elapsed) > start.replace(hour=23, minute=59)


def build_payload(cache: Cache, wl: Worklog, date: str, start_time: str) -> dict:
    attributes = []
    if wl.account_key and cache.account_attr_key:
        attributes.append({"key": cache.account_attr_key, "value": wl.account_key})
    if wl.category and cache.category_attr_key:
        attributes.append({"key": cache.category_attr_key, "value": wl.category.value})

    payload = {
        "issueId": wl.issue_id,
        "authorAccountId": cache.jira_account_id,
        "timeSpentSeconds": wl.duration.seconds,
        "startDate": date,
        "startTime": start_time,
        "description": wl.description,
    }
    if attributes:
        payload["attributes"] = attributes
    return payload


def post_worklogs(
    cache: Cache, worklogs: list[Worklog], date: str, tempo: TempoClient, console: Console
) -> list[PostOutcome]:
    """Post each worklog on its own; a failure never stops the rest."""
    if runs_past_midnight(cache.start_time, worklogs):
        say(console, f"[!] WARNING: Worklogs run past midnight from {cache.start_time}; late ones start at 23:59")
    outcomes = []
    for wl, start in zip(worklogs, start_times(cache.start_time, worklogs)):
        label = f"  {wl.ticket:<12} {str(wl.duration):>8}"
        try:
            response = tempo.post_worklog(build_payload(cache, wl, date, start))
        except ApiError as e:
            outcome = PostOutcome(ticket=wl.ticket, ok=False, status=None, body=str(e))
            say(console, f"{label}  FAILED (error): {e}")
        else:
            outcome = PostOutcome(ticket=wl.ticket, ok=response.ok, status=response.status, body=response.body)
            if response.ok:
                say(console, f"{label}  OK")
            else:
                say(console, f"{label}  FAILED ({response.status}): {response.body}")
        outcomes.append(outcome)
    return outcomes


# ============================================================================
# Day pipeline
# ============================================================================


def collect_decisions(cache: Cache, entries: Iterable[Entry], console: Console) -> list[Decision]:
    """Run every entry through the processor, in order, storing new mappings."""
    decisions: list[Decision] = []
    for entry in entries:
        new_decisions, mapping = process_entry(
            entry,
            cache.get_mapping(entry.project),
            prompt=lambda e: prompt_entry(console, e),
            tag_prompt=lambda tag: prompt_tag(console, entry.project, tag),
            describe=lambda ticket: prompt_description(console, ticket),
        )
        if mapping is not None:
            cache.set_mapping(entry.project, mapping)
            say(console, f"  [+] Saved mapping: {entry.project} -> {describe_mapping(mapping)}")
        decisions.extend(new_decisions)
    return decisions


def run_day(
    cache: Cache,
    date: str,
    console: Console,
    jira: JiraClient,
    tempo: TempoClient,
    report_source: ReportSource = watson_report,
) -> DayResult:
    """Sync one day. Returns the updated cache and what was posted."""
    cache = cache.copy()

    report = parse(report_source(date))
    say(console, f"[*] {report.date_range} ({report.total} tracked)")

    decisions = collect_decisions(cache, report.entries, console)

    worklogs = [
        Worklog(ticket=d.ticket, duration=d.duration, source=d.source, description=d.description)
        for d in decisions
        if isinstance(d, PostDecision)
    ]
    skips = [d for d in decisions if isinstance(d, SkipDecision)]

    if worklogs:
        choose_categories(cache, worklogs, tempo, console)

    print_summary(console, date, worklogs, skips)
    if not worklogs:
        say(console, "[*] Nothing to post.")
        return DayResult(cache=cache)

    target = Duration.of_hms(mins=cache.daily_target_minutes)
    if not confirm_post(console, worklogs, skips, target):
        say(console, f"[*] Skipped posting for {date}")
        return DayResult(cache=cache)

    say(console)
    say(console, "[*] Resolving issues...")
    for wl in worklogs:
        resolve_worklog(cache, wl, jira, tempo, console)
    if any(wl.account_key for wl in worklogs):
        discover_attribute_keys(cache, tempo, console)

    say(console)
    say(console, "[*] Posting worklogs...")
    outcomes = post_worklogs(cache, worklogs, date, tempo, console)

    failures = [o for o in outcomes if not o.ok]
    posted = len(outcomes) - len(failures)
    say(console)
    say(console, f"Posted {posted}/{len(outcomes)}")
    if failures:
        say(console, f"[!] Failed to post {len(failures)} worklog(s):")
        for f in failures:
            status = f.status if f.status is not None else "error"
            say(console, f"    - {f.ticket} ({status}): {f.body}")

    no_account = [wl for wl, o in zip(worklogs, outcomes) if o.ok and not wl.account_key]
    if no_account:
        say(console, f"[!] Posted with no account, set it manually in Tempo ({len(no_account)}):")
        for wl in no_account:
            say(console, f"    - {wl.ticket} {wl.duration} ({wl.source})")

    return DayResult(
        cache=cache,
        attempted=len(outcomes),
        posted=posted,
        failures=failures,
        no_account=[wl.ticket for wl in no_account],
    )


# ============================================================================
# Multi-day driver
# ============================================================================


def run(
    cache: Cache,
    dates: list[str],
    console: Console,
    jira: JiraClient,
    tempo: TempoClient,
    save: Callable[[Cache], None],
    report_source: ReportSource = watson_report,
) -> Cache:
    """Sync each date in turn, saving the cache after every day."""
    for date in dates:
        if len(dates) > 1:
            say(console)
            say(console, f"=== {date} ===")
        result = run_day(cache, date, console, jira, tempo, report_source)
        cache = result.cache
        save(cache)
    return cache
