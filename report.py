"""Fetch and parse `watson report` output.

The report looks like this::

    Tue 03 February 2026 -> Tue 03 February 2026

    architecture - 25m 46s

    cr - 51m 02s
    	[FK-3080     33m 35s]
    	[FK-3083     12m 37s]

    Total: 1h 16m 48s

Parsing is all-or-nothing: any line that does not fit raises ParseError.
"""

import subprocess

from models import Duration, Entry, Report, Tag
from patterns import Patterns

WATSON_COMMAND = "watson"


class ParseError(Exception):
    """The report text does not follow the expected layout."""

    def __init__(self, message: str, line_no: int, line: str):
        super().__init__(f"line {line_no}: {message}: {line!r}")
        self.line_no = line_no
        self.line = line


class ReportSourceError(Exception):
    """Watson could not be run or exited with an error."""


def watson_report(date: str) -> str:
    """Run `watson report` for a single day and return its raw output."""
    cmd = [WATSON_COMMAND, "report", "--from", date, "--to", date, "--no-pager"]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=True)
    except FileNotFoundError:
        raise ReportSourceError(f"'{WATSON_COMMAND}' not found. Is Watson installed and on PATH?")
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or "").strip() or f"exit code {e.returncode}"
        raise ReportSourceError(f"'{' '.join(cmd)}' failed: {detail}")
    return result.stdout


def parse_duration(text: str) -> Duration:
    """Parse "1h 29m 04s" style durations; missing parts count as zero."""
    m = Patterns.DURATION.fullmatch(text)
    if not m:
        raise ValueError(f"Invalid duration: {text!r}")
    return Duration.of_hms(
        hours=int(m.group("h") or 0),
        mins=int(m.group("m") or 0),
        secs=int(m.group("s") or 0),
    )


def parse(text: str) -> Report:
    """Parse the full text of a `watson report`."""
    lines = text.split("\n")
    # Strip a trailing \r so reports saved on Windows still parse
    lines = [line[:-1] if line.endswith("\r") else line for line in lines]

    if len(lines) < 2:
        raise ParseError("report is too short", 1, text)
    date_range = lines[0]
    if lines[1] != "":
        raise ParseError("expected a blank line after the date range", 2, lines[1])

    entries: list[Entry] = []
    i = 2
    while i < len(lines):
        line = lines[i]
        line_no = i + 1

        if line == "":
            i += 1
            continue

        total_match = Patterns.TOTAL_LINE.fullmatch(line)
        if total_match:
            for j, rest in enumerate(lines[i + 1:], start=line_no + 1):
                if rest.strip():
                    raise ParseError("unexpected text after the total line", j, rest)
            total = parse_duration(total_match.group("duration"))
            return Report(date_range=date_range, entries=tuple(entries), total=total)

        project_match = Patterns.PROJECT_LINE.fullmatch(line)
        if not project_match:
            raise ParseError("expected a project line or the total line", line_no, line)

        tags: list[Tag] = []
        i += 1
        while i < len(lines) and lines[i].startswith("\t"):
            tag_match = Patterns.TAG_LINE.fullmatch(lines[i])
            if not tag_match:
                raise ParseError("malformed tag line", i + 1, lines[i])
            tags.append(Tag(tag_match.group("name"), parse_duration(tag_match.group("duration"))))
            i += 1

        entries.append(
            Entry(
                project=project_match.group("name"),
                total=parse_duration(project_match.group("duration")),
                tags=tuple(tags),
            )
        )

    raise ParseError("missing 'Total:' line", len(lines), lines[-1])
