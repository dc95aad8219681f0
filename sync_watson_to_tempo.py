"""
Sync Watson time tracking to Jira Tempo worklogs.

Usage:
    # Today
    python sync_watson_to_tempo.py

    # Yesterday (relative offset)
    python sync_watson_to_tempo.py -1

    # A specific day
    python sync_watson_to_tempo.py 2026-02-03

    # A range, one day at a time
    python sync_watson_to_tempo.py --from 2026-02-02 --to 2026-02-06
"""

import argparse
import os

from cache import ConfigError, default_path, load, save
from clients import ApiError, JiraClient, TempoClient
from pipeline import ensure_account_id, ensure_credentials, run
from prompts import QuitRequested, StdioConsole, say
from report import ParseError, ReportSourceError
from utils import resolve_dates


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Sync Watson time tracking to Jira Tempo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Today
    python sync_watson_to_tempo.py

    # Yesterday
    python sync_watson_to_tempo.py -1

    # Range (inclusive)
    python sync_watson_to_tempo.py --from 2026-02-02 --to 2026-02-06
        """,
    )

    parser.add_argument(
        "day", nargs="?", default=None, help="Day to sync (YYYY-MM-DD or -N days ago), default: today"
    )
    parser.add_argument("--from", dest="date_from", help="Range start (YYYY-MM-DD)")
    parser.add_argument("--to", dest="date_to", help="Range end (YYYY-MM-DD)")
    parser.add_argument("--config", help="Config file (default: ~/.config/watson-tempo/config.json)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        dates = resolve_dates(args.day, args.date_from, args.date_to)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    config_path = os.path.expanduser(args.config) if args.config else default_path()
    console = StdioConsole()

    try:
        cache = load(config_path)
    except ConfigError as e:
        print(f"[!] ERROR: {e}")
        print("    Fix or remove the file; it was left untouched.")
        return 1

    try:
        if not cache.has_credentials():
            cache = ensure_credentials(cache, console)
            save(config_path, cache)
            say(console, f"[+] Config saved to {config_path}")

        jira = JiraClient(cache)
        tempo = TempoClient(cache)

        cache = ensure_account_id(cache, jira, console)
        save(config_path, cache)

        run(cache, dates, console, jira, tempo, save=lambda c: save(config_path, c))
    except (ParseError, ReportSourceError, ApiError) as e:
        print()
        print(f"[!] ERROR: {e}")
        return 1
    except QuitRequested:
        print()
        print("[*] Quit. Days already finished are saved.")
        return 0

    print()
    print("[*] Done.")
    return 0


if __name__ == "__main__":
    exit(main())
