"""CLI entrypoint for symbol typing sprints."""

from __future__ import annotations

import argparse
import logging
import math
import sys
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from .models import Config, Phase, SessionResult
from .service import SprintService
from .session import BACKSPACE, ENTER, PAUSE_KEY, TypingSession, shift_hint

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
MENU_QUIT_COMMANDS = {"q"}
MENU_BACK_COMMANDS = {"b"}
FLOW_EXIT_COMMANDS = {":quit", ":exit", ":q", ":back", ":b"}
PAUSE_COMMANDS = {":p", ":pause"}
DELETE_COMMAND = ":del"
DEFAULT_DB_PATH = Path(".typesprint") / "progress.db"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging for CLI runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def _service(db_path: Path | str = DEFAULT_DB_PATH) -> SprintService:
    """Create app service with local database path."""
    return SprintService(db_path=db_path)


def run(argv: list[str] | None = None) -> int:
    """Run the CLI application."""
    parser = argparse.ArgumentParser(prog="typesprint", description="Symbol-heavy typing sprints")
    parser.add_argument("command", nargs="?", default="play", choices=["play", "stats", "config"])
    parser.add_argument("--db", type=Path, default=DEFAULT_DB_PATH, help="progress database path")
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.command == "stats":
        service = _service(args.db)
        try:
            _progress_flow(service, print)
        finally:
            service.close()
        return 0
    if args.command == "config":
        service = _service(args.db)
        try:
            _print_config(service.get_config(), print)
        finally:
            service.close()
        return 0
    return play_shell(db_path=args.db)


def play_shell(input_fn: InputFn = input, print_fn: PrintFn = print, db_path: Path | str = DEFAULT_DB_PATH) -> int:
    """Run persistent menu-driven shell."""
    service = _service(db_path)
    try:
        while True:
            print_fn("\n=== Typing Sprints ===")
            print_fn("Practice numbers and symbols with code-like snippets.")
            print_fn("1) Start sprint")
            print_fn("2) Progress")
            print_fn("3) Settings")
            print_fn("q) Quit")
            choice = input_fn("Choose: ").strip().lower()

            if choice == "1":
                _sprint_flow(service, input_fn, print_fn)
            elif choice == "2":
                _progress_flow(service, print_fn)
            elif choice == "3":
                _settings_flow(service, input_fn, print_fn)
            elif choice in MENU_QUIT_COMMANDS:
                return 0
            else:
                print_fn("Invalid choice.")
    finally:
        service.close()


def _sprint_flow(service: SprintService, input_fn: InputFn, print_fn: PrintFn) -> SessionResult | None:
    """Run one sprint, feeding each entered line to the session followed by Enter."""
    session = service.create_session()
    print_fn("\n=== Sprint ===")
    for line in session.target.split("\n"):
        print_fn(line if line else "¶")
    print_fn("\nType each line and press Enter. :p pauses, :del deletes one character, :q abandons.")

    while not session.is_done():
        _print_hint(session, print_fn)
        entered = input_fn("> ")
        command = entered.strip().lower()
        if command in FLOW_EXIT_COMMANDS:
            print_fn("Sprint abandoned. Nothing was saved.")
            return None
        if command in PAUSE_COMMANDS:
            session.handle_key(PAUSE_KEY)
            if session.phase is Phase.PAUSED:
                print_fn("Paused. Type :p to resume.")
            elif session.phase is Phase.RUNNING:
                print_fn("Resumed.")
            else:
                print_fn("Start typing before pausing.")
            continue
        if command == DELETE_COMMAND:
            session.handle_key(BACKSPACE)
            _print_metrics(session, print_fn)
            continue
        for char in entered:
            session.handle_key(char)
        session.handle_key(ENTER)
        _print_metrics(session, print_fn)

    result = service.finalize_session(session)
    _print_result(result, print_fn)
    return result


def _print_hint(session: TypingSession, print_fn: PrintFn) -> None:
    """Show the Shift+digit hint, or ask for a fix when the full line ends in a mistake."""
    char = session.current_char
    if char is None:
        print_fn("Last character is wrong. Type :del to fix it.")
        return
    digit = shift_hint(char)
    if digit is not None:
        print_fn(f"Hint: {char} is typed with Shift + {digit}")


def _print_metrics(session: TypingSession, print_fn: PrintFn) -> None:
    metrics = session.live_metrics()
    print_fn(
        f"WPM: {round(metrics.net_wpm)}  Accuracy: {round(metrics.accuracy * 100)}%  "
        f"Errors: {metrics.errors}  Time: {metrics.elapsed_ms // 1000}s  "
        f"Progress: {round(session.progress * 100)}%"
    )


def _print_result(result: SessionResult, print_fn: PrintFn) -> None:
    print_fn("\n=== Sprint Complete ===")
    print_fn(f"Net WPM: {result.net_wpm:.1f}")
    print_fn(f"Gross WPM: {result.gross_wpm:.1f}")
    print_fn(f"Accuracy: {round(result.accuracy * 100)}%")
    print_fn(f"Errors: {result.errors} of {result.attempts} keystrokes")
    print_fn(f"Duration: {result.duration_ms / 1000:.1f}s")
    if result.top_trouble:
        worst = ", ".join(_format_char(entry.char) for entry in result.top_trouble[:5])
        print_fn(f"Trouble this sprint: {worst}")


def _progress_flow(service: SprintService, print_fn: PrintFn) -> None:
    """Print recent sprints and lifetime trouble characters."""
    print_fn("\n=== Recent Sprints ===")
    results = service.list_results(limit=10)
    if not results:
        print_fn("No results yet.")
    else:
        print_fn(f"{'Date':<16} {'Net WPM':>7} {'Accuracy':>8} {'Len':>5}")
        for result in results:
            print_fn(
                f"{_format_timestamp(result.timestamp):<16} {round(result.net_wpm):>7} "
                f"{round(result.accuracy * 100):>7}% {result.length:>5}"
            )

    print_fn("\n=== Trouble Characters ===")
    worst = service.get_top_trouble(min_attempts=5, limit=8)
    if not worst:
        print_fn("Keep typing to collect stats.")
        return
    for entry in worst:
        print_fn(f"{_format_char(entry.char):<6} {round(entry.error_rate * 100):>3}% errors ({entry.attempts} tries)")


def _settings_flow(service: SprintService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Edit generation settings."""
    while True:
        config = service.get_config()
        _print_config(config, print_fn)
        print_fn("1) Sprint length")
        print_fn("2) Number-row emphasis")
        print_fn("3) Toggle trouble emphasis")
        print_fn("4) Reset settings")
        print_fn("5) Reset character stats")
        print_fn("b) Back")
        choice = input_fn("Choose: ").strip().lower()

        if choice == "1":
            value = _read_number(input_fn, print_fn, "Sprint length (chars): ")
            if value is not None:
                service.save_config(replace(config, sprint_length=int(value)))
        elif choice == "2":
            value = _read_number(input_fn, print_fn, "Number-row emphasis (1-8): ")
            if value is not None:
                service.save_config(replace(config, number_line_emphasis=min(8.0, value)))
        elif choice == "3":
            service.save_config(replace(config, emphasize_trouble=not config.emphasize_trouble))
        elif choice == "4":
            service.reset_config()
            print_fn("Settings reset.")
        elif choice == "5":
            confirm = input_fn("Type YES to forget all character stats: ").strip()
            if confirm == "YES":
                service.reset_stats()
                print_fn("Character stats cleared.")
            else:
                print_fn("Reset cancelled.")
        elif choice in MENU_BACK_COMMANDS:
            return
        else:
            print_fn("Invalid choice.")


def _print_config(config: Config, print_fn: PrintFn) -> None:
    print_fn("\n=== Settings ===")
    print_fn(f"Sprint length: {config.sprint_length} chars")
    print_fn(f"Number-row emphasis: {config.number_line_emphasis:g}x")
    print_fn(f"Emphasize trouble chars: {'on' if config.emphasize_trouble else 'off'}")
    print_fn(
        f"Weights: letters {config.weights.letters:g}, numbers {config.weights.numbers:g}, "
        f"punctuation {config.weights.punctuation:g}"
    )


def _read_number(input_fn: InputFn, print_fn: PrintFn, prompt: str) -> float | None:
    raw = input_fn(prompt).strip()
    try:
        value = float(raw)
    except ValueError:
        value = math.nan
    if not math.isfinite(value):
        print_fn("Please enter a number.")
        return None
    return value


def _format_char(char: str) -> str:
    """Return a printable label for whitespace characters."""
    return {" ": "space", "\n": "enter", "\t": "tab"}.get(char, char)


def _format_timestamp(timestamp_ms: int) -> str:
    """Format epoch milliseconds in local time."""
    try:
        dt = datetime.fromtimestamp(timestamp_ms / 1000)
    except (OverflowError, OSError, ValueError):
        return str(timestamp_ms)
    return dt.strftime("%Y-%m-%d %H:%M")


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
