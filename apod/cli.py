"""Command line front end for viewing the Astronomy Picture of the Day."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Callable, Optional, Sequence, TextIO

from .api_client import ApodClient
from .cache import DateKeyedCache
from .cancellation import CancelToken
from .config import CONFIG_PATH, ApodSettings, ConfigManager
from .logging_setup import configure_logging
from .models import FormatError, Ready, format_date, parse_date
from .pipeline import FetchCachePipeline, call_directly
from .presenter import ConsolePresenter
from .screen import ApodScreen

logger = logging.getLogger(__name__)


class PromptDateChooser:
    """Ask for a day on a text stream; a blank answer cancels."""

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> None:
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout

    def choose_date(self, current: Optional[date], token: CancelToken) -> Optional[date]:
        default = format_date(current) if current else ""
        while not token.cancelled:
            self.stdout.write(f"Date (YYYY-MM-DD) [{default}], blank to cancel: ")
            self.stdout.flush()
            answer = self.stdin.readline()
            if token.cancelled or not answer.strip():
                return None
            try:
                return parse_date(answer.strip())
            except FormatError as exc:
                self.stdout.write(f"{exc}\n")
        return None


def build_screen(
    settings: ApodSettings,
    presenter: ConsolePresenter,
    *,
    client: ApodClient | None = None,
    notify: Callable[[str], None] | None = None,
) -> ApodScreen:
    client = client or ApodClient(
        settings.api_key, settings.api_url, timeout=settings.timeout
    )
    pipeline = FetchCachePipeline(
        client,
        DateKeyedCache(settings.cache_capacity),
        runner=call_directly,
    )
    return ApodScreen(pipeline, presenter, notify=notify)


def _date_arg(value: str) -> date:
    try:
        return parse_date(value)
    except FormatError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Show NASA's Astronomy Picture of the Day")
    parser.add_argument(
        "--date",
        type=_date_arg,
        help="Day to show as YYYY-MM-DD. Defaults to today.",
    )
    parser.add_argument(
        "--choose",
        action="store_true",
        help="Prompt for the day interactively.",
    )
    parser.add_argument("--api-key", help="NASA API key. Overrides the config file.")
    parser.add_argument(
        "--config",
        type=Path,
        default=CONFIG_PATH,
        help="Path to the JSON settings file.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output to stderr as well as the log file.",
    )
    return parser


def main(
    argv: Sequence[str] | None = None,
    *,
    client: ApodClient | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    stdout = stdout or sys.stdout

    configure_logging(
        level=logging.DEBUG if args.verbose else logging.INFO, console=args.verbose
    )
    settings = ConfigManager(args.config).load()
    if args.api_key:
        settings.api_key = args.api_key

    notices: list[str] = []

    def notify(message: str) -> None:
        notices.append(message)
        sys.stderr.write(f"{message}\n")

    presenter = ConsolePresenter(stdout)
    screen = build_screen(settings, presenter, client=client, notify=notify)

    try:
        if args.choose:
            screen.choose_date(PromptDateChooser(stdin, stdout))
            if presenter.last_state is None:
                return 2 if notices else 0
        elif args.date is not None:
            if screen.select_date(args.date) is None:
                return 2
        else:
            screen.load()
    finally:
        screen.close()

    logger.info("Finished with state %r", presenter.last_state)
    return 0 if isinstance(presenter.last_state, Ready) else 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())


__all__ = ["PromptDateChooser", "build_screen", "main"]
