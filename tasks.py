"""Utility tasks for development workflows."""

from __future__ import annotations

import argparse
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent


def run_pytest() -> int:
    result = subprocess.run([sys.executable, "-m", "pytest"], cwd=ROOT)
    return result.returncode


def show(date: str | None = None) -> int:
    command = [sys.executable, "-m", "apod.cli", "--verbose"]
    if date:
        command += ["--date", date]
    result = subprocess.run(command, cwd=ROOT)
    return result.returncode


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Project task runner")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("test", help="Run the pytest suite")
    show_parser = sub.add_parser("show", help="Show a picture of the day in the terminal")
    show_parser.add_argument("--date", help="Day to show as YYYY-MM-DD")

    args = parser.parse_args(argv)
    if args.command == "test":
        return run_pytest()
    if args.command == "show":
        return show(args.date)
    parser.error("Unknown command")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
