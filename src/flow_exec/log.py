"""Timestamped console output, process trace lines + GitHub Actions formatting."""

import os
import sys
import threading
from datetime import datetime

import click

# Guards every multi-part console write so lines from concurrent
# launches never interleave.
_console_lock = threading.Lock()


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


def _is_github_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS") == "true"


def info(msg: str) -> None:
    with _console_lock:
        print(f"[{_timestamp()}] {msg}", flush=True)


def error(msg: str) -> None:
    with _console_lock:
        if _is_github_actions():
            print(f"::error::{msg}", flush=True)
        print(f"[{_timestamp()}] ERROR: {msg}", file=sys.stderr, flush=True)


def trace(pid: int, executable: str, command_line: str) -> None:
    """Echo one launched process: pid, quoted executable, command line."""
    with _console_lock:
        click.echo(f"[{_timestamp()}] ", nl=False, err=True)
        click.echo(click.style(f"[{pid}] ", fg="yellow"), nl=False, err=True)
        click.echo(click.style(f'"{executable}"', fg="cyan", bold=True), nl=False, err=True)
        if command_line:
            click.echo(f" {command_line}", nl=False, err=True)
        click.echo("", err=True)
