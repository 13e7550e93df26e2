"""Resolve an executable name to a path via the platform's search helper.

The helper is run as `<helper> <name>`. Its exit-code contract is interpreted
here and nowhere else:
  0 → stdout lists candidate paths, one per line
  1 → not found
  * → failure, diagnostics on stderr
"""

import os
import shutil
import sys

from flow_exec import process
from flow_exec.errors import ExecutableNotFound, ResolutionFailure
from flow_exec.options import ExecContext, OutputMode, StartOptions, WaitOptions

_IS_WINDOWS = sys.platform == "win32"

DEFAULT_PATHEXT = ".COM;.EXE;.BAT;.CMD"

NOT_FOUND_EXIT_CODE = 1

_HELPER_START = StartOptions(
    output=OutputMode.CAPTURE,
    error_output=OutputMode.CAPTURE,
    suppress_echo=True,
)
_HELPER_WAIT = WaitOptions.any_exit_code()


def default_helper() -> str:
    """FLOW_EXEC_WHICH → where.exe (Windows) → which on PATH."""
    env_helper = os.environ.get("FLOW_EXEC_WHICH")
    if env_helper:
        return env_helper
    if _IS_WINDOWS:
        system_root = os.environ.get("SystemRoot", r"C:\Windows")
        return os.path.join(system_root, "System32", "where.exe")
    return shutil.which("which") or "/usr/bin/which"


def _helper_for(helper: str | None, context: ExecContext | None) -> str:
    if helper:
        return helper
    if context is not None and context.which_helper:
        return context.which_helper
    return default_helper()


def windows_extensions() -> list[str]:
    pathext = os.environ.get("PATHEXT") or DEFAULT_PATHEXT
    return [e.upper() for e in pathext.split(";") if e]


def is_executable_candidate(
    path: str, extensions: list[str] | None = None, windows: bool = _IS_WINDOWS
) -> bool:
    """Windows: recognized executable extension. Elsewhere: a regular file with +x."""
    if windows:
        allowed = [e.upper() for e in extensions] if extensions else windows_extensions()
        return os.path.splitext(path)[1].upper() in allowed
    return os.path.isfile(path) and os.access(path, os.X_OK)


def _first_candidate(finished: process.FinishedProcess, extensions: list[str] | None) -> str | None:
    if finished.exit_code == 0:
        for line in finished.output.string_output.splitlines():
            candidate = line.strip()
            if candidate and is_executable_candidate(candidate, extensions):
                return candidate
        return None

    if finished.exit_code == NOT_FOUND_EXIT_CODE:
        return None

    raise ResolutionFailure(finished.exit_code, finished.error_output.string_output.strip())


def try_which(
    name: str,
    helper: str | None = None,
    context: ExecContext | None = None,
    extensions: list[str] | None = None,
) -> str | None:
    """Path of *name*, or None when the helper does not find it."""
    finished = process.run(_helper_for(helper, context), [name], _HELPER_START, _HELPER_WAIT)
    return _first_candidate(finished, extensions)


async def try_which_async(
    name: str,
    helper: str | None = None,
    context: ExecContext | None = None,
    extensions: list[str] | None = None,
) -> str | None:
    finished = await process.run_async(
        _helper_for(helper, context), [name], _HELPER_START, _HELPER_WAIT
    )
    return _first_candidate(finished, extensions)


def which(
    name: str,
    helper: str | None = None,
    context: ExecContext | None = None,
    extensions: list[str] | None = None,
) -> str:
    """Path of *name*. Raises ExecutableNotFound instead of returning None."""
    path = try_which(name, helper=helper, context=context, extensions=extensions)
    if path is None:
        raise ExecutableNotFound(name)
    return path


async def which_async(
    name: str,
    helper: str | None = None,
    context: ExecContext | None = None,
    extensions: list[str] | None = None,
) -> str:
    path = await try_which_async(name, helper=helper, context=context, extensions=extensions)
    if path is None:
        raise ExecutableNotFound(name)
    return path
