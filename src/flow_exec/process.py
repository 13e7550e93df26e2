"""Process lifecycle — launch, concurrent capture, wait, exit-code check.

Created → Running → Exited (drains pending) → Finished | Failed.
start() raises LaunchError synchronously; wait() joins the exit wait with
every drain before producing a FinishedProcess or raising ExitCodeMismatch.
"""

import asyncio
import os
import shutil
import subprocess
import sys
from collections.abc import Sequence
from concurrent import futures
from dataclasses import dataclass

from flow_exec import log
from flow_exec.args import (
    ArgumentVector,
    RawCommandLine,
    command_line_of,
    join_arguments,
    split_command_line,
    to_argument_vector,
)
from flow_exec.capture import Drain
from flow_exec.errors import ExitCodeMismatch, LaunchError, OutputNotCaptured
from flow_exec.options import (
    OutputMode,
    StartOptions,
    WaitOptions,
    get_default_start_options,
    get_default_wait_options,
)

_IS_WINDOWS = sys.platform == "win32"


@dataclass(frozen=True)
class Ignored:
    """The stream was not captured."""

    @property
    def string_output(self) -> str:
        raise OutputNotCaptured()


@dataclass(frozen=True)
class Captured:
    text: str

    @property
    def string_output(self) -> str:
        return self.text


OutputResult = Ignored | Captured

IGNORED = Ignored()


@dataclass(frozen=True)
class FinishedProcess:
    exit_code: int
    output: OutputResult
    error_output: OutputResult


@dataclass
class RunningProcess:
    popen: subprocess.Popen
    executable: str
    command_line: str
    stdout: Drain | None = None
    stderr: Drain | None = None

    @property
    def pid(self) -> int:
        return self.popen.pid

    def drains(self) -> list[Drain]:
        return [d for d in (self.stdout, self.stderr) if d is not None]


def _check_executable(executable: str, cwd: str | None, env: dict[str, str] | None) -> None:
    """Raise LaunchError unless *executable* names an existing, runnable file."""
    if os.path.dirname(executable):
        path = executable
        if cwd and not os.path.isabs(path):
            path = os.path.join(cwd, path)
        if not os.path.isfile(path):
            raise LaunchError(executable, "file does not exist")
        if not _IS_WINDOWS and not os.access(path, os.X_OK):
            raise LaunchError(executable, "file is not executable")
    elif shutil.which(executable, path=(env or os.environ).get("PATH")) is None:
        raise LaunchError(executable, "not found on PATH")


def _os_args(executable: str, vector: ArgumentVector) -> str | list[str]:
    """What the OS receives: a command line on Windows, an argv elsewhere."""
    if _IS_WINDOWS:
        command_line = command_line_of(vector)
        full = join_arguments([executable])
        if command_line:
            full += " " + command_line
        return full
    if isinstance(vector, RawCommandLine):
        return [executable, *split_command_line(vector.text)]
    return [executable, *vector.args]


def start(
    executable: str,
    args: str | Sequence[str] | ArgumentVector,
    options: StartOptions | None = None,
) -> RunningProcess:
    """Start *executable* and begin draining every captured stream."""
    if options is None:
        options = get_default_start_options()

    vector = to_argument_vector(args)
    command_line = command_line_of(vector)
    merged_env = None
    if options.env is not None:
        merged_env = {**os.environ, **options.env}

    _check_executable(executable, options.cwd, merged_env)

    capture_stdout = options.output is OutputMode.CAPTURE
    capture_stderr = options.error_output is OutputMode.CAPTURE

    try:
        popen = subprocess.Popen(
            _os_args(executable, vector),
            executable=executable if _IS_WINDOWS else None,
            stdout=subprocess.PIPE if capture_stdout else None,
            stderr=subprocess.PIPE if capture_stderr else None,
            cwd=options.cwd,
            env=merged_env,
        )
    except OSError as e:
        raise LaunchError(executable, e.strerror or str(e)) from e

    running = RunningProcess(popen=popen, executable=executable, command_line=command_line)
    try:
        if capture_stdout:
            running.stdout = Drain(popen.stdout, f"stdout-{popen.pid}", options.encoding)
        if capture_stderr:
            running.stderr = Drain(popen.stderr, f"stderr-{popen.pid}", options.encoding)

        if not options.suppress_echo:
            log.trace(popen.pid, executable, command_line)
    except Exception:
        # the caller never receives a handle, so reap the child here
        popen.kill()
        popen.wait()
        if running.stdout is None and popen.stdout is not None:
            popen.stdout.close()
        if running.stderr is None and popen.stderr is not None:
            popen.stderr.close()
        raise
    return running


def _output_of(drain: Drain | None) -> OutputResult:
    if drain is None:
        return IGNORED
    return Captured(drain.result())


def _finish(running: RunningProcess, exit_code: int, options: WaitOptions) -> FinishedProcess:
    output = _output_of(running.stdout)
    error_output = _output_of(running.stderr)

    expected = options.expected_exit_code
    if expected is not None and exit_code != expected:
        stdout = output.text if isinstance(output, Captured) else None
        stderr = error_output.text if isinstance(error_output, Captured) else None
        raise ExitCodeMismatch(exit_code, expected, stderr, stdout)

    return FinishedProcess(exit_code=exit_code, output=output, error_output=error_output)


def wait(running: RunningProcess, options: WaitOptions | None = None) -> FinishedProcess:
    """Block until the process has exited and all drains have completed."""
    if options is None:
        options = get_default_wait_options()
    exit_code = running.popen.wait()
    futures.wait([d.future for d in running.drains()])
    return _finish(running, exit_code, options)


async def wait_async(running: RunningProcess, options: WaitOptions | None = None) -> FinishedProcess:
    """Async wait(): exit wait and drains are gathered, never raced."""
    if options is None:
        options = get_default_wait_options()
    exit_code, *_ = await asyncio.gather(
        asyncio.to_thread(running.popen.wait),
        *(asyncio.wrap_future(d.future) for d in running.drains()),
    )
    return _finish(running, exit_code, options)


def run(
    executable: str,
    args: str | Sequence[str] | ArgumentVector,
    start_options: StartOptions | None = None,
    wait_options: WaitOptions | None = None,
) -> FinishedProcess:
    return wait(start(executable, args, start_options), wait_options)


async def run_async(
    executable: str,
    args: str | Sequence[str] | ArgumentVector,
    start_options: StartOptions | None = None,
    wait_options: WaitOptions | None = None,
) -> FinishedProcess:
    return await wait_async(start(executable, args, start_options), wait_options)
