"""Convenience entry points over process.start/wait with default options.

A str argument is a raw command line, a list is an argument list.
"""

import os
from collections.abc import Sequence
from dataclasses import replace

from flow_exec import process
from flow_exec.args import ArgumentVector
from flow_exec.errors import LaunchError
from flow_exec.options import ExecContext, OutputMode, StartOptions, WaitOptions

Args = str | Sequence[str] | ArgumentVector


class Executable:
    """An existing executable file, started with the context's options."""

    def __init__(self, path: str, context: ExecContext | None = None):
        if not os.path.isfile(path):
            raise LaunchError(path, "file does not exist")
        self.path = path
        self.context = context or ExecContext()

    def __repr__(self) -> str:
        return f"Executable({self.path!r})"

    def start(self, args: Args, options: StartOptions | None = None) -> process.RunningProcess:
        """Start the executable and return the running process."""
        return process.start(self.path, args, options or self.context.resolve_start_options())

    def run(
        self,
        args: Args,
        start_options: StartOptions | None = None,
        wait_options: WaitOptions | None = None,
    ) -> process.FinishedProcess:
        """Run to completion. Checks the exit code unless wait_options say otherwise."""
        return process.run(
            self.path,
            args,
            start_options or self.context.resolve_start_options(),
            wait_options or self.context.resolve_wait_options(),
        )

    async def run_async(
        self,
        args: Args,
        start_options: StartOptions | None = None,
        wait_options: WaitOptions | None = None,
    ) -> process.FinishedProcess:
        return await process.run_async(
            self.path,
            args,
            start_options or self.context.resolve_start_options(),
            wait_options or self.context.resolve_wait_options(),
        )


def execute(exe: str, args: Args, context: ExecContext | None = None) -> None:
    """Run an executable and check the exit code."""
    Executable(exe, context).run(args)


async def execute_async(exe: str, args: Args, context: ExecContext | None = None) -> None:
    await Executable(exe, context).run_async(args)


def run(exe: str, args: Args, context: ExecContext | None = None) -> process.FinishedProcess:
    """Run an executable and return the finished process. Does not check the exit code."""
    return Executable(exe, context).run(args, wait_options=WaitOptions.any_exit_code())


async def run_async(
    exe: str, args: Args, context: ExecContext | None = None
) -> process.FinishedProcess:
    return await Executable(exe, context).run_async(args, wait_options=WaitOptions.any_exit_code())


def _capturing(executable: Executable) -> StartOptions:
    return replace(executable.context.resolve_start_options(), output=OutputMode.CAPTURE)


def execute_with_output(exe: str, args: Args, context: ExecContext | None = None) -> str:
    """Run an executable, check the exit code and return its stdout."""
    executable = Executable(exe, context)
    finished = executable.run(args, start_options=_capturing(executable))
    return finished.output.string_output


async def execute_with_output_async(
    exe: str, args: Args, context: ExecContext | None = None
) -> str:
    executable = Executable(exe, context)
    finished = await executable.run_async(args, start_options=_capturing(executable))
    return finished.output.string_output
