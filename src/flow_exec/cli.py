"""Click entry point — all commands."""

import os
import sys
from dataclasses import replace

import click

from flow_exec import __version__, args, config, log, process, resolve
from flow_exec.errors import ExecError, ExitCodeMismatch
from flow_exec.options import OutputMode, WaitOptions


def _load_config() -> config.Config:
    try:
        return config.load()
    except ExecError as e:
        log.error(str(e))
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="flow-exec")
def main():
    """Run external programs and resolve executables."""


@main.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.option("--capture", "-c", is_flag=True, help="Capture stdout and print it after exit")
@click.option("--capture-stderr", is_flag=True, help="Capture stderr and print it after exit")
@click.option("--quiet", "-q", is_flag=True, help="Do not echo the launched command")
@click.option("--expect", default=None, type=int, help="Required exit code (default 0)")
@click.option("--any-exit", is_flag=True, help="Accept any exit code")
@click.option("--raw", is_flag=True, help="Pass ARGS as one pre-escaped command line")
@click.argument("executable")
@click.argument("arguments", nargs=-1, type=click.UNPROCESSED)
def run(capture, capture_stderr, quiet, expect, any_exit, raw, executable, arguments):
    """Run EXECUTABLE with ARGUMENTS and exit with its exit code.

    An unexpected exit code is reported as an error; captured stdout is still
    printed and the child's code is kept (1 when the child exited 0).
    """
    if expect is not None and any_exit:
        click.echo("Error: --expect and --any-exit are mutually exclusive", err=True)
        sys.exit(2)

    cfg = _load_config()
    start_options = cfg.start_options()
    if capture:
        start_options = replace(start_options, output=OutputMode.CAPTURE)
    if capture_stderr:
        start_options = replace(start_options, error_output=OutputMode.CAPTURE)
    if quiet:
        start_options = replace(start_options, suppress_echo=True)

    if any_exit:
        wait_options = WaitOptions.any_exit_code()
    else:
        wait_options = WaitOptions(expected_exit_code=0 if expect is None else expect)

    command = " ".join(arguments) if raw else list(arguments)

    try:
        if not os.path.dirname(executable):
            executable = resolve.which(executable, context=cfg.context(), extensions=cfg.extensions or None)
        finished = process.run(executable, command, start_options, wait_options)
    except ExitCodeMismatch as e:
        if e.output:
            click.echo(e.output)
        log.error(str(e))
        sys.exit(e.exit_code or 1)
    except ExecError as e:
        log.error(str(e))
        sys.exit(1)

    if isinstance(finished.output, process.Captured) and finished.output.text:
        click.echo(finished.output.text)
    if isinstance(finished.error_output, process.Captured) and finished.error_output.text:
        click.echo(finished.error_output.text, err=True)
    sys.exit(finished.exit_code)


@main.command()
@click.argument("name")
def which(name):
    """Print the full path of executable NAME."""
    cfg = _load_config()
    try:
        path = resolve.try_which(name, context=cfg.context(), extensions=cfg.extensions or None)
    except ExecError as e:
        log.error(str(e))
        sys.exit(2)
    if path is None:
        log.error(f"Could not find executable {name}")
        sys.exit(1)
    click.echo(path)


@main.command()
@click.argument("arguments", nargs=-1, type=click.UNPROCESSED)
def quote(arguments):
    """Print ARGUMENTS encoded as a single command line."""
    click.echo(args.join_arguments(arguments))


@main.command()
@click.argument("command_line")
def split(command_line):
    """Print the arguments COMMAND_LINE parses into, one per line."""
    for arg in args.split_command_line(command_line):
        click.echo(arg)


if __name__ == "__main__":
    main()
