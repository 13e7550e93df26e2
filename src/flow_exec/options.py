"""Start/wait options, the explicit execution context and process-wide defaults.

The process-wide defaults are plain module state with no locking: a call uses
whatever value is current when it reads it, so reconfiguring them while other
threads launch processes races with those launches. Pass an ExecContext (or
explicit options) to avoid depending on them.
"""

from dataclasses import dataclass, field
from enum import Enum


class OutputMode(Enum):
    IGNORE = "ignore"
    CAPTURE = "capture"


@dataclass(frozen=True)
class StartOptions:
    output: OutputMode = OutputMode.IGNORE
    error_output: OutputMode = OutputMode.IGNORE
    suppress_echo: bool = False
    cwd: str | None = None
    env: dict[str, str] | None = field(default=None, hash=False)
    encoding: str | None = None


@dataclass(frozen=True)
class WaitOptions:
    """expected_exit_code=None accepts any exit code."""

    expected_exit_code: int | None = 0

    @classmethod
    def any_exit_code(cls) -> "WaitOptions":
        return cls(expected_exit_code=None)


_default_start_options = StartOptions()
_default_wait_options = WaitOptions()


def get_default_start_options() -> StartOptions:
    return _default_start_options


def set_default_start_options(options: StartOptions) -> None:
    """Replace the process-wide default StartOptions. Not synchronized."""
    global _default_start_options
    _default_start_options = options


def get_default_wait_options() -> WaitOptions:
    return _default_wait_options


def set_default_wait_options(options: WaitOptions) -> None:
    """Replace the process-wide default WaitOptions. Not synchronized."""
    global _default_wait_options
    _default_wait_options = options


@dataclass(frozen=True)
class ExecContext:
    """Configuration threaded through calls.

    Fields left as None fall back to the process-wide defaults at the moment
    they are resolved.
    """

    start_options: StartOptions | None = None
    wait_options: WaitOptions | None = None
    which_helper: str | None = None

    def resolve_start_options(self) -> StartOptions:
        if self.start_options is not None:
            return self.start_options
        return get_default_start_options()

    def resolve_wait_options(self) -> WaitOptions:
        if self.wait_options is not None:
            return self.wait_options
        return get_default_wait_options()
