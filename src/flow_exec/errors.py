"""Exception taxonomy. Nothing here is retried."""


class ExecError(RuntimeError):
    """Base class for every failure raised by flow-exec."""


class LaunchError(ExecError):
    """The executable is missing, not executable, or the OS refused to start it."""

    def __init__(self, executable: str, reason: str):
        self.executable = executable
        self.reason = reason
        super().__init__(f"Cannot start '{executable}': {reason}")


class ExitCodeMismatch(ExecError):
    """The process exited with a code other than the one required."""

    def __init__(
        self,
        exit_code: int,
        expected: int,
        stderr: str | None = None,
        output: str | None = None,
    ):
        self.exit_code = exit_code
        self.expected = expected
        self.stderr = stderr
        self.output = output
        message = f"Process exited with exit code {exit_code} (expected {expected})"
        if stderr:
            message += f": {stderr}"
        super().__init__(message)


class OutputNotCaptured(ExecError):
    """Captured output was read from a stream that was never captured."""

    def __init__(self):
        super().__init__("Output was ignored")


class ResolutionFailure(ExecError):
    """The executable-search helper failed for a reason other than 'not found'."""

    def __init__(self, exit_code: int, message: str):
        self.exit_code = exit_code
        self.message = message
        super().__init__(message or f"executable search failed with exit code {exit_code}")


class ExecutableNotFound(ExecError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Could not find executable {name}")


class ConfigError(ExecError):
    pass
