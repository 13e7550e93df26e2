"""Command-line encoding — argument lists to one escaped string and back.

Parsing rules for non-argv[0] arguments (Windows, post-2008):
  - Backslash is a normal character unless followed by a quote.
  - 2N backslashes + quote => N literal backslashes + unescaped quote.
  - 2N+1 backslashes + quote => N literal backslashes + literal quote.
  - Parsing stops at the first whitespace outside of a quoted region.
  - A closing quote followed by another quote => literal quote, still quoted.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class RawCommandLine:
    """A pre-escaped command line, passed through untouched."""

    text: str


@dataclass(frozen=True)
class ArgumentList:
    """Raw argument strings, encoded at launch time."""

    args: tuple[str, ...]


ArgumentVector = RawCommandLine | ArgumentList


def to_argument_vector(value: str | Sequence[str] | ArgumentVector) -> ArgumentVector:
    """str → RawCommandLine, any other sequence of strings → ArgumentList."""
    if isinstance(value, (RawCommandLine, ArgumentList)):
        return value
    if isinstance(value, str):
        return RawCommandLine(value)
    args = tuple(value)
    for arg in args:
        if not isinstance(arg, str):
            raise TypeError(f"argument must be str, not {type(arg).__name__}")
    return ArgumentList(args)


def _needs_quoting(argument: str) -> bool:
    if not argument:
        return True
    return any(c.isspace() or c == '"' for c in argument)


def append_argument(parts: list[str], argument: str) -> None:
    """Append one encoded argument to *parts*, space-separated from the previous one."""
    if parts:
        parts.append(" ")

    if not _needs_quoting(argument):
        parts.append(argument)
        return

    parts.append('"')
    idx = 0
    length = len(argument)
    while idx < length:
        c = argument[idx]
        idx += 1

        if c == "\\":
            backslashes = 1
            while idx < length and argument[idx] == "\\":
                idx += 1
                backslashes += 1

            if idx == length:
                # closing quote follows, so the run must be doubled
                parts.append("\\" * (backslashes * 2))
            elif argument[idx] == '"':
                parts.append("\\" * (backslashes * 2 + 1))
                parts.append('"')
                idx += 1
            else:
                parts.append("\\" * backslashes)

        elif c == '"':
            parts.append('\\"')

        else:
            parts.append(c)

    parts.append('"')


def join_arguments(arguments: Iterable[str]) -> str:
    """Encode *arguments* into a single command line."""
    parts: list[str] = []
    for argument in arguments:
        append_argument(parts, argument)
    return "".join(parts)


def split_command_line(command_line: str) -> list[str]:
    """Split a command line into arguments, the inverse of join_arguments."""
    args: list[str] = []
    current: list[str] = []
    in_token = False
    in_quotes = False
    idx = 0
    length = len(command_line)

    while idx < length:
        c = command_line[idx]

        if c in " \t" and not in_quotes:
            if in_token:
                args.append("".join(current))
                current = []
                in_token = False
            idx += 1
            continue

        in_token = True

        if c == "\\":
            start = idx
            while idx < length and command_line[idx] == "\\":
                idx += 1
            backslashes = idx - start
            if idx < length and command_line[idx] == '"':
                current.append("\\" * (backslashes // 2))
                if backslashes % 2:
                    current.append('"')
                    idx += 1
            else:
                current.append("\\" * backslashes)
            continue

        if c == '"':
            if in_quotes and idx + 1 < length and command_line[idx + 1] == '"':
                current.append('"')
                idx += 2
                continue
            in_quotes = not in_quotes
            idx += 1
            continue

        current.append(c)
        idx += 1

    if in_token:
        args.append("".join(current))
    return args


def command_line_of(vector: ArgumentVector) -> str:
    """The command line a vector stands for."""
    if isinstance(vector, RawCommandLine):
        return vector.text
    return join_arguments(vector.args)
