"""Tests for process.py — launch, capture, wait."""

import asyncio
import json
import os
import subprocess
import sys

import pytest

from flow_exec import options
from flow_exec.args import join_arguments
from flow_exec.errors import ExitCodeMismatch, LaunchError, OutputNotCaptured
from flow_exec.options import OutputMode, StartOptions, WaitOptions
from flow_exec.process import (
    IGNORED,
    Captured,
    FinishedProcess,
    Ignored,
    run,
    run_async,
    start,
    wait,
    wait_async,
)

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX programs")

CAPTURE_BOTH = StartOptions(
    output=OutputMode.CAPTURE, error_output=OutputMode.CAPTURE, suppress_echo=True
)
CAPTURE_OUT = StartOptions(output=OutputMode.CAPTURE, suppress_echo=True)
QUIET = StartOptions(suppress_echo=True)


def test_ignored_string_output_fails():
    with pytest.raises(OutputNotCaptured):
        IGNORED.string_output


def test_captured_string_output():
    assert Captured("hello").string_output == "hello"


def test_finished_process_is_frozen():
    finished = FinishedProcess(0, IGNORED, IGNORED)
    with pytest.raises(AttributeError):
        finished.exit_code = 1


def test_run_captures_stdout(python):
    finished = run(python, ["-c", "print('hello')"], CAPTURE_OUT)
    assert finished.exit_code == 0
    assert finished.output == Captured("hello")
    assert finished.error_output == Ignored()


def test_run_captures_stderr(python):
    finished = run(python, ["-c", "import sys; sys.stderr.write('err\\n')"], CAPTURE_BOTH)
    assert finished.output.string_output == ""
    assert finished.error_output.string_output == "err"


def test_uncaptured_stream_has_no_drain(python):
    running = start(python, ["-c", "pass"], QUIET)
    assert running.stdout is None
    assert running.stderr is None
    assert running.drains() == []
    finished = wait(running)
    with pytest.raises(OutputNotCaptured):
        finished.output.string_output


def test_trailing_whitespace_trimmed(python):
    code = "import sys; sys.stdout.buffer.write(b'  a\\r\\nb  \\r\\n\\n')"
    finished = run(python, ["-c", code], CAPTURE_OUT)
    assert finished.output.string_output == "  a\r\nb"


def test_large_output_does_not_deadlock(python):
    size = 1024 * 1024
    code = f"import sys; sys.stdout.write('x' * {size}); sys.stderr.write('y' * {size})"
    finished = run(python, ["-c", code], CAPTURE_BOTH)
    assert finished.output.string_output == "x" * size
    assert finished.error_output.string_output == "y" * size


def test_exit_code_mismatch(python):
    with pytest.raises(ExitCodeMismatch) as exc:
        run(python, ["-c", "raise SystemExit(1)"], QUIET, WaitOptions(expected_exit_code=0))
    assert exc.value.exit_code == 1
    assert exc.value.expected == 0


def test_exit_code_mismatch_carries_stderr(python):
    code = "import sys; sys.stderr.write('boom'); sys.exit(3)"
    with pytest.raises(ExitCodeMismatch) as exc:
        run(python, ["-c", code], CAPTURE_BOTH)
    assert exc.value.exit_code == 3
    assert exc.value.stderr == "boom"
    assert "boom" in str(exc.value)


def test_any_exit_code_accepted(python):
    finished = run(python, ["-c", "raise SystemExit(1)"], QUIET, WaitOptions.any_exit_code())
    assert finished.exit_code == 1


def test_expected_nonzero_exit_code(python):
    finished = run(python, ["-c", "raise SystemExit(7)"], QUIET, WaitOptions(expected_exit_code=7))
    assert finished.exit_code == 7


def test_default_wait_options_expect_zero(python):
    with pytest.raises(ExitCodeMismatch):
        run(python, ["-c", "raise SystemExit(2)"], QUIET)


def test_default_start_options_used(python, capsys):
    options.set_default_start_options(StartOptions(output=OutputMode.CAPTURE, suppress_echo=True))
    finished = run(python, ["-c", "print('via default')"])
    assert finished.output.string_output == "via default"
    assert capsys.readouterr().err == ""


def test_arguments_reach_child_intact(python):
    args = ["a b", 'say "hi"', "", "trail\\", "\\\\\"x"]
    code = "import json, sys; print(json.dumps(sys.argv[1:]))"
    finished = run(python, ["-c", code, *args], CAPTURE_OUT)
    assert json.loads(finished.output.string_output) == args


@posix_only
def test_raw_command_line_is_split(python):
    code = "import json, sys; print(json.dumps(sys.argv[1:]))"
    raw = join_arguments(["-c", code]) + ' "one two" three'
    finished = run(python, raw, CAPTURE_OUT)
    assert json.loads(finished.output.string_output) == ["one two", "three"]


def test_env_merged(python):
    opts = StartOptions(output=OutputMode.CAPTURE, suppress_echo=True, env={"FLOW_EXEC_TEST": "works"})
    code = "import os; print(os.environ['FLOW_EXEC_TEST'], 'PATH' in os.environ)"
    assert run(python, ["-c", code], opts).output.string_output == "works True"


def test_cwd(python, tmp_path):
    opts = StartOptions(output=OutputMode.CAPTURE, suppress_echo=True, cwd=str(tmp_path))
    finished = run(python, ["-c", "import os; print(os.getcwd())"], opts)
    assert os.path.samefile(finished.output.string_output, tmp_path)


def test_encoding(python):
    opts = StartOptions(output=OutputMode.CAPTURE, suppress_echo=True, encoding="utf-8")
    code = "import sys; sys.stdout.buffer.write('h\\u00e9llo'.encode('utf-8'))"
    assert run(python, ["-c", code], opts).output.string_output == "héllo"


def test_launch_error_missing_file(tmp_path):
    with pytest.raises(LaunchError) as exc:
        start(str(tmp_path / "idontexist"), [], QUIET)
    assert exc.value.executable == str(tmp_path / "idontexist")


def test_launch_error_not_on_path():
    with pytest.raises(LaunchError):
        start("idontexist-flow-exec", [], QUIET)


@posix_only
def test_launch_error_not_executable(make_script):
    path = make_script("noexec.sh", "echo hi", mode=0o644)
    with pytest.raises(LaunchError) as exc:
        start(path, [], QUIET)
    assert "not executable" in str(exc.value)


@posix_only
def test_launch_error_os_refusal(make_script, monkeypatch):
    path = make_script("ok.sh", "exit 0")

    def refuse(*args, **kwargs):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr("flow_exec.process.subprocess.Popen", refuse)
    with pytest.raises(LaunchError) as exc:
        start(path, [], QUIET)
    assert isinstance(exc.value.__cause__, PermissionError)


@posix_only
def test_script_runs(make_script):
    path = make_script("hello.sh", 'echo "hello $1"')
    finished = run(path, ["world"], CAPTURE_OUT)
    assert finished.output.string_output == "hello world"


def test_echo_trace(python, capsys):
    running = start(python, ["-c", "pass", "two words"], StartOptions())
    wait(running)
    err = capsys.readouterr().err
    assert f"[{running.pid}]" in err
    assert f'"{python}"' in err
    assert "-c pass \"two words\"" in err


def test_echo_suppressed(python, capsys):
    run(python, ["-c", "pass"], QUIET)
    assert capsys.readouterr().err == ""


def test_wait_async(python):
    running = start(python, ["-c", "print('async')"], CAPTURE_BOTH)
    finished = asyncio.run(wait_async(running))
    assert finished.output.string_output == "async"
    assert finished.error_output.string_output == ""


def test_run_async_exit_code_mismatch(python):
    with pytest.raises(ExitCodeMismatch) as exc:
        asyncio.run(run_async(python, ["-c", "raise SystemExit(1)"], QUIET))
    assert exc.value.exit_code == 1


def test_run_async_concurrent(python):
    async def main():
        return await asyncio.gather(
            *(run_async(python, ["-c", f"print({i})"], CAPTURE_OUT) for i in range(4))
        )

    results = asyncio.run(main())
    assert [r.output.string_output for r in results] == ["0", "1", "2", "3"]


def test_run_async_large_output(python):
    size = 256 * 1024
    code = f"import sys; sys.stdout.write('z' * {size})"
    finished = asyncio.run(run_async(python, ["-c", code], CAPTURE_BOTH))
    assert len(finished.output.string_output) == size


def test_interior_crlf_preserved(python):
    code = "import sys; sys.stdout.buffer.write(b'a\\r\\nb\\r\\n')"
    opts = StartOptions(output=OutputMode.CAPTURE, suppress_echo=True, encoding="utf-8")
    assert run(python, ["-c", code], opts).output.string_output == "a\r\nb"


def test_exit_code_mismatch_carries_output(python):
    code = "print('partial'); raise SystemExit(5)"
    with pytest.raises(ExitCodeMismatch) as exc:
        run(python, ["-c", code], CAPTURE_OUT)
    assert exc.value.output == "partial"
    assert exc.value.stderr is None


@posix_only
def test_bare_name_found_on_child_path(tmp_path):
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    tool = bin_dir / "flow-exec-only-here"
    tool.write_text("#!/bin/sh\necho from-child-path\n")
    tool.chmod(0o755)
    opts = StartOptions(
        output=OutputMode.CAPTURE,
        suppress_echo=True,
        env={"PATH": f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}"},
    )
    assert run("flow-exec-only-here", [], opts).output.string_output == "from-child-path"


@posix_only
def test_bare_name_missing_from_child_path(tmp_path):
    opts = StartOptions(suppress_echo=True, env={"PATH": str(tmp_path)})
    with pytest.raises(LaunchError, match="not found on PATH"):
        start("flow-exec-only-here", [], opts)


def test_child_reaped_when_setup_fails(python, monkeypatch):
    started = []
    real_popen = subprocess.Popen

    def tracking_popen(*args, **kwargs):
        popen = real_popen(*args, **kwargs)
        started.append(popen)
        return popen

    def broken_trace(*args):
        raise RuntimeError("console gone")

    monkeypatch.setattr("flow_exec.process.subprocess.Popen", tracking_popen)
    monkeypatch.setattr("flow_exec.process.log.trace", broken_trace)
    opts = StartOptions(error_output=OutputMode.CAPTURE)
    with pytest.raises(RuntimeError, match="console gone"):
        start(python, ["-c", "import time; time.sleep(60)"], opts)

    assert started[0].returncode is not None
