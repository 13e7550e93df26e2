"""Shared test fixtures."""

import sys

import pytest


@pytest.fixture(autouse=True)
def restore_defaults():
    """Keep process-wide default options from leaking between tests."""
    from flow_exec import options

    start = options.get_default_start_options()
    wait = options.get_default_wait_options()
    yield
    options.set_default_start_options(start)
    options.set_default_wait_options(wait)


@pytest.fixture
def python():
    """Absolute path of the running interpreter, usable as a child program."""
    return sys.executable


@pytest.fixture
def make_script(tmp_path):
    """Write an executable shell script and return its path."""

    def _make(name: str, body: str, mode: int = 0o755) -> str:
        path = tmp_path / name
        path.write_text(f"#!/bin/sh\n{body}\n")
        path.chmod(mode)
        return str(path)

    return _make


@pytest.fixture
def mock_run(monkeypatch):
    """Mock process.run for resolver tests."""
    from flow_exec import process

    calls = []
    responses = []

    def fake_run(executable, args, start_options=None, wait_options=None):
        calls.append((executable, args, start_options, wait_options))
        if responses:
            return responses.pop(0)
        return process.FinishedProcess(0, process.Captured(""), process.Captured(""))

    monkeypatch.setattr(process, "run", fake_run)

    return type("MockRun", (), {"calls": calls, "responses": responses})()
