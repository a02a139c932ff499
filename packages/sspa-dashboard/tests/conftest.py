"""Shared fixtures for dashboard tests."""

import sys
from pathlib import Path

import pytest


@pytest.fixture
def python_command(tmp_path: Path):
    """
    Build a whitespace-splittable command that runs a Python snippet.

    Commands are split on whitespace without quoting, so the snippet is
    written to a script file instead of being passed with -c.
    """
    counter = iter(range(1000))

    def make(source: str) -> str:
        script = tmp_path / f"child_{next(counter)}.py"
        script.write_text(source)
        return f"{sys.executable} {script}"

    return make
