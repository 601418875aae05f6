"""Pytest configuration for the plox test suite."""

import io
from dataclasses import dataclass
from typing import List

import pytest

from config import InterpreterOptions
from diagnostics import ColorMode
from errors import LoxError
from plox import run_source
from source_map import source_map_session


@dataclass
class Outcome:
    """What a program printed, what it reported and how it exited."""

    stdout: str
    stderr: str
    exit_code: int
    errors: List[LoxError]

    @property
    def lines(self) -> List[str]:
        return self.stdout.splitlines()

    @property
    def error(self) -> LoxError:
        assert self.errors, f"expected an error, program printed {self.stdout!r}"
        return self.errors[0]


def run_program(source: str, **option_overrides) -> Outcome:
    """Run source with captured streams and never-colored diagnostics."""
    options = InterpreterOptions(color=ColorMode.NEVER, **option_overrides)
    stdout = io.StringIO()
    stderr = io.StringIO()
    result = run_source(source, options=options, output=stdout, stderr=stderr)
    return Outcome(stdout.getvalue(), stderr.getvalue(), result.exit_code, result.errors)


@pytest.fixture(autouse=True)
def fresh_source_map():
    with source_map_session():
        yield


@pytest.fixture
def run():
    """Fixture form of run_program."""
    return run_program
