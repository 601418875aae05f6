"""Whole-program tests driven by the .tests files in tests/programs.

Each case is a name line ``=== name``, the Lox source, a ``---`` line, the
expected output and a closing ``---``. When the program fails the last
expected line is ``error: <message>``.
"""

from pathlib import Path
from typing import List, Tuple

import pytest

PROGRAMS_DIR = Path(__file__).parent / "programs"


def parse_tests_file(path: Path) -> List[Tuple[str, str, str]]:
    """Parse a .tests file into (name, source, expected) tuples."""
    lines = path.read_text(encoding="utf-8").split("\n")
    result: List[Tuple[str, str, str]] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("=== "):
            name = line[4:].strip()
            i += 1
            source_lines: List[str] = []
            while i < len(lines) and lines[i] != "---":
                source_lines.append(lines[i])
                i += 1
            i += 1
            expected_lines: List[str] = []
            while i < len(lines) and lines[i] != "---":
                expected_lines.append(lines[i])
                i += 1
            i += 1
            result.append((name, "\n".join(source_lines), "\n".join(expected_lines).strip()))
        else:
            i += 1
    return result


def discover_program_tests() -> List[Tuple[str, str, str]]:
    """All cases as (test_id, source, expected)."""
    results = []
    for tests_file in sorted(PROGRAMS_DIR.glob("*.tests")):
        for name, source, expected in parse_tests_file(tests_file):
            results.append((f"{tests_file.stem}/{name}", source, expected))
    return results


def pytest_generate_tests(metafunc):
    if "program_source" in metafunc.fixturenames:
        params = [
            pytest.param(source, expected, id=test_id)
            for test_id, source, expected in discover_program_tests()
        ]
        metafunc.parametrize("program_source,program_expected", params)


def test_program(run, program_source: str, program_expected: str):
    outcome = run(program_source)
    actual = list(outcome.lines)
    if outcome.errors:
        actual.append(f"error: {outcome.errors[0].message}")
    assert "\n".join(actual).strip() == program_expected
