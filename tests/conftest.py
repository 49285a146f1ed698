"""Shared test fixtures for pipefmt.

Formatter stages in the tests are small Python programs run with the
current interpreter, so the suite needs no third-party formatter
installed.  Add project-wide fixtures here; keep domain-specific
fixtures close to the tests that use them.
"""
from __future__ import annotations

import sys
from collections.abc import Callable

import pytest

from pipefmt.config.stages import FormatterStage

UPPER_STRIP = (
    "import sys\n"
    "for line in sys.stdin.read().split('\\n'):\n"
    "    print(line.strip().upper())\n"
)
IDENTITY = "import sys; sys.stdout.write(sys.stdin.read())"
FAIL = "import sys; sys.stderr.write('syntax error on line 1'); sys.exit(2)"
FAIL_STDOUT_ONLY = "import sys; sys.stdout.write('bad input'); sys.exit(1)"
SLEEP = "import time; time.sleep(30)"


def _suffix_script(suffix: str) -> str:
    return (
        "import sys\n"
        "for line in sys.stdin.read().split('\\n'):\n"
        f"    print(line + {suffix!r})\n"
    )


@pytest.fixture()
def script_stage() -> Callable[[str], FormatterStage]:
    """Return a factory building a stage that runs a Python snippet."""

    def factory(code: str) -> FormatterStage:
        return FormatterStage(exe=sys.executable, args=("-c", code))

    return factory


@pytest.fixture()
def upper_stage(script_stage: Callable[[str], FormatterStage]) -> FormatterStage:
    """Uppercases every line and strips surrounding whitespace."""
    return script_stage(UPPER_STRIP)


@pytest.fixture()
def identity_stage(script_stage: Callable[[str], FormatterStage]) -> FormatterStage:
    """Echoes its input unchanged."""
    return script_stage(IDENTITY)


@pytest.fixture()
def failing_stage(script_stage: Callable[[str], FormatterStage]) -> FormatterStage:
    """Writes to stderr and exits with status 2."""
    return script_stage(FAIL)


@pytest.fixture()
def stdout_failing_stage(script_stage: Callable[[str], FormatterStage]) -> FormatterStage:
    """Reports its error on stdout only and exits with status 1."""
    return script_stage(FAIL_STDOUT_ONLY)


@pytest.fixture()
def sleeping_stage(script_stage: Callable[[str], FormatterStage]) -> FormatterStage:
    """Never finishes within a test's timeout."""
    return script_stage(SLEEP)


@pytest.fixture()
def suffix_stage(script_stage: Callable[[str], FormatterStage]) -> Callable[[str], FormatterStage]:
    """Return a factory for stages appending ``suffix`` to every line."""

    def factory(suffix: str) -> FormatterStage:
        return script_stage(_suffix_script(suffix))

    return factory


@pytest.fixture()
def missing_stage() -> FormatterStage:
    """A stage whose executable does not exist."""
    return FormatterStage(exe="pipefmt-no-such-formatter-3f9c")


@pytest.fixture()
def expected_version() -> str:
    """Return the current expected version string.

    Update this fixture when cutting a release so that the version
    test immediately catches stale ``__version__`` values.
    """
    return "0.1.0"
