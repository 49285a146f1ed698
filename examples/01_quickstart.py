#!/usr/bin/env python3
"""Example: Quickstart — pipefmt

Minimal working example: build a configuration in code, format a few
lines through a two-stage pipeline, and inspect the notices.

The stages are small Python programs, so the example runs without any
formatter installed.  The third stage names an executable that does not
exist; it is skipped with a notice and the pipeline carries on.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install pipefmt
"""
from __future__ import annotations

import sys

import pipefmt
from pipefmt.config import FormatterStage, config_from_dict
from pipefmt.diagnostics import Diagnostics

STRIP_TRAILING = "import sys\nfor line in sys.stdin.read().split('\\n'):\n    print(line.rstrip())\n"
SQUEEZE_BLANKS = (
    "import sys\n"
    "previous = None\n"
    "for line in sys.stdin.read().split('\\n'):\n"
    "    if line or previous:\n"
    "        print(line)\n"
    "    previous = line\n"
)


def main() -> None:
    print(f"pipefmt version: {pipefmt.__version__}")

    config = config_from_dict(
        {
            "filetype": {
                "text": [
                    FormatterStage(sys.executable, ("-c", STRIP_TRAILING)),
                    FormatterStage(sys.executable, ("-c", SQUEEZE_BLANKS)),
                    "no-such-formatter --fix",
                ]
            }
        }
    )

    source = ["first line   ", "", "", "", "second line\t", "third"]
    diagnostics = Diagnostics()
    formatted = pipefmt.format_lines(source, "text", config, diagnostics=diagnostics)

    print("\nFormatted:")
    for line in formatted:
        print(f"  |{line}|")

    print(f"\nNotices: {len(diagnostics)}")
    for notice in diagnostics.notices:
        print(f"  {notice}")


if __name__ == "__main__":
    main()
