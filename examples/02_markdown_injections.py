#!/usr/bin/env python3
"""Example: Formatting code blocks inside Markdown — pipefmt

Writes a small Markdown file, then formats it in ``all`` mode: the
Markdown pipeline runs first, then every fenced block whose language
has its own pipeline is formatted concurrently and spliced back.

The indented block under the list item keeps its indentation because
auto-indent is enabled for ``python``.

Usage:
    python examples/02_markdown_injections.py

Requirements:
    pip install pipefmt
"""
from __future__ import annotations

import sys
import tempfile
from pathlib import Path

import pipefmt
from pipefmt.config import config_from_dict

# Stands in for a real Python formatter: normalizes "x=1" to "x = 1".
SPACE_ASSIGNMENTS = (
    "import re, sys\n"
    "for line in sys.stdin.read().split('\\n'):\n"
    "    print(re.sub(r'\\s*=\\s*', ' = ', line.strip()))\n"
)

DOCUMENT = """\
# Settings

Top-level defaults:

```python
timeout=5
retries=3
```

- Per-user overrides:

  ```python
  theme=dark
  font_size=12
  ```
"""


def main() -> None:
    config = config_from_dict(
        {
            "filetype": {"python": [{"exe": sys.executable, "args": ["-c", SPACE_ASSIGNMENTS]}]},
            "injections": {"auto_indent": {"python": True}},
        }
    )

    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "settings.md"
        path.write_text(DOCUMENT, encoding="utf-8")

        result = pipefmt.format_file(path, config, mode="all")
        print(f"State: {result.state.name}, edited: {result.edited}\n")
        print(path.read_text(encoding="utf-8"))


if __name__ == "__main__":
    main()
