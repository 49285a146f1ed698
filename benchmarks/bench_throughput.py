"""Benchmark: injection formatting throughput.

Measures how long a Markdown document with many fenced Python blocks
takes to format in ``injections`` mode at several concurrency limits.
Each block spawns one formatter process, so the numbers are dominated
by process start-up and show how well the concurrency limit hides it.
"""
from __future__ import annotations

import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pipefmt
from pipefmt.config import FormatterStage, config_from_dict

_BLOCKS: int = 40
_LIMITS: tuple[int, ...] = (1, 4, 10, 20)

_UPPER = "import sys\nfor line in sys.stdin.read().split('\\n'):\n    print(line.upper())\n"


def _document(blocks: int) -> list[str]:
    lines = ["# Benchmark"]
    for i in range(blocks):
        lines += ["", "```python", f"value_{i} = {i}", f"other_{i} = {i * 2}", "```"]
    return lines


def bench_injections(concurrency: int) -> dict[str, object]:
    """Format ``_BLOCKS`` injections with the given concurrency limit.

    Returns
    -------
    dict with keys: operation, concurrency, blocks, total_seconds,
    blocks_per_second.
    """
    config = config_from_dict(
        {
            "filetype": {"python": [FormatterStage(sys.executable, ("-c", _UPPER))]},
            "concurrency": concurrency,
        }
    )
    document = _document(_BLOCKS)

    start = time.perf_counter()
    pipefmt.format_lines(document, "markdown", config, mode="injections")
    total = time.perf_counter() - start

    result: dict[str, object] = {
        "operation": "injections_throughput",
        "concurrency": concurrency,
        "blocks": _BLOCKS,
        "total_seconds": round(total, 4),
        "blocks_per_second": round(_BLOCKS / total, 1),
    }
    print(
        f"[bench_throughput] concurrency={concurrency:>2}: "
        f"{result['blocks_per_second']:,.1f} blocks/sec  "
        f"total {result['total_seconds']:.3f} s"
    )
    return result


def run_benchmark() -> list[dict[str, object]]:
    """Run the benchmark at every configured concurrency limit."""
    return [bench_injections(limit) for limit in _LIMITS]


if __name__ == "__main__":
    results = run_benchmark()
    output_path = Path(__file__).parent / "results" / "throughput.json"
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(results, indent=2), encoding="utf-8")
    print(f"\nResults saved to {output_path}")
