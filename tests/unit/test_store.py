"""Unit tests for pipefmt.store — minimal edits, MemoryStore and FileStore."""
from __future__ import annotations

import os
from pathlib import Path

from pipefmt.store import FileStore, MemoryStore, apply_edits_to, minimal_edits


class TestMinimalEdits:
    def test_identical_is_empty(self) -> None:
        assert minimal_edits(["a", "b"], ["a", "b"]) == []

    def test_only_changed_lines(self) -> None:
        assert minimal_edits(["a", "b", "c"], ["a", "B", "c"]) == [(1, 2, ["B"])]

    def test_insert_and_delete(self) -> None:
        old = ["a", "b", "c", "d"]
        new = ["a", "x", "b", "d"]
        lines = list(old)
        apply_edits_to(lines, minimal_edits(old, new))
        assert lines == new

    def test_apply_reproduces_new(self) -> None:
        old = ["import os", "x=1", "", "def f():", "  return x"]
        new = ["import os", "", "x = 1", "", "", "def f():", "    return x", ""]
        lines = list(old)
        apply_edits_to(lines, minimal_edits(old, new))
        assert lines == new


class TestMemoryStore:
    def test_lines_are_copies(self) -> None:
        store = MemoryStore(["a"])
        store.lines().append("b")
        assert store.lines() == ["a"]

    def test_apply_edits_bumps_tick_once(self) -> None:
        store = MemoryStore(["a", "b", "c"])
        store.apply_edits(["a", "b", "c"], ["A", "b", "C"])
        assert store.lines() == ["A", "b", "C"]
        assert store.changedtick == 1

    def test_apply_no_edits_keeps_tick(self) -> None:
        store = MemoryStore(["a"])
        store.apply_edits(["a"], ["a"])
        assert store.changedtick == 0

    def test_set_lines_bumps_tick(self) -> None:
        store = MemoryStore(["a"])
        store.set_lines(["b"])
        assert store.changedtick == 1

    def test_save_counted(self) -> None:
        store = MemoryStore(["a"])
        store.save()
        assert store.saves == 1

    def test_read_only(self) -> None:
        assert not MemoryStore(["a"], writable=False).writable


class TestFileStore:
    def test_reads_lines_without_final_newline(self, tmp_path: Path) -> None:
        path = tmp_path / "a.txt"
        path.write_text("one\ntwo\n", encoding="utf-8")
        assert FileStore(path).lines() == ["one", "two"]

    def test_name_is_path(self, tmp_path: Path) -> None:
        path = tmp_path / "a.py"
        path.write_text("x\n", encoding="utf-8")
        assert FileStore(path).name == str(path)

    def test_save_keeps_final_newline(self, tmp_path: Path) -> None:
        path = tmp_path / "a.txt"
        path.write_text("one\ntwo\n", encoding="utf-8")
        store = FileStore(path)
        store.apply_edits(["one", "two"], ["ONE", "two"])
        store.save()
        assert path.read_text(encoding="utf-8") == "ONE\ntwo\n"

    def test_save_without_final_newline(self, tmp_path: Path) -> None:
        path = tmp_path / "a.txt"
        path.write_text("one", encoding="utf-8")
        store = FileStore(path)
        store.apply_edits(["one"], ["1"])
        store.save()
        assert path.read_text(encoding="utf-8") == "1"

    def test_save_without_edits_does_not_write(self, tmp_path: Path) -> None:
        path = tmp_path / "a.txt"
        path.write_text("one\n", encoding="utf-8")
        os.utime(path, ns=(1_000_000_000, 1_000_000_000))
        store = FileStore(path)
        store.save()
        assert path.stat().st_mtime_ns == 1_000_000_000

    def test_outside_change_bumps_tick(self, tmp_path: Path) -> None:
        path = tmp_path / "a.txt"
        path.write_text("one\n", encoding="utf-8")
        store = FileStore(path)
        assert store.changedtick == 0
        path.write_text("one\ntwo\n", encoding="utf-8")
        assert store.changedtick == 1
        assert store.lines() == ["one", "two"]

    def test_own_save_does_not_bump_tick(self, tmp_path: Path) -> None:
        path = tmp_path / "a.txt"
        path.write_text("one\n", encoding="utf-8")
        store = FileStore(path)
        store.apply_edits(["one"], ["one", "two"])
        store.save()
        assert store.changedtick == 1

    def test_read_only_file(self, tmp_path: Path) -> None:
        path = tmp_path / "a.txt"
        path.write_text("one\n", encoding="utf-8")
        store = FileStore(path)
        assert store.writable
        path.chmod(0o444)
        try:
            if os.geteuid() != 0:
                assert not store.writable
        finally:
            path.chmod(0o644)
