import json
import os
import shlex
from pathlib import Path

import pytest

from core import exec_rename
from core.models_fs import CommitMode, RenameOptions, RenameOp, MatchResult
from core.text_match import compile_pattern
from core.plan_rename import build_mapping
from core.exec_rename import (
    commit,
    format_commands,
    plan_steps,
    StaleMappingError,
    PartialFailureError,
    TEMP_PREFIX,
)


def _options(**kwargs):
    kwargs.setdefault("case_insensitive_detect", False)
    return RenameOptions(**kwargs)


def _mapping(files, pattern, replacement, global_=False):
    return build_mapping([Path(f) for f in files], compile_pattern(pattern), replacement, global_)


def _write(root: Path, name: str, content: str = None) -> Path:
    path = root / name
    path.write_text(content if content is not None else name, encoding="utf-8")
    return path


def _listing(root: Path):
    return sorted(p.name for p in root.iterdir())


def test_dry_run_emits_one_command_per_changed_entry(tmp_path):
    for name in ("a.txt", "b.txt", "keep.log"):
        _write(tmp_path, name)
    mapping = _mapping([tmp_path / "a.txt", tmp_path / "keep.log", tmp_path / "b.txt"], r"^(.*)\.txt$", "$1.md")

    result = commit(mapping, CommitMode.DRY_RUN, _options())

    assert result.commands == [
        f"mv -- {shlex.quote(str(tmp_path / 'a.txt'))} {shlex.quote(str(tmp_path / 'a.md'))}",
        f"mv -- {shlex.quote(str(tmp_path / 'b.txt'))} {shlex.quote(str(tmp_path / 'b.md'))}",
    ]
    assert _listing(tmp_path) == ["a.txt", "b.txt", "keep.log"]


def test_dry_run_identity_mapping_emits_nothing(tmp_path):
    _write(tmp_path, "a.txt")
    mapping = _mapping([tmp_path / "a.txt"], "zzz", "y")
    assert commit(mapping, CommitMode.DRY_RUN, _options()).commands == []


def test_format_commands_quotes_paths():
    mapping = _mapping(["/d/my file.txt"], "my ", "your '")
    assert format_commands(mapping) == ["mv -- '/d/my file.txt' '/d/your '\"'\"'file.txt'"]


def test_apply_simple(tmp_path):
    _write(tmp_path, "a.txt", "A")
    _write(tmp_path, "b.txt", "B")
    mapping = _mapping([tmp_path / "a.txt", tmp_path / "b.txt"], r"^(.*)\.txt$", "$1.md")

    result = commit(mapping, CommitMode.APPLY, _options())

    assert result.ok
    assert result.success_count == 2
    assert _listing(tmp_path) == ["a.md", "b.md"]
    assert (tmp_path / "a.md").read_text(encoding="utf-8") == "A"


def test_apply_chain_keeps_all_content(tmp_path):
    # x -> xx, xx -> xxx
    _write(tmp_path, "x", "first")
    _write(tmp_path, "xx", "second")
    mapping = _mapping([tmp_path / "x", tmp_path / "xx"], "^", "x")

    result = commit(mapping, CommitMode.APPLY, _options())

    assert result.ok
    assert _listing(tmp_path) == ["xx", "xxx"]
    assert (tmp_path / "xx").read_text(encoding="utf-8") == "first"
    assert (tmp_path / "xxx").read_text(encoding="utf-8") == "second"


def test_apply_swap_uses_temporary_name(tmp_path):
    _write(tmp_path, "a_b", "one")
    _write(tmp_path, "b_a", "two")
    mapping = _mapping([tmp_path / "a_b", tmp_path / "b_a"], r"^(\w)_(\w)$", "$2_$1")

    result = commit(mapping, CommitMode.APPLY, _options())

    assert result.ok
    assert _listing(tmp_path) == ["a_b", "b_a"]
    assert (tmp_path / "b_a").read_text(encoding="utf-8") == "one"
    assert (tmp_path / "a_b").read_text(encoding="utf-8") == "two"


def test_plan_steps_orders_chain_without_staging():
    mapping = _mapping(["/d/x", "/d/xx"], "^", "x")
    steps = plan_steps(mapping.changed_ops)
    assert [(s.src, s.dst, s.staging) for s in steps] == [
        (Path("/d/xx"), Path("/d/xxx"), False),
        (Path("/d/x"), Path("/d/xx"), False),
    ]


def test_plan_steps_breaks_cycle_once():
    mapping = _mapping(["/d/a_b", "/d/b_a"], r"^(\w)_(\w)$", "$2_$1")
    temp = Path("/d/parked")
    steps = plan_steps(mapping.changed_ops, temp_name=lambda p: temp)
    assert [(s.src, s.dst, s.staging) for s in steps] == [
        (Path("/d/a_b"), temp, True),
        (Path("/d/b_a"), Path("/d/a_b"), False),
        (temp, Path("/d/b_a"), False),
    ]


def test_plan_steps_three_cycle():
    # 1 -> 2, 2 -> 3, 3 -> 1
    ops = [
        RenameOp(0, Path("/d/1"), Path("/d/2"), "2", MatchResult.REPLACED),
        RenameOp(1, Path("/d/2"), Path("/d/3"), "3", MatchResult.REPLACED),
        RenameOp(2, Path("/d/3"), Path("/d/1"), "1", MatchResult.REPLACED),
    ]
    steps = plan_steps(ops, temp_name=lambda p: Path("/d/tmp"))
    assert len(steps) == 4
    assert sum(1 for s in steps if s.staging) == 1
    finals = [(s.dst, s.op.index) for s in steps if not s.staging]
    assert sorted(finals) == [(Path("/d/1"), 2), (Path("/d/2"), 0), (Path("/d/3"), 1)]


def test_stale_when_target_appears(tmp_path):
    _write(tmp_path, "a")
    mapping = _mapping([tmp_path / "a"], "^a$", "b")
    _write(tmp_path, "b", "intruder")

    with pytest.raises(StaleMappingError):
        commit(mapping, CommitMode.APPLY, _options())

    assert (tmp_path / "a").exists()
    assert (tmp_path / "b").read_text(encoding="utf-8") == "intruder"


def test_stale_when_source_disappears(tmp_path):
    mapping = _mapping([tmp_path / "gone"], "^gone$", "here")

    with pytest.raises(StaleMappingError) as info:
        commit(mapping, CommitMode.DRY_RUN, _options())
    assert "gone" in str(info.value)


def test_partial_failure_reports_progress(tmp_path, monkeypatch):
    for name in ("a1", "a2", "a3"):
        _write(tmp_path, name)
    mapping = _mapping([tmp_path / "a1", tmp_path / "a2", tmp_path / "a3"], "^a", "b")

    real_rename = os.rename
    calls = []

    def flaky_rename(src, dst):
        calls.append((src, dst))
        if len(calls) == 2:
            raise PermissionError("denied")
        real_rename(src, dst)

    monkeypatch.setattr(exec_rename.os, "rename", flaky_rename)

    with pytest.raises(PartialFailureError) as info:
        commit(mapping, CommitMode.APPLY, _options())

    result = info.value.result
    assert [op.src.name for op in result.success] == ["a1"]
    assert [op.src.name for op, _error in result.failed] == ["a2"]
    assert [op.src.name for op in result.pending] == ["a3"]
    assert result.staged == []
    assert _listing(tmp_path) == ["a2", "a3", "b1"]


def test_partial_failure_reports_parked_file(tmp_path, monkeypatch):
    _write(tmp_path, "a_b", "one")
    _write(tmp_path, "b_a", "two")
    mapping = _mapping([tmp_path / "a_b", tmp_path / "b_a"], r"^(\w)_(\w)$", "$2_$1")

    real_rename = os.rename
    calls = []

    def flaky_rename(src, dst):
        calls.append((src, dst))
        if len(calls) == 2:
            raise OSError("disk on fire")
        real_rename(src, dst)

    monkeypatch.setattr(exec_rename.os, "rename", flaky_rename)

    with pytest.raises(PartialFailureError) as info:
        commit(mapping, CommitMode.APPLY, _options())

    result = info.value.result
    assert result.success == []
    assert [op.src.name for op, _error in result.failed] == ["b_a"]
    assert len(result.staged) == 1
    op, temp = result.staged[0]
    assert op.src.name == "a_b"
    assert temp.name.startswith(TEMP_PREFIX)
    assert temp.read_text(encoding="utf-8") == "one"
    assert "manual cleanup" in result.summary()


def test_logs_written(tmp_path):
    work = tmp_path / "work"
    work.mkdir()
    logs = tmp_path / "logs"
    _write(work, "a.txt")
    mapping = _mapping([work / "a.txt"], "txt$", "md")

    commit(mapping, CommitMode.APPLY, _options(log_dir=logs))

    plan_logs = list(logs.glob("rename_plan_*.json"))
    result_logs = list(logs.glob("rename_result_*.json"))
    assert len(plan_logs) == 1
    assert len(result_logs) == 1
    data = json.loads(result_logs[0].read_text(encoding="utf-8"))
    assert data["success_count"] == 1
    assert data["success"][0]["dst"] == str(work / "a.md")


def test_progress_callback(tmp_path):
    _write(tmp_path, "a")
    _write(tmp_path, "b")
    mapping = _mapping([tmp_path / "a", tmp_path / "b"], "^", "new_")
    seen = []

    commit(mapping, CommitMode.APPLY, _options(), progress_callback=lambda c, t, m: seen.append((c, t)))

    assert seen == [(1, 2), (2, 2)]


def test_result_log_failure_keeps_partial_report(tmp_path, monkeypatch):
    for name in ("a1", "a2"):
        _write(tmp_path, name)
    mapping = _mapping([tmp_path / "a1", tmp_path / "a2"], "^a", "b")

    real_rename = os.rename
    calls = []

    def flaky_rename(src, dst):
        calls.append(src)
        if len(calls) == 2:
            raise PermissionError("denied")
        real_rename(src, dst)

    def broken_log(result, log_dir):
        raise OSError("log volume full")

    monkeypatch.setattr(exec_rename.os, "rename", flaky_rename)
    monkeypatch.setattr(exec_rename, "save_result_log", broken_log)

    with pytest.raises(PartialFailureError) as info:
        commit(mapping, CommitMode.APPLY, _options(log_dir=tmp_path / "logs"))

    result = info.value.result
    assert [op.src.name for op in result.success] == ["a1"]
    assert result.log_error == "log volume full"
    assert "log volume full" in result.summary()
