from pathlib import Path

from core.models_fs import ConflictKind, MatchResult
from core.text_match import compile_pattern
from core.plan_rename import build_mapping, validate_mapping, probe_existing_paths


def _build(files, pattern, replacement, global_=False, ignore_case=False):
    paths = [Path(f) for f in files]
    return build_mapping(paths, compile_pattern(pattern, ignore_case), replacement, global_)


def test_scenario_txt_to_md():
    mapping = _build(["a.txt", "b.txt"], r"^(.*)\.txt$", "$1.md")
    assert mapping.pairs() == [(Path("a.txt"), Path("a.md")), (Path("b.txt"), Path("b.md"))]
    assert validate_mapping(mapping, set()).is_valid


def test_scenario_duplicate_target():
    mapping = _build(["a.txt", "b.txt"], ".*", "x")
    assert mapping.pairs() == [(Path("a.txt"), Path("x")), (Path("b.txt"), Path("x"))]
    status = validate_mapping(mapping, set())
    assert status.kind is ConflictKind.DUPLICATE_TARGET
    assert status.indices == (0, 1)


def test_non_matching_pattern_gives_identity_mapping():
    files = ["/d/one.txt", "/d/two.txt", "rel/three"]
    mapping = _build(files, "zzz", "y")
    assert len(mapping) == 3
    assert all(op.is_same for op in mapping)
    assert all(op.result is MatchResult.NO_MATCH for op in mapping)
    assert validate_mapping(mapping, set()).is_valid


def test_directory_is_preserved():
    mapping = _build(["/photos/2020/img.JPG"], "JPG$", "jpg")
    assert mapping[0].dst == Path("/photos/2020/img.jpg")


def test_pattern_only_touches_basename():
    mapping = _build(["/data/a/file_a"], "a", "b", global_=True)
    assert mapping[0].dst == Path("/data/a/file_b")


def test_invalid_pattern_keeps_every_row():
    mapping = _build(["a.txt", "b.txt"], "([", "x")
    assert len(mapping) == 2
    assert all(op.is_same and op.result is MatchResult.INVALID_PATTERN for op in mapping)
    assert mapping.pattern_error
    status = validate_mapping(mapping, set())
    assert status.kind is ConflictKind.PATTERN_ERROR


def test_root_path_is_unchanged_row():
    mapping = _build(["/"], ".*", "x")
    assert len(mapping) == 1
    assert mapping[0].is_same


def test_build_is_deterministic():
    files = ["a.txt", "b.txt", "c.log"]
    assert _build(files, r"(\w)\.txt", "$1-$1.txt", True) == _build(files, r"(\w)\.txt", "$1-$1.txt", True)


def test_invalid_target_names():
    status = validate_mapping(_build(["/d/a.txt"], ".*", ""), set())
    assert status.kind is ConflictKind.INVALID_NAME
    assert status.indices == (0,)

    status = validate_mapping(_build(["/d/a.txt"], "a", "sub/a"), set())
    assert status.kind is ConflictKind.INVALID_NAME


def test_target_exists_unrenamed():
    mapping = _build(["/d/a.txt"], "a", "b")
    status = validate_mapping(mapping, {Path("/d/b.txt")})
    assert status.kind is ConflictKind.TARGET_EXISTS
    assert status.path == Path("/d/b.txt")
    assert status.indices == (0,)


def test_target_that_is_also_a_source_is_allowed():
    # x -> xx, xx -> xxx
    mapping = _build(["/d/x", "/d/xx"], "^", "x")
    assert mapping.pairs() == [(Path("/d/x"), Path("/d/xx")), (Path("/d/xx"), Path("/d/xxx"))]
    assert validate_mapping(mapping, {Path("/d/xx")}).is_valid


def test_chain_onto_unrelated_existing_file_is_rejected():
    mapping = _build(["/d/x", "/d/xx"], "^", "x")
    status = validate_mapping(mapping, {Path("/d/xx"), Path("/d/xxx")})
    assert status.kind is ConflictKind.TARGET_EXISTS
    assert status.path == Path("/d/xxx")


def test_swap_is_valid():
    mapping = _build(["/d/a_b", "/d/b_a"], r"^(\w)_(\w)$", "$2_$1")
    assert mapping.pairs() == [(Path("/d/a_b"), Path("/d/b_a")), (Path("/d/b_a"), Path("/d/a_b"))]
    assert validate_mapping(mapping, {Path("/d/a_b"), Path("/d/b_a")}).is_valid


def test_unchanged_row_blocks_rename_onto_it():
    mapping = _build(["/d/a", "/d/b"], "^b$", "a")
    status = validate_mapping(mapping, {Path("/d/a")})
    assert status.kind is ConflictKind.DUPLICATE_TARGET
    assert status.indices == (0, 1)


def test_same_unchanged_file_listed_twice_is_not_a_conflict():
    mapping = _build(["/d/a", "/d/a"], "zzz", "b")
    assert validate_mapping(mapping, {Path("/d/a")}).is_valid


def test_same_file_listed_twice_and_renamed_is_a_conflict():
    mapping = _build(["/d/a", "/d/a"], "a", "b")
    status = validate_mapping(mapping, set())
    assert status.kind is ConflictKind.DUPLICATE_TARGET
    assert status.indices == (0, 1)


def test_duplicate_checked_before_existing_target():
    mapping = _build(["/d/a", "/d/b"], ".*", "c")
    status = validate_mapping(mapping, {Path("/d/c")})
    assert status.kind is ConflictKind.DUPLICATE_TARGET


def test_case_insensitive_duplicates():
    mapping = _build(["/d/a", "/d/B"], "^a$", "b")
    assert validate_mapping(mapping, set()).is_valid
    status = validate_mapping(mapping, set(), case_insensitive=True)
    assert status.kind is ConflictKind.DUPLICATE_TARGET


def test_case_only_change_with_case_insensitive_detection():
    mapping = _build(["/d/readme"], "readme", "README")
    # A case-insensitive filesystem reports the new spelling as existing
    status = validate_mapping(mapping, {Path("/d/README")}, case_insensitive=True)
    assert status.is_valid


def test_probe_existing_paths(tmp_path):
    (tmp_path / "a").write_text("a", encoding="utf-8")
    (tmp_path / "b").write_text("b", encoding="utf-8")
    mapping = _build([tmp_path / "a", tmp_path / "c"], "^(a|c)$", "b")
    assert probe_existing_paths(mapping) == {tmp_path / "b"}

    mapping = _build([tmp_path / "a"], "^a$", "z")
    assert probe_existing_paths(mapping) == set()


def test_empty_names_for_two_sources_are_duplicates():
    mapping = _build(["/d/a", "/d/b"], ".*", "")
    status = validate_mapping(mapping, set())
    assert status.kind is ConflictKind.DUPLICATE_TARGET
    assert status.indices == (0, 1)


def test_invalid_name_checked_after_existing_target():
    mapping = _build(["/d/a.txt", "/d/b.txt"], "^(a|b)", "sub/$1")
    assert validate_mapping(mapping, set()).kind is ConflictKind.INVALID_NAME

    mapping = _build(["/d/a.txt", "/d/c.txt"], "^(a|c)", "$1/")
    status = validate_mapping(mapping, set())
    assert status.kind is ConflictKind.INVALID_NAME
    assert status.indices == (0, 1)


def test_global_whole_name_replacement():
    mapping = _build(["/d/a.txt", "/d/b.txt"], ".*", "x", global_=True)
    assert mapping.pairs() == [(Path("/d/a.txt"), Path("/d/x")), (Path("/d/b.txt"), Path("/d/x"))]
    status = validate_mapping(mapping, set())
    assert status.kind is ConflictKind.DUPLICATE_TARGET
    assert status.indices == (0, 1)
