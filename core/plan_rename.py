"""
plan_rename.py - Rename Mapping Module

Responsibilities:
- Build the (source, target) mapping from a compiled pattern
- Detect conflicts over the whole batch
- Probe the filesystem for existing targets
"""

from pathlib import Path
from typing import List, Dict, Set, Iterable, Sequence
from collections import defaultdict
import os

from .models_fs import (
    RenameOp, RenameMapping, ConflictStatus, MatchResult,
    normalize_for_comparison
)
from .text_match import (
    CompiledPattern, ReplacementTemplate, parse_template,
    replace_text, is_valid_filename
)
from .collect_files import split_path


def build_mapping(
    files: Sequence[Path],
    compiled: CompiledPattern,
    replacement: str,
    global_: bool = False
) -> RenameMapping:
    """
    Build the rename mapping for a file list

    Only basenames are rewritten; every file yields exactly one row,
    unchanged rows included.

    Args:
        files: Input file list
        compiled: Compiled pattern
        replacement: Raw replacement template
        global_: Replace all matches instead of the first

    Returns:
        Rename mapping in input order
    """
    template: ReplacementTemplate = parse_template(replacement)
    ops: List[RenameOp] = []

    for index, src in enumerate(files):
        src = Path(src)
        directory, name = split_path(src)

        if not name:
            ops.append(RenameOp(index, src, src, name, MatchResult.NO_MATCH))
            continue

        new_name, result = replace_text(name, compiled, template, global_)
        if result is MatchResult.REPLACED:
            dst = directory / new_name
        else:
            dst = src
        ops.append(RenameOp(index, src, dst, new_name, result))

    return RenameMapping(ops=tuple(ops), pattern_error=compiled.error)


def probe_existing_paths(mapping: RenameMapping) -> Set[Path]:
    """
    Return the changed targets that currently exist on disk

    Args:
        mapping: Rename mapping

    Returns:
        Existing target paths (dangling symlinks included)
    """
    return {op.dst for op in mapping.changed_ops if os.path.lexists(op.dst)}


def validate_mapping(
    mapping: RenameMapping,
    existing_paths: Iterable[Path],
    case_insensitive: bool = False
) -> ConflictStatus:
    """
    Validate a rename mapping as a whole

    Checks, first failure wins: pattern error, duplicate targets, targets
    that exist and are not being renamed, invalid target names.

    Args:
        mapping: Rename mapping
        existing_paths: Paths known to exist on disk
        case_insensitive: Compare paths case-insensitively

    Returns:
        Conflict status
    """
    if mapping.pattern_error is not None:
        return ConflictStatus.pattern_error(mapping.pattern_error)

    def key(p: Path) -> str:
        return normalize_for_comparison(p, case_insensitive)

    # Duplicate targets
    groups: Dict[str, List[RenameOp]] = defaultdict(list)
    for op in mapping:
        groups[key(op.dst)].append(op)

    for group in groups.values():
        if len(group) < 2:
            continue
        # The same file listed several times and left unchanged is harmless
        if all(op.is_same and op.src == group[0].src for op in group):
            continue
        return ConflictStatus.duplicate_target([op.index for op in group], group[0].dst)

    # Targets clobbering files outside the batch
    source_keys = {key(op.src) for op in mapping}
    existing_keys = {key(p) for p in existing_paths}
    for op in mapping.changed_ops:
        dst_key = key(op.dst)
        if dst_key in existing_keys and dst_key not in source_keys:
            return ConflictStatus.target_exists(op.index, op.dst)

    # Invalid names
    bad_indices: List[int] = []
    first_reason = ""
    for op in mapping.changed_ops:
        valid, error = is_valid_filename(op.new_name)
        if not valid:
            if not bad_indices:
                first_reason = f"{op.src.name} -> {op.new_name!r}: {error}"
            bad_indices.append(op.index)
    if bad_indices:
        return ConflictStatus.invalid_name(bad_indices, first_reason)

    return ConflictStatus.valid()
