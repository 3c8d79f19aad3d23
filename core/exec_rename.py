"""
exec_rename.py - Rename Execution Module

Responsibilities:
- Re-validate the mapping right before committing
- Order renames so chains and cycles never collide (staging through temporary names)
- Dry-run serialization as shell commands
- Execution logs
"""

from pathlib import Path
from typing import List, Tuple, Optional, Callable, Dict, Set
from dataclasses import dataclass, field
from collections import deque, defaultdict
from datetime import datetime
import shlex
import uuid
import json
import os

from .models_fs import (
    RenameMapping, RenameOp, RenameOptions, CommitMode, ConflictStatus,
    normalize_for_comparison
)
from .plan_rename import validate_mapping, probe_existing_paths
from .safety_checks import check_batch_rename


TEMP_PREFIX = ".__tmp_rename__"


class CommitError(Exception):
    """Base class for commit failures"""


class StaleMappingError(CommitError):
    """The mapping no longer validates against the filesystem; nothing was renamed"""

    def __init__(self, reasons: List[str], status: Optional[ConflictStatus] = None):
        self.reasons = reasons
        self.status = status
        super().__init__("Mapping is stale: " + "; ".join(reasons))


class PartialFailureError(CommitError):
    """A rename failed mid-batch; earlier renames were kept"""

    def __init__(self, result: "RenameResult"):
        self.result = result
        super().__init__(result.summary())


@dataclass
class RenameStep:
    """One filesystem rename performed while applying a mapping"""
    op: RenameOp
    src: Path
    dst: Path
    staging: bool = False           # Moves to a temporary name, not the final target


@dataclass
class RenameResult:
    """Rename execution result"""
    mode: CommitMode = CommitMode.APPLY
    success: List[RenameOp] = field(default_factory=list)
    failed: List[Tuple[RenameOp, str]] = field(default_factory=list)  # (op, error_msg)
    pending: List[RenameOp] = field(default_factory=list)             # Not attempted
    staged: List[Tuple[RenameOp, Path]] = field(default_factory=list)  # Left at a temp name
    commands: List[str] = field(default_factory=list)
    log_error: Optional[str] = None                                    # Result log write failure

    @property
    def success_count(self) -> int:
        return len(self.success)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def pending_count(self) -> int:
        return len(self.pending)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.pending and not self.staged

    def summary(self) -> str:
        """Generate summary"""
        if self.mode is CommitMode.DRY_RUN:
            return f"Dry run: {len(self.commands)} rename commands"

        lines = [
            f"Execution Result:",
            f"  - Success: {self.success_count}",
            f"  - Failed: {self.failed_count}",
            f"  - Not attempted: {self.pending_count}",
        ]
        if self.failed:
            lines.append("Failure Details:")
            for op, error in self.failed:
                lines.append(f"  - {op.src} -> {op.dst}: {error}")
        if self.staged:
            lines.append("Left at temporary names (manual cleanup required):")
            for op, temp in self.staged:
                lines.append(f"  - {temp} (was {op.src}, meant for {op.dst})")
        if self.pending:
            lines.append("Not attempted:")
            for op in self.pending[:10]:  # Show at most 10
                lines.append(f"  - {op.src} -> {op.dst}")
            if len(self.pending) > 10:
                lines.append(f"  ... and {len(self.pending) - 10} more")
        if self.log_error:
            lines.append(f"Result log not written: {self.log_error}")
        return "\n".join(lines)


def _generate_temp_name(original: Path) -> Path:
    """Generate temporary filename"""
    while True:
        unique_id = uuid.uuid4().hex[:8]
        candidate = original.parent / f"{TEMP_PREFIX}{unique_id}__{original.name}"
        if not os.path.lexists(candidate):
            return candidate


def format_command(op: RenameOp) -> str:
    """Shell command equivalent to one rename"""
    return f"mv -- {shlex.quote(str(op.src))} {shlex.quote(str(op.dst))}"


def format_commands(mapping: RenameMapping) -> List[str]:
    """Shell commands for every changed row, in mapping order"""
    return [format_command(op) for op in mapping.changed_ops]


def plan_steps(
    ops: List[RenameOp],
    temp_name: Callable[[Path], Path] = _generate_temp_name,
    case_insensitive: bool = False
) -> List[RenameStep]:
    """
    Order renames so that no step lands on a path still held by another source

    An op waits until the source occupying its target has moved away.
    When every remaining op waits on another one (a cycle), the first of
    them in mapping order is parked at a temporary name.

    Args:
        ops: Changed operations, in mapping order
        temp_name: Temporary name generator
        case_insensitive: Treat paths differing only in case as the same slot

    Returns:
        Rename steps in execution order
    """
    def key(p: Path) -> str:
        return normalize_for_comparison(p, case_insensitive)

    current: Dict[int, Path] = {op.index: op.src for op in ops}
    slots: Dict[str, RenameOp] = {key(op.src): op for op in ops}
    waiting: Dict[str, List[RenameOp]] = defaultdict(list)
    ready = deque()

    for op in ops:
        holder = slots.get(key(op.dst))
        if holder is not None and holder is not op:
            waiting[key(op.dst)].append(op)
        else:
            ready.append(op)

    def release(path: Path) -> None:
        slots.pop(key(path), None)
        ready.extend(waiting.pop(key(path), []))

    steps: List[RenameStep] = []
    done: Set[int] = set()
    staged: Set[int] = set()

    while len(done) < len(ops):
        if not ready:
            # Cycle: park one op to free its slot
            op = next(o for o in ops if o.index not in done and o.index not in staged)
            temp = temp_name(op.src)
            steps.append(RenameStep(op, current[op.index], temp, staging=True))
            staged.add(op.index)
            release(current[op.index])
            current[op.index] = temp
            continue

        op = ready.popleft()
        steps.append(RenameStep(op, current[op.index], op.dst))
        done.add(op.index)
        release(current[op.index])

    return steps


def _preflight(
    mapping: RenameMapping,
    mode: CommitMode,
    options: RenameOptions,
    probe: Callable[[RenameMapping], Set[Path]]
) -> None:
    """Re-validate a mapping against the current filesystem"""
    status = validate_mapping(mapping, probe(mapping), options.case_insensitive_detect)
    if not status.is_valid:
        raise StaleMappingError([status.message], status)

    errors = check_batch_rename(mapping.changed_ops, check_write=mode is CommitMode.APPLY)
    if errors:
        raise StaleMappingError([error for _op, error in errors])


def commit(
    mapping: RenameMapping,
    mode: CommitMode = CommitMode.APPLY,
    options: Optional[RenameOptions] = None,
    probe: Callable[[RenameMapping], Set[Path]] = probe_existing_paths,
    progress_callback: Optional[Callable[[int, int, str], None]] = None
) -> RenameResult:
    """
    Commit a validated mapping

    Args:
        mapping: Rename mapping that was just observed as valid
        mode: Apply on disk or emit shell commands
        options: Rename options
        probe: Existing-path probe used for re-validation
        progress_callback: Progress callback (current, total, message)

    Returns:
        Execution result

    Raises:
        StaleMappingError: The mapping no longer validates, nothing was renamed
        PartialFailureError: A rename failed, see the attached result
        OSError: The plan log could not be written, nothing was renamed
    """
    if options is None:
        options = RenameOptions()

    _preflight(mapping, mode, options, probe)

    result = RenameResult(mode=mode)
    changed = mapping.changed_ops

    if mode is CommitMode.DRY_RUN:
        result.commands = format_commands(mapping)
        return result

    if not changed:
        return result

    if options.log_dir:
        save_plan_log(mapping, options.log_dir)

    steps = plan_steps(changed, case_insensitive=options.case_insensitive_detect)
    total = len(steps)
    parked: Dict[int, Path] = {}

    for i, step in enumerate(steps):
        if progress_callback:
            target = "temp name" if step.staging else step.dst.name
            progress_callback(i + 1, total, f"{step.src.name} -> {target}")

        try:
            if os.path.lexists(step.dst) and not step.op.is_case_only_change:
                raise FileExistsError(f"Target already exists: {step.dst}")
            os.rename(step.src, step.dst)
        except OSError as e:
            result.failed.append((step.op, str(e)))
            _finish_partial(result, steps[i + 1:], parked, step.op)
            _record_result_log(result, options.log_dir)
            raise PartialFailureError(result) from e

        if step.staging:
            parked[step.op.index] = step.dst
        else:
            parked.pop(step.op.index, None)
            result.success.append(step.op)

    _record_result_log(result, options.log_dir)
    return result


def _record_result_log(result: RenameResult, log_dir: Optional[Path]) -> None:
    """Write the result log once renames have run; a write failure is kept on the result"""
    if not log_dir:
        return
    try:
        save_result_log(result, log_dir)
    except OSError as e:
        result.log_error = str(e)


def _finish_partial(
    result: RenameResult,
    remaining: List[RenameStep],
    parked: Dict[int, Path],
    failed_op: RenameOp
) -> None:
    """Record what is left after a failed step"""
    seen = {failed_op.index}
    for step in remaining:
        if step.op.index in seen or step.op.index in parked:
            continue
        seen.add(step.op.index)
        result.pending.append(step.op)

    for step in remaining:
        index = step.op.index
        if index in parked:
            result.staged.append((step.op, parked.pop(index)))
    # The failed op itself may be parked
    if failed_op.index in parked:
        result.staged.append((failed_op, parked.pop(failed_op.index)))


def save_plan_log(mapping: RenameMapping, log_dir: Path) -> Path:
    """Save execution plan log"""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"rename_plan_{timestamp}.json"

    data = {
        "timestamp": timestamp,
        "total_ops": mapping.change_count,
        "operations": [
            {
                "index": op.index,
                "src": str(op.src),
                "dst": str(op.dst),
            }
            for op in mapping.changed_ops
        ],
    }

    with open(log_file, 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return log_file


def save_result_log(result: RenameResult, log_dir: Path) -> Path:
    """Save execution result log"""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"rename_result_{timestamp}.json"

    data = {
        "timestamp": timestamp,
        "success_count": result.success_count,
        "failed_count": result.failed_count,
        "pending_count": result.pending_count,
        "success": [
            {"src": str(op.src), "dst": str(op.dst)}
            for op in result.success
        ],
        "failed": [
            {"src": str(op.src), "dst": str(op.dst), "error": error}
            for op, error in result.failed
        ],
        "pending": [
            {"src": str(op.src), "dst": str(op.dst)}
            for op in result.pending
        ],
        "staged": [
            {"src": str(op.src), "dst": str(op.dst), "temp": str(temp)}
            for op, temp in result.staged
        ],
    }

    with open(log_file, 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return log_file
