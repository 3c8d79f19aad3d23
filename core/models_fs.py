"""
models_fs.py - Core Data Structure Definitions

Contains:
- MatchFlags: Global / ignore-case matching flags
- RenameOp: Single (source, target) row of a mapping
- RenameMapping: Ordered mapping for the whole file list
- ConflictStatus: Validation outcome of a mapping
- RenameOptions: Options configuration
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List, Tuple, Iterator
from enum import Enum
import platform


class MatchResult(Enum):
    """Outcome of matching a single basename"""
    INVALID_PATTERN = "invalid_pattern"  # Pattern did not compile
    NO_MATCH = "no_match"                # Pattern did not match the name
    UNCHANGED = "unchanged"              # Matched, replacement yields the same name
    REPLACED = "replaced"                # Matched and produced a new name


class EditableArea(Enum):
    """Input field receiving typed characters"""
    PATTERN = 0
    REPLACEMENT = 1

    def next(self) -> "EditableArea":
        members = list(EditableArea)
        return members[(members.index(self) + 1) % len(members)]

    def prev(self) -> "EditableArea":
        members = list(EditableArea)
        return members[(members.index(self) - 1) % len(members)]


class SessionState(Enum):
    """Derived state of an edit session"""
    EDITING = "editing"    # Valid, but nothing would be renamed
    VALID = "valid"        # Valid and at least one entry changes
    INVALID = "invalid"    # Pattern error or conflict


class ConflictKind(Enum):
    """Conflict classes, in the order they are checked"""
    VALID = "valid"
    PATTERN_ERROR = "pattern_error"
    INVALID_NAME = "invalid_name"
    DUPLICATE_TARGET = "duplicate_target"
    TARGET_EXISTS = "target_exists"


class CommitMode(Enum):
    """Commit mode"""
    APPLY = "apply"        # Rename on disk
    DRY_RUN = "dry_run"    # Emit shell commands only


@dataclass(frozen=True)
class MatchFlags:
    """Matching flags"""
    global_: bool = False          # Replace every match instead of the first
    ignore_case: bool = False      # Case-insensitive matching

    def __str__(self) -> str:
        return ("g" if self.global_ else "") + ("i" if self.ignore_case else "")

    @classmethod
    def from_string(cls, text: str) -> "MatchFlags":
        """Parse a flags string such as "g", "i" or "gi" """
        text = text or ""
        unknown = set(text) - {"g", "i"}
        if unknown:
            raise ValueError(f"invalid regex flags: '{text}'")
        return cls(global_="g" in text, ignore_case="i" in text)

    def toggled_global(self) -> "MatchFlags":
        return MatchFlags(global_=not self.global_, ignore_case=self.ignore_case)

    def toggled_ignore_case(self) -> "MatchFlags":
        return MatchFlags(global_=self.global_, ignore_case=not self.ignore_case)


@dataclass(frozen=True)
class RenameOp:
    """Single rename row"""
    index: int                      # Position in the input file list
    src: Path                       # Source path
    dst: Path                       # Target path
    new_name: str                   # Computed basename (before joining)
    result: MatchResult = MatchResult.NO_MATCH

    @property
    def is_same(self) -> bool:
        """Whether source and destination are the same"""
        return self.src == self.dst

    @property
    def is_case_only_change(self) -> bool:
        """Whether it's only a case change"""
        return (self.src.parent == self.dst.parent and
                self.src.name.lower() == self.dst.name.lower() and
                self.src.name != self.dst.name)


@dataclass(frozen=True)
class RenameMapping:
    """Ordered mapping, one row per input file"""
    ops: Tuple[RenameOp, ...] = ()
    pattern_error: Optional[str] = None

    def __len__(self) -> int:
        return len(self.ops)

    def __iter__(self) -> Iterator[RenameOp]:
        return iter(self.ops)

    def __getitem__(self, index: int) -> RenameOp:
        return self.ops[index]

    @property
    def changed_ops(self) -> List[RenameOp]:
        """Rows whose target differs from the source"""
        return [op for op in self.ops if not op.is_same]

    @property
    def change_count(self) -> int:
        return len(self.changed_ops)

    def pairs(self) -> List[Tuple[Path, Path]]:
        """(source, target) pairs in input order"""
        return [(op.src, op.dst) for op in self.ops]


@dataclass(frozen=True)
class ConflictStatus:
    """Validation outcome of a mapping"""
    kind: ConflictKind = ConflictKind.VALID
    message: str = ""
    indices: Tuple[int, ...] = ()
    path: Optional[Path] = None

    @property
    def is_valid(self) -> bool:
        return self.kind is ConflictKind.VALID

    @classmethod
    def valid(cls) -> "ConflictStatus":
        return cls()

    @classmethod
    def pattern_error(cls, message: str) -> "ConflictStatus":
        return cls(ConflictKind.PATTERN_ERROR, f"Invalid regex: {message}")

    @classmethod
    def invalid_name(cls, indices: List[int], reason: str) -> "ConflictStatus":
        return cls(ConflictKind.INVALID_NAME, reason, tuple(sorted(indices)))

    @classmethod
    def duplicate_target(cls, indices: List[int], target: Path) -> "ConflictStatus":
        ordered = tuple(sorted(indices))
        return cls(
            ConflictKind.DUPLICATE_TARGET,
            f"{len(ordered)} files would be renamed to {target}",
            ordered,
            target,
        )

    @classmethod
    def target_exists(cls, index: int, target: Path) -> "ConflictStatus":
        return cls(
            ConflictKind.TARGET_EXISTS,
            f"Target already exists and is not being renamed: {target}",
            (index,),
            target,
        )


@dataclass
class RenameOptions:
    """Rename options configuration"""
    # Case-insensitive conflict detection (Windows/macOS default to insensitive)
    case_insensitive_detect: bool = field(default_factory=lambda: platform.system() in ("Windows", "Darwin"))

    # Directory for JSON plan/result logs (None disables logging)
    log_dir: Optional[Path] = None

    # Make input paths absolute and drop "." / ".." components
    normalize_paths: bool = True


def normalize_for_comparison(path: Path, case_insensitive: bool) -> str:
    """Normalize a path for comparison"""
    if case_insensitive:
        return str(path).casefold()
    return str(path)
