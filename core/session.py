"""
session.py - Interactive Edit Session

Owns the input file list, the pattern/replacement text and the match flags.
Every edit synchronously rebuilds the mapping and its conflict status, so the
mapping shown to the user is always the one that gets committed.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple, Callable, Set

from .models_fs import (
    MatchFlags, EditableArea, SessionState, CommitMode,
    RenameMapping, ConflictStatus, RenameOptions
)
from .text_match import compile_pattern
from .plan_rename import build_mapping, validate_mapping, probe_existing_paths
from .exec_rename import commit, RenameResult, StaleMappingError, PartialFailureError


class SessionClosedError(RuntimeError):
    """Raised when a confirmed or cancelled session is used again"""


@dataclass(frozen=True)
class SessionSnapshot:
    """Inputs and derived state after one edit"""
    pattern: str
    replacement: str
    flags: MatchFlags
    mapping: RenameMapping
    status: ConflictStatus

    @property
    def state(self) -> SessionState:
        if not self.status.is_valid:
            return SessionState.INVALID
        if self.mapping.change_count == 0:
            return SessionState.EDITING
        return SessionState.VALID


def derive_snapshot(
    files: Sequence[Path],
    pattern: str,
    replacement: str,
    flags: MatchFlags,
    options: RenameOptions,
    probe: Callable[[RenameMapping], Set[Path]] = probe_existing_paths
) -> SessionSnapshot:
    """Compute mapping and status from the session inputs"""
    compiled = compile_pattern(pattern, flags.ignore_case)
    mapping = build_mapping(files, compiled, replacement, flags.global_)
    status = validate_mapping(mapping, probe(mapping), options.case_insensitive_detect)
    return SessionSnapshot(pattern, replacement, flags, mapping, status)


class EditSession:
    """Live regex rename session"""

    def __init__(
        self,
        files: Sequence[Path],
        pattern: str = "",
        replacement: str = "",
        flags: Optional[MatchFlags] = None,
        options: Optional[RenameOptions] = None,
        probe: Callable[[RenameMapping], Set[Path]] = probe_existing_paths
    ):
        self._files: Tuple[Path, ...] = tuple(Path(f) for f in files)
        self._options = options or RenameOptions()
        self._probe = probe
        self._active_area = EditableArea.PATTERN
        self._closed = False
        self._snapshot = derive_snapshot(
            self._files, pattern, replacement, flags or MatchFlags(),
            self._options, self._probe
        )

    # Read-only views

    @property
    def files(self) -> Tuple[Path, ...]:
        return self._files

    @property
    def options(self) -> RenameOptions:
        return self._options

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def pattern(self) -> str:
        return self._snapshot.pattern

    @property
    def replacement(self) -> str:
        return self._snapshot.replacement

    @property
    def flags(self) -> MatchFlags:
        return self._snapshot.flags

    @property
    def mapping(self) -> RenameMapping:
        return self._snapshot.mapping

    @property
    def status(self) -> ConflictStatus:
        return self._snapshot.status

    @property
    def state(self) -> SessionState:
        return self._snapshot.state

    @property
    def active_area(self) -> EditableArea:
        return self._active_area

    @property
    def closed(self) -> bool:
        return self._closed

    # Edits

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError("Session is already closed")

    def _update(
        self,
        pattern: Optional[str] = None,
        replacement: Optional[str] = None,
        flags: Optional[MatchFlags] = None
    ) -> SessionSnapshot:
        self._ensure_open()
        current = self._snapshot
        self._snapshot = derive_snapshot(
            self._files,
            current.pattern if pattern is None else pattern,
            current.replacement if replacement is None else replacement,
            current.flags if flags is None else flags,
            self._options,
            self._probe,
        )
        return self._snapshot

    def refresh(self) -> SessionSnapshot:
        """Re-derive state, e.g. after the filesystem changed"""
        return self._update()

    def set_pattern(self, pattern: str) -> SessionSnapshot:
        return self._update(pattern=pattern)

    def set_replacement(self, replacement: str) -> SessionSnapshot:
        return self._update(replacement=replacement)

    def set_flags(self, flags: MatchFlags) -> SessionSnapshot:
        return self._update(flags=flags)

    def toggle_global(self) -> SessionSnapshot:
        return self._update(flags=self.flags.toggled_global())

    def toggle_ignore_case(self) -> SessionSnapshot:
        return self._update(flags=self.flags.toggled_ignore_case())

    def next_area(self) -> EditableArea:
        self._ensure_open()
        self._active_area = self._active_area.next()
        return self._active_area

    def prev_area(self) -> EditableArea:
        self._ensure_open()
        self._active_area = self._active_area.prev()
        return self._active_area

    def type_char(self, ch: str) -> SessionSnapshot:
        """Append a character to the active field"""
        if self._active_area is EditableArea.PATTERN:
            return self._update(pattern=self.pattern + ch)
        return self._update(replacement=self.replacement + ch)

    def backspace(self) -> SessionSnapshot:
        """Remove the last character of the active field"""
        if self._active_area is EditableArea.PATTERN:
            return self._update(pattern=self.pattern[:-1])
        return self._update(replacement=self.replacement[:-1])

    # Terminal actions

    def confirm(
        self,
        mode: CommitMode = CommitMode.APPLY,
        progress_callback: Optional[Callable[[int, int, str], None]] = None
    ) -> Optional[RenameResult]:
        """
        Commit the current mapping

        Does nothing and returns None unless the state is VALID.

        Raises:
            StaleMappingError: The filesystem changed; the session stays open
            PartialFailureError: Some renames failed; the session is closed
            OSError: The plan log could not be written; the session stays open
        """
        self._ensure_open()
        snapshot = self._snapshot
        if snapshot.state is not SessionState.VALID:
            return None

        try:
            result = commit(
                snapshot.mapping,
                mode,
                options=self._options,
                probe=self._probe,
                progress_callback=progress_callback,
            )
        except StaleMappingError:
            self.refresh()
            raise
        except PartialFailureError:
            self._closed = True
            raise

        self._closed = True
        return result

    def cancel(self) -> None:
        """Discard the session without touching the filesystem"""
        self._closed = True
