"""
cli_interactive.py - Interactive CLI

Provides a line-based editor over an edit session
"""

import sys
from typing import Optional, TextIO

from core import (
    EditSession, CommitMode, SessionState, MatchResult,
    RenameResult, StaleMappingError
)


HELP_LINES = [
    ("p <regex>", "set the regex (p alone clears it)"),
    ("s <text>", "set the replacement ($1, ${name}, $$)"),
    ("g", "toggle the 'global' flag"),
    ("i", "toggle the 'ignore case' flag"),
    ("l", "show the preview again"),
    ("y", "execute renaming"),
    ("q", "exit without renaming"),
    ("?", "show this help"),
]


def print_header(title: str, out: TextIO):
    """Print header"""
    print(file=out)
    print("=" * 60, file=out)
    print(f"  {title}", file=out)
    print("=" * 60, file=out)
    print(file=out)


def print_help(out: TextIO):
    """Print command help"""
    for key, descr in HELP_LINES:
        print(f"  {key:<12} - {descr}", file=out)


def print_preview(session: EditSession, out: TextIO, limit: int = 30):
    """Print the current mapping and status"""
    flags = str(session.flags) or "-"
    print(f"Regex: {session.pattern!r}  Replacement: {session.replacement!r}  Flags: {flags}", file=out)
    print("-" * 70, file=out)

    mapping = session.mapping
    for op in mapping.ops[:limit]:
        if op.result is MatchResult.REPLACED:
            print(f"  {op.src} -> {op.dst.name}", file=out)
        else:
            print(f"  {op.src}", file=out)
    if len(mapping) > limit:
        print(f"  ... and {len(mapping) - limit} more files", file=out)
    print("-" * 70, file=out)

    state = session.state
    if state is SessionState.INVALID:
        print(f"Conflict: {session.status.message}", file=out)
    elif state is SessionState.EDITING:
        print("No files need renaming", file=out)
    else:
        print(f"Will rename {mapping.change_count} of {len(mapping)} files", file=out)


def interactive_mode(
    session: EditSession,
    mode: CommitMode = CommitMode.APPLY,
    commands: Optional[TextIO] = None,
    out: Optional[TextIO] = None
) -> Optional[RenameResult]:
    """
    Interactive mode main loop

    Args:
        session: Edit session to drive
        mode: Commit mode used on confirmation
        commands: Command stream (defaults to stdin)
        out: Output stream for prompts and preview (defaults to stderr)

    Returns:
        Commit result, or None when cancelled
    """
    commands = commands or sys.stdin
    out = out or sys.stderr

    print_header("Regex Rename", out)
    print_help(out)
    print(file=out)
    print_preview(session, out)

    while True:
        print("> ", end="", file=out, flush=True)
        line = commands.readline()
        if not line:
            # End of input
            session.cancel()
            print("Cancelled", file=out)
            return None

        line = line.rstrip("\r\n")
        cmd, _, arg = line.partition(" ")

        if cmd == "q":
            session.cancel()
            print("Cancelled", file=out)
            return None
        elif cmd == "p":
            session.set_pattern(arg)
        elif cmd == "s":
            session.set_replacement(arg)
        elif cmd == "g":
            session.toggle_global()
        elif cmd == "i":
            session.toggle_ignore_case()
        elif cmd == "l":
            pass
        elif cmd == "?":
            print_help(out)
            continue
        elif cmd == "y":
            if session.state is not SessionState.VALID:
                if session.state is SessionState.INVALID:
                    print(f"Cannot rename: {session.status.message}", file=out)
                else:
                    print("No files need renaming", file=out)
                continue
            try:
                return session.confirm(mode)
            except StaleMappingError as e:
                print(f"Error: {e}", file=out)
        else:
            print("Invalid command, enter ? for help", file=out)
            continue

        print_preview(session, out)
