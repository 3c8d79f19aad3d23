"""
cli_entry.py - CLI Entry Point

Supports:
- GUI editing (default)
- Line-based interactive editing (--cli)
- Non-interactive confirmation of the initial regex (--yes)
"""

import argparse
import sys
from pathlib import Path
from typing import Callable, Optional, TextIO

from core import (
    EditSession, MatchFlags, RenameOptions, CommitMode, SessionState,
    RenameResult, StaleMappingError, PartialFailureError, collect_files
)
from .cli_interactive import interactive_mode


EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFLICT = 2


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser"""
    parser = argparse.ArgumentParser(
        prog="rxrename",
        description="Rename files with a live regex find/replace",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Edit in the GUI
  rxrename *.txt

  # Edit in the terminal, file list from another command
  find . -name '*.JPG' | rxrename --cli

  # Print shell commands instead of renaming
  rxrename *.txt --regex '^(.*)\\.txt$' --replace '$1.md' --dry-run --yes
"""
    )

    parser.add_argument("files", nargs="*",
                        help="Files to rename. If none provided, the file list is read from stdin")
    parser.add_argument("--regex", "-r", type=str, default="", help="Initial regex")
    parser.add_argument("--replace", "-s", type=str, default="", help="Initial replacement string")
    parser.add_argument("--flags", "-f", type=str, default="",
                        help="Initial flags: g (global), i (ignore case)")
    parser.add_argument("--dry-run", "-d", action="store_true",
                        help="Only print shell commands w/o executing them")
    parser.add_argument("--cli", "-c", action="store_true", help="Edit in the terminal instead of the GUI")
    parser.add_argument("--yes", "-y", action="store_true",
                        help="Skip editing, confirm the initial regex and replacement")
    parser.add_argument("--log-dir", type=str, default=None, help="Directory for JSON execution logs")
    parser.add_argument("--keep-paths", action="store_true",
                        help="Use paths as given instead of making them absolute")

    return parser


def report_result(result: Optional[RenameResult], stdout: TextIO, stderr: TextIO) -> int:
    """Print a commit result and return the exit status"""
    if result is None:
        return EXIT_OK

    if result.mode is CommitMode.DRY_RUN:
        for command in result.commands:
            print(command, file=stdout)
        return EXIT_OK

    print(result.summary(), file=stderr)
    return EXIT_OK if result.ok else EXIT_FAILURE


def run_front_end(
    front_end: Callable[[], Optional[RenameResult]],
    stdout: TextIO,
    stderr: TextIO
) -> int:
    """Run an editing front end and translate commit errors into exit codes"""
    try:
        result = front_end()
    except StaleMappingError as e:
        print(f"Error: {e}", file=stderr)
        return EXIT_FAILURE
    except PartialFailureError as e:
        print("Error: renaming stopped after a failure", file=stderr)
        print(e.result.summary(), file=stderr)
        return EXIT_FAILURE
    except OSError as e:
        # Plan log could not be written, nothing was renamed
        print(f"Error: Unable to write execution log: {e}", file=stderr)
        return EXIT_FAILURE
    return report_result(result, stdout, stderr)


def cmd_confirm(session: EditSession, mode: CommitMode, stderr: TextIO) -> Optional[RenameResult]:
    """Confirm the initial state without interaction"""
    if session.state is SessionState.EDITING:
        print("No files need renaming", file=stderr)
        session.cancel()
        return None
    return session.confirm(mode)


def open_terminal() -> TextIO:
    """Open the controlling terminal for reading commands"""
    return open("/dev/tty", "r", encoding="utf-8")


def cmd_interactive(
    session: EditSession,
    mode: CommitMode,
    commands: TextIO,
    stderr: TextIO
) -> Optional[RenameResult]:
    """Run the line-based editor"""
    return interactive_mode(session, mode, commands=commands, out=stderr)


def cmd_gui(session: EditSession, mode: CommitMode) -> Optional[RenameResult]:
    """Run the GUI editor"""
    from gui import main as gui_main
    return gui_main(session, mode)


def main(
    argv=None,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None
) -> int:
    """Main entry point"""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        flags = MatchFlags.from_string(args.flags)
    except ValueError as e:
        print(f"Error: {e}", file=stderr)
        return EXIT_FAILURE

    options = RenameOptions(
        log_dir=Path(args.log_dir) if args.log_dir else None,
        normalize_paths=not args.keep_paths,
    )

    from_stdin = not args.files
    files = collect_files(args.files, stdin, normalize=options.normalize_paths)
    if not files:
        print("Error: No files to rename", file=stderr)
        return EXIT_FAILURE

    session = EditSession(files, args.regex, args.replace, flags, options)
    mode = CommitMode.DRY_RUN if args.dry_run else CommitMode.APPLY

    if args.yes:
        if session.state is SessionState.INVALID:
            print(f"Conflict: {session.status.message}", file=stderr)
            session.cancel()
            return EXIT_CONFLICT
        return run_front_end(lambda: cmd_confirm(session, mode, stderr), stdout, stderr)

    if args.cli:
        commands = stdin
        if from_stdin:
            # stdin carried the file list, read commands from the terminal
            try:
                commands = open_terminal()
            except OSError as e:
                print(f"Error: Unable to open the terminal for input: {e}", file=stderr)
                session.cancel()
                return EXIT_FAILURE
        try:
            return run_front_end(
                lambda: cmd_interactive(session, mode, commands, stderr),
                stdout, stderr,
            )
        finally:
            if commands is not stdin:
                commands.close()

    try:
        return run_front_end(lambda: cmd_gui(session, mode), stdout, stderr)
    except ImportError as e:
        print("Error: Unable to start GUI, please ensure PySide6 is installed", file=stderr)
        print(f"Detailed error: {e}", file=stderr)
        print("\nInstall command: pip install PySide6", file=stderr)
        print("\nTo edit in the terminal, run:", file=stderr)
        print("    rxrename --cli ...", file=stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
