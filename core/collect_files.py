"""
collect_files.py - Input File Collection Module

Provides path normalization and reading of the input file list
"""

from pathlib import Path
from typing import List, Optional, Iterable, TextIO, Tuple
import os


def normalize_path(path: Path, cwd: Optional[Path] = None) -> Path:
    """
    Make a path absolute and drop "." / ".." components lexically

    Symlinks are not resolved, so a link is renamed rather than its target.

    Args:
        path: Input path
        cwd: Base directory for relative paths (defaults to current directory)

    Returns:
        Normalized absolute path
    """
    path = Path(path)
    if not path.is_absolute():
        path = Path(cwd if cwd is not None else os.getcwd()) / path
    return Path(os.path.normpath(path))


def split_path(path: Path) -> Tuple[Path, str]:
    """
    Split a path into (directory, basename)

    Args:
        path: Path to split

    Returns:
        (parent directory, basename); basename is "" for a root path
    """
    path = Path(path)
    return path.parent, path.name


def read_file_list(stream: TextIO) -> List[Path]:
    """
    Read one path per line until end of stream

    Args:
        stream: Text stream (usually stdin)

    Returns:
        Paths in input order, empty lines skipped
    """
    paths: List[Path] = []
    for line in stream:
        line = line.rstrip("\r\n")
        if not line:
            continue
        paths.append(Path(line))
    return paths


def collect_files(
    args: Iterable[str],
    stream: Optional[TextIO] = None,
    normalize: bool = True,
    cwd: Optional[Path] = None
) -> List[Path]:
    """
    Build the input file list from arguments, falling back to a stream

    Args:
        args: Positional file arguments
        stream: Stream read when no arguments were given
        normalize: Whether to normalize each path
        cwd: Base directory for normalization

    Returns:
        Ordered file list
    """
    files = [Path(a) for a in args]
    if not files and stream is not None:
        files = read_file_list(stream)

    if normalize:
        files = [normalize_path(f, cwd) for f in files]
    return files
