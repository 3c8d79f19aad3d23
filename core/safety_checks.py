"""
safety_checks.py - Safety Check Module

Provides checks run right before a mapping is committed
"""

from pathlib import Path
from typing import Tuple, Optional, List
import os

from .models_fs import RenameOp


def check_source(src: Path) -> Tuple[bool, Optional[str]]:
    """
    Check that a source path is still present

    Args:
        src: Source path

    Returns:
        (is_present, error_reason)
    """
    if not os.path.lexists(src):
        return False, f"Source file does not exist: {src}"
    return True, None


def check_writable(path: Path) -> Tuple[bool, Optional[str]]:
    """
    Check that the directory holding a path is writable

    Args:
        path: Path to check

    Returns:
        (is_writable, error_reason)
    """
    parent = path.parent
    if not parent.exists():
        return False, f"Parent directory does not exist: {parent}"
    if not os.access(parent, os.W_OK):
        return False, f"Directory is not writable: {parent}"
    return True, None


def check_rename_op(op: RenameOp, check_write: bool = True) -> Tuple[bool, Optional[str]]:
    """
    Check if a single rename operation can still be performed

    Args:
        op: Rename operation
        check_write: Whether to require a writable target directory

    Returns:
        (is_safe, error_reason)
    """
    valid, error = check_source(op.src)
    if not valid:
        return False, error

    if not check_write:
        return True, None
    return check_writable(op.dst)


def check_batch_rename(ops: List[RenameOp], check_write: bool = True) -> List[Tuple[RenameOp, str]]:
    """
    Batch check rename operations

    Args:
        ops: Operations to check
        check_write: Whether to require writable target directories

    Returns:
        Error list [(op, error), ...]
    """
    errors = []
    for op in ops:
        valid, error = check_rename_op(op, check_write)
        if not valid:
            errors.append((op, error))
    return errors
