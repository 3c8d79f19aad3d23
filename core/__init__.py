"""
core - Regex Batch Rename Core Module

Provides pattern compilation, mapping generation, conflict validation,
the interactive edit session and commit execution.
"""

from .models_fs import (
    MatchFlags,
    MatchResult,
    EditableArea,
    SessionState,
    ConflictKind,
    ConflictStatus,
    CommitMode,
    RenameOp,
    RenameMapping,
    RenameOptions,
)

from .collect_files import (
    normalize_path,
    split_path,
    read_file_list,
    collect_files,
)

from .text_match import (
    CompiledPattern,
    ReplacementTemplate,
    compile_pattern,
    parse_template,
    replace_text,
    is_valid_filename,
)

from .plan_rename import (
    build_mapping,
    validate_mapping,
    probe_existing_paths,
)

from .exec_rename import (
    commit,
    format_command,
    format_commands,
    plan_steps,
    RenameResult,
    RenameStep,
    CommitError,
    StaleMappingError,
    PartialFailureError,
)

from .safety_checks import (
    check_source,
    check_writable,
    check_rename_op,
    check_batch_rename,
)

from .session import (
    EditSession,
    SessionSnapshot,
    SessionClosedError,
    derive_snapshot,
)

__all__ = [
    # Data models
    "MatchFlags",
    "MatchResult",
    "EditableArea",
    "SessionState",
    "ConflictKind",
    "ConflictStatus",
    "CommitMode",
    "RenameOp",
    "RenameMapping",
    "RenameOptions",
    "RenameResult",
    "RenameStep",

    # Input
    "normalize_path",
    "split_path",
    "read_file_list",
    "collect_files",

    # Pattern engine
    "CompiledPattern",
    "ReplacementTemplate",
    "compile_pattern",
    "parse_template",
    "replace_text",
    "is_valid_filename",

    # Mapping and validation
    "build_mapping",
    "validate_mapping",
    "probe_existing_paths",

    # Execution
    "commit",
    "format_command",
    "format_commands",
    "plan_steps",
    "CommitError",
    "StaleMappingError",
    "PartialFailureError",

    # Safety checks
    "check_source",
    "check_writable",
    "check_rename_op",
    "check_batch_rename",

    # Session
    "EditSession",
    "SessionSnapshot",
    "SessionClosedError",
    "derive_snapshot",
]
