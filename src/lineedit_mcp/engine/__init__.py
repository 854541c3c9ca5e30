"""Streaming line-editing engine.

Key Components:

- apply_edit: Single-pass edit of one file (the entry point behind every operation)
- EditSpec / EditKind / MatchCriterion: Validated edit requests
- EditResult: Counts, warnings and change report for one file
- LineRange: Positive, negative and open-ended line ranges
- RotateBuffer: Fixed-capacity ring buffer for context and tail ranges
- ContextRenderer / ChangeReport: Grep-style report built during the pass
- FileMetadata / detect_metadata / read_lines: Encoding and newline conventions
- staged_file / atomic_replace / create_backup: Failure-safe file replacement
- Operations (add_lines, update_lines, ...): Batch, per-file-isolated edits
- FileOutcome: Per-file success/failure in a batch
- EditorConfig / EditorConfigLoader: YAML configuration
"""

from .atomic import atomic_replace, create_backup, staged_file
from .config import EditorConfig, EditorConfigLoader
from .content import ContentAccumulator, normalize_content
from .exceptions import (
    ConflictingSelectorsError,
    EditIOError,
    EditValidationError,
    EditWarning,
    EncodingUpgradeWarning,
    InvalidLineRangeError,
    LineEditError,
    LineOutOfBoundsError,
    NoMatchWarning,
    RangeClampedWarning,
    TargetNotFoundError,
)
from .line_range import LineRange, ResolvedRange
from .metadata import FileMetadata, detect_metadata, read_lines
from .models import EditKind, EditResult, EditSpec, MatchCriterion
from .operations import (
    add_lines,
    remove_lines,
    set_file_content,
    show_text_file,
    test_contains,
    update_lines,
    update_match,
)
from .report import ChangeReport, ContextRenderer
from .result import FileOutcome, OutcomeStatus
from .rotate_buffer import RotateBuffer
from .transform import apply_edit

__all__ = [
    # Entry point
    "apply_edit",
    # Requests and results
    "EditKind",
    "EditSpec",
    "EditResult",
    "MatchCriterion",
    "ContentAccumulator",
    "normalize_content",
    "LineRange",
    "ResolvedRange",
    # Reporting
    "ChangeReport",
    "ContextRenderer",
    "RotateBuffer",
    # File handling
    "FileMetadata",
    "detect_metadata",
    "read_lines",
    "staged_file",
    "atomic_replace",
    "create_backup",
    # Operations
    "add_lines",
    "set_file_content",
    "update_lines",
    "remove_lines",
    "update_match",
    "show_text_file",
    "test_contains",
    "FileOutcome",
    "OutcomeStatus",
    # Configuration
    "EditorConfig",
    "EditorConfigLoader",
    # Errors and warnings
    "LineEditError",
    "EditValidationError",
    "InvalidLineRangeError",
    "ConflictingSelectorsError",
    "TargetNotFoundError",
    "LineOutOfBoundsError",
    "EditIOError",
    "EditWarning",
    "RangeClampedWarning",
    "NoMatchWarning",
    "EncodingUpgradeWarning",
]
