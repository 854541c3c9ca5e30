"""Per-file outcome for batch operations.

Batch operations never let one file's failure stop the others: each file
yields a FileOutcome, either carrying its EditResult or the error that
stopped it.
"""

from dataclasses import dataclass
from enum import Enum

from .models import EditResult


class OutcomeStatus(str, Enum):
    """Status of one file within a batch operation."""

    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class FileOutcome:
    """
    Result of processing one file (or one unmatched path pattern).

    Usage:
        for outcome in remove_lines(["*.txt"], line_range=[1]):
            if outcome.is_success:
                print(outcome.value.report)
            else:
                print(f"{outcome.display_path}: {outcome.error}")
    """

    status: OutcomeStatus
    display_path: str
    value: EditResult | None = None
    error: str | None = None
    error_type: str | None = None

    def __post_init__(self) -> None:
        """Validate state consistency after initialization."""
        if self.status == OutcomeStatus.SUCCESS and self.value is None:
            raise ValueError("Success outcome must have a value")
        if self.status == OutcomeStatus.FAILED and not self.error:
            raise ValueError("Failed outcome must have an error message")

    @property
    def is_success(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS

    @property
    def is_failure(self) -> bool:
        return self.status == OutcomeStatus.FAILED

    @classmethod
    def success(cls, display_path: str, value: EditResult) -> "FileOutcome":
        return cls(status=OutcomeStatus.SUCCESS, display_path=display_path, value=value)

    @classmethod
    def failure(cls, display_path: str, error: BaseException) -> "FileOutcome":
        return cls(
            status=OutcomeStatus.FAILED,
            display_path=display_path,
            error=str(error),
            error_type=type(error).__name__,
        )

    def __bool__(self) -> bool:
        """Allow using outcome in if statements."""
        return self.is_success

    def unwrap(self) -> EditResult:
        """Get the edit result or raise if this file failed."""
        if not self.is_success or self.value is None:
            raise ValueError(f"Cannot unwrap failed outcome for {self.display_path}: {self.error}")
        return self.value
