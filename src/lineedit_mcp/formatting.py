"""Formatting utilities for MCP tool responses.

Tool responses are plain text: one change report per file, separated by a
blank line, with warnings and per-file errors spelled out beneath.
"""

from .engine import FileOutcome


def format_outcome(outcome: FileOutcome) -> str:
    """Render one file's report, warnings, or error."""
    if outcome.is_failure:
        return f"Error: {outcome.display_path}: {outcome.error}"

    result = outcome.unwrap()
    lines: list[str] = []
    if result.report is not None:
        lines.append(result.report.render())
    for message in result.warning_messages:
        lines.append(f"WARNING: {message}")
    if result.backup_path is not None:
        lines.append(f"Backup: {result.backup_path}")
    return "\n".join(lines)


def format_outcomes(outcomes: list[FileOutcome]) -> str:
    """Render a batch of per-file outcomes."""
    if not outcomes:
        return "No files processed"
    return "\n\n".join(format_outcome(outcome) for outcome in outcomes)


def format_validation_error(error: Exception) -> str:
    """Render a request that was rejected before any file was touched."""
    return f"Error: {error}"
