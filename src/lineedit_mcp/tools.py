"""MCP tool implementations for line-oriented file editing.

Every tool accepts one path or a list of paths (wildcards allowed) and
returns a plain-text change report per file. Malformed requests are
rejected before any file is touched; per-file failures are reported for
that file only.
"""

from collections.abc import Callable
from typing import Annotated, Any

from mcp.types import ToolAnnotations
from pydantic import Field

from .context import AppContextType
from .engine import EditorConfig, EditValidationError, FileOutcome, operations
from .formatting import format_outcomes, format_validation_error
from .server import mcp

PathArg = Annotated[
    str | list[str],
    Field(description="File path or list of paths; wildcards (*, ?, [..]) are expanded"),
]
RangeArg = Annotated[
    int | list[int] | None,
    Field(
        description=(
            "Line range: N (one line), [start, end], [start, 0] (to end of file), "
            "-N (last N lines), [-start, -end] (counted from the end)"
        ),
    ),
]
ContentArg = Annotated[
    str | list[str] | None,
    Field(description="New lines, as one string with line breaks or a list of lines"),
]
EncodingArg = Annotated[
    str | None,
    Field(
        description="Explicit encoding (e.g. utf-8, utf8-bom, utf16be, sjis); detected if omitted"
    ),
]
DryRunArg = Annotated[bool, Field(description="Preview the change without writing the file")]
BackupArg = Annotated[
    bool | None,
    Field(description="Write a timestamped .bak copy first (server default if omitted)"),
]
ContainsArg = Annotated[str | None, Field(description="Literal text a line must contain")]
PatternArg = Annotated[str | None, Field(description="Python regular expression a line must match")]


def _paths(path: str | list[str]) -> list[str]:
    return [path] if isinstance(path, str) else list(path)


def _config(ctx: AppContextType | None) -> EditorConfig:
    if ctx is None:
        return EditorConfig()
    return ctx.request_context.lifespan_context.config


def _run(operation: Callable[..., list[FileOutcome]], *args: Any, **kwargs: Any) -> str:
    try:
        outcomes = operation(*args, **kwargs)
    except EditValidationError as e:
        return format_validation_error(e)
    return format_outcomes(outcomes)


# =============================================================================
# Editing tools
# =============================================================================


@mcp.tool(
    annotations=ToolAnnotations(
        title="Add Lines To File",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    )
)
async def add_lines_to_file(
    path: PathArg,
    content: ContentArg,
    line_number: Annotated[
        int | None,
        Field(description="Insert before this 1-based line; append at end if omitted", ge=1),
    ] = None,
    encoding: EncodingArg = None,
    dry_run: DryRunArg = False,
    backup: BackupArg = None,
    *,
    ctx: AppContextType,
) -> str:
    """Insert lines before a line number or append them. Creates missing files."""
    return _run(
        operations.add_lines,
        _paths(path),
        content,
        line_number=line_number,
        encoding=encoding,
        config=_config(ctx),
        dry_run=dry_run,
        backup=backup,
    )


@mcp.tool(
    annotations=ToolAnnotations(
        title="Set File Content",
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def set_file_content(
    path: PathArg,
    content: ContentArg,
    encoding: EncodingArg = None,
    dry_run: DryRunArg = False,
    backup: BackupArg = None,
    *,
    ctx: AppContextType,
) -> str:
    """Replace a file's entire content, keeping its encoding and newline style."""
    return _run(
        operations.set_file_content,
        _paths(path),
        content,
        encoding=encoding,
        config=_config(ctx),
        dry_run=dry_run,
        backup=backup,
    )


@mcp.tool(
    annotations=ToolAnnotations(
        title="Update Lines In File",
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def update_lines_in_file(
    path: PathArg,
    line_range: RangeArg = None,
    content: ContentArg = None,
    encoding: EncodingArg = None,
    dry_run: DryRunArg = False,
    backup: BackupArg = None,
    *,
    ctx: AppContextType,
) -> str:
    """Replace a line range with new content. Omit content to delete the range."""
    return _run(
        operations.update_lines,
        _paths(path),
        line_range,
        content,
        encoding=encoding,
        config=_config(ctx),
        dry_run=dry_run,
        backup=backup,
    )


@mcp.tool(
    annotations=ToolAnnotations(
        title="Remove Lines From File",
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=False,
        openWorldHint=False,
    )
)
async def remove_lines_from_file(
    path: PathArg,
    line_range: RangeArg = None,
    contains: ContainsArg = None,
    pattern: PatternArg = None,
    encoding: EncodingArg = None,
    dry_run: DryRunArg = False,
    backup: BackupArg = None,
    *,
    ctx: AppContextType,
) -> str:
    """Remove lines by range, literal text or regex. Range and match combine with AND."""
    return _run(
        operations.remove_lines,
        _paths(path),
        line_range,
        contains=contains,
        pattern=pattern,
        encoding=encoding,
        config=_config(ctx),
        dry_run=dry_run,
        backup=backup,
    )


@mcp.tool(
    annotations=ToolAnnotations(
        title="Update Match In File",
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=False,
        openWorldHint=False,
    )
)
async def update_match_in_file(
    path: PathArg,
    replacement: Annotated[
        str,
        Field(description="Replacement text; regex replacements may use \\1 or \\g<name>"),
    ],
    contains: ContainsArg = None,
    pattern: PatternArg = None,
    line_range: RangeArg = None,
    encoding: EncodingArg = None,
    dry_run: DryRunArg = False,
    backup: BackupArg = None,
    *,
    ctx: AppContextType,
) -> str:
    """Replace every occurrence of literal text or a regex, optionally within a range."""
    return _run(
        operations.update_match,
        _paths(path),
        replacement,
        contains=contains,
        pattern=pattern,
        line_range=line_range,
        encoding=encoding,
        config=_config(ctx),
        dry_run=dry_run,
        backup=backup,
    )


# =============================================================================
# Read-only tools
# =============================================================================


@mcp.tool(
    annotations=ToolAnnotations(
        title="Show Text File",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def show_text_file(
    path: PathArg,
    line_range: RangeArg = None,
    contains: ContainsArg = None,
    pattern: PatternArg = None,
    encoding: EncodingArg = None,
    *,
    ctx: AppContextType,
) -> str:
    """Show numbered lines of a range, or matching lines with surrounding context."""
    return _run(
        operations.show_text_file,
        _paths(path),
        line_range,
        contains=contains,
        pattern=pattern,
        encoding=encoding,
        config=_config(ctx),
    )


@mcp.tool(
    annotations=ToolAnnotations(
        title="Test Text File Contains",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def test_text_file_contains(
    path: PathArg,
    contains: ContainsArg = None,
    pattern: PatternArg = None,
    line_range: RangeArg = None,
    encoding: EncodingArg = None,
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """Check whether any of the files has a line with the text or regex match."""
    try:
        found = operations.test_contains(
            _paths(path),
            contains=contains,
            pattern=pattern,
            line_range=line_range,
            encoding=encoding,
            config=_config(ctx),
        )
    except EditValidationError as e:
        return {"status": "failure", "error": str(e)}
    return {"status": "success", "contains": found}


# Not a pytest test function
test_text_file_contains.__test__ = False  # type: ignore[attr-defined]
