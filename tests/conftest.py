"""Shared test configuration for lineedit-mcp tests.

Provides:
- Plain (uncoloured) editor configuration
- Helpers to create files with exact bytes and read them back
- A mocked MCP context for calling tools directly
"""

from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from lineedit_mcp.context import AppContext
from lineedit_mcp.engine import EditorConfig
from lineedit_mcp.engine.config import EditorConfigLoader


@pytest.fixture
def config() -> EditorConfig:
    """Default configuration with ANSI styling disabled."""
    return EditorConfig(color=False)


@pytest.fixture
def make_file(tmp_path: Path) -> Callable[..., Path]:
    """Create a file under tmp_path with exact byte content.

    Usage:
        path = make_file("a.txt", "a\\nb\\n")
        path = make_file("w.txt", "x\\r\\ny", encoding="utf-16-le", bom=True)
    """

    def _make(name: str, text: str, encoding: str = "utf-8", bom: bool = False) -> Path:
        path = tmp_path / name
        data = text.encode(encoding)
        if bom:
            data = "\ufeff".encode(encoding) + data
        path.write_bytes(data)
        return path

    return _make


@pytest.fixture
def mock_context(config: EditorConfig) -> MagicMock:
    """Create mock MCP context with AppContext for unit testing MCP tools."""
    loader = EditorConfigLoader()
    loader._config = config

    mock_ctx = MagicMock()
    mock_ctx.request_context.lifespan_context = AppContext(config_loader=loader, config=config)
    return mock_ctx
