"""Shared context types for MCP server.

This module contains context types used across server and tools modules,
separated to avoid circular imports.
"""

from dataclasses import dataclass

from mcp.server.fastmcp import Context
from mcp.server.session import ServerSession

from .engine import EditorConfig
from .engine.config import EditorConfigLoader


@dataclass
class AppContext:
    """Application context containing shared resources for MCP tools.

    Created once during server startup and handed to every tool through the
    Context parameter.
    """

    config_loader: EditorConfigLoader
    config: EditorConfig


# Type alias for MCP tool context parameter
AppContextType = Context[ServerSession, AppContext]


__all__ = ["AppContext", "AppContextType"]
