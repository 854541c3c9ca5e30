"""FastMCP server initialization for lineedit-mcp.

This module initializes the MCP server and manages shared resources via lifespan context.
All tool implementations are in the tools module.
"""

import logging
import os
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from mcp.server.fastmcp import FastMCP

from .context import AppContext, AppContextType
from .engine.config import EditorConfigLoader

logger = logging.getLogger(__name__)

# =============================================================================
# Shared Resources and Lifespan Management
# =============================================================================


@asynccontextmanager
async def app_lifespan(_server: FastMCP) -> AsyncIterator[AppContext]:
    """Load editor configuration once and share it with every tool.

    Environment Variables:
        LINEEDIT_CONFIG: Path to the editor config YAML file

    Args:
        _server: FastMCP server instance (unused, required by FastMCP signature)

    Yields:
        AppContext with the loaded configuration
    """
    logger.info("Initializing MCP server resources...")

    config_loader = EditorConfigLoader()
    config = config_loader.load_config()

    logger.info(
        f"Editor config: context_lines={config.context_lines}, "
        f"omission_threshold={config.omission_threshold}, backup={config.backup}"
    )

    try:
        yield AppContext(config_loader=config_loader, config=config)
    finally:
        # Nothing to release: every edit opens and closes its own files
        logger.info("Shutting down MCP server...")


# Initialize MCP server with lifespan management
# Following Python MCP naming convention: {service}_mcp
mcp = FastMCP("lineedit_mcp", lifespan=app_lifespan)


# =============================================================================
# Server Entry Point
# =============================================================================


def main() -> None:
    """Run the server on stdio, logging to stderr at LINEEDIT_LOG_LEVEL."""
    level_name = os.getenv("LINEEDIT_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelNamesMapping().get(level_name)
    if level is None:
        print(f"Warning: unknown LINEEDIT_LOG_LEVEL {level_name!r}, using INFO", file=sys.stderr)
        level = logging.INFO

    # stdout carries the MCP protocol
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    logger.info("Starting lineedit MCP server on stdio")
    mcp.run()


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    "mcp",
    "main",
    "AppContext",
    "AppContextType",
]
