"""Entry point for lineedit-mcp MCP server.

Imports the tools module first so its @mcp.tool() decorators register
before the server starts.
"""


def main() -> None:
    """Entry point for direct execution."""
    # Import tools first to register @mcp.tool() decorators
    from . import tools  # noqa: F401 - imported for side effects (decorator registration)

    from .server import main as server_main

    server_main()


if __name__ == "__main__":
    main()
