"""Read-only MCP server for the Backlog project tracker."""

__version__ = "1.0.0"
