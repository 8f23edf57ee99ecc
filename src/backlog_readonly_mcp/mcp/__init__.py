"""MCP protocol handler for the Backlog read-only server."""
