"""Read-only Backlog tools.

Provides the tool protocol, a registry that refuses anything that looks
like a write, and the catalogue of tools exposed over MCP.
"""
