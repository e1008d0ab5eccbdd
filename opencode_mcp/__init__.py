"""MCP bridge exposing the OpenCode coding agent as tools."""

__version__ = "0.4.0"
