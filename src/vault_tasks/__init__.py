"""Markdown vault task store served over MCP and a REST API."""

__version__ = "0.1.0"
