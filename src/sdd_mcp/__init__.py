"""
SDD MCP Server.

Seam-Driven Development tools for AI coding assistants, served over MCP.
"""

__version__ = "1.0.0"
