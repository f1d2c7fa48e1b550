"""Run the SDD MCP server over stdio: python -m sdd_mcp"""

from sdd_mcp.server import main

main()
