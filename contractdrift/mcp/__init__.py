"""
MCP server for contractdrift.

Exposes contract-drift checks to LLMs via the Model Context Protocol.

Tools:
    - contracts_check: Check a project and return its findings
    - contracts_exports: List the contracts declared in shared files
    - contracts_roles: Show the role assigned to every source file

Usage:
    Run: contractdrift-mcp
"""

import asyncio

from contractdrift.mcp.server import serve as _serve


def serve() -> None:
    """Entry point for the MCP server."""
    asyncio.run(_serve())


__all__ = ["serve"]
