"""MCP server implementation for contractdrift."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from contractdrift.core.config import EngineConfig
from contractdrift.core.engine import ContractEngine
from contractdrift.core.exceptions import ContractDriftError
from contractdrift.core.graph import GraphBuilder

server = Server("contractdrift")

_DIRECTORY_PROPERTIES: dict[str, Any] = {
    role: {
        "type": "array",
        "items": {"type": "string"},
        "description": f"Directories holding {role} files (detected when omitted)",
    }
    for role in ("shared", "client", "server")
}

_PATH_PROPERTY = {
    "type": "string",
    "description": "Project root (defaults to the current directory)",
}


def _config(arguments: dict[str, Any]) -> EngineConfig:
    """Build an engine config from tool arguments."""
    data: dict[str, Any] = {}
    directories = {
        role: arguments[role] for role in ("shared", "client", "server") if role in arguments
    }
    if directories:
        data["directories"] = directories
    if "threshold" in arguments:
        data["similarity_threshold"] = float(arguments["threshold"])
    if "scan_shared" in arguments:
        data["scan_shared"] = bool(arguments["scan_shared"])
    return EngineConfig.from_dict(data)


def _root(arguments: dict[str, Any]) -> Path:
    return Path(arguments.get("path") or Path.cwd()).resolve()


@server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
async def list_tools() -> list[Tool]:
    """List available contract tools."""
    return [
        Tool(
            name="contracts_check",
            description=(
                "Check client and server code against the functions and data shapes "
                "declared in shared files. Returns near-miss findings such as "
                "renamed functions, wrong argument counts and misspelled fields."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "path": _PATH_PROPERTY,
                    "threshold": {
                        "type": "number",
                        "description": "Minimum similarity score to report (default 0.7)",
                    },
                    "scan_shared": {
                        "type": "boolean",
                        "description": "Also check shared files as consumers",
                    },
                    **_DIRECTORY_PROPERTIES,
                },
            },
        ),
        Tool(
            name="contracts_exports",
            description="List the exported functions, methods and data shapes of shared files.",
            inputSchema={
                "type": "object",
                "properties": {
                    "path": _PATH_PROPERTY,
                    "shared": _DIRECTORY_PROPERTIES["shared"],
                },
            },
        ),
        Tool(
            name="contracts_roles",
            description="Show whether each source file is shared, client, server or unclassified.",
            inputSchema={
                "type": "object",
                "properties": {
                    "path": _PATH_PROPERTY,
                    **_DIRECTORY_PROPERTIES,
                },
            },
        ),
    ]


@server.call_tool()  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    try:
        if name == "contracts_check":
            result = _handle_check(arguments)
        elif name == "contracts_exports":
            result = _handle_exports(arguments)
        elif name == "contracts_roles":
            result = _handle_roles(arguments)
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(type="text", text=json.dumps(result, indent=2))]

    except ContractDriftError as e:
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]
    except Exception as e:
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]


def _handle_check(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handle contracts_check tool."""
    engine = ContractEngine(_config(arguments))
    result = engine.run(_root(arguments))
    return {
        "findings": [f.to_dict() for f in result.findings],
        "stats": result.stats.to_dict(),
        "contracts_indexed": result.contracts_indexed,
    }


def _handle_exports(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handle contracts_exports tool."""
    engine = ContractEngine(_config(arguments))
    engine.run(_root(arguments))
    return {
        "functions": [
            {
                "identity": f.identity,
                "file": f.file,
                "line": f.line,
                "parameters": [p.name for p in f.parameters],
                "required": f.required_count,
            }
            for f in engine.index.functions()
        ],
        "shapes": [
            {
                "name": s.name,
                "kind": s.kind.value,
                "file": s.file,
                "line": s.line,
                "fields": [fld.name for fld in s.fields],
            }
            for s in engine.index.shapes()
        ],
    }


def _handle_roles(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handle contracts_roles tool."""
    builder = GraphBuilder(_config(arguments))
    graph = builder.scan(_root(arguments))
    return {
        "files": {f.path: f.role.value for f in graph.files()},
        "skipped": list(builder.skipped),
    }


async def serve() -> None:
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
