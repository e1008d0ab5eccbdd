"""MCP server management tools.

Listing reads the "mcp" section of opencode.json. Add/remove/enable only
return the config fragment to apply; they never edit the file.
"""

from typing import Any, Dict

from opencode_mcp.models import EmptyInput, McpAddInput, McpEnableInput, McpNameInput, McpServerType
from opencode_mcp.services.config_file import detect_config_path, read_config
from opencode_mcp.tools.base import READ_ONLY, ToolContext, tool
from opencode_mcp.utils.errors import InvalidInputError


@tool(
    "opencode_mcp_list",
    "List MCP servers configured in opencode.json.",
    EmptyInput,
    operation="Listing MCP servers",
    category="mcp_error",
    annotations=READ_ONLY,
)
async def mcp_list(ctx: ToolContext, params: EmptyInput):
    path = detect_config_path()
    section = read_config(path).get("mcp")
    servers = []
    if isinstance(section, dict):
        for name, entry in section.items():
            if not isinstance(entry, dict):
                continue
            servers.append({
                "name": name,
                "type": entry.get("type", "local"),
                "enabled": entry.get("enabled", True) is not False,
            })
    return {
        "config_path": str(path),
        "servers": servers,
        "note": 'Use the "opencode mcp list" CLI command for live connection status.',
    }


@tool(
    "opencode_mcp_add",
    "Build the opencode.json entry for a new MCP server (local command or remote URL).",
    McpAddInput,
    operation="Adding MCP server",
    category="mcp_error",
    annotations=READ_ONLY,
)
async def mcp_add(ctx: ToolContext, params: McpAddInput):
    entry: Dict[str, Any] = {"type": params.type.value, "enabled": params.enabled}
    if params.type == McpServerType.LOCAL:
        if not params.command:
            raise InvalidInputError("command is required for a local MCP server")
        entry["command"] = params.command
        if params.environment:
            entry["environment"] = params.environment
    else:
        if not params.url:
            raise InvalidInputError("url is required for a remote MCP server")
        entry["url"] = params.url
        if params.headers:
            entry["headers"] = params.headers
    if params.timeout:
        entry["timeout"] = params.timeout

    return {
        "message": "Add this configuration to your opencode.json:",
        "config": {"mcp": {params.name: entry}},
        "config_path": str(detect_config_path()),
    }


@tool(
    "opencode_mcp_remove",
    "Show how to remove an MCP server from opencode.json.",
    McpNameInput,
    operation="Removing MCP server",
    category="mcp_error",
    annotations=READ_ONLY,
)
async def mcp_remove(ctx: ToolContext, params: McpNameInput):
    return {
        "message": f'Remove "{params.name}" from the "mcp" section in your opencode.json',
        "instruction": f'Delete the "{params.name}" key from the mcp object in your configuration file.',
        "config_path": str(detect_config_path()),
    }


@tool(
    "opencode_mcp_enable",
    "Show how to enable or disable an MCP server in opencode.json.",
    McpEnableInput,
    operation="Updating MCP server",
    category="mcp_error",
    annotations=READ_ONLY,
)
async def mcp_enable(ctx: ToolContext, params: McpEnableInput):
    return {
        "message": f'Set "enabled" to {str(params.enabled).lower()} for "{params.name}" in your opencode.json',
        "config": {"mcp": {params.name: {"enabled": params.enabled}}},
        "instruction": f"Update the mcp.{params.name}.enabled property in your configuration file.",
    }
