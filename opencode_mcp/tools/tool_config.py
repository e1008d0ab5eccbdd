"""Tool access and permission tools. All advisory: they return config fragments."""

from typing import Any, Dict

from opencode_mcp.models import PermissionSetInput, ToolConfigureInput, ToolListInput
from opencode_mcp.tools.base import READ_ONLY, ToolContext, tool

BUILTIN_TOOLS = [
    {"name": "bash", "description": "Execute shell commands"},
    {"name": "read", "description": "Read file contents"},
    {"name": "write", "description": "Create or overwrite files"},
    {"name": "edit", "description": "Edit files with string replacement"},
    {"name": "grep", "description": "Search file contents"},
    {"name": "glob", "description": "Find files by pattern"},
    {"name": "list", "description": "List directory contents"},
    {"name": "webfetch", "description": "Fetch web content"},
    {"name": "websearch", "description": "Search the web"},
    {"name": "skill", "description": "Load agent skills"},
    {"name": "todowrite", "description": "Manage todo lists"},
    {"name": "todoread", "description": "Read todo lists"},
    {"name": "question", "description": "Ask user questions"},
    {"name": "patch", "description": "Apply patch files"},
]

PERMISSION_DESCRIPTIONS = {
    "allow": "Tool runs without user approval",
    "ask": "User is prompted for approval before tool runs",
    "deny": "Tool is disabled and cannot be used",
}


def _scoped(agent, fragment: Dict[str, Any]) -> Dict[str, Any]:
    if agent:
        return {"agent": {agent: fragment}}
    return fragment


@tool(
    "opencode_tool_list",
    "List OpenCode's built-in tools. MCP server tools are prefixed with the server name.",
    ToolListInput,
    operation="Listing tools",
    annotations=READ_ONLY,
)
async def tool_list(ctx: ToolContext, params: ToolListInput):
    return {
        "builtin": [dict(t, source="builtin") for t in BUILTIN_TOOLS],
        "note": "MCP server tools are prefixed with the server name (e.g. myserver_toolname)",
        "filter": params.model_dump(exclude_none=True),
    }


@tool(
    "opencode_tool_configure",
    'Build the config to enable or disable tools globally or per agent. Wildcards like "mymcp_*" '
    "match several tools.",
    ToolConfigureInput,
    operation="Configuring tools",
    category="invalid_input",
    annotations=READ_ONLY,
)
async def tool_configure(ctx: ToolContext, params: ToolConfigureInput):
    scope = f'agent "{params.agent}"' if params.agent else "globally"
    return {
        "message": f"Configure tools {scope} in opencode.json:",
        "config": _scoped(params.agent, {"tools": params.tools}),
        "examples": {
            "disable_all_mcp": {"myserver_*": False},
            "enable_specific": {"read": True, "bash": False},
        },
    }


@tool(
    "opencode_permission_set",
    'Build the config to set a tool\'s permission: "allow" (no approval), "ask" (prompt user) '
    'or "deny" (disable).',
    PermissionSetInput,
    operation="Setting permission",
    category="invalid_input",
    annotations=READ_ONLY,
)
async def permission_set(ctx: ToolContext, params: PermissionSetInput):
    scope = f'agent "{params.agent}"' if params.agent else "globally"
    level = params.permission.value
    return {
        "message": f'Set permission for "{params.tool}" to "{level}" {scope}',
        "config": _scoped(params.agent, {"permission": {params.tool: level}}),
        "permission_descriptions": PERMISSION_DESCRIPTIONS,
    }
