"""OpenCode MCP Server.

Exposes the OpenCode server's HTTP API as MCP tools. Each tool below is a thin
typed wrapper that forwards its arguments to the registered handler in
opencode_mcp.tools; error results are raised as ToolError so the transport
marks the call as failed.
"""

from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from opencode_mcp.config import (
    OPENCODE_DEFAULT_MODEL,
    OPENCODE_POLL_INTERVAL_MS,
    OPENCODE_POLL_TIMEOUT_MS,
    OPENCODE_SERVER_URL,
    OPENCODE_TIMEOUT_MS,
    default_project_dir,
)
from opencode_mcp.services.opencode_client import OpenCodeClient
from opencode_mcp.tools import TOOLS, ToolContext, dispatch

mcp = FastMCP(
    "opencode",
    instructions="OpenCode coding agent: run tasks, manage sessions, read and search project files, "
                 "and inspect models, agents, skills and configuration.",
    streamable_http_path="/",
)

client = OpenCodeClient(
    base_url=OPENCODE_SERVER_URL,
    timeout_ms=OPENCODE_TIMEOUT_MS,
    default_project=default_project_dir(),
)

ctx = ToolContext(
    client=client,
    default_model=OPENCODE_DEFAULT_MODEL,
    poll_timeout_ms=OPENCODE_POLL_TIMEOUT_MS,
    poll_interval_ms=OPENCODE_POLL_INTERVAL_MS,
)


async def _call(name: str, **arguments) -> str:
    """Run a registered handler; unset optional arguments are left out."""
    args = {k: v for k, v in arguments.items() if v is not None}
    result = await dispatch(ctx, name, args)
    if result.is_error:
        raise ToolError(result.text)
    return result.text


def _register(name: str):
    spec = TOOLS[name]
    return mcp.tool(name=name, description=spec.description, annotations=spec.annotations)


# ─── Execution ───────────────────────────────────────────────

@_register("opencode_run")
async def opencode_run(
    prompt: str,
    working_directory: Optional[str] = None,
    model: Optional[str] = None,
    agent: Optional[str] = None,
    files: Optional[List[str]] = None,
    no_reply: bool = False,
) -> str:
    return await _call(
        "opencode_run", prompt=prompt, working_directory=working_directory,
        model=model, agent=agent, files=files, no_reply=no_reply,
    )


@_register("opencode_session_create")
async def opencode_session_create(
    working_directory: Optional[str] = None,
    title: Optional[str] = None,
    model: Optional[str] = None,
) -> str:
    return await _call("opencode_session_create", working_directory=working_directory, title=title, model=model)


@_register("opencode_session_prompt")
async def opencode_session_prompt(
    session_id: str,
    prompt: str,
    model: Optional[str] = None,
    agent: Optional[str] = None,
    files: Optional[List[str]] = None,
    no_reply: bool = False,
) -> str:
    return await _call(
        "opencode_session_prompt", session_id=session_id, prompt=prompt,
        model=model, agent=agent, files=files, no_reply=no_reply,
    )


@_register("opencode_session_list")
async def opencode_session_list() -> str:
    return await _call("opencode_session_list")


@_register("opencode_session_get")
async def opencode_session_get(session_id: str) -> str:
    return await _call("opencode_session_get", session_id=session_id)


@_register("opencode_session_abort")
async def opencode_session_abort(session_id: str) -> str:
    return await _call("opencode_session_abort", session_id=session_id)


@_register("opencode_session_share")
async def opencode_session_share(session_id: str) -> str:
    return await _call("opencode_session_share", session_id=session_id)


# ─── Files ───────────────────────────────────────────────────

@_register("opencode_file_read")
async def opencode_file_read(path: str) -> str:
    return await _call("opencode_file_read", path=path)


@_register("opencode_file_search")
async def opencode_file_search(pattern: str, directory: Optional[str] = None) -> str:
    return await _call("opencode_file_search", pattern=pattern, directory=directory)


@_register("opencode_find_files")
async def opencode_find_files(query: str, type: Optional[str] = None, limit: Optional[int] = None) -> str:
    return await _call("opencode_find_files", query=query, type=type, limit=limit)


@_register("opencode_find_symbols")
async def opencode_find_symbols(query: str) -> str:
    return await _call("opencode_find_symbols", query=query)


# ─── Models / Config / Auth ──────────────────────────────────

@_register("opencode_model_list")
async def opencode_model_list(provider: Optional[str] = None) -> str:
    return await _call("opencode_model_list", provider=provider)


@_register("opencode_provider_list")
async def opencode_provider_list() -> str:
    return await _call("opencode_provider_list")


@_register("opencode_config_get")
async def opencode_config_get() -> str:
    return await _call("opencode_config_get")


@_register("opencode_model_configure")
async def opencode_model_configure(
    model: str,
    small_model: Optional[str] = None,
    provider_options: Optional[Dict[str, Any]] = None,
    working_directory: Optional[str] = None,
) -> str:
    return await _call(
        "opencode_model_configure", model=model, small_model=small_model,
        provider_options=provider_options, working_directory=working_directory,
    )


@_register("opencode_config_update")
async def opencode_config_update(config: Dict[str, Any], working_directory: Optional[str] = None) -> str:
    return await _call("opencode_config_update", config=config, working_directory=working_directory)


@_register("opencode_auth_set")
async def opencode_auth_set(provider: str, type: str = "api", key: Optional[str] = None) -> str:
    return await _call("opencode_auth_set", provider=provider, type=type, key=key)


# ─── Agents ──────────────────────────────────────────────────

@_register("opencode_agent_list")
async def opencode_agent_list() -> str:
    return await _call("opencode_agent_list")


@_register("opencode_agent_delegate")
async def opencode_agent_delegate(
    agent: str,
    prompt: str,
    session_id: Optional[str] = None,
    model: Optional[str] = None,
) -> str:
    return await _call("opencode_agent_delegate", agent=agent, prompt=prompt, session_id=session_id, model=model)


# ─── Skills ──────────────────────────────────────────────────

@_register("opencode_skill_list")
async def opencode_skill_list() -> str:
    return await _call("opencode_skill_list")


@_register("opencode_skill_load")
async def opencode_skill_load(name: str) -> str:
    return await _call("opencode_skill_load", name=name)


@_register("opencode_skill_create")
async def opencode_skill_create(name: str, description: str, content: str, global_scope: bool = False) -> str:
    return await _call(
        "opencode_skill_create", name=name, description=description,
        content=content, global_scope=global_scope,
    )


# ─── MCP Servers ─────────────────────────────────────────────

@_register("opencode_mcp_list")
async def opencode_mcp_list() -> str:
    return await _call("opencode_mcp_list")


@_register("opencode_mcp_add")
async def opencode_mcp_add(
    name: str,
    type: str,
    command: Optional[List[str]] = None,
    environment: Optional[Dict[str, str]] = None,
    url: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    enabled: bool = True,
    timeout: Optional[int] = None,
) -> str:
    return await _call(
        "opencode_mcp_add", name=name, type=type, command=command, environment=environment,
        url=url, headers=headers, enabled=enabled, timeout=timeout,
    )


@_register("opencode_mcp_remove")
async def opencode_mcp_remove(name: str) -> str:
    return await _call("opencode_mcp_remove", name=name)


@_register("opencode_mcp_enable")
async def opencode_mcp_enable(name: str, enabled: bool) -> str:
    return await _call("opencode_mcp_enable", name=name, enabled=enabled)


# ─── Tool Access ─────────────────────────────────────────────

@_register("opencode_tool_list")
async def opencode_tool_list(provider: Optional[str] = None, model: Optional[str] = None) -> str:
    return await _call("opencode_tool_list", provider=provider, model=model)


@_register("opencode_tool_configure")
async def opencode_tool_configure(tools: Dict[str, bool], agent: Optional[str] = None) -> str:
    return await _call("opencode_tool_configure", tools=tools, agent=agent)


@_register("opencode_permission_set")
async def opencode_permission_set(tool: str, permission: str, agent: Optional[str] = None) -> str:
    return await _call("opencode_permission_set", tool=tool, permission=permission, agent=agent)
