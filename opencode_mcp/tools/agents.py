"""Agent tools: listing and delegation."""

from typing import Any, Dict

from opencode_mcp.models import AgentDelegateInput, EmptyInput
from opencode_mcp.tools.base import WRITE_EXTERNAL, ToolContext, model_ref, tool
from opencode_mcp.utils.validation import Validated, probe


def _agent_fields(outcome) -> Dict[str, Any]:
    if isinstance(outcome, Validated):
        agent = outcome.value
        return {
            "name": agent.name,
            "description": agent.description or "",
            "mode": agent.mode,
            "model": agent.model,
            "hidden": agent.hidden,
        }
    raw = outcome.raw
    return {
        "name": probe(raw, "name", default=""),
        "description": probe(raw, "description", default=""),
        "mode": probe(raw, "mode"),
        "model": probe(raw, "model"),
        "hidden": probe(raw, "hidden") is True,
    }


@tool(
    "opencode_agent_list",
    "List all available agents. Primary agents drive main conversations; subagents are "
    "specialized assistants invoked for specific tasks.",
    EmptyInput,
    operation="Listing agents",
)
async def agent_list(ctx: ToolContext, params: EmptyInput):
    primary, subagents = [], []
    for outcome in await ctx.client.list_agents():
        agent = _agent_fields(outcome)
        if agent["hidden"] or not agent["name"]:
            continue
        entry = {"name": agent["name"], "description": agent["description"], "model": agent["model"]}
        # mode "all" agents can act as either
        if agent["mode"] in ("primary", "all"):
            primary.append(entry)
        if agent["mode"] in ("subagent", "all"):
            subagents.append(entry)
    return {"primary": primary, "subagents": subagents}


@tool(
    "opencode_agent_delegate",
    "Delegate a task to a specific agent, such as plan for analysis without changes or "
    "explore for fast codebase exploration. Creates a session if none is given.",
    AgentDelegateInput,
    operation="Delegating to agent",
    category="agent_not_found",
    annotations=WRITE_EXTERNAL,
)
async def agent_delegate(ctx: ToolContext, params: AgentDelegateInput):
    model = model_ref(ctx, params.model)
    session_id = params.session_id
    if not session_id:
        session = await ctx.client.create_session(model=model)
        session_id = session.id

    result = await ctx.client.prompt(session_id, params.prompt, model=model, agent=params.agent)
    return {
        "agent": params.agent,
        "session_id": result.session_id,
        "message_id": result.message_id,
        "content": result.content,
        "error": result.error,
    }
