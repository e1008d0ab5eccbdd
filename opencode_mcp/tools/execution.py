"""Execution tools: one-shot runs and session management."""

from opencode_mcp.config import OPENCODE_SHARE_BASE_URL
from opencode_mcp.models import (
    EmptyInput,
    RunInput,
    SessionCreateInput,
    SessionIdInput,
    SessionPromptInput,
)
from opencode_mcp.tools.base import (
    CREATE,
    READ_ONLY_EXTERNAL,
    WRITE_EXTERNAL,
    ToolContext,
    model_ref,
    prompt_and_wait,
    tool,
)
from opencode_mcp.utils.errors import (
    WORKING_DIRECTORY_SUGGESTIONS,
    WorkingDirectoryError,
    create_error_response,
)
from opencode_mcp.utils.logging_ import logger
from opencode_mcp.utils.workdir import resolve_working_directory


def _resolve_directory(explicit):
    """Resolution or a ready error result; callers stop before touching the backend."""
    try:
        return resolve_working_directory(explicit), None
    except WorkingDirectoryError as e:
        return None, create_error_response("Detecting working directory", e, WORKING_DIRECTORY_SUGGESTIONS)


@tool(
    "opencode_run",
    "Execute a coding task through the OpenCode AI agent. Use for implementing features, "
    "refactoring, debugging, explaining code, or any software engineering task. The working "
    "directory is auto-detected from the project root if not specified.",
    RunInput,
    operation="Executing OpenCode task",
    annotations=WRITE_EXTERNAL,
)
async def run(ctx: ToolContext, params: RunInput):
    resolution, failure = _resolve_directory(params.working_directory)
    if failure is not None:
        return failure
    logger.info(f"opencode_run: using {resolution.directory} ({resolution.source.value})")

    model = model_ref(ctx, params.model)
    session = await ctx.client.create_session(model=model, directory=resolution.directory)
    result = await prompt_and_wait(
        ctx, session.id, params.prompt,
        model=model, agent=params.agent, files=params.files, no_reply=params.no_reply,
    )
    return {
        "session_id": result.session_id,
        "message_id": result.message_id,
        "content": result.content,
        "error": result.error,
        "completed": result.completed,
        "working_directory": resolution.directory,
        "directory_source": resolution.source.value,
        "session_directory": session.directory,
    }


@tool(
    "opencode_session_create",
    "Create a new OpenCode session for multi-turn conversations. Returns a session ID for "
    "subsequent prompts. The working directory is auto-detected if not specified.",
    SessionCreateInput,
    operation="Creating OpenCode session",
    annotations=CREATE,
)
async def session_create(ctx: ToolContext, params: SessionCreateInput):
    resolution, failure = _resolve_directory(params.working_directory)
    if failure is not None:
        return failure

    session = await ctx.client.create_session(
        title=params.title,
        model=model_ref(ctx, params.model),
        directory=resolution.directory,
    )
    return {
        "session_id": session.id,
        "title": session.title,
        "working_directory": resolution.directory,
        "directory_source": resolution.source.value,
        "session_directory": session.directory,
    }


@tool(
    "opencode_session_prompt",
    "Send a prompt to an existing OpenCode session.",
    SessionPromptInput,
    operation="Sending prompt to session",
    category="session_not_found",
    annotations=WRITE_EXTERNAL,
)
async def session_prompt(ctx: ToolContext, params: SessionPromptInput):
    result = await prompt_and_wait(
        ctx, params.session_id, params.prompt,
        model=model_ref(ctx, params.model),
        agent=params.agent,
        files=params.files,
        no_reply=params.no_reply,
    )
    return result.model_dump()


@tool(
    "opencode_session_list",
    "List all OpenCode sessions.",
    EmptyInput,
    operation="Listing sessions",
)
async def session_list(ctx: ToolContext, params: EmptyInput):
    return await ctx.client.list_sessions()


@tool(
    "opencode_session_get",
    "Get details of one OpenCode session.",
    SessionIdInput,
    operation="Getting session",
    category="session_not_found",
    annotations=READ_ONLY_EXTERNAL,
)
async def session_get(ctx: ToolContext, params: SessionIdInput):
    return await ctx.client.get_session(params.session_id)


@tool(
    "opencode_session_abort",
    "Abort a running OpenCode session.",
    SessionIdInput,
    operation="Aborting session",
    category="session_not_found",
    annotations=WRITE_EXTERNAL,
)
async def session_abort(ctx: ToolContext, params: SessionIdInput):
    success = await ctx.client.abort_session(params.session_id)
    return {
        "success": success,
        "message": "Session aborted successfully" if success else "Session may have already completed",
    }


@tool(
    "opencode_session_share",
    "Share an OpenCode session and return its public URL.",
    SessionIdInput,
    operation="Sharing session",
    category="session_not_found",
    annotations=WRITE_EXTERNAL,
)
async def session_share(ctx: ToolContext, params: SessionIdInput):
    shared = await ctx.client.share_session(params.session_id)
    session_id = shared.id or params.session_id
    return {
        "session_id": session_id,
        "share_url": shared.url or f"{OPENCODE_SHARE_BASE_URL}/s/{session_id}",
    }
