"""Tool registry and the shared dispatch contract.

Every handler registered with @tool:
  - validates its raw arguments with a pydantic model (no backend call on failure)
  - returns a ToolResult; dict/list return values become pretty JSON
  - never raises: exceptions become error results with suggestions chosen
    from the error's kind, else from the handler's default category
"""

import functools
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Type

from mcp.types import ToolAnnotations
from pydantic import ValidationError

from opencode_mcp.config import (
    OPENCODE_DEFAULT_MODEL,
    OPENCODE_POLL_INTERVAL_MS,
    OPENCODE_POLL_TIMEOUT_MS,
    parse_model_string,
    resolve_model,
)
from opencode_mcp.models import EmptyInput, PromptResult, ToolInput
from opencode_mcp.services.opencode_client import OpenCodeClient
from opencode_mcp.utils.errors import (
    ERROR_SUGGESTIONS,
    InvalidInputError,
    ToolResult,
    create_error_response,
    json_result,
    suggestion_category,
)
from opencode_mcp.utils.logging_ import logger
from opencode_mcp.utils.validation import format_issues


# ─── Annotation Presets ──────────────────────────────────────

READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=False)
READ_ONLY_EXTERNAL = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=False, openWorldHint=True)
WRITE_EXTERNAL = ToolAnnotations(readOnlyHint=False, destructiveHint=True, idempotentHint=False, openWorldHint=True)
CREATE = ToolAnnotations(readOnlyHint=False, destructiveHint=False, idempotentHint=False, openWorldHint=True)


@dataclass
class ToolContext:
    """What every handler gets: the shared client plus per-server defaults."""
    client: OpenCodeClient
    default_model: Optional[str] = OPENCODE_DEFAULT_MODEL
    poll_timeout_ms: int = OPENCODE_POLL_TIMEOUT_MS
    poll_interval_ms: int = OPENCODE_POLL_INTERVAL_MS


Handler = Callable[[ToolContext, Optional[Dict[str, Any]]], Awaitable[ToolResult]]


@dataclass
class ToolSpec:
    name: str
    description: str
    input_model: Type[ToolInput]
    handler: Handler
    annotations: ToolAnnotations


TOOLS: Dict[str, ToolSpec] = {}


def tool(
    name: str,
    description: str,
    input_model: Type[ToolInput] = EmptyInput,
    *,
    operation: str,
    category: str = "connection_failed",
    annotations: ToolAnnotations = READ_ONLY_EXTERNAL,
):
    """Register a handler under name and wrap it in the dispatch contract."""
    def decorator(fn):
        @functools.wraps(fn)
        async def handler(ctx: ToolContext, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
            try:
                params = input_model.model_validate(arguments if arguments is not None else {})
            except ValidationError as e:
                issues = "; ".join(format_issues(e))
                logger.info(f"{name}: rejected input ({issues})")
                return create_error_response(
                    operation, InvalidInputError(f"Invalid input: {issues}"),
                    ERROR_SUGGESTIONS["invalid_input"],
                )

            try:
                result = await fn(ctx, params)
            except Exception as e:
                logger.warning(f"{name}: {operation} failed: {e}")
                return create_error_response(
                    operation, e, ERROR_SUGGESTIONS[suggestion_category(e, category)],
                )

            if isinstance(result, ToolResult):
                return result
            return json_result(result)

        TOOLS[name] = ToolSpec(
            name=name,
            description=description,
            input_model=input_model,
            handler=handler,
            annotations=annotations,
        )
        return handler
    return decorator


async def dispatch(ctx: ToolContext, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
    spec = TOOLS.get(name)
    if spec is None:
        return create_error_response(
            f"Calling {name}", f"Unknown tool: {name}", ERROR_SUGGESTIONS["invalid_input"],
        )
    return await spec.handler(ctx, arguments)


# ─── Shared Helpers ──────────────────────────────────────────

def model_ref(ctx: ToolContext, model: Optional[str]) -> Optional[Dict[str, str]]:
    """Explicit model must parse; an unparseable default is ignored with a warning."""
    if model and parse_model_string(model) is None:
        raise InvalidInputError(f"Invalid model '{model}': expected provider/model")
    parsed = resolve_model(model, ctx.default_model)
    if parsed is None and not model and ctx.default_model:
        logger.warning(f"Ignoring OPENCODE_DEFAULT_MODEL '{ctx.default_model}': expected provider/model")
    return parsed


async def prompt_and_wait(
    ctx: ToolContext,
    session_id: str,
    text: str,
    *,
    model: Optional[Dict[str, str]] = None,
    agent: Optional[str] = None,
    files: Optional[list] = None,
    no_reply: bool = False,
) -> PromptResult:
    """Send a prompt; if the reply has no text yet, poll the message until it does."""
    result = await ctx.client.prompt(
        session_id, text, model=model, agent=agent, files=files, no_reply=no_reply,
    )
    if no_reply or not result.message_id or result.content:
        return result

    waited = await ctx.client.wait_for_message(
        session_id, result.message_id, ctx.poll_timeout_ms, ctx.poll_interval_ms,
    )
    if waited.content:
        result.content = waited.content
    result.error = result.error or waited.error
    result.completed = waited.completed
    return result
