"""Error taxonomy and the uniform tool result envelope.

Every error raised by the bridge carries an ErrorKind set where it is raised,
so the tool layer picks remediation hints from data instead of message text.
"""

import json
from enum import Enum
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel, Field


class ErrorKind(str, Enum):
    CONNECTION_FAILED = "connection_failed"
    TIMEOUT = "timeout"
    SESSION_NOT_FOUND = "session_not_found"
    INVALID_INPUT = "invalid_input"
    TOOL_EXECUTION_FAILED = "tool_execution_failed"
    UNAUTHORIZED = "unauthorized"


class OpenCodeError(Exception):
    """Base error for everything the bridge raises on purpose."""

    kind = ErrorKind.TOOL_EXECUTION_FAILED

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class ConnectionFailedError(OpenCodeError):
    kind = ErrorKind.CONNECTION_FAILED

    def __init__(self, url: str, reason: str = ""):
        message = f"Cannot connect to OpenCode server at {url}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.url = url


class BackendTimeoutError(OpenCodeError):
    kind = ErrorKind.TIMEOUT

    def __init__(self, operation: str, timeout_ms: int):
        super().__init__(f"{operation} timed out after {timeout_ms}ms")
        self.operation = operation
        self.timeout_ms = timeout_ms


class BackendRequestError(OpenCodeError):
    """Backend call failed. status_code is None for transport-level failures."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.TOOL_EXECUTION_FAILED,
                 status_code: Optional[int] = None):
        super().__init__(message, kind)
        self.status_code = status_code


class InvalidInputError(OpenCodeError):
    kind = ErrorKind.INVALID_INPUT


class WorkingDirectoryError(OpenCodeError):
    kind = ErrorKind.INVALID_INPUT


# ─── Suggestions ────────────────────────────────────────────────

ERROR_SUGGESTIONS = {
    "connection_failed": [
        "Ensure OpenCode server is running: opencode serve",
        "Check OPENCODE_SERVER_URL environment variable",
        "Verify the server is accessible at the configured URL",
        "Try restarting OpenCode: opencode restart",
    ],
    "session_not_found": [
        "Use opencode_session_list to see available sessions",
        "Create a new session with opencode_session_create",
        "Check if the session ID is correct",
    ],
    "invalid_input": [
        "Check the input parameter types and formats",
        "Ensure required fields are provided",
        "Refer to the tool schema for valid inputs",
    ],
    "timeout": [
        "The operation took too long to complete",
        "Try breaking the task into smaller parts",
        "Increase timeout with OPENCODE_TIMEOUT environment variable",
    ],
    "unauthorized": [
        "Check your API key configuration",
        "Run: opencode auth login <provider>",
        "Verify the provider credentials in opencode.json",
    ],
    "file_not_found": [
        "Verify the file path is correct",
        "Use opencode_find_files to search for the file",
        "Check if the file exists in the project",
    ],
    "skill_not_found": [
        "Use opencode_skill_list to see available skills",
        "Check the skill name spelling",
        "Skills are stored in .opencode/skills/ or .claude/skills/",
    ],
    "agent_not_found": [
        "Use opencode_agent_list to see available agents",
        "Check the agent name spelling",
        "Common agents: build, plan, explore",
    ],
    "mcp_error": [
        "Check the MCP server configuration in opencode.json",
        "Verify the server command or URL is correct",
        "Check server logs for errors",
    ],
}

WORKING_DIRECTORY_SUGGESTIONS = [
    "Specify working_directory explicitly",
    "Make sure you are in a project directory with .git or package.json",
]

# Kinds specific enough to override a handler's default category
_KIND_CATEGORIES = {
    ErrorKind.CONNECTION_FAILED: "connection_failed",
    ErrorKind.TIMEOUT: "timeout",
    ErrorKind.SESSION_NOT_FOUND: "session_not_found",
    ErrorKind.UNAUTHORIZED: "unauthorized",
    ErrorKind.INVALID_INPUT: "invalid_input",
}


def suggestion_category(error: BaseException, default: str) -> str:
    """Pick the suggestion category for an error, falling back to the handler default."""
    if isinstance(error, OpenCodeError):
        return _KIND_CATEGORIES.get(error.kind, default)
    return default


# ─── Result Envelope ────────────────────────────────────────────

class TextContent(BaseModel):
    type: str = "text"
    text: str


class ToolResult(BaseModel):
    """Uniform tool result: ordered text blocks plus an error flag."""
    content: List[TextContent] = Field(default_factory=list)
    is_error: bool = Field(False, serialization_alias="isError")

    @property
    def text(self) -> str:
        return "".join(block.text for block in self.content)

    def to_mcp(self) -> dict:
        data = self.model_dump(by_alias=True)
        if not self.is_error:
            data.pop("isError")
        return data


def text_result(text: str) -> ToolResult:
    return ToolResult(content=[TextContent(text=text)])


def json_result(payload: Any) -> ToolResult:
    return text_result(json.dumps(payload, indent=2, default=str))


def create_error_response(operation: str, error: Any,
                          suggestions: Optional[Sequence[str]] = None) -> ToolResult:
    """Standardized error result with numbered, actionable suggestions."""
    message = str(error)

    text = f"Error: {operation} failed.\n\n"
    text += f"Details: {message}\n\n"
    if suggestions:
        text += "Suggestions:\n"
        for i, suggestion in enumerate(suggestions, start=1):
            text += f"  {i}. {suggestion}\n"

    return ToolResult(content=[TextContent(text=text)], is_error=True)
