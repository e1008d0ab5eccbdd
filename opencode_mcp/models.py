"""Pydantic models for the OpenCode MCP bridge.

Backend shapes are permissive (extra fields kept) because the OpenCode server
is versioned independently of this bridge. Tool input models are strict about
what is required and forbid unknown keys.
"""

from enum import Enum
from typing import Optional, List, Dict, Any, Union

from pydantic import BaseModel, ConfigDict, Field


# ─── Enums ───────────────────────────────────────────────────

class FindType(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


class McpServerType(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


class PermissionLevel(str, Enum):
    ALLOW = "allow"
    ASK = "ask"
    DENY = "deny"


class AuthType(str, Enum):
    API = "api"
    OAUTH = "oauth"


# ─── Backend Shapes ─────────────────────────────────────────

class _Backend(BaseModel):
    model_config = ConfigDict(extra="allow")


class SessionShare(_Backend):
    url: Optional[str] = None


class Session(_Backend):
    id: str = ""
    title: Optional[str] = None
    directory: Optional[str] = None
    share: Optional[SessionShare] = None


class MessageError(_Backend):
    name: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class MessageInfo(_Backend):
    id: str = ""
    role: Optional[str] = None
    time: Optional[Dict[str, Any]] = None
    error: Optional[MessageError] = None


class MessageResponse(_Backend):
    info: Optional[MessageInfo] = None
    parts: List[Dict[str, Any]] = Field(default_factory=list)


class Agent(_Backend):
    name: str
    description: Optional[str] = None
    mode: Optional[str] = None
    model: Optional[Any] = None
    hidden: bool = False


class Provider(_Backend):
    id: str
    name: Optional[str] = None
    models: Union[List[Dict[str, Any]], Dict[str, Dict[str, Any]]] = Field(default_factory=list)


class ProvidersResponse(_Backend):
    providers: List[Dict[str, Any]] = Field(default_factory=list)
    default: Optional[Dict[str, str]] = None
    defaults: Optional[Dict[str, str]] = None


class FileContent(_Backend):
    type: Optional[str] = None
    content: Optional[Any] = None


class TextField(_Backend):
    text: Optional[str] = None


class TextMatch(_Backend):
    path: Optional[TextField] = None
    lines: Optional[TextField] = None
    line_number: Optional[int] = None


# ─── Normalized Client Results ──────────────────────────────

class SessionRef(BaseModel):
    id: str = ""
    title: Optional[str] = None
    directory: Optional[str] = None


class ShareResult(BaseModel):
    id: str = ""
    url: Optional[str] = None


class PromptResult(BaseModel):
    session_id: str
    message_id: str = ""
    content: str = ""
    error: Optional[str] = None
    completed: bool = False


class ModelEntry(BaseModel):
    id: str
    name: str
    is_default: bool = False


class ProviderEntry(BaseModel):
    id: str
    name: str
    models: List[ModelEntry] = Field(default_factory=list)


class ProviderListing(BaseModel):
    providers: List[ProviderEntry] = Field(default_factory=list)
    defaults: Dict[str, str] = Field(default_factory=dict)


class SearchHit(BaseModel):
    path: str = ""
    lines: str = ""
    line_number: int = 0


# ─── Tool Input Models ──────────────────────────────────────

class ToolInput(BaseModel):
    model_config = ConfigDict(extra="forbid")


class EmptyInput(ToolInput):
    pass


class RunInput(ToolInput):
    """Input for opencode_run."""
    prompt: str = Field(..., min_length=1, description="The task or question for OpenCode.")
    working_directory: Optional[str] = Field(
        None, description="Project directory path (auto-detected if not specified).",
    )
    model: Optional[str] = Field(
        None, description="Model in format provider/model (e.g. anthropic/claude-sonnet-4).",
    )
    agent: Optional[str] = Field(None, description="Agent to use: build, plan, or a custom agent name.")
    files: Optional[List[str]] = Field(None, description="File paths to attach as context.")
    no_reply: bool = Field(False, description="Add context without triggering an AI response.")


class SessionCreateInput(ToolInput):
    """Input for opencode_session_create."""
    working_directory: Optional[str] = Field(
        None, description="Project directory path (auto-detected if not specified).",
    )
    title: Optional[str] = Field(None, description="Session title.")
    model: Optional[str] = Field(None, description="Model in format provider/model.")


class SessionPromptInput(ToolInput):
    """Input for opencode_session_prompt."""
    session_id: str = Field(..., min_length=1, description="Session ID from opencode_session_create.")
    prompt: str = Field(..., min_length=1, description="The message to send.")
    model: Optional[str] = Field(None, description="Model in format provider/model.")
    agent: Optional[str] = Field(None, description="Agent to use for this message.")
    files: Optional[List[str]] = Field(None, description="File paths to attach.")
    no_reply: bool = Field(False, description="Add context without triggering an AI response.")


class SessionIdInput(ToolInput):
    session_id: str = Field(..., min_length=1, description="Session ID.")


class FileReadInput(ToolInput):
    path: str = Field(..., min_length=1, description="File path relative to project root.")


class FileSearchInput(ToolInput):
    pattern: str = Field(..., min_length=1, description="Search pattern (regex supported).")
    directory: Optional[str] = Field(None, description="Limit search to this directory.")


class FindFilesInput(ToolInput):
    query: str = Field(..., min_length=1, description="File name pattern (fuzzy match).")
    type: Optional[FindType] = Field(None, description="Filter by type: file or directory.")
    limit: Optional[int] = Field(None, ge=1, le=200, description="Max results (1-200).")


class FindSymbolsInput(ToolInput):
    query: str = Field(..., min_length=1, description="Symbol name to search for.")


class ModelListInput(ToolInput):
    provider: Optional[str] = Field(None, description="Filter by provider ID.")


class ModelConfigureInput(ToolInput):
    """Input for opencode_model_configure."""
    model: str = Field(..., min_length=1, description="Model in format provider/model.")
    small_model: Optional[str] = Field(
        None, description="Optional small/fast model (provider/model) for lightweight tasks.",
    )
    provider_options: Optional[Dict[str, Any]] = Field(
        None, description="Provider options merged into provider.<id>.options.",
    )
    working_directory: Optional[str] = Field(
        None, description="Project directory used to locate a project-local opencode.json.",
    )


class ConfigUpdateInput(ToolInput):
    config: Dict[str, Any] = Field(..., description="Partial opencode.json configuration to apply.")
    working_directory: Optional[str] = Field(
        None, description="Project directory used to locate a project-local opencode.json.",
    )


class AuthSetInput(ToolInput):
    provider: str = Field(..., min_length=1, description="Provider ID (e.g. anthropic, openai).")
    type: AuthType = Field(AuthType.API, description="Credential type: api or oauth.")
    key: Optional[str] = Field(None, description="API key (required for type=api).")


class AgentDelegateInput(ToolInput):
    agent: str = Field(..., min_length=1, description="Agent name (e.g. build, plan, explore, or custom).")
    prompt: str = Field(..., min_length=1, description="Task for the agent.")
    session_id: Optional[str] = Field(None, description="Session ID (creates a new one if not provided).")
    model: Optional[str] = Field(None, description="Model in format provider/model.")


class SkillLoadInput(ToolInput):
    name: str = Field(..., min_length=1, pattern=r"^[a-z0-9]+(-[a-z0-9]+)*$", description="Skill name.")


class SkillCreateInput(ToolInput):
    name: str = Field(
        ..., min_length=1, max_length=64, pattern=r"^[a-z0-9]+(-[a-z0-9]+)*$",
        description="Skill name: lowercase alphanumeric with hyphens.",
    )
    description: str = Field(..., min_length=1, max_length=1024, description="When to use this skill.")
    content: str = Field(..., min_length=1, description="Skill content/instructions.")
    global_scope: bool = Field(
        False, description="Create under the global skills directory instead of the project.",
    )


class McpAddInput(ToolInput):
    name: str = Field(..., min_length=1, description="Unique server name.")
    type: McpServerType = Field(..., description="Server type: local (stdio) or remote (HTTP).")
    command: Optional[List[str]] = Field(None, description="Command to run (local).")
    environment: Optional[Dict[str, str]] = Field(None, description="Environment variables (local).")
    url: Optional[str] = Field(None, description="Server URL (remote).")
    headers: Optional[Dict[str, str]] = Field(None, description="HTTP headers (remote).")
    enabled: bool = Field(True, description="Enable on startup.")
    timeout: Optional[int] = Field(None, ge=1, description="Connection timeout in ms.")


class McpNameInput(ToolInput):
    name: str = Field(..., min_length=1, description="Server name.")


class McpEnableInput(ToolInput):
    name: str = Field(..., min_length=1, description="Server name.")
    enabled: bool = Field(..., description="Enable or disable.")


class ToolListInput(ToolInput):
    provider: Optional[str] = Field(None, description="Filter by provider.")
    model: Optional[str] = Field(None, description="Filter by model.")


class ToolConfigureInput(ToolInput):
    tools: Dict[str, bool] = Field(..., description="Tool name patterns mapped to enabled state.")
    agent: Optional[str] = Field(None, description="Apply to a specific agent (omit for global).")


class PermissionSetInput(ToolInput):
    tool: str = Field(..., min_length=1, description="Tool name or pattern.")
    permission: PermissionLevel = Field(..., description="allow, ask, or deny.")
    agent: Optional[str] = Field(None, description="Apply to a specific agent.")
