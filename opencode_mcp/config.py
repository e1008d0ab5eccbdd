"""OpenCode MCP configuration.

All config comes from environment variables.
Values that tools need at call time (default project, config path override)
are re-read through the helpers below instead of the module constants.
"""

import os
from pathlib import Path
from typing import Optional, Dict


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


# ─── OpenCode Backend ───────────────────────────────────────────
OPENCODE_SERVER_URL = os.environ.get("OPENCODE_SERVER_URL", "http://localhost:4096")
OPENCODE_TIMEOUT_MS = _int_env("OPENCODE_TIMEOUT", 120000)
OPENCODE_AUTO_START = os.environ.get("OPENCODE_AUTO_START", "true").lower() != "false"
OPENCODE_DEFAULT_MODEL = os.environ.get("OPENCODE_DEFAULT_MODEL") or None
OPENCODE_SHARE_BASE_URL = os.environ.get("OPENCODE_SHARE_BASE_URL", "https://opencode.ai").rstrip("/")

# Follow-up polling when a prompt comes back before the assistant has written text
OPENCODE_POLL_TIMEOUT_MS = _int_env("OPENCODE_POLL_TIMEOUT", 60000)
OPENCODE_POLL_INTERVAL_MS = _int_env("OPENCODE_POLL_INTERVAL", 1000)

# ─── MCP Transport ──────────────────────────────────────────────
MCP_TRANSPORT = os.environ.get("MCP_TRANSPORT", "stdio")
if MCP_TRANSPORT not in ("stdio", "http"):
    MCP_TRANSPORT = "stdio"
MCP_HTTP_HOST = os.environ.get("MCP_HTTP_HOST", "127.0.0.1")
MCP_HTTP_PORT = _int_env("MCP_HTTP_PORT", 3000)

# ─── Logging ────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("OPENCODE_LOG_LEVEL", "INFO").upper()
LOG_FILE = os.environ.get("OPENCODE_LOG_FILE", "")

# ─── Config File Locations ──────────────────────────────────────
CONFIG_FILENAME = "opencode.json"
GLOBAL_CONFIG_DIR = Path.home() / ".config" / "opencode"
AUTH_FILE_PATH = Path.home() / ".local" / "share" / "opencode" / "auth.json"

SERVER_NAME = "opencode-mcp"
SERVER_VERSION = "0.4.0"


def default_project_dir() -> Optional[str]:
    """Default project directory from OPENCODE_DEFAULT_PROJECT, read at call time."""
    return os.environ.get("OPENCODE_DEFAULT_PROJECT") or None


def config_path_override() -> Optional[str]:
    return os.environ.get("OPENCODE_CONFIG_PATH") or None


def parse_model_string(model: str) -> Optional[Dict[str, str]]:
    """Parse "provider/model" into {"providerID", "modelID"}.

    Anything other than exactly two non-empty segments is invalid and yields None.
    """
    if not model:
        return None
    parts = model.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    return {"providerID": parts[0], "modelID": parts[1]}


def resolve_model(model: Optional[str], default_model: Optional[str] = None) -> Optional[Dict[str, str]]:
    """Pick the explicit model or the default and parse it. Unparseable -> None."""
    chosen = model or default_model
    if not chosen:
        return None
    return parse_model_string(chosen)


def bridge_settings() -> dict:
    """Current bridge settings, as reported by opencode_config_get."""
    return {
        "server_url": OPENCODE_SERVER_URL,
        "auto_start": OPENCODE_AUTO_START,
        "timeout_ms": OPENCODE_TIMEOUT_MS,
        "default_model": OPENCODE_DEFAULT_MODEL,
        "default_project": default_project_dir(),
        "config_path": config_path_override(),
        "transport": MCP_TRANSPORT,
    }
