"""Tool handlers. Importing this package registers every tool in TOOLS."""

from opencode_mcp.tools import agents, configuration, execution, files, mcp_servers, skills, tool_config  # noqa: F401
from opencode_mcp.tools.base import TOOLS, ToolContext, dispatch  # noqa: F401
