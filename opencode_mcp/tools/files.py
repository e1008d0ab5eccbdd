"""File tools: read, text search, fuzzy file and symbol lookup on the OpenCode server."""

from opencode_mcp.models import FileReadInput, FileSearchInput, FindFilesInput, FindSymbolsInput
from opencode_mcp.tools.base import ToolContext, tool
from opencode_mcp.utils.errors import text_result


@tool(
    "opencode_file_read",
    "Read a file's contents from the project.",
    FileReadInput,
    operation="Reading file",
    category="file_not_found",
)
async def file_read(ctx: ToolContext, params: FileReadInput):
    # Raw text, not JSON: the one tool whose output is the payload itself
    return text_result(await ctx.client.read_file(params.path))


@tool(
    "opencode_file_search",
    "Search for text patterns in project files.",
    FileSearchInput,
    operation="Searching files",
)
async def file_search(ctx: ToolContext, params: FileSearchInput):
    hits = await ctx.client.search_text(params.pattern, params.directory)
    return [hit.model_dump() for hit in hits]


@tool(
    "opencode_find_files",
    "Find files and directories by name pattern using fuzzy matching.",
    FindFilesInput,
    operation="Finding files",
    category="file_not_found",
)
async def find_files(ctx: ToolContext, params: FindFilesInput):
    return await ctx.client.find_files(
        params.query,
        params.type.value if params.type else None,
        params.limit,
    )


@tool(
    "opencode_find_symbols",
    "Find workspace symbols (functions, classes, variables) by name.",
    FindSymbolsInput,
    operation="Finding symbols",
)
async def find_symbols(ctx: ToolContext, params: FindSymbolsInput):
    return await ctx.client.find_symbols(params.query)
