"""OpenCode MCP bridge entry point.

stdio (default): FastMCP speaks MCP over stdin/stdout; logs go to stderr.
http: a FastAPI app serving GET /health and the streamable-HTTP MCP endpoint
at /mcp, run with uvicorn.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from opencode_mcp.config import (
    MCP_HTTP_HOST,
    MCP_HTTP_PORT,
    MCP_TRANSPORT,
    OPENCODE_AUTO_START,
    OPENCODE_DEFAULT_MODEL,
    OPENCODE_SERVER_URL,
    OPENCODE_TIMEOUT_MS,
    SERVER_NAME,
    SERVER_VERSION,
)
from opencode_mcp.mcp_server import client, mcp
from opencode_mcp.tools import TOOLS
from opencode_mcp.utils.logging_ import logger


def _log_startup(transport: str) -> None:
    logger.info("=" * 60)
    logger.info(f"{SERVER_NAME} v{SERVER_VERSION} starting up...")
    logger.info(f"  Transport: {transport}")
    logger.info(f"  OpenCode server: {OPENCODE_SERVER_URL}")
    logger.info(f"  Timeout: {OPENCODE_TIMEOUT_MS}ms")
    logger.info(f"  Default model: {OPENCODE_DEFAULT_MODEL or 'server default'}")
    logger.info(f"  Auto start: {OPENCODE_AUTO_START}")
    logger.info(f"  Tools: {len(TOOLS)} registered")


def create_app() -> FastAPI:
    # Builds mcp.session_manager, which the lifespan below runs
    mcp_app = mcp.streamable_http_app()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _log_startup("http")
        if await client.is_healthy():
            logger.info("  OpenCode: reachable")
        else:
            logger.warning("  OpenCode: NOT reachable, tools will report connection errors")
        logger.info(f"{SERVER_NAME} ready on http://{MCP_HTTP_HOST}:{MCP_HTTP_PORT}/mcp")
        logger.info("=" * 60)

        async with mcp.session_manager.run():
            yield

        logger.info(f"{SERVER_NAME} shutting down...")
        await client.aclose()
        logger.info(f"{SERVER_NAME} shutdown complete.")

    app = FastAPI(
        title="OpenCode MCP",
        description="MCP bridge to the OpenCode coding agent.",
        version=SERVER_VERSION,
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "opencode_url": OPENCODE_SERVER_URL,
            "opencode_connected": client.connected,
        }

    app.mount("/mcp", mcp_app)
    return app


def run(transport: str = MCP_TRANSPORT) -> None:
    if transport == "http":
        import uvicorn

        uvicorn.run(create_app(), host=MCP_HTTP_HOST, port=MCP_HTTP_PORT, log_level="warning")
        return

    _log_startup("stdio")
    logger.info("=" * 60)
    mcp.run("stdio")


if __name__ == "__main__":
    run()
