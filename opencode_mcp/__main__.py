from opencode_mcp.main import run

run()
