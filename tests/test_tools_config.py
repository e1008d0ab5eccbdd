import json
import os

import pytest

from opencode_mcp.tools import dispatch

PROVIDERS = {
    "providers": [
        {"id": "anthropic", "name": "Anthropic", "models": {
            "claude-sonnet-4": {"name": "Claude Sonnet 4"},
            "claude-haiku": {"name": "Claude Haiku"},
        }},
        {"id": "openai", "name": "OpenAI", "models": [{"id": "gpt-5", "name": "GPT-5"}]},
    ],
    "default": {"anthropic": "claude-sonnet-4"},
}


def _config_file():
    return os.environ["OPENCODE_CONFIG_PATH"]


# ─── Files ───────────────────────────────────────────────────

async def test_file_read_returns_raw_text(ctx, backend):
    backend.on("GET", "/file/content", json={"type": "raw", "content": '{"not": "wrapped"}'})
    result = await dispatch(ctx, "opencode_file_read", {"path": "data.json"})
    assert not result.is_error
    assert result.text == '{"not": "wrapped"}'


async def test_file_read_failure_suggests_find_files(ctx, backend):
    backend.on("GET", "/file/content", json={"error": "missing"}, status=500)
    result = await dispatch(ctx, "opencode_file_read", {"path": "gone.py"})
    assert result.is_error
    assert "Use opencode_find_files to search for the file" in result.text


async def test_file_search_flattens_hits(ctx, backend):
    backend.on("GET", "/find", json=[{"path": {"text": "a.py"}, "lines": {"text": "TODO"}, "line_number": 9}])
    result = await dispatch(ctx, "opencode_file_search", {"pattern": "TODO"})
    assert json.loads(result.text) == [{"path": "a.py", "lines": "TODO", "line_number": 9}]


async def test_find_files_validates_type_and_limit(ctx, backend):
    bad_type = await dispatch(ctx, "opencode_find_files", {"query": "x", "type": "symlink"})
    bad_limit = await dispatch(ctx, "opencode_find_files", {"query": "x", "limit": 500})

    assert bad_type.is_error and "Invalid input:" in bad_type.text
    assert bad_limit.is_error and "limit" in bad_limit.text
    assert backend.requests == []


async def test_find_files_sends_enum_value(ctx, backend):
    backend.on("GET", "/find/file", json=["src/"])
    result = await dispatch(ctx, "opencode_find_files", {"query": "src", "type": "directory", "limit": 10})
    assert json.loads(result.text) == ["src/"]
    assert backend.calls("GET", "/find/file")[0].url.params["type"] == "directory"


async def test_find_symbols_passthrough(ctx, backend):
    backend.on("GET", "/find/symbol", json=[{"name": "Client", "kind": 5}])
    result = await dispatch(ctx, "opencode_find_symbols", {"query": "Client"})
    assert json.loads(result.text) == [{"name": "Client", "kind": 5}]


# ─── Models / Providers ──────────────────────────────────────

async def test_model_list_marks_defaults(ctx, backend):
    backend.on("GET", "/config/providers", json=PROVIDERS)

    payload = json.loads((await dispatch(ctx, "opencode_model_list", {})).text)

    anthropic = payload[0]
    assert anthropic["provider"] == "anthropic"
    assert {"id": "claude-sonnet-4", "name": "Claude Sonnet 4", "default": True} in anthropic["models"]
    assert payload[1]["models"] == [{"id": "gpt-5", "name": "GPT-5", "default": False}]


async def test_model_list_filters_by_provider(ctx, backend):
    backend.on("GET", "/config/providers", json=PROVIDERS)
    payload = json.loads((await dispatch(ctx, "opencode_model_list", {"provider": "openai"})).text)
    assert [p["provider"] for p in payload] == ["openai"]


async def test_provider_list_counts_models(ctx, backend):
    backend.on("GET", "/config/providers", json=PROVIDERS)
    payload = json.loads((await dispatch(ctx, "opencode_provider_list", {})).text)
    assert payload[0] == {"id": "anthropic", "name": "Anthropic", "model_count": 2, "default_model": "claude-sonnet-4"}
    assert payload[1]["default_model"] is None


async def test_model_list_survives_mistyped_defaults(ctx, backend):
    backend.on("GET", "/config/providers", json={**PROVIDERS, "default": {"anthropic": "claude-sonnet-4", "openai": None}})

    result = await dispatch(ctx, "opencode_model_list", {})

    assert not result.is_error
    payload = json.loads(result.text)
    assert {"id": "claude-sonnet-4", "name": "Claude Sonnet 4", "default": True} in payload[0]["models"]
    assert payload[1]["models"][0]["default"] is False


# ─── Config ──────────────────────────────────────────────────

async def test_config_get_includes_server_config(ctx, backend):
    backend.on("GET", "/config", json={"model": "anthropic/claude-sonnet-4"})
    payload = json.loads((await dispatch(ctx, "opencode_config_get", {})).text)
    assert payload["server"] == {"model": "anthropic/claude-sonnet-4"}
    assert payload["bridge"]["server_url"]
    assert payload["config_file"] == _config_file()


async def test_config_get_reports_backend_error(down_ctx):
    result = await dispatch(down_ctx, "opencode_config_get", {})
    assert not result.is_error
    payload = json.loads(result.text)
    assert payload["server"] is None
    assert "Cannot connect" in payload["backend_error"]


async def test_model_configure_applies_and_persists(ctx, backend):
    backend.on("PATCH", "/config", json={})

    result = await dispatch(ctx, "opencode_model_configure", {
        "model": "anthropic/claude-sonnet-4",
        "small_model": "anthropic/claude-haiku",
        "provider_options": {"timeout": 600000},
    })

    payload = json.loads(result.text)
    assert payload["api_applied"] is True
    assert payload["file_persisted"] is True
    assert payload["config_path"] == _config_file()
    expected = {
        "model": "anthropic/claude-sonnet-4",
        "small_model": "anthropic/claude-haiku",
        "provider": {"anthropic": {"options": {"timeout": 600000}}},
    }
    assert json.loads(backend.calls("PATCH", "/config")[0].content) == expected
    with open(_config_file()) as f:
        assert json.load(f) == expected


async def test_model_configure_rejects_bad_model(ctx, backend):
    result = await dispatch(ctx, "opencode_model_configure", {"model": "gpt-5"})
    assert result.is_error
    assert "expected provider/model" in result.text
    assert backend.requests == []


async def test_config_update_succeeds_when_only_file_write_works(ctx, backend):
    backend.on("PATCH", "/config", json={"error": "read only"}, status=500)

    result = await dispatch(ctx, "opencode_config_update", {"config": {"theme": "dark"}})

    assert not result.is_error
    payload = json.loads(result.text)
    assert payload["api_applied"] is False
    assert "HTTP 500" in payload["api_error"]
    assert payload["file_persisted"] is True
    assert payload["updated_keys"] == ["theme"]


async def test_config_update_succeeds_when_only_api_works(ctx, backend, tmp_path, monkeypatch):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    monkeypatch.setenv("OPENCODE_CONFIG_PATH", str(blocker / "opencode.json"))
    backend.on("PATCH", "/config", json={})

    payload = json.loads((await dispatch(ctx, "opencode_config_update", {"config": {"theme": "dark"}})).text)

    assert payload["api_applied"] is True
    assert payload["file_persisted"] is False
    assert payload["file_error"]


async def test_config_update_fails_when_both_sides_fail(down_ctx, tmp_path, monkeypatch):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    monkeypatch.setenv("OPENCODE_CONFIG_PATH", str(blocker / "opencode.json"))

    result = await dispatch(down_ctx, "opencode_config_update", {"config": {"theme": "dark"}})

    assert result.is_error
    assert "Error: Updating configuration failed." in result.text
    assert "Ensure OpenCode server is running: opencode serve" in result.text


async def test_config_update_rejects_empty_config(ctx, backend):
    result = await dispatch(ctx, "opencode_config_update", {"config": {}})
    assert result.is_error
    assert backend.requests == []


# ─── Auth ────────────────────────────────────────────────────

async def test_auth_set_api_without_key_is_invalid_input(ctx, backend):
    result = await dispatch(ctx, "opencode_auth_set", {"provider": "openai", "type": "api"})

    assert result.is_error
    assert "An API key is required" in result.text
    assert "Check the input parameter types and formats" in result.text
    assert backend.requests == []


async def test_auth_set_api_is_advisory_and_masks_key(ctx, backend):
    result = await dispatch(ctx, "opencode_auth_set", {"provider": "open-router", "key": "sk-1234567890abcd"})

    payload = json.loads(result.text)
    assert payload["env_var"] == "OPEN_ROUTER_API_KEY"
    assert payload["cli_command"] == "opencode auth login open-router"
    assert payload["key_preview"] == "sk-1...abcd"
    assert "sk-1234567890abcd" not in result.text
    assert backend.requests == []


async def test_auth_set_oauth_needs_no_key(ctx, backend):
    payload = json.loads((await dispatch(ctx, "opencode_auth_set", {"provider": "anthropic", "type": "oauth"})).text)
    assert payload["type"] == "oauth"
    assert "env_var" not in payload


@pytest.mark.parametrize("name, arguments", [
    ("opencode_file_read", {"path": "a.py"}),
    ("opencode_file_search", {"pattern": "x"}),
    ("opencode_find_files", {"query": "x"}),
    ("opencode_find_symbols", {"query": "x"}),
    ("opencode_model_list", {}),
    ("opencode_provider_list", {}),
    ("opencode_agent_list", {}),
])
async def test_unreachable_server_gives_connection_error(down_ctx, name, arguments):
    result = await dispatch(down_ctx, name, arguments)
    assert result.is_error
    assert "Cannot connect to OpenCode server" in result.text
    assert "Check OPENCODE_SERVER_URL environment variable" in result.text
