import json

import pytest

from opencode_mcp.config import OPENCODE_SHARE_BASE_URL
from opencode_mcp.tools import dispatch


def _reply(text="", message_id="msg_1"):
    parts = [{"type": "text", "text": text}] if text else []
    return {"info": {"id": message_id, "role": "assistant"}, "parts": parts}


async def test_run_creates_session_in_resolved_directory(ctx, backend, tmp_path):
    backend.on("POST", "/session", json={"id": "ses_1", "directory": str(tmp_path)})
    backend.on("POST", "/session/ses_1/message", json=_reply("All done"))

    result = await dispatch(ctx, "opencode_run", {"prompt": "fix it", "working_directory": str(tmp_path)})

    assert not result.is_error
    payload = json.loads(result.text)
    assert payload["session_id"] == "ses_1"
    assert payload["content"] == "All done"
    assert payload["working_directory"] == str(tmp_path)
    assert payload["directory_source"] == "explicit"
    assert backend.calls("POST", "/session")[0].url.params["directory"] == str(tmp_path)


async def test_run_bad_directory_creates_no_session(ctx, backend, tmp_path):
    result = await dispatch(ctx, "opencode_run", {"prompt": "x", "working_directory": str(tmp_path / "nope")})

    assert result.is_error
    assert "Error: Detecting working directory failed." in result.text
    assert "Specify working_directory explicitly" in result.text
    assert backend.requests == []


async def test_run_invalid_model_creates_no_session(ctx, backend, tmp_path):
    result = await dispatch(ctx, "opencode_run", {
        "prompt": "x", "working_directory": str(tmp_path), "model": "no-slash",
    })

    assert result.is_error
    assert "Invalid model 'no-slash'" in result.text
    assert "Check the input parameter types and formats" in result.text
    assert backend.calls("POST", "/session") == []


async def test_run_polls_when_reply_has_no_text(ctx, backend, tmp_path):
    backend.on("POST", "/session", json={"id": "ses_1"})
    backend.on("POST", "/session/ses_1/message", json=_reply(""))
    backend.on("GET", "/session/ses_1/message/msg_1", json=_reply("late answer"))

    result = await dispatch(ctx, "opencode_run", {"prompt": "x", "working_directory": str(tmp_path)})

    payload = json.loads(result.text)
    assert payload["content"] == "late answer"
    assert payload["completed"] is True


async def test_run_no_reply_skips_polling(ctx, backend, tmp_path):
    backend.on("POST", "/session", json={"id": "ses_1"})
    backend.on("POST", "/session/ses_1/message", json=_reply(""))

    result = await dispatch(ctx, "opencode_run", {
        "prompt": "context only", "working_directory": str(tmp_path), "no_reply": True,
    })

    assert not result.is_error
    assert backend.calls("GET", "/session/ses_1/message/msg_1") == []


async def test_session_create_reports_title_and_source(ctx, backend, tmp_path, monkeypatch):
    monkeypatch.setenv("OPENCODE_DEFAULT_PROJECT", str(tmp_path))
    backend.on("POST", "/session", json={"id": "ses_9", "title": "Refactor"})

    result = await dispatch(ctx, "opencode_session_create", {"title": "Refactor"})

    payload = json.loads(result.text)
    assert payload["session_id"] == "ses_9"
    assert payload["title"] == "Refactor"
    assert payload["directory_source"] == "environment"


async def test_session_prompt_uses_default_model(ctx, backend):
    ctx.default_model = "anthropic/claude-sonnet-4"
    backend.on("POST", "/session/ses_1/message", json=_reply("ok"))

    result = await dispatch(ctx, "opencode_session_prompt", {"session_id": "ses_1", "prompt": "hi"})

    body = json.loads(backend.calls("POST", "/session/ses_1/message")[0].content)
    assert body["model"] == {"providerID": "anthropic", "modelID": "claude-sonnet-4"}
    assert json.loads(result.text)["content"] == "ok"


async def test_session_prompt_ignores_unparseable_default_model(ctx, backend):
    ctx.default_model = "not-a-model"
    backend.on("POST", "/session/ses_1/message", json=_reply("ok"))

    result = await dispatch(ctx, "opencode_session_prompt", {"session_id": "ses_1", "prompt": "hi"})

    assert not result.is_error
    body = json.loads(backend.calls("POST", "/session/ses_1/message")[0].content)
    assert "model" not in body


async def test_session_prompt_explicit_model_overrides_default(ctx, backend):
    ctx.default_model = "anthropic/claude-sonnet-4"
    backend.on("POST", "/session/ses_1/message", json=_reply("ok"))

    bad = await dispatch(ctx, "opencode_session_prompt", {"session_id": "ses_1", "prompt": "hi", "model": "gpt-5"})
    good = await dispatch(ctx, "opencode_session_prompt", {"session_id": "ses_1", "prompt": "hi", "model": "openai/gpt-5"})

    assert bad.is_error and "expected provider/model" in bad.text
    assert not good.is_error
    calls = backend.calls("POST", "/session/ses_1/message")
    assert len(calls) == 1
    assert json.loads(calls[0].content)["model"] == {"providerID": "openai", "modelID": "gpt-5"}


async def test_session_prompt_unknown_session_suggests_listing(ctx, backend):
    backend.on("POST", "/session/ses_x/message", json={"error": "not found"}, status=404)

    result = await dispatch(ctx, "opencode_session_prompt", {"session_id": "ses_x", "prompt": "hi"})

    assert result.is_error
    assert "Error: Sending prompt to session failed." in result.text
    assert "HTTP 404" in result.text
    assert "Use opencode_session_list to see available sessions" in result.text


async def test_session_list_passes_sessions_through(ctx, backend):
    backend.on("GET", "/session", json=[{"id": "ses_1", "title": "A"}, {"id": "ses_2"}])
    result = await dispatch(ctx, "opencode_session_list", {})
    assert [s["id"] for s in json.loads(result.text)] == ["ses_1", "ses_2"]


async def test_session_abort_message(ctx, backend):
    backend.on("POST", "/session/ses_1/abort", json=False)
    payload = json.loads((await dispatch(ctx, "opencode_session_abort", {"session_id": "ses_1"})).text)
    assert payload == {"success": False, "message": "Session may have already completed"}


async def test_session_share_falls_back_to_template(ctx, backend):
    backend.on("POST", "/session/ses_1/share", json={"id": "ses_1"})
    payload = json.loads((await dispatch(ctx, "opencode_session_share", {"session_id": "ses_1"})).text)
    assert payload["share_url"] == f"{OPENCODE_SHARE_BASE_URL}/s/ses_1"


async def test_session_share_prefers_backend_url(ctx, backend):
    backend.on("POST", "/session/ses_1/share", json={"id": "ses_1", "share": {"url": "https://opncd.ai/s/xyz"}})
    payload = json.loads((await dispatch(ctx, "opencode_session_share", {"session_id": "ses_1"})).text)
    assert payload["share_url"] == "https://opncd.ai/s/xyz"


async def test_agent_delegate_creates_session_when_missing(ctx, backend):
    backend.on("POST", "/session", json={"id": "ses_new"})
    backend.on("POST", "/session/ses_new/message", json=_reply("planned"))

    result = await dispatch(ctx, "opencode_agent_delegate", {"agent": "plan", "prompt": "think"})

    payload = json.loads(result.text)
    assert payload == {
        "agent": "plan",
        "session_id": "ses_new",
        "message_id": "msg_1",
        "content": "planned",
        "error": None,
    }
    body = json.loads(backend.calls("POST", "/session/ses_new/message")[0].content)
    assert body["agent"] == "plan"


async def test_agent_delegate_reuses_session(ctx, backend):
    backend.on("POST", "/session/ses_1/message", json=_reply("ok"))
    result = await dispatch(ctx, "opencode_agent_delegate", {"agent": "build", "prompt": "go", "session_id": "ses_1"})
    assert not result.is_error
    assert backend.calls("POST", "/session") == []


async def test_agent_delegate_failure_suggests_agents(ctx, backend):
    backend.on("POST", "/session/ses_1/message", json={"error": "unknown agent"}, status=400)
    result = await dispatch(ctx, "opencode_agent_delegate", {"agent": "ghost", "prompt": "go", "session_id": "ses_1"})
    assert result.is_error
    assert "Use opencode_agent_list to see available agents" in result.text


@pytest.mark.parametrize("name, arguments", [
    ("opencode_run", {"prompt": "x"}),
    ("opencode_session_create", {}),
    ("opencode_session_prompt", {"session_id": "s", "prompt": "x"}),
    ("opencode_session_list", {}),
    ("opencode_session_get", {"session_id": "s"}),
    ("opencode_session_abort", {"session_id": "s"}),
    ("opencode_session_share", {"session_id": "s"}),
    ("opencode_agent_delegate", {"agent": "plan", "prompt": "x"}),
])
async def test_unreachable_server_gives_connection_error(down_ctx, name, arguments):
    result = await dispatch(down_ctx, name, arguments)

    assert result.is_error
    assert result.text.startswith("Error: ")
    assert "Cannot connect to OpenCode server at http://opencode.test" in result.text
    assert "Ensure OpenCode server is running: opencode serve" in result.text
