"""OpenCode server client.

Single owner of the connection to the OpenCode HTTP API. Every operation:
  1. ensures the connection (one health probe on first use, lock-guarded)
  2. runs the HTTP call under the configured timeout
  3. validates/normalizes the response, degrading to raw data on drift

Errors carry an ErrorKind set here, where the cause is known.
"""

import asyncio
import mimetypes
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from opencode_mcp.config import OPENCODE_SERVER_URL, OPENCODE_TIMEOUT_MS
from opencode_mcp.models import (
    Agent,
    FileContent,
    MessageResponse,
    ModelEntry,
    PromptResult,
    Provider,
    ProviderEntry,
    ProviderListing,
    ProvidersResponse,
    SearchHit,
    Session,
    SessionRef,
    ShareResult,
    TextMatch,
)
from opencode_mcp.utils.errors import (
    BackendRequestError,
    BackendTimeoutError,
    ConnectionFailedError,
    ErrorKind,
)
from opencode_mcp.utils.logging_ import logger
from opencode_mcp.utils.validation import (
    Outcome,
    Unvalidated,
    Validated,
    probe,
    probe_str,
    string_map,
    unwrap,
    validate,
    validate_each,
)


def _kind_for_status(status: int, path: str) -> ErrorKind:
    if status in (401, 403):
        return ErrorKind.UNAUTHORIZED
    if status == 404 and path.startswith("/session/"):
        return ErrorKind.SESSION_NOT_FOUND
    return ErrorKind.TOOL_EXECUTION_FAILED


def _text_of(value: Any) -> str:
    """Backend text fields arrive either wrapped ({"text": ...}) or bare."""
    if isinstance(value, dict):
        text = value.get("text")
        return "" if text is None else str(text)
    if isinstance(value, str):
        return value
    return ""


def extract_text(parts: Any) -> str:
    """Concatenate the text of every text-typed part, in order."""
    if not isinstance(parts, list):
        return ""
    content = ""
    for part in parts:
        if isinstance(part, dict) and part.get("type") == "text" and "text" in part:
            content += str(part["text"])
    return content


def message_error(info: Any) -> Optional[str]:
    error = probe(info, "error")
    if not isinstance(error, dict):
        return None
    name = error.get("name") or "UnknownError"
    message = probe(error, "data", "message", default="Unknown error")
    return f"{name}: {message}"


def assistant_completed(info: Any) -> bool:
    if probe(info, "role") != "assistant":
        return False
    return isinstance(probe(info, "time", "completed"), (int, float))


def normalize_models(models: Any, default_model_id: Optional[str] = None) -> List[ModelEntry]:
    """Normalize a provider's models, given as a list or as a map keyed by model id."""
    if isinstance(models, dict):
        items = list(models.items())
    elif isinstance(models, list):
        items = [(None, m) for m in models]
    else:
        return []

    entries = []
    for key, data in items:
        if isinstance(data, dict):
            model_id = data.get("id") or key
            name = data.get("name")
        elif isinstance(data, str):
            model_id, name = data, None
        else:
            model_id, name = key, None
        if not model_id:
            continue
        model_id = str(model_id)
        entries.append(ModelEntry(
            id=model_id,
            name=str(name) if name else model_id,
            is_default=default_model_id == model_id,
        ))
    return entries


def _file_part(path: str) -> Dict[str, str]:
    resolved = Path(path).expanduser().resolve()
    mime, _ = mimetypes.guess_type(resolved.name)
    return {
        "type": "file",
        "mime": mime or "text/plain",
        "filename": resolved.name,
        "url": resolved.as_uri(),
    }


class OpenCodeClient:
    """Async client for one OpenCode server."""

    def __init__(
        self,
        base_url: str = OPENCODE_SERVER_URL,
        timeout_ms: int = OPENCODE_TIMEOUT_MS,
        default_project: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_ms = timeout_ms
        self.default_project = default_project
        self.connected = False
        self._connect_lock = asyncio.Lock()
        self._owns_http = http_client is None
        # Deadlines are enforced by _request, not by httpx
        self._http = http_client or httpx.AsyncClient(timeout=None)

    # --- Transport ---

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        if params:
            params = {k: v for k, v in params.items() if v not in (None, "")}

        async def _send() -> Any:
            response = await self._http.request(method, url, params=params or None, json=body)
            response.raise_for_status()
            if not response.content:
                return None
            return response.json()

        try:
            return await asyncio.wait_for(_send(), timeout=self.timeout_ms / 1000)
        except asyncio.TimeoutError:
            logger.warning(f"OpenCode {operation} timed out after {self.timeout_ms}ms")
            raise BackendTimeoutError(operation, self.timeout_ms) from None
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise BackendRequestError(
                f"HTTP {status}: {e.response.text[:300]}",
                kind=_kind_for_status(status, path),
                status_code=status,
            ) from e
        except httpx.RequestError as e:
            raise BackendRequestError(
                str(e) or type(e).__name__, kind=ErrorKind.CONNECTION_FAILED,
            ) from e
        except ValueError as e:
            raise BackendRequestError(f"Invalid JSON from OpenCode {operation}: {e}") from e

    # --- Connection ---

    async def is_healthy(self) -> bool:
        """Health probe: session listing as a liveness check. Never raises."""
        try:
            await self._request("health", "GET", "/session")
            return True
        except Exception as e:
            logger.debug(f"OpenCode health probe failed: {e}")
            return False

    async def ensure_connected(self) -> None:
        if self.connected:
            return
        async with self._connect_lock:
            if self.connected:
                return
            if not await self.is_healthy():
                raise ConnectionFailedError(self.base_url)
            self.connected = True
            logger.info(f"Connected to OpenCode server at {self.base_url}")

    def disconnect(self) -> None:
        """Mark disconnected. In-flight calls are unaffected; the next call re-probes."""
        if self.connected:
            logger.info(f"Disconnected from OpenCode server at {self.base_url}")
        self.connected = False

    async def aclose(self) -> None:
        self.disconnect()
        if self._owns_http:
            await self._http.aclose()

    # --- Sessions ---

    async def list_sessions(self) -> List[Any]:
        await self.ensure_connected()
        data = await self._request("list sessions", "GET", "/session")
        return [unwrap(outcome) for outcome in validate_each(data, Session)]

    async def create_session(
        self,
        title: Optional[str] = None,
        model: Optional[Dict[str, str]] = None,
        directory: Optional[str] = None,
    ) -> SessionRef:
        """Create a session. model is accepted for symmetry; it is applied per prompt."""
        await self.ensure_connected()
        directory = directory or self.default_project
        body = {"title": title} if title else {}
        data = await self._request(
            "create session", "POST", "/session",
            params={"directory": directory}, body=body,
        )
        outcome = validate(data, Session)
        if isinstance(outcome, Validated):
            session = outcome.value
            return SessionRef(id=session.id, title=session.title, directory=session.directory)
        return SessionRef(
            id=str(probe(outcome.raw, "id", default="")),
            title=probe_str(outcome.raw, "title"),
            directory=probe_str(outcome.raw, "directory"),
        )

    async def get_session(self, session_id: str) -> Any:
        await self.ensure_connected()
        data = await self._request("get session", "GET", f"/session/{session_id}")
        return unwrap(validate(data, Session))

    async def abort_session(self, session_id: str) -> bool:
        await self.ensure_connected()
        data = await self._request("abort session", "POST", f"/session/{session_id}/abort")
        return data is True

    async def share_session(self, session_id: str) -> ShareResult:
        await self.ensure_connected()
        data = await self._request("share session", "POST", f"/session/{session_id}/share")
        outcome = validate(data, Session)
        if isinstance(outcome, Validated):
            session = outcome.value
            url = session.share.url if session.share else None
            return ShareResult(id=session.id, url=url)
        return ShareResult(
            id=str(probe(outcome.raw, "id", default="")),
            url=probe_str(outcome.raw, "share", "url"),
        )

    # --- Messages ---

    def _parse_message(self, session_id: str, data: Any) -> PromptResult:
        outcome = validate(data, MessageResponse)
        if isinstance(outcome, Validated):
            message = outcome.value
            info = message.info.model_dump() if message.info else None
            parts = message.parts
        else:
            info = probe(outcome.raw, "info")
            parts = probe(outcome.raw, "parts", default=[])
        return PromptResult(
            session_id=session_id,
            message_id=str(probe(info, "id", default="")),
            content=extract_text(parts),
            error=message_error(info),
            completed=assistant_completed(info),
        )

    async def prompt(
        self,
        session_id: str,
        text: str,
        model: Optional[Dict[str, str]] = None,
        agent: Optional[str] = None,
        files: Optional[List[str]] = None,
        no_reply: bool = False,
    ) -> PromptResult:
        await self.ensure_connected()
        parts: List[Dict[str, Any]] = [{"type": "text", "text": text}]
        for path in files or []:
            parts.append(_file_part(path))
        body: Dict[str, Any] = {"parts": parts}
        if model:
            body["model"] = model
        if agent:
            body["agent"] = agent
        if no_reply:
            body["noReply"] = True

        data = await self._request("prompt", "POST", f"/session/{session_id}/message", body=body)
        return self._parse_message(session_id, data)

    async def get_message(self, session_id: str, message_id: str) -> PromptResult:
        await self.ensure_connected()
        data = await self._request(
            "get message", "GET", f"/session/{session_id}/message/{message_id}",
        )
        return self._parse_message(session_id, data)

    async def wait_for_message(
        self,
        session_id: str,
        message_id: str,
        timeout_ms: int,
        interval_ms: int,
    ) -> PromptResult:
        """Poll a message until it has text or the assistant finished, up to timeout_ms."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_ms / 1000
        last = PromptResult(session_id=session_id, message_id=message_id)
        while loop.time() < deadline:
            last = await self.get_message(session_id, message_id)
            if last.content or last.completed:
                last.completed = True
                return last
            await asyncio.sleep(interval_ms / 1000)
        logger.warning(f"Message {message_id} in session {session_id} still pending after {timeout_ms}ms")
        return last

    # --- Agents / Providers / Config ---

    async def list_agents(self) -> List[Outcome]:
        """Agents, validated one by one. Invalid entries come back as Unvalidated."""
        await self.ensure_connected()
        data = await self._request("list agents", "GET", "/agent")
        return validate_each(data, Agent)

    async def list_providers(self) -> ProviderListing:
        await self.ensure_connected()
        data = await self._request("list providers", "GET", "/config/providers")

        outcome = validate(data, ProvidersResponse)
        if isinstance(outcome, Validated):
            raw_providers = outcome.value.providers
            defaults = outcome.value.default or outcome.value.defaults or {}
        else:
            raw_providers = probe(outcome.raw, "providers", default=[])
            defaults = string_map(probe(outcome.raw, "default") or probe(outcome.raw, "defaults"))
            if not isinstance(raw_providers, list):
                raw_providers = []

        providers = []
        for provider_outcome in validate_each(raw_providers, Provider):
            if isinstance(provider_outcome, Validated):
                p = provider_outcome.value
                provider_id, name, models = p.id, p.name, p.models
            else:
                raw = provider_outcome.raw
                provider_id = probe(raw, "id")
                name, models = probe(raw, "name"), probe(raw, "models")
                if not provider_id:
                    continue
            providers.append(ProviderEntry(
                id=str(provider_id),
                name=str(name) if name else str(provider_id),
                models=normalize_models(models, defaults.get(provider_id) if isinstance(provider_id, str) else None),
            ))
        return ProviderListing(providers=providers, defaults=defaults)

    async def get_config(self) -> Any:
        await self.ensure_connected()
        return await self._request("get config", "GET", "/config")

    async def update_config(self, config: Dict[str, Any]) -> Any:
        await self.ensure_connected()
        return await self._request("update config", "PATCH", "/config", body=config)

    # --- Files / Search ---

    async def read_file(self, path: str) -> str:
        await self.ensure_connected()
        data = await self._request("read file", "GET", "/file/content", params={"path": path})
        outcome = validate(data, FileContent)
        if isinstance(outcome, Validated):
            content = outcome.value.content
        else:
            content = probe(outcome.raw, "content")
        return "" if content is None else str(content)

    async def search_text(self, pattern: str, directory: Optional[str] = None) -> List[SearchHit]:
        await self.ensure_connected()
        data = await self._request(
            "search text", "GET", "/find",
            params={"pattern": pattern, "directory": directory},
        )
        hits = []
        for outcome in validate_each(data, TextMatch):
            if isinstance(outcome, Validated):
                match = outcome.value
                hits.append(SearchHit(
                    path=(match.path.text if match.path else None) or "",
                    lines=(match.lines.text if match.lines else None) or "",
                    line_number=match.line_number or 0,
                ))
            elif isinstance(outcome, Unvalidated):
                line_number = probe(outcome.raw, "line_number", default=0)
                hits.append(SearchHit(
                    path=_text_of(probe(outcome.raw, "path")),
                    lines=_text_of(probe(outcome.raw, "lines")),
                    line_number=line_number if isinstance(line_number, int) else 0,
                ))
        return hits

    async def find_files(self, query: str, type: Optional[str] = None,
                         limit: Optional[int] = None) -> List[Any]:
        await self.ensure_connected()
        data = await self._request(
            "find files", "GET", "/find/file",
            params={"query": query, "type": type, "limit": limit},
        )
        return data if isinstance(data, list) else []

    async def find_symbols(self, query: str) -> List[Any]:
        await self.ensure_connected()
        data = await self._request("find symbols", "GET", "/find/symbol", params={"query": query})
        return data if isinstance(data, list) else []
