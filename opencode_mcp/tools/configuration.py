"""Model, provider, config and auth tools.

model_configure and config_update dual-write: the delta is applied live via
PATCH /config, then persisted to opencode.json. Each side is reported on its
own and the call only fails when both sides failed.
"""

from typing import Any, Dict, Optional

from opencode_mcp.config import AUTH_FILE_PATH, bridge_settings, parse_model_string
from opencode_mcp.models import (
    AuthSetInput,
    AuthType,
    ConfigUpdateInput,
    EmptyInput,
    ModelConfigureInput,
    ModelListInput,
)
from opencode_mcp.services.config_file import detect_config_path, write_config
from opencode_mcp.tools.base import READ_ONLY, WRITE_EXTERNAL, ToolContext, tool
from opencode_mcp.utils.errors import InvalidInputError, OpenCodeError
from opencode_mcp.utils.logging_ import logger


async def _dual_write(ctx: ToolContext, delta: Dict[str, Any],
                      working_directory: Optional[str] = None) -> Dict[str, Any]:
    api_applied, api_error, api_exc = False, None, None
    try:
        await ctx.client.update_config(delta)
        api_applied = True
    except Exception as e:
        api_exc, api_error = e, str(e)
        logger.warning(f"Config: live update failed, falling back to file only: {e}")

    path = detect_config_path(working_directory)
    file_persisted, file_error = write_config(path, delta)

    if not api_applied and not file_persisted:
        raise OpenCodeError(
            f"API update failed ({api_error}) and writing {path} failed ({file_error})",
            kind=getattr(api_exc, "kind", None),
        )

    return {
        "api_applied": api_applied,
        "api_error": api_error,
        "file_persisted": file_persisted,
        "file_error": file_error,
        "config_path": str(path),
    }


@tool(
    "opencode_model_list",
    "List all available models from configured providers. Optionally filter by provider.",
    ModelListInput,
    operation="Listing models",
)
async def model_list(ctx: ToolContext, params: ModelListInput):
    listing = await ctx.client.list_providers()
    providers = listing.providers
    if params.provider:
        providers = [p for p in providers if p.id == params.provider]
    return [
        {
            "provider": p.id,
            "name": p.name,
            "models": [{"id": m.id, "name": m.name, "default": m.is_default} for m in p.models],
        }
        for p in providers
    ]


@tool(
    "opencode_provider_list",
    "List all providers with their model counts and default models.",
    EmptyInput,
    operation="Listing providers",
)
async def provider_list(ctx: ToolContext, params: EmptyInput):
    listing = await ctx.client.list_providers()
    return [
        {
            "id": p.id,
            "name": p.name,
            "model_count": len(p.models),
            "default_model": listing.defaults.get(p.id),
        }
        for p in listing.providers
    ]


@tool(
    "opencode_config_get",
    "Get the bridge settings and the OpenCode server's current configuration.",
    EmptyInput,
    operation="Getting configuration",
)
async def config_get(ctx: ToolContext, params: EmptyInput):
    result: Dict[str, Any] = {
        "bridge": bridge_settings(),
        "config_file": str(detect_config_path()),
    }
    try:
        result["server"] = await ctx.client.get_config()
    except OpenCodeError as e:
        logger.warning(f"Config: cannot fetch server config: {e}")
        result["server"] = None
        result["backend_error"] = str(e)
    return result


@tool(
    "opencode_model_configure",
    "Set the default model (and optionally a small model and provider options). Applied to "
    "the running server and persisted to opencode.json.",
    ModelConfigureInput,
    operation="Configuring model",
    annotations=WRITE_EXTERNAL,
)
async def model_configure(ctx: ToolContext, params: ModelConfigureInput):
    parsed = parse_model_string(params.model)
    if parsed is None:
        raise InvalidInputError(f"Invalid model '{params.model}': expected provider/model")

    delta: Dict[str, Any] = {"model": params.model}
    if params.small_model:
        if parse_model_string(params.small_model) is None:
            raise InvalidInputError(f"Invalid small_model '{params.small_model}': expected provider/model")
        delta["small_model"] = params.small_model
    if params.provider_options:
        delta["provider"] = {parsed["providerID"]: {"options": params.provider_options}}

    outcome = await _dual_write(ctx, delta, params.working_directory)
    return {"model": params.model, "small_model": params.small_model, **outcome}


@tool(
    "opencode_config_update",
    "Apply a partial opencode.json configuration to the running server and persist it to disk.",
    ConfigUpdateInput,
    operation="Updating configuration",
    annotations=WRITE_EXTERNAL,
)
async def config_update(ctx: ToolContext, params: ConfigUpdateInput):
    if not params.config:
        raise InvalidInputError("config must contain at least one key")
    outcome = await _dual_write(ctx, params.config, params.working_directory)
    return {"updated_keys": sorted(params.config), **outcome}


def _mask(key: str) -> str:
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:4]}...{key[-4:]}"


@tool(
    "opencode_auth_set",
    "Show how to configure credentials for a provider. Does not store anything.",
    AuthSetInput,
    operation="Setting provider authentication",
    category="unauthorized",
    annotations=READ_ONLY,
)
async def auth_set(ctx: ToolContext, params: AuthSetInput):
    if params.type == AuthType.API and not params.key:
        raise InvalidInputError("An API key is required when type is 'api'")

    env_var = f"{params.provider.upper().replace('-', '_')}_API_KEY"
    result: Dict[str, Any] = {
        "provider": params.provider,
        "type": params.type.value,
        "message": f"Credentials for {params.provider} were not changed. Apply them with one of the options below.",
        "cli_command": f"opencode auth login {params.provider}",
        "auth_file": str(AUTH_FILE_PATH),
    }
    if params.type == AuthType.API:
        result["env_var"] = env_var
        result["env_example"] = f"export {env_var}={_mask(params.key)}"
        result["key_preview"] = _mask(params.key)
    else:
        result["instructions"] = [
            f"Run: opencode auth login {params.provider}",
            "Complete the OAuth flow in the browser",
        ]
    return result
