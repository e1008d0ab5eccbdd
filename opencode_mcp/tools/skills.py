"""Skill tools. These work on SKILL.md files directly, never through the server."""

from opencode_mcp.models import EmptyInput, SkillCreateInput, SkillLoadInput
from opencode_mcp.services.skills import discover_skills, find_skill, render_skill, skill_target
from opencode_mcp.tools.base import CREATE, READ_ONLY, ToolContext, tool
from opencode_mcp.utils.errors import OpenCodeError


class SkillNotFoundError(OpenCodeError):
    pass


@tool(
    "opencode_skill_list",
    "List available skills from project (.opencode/skills, .claude/skills) and global skill "
    "directories. Project skills shadow global ones with the same name.",
    EmptyInput,
    operation="Listing skills",
    category="skill_not_found",
    annotations=READ_ONLY,
)
async def skill_list(ctx: ToolContext, params: EmptyInput):
    return [
        {"name": s["name"], "description": s["description"], "location": s["location"]}
        for s in discover_skills()
    ]


@tool(
    "opencode_skill_load",
    "Load a skill's SKILL.md content by name.",
    SkillLoadInput,
    operation="Loading skill",
    category="skill_not_found",
    annotations=READ_ONLY,
)
async def skill_load(ctx: ToolContext, params: SkillLoadInput):
    path = find_skill(params.name)
    if path is None:
        raise SkillNotFoundError(f"Skill not found: {params.name}")
    return {
        "name": params.name,
        "path": str(path),
        "content": path.read_text(encoding="utf-8"),
    }


@tool(
    "opencode_skill_create",
    "Generate a SKILL.md definition and show where to save it. Nothing is written.",
    SkillCreateInput,
    operation="Creating skill",
    category="invalid_input",
    annotations=CREATE,
)
async def skill_create(ctx: ToolContext, params: SkillCreateInput):
    target = skill_target(params.name, params.global_scope)
    return {
        "message": "Skill definition created. Save this content to the specified path:",
        "path": str(target),
        "content": render_skill(params.name, params.description, params.content),
        "instructions": [
            f"Create the directory: mkdir -p {target.parent}",
            f"Save the content to: {target}",
            "Or use opencode_run to create the file programmatically",
        ],
    }
