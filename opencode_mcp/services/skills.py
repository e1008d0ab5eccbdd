"""Skill discovery: SKILL.md files under the known skill directories."""

import os
import re
from pathlib import Path
from typing import Dict, List, Optional

from opencode_mcp.utils.logging_ import logger

SKILL_FILENAME = "SKILL.md"

_DESCRIPTION_RE = re.compile(r"description:\s*(.+)")


def _home() -> Path:
    return Path(os.environ.get("HOME") or os.environ.get("USERPROFILE") or Path.home())


def skill_locations(cwd: Optional[str] = None) -> List[tuple]:
    """(directory, location) pairs, project-local first so they win on name clashes."""
    base = Path(cwd) if cwd else Path(os.getcwd())
    home = _home()
    return [
        (base / ".opencode" / "skills", "project"),
        (base / ".claude" / "skills", "project"),
        (home / ".config" / "opencode" / "skills", "global"),
        (home / ".claude" / "skills", "global"),
        (home / ".opencode" / "skills", "global"),
    ]


def _skills_in(directory: Path, location: str) -> List[Dict[str, str]]:
    if not directory.is_dir():
        return []
    skills = []
    for entry in sorted(directory.iterdir()):
        skill_file = entry / SKILL_FILENAME
        if not entry.is_dir() or not skill_file.is_file():
            continue
        try:
            text = skill_file.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Skills: cannot read {skill_file}: {e}")
            continue
        match = _DESCRIPTION_RE.search(text)
        skills.append({
            "name": entry.name,
            "description": match.group(1).strip() if match else "",
            "location": location,
            "path": str(skill_file),
        })
    return skills


def discover_skills(cwd: Optional[str] = None) -> List[Dict[str, str]]:
    seen = set()
    found = []
    for directory, location in skill_locations(cwd):
        for skill in _skills_in(directory, location):
            if skill["name"] in seen:
                continue
            seen.add(skill["name"])
            found.append(skill)
    return found


def find_skill(name: str, cwd: Optional[str] = None) -> Optional[Path]:
    for directory, _ in skill_locations(cwd):
        candidate = directory / name / SKILL_FILENAME
        if candidate.is_file():
            return candidate
    return None


def render_skill(name: str, description: str, content: str) -> str:
    return f"---\nname: {name}\ndescription: {description}\n---\n\n{content}"


def skill_target(name: str, global_scope: bool) -> Path:
    base = _home() / ".config" / "opencode" / "skills" if global_scope else Path(".opencode") / "skills"
    return base / name / SKILL_FILENAME
