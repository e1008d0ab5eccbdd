"""opencode.json persistence.

Read: parse or {} on any error. Write: recursive merge into what is on disk
(dicts merge, everything else including lists is replaced), pretty-printed.
Writes are not locked; concurrent writers can race.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from opencode_mcp.config import CONFIG_FILENAME, GLOBAL_CONFIG_DIR, config_path_override
from opencode_mcp.utils.logging_ import logger


def detect_config_path(working_directory: Optional[str] = None) -> Path:
    """Locate opencode.json.

    Priority: OPENCODE_CONFIG_PATH > <project>/.opencode/opencode.json (if it
    exists) > global ~/.config/opencode/opencode.json (created on first write).
    """
    override = config_path_override()
    if override:
        return Path(override).expanduser()

    if working_directory:
        local = Path(working_directory).expanduser() / ".opencode" / CONFIG_FILENAME
        if local.exists():
            return local

    return GLOBAL_CONFIG_DIR / CONFIG_FILENAME


def deep_merge(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """Merge source into a copy of target. Only dict-into-dict recurses."""
    result = dict(target)
    for key, value in source.items():
        existing = result.get(key)
        if isinstance(value, dict) and isinstance(existing, dict):
            result[key] = deep_merge(existing, value)
        else:
            result[key] = value
    return result


def read_config(path: Path) -> Dict[str, Any]:
    try:
        if not path.exists():
            return {}
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            logger.warning(f"Config: {path} does not hold a JSON object, ignoring")
            return {}
        return data
    except Exception as e:
        logger.warning(f"Config: Failed to read {path}: {e}")
        return {}


def write_config(path: Path, updates: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Merge updates into the file at path. Returns (success, error)."""
    try:
        merged = deep_merge(read_config(path), updates)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(merged, indent=2), encoding="utf-8")
        logger.info(f"Config: wrote {path}")
        return True, None
    except Exception as e:
        logger.warning(f"Config: Failed to write {path}: {e}")
        return False, str(e)
