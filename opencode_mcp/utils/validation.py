"""Best-effort validation of OpenCode backend payloads.

validate() never raises. A payload that does not match its shape is logged
and carried forward untouched inside Unvalidated, so callers branch on the
outcome type instead of assuming fields exist.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from opencode_mcp.utils.logging_ import logger

M = TypeVar("M", bound=BaseModel)


@dataclass
class Validated(Generic[M]):
    value: M
    shape: str


@dataclass
class Unvalidated:
    raw: Any
    shape: str
    issues: List[str] = field(default_factory=list)


Outcome = Union[Validated, Unvalidated]


def format_issues(exc: ValidationError) -> List[str]:
    issues = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "<root>"
        issues.append(f"{loc}: {err.get('msg', 'invalid')}")
    return issues


def validate(data: Any, model: Type[M], shape: Optional[str] = None) -> Outcome:
    """Validate data against model; on mismatch log and return the raw data."""
    name = shape or model.__name__
    try:
        return Validated(value=model.model_validate(data), shape=name)
    except ValidationError as e:
        issues = format_issues(e)
        logger.warning(f"Response validation failed for {name}: {'; '.join(issues)}")
        return Unvalidated(raw=data, shape=name, issues=issues)


def validate_each(items: Any, model: Type[M], shape: Optional[str] = None) -> List[Outcome]:
    """Validate list elements independently; one bad element does not sink the list."""
    if not isinstance(items, list):
        if items is not None:
            logger.warning(f"Expected a list for {shape or model.__name__}, got {type(items).__name__}")
        return []
    return [validate(item, model, shape) for item in items]


def unwrap(outcome: Outcome) -> Any:
    """Plain JSON-able value for either outcome."""
    if isinstance(outcome, Validated):
        return outcome.value.model_dump(mode="json", exclude_none=True)
    return outcome.raw


def probe(data: Any, *path: str, default: Any = None) -> Any:
    """Walk nested dict keys defensively; any missing or non-dict step yields default."""
    current = data
    for key in path:
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return default if current is None else current


def probe_str(data: Any, *path: str) -> Optional[str]:
    """probe() narrowed to strings; a value of any other type yields None."""
    value = probe(data, *path)
    return value if isinstance(value, str) else None


def string_map(data: Any) -> Dict[str, str]:
    """Keep only the str -> str pairs of a mapping."""
    if not isinstance(data, dict):
        return {}
    return {k: v for k, v in data.items() if isinstance(k, str) and isinstance(v, str)}
