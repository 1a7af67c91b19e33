"""
Validation utilities for the persisted watch list.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from .watched_app import WatchedApp


class WatchListValidationError(ValueError):
    """Raised when a persisted watch list entry is missing required data or is malformed."""


@dataclass(frozen=True)
class WatchListConstraints:
    """Schema constraints as simple dataclass constants."""

    max_id_length: int = 255
    max_name_length: int = 120


def parse_watch_list(payload: str) -> Tuple[List[WatchedApp], List[WatchListValidationError]]:
    """
    Decode a JSON watch list.

    Returns the valid entries in their stored order together with one error per
    rejected entry. Duplicate identifiers keep the first occurrence.
    """
    try:
        raw = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise WatchListValidationError(f"Watch list is not valid JSON: {exc}") from exc

    if not isinstance(raw, list):
        raise WatchListValidationError("Watch list root must be a JSON array.")

    apps: List[WatchedApp] = []
    errors: List[WatchListValidationError] = []
    seen: set[str] = set()
    for index, entry in enumerate(raw):
        try:
            app = validate_entry(entry)
        except WatchListValidationError as exc:
            errors.append(WatchListValidationError(f"Entry {index}: {exc}"))
            continue
        if app.app_id in seen:
            errors.append(WatchListValidationError(f"Entry {index}: duplicate id '{app.app_id}'"))
            continue
        seen.add(app.app_id)
        apps.append(app)
    return apps, errors


def validate_entry(entry: Any) -> WatchedApp:
    if not isinstance(entry, dict):
        raise WatchListValidationError("Entry must be a JSON object.")

    constraints = WatchListConstraints()
    app_id = _require_string(entry.get("id"), field="id", max_length=constraints.max_id_length)
    name = _require_string(entry.get("name"), field="name", max_length=constraints.max_name_length)

    icon_path = entry.get("iconPath")
    if icon_path is not None and not isinstance(icon_path, str):
        raise WatchListValidationError("Field 'iconPath' must be a string when provided.")
    if isinstance(icon_path, str) and not icon_path.strip():
        icon_path = None

    return WatchedApp(app_id=app_id, display_name=name, icon_path=icon_path)


def validate_app(app: WatchedApp) -> WatchedApp:
    """Apply the stored-entry rules to an app added at runtime."""
    return validate_entry(app.to_dict())


def dump_watch_list(apps: Sequence[WatchedApp]) -> str:
    return json.dumps([app.to_dict() for app in apps], separators=(",", ":"))


def _require_string(value: Any, *, field: str, max_length: Optional[int] = None) -> str:
    if not isinstance(value, str):
        raise WatchListValidationError(f"Field '{field}' must be a string.")
    trimmed = value.strip()
    if not trimmed:
        raise WatchListValidationError(f"Field '{field}' is required.")
    if max_length is not None and len(trimmed) > max_length:
        raise WatchListValidationError(f"Field '{field}' exceeds {max_length} characters.")
    return trimmed
