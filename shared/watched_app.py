"""
Shared representation of an application registered for notification monitoring.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass(frozen=True, slots=True)
class WatchedApp:
    """
    An application the user asked us to watch.

    ``app_id`` is the bundle identifier and is the unique key; ``display_name``
    is the text searched for inside notification banners.
    """

    app_id: str
    display_name: str
    icon_path: Optional[str] = None

    def matches_text(self, text: str) -> bool:
        """Return whether ``display_name`` occurs in ``text`` ignoring case."""
        if not self.display_name:
            return False
        return self.display_name.casefold() in text.casefold()

    @property
    def icon(self) -> Optional[Path]:
        return Path(self.icon_path) if self.icon_path else None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.app_id, "name": self.display_name, "iconPath": self.icon_path}
