"""
Persistence of the watch list in the application's QSettings.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

from PySide6.QtCore import QSettings

from notification_light.notification_light import logger as app_logger
from shared.watch_list_schema import WatchListValidationError, dump_watch_list, parse_watch_list
from shared.watched_app import WatchedApp

_LOGGER = app_logger.get_logger()

ORGANIZATION = "NotificationLight"
APPLICATION = "Core"
WATCH_LIST_KEY = "WatchedApps"


class WatchListStore(Protocol):
    def load(self) -> List[WatchedApp]:
        ...

    def save(self, apps: Sequence[WatchedApp]) -> None:
        ...


class SettingsWatchListStore:
    """Stores the ordered watch list as a JSON array under one settings key."""

    def __init__(self, settings: Optional[QSettings] = None) -> None:
        self._settings = settings or QSettings(ORGANIZATION, APPLICATION)

    def load(self) -> List[WatchedApp]:
        raw = self._settings.value(WATCH_LIST_KEY)
        if raw is None:
            return []
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8", errors="replace")
        if not isinstance(raw, str):
            _LOGGER.warning("Ignoring watch list stored with unexpected type {}", type(raw).__name__)
            return []

        try:
            apps, errors = parse_watch_list(raw)
        except WatchListValidationError as exc:
            _LOGGER.error("Stored watch list is unreadable: {}", exc)
            return []

        for error in errors:
            _LOGGER.warning("Dropping stored watch list entry. {}", error)
        _LOGGER.info("Loaded {} watched app(s)", len(apps))
        return apps

    def save(self, apps: Sequence[WatchedApp]) -> None:
        self._settings.setValue(WATCH_LIST_KEY, dump_watch_list(apps))
        self._settings.sync()
        if self._settings.status() != QSettings.Status.NoError:
            _LOGGER.error("Failed to persist watch list: {}", self._settings.status())
