"""
QSettings-backed configuration for the notification light runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from PySide6.QtCore import QSettings

from core.notification_source import DEFAULT_NOTIFICATION_CENTER_BUNDLE_ID
from core.watch_list_store import APPLICATION, ORGANIZATION
from notification_light.notification_light import logger as app_logger

_LOGGER = app_logger.get_logger()

_MAX_BUNDLE_ID_LENGTH = 255


@dataclass(eq=True)
class CoreSettings:
    monitoring_enabled: bool = False
    show_debug_logs: bool = True
    notification_center_bundle_id: str = DEFAULT_NOTIFICATION_CENTER_BUNDLE_ID
    preferred_camera_id: Optional[str] = None


class CoreSettingsManager:
    """Loads persisted settings and falls back to defaults for invalid data."""

    def __init__(self, settings: Optional[QSettings] = None) -> None:
        self._settings = settings or QSettings(ORGANIZATION, APPLICATION)

    def read_settings(self) -> CoreSettings:
        defaults = CoreSettings()
        return CoreSettings(
            monitoring_enabled=self._read_bool("MonitoringEnabled", defaults.monitoring_enabled),
            show_debug_logs=self._read_bool("ShowDebugLogs", defaults.show_debug_logs),
            notification_center_bundle_id=self._read_bundle_id(),
            preferred_camera_id=self._read_optional_string("PreferredCameraId"),
        )

    def write_settings(self, settings: CoreSettings) -> None:
        self._settings.setValue("MonitoringEnabled", settings.monitoring_enabled)
        self._settings.setValue("ShowDebugLogs", settings.show_debug_logs)
        self._settings.setValue("NotificationCenterBundleId", settings.notification_center_bundle_id)
        if settings.preferred_camera_id:
            self._settings.setValue("PreferredCameraId", settings.preferred_camera_id)
        else:
            self._settings.remove("PreferredCameraId")
        self._settings.sync()

    def _read_bool(self, name: str, default: bool) -> bool:
        raw = self._settings.value(name)
        if raw is None:
            return default
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, int):
            return bool(raw)
        if isinstance(raw, str):
            lowered = raw.strip().lower()
            if lowered in {"true", "1", "yes"}:
                return True
            if lowered in {"false", "0", "no"}:
                return False
        _LOGGER.warning("Setting {} has unexpected value {!r}; using {}.", name, raw, default)
        return default

    def _read_bundle_id(self) -> str:
        value = self._read_optional_string("NotificationCenterBundleId")
        if value is None:
            return DEFAULT_NOTIFICATION_CENTER_BUNDLE_ID
        if len(value) > _MAX_BUNDLE_ID_LENGTH or " " in value:
            _LOGGER.warning("Invalid notification center bundle id {!r}; using default.", value)
            return DEFAULT_NOTIFICATION_CENTER_BUNDLE_ID
        return value

    def _read_optional_string(self, name: str) -> Optional[str]:
        raw: Any = self._settings.value(name)
        if raw is None:
            return None
        if not isinstance(raw, str):
            _LOGGER.warning("Setting {} has unexpected type {}.", name, type(raw).__name__)
            return None
        return raw.strip() or None
