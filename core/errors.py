"""
Error taxonomy for the monitoring pipeline.
"""

from __future__ import annotations


class LightError(Exception):
    """Base class for recoverable monitoring and light failures."""


class PermissionDenied(LightError):
    """A required OS authorization (accessibility or camera) is missing."""

    ACCESSIBILITY = "accessibility"
    CAMERA = "camera"

    def __init__(self, permission: str, message: str | None = None) -> None:
        super().__init__(message or f"{permission.capitalize()} permission has not been granted.")
        self.permission = permission


class SourceUnavailable(LightError):
    """The system process that renders notifications is not available."""


class ResourceUnavailable(LightError):
    """No usable capture device exists or the device refused to start."""


class AttributeReadError(Exception):
    """Reading a single attribute of a UI element failed."""
