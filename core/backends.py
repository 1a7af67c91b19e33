"""
Interfaces of the operating-system facilities the monitoring core relies on.

Concrete implementations live in ``core.macos`` (accessibility and workspace)
and ``core.capture_device`` (camera). Tests supply in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Protocol

from core.element_tree import ElementNode

WindowCreatedCallback = Callable[[ElementNode], None]
ActivationCallback = Callable[[int, Optional[str]], None]


class AccessibilityBackend(Protocol):
    def is_trusted(self) -> bool:
        ...

    def request_permission_prompt(self) -> bool:
        ...

    def find_process(self, bundle_id: str) -> Optional[int]:
        ...

    def observe_window_created(self, pid: int, callback: WindowCreatedCallback) -> Any:
        """Subscribe to window creation in ``pid``; raise ``SourceUnavailable`` on failure."""
        ...

    def remove_observer(self, handle: Any) -> None:
        ...


class WorkspaceBackend(Protocol):
    def observe_app_activation(self, callback: ActivationCallback) -> Any:
        ...

    def remove_observer(self, handle: Any) -> None:
        ...


class AuthorizationStatus(Enum):
    GRANTED = "granted"
    DENIED = "denied"
    UNDETERMINED = "undetermined"


@dataclass(frozen=True, slots=True)
class CaptureDevice:
    device_id: str
    description: str


class CaptureResource(Protocol):
    def start(self) -> None:
        """Start capturing; blocks until the device is running."""
        ...

    def stop(self) -> None:
        ...

    def is_running(self) -> bool:
        ...

    def close(self) -> None:
        ...


class CaptureBackend(Protocol):
    def authorization_status(self) -> AuthorizationStatus:
        ...

    def request_authorization(self, callback: Callable[[bool], None]) -> None:
        ...

    def enumerate_devices(self) -> List[CaptureDevice]:
        ...

    def open(self, device: CaptureDevice) -> CaptureResource:
        ...
