"""
macOS accessibility and workspace bindings built on PyObjC.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from AppKit import (
    NSRunningApplication,
    NSWorkspace,
    NSWorkspaceApplicationKey,
    NSWorkspaceDidActivateApplicationNotification,
)
from ApplicationServices import (
    AXIsProcessTrusted,
    AXIsProcessTrustedWithOptions,
    AXObserverAddNotification,
    AXObserverCreate,
    AXObserverGetRunLoopSource,
    AXObserverRemoveNotification,
    AXUIElementCopyAttributeValue,
    AXUIElementCreateApplication,
    kAXChildrenAttribute,
    kAXErrorAttributeUnsupported,
    kAXErrorNoValue,
    kAXErrorSuccess,
    kAXTrustedCheckOptionPrompt,
    kAXWindowCreatedNotification,
)
from CoreFoundation import CFRunLoopAddSource, CFRunLoopGetMain, CFRunLoopRemoveSource, kCFRunLoopDefaultMode
from Foundation import NSOperationQueue

from core.backends import ActivationCallback, WindowCreatedCallback
from core.element_tree import ElementNode, TextAttribute
from core.errors import AttributeReadError, SourceUnavailable
from notification_light.notification_light import logger as app_logger

_LOGGER = app_logger.get_logger()

_ABSENT_ERRORS = {kAXErrorNoValue, kAXErrorAttributeUnsupported}


class AXElementNode(ElementNode):
    """Live ``AXUIElementRef`` wrapped in the element tree interface."""

    def __init__(self, element: Any) -> None:
        self._element = element

    def read_text(self, attribute: TextAttribute) -> Optional[str]:
        value = self._copy(attribute.value)
        return value if isinstance(value, str) else None

    def children(self) -> Sequence[ElementNode]:
        value = self._copy(kAXChildrenAttribute)
        if value is None:
            return ()
        return [AXElementNode(child) for child in value]

    def _copy(self, attribute: str) -> Any:
        err, value = AXUIElementCopyAttributeValue(self._element, attribute, None)
        if err == kAXErrorSuccess:
            return value
        if err in _ABSENT_ERRORS:
            return None
        raise AttributeReadError(f"{attribute} read failed with AXError {err}")


@dataclass
class _AXSubscription:
    observer: Any
    app_element: Any
    callback: Any


class MacAccessibilityBackend:
    """Window-created subscriptions on another process through ``AXObserver``."""

    def is_trusted(self) -> bool:
        return bool(AXIsProcessTrusted())

    def request_permission_prompt(self) -> bool:
        return bool(AXIsProcessTrustedWithOptions({kAXTrustedCheckOptionPrompt: True}))

    def find_process(self, bundle_id: str) -> Optional[int]:
        running = NSRunningApplication.runningApplicationsWithBundleIdentifier_(bundle_id)
        if not running:
            return None
        return int(running[0].processIdentifier())

    def observe_window_created(self, pid: int, callback: WindowCreatedCallback) -> _AXSubscription:
        def _on_notification(observer, element, notification, refcon) -> None:
            if notification == kAXWindowCreatedNotification:
                callback(AXElementNode(element))

        err, observer = AXObserverCreate(pid, _on_notification, None)
        if err != kAXErrorSuccess or observer is None:
            raise SourceUnavailable(f"Failed to create AXObserver for pid {pid} (AXError {err}).")

        app_element = AXUIElementCreateApplication(pid)
        err = AXObserverAddNotification(observer, app_element, kAXWindowCreatedNotification, None)
        if err != kAXErrorSuccess:
            raise SourceUnavailable(f"Failed to observe window creation for pid {pid} (AXError {err}).")

        CFRunLoopAddSource(CFRunLoopGetMain(), AXObserverGetRunLoopSource(observer), kCFRunLoopDefaultMode)
        return _AXSubscription(observer=observer, app_element=app_element, callback=_on_notification)

    def remove_observer(self, handle: _AXSubscription) -> None:
        AXObserverRemoveNotification(handle.observer, handle.app_element, kAXWindowCreatedNotification)
        CFRunLoopRemoveSource(CFRunLoopGetMain(), AXObserverGetRunLoopSource(handle.observer), kCFRunLoopDefaultMode)


class MacWorkspaceBackend:
    """Application activation events from the shared ``NSWorkspace``."""

    def __init__(self) -> None:
        self._tokens: List[Any] = []

    def observe_app_activation(self, callback: ActivationCallback) -> Any:
        def _on_activate(notification) -> None:
            info = notification.userInfo() or {}
            app = info.get(NSWorkspaceApplicationKey)
            if app is None:
                return
            bundle_id = app.bundleIdentifier()
            callback(int(app.processIdentifier()), str(bundle_id) if bundle_id else None)

        center = NSWorkspace.sharedWorkspace().notificationCenter()
        token = center.addObserverForName_object_queue_usingBlock_(
            NSWorkspaceDidActivateApplicationNotification,
            None,
            NSOperationQueue.mainQueue(),
            _on_activate,
        )
        self._tokens.append(token)
        return token

    def remove_observer(self, handle: Any) -> None:
        NSWorkspace.sharedWorkspace().notificationCenter().removeObserver_(handle)
        if handle in self._tokens:
            self._tokens.remove(handle)
