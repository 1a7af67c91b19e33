"""
Typed UI element tree and the bounded matcher that maps a notification banner
to a watched application.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Tuple

from core.errors import AttributeReadError
from notification_light.notification_light import logger as app_logger
from shared.watched_app import WatchedApp

_LOGGER = app_logger.get_logger()

MAX_DEPTH = 4


class TextAttribute(Enum):
    """Textual element attributes, declared in matching priority order."""

    TITLE = "AXTitle"
    VALUE = "AXValue"
    DESCRIPTION = "AXDescription"


class ElementNode(ABC):
    """
    A node of an accessibility tree.

    ``read_text`` returns ``None`` when the attribute is absent or not textual and
    raises ``AttributeReadError`` when the read itself fails.
    """

    @abstractmethod
    def read_text(self, attribute: TextAttribute) -> Optional[str]:
        ...

    @abstractmethod
    def children(self) -> Sequence["ElementNode"]:
        ...


@dataclass(frozen=True)
class StaticElementNode(ElementNode):
    """In-memory element, used for snapshots and tests."""

    title: Optional[str] = None
    value: Optional[str] = None
    description: Optional[str] = None
    child_nodes: Tuple[ElementNode, ...] = field(default_factory=tuple)
    failing: frozenset = field(default_factory=frozenset)
    children_unreadable: bool = False

    def read_text(self, attribute: TextAttribute) -> Optional[str]:
        if attribute in self.failing:
            raise AttributeReadError(f"{attribute.value} could not be read")
        if attribute is TextAttribute.TITLE:
            return self.title
        if attribute is TextAttribute.VALUE:
            return self.value
        return self.description

    def children(self) -> Sequence[ElementNode]:
        if self.children_unreadable:
            raise AttributeReadError("AXChildren could not be read")
        return self.child_nodes


def match(
    root: ElementNode,
    watch_list: Sequence[WatchedApp],
    *,
    max_depth: int = MAX_DEPTH,
) -> Optional[WatchedApp]:
    """
    Depth-first search of ``root`` for text naming a watched app.

    The root sits at depth 0 and nodes deeper than ``max_depth`` are never
    visited. The first node whose title, value or description (checked in that
    order) contains an app's display name wins; ties inside one text go to the
    earliest registered app.
    """
    if not watch_list:
        return None
    return _visit(root, tuple(watch_list), 0, max_depth)


def _visit(
    node: ElementNode,
    watch_list: Tuple[WatchedApp, ...],
    depth: int,
    max_depth: int,
) -> Optional[WatchedApp]:
    if depth > max_depth:
        return None

    for attribute in TextAttribute:
        try:
            text = node.read_text(attribute)
        except AttributeReadError as exc:
            _LOGGER.debug("Skipping unreadable attribute at depth {}: {}", depth, exc)
            continue
        if not text:
            continue
        found = _match_text(text, watch_list)
        if found is not None:
            return found

    if depth == max_depth:
        return None

    try:
        children = node.children()
    except AttributeReadError as exc:
        _LOGGER.debug("Treating node at depth {} as a leaf: {}", depth, exc)
        return None

    for child in children:
        found = _visit(child, watch_list, depth + 1, max_depth)
        if found is not None:
            return found
    return None


def _match_text(text: str, watch_list: Tuple[WatchedApp, ...]) -> Optional[WatchedApp]:
    for app in watch_list:
        if app.matches_text(text):
            return app
    return None
