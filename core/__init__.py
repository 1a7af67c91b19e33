"""
Monitoring core: notification detection, activation tracking and light control.
"""

from .activation_set import ActivationSet  # noqa: F401
from .element_tree import ElementNode, StaticElementNode, TextAttribute, match  # noqa: F401
from .errors import LightError, PermissionDenied, ResourceUnavailable, SourceUnavailable  # noqa: F401
from .light_controller import LightController  # noqa: F401
