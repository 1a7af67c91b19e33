"""
notification_light package.

Runtime support for the notification light host application.
"""

__all__ = [
    "logger",
]
