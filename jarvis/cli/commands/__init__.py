"""
Command mixin modules for the CLI.
"""

from .panel import PanelCommandsMixin
from .database import DatabaseCommandsMixin
from .system import SystemCommandsMixin
from .xcode import XcodeCommandsMixin

__all__ = [
    "PanelCommandsMixin",
    "DatabaseCommandsMixin",
    "SystemCommandsMixin",
    "XcodeCommandsMixin",
]
