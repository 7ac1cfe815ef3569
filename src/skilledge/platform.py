"""Platform-specific window chrome: taskbar hiding and capture exclusion.

This module defines the public API and dispatches to the correct backend
based on ``sys.platform``.
"""

from __future__ import annotations

import sys

if sys.platform == "win32":
    from skilledge._platform_win32 import (
        exclude_from_capture,
        hide_from_taskbar,
    )
else:
    from skilledge._platform_posix import (
        exclude_from_capture,
        hide_from_taskbar,
    )

__all__ = [
    "exclude_from_capture",
    "hide_from_taskbar",
]
