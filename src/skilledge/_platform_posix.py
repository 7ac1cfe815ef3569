"""macOS / Linux implementation of window chrome (stub).

Neither hook is implemented yet; callers treat ``NotImplementedError`` as
"chrome unavailable" and carry on.
"""

from __future__ import annotations

import tkinter as tk


def hide_from_taskbar(tk_root: tk.Tk | tk.Toplevel) -> None:
    raise NotImplementedError("taskbar hiding is only supported on Windows")


def exclude_from_capture(tk_root: tk.Tk | tk.Toplevel) -> None:
    raise NotImplementedError("capture exclusion is only supported on Windows")
