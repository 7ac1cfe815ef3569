"""Windows implementation of window chrome (ctypes + user32)."""

from __future__ import annotations

import ctypes
import ctypes.wintypes
import tkinter as tk

user32 = ctypes.windll.user32  # type: ignore[attr-defined]

GWL_EXSTYLE = -20
WS_EX_TOOLWINDOW = 0x00000080
WS_EX_APPWINDOW = 0x00040000
WS_EX_TOPMOST = 0x00000008

# Windows 10 2004+; older builds reject it and fall back to WDA_MONITOR
WDA_MONITOR = 0x00000001
WDA_EXCLUDEFROMCAPTURE = 0x00000011

GetWindowLongW = user32.GetWindowLongW
SetWindowLongW = user32.SetWindowLongW
SetWindowDisplayAffinity = user32.SetWindowDisplayAffinity
SetWindowDisplayAffinity.argtypes = [ctypes.wintypes.HWND, ctypes.wintypes.DWORD]
SetWindowDisplayAffinity.restype = ctypes.wintypes.BOOL


def _hwnd(tk_root: tk.Tk | tk.Toplevel) -> int:
    # Ensure the window has been realized so it has an HWND.
    tk_root.update_idletasks()
    return int(tk_root.wm_frame(), 16)


def hide_from_taskbar(tk_root: tk.Tk | tk.Toplevel) -> None:
    """Apply ``WS_EX_TOOLWINDOW`` so the window stays off the taskbar and
    the Alt+Tab list."""
    hwnd = _hwnd(tk_root)
    style = GetWindowLongW(hwnd, GWL_EXSTYLE)
    style = (style | WS_EX_TOOLWINDOW | WS_EX_TOPMOST) & ~WS_EX_APPWINDOW
    SetWindowLongW(hwnd, GWL_EXSTYLE, style)


def exclude_from_capture(tk_root: tk.Tk | tk.Toplevel) -> None:
    """Hide the window from screen capture and screen sharing.

    Raises:
        OSError: If neither affinity mode is accepted.
    """
    hwnd = _hwnd(tk_root)
    if SetWindowDisplayAffinity(hwnd, WDA_EXCLUDEFROMCAPTURE):
        return
    if SetWindowDisplayAffinity(hwnd, WDA_MONITOR):
        return
    raise ctypes.WinError()
