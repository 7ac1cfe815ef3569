"""Window geometry per screen."""

from __future__ import annotations

from dataclasses import dataclass

from skilledge.screens import Screen


@dataclass(frozen=True)
class WindowGeometry:
    width: int
    height: int
    opacity: float = 1.0


_AUTH = WindowGeometry(400, 600)
_FORM = WindowGeometry(600, 650)

_SCREEN_GEOMETRY: dict[Screen, WindowGeometry] = {
    Screen.LOGIN: _AUTH,
    Screen.REGISTER: _AUTH,
    Screen.VERIFICATION: _AUTH,
    Screen.PREFERENCES: _FORM,
    Screen.INTERVIEW_TYPE: _FORM,
    Screen.UPGRADE_REQUIRED: WindowGeometry(500, 600),
}

MAIN_BASE_WIDTH = 700
MAIN_BASE_HEIGHT = 420

# Conversation growth on the main screen
_CONV_BASE_WIDTH = 700
_CONV_BASE_HEIGHT = 400
_CONV_MAX_WIDTH = 1000
_CONV_MAX_HEIGHT = 700


def geometry_for(screen: Screen, main_opacity: float = 1.0) -> WindowGeometry:
    """Fixed size for *screen*; only the main screen is translucent."""
    if screen is Screen.MAIN:
        return WindowGeometry(MAIN_BASE_WIDTH, MAIN_BASE_HEIGHT, main_opacity)
    return _SCREEN_GEOMETRY[screen]


def conversation_geometry(exchanges: int, main_opacity: float = 1.0) -> WindowGeometry:
    """Main-screen size after *exchanges* question/answer pairs."""
    if exchanges <= 0:
        return WindowGeometry(_CONV_BASE_WIDTH, _CONV_BASE_HEIGHT, main_opacity)
    return WindowGeometry(
        min(_CONV_BASE_WIDTH + exchanges * 20, _CONV_MAX_WIDTH),
        min(_CONV_BASE_HEIGHT + exchanges * 50, _CONV_MAX_HEIGHT),
        main_opacity,
    )
