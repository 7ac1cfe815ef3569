"""System tray icon with show/hide and status display."""

from __future__ import annotations

import logging
from typing import Callable

import pystray
from PIL import Image, ImageDraw

from skilledge.i18n import t
from skilledge.pipeline import STATUS_ERROR, STATUS_PROCESSING, STATUS_READY, STATUS_RECORDING

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Icon colours for each application state
# ---------------------------------------------------------------------------

_STATUS_COLORS: dict[str, str] = {
    STATUS_READY: "#4CAF50",  # green
    STATUS_RECORDING: "#FF9800",  # orange
    STATUS_PROCESSING: "#9C27B0",  # purple
    STATUS_ERROR: "#F44336",  # red
}

_STATUS_KEYS: dict[str, str] = {
    STATUS_READY: "tray.status.ready",
    STATUS_RECORDING: "tray.status.recording",
    STATUS_PROCESSING: "tray.status.processing",
    STATUS_ERROR: "tray.status.error",
}

_DEFAULT_ICON_COLOR = "#4CAF50"


def _create_icon_image(color: str = _DEFAULT_ICON_COLOR, size: int = 64) -> Image.Image:
    """Create a simple colored circle icon on a transparent background."""
    image = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    margin = size // 8
    draw.ellipse(
        [margin, margin, size - margin, size - margin],
        fill=color,
    )
    return image


class TrayApp:
    """pystray icon living next to the overlay.

    The menu callbacks fire on pystray's thread; *on_show*, *on_hide*,
    *on_toggle* and *on_quit* must therefore be thread-safe (the overlay's
    ``post`` queue is).
    """

    def __init__(
        self,
        on_show: Callable[[], None],
        on_hide: Callable[[], None],
        on_toggle: Callable[[], None],
        on_quit: Callable[[], None],
    ) -> None:
        self._on_show = on_show
        self._on_hide = on_hide
        self._on_toggle = on_toggle
        self._on_quit = on_quit
        self._status: str = STATUS_READY
        self._icon: pystray.Icon | None = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def start(self) -> None:
        """Start the tray icon on its own thread (the UI owns the main one)."""
        self._icon = pystray.Icon(
            name="SkillEdge",
            icon=_create_icon_image(_STATUS_COLORS.get(self._status, _DEFAULT_ICON_COLOR)),
            title=self._title(),
            menu=self._build_menu(),
        )
        logger.info("Starting system tray icon")
        self._icon.run_detached()

    def update_status(self, status: str) -> None:
        """Update the status text and icon colour shown in the tray."""
        self._status = status
        icon = self._icon
        if icon is None:
            return

        icon.icon = _create_icon_image(_STATUS_COLORS.get(status, _DEFAULT_ICON_COLOR))
        icon.title = self._title()
        # Rebuild the menu so the status line reflects the new state.
        icon.menu = self._build_menu()
        icon.update_menu()
        logger.debug("Tray status updated to %r", status)

    def stop(self) -> None:
        icon = self._icon
        if icon is not None:
            icon.stop()
            self._icon = None
            logger.info("System tray icon stopped")

    # ------------------------------------------------------------------ #
    # Menu
    # ------------------------------------------------------------------ #

    def _title(self) -> str:
        status_key = _STATUS_KEYS.get(self._status, "tray.status.ready")
        return f"{t('app.name')} - {t(status_key)}"

    def _build_menu(self) -> pystray.Menu:
        return pystray.Menu(
            pystray.MenuItem(self._title(), action=None, enabled=False),
            # Default item: left click toggles the overlay
            pystray.MenuItem(
                t("tray.show"),
                lambda icon, item: self._on_toggle(),
                default=True,
                visible=False,
            ),
            pystray.MenuItem(t("tray.show"), lambda icon, item: self._on_show()),
            pystray.MenuItem(t("tray.hide"), lambda icon, item: self._on_hide()),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem(t("tray.quit"), self._on_quit_clicked),
        )

    def _on_quit_clicked(self, icon: pystray.Icon, item: pystray.MenuItem) -> None:
        logger.info("Quit requested via tray menu")
        try:
            self._on_quit()
        except Exception:
            logger.exception("Error in on_quit callback")
