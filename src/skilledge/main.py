"""Main entry point: orchestrates all SkillEdge modules together."""

from __future__ import annotations

import logging

from skilledge.api import ApiResult, AuthClient
from skilledge.audio import AudioRecorder
from skilledge.config import get_app_dir, get_log_dir, load_config
from skilledge.hotkey import HotkeyListener
from skilledge.i18n import init_language
from skilledge.overlay import AppWindow, WindowActions
from skilledge.pipeline import ReplyPipeline
from skilledge.screens import ScreenController
from skilledge.session import JsonFileStorage, SessionStore
from skilledge.tray import TrayApp

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


class SkillEdgeApp:
    """Main application orchestrator.

    Wires the session store, backend client, screen controller, recorder,
    reply pipeline, window, tray icon and optional global hotkey together.
    Everything except the tray and hotkey threads runs on the tkinter thread.
    """

    def __init__(self) -> None:
        logger.info("Loading configuration...")
        self._config = load_config()
        init_language(self._config.language)

        self._store = SessionStore(
            JsonFileStorage(get_app_dir()),
            max_age_hours=self._config.session.max_age_hours,
        )
        self._client = AuthClient(self._config.api)

        logger.info("Initialising window...")
        self._window = AppWindow(
            WindowActions(
                login=lambda email, password: self._controller.submit_login(email, password),
                register=lambda first, last, email, password: self._controller.submit_register(
                    first, last, email, password
                ),
                verify=lambda email, code: self._controller.submit_verification(email, code),
                resend=lambda email: self._controller.resend_verification(email),
                show_login=lambda: self._controller.show_login(),
                show_register=lambda: self._controller.show_register(),
                save_preferences=lambda name, purpose, notes, language: self._controller.submit_preferences(
                    name, purpose, notes, language
                ),
                select_interview_type=lambda kind: self._controller.select_interview_type(kind),
                toggle_recording=self._on_toggle_recording,
                clear=self._on_clear,
                logout=self._on_logout,
            ),
            pricing_url=self._config.api.pricing_url,
            main_opacity=self._config.window.main_opacity,
            content_protection=self._config.window.content_protection,
        )

        self._controller = ScreenController(
            self._store,
            self._client,
            on_transition=self._window.apply_screen,
            on_update=self._window.render,
            run_task=self._window.run_task,
            schedule=self._window.schedule,
            transition_delay_ms=self._config.window.transition_delay_ms,
        )

        logger.info("Initialising audio recorder...")
        self._recorder = self._init_recorder()
        self._pipeline = ReplyPipeline(
            self._controller,
            self._client,
            self._recorder,
            run_task=self._window.run_task,
            on_status=self._on_status,
            on_question=self._window.add_question,
            on_reply=self._on_reply,
            on_error=self._window.show_error,
        )

        logger.info("Initialising system tray...")
        self._tray = TrayApp(
            on_show=self._window.show,
            on_hide=self._window.hide,
            on_toggle=self._window.toggle_visible,
            on_quit=self._on_quit,
        )

        self._hotkey = self._init_hotkey()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Pick the first screen, start the tray and block in the UI loop."""
        screen = self._controller.start()
        logger.info("Starting on %s screen", screen.value)
        self._window.run_task(self._client.test_connection, self._on_health_checked)
        self._tray.start()
        if self._hotkey is not None:
            self._hotkey.start()
        try:
            self._window.run()
        finally:
            self._shutdown()

    # ------------------------------------------------------------------
    # Callbacks (tkinter thread)
    # ------------------------------------------------------------------

    def _on_toggle_recording(self) -> None:
        self._pipeline.toggle()

    def _on_clear(self) -> None:
        self._pipeline.clear()
        self._window.clear_conversation()

    def _on_logout(self) -> None:
        self._pipeline.clear()
        self._controller.logout()

    def _on_status(self, status: str) -> None:
        self._window.set_status(status)
        self._tray.update_status(status)

    def _on_health_checked(self, result: ApiResult) -> None:
        if result.success:
            logger.info("Backend reachable")
        else:
            logger.warning("Backend health check failed: %s", result.error)

    def _on_reply(self, question: str, reply: str) -> None:
        self._window.add_reply(reply)
        self._window.resize_for_conversation(self._pipeline.exchange_count)

    # ------------------------------------------------------------------
    # Callbacks (other threads)
    # ------------------------------------------------------------------

    def _on_hotkey(self) -> None:
        self._window.post(self._on_toggle_recording)

    def _on_quit(self) -> None:
        """Handle the Quit action from the tray menu."""
        logger.info("Shutting down...")
        self._window.stop()

    def _shutdown(self) -> None:
        if self._hotkey is not None:
            self._hotkey.stop()
        if self._recorder.is_recording:
            # The window is gone; nothing left to deliver the clip to.
            self._recorder.on_complete = None
            self._recorder.stop()
        self._client.close()
        self._tray.stop()
        logger.info("Goodbye.")

    # ------------------------------------------------------------------
    # Module initialisation helpers
    # ------------------------------------------------------------------

    def _init_recorder(self) -> AudioRecorder:
        device: int | str | None = self._config.audio.device or None  # "" -> system default
        if isinstance(device, str) and device.isdigit():
            device = int(device)
        return AudioRecorder(sample_rate=self._config.audio.sample_rate, device=device)

    def _init_hotkey(self) -> HotkeyListener | None:
        trigger = self._config.hotkey.trigger.strip()
        if not trigger:
            return None
        try:
            return HotkeyListener(trigger, on_trigger=self._on_hotkey)
        except ValueError as exc:
            logger.error("Invalid hotkey %r, global toggle disabled: %s", trigger, exc)
            return None


# ======================================================================
# Entry point
# ======================================================================


def _configure_logging() -> None:
    logging.basicConfig(level=logging.INFO, format=_LOG_FORMAT)
    try:
        log_dir = get_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_dir / "skilledge.log", encoding="utf-8")
    except OSError as exc:
        logger.warning("File logging disabled: %s", exc)
        return
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    logging.getLogger().addHandler(handler)


def main() -> None:
    """Entry point for the SkillEdge application."""
    _configure_logging()
    app = SkillEdgeApp()
    app.run()


if __name__ == "__main__":
    main()
