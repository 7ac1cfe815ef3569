"""Main-screen loop: record -> transcribe -> reply -> report usage.

All state here is owned by the UI thread.  Network work is handed to the
same ``run_task`` runner the screen controller uses, and every result is
checked against a generation counter before it is applied, so clearing the
conversation (or logging out) while a request is in flight simply drops the
late answer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from skilledge.api import ApiResult, AuthClient
from skilledge.i18n import t
from skilledge.screens import Screen, ScreenController, TaskRunner, run_inline
from skilledge.session import Account

if TYPE_CHECKING:
    from skilledge.audio import AudioClip, AudioRecorder

logger = logging.getLogger(__name__)

STATUS_READY = "Ready"
STATUS_RECORDING = "Recording..."
STATUS_PROCESSING = "Processing..."
STATUS_ERROR = "Error"


@dataclass(frozen=True)
class _Outcome:
    transcript: str
    reply: ApiResult | None = None


class ReplyPipeline:
    """Turns a recorded question into a scripted reply.

    Only one recording may be outstanding at a time: a new one cannot start
    while the previous clip is still recording or being processed.
    """

    def __init__(
        self,
        controller: ScreenController,
        client: AuthClient,
        recorder: AudioRecorder,
        run_task: TaskRunner = run_inline,
        on_status: Callable[[str], None] | None = None,
        on_question: Callable[[str], None] | None = None,
        on_reply: Callable[[str, str], None] | None = None,
        on_error: Callable[[str], None] | None = None,
    ) -> None:
        self._controller = controller
        self._client = client
        self._recorder = recorder
        self._run_task = run_task
        self._on_status = on_status
        self._on_question = on_question
        self._on_reply = on_reply
        self._on_error = on_error

        self._recorder.on_complete = self._on_clip
        self._history: list[dict[str, str]] = []
        self._recording = False
        self._processing = False
        self._discard_clip = False
        self._generation = 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def history(self) -> list[dict[str, str]]:
        return list(self._history)

    @property
    def exchange_count(self) -> int:
        return len(self._history) // 2

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def is_busy(self) -> bool:
        return self._recording or self._processing

    # ------------------------------------------------------------------
    # Recording control
    # ------------------------------------------------------------------

    def toggle(self) -> bool:
        """Start recording if idle, stop it if recording."""
        if self._recording:
            return self.stop_recording()
        return self.start_recording()

    def start_recording(self) -> bool:
        record = self._controller.record
        if self._controller.screen is not Screen.MAIN or record is None or not record.authenticated:
            logger.debug("Not on an authenticated main screen, ignoring record request")
            return False
        if self._recording or self._processing:
            logger.warning("Previous question still outstanding, ignoring record request")
            return False
        # Client-side check against the cached (possibly stale) minute count.
        if record.account is not None and record.account.minutes_remaining <= 0:
            self._error(t("error.no_minutes"))
            return False

        if not self._recorder.start():
            self._error(t("error.recording_start"))
            return False
        self._recording = True
        self._status(STATUS_RECORDING)
        return True

    def stop_recording(self) -> bool:
        if not self._recording:
            return False
        self._recording = False
        # The recorder delivers the clip synchronously from stop().
        self._processing = True
        if not self._recorder.stop():
            self._processing = False
            self._error(t("error.recording_stop"))
            return False
        return True

    def clear(self) -> None:
        """Forget the conversation and drop any in-flight results."""
        self._generation += 1
        if self._recording:
            self._recording = False
            self._discard_clip = True
            try:
                self._recorder.stop()
            finally:
                self._discard_clip = False
        self._processing = False
        self._history.clear()
        self._status(STATUS_READY)

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def _on_clip(self, clip: AudioClip) -> None:
        if self._discard_clip:
            logger.info("Discarding clip recorded before reset")
            return
        record = self._controller.record
        if record is None:
            self._processing = False
            return

        generation = self._generation
        preferences = record.preferences
        email = record.account.email if record.account else ""
        history = list(self._history)
        self._status(STATUS_PROCESSING)

        def _work() -> _Outcome:
            try:
                transcription = self._client.transcribe(clip.data, preferences.language)
                text = transcription.data.get("text", "") if transcription.success else ""
                if not text:
                    return _Outcome(transcript="")
                reply = self._client.generate_reply(text, preferences, history, email=email)
                return _Outcome(transcript=text, reply=reply)
            except Exception:
                logger.exception("Audio processing error")
                return _Outcome(transcript="", reply=ApiResult.fail(t("error.unexpected")))

        self._run_task(_work, lambda outcome: self._on_outcome(outcome, generation, clip))

    def _on_outcome(self, outcome: _Outcome, generation: int, clip: AudioClip) -> None:
        if generation != self._generation:
            logger.info("Discarding stale reply")
            return
        self._processing = False
        if self._controller.screen is not Screen.MAIN:
            logger.info("Left the main screen, dropping reply")
            return

        if not outcome.transcript:
            if outcome.reply is not None and not outcome.reply.success:
                self._error(outcome.reply.error)
                return
            # TODO: surface an explicit "no speech detected" hint in the overlay
            logger.info("No speech detected, skipping reply")
            self._status(STATUS_READY)
            return

        if self._on_question is not None:
            self._on_question(outcome.transcript)

        reply = outcome.reply
        if reply is None or not reply.success:
            self._error((reply.error if reply else "") or t("error.reply_failed"))
            return

        text = reply.data["reply"]
        self._history.append({"role": "user", "content": outcome.transcript})
        self._history.append({"role": "assistant", "content": text})
        if self._on_reply is not None:
            self._on_reply(outcome.transcript, text)
        self._status(STATUS_READY)

        self._report_usage(clip.duration, generation)

    def _report_usage(self, seconds: float, generation: int) -> None:
        def _done(result: ApiResult) -> None:
            if generation != self._generation:
                return
            if not result.success:
                logger.warning("Usage update failed: %s", result.error)
                return
            try:
                account = Account.from_user(result.data.get("user"))
            except ValueError as exc:
                logger.warning("Usage update returned a malformed account: %s", exc)
                return
            logger.info("Usage reported, %.1f min left", account.minutes_remaining)
            self._controller.update_account(account)

        self._run_task(lambda: self._client.report_usage(seconds), _done)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _status(self, status: str) -> None:
        if self._on_status is not None:
            self._on_status(status)

    def _error(self, message: str) -> None:
        logger.error("Pipeline error: %s", message)
        self._status(STATUS_ERROR)
        if self._on_error is not None:
            self._on_error(message)
