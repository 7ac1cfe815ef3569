"""Screen navigation state machine.

Exactly one :class:`Screen` is active at a time.  The current state is a
single immutable :class:`ScreenState`; every change replaces it wholesale so
the screen, the committed session record and the inline error can never
drift apart.

Remote calls never block the caller.  They are handed to a *run_task*
callable (the UI runs them on a worker thread and delivers the result back on
the UI thread) and each one is tagged with a generation number.  Any
transition bumps the generation, so a late response for a screen the user has
already left is dropped instead of being applied.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable

from skilledge.api import ApiResult, AuthClient
from skilledge.i18n import t
from skilledge.session import (
    DEFAULT_LANGUAGE,
    INTERVIEW_TYPES,
    Account,
    SessionRecord,
    SessionStore,
    authenticated_record,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

TaskRunner = Callable[[Callable[[], Any], Callable[[Any], None]], None]
Scheduler = Callable[[int, Callable[[], None]], None]


def run_inline(work: Callable[[], Any], on_done: Callable[[Any], None]) -> None:
    """Run *work* synchronously (tests, headless use)."""
    on_done(work())


def schedule_inline(delay_ms: int, callback: Callable[[], None]) -> None:  # noqa: ARG001
    callback()


class Screen(str, Enum):
    LOGIN = "login"
    REGISTER = "register"
    VERIFICATION = "verification"
    UPGRADE_REQUIRED = "upgrade"
    PREFERENCES = "preferences"
    INTERVIEW_TYPE = "interviewType"
    MAIN = "main"


@dataclass(frozen=True)
class ScreenState:
    screen: Screen
    record: SessionRecord | None = None
    error: str = ""
    notice: str = ""
    busy: bool = False
    pending_email: str = ""


class ScreenController:
    """Drives the screen flow from session state, auth results and user input.

    Args:
        store: Session persistence; the only place the record is written.
        client: Backend client used for login/registration/verification.
        on_transition: Called with the new :class:`Screen` whenever the
            active screen changes (the host resizes the window here).
        on_update: Called with the full :class:`ScreenState` after every
            change, including error and busy re-renders.
        run_task: ``run_task(work, on_done)``; runs *work* off the UI thread
            and calls ``on_done(result)`` back on it.
        schedule: ``schedule(delay_ms, callback)`` for delayed transitions.
        transition_delay_ms: Pause before entering the main screen after an
            interview type is picked.
    """

    def __init__(
        self,
        store: SessionStore,
        client: AuthClient,
        on_transition: Callable[[Screen], None] | None = None,
        on_update: Callable[[ScreenState], None] | None = None,
        run_task: TaskRunner = run_inline,
        schedule: Scheduler = schedule_inline,
        transition_delay_ms: int = 500,
    ) -> None:
        self._store = store
        self._client = client
        self._on_transition = on_transition
        self._on_update = on_update
        self._run_task = run_task
        self._schedule = schedule
        self._transition_delay_ms = transition_delay_ms

        self._state = ScreenState(screen=Screen.LOGIN)
        self._generation = 0

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def state(self) -> ScreenState:
        return self._state

    @property
    def screen(self) -> Screen:
        return self._state.screen

    @property
    def record(self) -> SessionRecord | None:
        return self._state.record

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def start(self) -> Screen:
        """Pick the initial screen from the cached session (no network)."""
        record = self._store.load()
        if record is None:
            self._enter(Screen.LOGIN)
        else:
            if record.token:
                self._client.restore(record.token)
            target = Screen.MAIN if record.preferences_complete else Screen.PREFERENCES
            self._enter(target, record=record)
        return self._state.screen

    # ------------------------------------------------------------------
    # Navigation links
    # ------------------------------------------------------------------

    def show_login(self) -> None:
        self._enter(Screen.LOGIN)

    def show_register(self) -> None:
        self._enter(Screen.REGISTER)

    # ------------------------------------------------------------------
    # Login / registration / verification
    # ------------------------------------------------------------------

    def submit_login(self, email: str, password: str) -> None:
        if not self._accepting(Screen.LOGIN):
            return
        email = email.strip()
        if not email or not password:
            self._fail(t("error.login_missing"))
            return
        self._issue(lambda: self._client.login(email, password), self._on_login_result)

    def submit_register(self, first_name: str, last_name: str, email: str, password: str) -> None:
        if not self._accepting(Screen.REGISTER):
            return
        first_name, last_name, email = first_name.strip(), last_name.strip(), email.strip()
        if not (first_name and last_name and email and password):
            self._fail(t("error.fields_required"))
            return
        if len(password) < MIN_PASSWORD_LENGTH:
            self._fail(t("error.password_short", count=MIN_PASSWORD_LENGTH))
            return
        self._issue(
            lambda: self._client.register(first_name, last_name, email, password),
            lambda result: self._on_register_result(result, email),
        )

    def submit_verification(self, email: str, code: str) -> None:
        if not self._accepting(Screen.VERIFICATION):
            return
        email, code = email.strip(), code.strip()
        if not email or not code:
            self._fail(t("error.code_missing"))
            return
        self._issue(
            lambda: self._client.verify_email(email, code),
            self._on_verification_result,
        )

    def resend_verification(self, email: str) -> None:
        """The backend has no resend endpoint; tell the user so."""
        if not self._accepting(Screen.VERIFICATION):
            return
        if not email.strip():
            self._fail(t("error.email_required"))
            return
        self._update(error="", notice=t("notice.resend_unavailable"))

    # ------------------------------------------------------------------
    # Preferences / interview type
    # ------------------------------------------------------------------

    def submit_preferences(
        self,
        display_name: str,
        session_purpose: str,
        context_notes: str,
        language: str = DEFAULT_LANGUAGE,
    ) -> None:
        record = self._state.record
        if not self._accepting(Screen.PREFERENCES) or record is None:
            return
        preferences = replace(
            record.preferences,
            display_name=display_name.strip(),
            session_purpose=session_purpose.strip(),
            context_notes=context_notes.strip(),
            language=language or DEFAULT_LANGUAGE,
        )
        if not preferences.is_complete:
            logger.info("Preferences incomplete: %s", ", ".join(preferences.missing_fields()))
            self._fail(t("error.preferences_required"))
            return
        record = replace(record, preferences=preferences, preferences_complete=True)
        self._commit(record)
        self._enter(Screen.INTERVIEW_TYPE, record=record)

    def select_interview_type(self, interview_type: str) -> None:
        record = self._state.record
        if not self._accepting(Screen.INTERVIEW_TYPE) or record is None:
            return
        if interview_type not in INTERVIEW_TYPES:
            self._fail(t("error.interview_type"))
            return
        record = replace(record, preferences=replace(record.preferences, interview_type=interview_type))
        self._commit(record)
        self._update(record=record, error="")

        generation = self._generation

        def _advance() -> None:
            if generation != self._generation or self._state.screen is not Screen.INTERVIEW_TYPE:
                logger.debug("Interview type transition superseded")
                return
            self._enter(Screen.MAIN)

        self._schedule(self._transition_delay_ms, _advance)

    # ------------------------------------------------------------------
    # Main screen
    # ------------------------------------------------------------------

    def logout(self) -> None:
        """Purge the session and return to the login screen."""
        logger.info("Logging out")
        self._store.clear()
        self._client.logout()
        self._enter(Screen.LOGIN, record=None)

    def update_account(self, account: Account) -> None:
        """Refresh the cached account (e.g. after a usage report)."""
        record = self._state.record
        if record is None or not record.authenticated:
            return
        record = replace(record, account=account)
        self._commit(record)
        self._update(record=record)

    # ------------------------------------------------------------------
    # Result handlers
    # ------------------------------------------------------------------

    def _on_login_result(self, result: ApiResult) -> None:
        if not result.success:
            self._fail(result.error or t("error.login_failed"))
            return
        account = self._account_from(result)
        if account is None:
            return
        if not account.is_entitled:
            logger.info(
                "Login for %s refused: plan=%s status=%s",
                account.email,
                account.subscription_tier,
                account.subscription_status,
            )
            self._client.logout()
            self._fail(t("error.not_entitled"))
            return
        record = authenticated_record(account, result.data.get("token", ""))
        self._commit(record)
        self._enter(Screen.PREFERENCES, record=record)

    def _on_register_result(self, result: ApiResult, email: str) -> None:
        if not result.success:
            self._fail(result.error or t("error.register_failed"))
            return
        notice = ""
        code = result.data.get("verification_code")
        if code:
            logger.info("Development verification code for %s: %s", email, code)
            notice = t("notice.verification_code", code=code)
        self._enter(
            Screen.VERIFICATION,
            pending_email=result.data.get("email") or email,
            notice=notice,
        )

    def _on_verification_result(self, result: ApiResult) -> None:
        if not result.success:
            self._fail(result.error or t("error.verification_failed"))
            return
        account = self._account_from(result)
        if account is None:
            return
        if not account.is_entitled:
            logger.info("Verified %s without an entitled plan", account.email)
            self._client.logout()
            self._enter(Screen.UPGRADE_REQUIRED, record=None)
            return
        record = authenticated_record(account, result.data.get("token", ""))
        self._commit(record)
        self._enter(Screen.PREFERENCES, record=record)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _account_from(self, result: ApiResult) -> Account | None:
        """Parse the ``user`` payload, or fail inline and return ``None``."""
        try:
            return Account.from_user(result.data.get("user"))
        except ValueError as exc:
            logger.error("Malformed account in %s response: %s", self._state.screen.value, exc)
            self._client.logout()
            self._fail(t("error.unexpected"))
            return None

    def _accepting(self, screen: Screen) -> bool:
        """True if *screen* is active and no request is in flight."""
        if self._state.screen is not screen:
            logger.warning("Ignoring %s action on %s screen", screen.value, self._state.screen.value)
            return False
        if self._state.busy:
            logger.warning("Request already in flight, ignoring %s action", screen.value)
            return False
        return True

    def _issue(self, work: Callable[[], ApiResult], handler: Callable[[ApiResult], None]) -> None:
        """Run *work* via the task runner and route a still-current result to *handler*."""
        self._generation += 1
        generation = self._generation
        screen = self._state.screen
        self._update(busy=True, error="", notice="")

        def _guarded() -> ApiResult:
            try:
                return work()
            except Exception:
                logger.exception("Unexpected error during %s request", screen.value)
                return ApiResult.fail(t("error.unexpected"))

        def _done(result: ApiResult) -> None:
            if generation != self._generation or self._state.screen is not screen:
                logger.info("Discarding stale %s response", screen.value)
                return
            self._update(busy=False)
            handler(result)

        self._run_task(_guarded, _done)

    def _commit(self, record: SessionRecord) -> None:
        self._store.save(record)

    def _fail(self, message: str) -> None:
        """Stay on the current screen and show *message* inline."""
        self._update(error=message, notice="", busy=False)

    def _update(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)
        if self._on_update is not None:
            self._on_update(self._state)

    def _enter(self, screen: Screen, **changes: Any) -> None:
        self._generation += 1
        previous = self._state.screen
        fields = {
            "record": self._state.record,
            "error": "",
            "notice": "",
            "busy": False,
            "pending_email": "",
        }
        fields.update(changes)
        self._state = ScreenState(screen=screen, **fields)
        logger.info("Screen: %s -> %s", previous.value, screen.value)
        if self._on_transition is not None:
            self._on_transition(screen)
        if self._on_update is not None:
            self._on_update(self._state)
