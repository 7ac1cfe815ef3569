from dataclasses import replace

import pytest
from conftest import FakeClient, make_user

from skilledge.api import ApiResult
from skilledge.i18n import t
from skilledge.screens import Screen, ScreenController
from skilledge.session import Account, Preferences, authenticated_record


class Recorder:
    """Collects controller notifications."""

    def __init__(self) -> None:
        self.transitions: list[Screen] = []
        self.updates = []

    def on_transition(self, screen: Screen) -> None:
        self.transitions.append(screen)

    def on_update(self, state) -> None:
        self.updates.append(state)


class DeferredRunner:
    """Holds tasks until ``flush`` so in-flight behaviour can be observed."""

    def __init__(self) -> None:
        self.pending = []

    def __call__(self, work, on_done) -> None:
        self.pending.append((work, on_done))

    def flush(self) -> None:
        pending, self.pending = self.pending, []
        for work, on_done in pending:
            on_done(work())


class ManualScheduler:
    def __init__(self) -> None:
        self.callbacks = []

    def __call__(self, delay_ms, callback) -> None:
        self.callbacks.append((delay_ms, callback))

    def fire(self) -> None:
        callbacks, self.callbacks = self.callbacks, []
        for _, callback in callbacks:
            callback()


@pytest.fixture
def events() -> Recorder:
    return Recorder()


@pytest.fixture
def controller(store, client, events) -> ScreenController:
    return ScreenController(store, client, on_transition=events.on_transition, on_update=events.on_update)


def _saved_complete(store, interview_type: str = "general") -> None:
    record = authenticated_record(Account.from_user(make_user()), token="saved-token")
    record = replace(
        record,
        preferences=Preferences(
            display_name="Ana",
            session_purpose="Backend role",
            context_notes="Python",
            interview_type=interview_type,
        ),
        preferences_complete=True,
    )
    assert store.save(record)


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------


def test_fresh_install_starts_on_login(controller, events) -> None:
    assert controller.start() is Screen.LOGIN
    assert controller.record is None
    assert events.transitions == [Screen.LOGIN]


def test_complete_session_goes_straight_to_main_without_network(store, client, controller) -> None:
    _saved_complete(store)

    assert controller.start() is Screen.MAIN
    assert [name for name, _ in client.calls] == ["restore"]
    assert client.token == "saved-token"


def test_incomplete_session_resumes_on_preferences(store, controller) -> None:
    store.save(authenticated_record(Account.from_user(make_user()), token="t"))
    assert controller.start() is Screen.PREFERENCES


def test_expired_session_starts_on_login(store, clock, controller) -> None:
    _saved_complete(store)
    clock.advance(25)
    assert controller.start() is Screen.LOGIN
    assert store.load() is None


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


def test_login_with_free_tier_stays_on_login_and_saves_nothing(store, client, controller) -> None:
    controller.start()
    client.login_result = ApiResult.ok(message="ok", token="tok", user=make_user(plan="free"))

    controller.submit_login("ana@example.com", "secret1")

    assert controller.screen is Screen.LOGIN
    assert controller.state.error == t("error.not_entitled")
    assert store.saves == 0
    assert store.load() is None
    assert client.token is None


def test_login_with_inactive_pro_is_not_entitled(store, client, controller) -> None:
    controller.start()
    client.login_result = ApiResult.ok(message="ok", token="tok", user=make_user(status="past_due"))
    controller.submit_login("ana@example.com", "secret1")
    assert controller.screen is Screen.LOGIN
    assert store.saves == 0


def test_login_with_pro_enters_preferences_and_persists(store, controller) -> None:
    controller.start()
    controller.submit_login("ana@example.com", "secret1")

    assert controller.screen is Screen.PREFERENCES
    loaded = store.load()
    assert loaded is not None
    assert loaded.authenticated is True
    assert loaded.token == "tok-1"
    assert loaded.preferences_complete is False


def test_login_failure_shows_server_message(store, client, controller) -> None:
    controller.start()
    client.login_result = ApiResult.fail("Invalid credentials")

    controller.submit_login("ana@example.com", "wrong")

    assert controller.screen is Screen.LOGIN
    assert controller.state.error == "Invalid credentials"
    assert controller.state.busy is False
    assert store.saves == 0


def test_login_validation_happens_before_any_call(client, controller) -> None:
    controller.start()
    controller.submit_login("  ", "secret1")
    assert controller.state.error == t("error.login_missing")
    assert client.called("login") == []


def test_unexpected_exception_becomes_inline_error(client, controller) -> None:
    controller.start()

    def boom(email, password):
        raise RuntimeError("socket exploded")

    client.login = boom
    controller.submit_login("ana@example.com", "secret1")

    assert controller.screen is Screen.LOGIN
    assert controller.state.error == t("error.unexpected")


def test_malformed_account_payload_becomes_inline_error(store, client, events) -> None:
    runner = DeferredRunner()
    controller = ScreenController(store, client, on_update=events.on_update, run_task=runner)
    controller.start()
    client.login_result = ApiResult.ok(
        message="ok", token="tok-1", user={"email": "ana@example.com", "subscription": "pro"}
    )

    controller.submit_login("ana@example.com", "secret1")
    assert events.updates[-1].busy is True
    runner.flush()

    assert controller.screen is Screen.LOGIN
    assert controller.state.error == t("error.unexpected")
    assert events.updates[-1].busy is False
    assert events.updates[-1].error == t("error.unexpected")
    assert controller.record is None
    assert store.saves == 0
    assert client.token is None


def test_malformed_account_on_verification_stays(store, client, controller) -> None:
    client.verify_result = ApiResult.ok(
        message="ok",
        token="tok-2",
        user={"email": "a@b.com", "subscription": {"plan": "pro", "status": "active", "minutesLeft": "n/a"}},
    )
    controller.start()
    controller.show_register()
    controller.submit_register("A", "B", "a@b.com", "secret1")
    controller.submit_verification("a@b.com", "1234")

    assert controller.screen is Screen.VERIFICATION
    assert controller.state.error == t("error.unexpected")
    assert controller.state.busy is False
    assert store.saves == 0


# ---------------------------------------------------------------------------
# In-flight requests
# ---------------------------------------------------------------------------


def test_duplicate_submit_is_ignored_while_busy(store, client, events) -> None:
    runner = DeferredRunner()
    controller = ScreenController(store, client, on_update=events.on_update, run_task=runner)
    controller.start()

    controller.submit_login("ana@example.com", "secret1")
    assert controller.state.busy is True
    controller.submit_login("ana@example.com", "secret1")
    assert len(runner.pending) == 1

    runner.flush()
    assert controller.screen is Screen.PREFERENCES
    assert controller.state.busy is False


def test_stale_response_does_not_override_newer_screen(store, client) -> None:
    runner = DeferredRunner()
    controller = ScreenController(store, client, run_task=runner)
    controller.start()

    controller.submit_login("ana@example.com", "secret1")
    controller.show_register()
    runner.flush()

    assert controller.screen is Screen.REGISTER
    assert controller.record is None
    assert store.saves == 0


# ---------------------------------------------------------------------------
# Registration and verification
# ---------------------------------------------------------------------------


def test_register_validation(client, controller) -> None:
    controller.start()
    controller.show_register()

    controller.submit_register("A", "", "a@b.com", "secret1")
    assert controller.state.error == t("error.fields_required")

    controller.submit_register("A", "B", "a@b.com", "12345")
    assert controller.state.error == t("error.password_short", count=6)
    assert client.called("register") == []


def test_register_success_enters_verification_with_email(client, controller) -> None:
    controller.start()
    controller.show_register()
    controller.submit_register("A", "B", "a@b.com", "secret1")

    assert controller.screen is Screen.VERIFICATION
    assert controller.state.pending_email == "a@b.com"
    assert controller.state.notice == ""


def test_register_shows_development_code(client, controller) -> None:
    client.register_result = ApiResult.ok(
        message="ok", requires_verification=True, email="a@b.com", verification_code="4321"
    )
    controller.start()
    controller.show_register()
    controller.submit_register("A", "B", "a@b.com", "secret1")
    assert "4321" in controller.state.notice


def test_register_failure_stays(client, controller) -> None:
    client.register_result = ApiResult.fail("Email already registered")
    controller.start()
    controller.show_register()
    controller.submit_register("A", "B", "a@b.com", "secret1")
    assert controller.screen is Screen.REGISTER
    assert controller.state.error == "Email already registered"


def test_verification_without_entitlement_goes_to_upgrade(store, client, controller) -> None:
    client.verify_result = ApiResult.ok(message="ok", token="tok", user=make_user(plan="free"))
    controller.start()
    controller.show_register()
    controller.submit_register("A", "B", "a@b.com", "secret1")
    controller.submit_verification("a@b.com", "1234")

    assert controller.screen is Screen.UPGRADE_REQUIRED
    assert controller.record is None
    assert store.load() is None
    assert client.token is None


def test_verification_failure_stays(client, controller) -> None:
    client.verify_result = ApiResult.fail("Invalid or expired verification code")
    controller.start()
    controller.show_register()
    controller.submit_register("A", "B", "a@b.com", "secret1")
    controller.submit_verification("a@b.com", "0000")
    assert controller.screen is Screen.VERIFICATION
    assert controller.state.error == "Invalid or expired verification code"


def test_resend_only_shows_notice(client, controller) -> None:
    controller.start()
    controller.show_register()
    controller.submit_register("A", "B", "a@b.com", "secret1")
    calls = len(client.calls)

    controller.resend_verification("a@b.com")

    assert controller.screen is Screen.VERIFICATION
    assert controller.state.notice == t("notice.resend_unavailable")
    assert len(client.calls) == calls


def test_actions_for_other_screens_are_ignored(client, controller) -> None:
    controller.start()
    controller.submit_verification("a@b.com", "1234")
    controller.select_interview_type("technical")
    assert controller.screen is Screen.LOGIN
    assert client.called("verify_email") == []


# ---------------------------------------------------------------------------
# Preferences and interview type
# ---------------------------------------------------------------------------


def test_preferences_require_every_text_field(store, controller) -> None:
    controller.start()
    controller.submit_login("ana@example.com", "secret1")
    saves = store.saves

    controller.submit_preferences("Ana", "", "Python", "en")

    assert controller.screen is Screen.PREFERENCES
    assert controller.state.error == t("error.preferences_required")
    assert store.saves == saves
    assert store.load().preferences_complete is False


def test_unknown_interview_type_is_rejected(controller) -> None:
    controller.start()
    controller.submit_login("ana@example.com", "secret1")
    controller.submit_preferences("Ana", "Backend role", "Python", "en")
    controller.select_interview_type("karaoke")
    assert controller.screen is Screen.INTERVIEW_TYPE
    assert controller.state.error == t("error.interview_type")


def test_interview_type_waits_for_the_delay(store, client) -> None:
    scheduler = ManualScheduler()
    controller = ScreenController(store, client, schedule=scheduler, transition_delay_ms=500)
    controller.start()
    controller.submit_login("ana@example.com", "secret1")
    controller.submit_preferences("Ana", "Backend role", "Python", "en")

    controller.select_interview_type("behavioral")
    assert controller.screen is Screen.INTERVIEW_TYPE
    assert controller.record.preferences.interview_type == "behavioral"
    assert scheduler.callbacks[0][0] == 500

    scheduler.fire()
    assert controller.screen is Screen.MAIN


def test_pending_main_transition_is_cancelled_by_logout(store, client) -> None:
    scheduler = ManualScheduler()
    controller = ScreenController(store, client, schedule=scheduler)
    controller.start()
    controller.submit_login("ana@example.com", "secret1")
    controller.submit_preferences("Ana", "Backend role", "Python", "en")
    controller.select_interview_type("general")

    controller.logout()
    scheduler.fire()

    assert controller.screen is Screen.LOGIN


# ---------------------------------------------------------------------------
# Main screen
# ---------------------------------------------------------------------------


def test_logout_purges_regardless_of_preferences(store, client, controller) -> None:
    _saved_complete(store)
    controller.start()

    controller.logout()

    assert controller.screen is Screen.LOGIN
    assert controller.record is None
    assert store.load() is None
    assert client.token is None


def test_logout_from_incomplete_session(store, controller) -> None:
    controller.start()
    controller.submit_login("ana@example.com", "secret1")
    controller.logout()
    assert controller.screen is Screen.LOGIN
    assert store.load() is None


def test_update_account_refreshes_cached_minutes(store, controller) -> None:
    _saved_complete(store)
    controller.start()

    controller.update_account(Account.from_user(make_user(minutes=3)))

    assert controller.record.account.minutes_remaining == 3
    assert store.load().account.minutes_remaining == 3


def test_every_transition_notifies_host(controller, events) -> None:
    controller.start()
    controller.submit_login("ana@example.com", "secret1")
    controller.submit_preferences("Ana", "Backend role", "Python", "en")
    controller.select_interview_type("technical")
    assert events.transitions == [Screen.LOGIN, Screen.PREFERENCES, Screen.INTERVIEW_TYPE, Screen.MAIN]
    assert events.updates[-1].screen is Screen.MAIN


def test_navigation_links(controller) -> None:
    controller.start()
    controller.show_register()
    assert controller.screen is Screen.REGISTER
    controller.show_login()
    assert controller.screen is Screen.LOGIN


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


def test_fresh_install_to_main_scenario(store) -> None:
    client = FakeClient()
    client.verify_result = ApiResult.ok(message="ok", token="tok-v", user=make_user(email="a@b.com", plan="pro+"))
    controller = ScreenController(store, client)

    assert store.load() is None
    assert controller.start() is Screen.LOGIN

    controller.show_register()
    controller.submit_register(first_name="A", last_name="B", email="a@b.com", password="secret1")
    assert controller.screen is Screen.VERIFICATION

    controller.submit_verification(controller.state.pending_email, "1234")
    assert controller.screen is Screen.PREFERENCES

    controller.submit_preferences("A B", "Senior backend role", "Ten years of Go and Python", "en")
    assert controller.screen is Screen.INTERVIEW_TYPE

    controller.select_interview_type("technical")
    assert controller.screen is Screen.MAIN

    loaded = store.load()
    assert loaded is not None
    assert loaded.authenticated is True
    assert loaded.preferences_complete is True
    assert loaded.preferences.interview_type == "technical"
    assert loaded.account.subscription_tier == "pro+"

    # A restart lands directly on the main screen.
    restarted = ScreenController(store, FakeClient())
    assert restarted.start() is Screen.MAIN
