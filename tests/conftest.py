from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from skilledge.api import ApiResult
from skilledge.session import JsonFileStorage, SessionStore


def make_user(
    email: str = "ana@example.com",
    plan: str = "pro",
    status: str = "active",
    minutes: float = 60,
) -> dict[str, Any]:
    """A ``user`` object shaped like the backend's."""
    return {
        "email": email,
        "firstName": "Ana",
        "subscription": {"plan": plan, "status": status, "minutesLeft": minutes},
    }


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, hours: float) -> None:
        self.now += hours * 3600.0


class SpyStore(SessionStore):
    """SessionStore that counts writes."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.saves = 0

    def save(self, record):  # noqa: ANN001
        self.saves += 1
        return super().save(record)


class FakeClient:
    """Stand-in for AuthClient with canned results and a call log."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple]] = []
        self.token: str | None = None
        self.login_result = ApiResult.ok(message="ok", token="tok-1", user=make_user())
        self.register_result = ApiResult.ok(
            message="Registered", requires_verification=True, email="a@b.com", verification_code=None
        )
        self.verify_result = ApiResult.ok(message="ok", token="tok-2", user=make_user(email="a@b.com"))
        self.transcribe_result = ApiResult.ok(text="Tell me about yourself")
        self.reply_result = ApiResult.ok(reply="Well, I've been building backends for years.", usage=None)
        self.usage_result = ApiResult.ok(user=make_user(minutes=59))

    def _log(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))

    def called(self, name: str) -> list[tuple]:
        return [args for call, args in self.calls if call == name]

    def restore(self, token: str) -> None:
        self._log("restore", token)
        self.token = token or None

    def logout(self) -> None:
        self._log("logout")
        self.token = None

    def login(self, email: str, password: str) -> ApiResult:
        self._log("login", email, password)
        if self.login_result.success:
            self.token = self.login_result.data.get("token")
        return self.login_result

    def register(self, first_name: str, last_name: str, email: str, password: str) -> ApiResult:
        self._log("register", first_name, last_name, email, password)
        return self.register_result

    def verify_email(self, email: str, code: str) -> ApiResult:
        self._log("verify_email", email, code)
        if self.verify_result.success:
            self.token = self.verify_result.data.get("token")
        return self.verify_result

    def transcribe(self, wav: bytes, language: str = "") -> ApiResult:
        self._log("transcribe", len(wav), language)
        return self.transcribe_result

    def generate_reply(self, transcript, preferences, history, email: str = "") -> ApiResult:  # noqa: ANN001
        self._log("generate_reply", transcript, preferences, list(history), email)
        return self.reply_result

    def report_usage(self, seconds: float) -> ApiResult:
        self._log("report_usage", seconds)
        return self.usage_result


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage(tmp_path: Path) -> JsonFileStorage:
    return JsonFileStorage(tmp_path / "data")


@pytest.fixture
def store(storage: JsonFileStorage, clock: FakeClock) -> SpyStore:
    return SpyStore(storage, clock=clock)


@pytest.fixture
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    monkeypatch.setenv("SKILLEDGE_HOME", str(home))
    return home
