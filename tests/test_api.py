import json

import httpx
import pytest
from conftest import make_user

from skilledge.api import AuthClient
from skilledge.config import ApiConfig
from skilledge.session import Preferences


class Backend:
    """httpx.MockTransport handler with per-path canned responses."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], object] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, response) -> None:
        self.routes[(method, path)] = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "Not found"})
        if callable(route):
            return route(request)
        return route

    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def backend() -> Backend:
    return Backend()


@pytest.fixture
def api(backend: Backend) -> AuthClient:
    client = AuthClient(ApiConfig(base_url="https://api.test/api"), transport=httpx.MockTransport(backend))
    yield client
    client.close()


def test_login_stores_token(api, backend) -> None:
    backend.add(
        "POST", "/api/auth/login",
        httpx.Response(200, json={"message": "Login successful", "token": "jwt-1", "user": make_user()}),
    )

    result = api.login("ana@example.com", "secret1")

    assert result.success
    assert result.data["token"] == "jwt-1"
    assert result.data["user"]["email"] == "ana@example.com"
    assert api.token == "jwt-1"
    assert backend.last_json() == {"email": "ana@example.com", "password": "secret1"}


def test_login_error_uses_server_message(api, backend) -> None:
    backend.add("POST", "/api/auth/login", httpx.Response(401, json={"message": "Invalid credentials"}))

    result = api.login("ana@example.com", "nope")

    assert not result.success
    assert result.error == "Invalid credentials"
    assert api.token is None


def test_login_without_token_fails(api, backend) -> None:
    backend.add("POST", "/api/auth/login", httpx.Response(200, json={"message": "Check your inbox"}))
    result = api.login("ana@example.com", "secret1")
    assert not result.success
    assert result.error == "Check your inbox"


def test_http_error_without_body_has_generic_message(api, backend) -> None:
    backend.add("POST", "/api/auth/login", httpx.Response(502, text="Bad gateway"))
    result = api.login("ana@example.com", "secret1")
    assert result.error == "Login failed (502)"


def test_malformed_body_is_a_failure(api, backend) -> None:
    backend.add("GET", "/api/health", httpx.Response(200, text="<html>"))
    result = api.test_connection()
    assert not result.success


def test_timeout_is_a_failure(api, backend) -> None:
    def slow(request):
        raise httpx.ReadTimeout("timed out", request=request)

    backend.add("POST", "/api/auth/login", slow)
    result = api.login("ana@example.com", "secret1")
    assert not result.success
    assert result.error == "Login timed out"


def test_connection_error_is_a_failure(api, backend) -> None:
    def down(request):
        raise httpx.ConnectError("connection refused", request=request)

    backend.add("GET", "/api/health", down)
    result = api.test_connection()
    assert not result.success
    assert "connection refused" in result.error


def test_register_reports_verification(api, backend) -> None:
    backend.add(
        "POST", "/api/auth/register",
        httpx.Response(
            201,
            json={"message": "Registered", "requiresVerification": True, "email": "a@b.com", "verificationCode": "4321"},
        ),
    )

    result = api.register("A", "B", "a@b.com", "secret1")

    assert result.success
    assert result.data["requires_verification"] is True
    assert result.data["email"] == "a@b.com"
    assert result.data["verification_code"] == "4321"
    assert backend.last_json() == {"firstName": "A", "lastName": "B", "email": "a@b.com", "password": "secret1"}


def test_verify_email_stores_token(api, backend) -> None:
    backend.add(
        "POST", "/api/verification/verify-email",
        httpx.Response(200, json={"token": "jwt-2", "user": make_user(plan="pro+")}),
    )
    result = api.verify_email("a@b.com", "1234")
    assert result.success
    assert api.token == "jwt-2"
    assert backend.last_json() == {"email": "a@b.com", "code": "1234"}


def test_profile_and_usage_need_a_token(api, backend) -> None:
    assert not api.fetch_profile().success
    assert not api.report_usage(60).success
    assert backend.requests == []


def test_usage_is_sent_in_minutes_with_bearer(api, backend) -> None:
    backend.add("POST", "/api/auth/update-usage", httpx.Response(200, json={"user": make_user(minutes=58.5)}))
    api.restore("jwt-3")

    result = api.report_usage(90)

    assert result.success
    assert result.data["user"]["subscription"]["minutesLeft"] == 58.5
    request = backend.requests[-1]
    assert request.headers["Authorization"] == "Bearer jwt-3"
    assert backend.last_json() == {"minutesUsed": 1.5}


def test_fetch_profile(api, backend) -> None:
    backend.add("GET", "/api/auth/me", httpx.Response(200, json={"user": make_user()}))
    api.restore("jwt-4")
    assert api.fetch_profile().data["user"]["email"] == "ana@example.com"


def test_logout_drops_token(api) -> None:
    api.restore("jwt")
    api.logout()
    assert api.token is None


def test_generate_reply_payload_and_parsing(api, backend) -> None:
    backend.add(
        "POST", "/api/ai/chat",
        httpx.Response(
            200,
            json={"choices": [{"message": {"content": "Honestly, I love it."}}], "usage": {"total_tokens": 42}},
        ),
    )
    preferences = Preferences(
        display_name="Ana", session_purpose="Data role", context_notes="SQL", language="fr", interview_type="behavioral"
    )
    history = [{"role": "user", "content": "Hi"}, {"role": "assistant", "content": "Hello"}]

    result = api.generate_reply("Why this job?", preferences, history, email="ana@example.com")

    assert result.success
    assert result.data["reply"] == "Honestly, I love it."
    assert result.data["usage"] == {"total_tokens": 42}
    payload = backend.last_json()
    assert payload["model"] == "gpt-3.5-turbo"
    assert payload["max_tokens"] == 300
    assert payload["temperature"] == 0.9
    messages = payload["messages"]
    assert messages[0]["role"] == "system"
    assert "French" in messages[0]["content"]
    assert "STAR method" in messages[0]["content"]
    assert messages[1:3] == history
    assert messages[-1] == {"role": "user", "content": "Why this job?"}


def test_generate_reply_without_choices(api, backend) -> None:
    backend.add("POST", "/api/ai/chat", httpx.Response(200, json={"choices": []}))
    result = api.generate_reply("Q", Preferences(), [])
    assert not result.success
    assert result.error == "No AI response generated"


def test_transcribe_uploads_wav(api, backend) -> None:
    backend.add("POST", "/api/ai/transcribe", httpx.Response(200, json={"text": "  What is a closure? "}))

    result = api.transcribe(b"RIFFdata", language="en")

    assert result.success
    assert result.data["text"] == "What is a closure?"
    body = backend.requests[-1].content
    assert b'name="file"' in body
    assert b"RIFFdata" in body
    assert b"whisper-1" in body
    assert b'name="language"' in body
