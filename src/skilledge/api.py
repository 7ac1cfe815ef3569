"""HTTP client for the SkillEdge backend (auth, usage, chat, transcription).

Every public call returns an :class:`ApiResult`.  Transport errors, HTTP
errors and malformed bodies are logged here and handed back as data; nothing
raises past this module.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from skilledge.config import ApiConfig
from skilledge.prompts import build_messages, build_system_prompt
from skilledge.session import Preferences

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiResult:
    success: bool
    data: dict[str, Any] = field(default_factory=dict)
    error: str = ""

    @classmethod
    def ok(cls, **data: Any) -> ApiResult:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> ApiResult:
        return cls(success=False, error=error)


def _mask(token: str | None) -> str:
    return "***" if token else "(none)"


class AuthClient:
    """Synchronous client for the backend's REST endpoints.

    Holds the bearer token returned by login/verification; it is attached to
    the calls that need it (profile, usage).
    """

    def __init__(
        self,
        config: ApiConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config
        self._base_url = config.base_url.rstrip("/")
        self._token: str | None = None
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=httpx.Timeout(
                connect=config.connect_timeout,
                read=config.read_timeout,
                write=config.connect_timeout,
                pool=config.connect_timeout,
            ),
            transport=transport,
        )
        logger.info("API client ready (%s)", self._base_url)

    # ------------------------------------------------------------------
    # Token handling
    # ------------------------------------------------------------------

    @property
    def token(self) -> str | None:
        return self._token

    def restore(self, token: str) -> None:
        """Reuse a token from a restored session."""
        self._token = token or None
        logger.debug("Token restored: %s", _mask(self._token))

    def logout(self) -> None:
        self._token = None

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def test_connection(self) -> ApiResult:
        return self._request("GET", "/health", action="Connection test")

    def register(self, first_name: str, last_name: str, email: str, password: str) -> ApiResult:
        result = self._request(
            "POST",
            "/auth/register",
            action="Registration",
            json={
                "firstName": first_name,
                "lastName": last_name,
                "email": email,
                "password": password,
            },
        )
        if not result.success:
            return result
        body = result.data
        return ApiResult.ok(
            message=body.get("message", ""),
            requires_verification=bool(body.get("requiresVerification", True)),
            email=body.get("email") or email,
            verification_code=body.get("verificationCode"),
        )

    def verify_email(self, email: str, code: str) -> ApiResult:
        result = self._request(
            "POST",
            "/verification/verify-email",
            action="Email verification",
            json={"email": email, "code": code},
        )
        return self._accept_token(result, "Verification failed")

    def login(self, email: str, password: str) -> ApiResult:
        logger.info("Logging in as %s", email)
        result = self._request(
            "POST",
            "/auth/login",
            action="Login",
            json={"email": email, "password": password},
        )
        return self._accept_token(result, "Login failed")

    def fetch_profile(self) -> ApiResult:
        if not self._token:
            return ApiResult.fail("No authentication token")
        result = self._request("GET", "/auth/me", action="Profile fetch", auth=True)
        return self._expect_user(result, "Profile fetch failed")

    def report_usage(self, seconds: float) -> ApiResult:
        """Report *seconds* of recorded audio; the backend meters minutes."""
        if not self._token:
            return ApiResult.fail("No authentication token")
        result = self._request(
            "POST",
            "/auth/update-usage",
            action="Usage update",
            auth=True,
            json={"minutesUsed": seconds / 60.0},
        )
        return self._expect_user(result, "Usage update failed")

    def generate_reply(
        self,
        transcript: str,
        preferences: Preferences,
        history: list[dict[str, str]],
        email: str = "",
    ) -> ApiResult:
        """Ask the chat endpoint for the next spoken reply to *transcript*."""
        system = build_system_prompt(
            user_name=preferences.display_name,
            email=email,
            meeting_purpose=preferences.session_purpose,
            general_info=preferences.context_notes,
            language=preferences.language,
            interview_type=preferences.interview_type,
        )
        payload = {
            "model": self._config.chat_model,
            "messages": build_messages(system, history, transcript),
            "max_tokens": self._config.max_tokens,
            "temperature": self._config.temperature,
        }
        result = self._request("POST", "/ai/chat", action="AI response", json=payload)
        if not result.success:
            return result
        try:
            reply = result.data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            logger.error("Chat response without choices: %s", str(result.data)[:500])
            return ApiResult.fail("No AI response generated")
        return ApiResult.ok(reply=reply, usage=result.data.get("usage"))

    def transcribe(self, wav: bytes, language: str = "") -> ApiResult:
        """Transcribe a WAV clip.  Times out after ``transcribe_timeout``."""
        data = {"model": self._config.transcribe_model}
        if language:
            data["language"] = language
        result = self._request(
            "POST",
            "/ai/transcribe",
            action="Transcription",
            files={"file": ("audio.wav", wav, "audio/wav")},
            data=data,
            timeout=self._config.transcribe_timeout,
        )
        if not result.success:
            return result
        text = str(result.data.get("text") or "").strip()
        logger.info("Transcription: %r", text)
        return ApiResult.ok(text=text)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _accept_token(self, result: ApiResult, fallback: str) -> ApiResult:
        if not result.success:
            return result
        token = result.data.get("token")
        user = result.data.get("user")
        if not token or not isinstance(user, dict):
            return ApiResult.fail(result.data.get("message") or fallback)
        self._token = token
        return ApiResult.ok(message=result.data.get("message", ""), token=token, user=user)

    @staticmethod
    def _expect_user(result: ApiResult, fallback: str) -> ApiResult:
        if not result.success:
            return result
        user = result.data.get("user")
        if not isinstance(user, dict):
            return ApiResult.fail(result.data.get("message") or fallback)
        return ApiResult.ok(user=user)

    def _request(
        self,
        method: str,
        path: str,
        *,
        action: str,
        auth: bool = False,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> ApiResult:
        """Perform a request and return the JSON body as ``ApiResult.data``."""
        headers = {}
        if auth and self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        if timeout is not None:
            kwargs["timeout"] = timeout

        response = None
        try:
            response = self._client.request(method, path, headers=headers, **kwargs)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            message = _server_message(exc.response)
            logger.error(
                "%s HTTP error %s: %s",
                action,
                exc.response.status_code,
                exc.response.text[:500],
            )
            return ApiResult.fail(message or f"{action} failed ({exc.response.status_code})")
        except httpx.TimeoutException as exc:
            logger.error("%s timed out: %s", action, exc)
            return ApiResult.fail(f"{action} timed out")
        except httpx.HTTPError as exc:
            logger.error("%s request failed: %s", action, exc)
            return ApiResult.fail(str(exc) or f"{action} failed")
        except ValueError as exc:
            # json.JSONDecodeError (empty / invalid body)
            body_preview = response.text[:500] if response is not None and response.text else "(empty)"
            logger.error("Malformed %s response (body: %s): %s", action, body_preview, exc)
            return ApiResult.fail(f"{action} failed")

        if not isinstance(body, dict):
            logger.error("Unexpected %s response type: %s", action, type(body).__name__)
            return ApiResult.fail(f"{action} failed")
        return ApiResult(success=True, data=body)


def _server_message(response: httpx.Response) -> str:
    """Extract the backend's human-readable ``message`` field, if any."""
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict):
        return str(body.get("message") or "")
    return ""
