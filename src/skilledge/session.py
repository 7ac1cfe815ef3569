"""Local session record: the single persisted auth/preferences blob.

Only authenticated sessions are ever written.  Reads are all-or-nothing:
``SessionStore.load()`` returns a complete, fresh record or ``None``, and any
record it refuses (missing, corrupt, incomplete, expired) is purged on the
spot so the next read starts clean.
"""

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Callable

logger = logging.getLogger(__name__)

SESSION_KEY = "skilledge_session"

ENTITLED_TIERS = frozenset({"pro", "pro+"})
ACTIVE_STATUS = "active"

DEFAULT_LANGUAGE = "en"
DEFAULT_INTERVIEW_TYPE = "general"
INTERVIEW_TYPES = ("technical", "behavioral", "general")


# ---------------------------------------------------------------------------
# Record schema
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Account:
    """Last server-reported account state (a cache, not the source of truth)."""

    email: str
    subscription_tier: str = "free"
    subscription_status: str = ""
    minutes_remaining: float = 0.0

    @classmethod
    def from_user(cls, user: dict[str, Any]) -> Account:
        """Build from the backend's ``user`` object.

        Raises:
            ValueError: If *user* or its ``subscription`` is not an object, or
                ``minutesLeft`` is not a number.
        """
        if not isinstance(user, dict):
            raise ValueError(f"user is not an object: {type(user).__name__}")
        subscription = user.get("subscription") or {}
        if not isinstance(subscription, dict):
            raise ValueError(f"subscription is not an object: {type(subscription).__name__}")
        minutes = subscription.get("minutesLeft") or 0
        if isinstance(minutes, bool) or not isinstance(minutes, (int, float)):
            raise ValueError(f"minutesLeft is not a number: {minutes!r}")
        return cls(
            email=str(user.get("email") or ""),
            subscription_tier=str(subscription.get("plan") or "free"),
            subscription_status=str(subscription.get("status") or ""),
            minutes_remaining=float(minutes),
        )

    @property
    def is_entitled(self) -> bool:
        return (
            self.subscription_tier.lower() in ENTITLED_TIERS
            and self.subscription_status == ACTIVE_STATUS
        )


@dataclass(frozen=True)
class Preferences:
    display_name: str = ""
    session_purpose: str = ""
    context_notes: str = ""
    language: str = DEFAULT_LANGUAGE
    interview_type: str = DEFAULT_INTERVIEW_TYPE

    REQUIRED = ("display_name", "session_purpose", "context_notes")

    def missing_fields(self) -> list[str]:
        """Names of required fields that are empty (after stripping)."""
        return [name for name in self.REQUIRED if not getattr(self, name).strip()]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()


@dataclass(frozen=True)
class SessionRecord:
    authenticated: bool
    account: Account | None
    preferences: Preferences = field(default_factory=Preferences)
    preferences_complete: bool = False
    token: str = ""
    saved_at: float = 0.0

    def is_valid(self) -> bool:
        """Check the record-level invariants."""
        if self.authenticated and self.account is None:
            return False
        if self.preferences_complete and not self.preferences.is_complete:
            return False
        return True

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionRecord:
        """Strict parse: every field must be present with the right type.

        Raises:
            ValueError: If *data* is not a complete record.
        """
        if not isinstance(data, dict):
            raise ValueError("session record is not an object")
        try:
            account_data = data["account"]
            prefs_data = data["preferences"]
            account = None
            if account_data is not None:
                account = Account(
                    email=_str(account_data["email"]),
                    subscription_tier=_str(account_data["subscription_tier"]),
                    subscription_status=_str(account_data["subscription_status"]),
                    minutes_remaining=float(account_data["minutes_remaining"]),
                )
            preferences = Preferences(
                **{name: _str(prefs_data[name]) for name in _PREFERENCE_FIELDS}
            )
            return cls(
                authenticated=_bool(data["authenticated"]),
                account=account,
                preferences=preferences,
                preferences_complete=_bool(data["preferences_complete"]),
                token=_str(data["token"]),
                saved_at=float(data["saved_at"]),
            )
        except (KeyError, TypeError) as exc:
            raise ValueError(f"incomplete session record: {exc}") from exc


_PREFERENCE_FIELDS = (
    "display_name",
    "session_purpose",
    "context_notes",
    "language",
    "interview_type",
)


def _str(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected str, got {type(value).__name__}")
    return value


def _bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"expected bool, got {type(value).__name__}")
    return value


def authenticated_record(account: Account, token: str = "") -> SessionRecord:
    """Fresh record for a successful login/verification."""
    return SessionRecord(
        authenticated=account.is_entitled,
        account=account,
        token=token,
    )


# ---------------------------------------------------------------------------
# Key-value storage
# ---------------------------------------------------------------------------


class JsonFileStorage:
    """Tiny key-value store: one ``<key>.json`` file per key in *directory*."""

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        """Write *value* atomically (temp file + rename)."""
        self._directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, path)

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass


# ---------------------------------------------------------------------------
# Session store
# ---------------------------------------------------------------------------


class SessionStore:
    """Durable single-record session cache with lazy expiry."""

    def __init__(
        self,
        storage: JsonFileStorage,
        max_age_hours: float = 24.0,
        clock: Callable[[], float] = time.time,
        key: str = SESSION_KEY,
    ) -> None:
        self._storage = storage
        self._max_age = max_age_hours * 3600.0
        self._clock = clock
        self._key = key

    def save(self, record: SessionRecord) -> bool:
        """Persist *record* stamped with the current time.

        Unauthenticated records are never written.  Returns ``True`` if the
        record reached storage.
        """
        if not record.authenticated:
            logger.debug("Not saving unauthenticated session")
            return False
        if not record.is_valid():
            logger.warning("Refusing to save inconsistent session record")
            return False

        stamped = replace(record, saved_at=self._clock())
        try:
            self._storage.set(self._key, json.dumps(stamped.to_dict()))
        except OSError as exc:
            logger.warning("Failed to save session: %s", exc)
            return False
        logger.info("Session saved")
        return True

    def load(self) -> SessionRecord | None:
        """Return the stored record if it is complete and fresh, else ``None``.

        Anything rejected here is deleted from storage.
        """
        try:
            raw = self._storage.get(self._key)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Session storage unreadable: %s", exc)
            self._purge()
            return None

        if raw is None:
            return None

        try:
            record = SessionRecord.from_dict(json.loads(raw))
        except ValueError as exc:  # JSONDecodeError is a ValueError
            logger.warning("Discarding malformed session: %s", exc)
            self._purge()
            return None

        if not record.authenticated or not record.is_valid():
            logger.warning("Discarding inconsistent session record")
            self._purge()
            return None

        age = self._clock() - record.saved_at
        if not age < self._max_age:  # also rejects a NaN timestamp
            logger.info("Session expired (%.1f h old)", age / 3600.0)
            self._purge()
            return None

        logger.info("Session restored for %s", record.account.email if record.account else "?")
        return record

    def clear(self) -> None:
        """Delete the stored record (idempotent)."""
        self._purge()
        logger.info("Session cleared")

    def _purge(self) -> None:
        try:
            self._storage.delete(self._key)
        except OSError as exc:
            logger.warning("Failed to delete session: %s", exc)
