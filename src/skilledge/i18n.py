"""Internationalization (i18n): built-in English strings with JSON overrides.

Language packs live in ``locales/<lang>.json`` next to ``src/`` and look like
``{"meta": {"name": "Italiano"}, "translations": {"login.title": "..."}}``.
Keys missing from a pack fall back to the built-in English table.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_FALLBACK: dict[str, str] = {
    "app.name": "SkillEdge",
    # Tray
    "tray.status.ready": "Ready",
    "tray.status.recording": "Recording...",
    "tray.status.processing": "Processing...",
    "tray.status.error": "Error",
    "tray.show": "Show SkillEdge",
    "tray.hide": "Hide SkillEdge",
    "tray.quit": "Quit",
    # Login / register / verification
    "login.title": "Sign in",
    "login.email": "Email",
    "login.password": "Password",
    "login.submit": "Sign in",
    "login.to_register": "Create an account",
    "register.title": "Create account",
    "register.first_name": "First name",
    "register.last_name": "Last name",
    "register.submit": "Create account",
    "register.to_login": "Already have an account? Sign in",
    "verification.title": "Verify your email",
    "verification.code": "Verification code",
    "verification.submit": "Verify",
    "verification.resend": "Resend code",
    "upgrade.title": "Upgrade required",
    "upgrade.body": "SkillEdge Desktop is available to Pro and Pro+ subscribers.",
    "upgrade.pricing": "View plans",
    "upgrade.login": "I've upgraded, sign in",
    # Preferences / interview type
    "preferences.title": "Your interview profile",
    "preferences.display_name": "Your name",
    "preferences.session_purpose": "Role / interview purpose",
    "preferences.context_notes": "About you (experience, skills)",
    "preferences.language": "Response language",
    "preferences.submit": "Continue",
    "interview.title": "Interview type",
    "interview.technical": "Technical",
    "interview.behavioral": "Behavioral",
    "interview.general": "General",
    "interview.technical.desc": "Coding, system design and problem-solving questions",
    "interview.behavioral.desc": "Past experience, teamwork and soft-skill questions",
    "interview.general.desc": "A mix of motivation, background and role questions",
    # Main
    "main.placeholder": "Press SPACE to start recording, SPACE again to stop",
    "main.interviewer": "Interviewer",
    "main.assistant": "AI Assistant",
    "main.clear": "Clear",
    "main.logout": "Log out",
    "main.plan": "Plan: {plan}",
    "main.minutes": "{minutes:.0f} min left",
    "loading.default": "Processing...",
    # Errors / notices
    "error.login_missing": "Please enter both email and password",
    "error.login_failed": "Login failed. Please check your credentials.",
    "error.not_entitled": "This app is only available for Pro and Pro+ subscribers",
    "error.fields_required": "Please fill in all fields",
    "error.password_short": "Password must be at least {count} characters",
    "error.register_failed": "Registration failed",
    "error.code_missing": "Please enter verification code",
    "error.email_required": "Email is required",
    "error.verification_failed": "Verification failed",
    "error.preferences_required": "Please fill in all fields before continuing.",
    "error.interview_type": "Unknown interview type",
    "error.unexpected": "Something went wrong. Please try again.",
    "error.recording_start": "Failed to start recording",
    "error.recording_stop": "Failed to stop recording",
    "error.no_minutes": "You have no minutes left on your plan",
    "error.reply_failed": "Failed to generate AI response",
    "notice.resend_unavailable": "Resending verification codes is not available yet.",
    "notice.verification_code": "Verification code: {code}",
}

_translations: dict[str, str] = {}
_current_lang: str = "en"


def get_locales_dir() -> Path:
    """Return the path to the locales directory.

    When frozen (PyInstaller) the directory next to the executable wins;
    in development it is ``<project_root>/locales/``.
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).parent / "locales"
    # src/skilledge/i18n.py -> ../../../locales
    return Path(__file__).resolve().parent.parent.parent / "locales"


def load_locale(lang: str) -> dict[str, Any] | None:
    """Load a locale JSON file.

    Returns ``None`` if the file does not exist or cannot be parsed.
    """
    path = get_locales_dir() / f"{lang}.json"
    if not path.exists():
        return None
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to load locale %s: %s", lang, exc)
        return None


def init_language(lang: str) -> str:
    """Load *lang* if a pack exists, else stay on built-in English.

    Returns the active language code.
    """
    global _current_lang, _translations

    data = load_locale(lang) if lang != "en" else None
    if data is None:
        if lang != "en":
            logger.warning("Locale '%s' not found, using built-in English", lang)
        _translations = {}
        _current_lang = "en"
        return _current_lang

    _translations = dict(data.get("translations", {}))
    _current_lang = lang
    logger.info("Language set to '%s'", lang)
    return _current_lang


def get_language() -> str:
    return _current_lang


def t(key: str, default: str | None = None, **kwargs: Any) -> str:
    """Return the translated string for ``key``.

    Lookup order: current locale, *default*, built-in English, the key itself.
    Keyword arguments are applied with ``str.format``.
    """
    if key in _translations:
        text = _translations[key]
    elif default is not None:
        text = default
    elif key in _FALLBACK:
        text = _FALLBACK[key]
    else:
        text = key

    if kwargs:
        try:
            return text.format(**kwargs)
        except (KeyError, ValueError):
            pass  # Missing placeholder, return as-is

    return text
