"""System prompt for live interview replies."""

from __future__ import annotations

_LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "it": "Italian",
    "fr": "French",
    "es": "Spanish",
    "de": "German",
    "pt": "Portuguese",
    "ru": "Russian",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "ar": "Arabic",
    "hi": "Hindi",
}

_INTERVIEW_CONTEXTS: dict[str, str] = {
    "technical": (
        "This is a technical interview focusing on coding, algorithms, system "
        "design, and technical problem-solving. Expect challenging technical "
        "questions that probe the candidate's hands-on skills."
    ),
    "behavioral": (
        "This is a behavioral interview using the STAR method (Situation, Task, "
        "Action, Result). Focus on leadership, teamwork, problem-solving, and "
        "past experiences."
    ),
    "general": (
        "This is a general interview covering technical skills, behavioral "
        "questions, and cultural fit."
    ),
}

_SYSTEM_TEMPLATE = """\
You are {name}, a real person in a live job interview.
You must respond ONLY in {language}.

### ROLE:
- You are a real human candidate, not an AI or assistant.
- You have emotions, opinions, and personal experiences.
- You answer as yourself: natural, confident, conversational.
- You never act like a chatbot or mention being an AI.

### STYLE RULES:
- Speak the way you would in real life, without filler intros like "Sure!" or "Of course."
- Use the contractions that are natural in the language you are speaking.
- Vary sentence length; mix short and medium sentences.
- Mild hesitation words ("well", "honestly", "I think") are fine where they fit.
- Don't sound perfect. Sound real.
- Mention small human details ("I once worked on something similar").
- Never say you're programmed, designed, or trained.

### PERSONAL CONTEXT:
{personal}

### INTERVIEW CONTEXT:
{purpose}
{interview}

### FINAL BEHAVIOR:
- Answer each question directly, like a person in the interview room.
- Don't summarize or explain your reasoning process.
- Avoid robotic phrasing, bullet lists, or repeating the question.
- End responses naturally, as in spoken conversation.
"""


def language_name(code: str) -> str:
    """Return the English name for a language *code* (defaults to English)."""
    return _LANGUAGE_NAMES.get((code or "").lower(), "English")


def supported_languages() -> list[tuple[str, str]]:
    """``(code, name)`` pairs in display order."""
    return list(_LANGUAGE_NAMES.items())


def interview_context(interview_type: str) -> str:
    return _INTERVIEW_CONTEXTS.get((interview_type or "").lower(), _INTERVIEW_CONTEXTS["general"])


def resolve_name(user_name: str, email: str = "") -> str:
    """Display name, else the local part of *email*, else a neutral label."""
    if user_name and user_name.strip():
        return user_name.strip()
    local = email.split("@", 1)[0].strip() if email else ""
    return local or "the candidate"


def build_system_prompt(
    user_name: str = "",
    email: str = "",
    meeting_purpose: str = "",
    general_info: str = "",
    language: str = "en",
    interview_type: str = "general",
) -> str:
    general_info = general_info.strip()
    meeting_purpose = meeting_purpose.strip()
    return _SYSTEM_TEMPLATE.format(
        name=resolve_name(user_name, email),
        language=language_name(language),
        personal=f"About me: {general_info}" if general_info else "No specific personal details provided.",
        purpose=(
            f"This interview is about: {meeting_purpose}"
            if meeting_purpose
            else "General job interview discussion."
        ),
        interview=interview_context(interview_type),
    )


def build_messages(
    system_prompt: str,
    history: list[dict[str, str]],
    transcript: str,
) -> list[dict[str, str]]:
    """System prompt, then prior turns, then the new question."""
    messages = [{"role": "system", "content": system_prompt}]
    messages.extend({"role": m["role"], "content": m["content"]} for m in history)
    messages.append({"role": "user", "content": transcript})
    return messages
