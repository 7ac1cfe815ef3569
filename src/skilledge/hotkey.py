"""Optional global hotkey that toggles recording on the main screen.

The listener runs on pynput's own thread. The callback is fired from that
thread, so callers hand it something thread-safe (the overlay's ``post``).
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from pynput import keyboard

logger = logging.getLogger(__name__)

_MODIFIERS: dict[str, frozenset[keyboard.Key]] = {
    "alt": frozenset({keyboard.Key.alt, keyboard.Key.alt_l, keyboard.Key.alt_r, keyboard.Key.alt_gr}),
    "ctrl": frozenset({keyboard.Key.ctrl, keyboard.Key.ctrl_l, keyboard.Key.ctrl_r}),
    "shift": frozenset({keyboard.Key.shift, keyboard.Key.shift_l, keyboard.Key.shift_r}),
    "cmd": frozenset({keyboard.Key.cmd, keyboard.Key.cmd_l, keyboard.Key.cmd_r}),
}
_ALIASES = {"win": "cmd", "control": "ctrl", "option": "alt"}

_KEY_TO_MODIFIER: dict[keyboard.Key, str] = {
    key: name for name, variants in _MODIFIERS.items() for key in variants
}

_NAMED_KEYS: dict[str, keyboard.Key] = {
    "space": keyboard.Key.space,
    "enter": keyboard.Key.enter,
    "tab": keyboard.Key.tab,
    "esc": keyboard.Key.esc,
    "escape": keyboard.Key.esc,
    "home": keyboard.Key.home,
    "end": keyboard.Key.end,
    "page_up": keyboard.Key.page_up,
    "page_down": keyboard.Key.page_down,
    **{f"f{n}": getattr(keyboard.Key, f"f{n}") for n in range(1, 13)},
}

Trigger = keyboard.Key | keyboard.KeyCode


def parse_hotkey(combo: str) -> tuple[frozenset[str], Trigger]:
    """Split ``"ctrl+shift+r"`` into its modifier names and trigger key.

    Raises:
        ValueError: For an empty combo, an unknown part, or a combo made only
            of modifiers.
    """
    parts = [p.strip().lower() for p in combo.split("+") if p.strip()]
    if not parts:
        raise ValueError(f"Empty hotkey: {combo!r}")

    *mod_parts, last = parts
    modifiers = set()
    for part in mod_parts:
        name = _ALIASES.get(part, part)
        if name not in _MODIFIERS:
            raise ValueError(f"Unknown modifier {part!r} in hotkey {combo!r}")
        modifiers.add(name)

    if _ALIASES.get(last, last) in _MODIFIERS:
        raise ValueError(f"Hotkey {combo!r} has no trigger key")
    if last in _NAMED_KEYS:
        trigger: Trigger = _NAMED_KEYS[last]
    elif len(last) == 1:
        trigger = keyboard.KeyCode.from_char(last)
    else:
        raise ValueError(f"Unknown key {last!r} in hotkey {combo!r}")

    return frozenset(modifiers), trigger


class HotkeyListener:
    """Fires *on_trigger* once per press of the configured combo.

    Auto-repeat is ignored: the trigger has to be released before the combo
    fires again.
    """

    def __init__(self, combo: str, on_trigger: Callable[[], None]) -> None:
        self._modifiers, self._trigger = parse_hotkey(combo)
        self._combo = combo
        self._on_trigger = on_trigger

        self._held: set[str] = set()
        self._latched = False
        self._lock = threading.Lock()
        self._listener: keyboard.Listener | None = None

    @property
    def combo(self) -> str:
        return self._combo

    def start(self) -> None:
        if self._listener is not None:
            logger.warning("Hotkey listener already running")
            return
        self._listener = keyboard.Listener(
            on_press=self._on_press,
            on_release=self._on_release,
        )
        self._listener.daemon = True
        self._listener.start()
        logger.info("Hotkey listener started for %r", self._combo)

    def stop(self) -> None:
        if self._listener is not None:
            self._listener.stop()
            self._listener = None
            logger.info("Hotkey listener stopped")
        with self._lock:
            self._held.clear()
            self._latched = False

    # ------------------------------------------------------------------
    # Key handlers (pynput thread)
    # ------------------------------------------------------------------

    def _matches(self, key: Trigger | None) -> bool:
        if isinstance(self._trigger, keyboard.Key):
            return key == self._trigger
        if isinstance(key, keyboard.KeyCode) and key.char and self._trigger.char:
            return key.char.lower() == self._trigger.char.lower()
        return False

    def _on_press(self, key: Trigger | None) -> None:
        fire = False
        with self._lock:
            mod = _KEY_TO_MODIFIER.get(key) if isinstance(key, keyboard.Key) else None
            if mod is not None:
                self._held.add(mod)
            elif self._matches(key) and not self._latched and self._modifiers <= self._held:
                self._latched = True
                fire = True

        if fire:
            logger.debug("Hotkey %r pressed", self._combo)
            try:
                self._on_trigger()
            except Exception:
                logger.exception("Error in hotkey callback")

    def _on_release(self, key: Trigger | None) -> None:
        with self._lock:
            mod = _KEY_TO_MODIFIER.get(key) if isinstance(key, keyboard.Key) else None
            if mod is not None:
                self._held.discard(mod)
            if self._matches(key):
                self._latched = False
