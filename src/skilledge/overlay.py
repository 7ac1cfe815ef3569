"""Borderless, always-on-top window that hosts every screen.

The window owns the tkinter root and runs its event loop on the thread that
calls :meth:`AppWindow.run` (the main thread).  Everything else talks to it
through :meth:`AppWindow.post`, which enqueues a callable that the tkinter
thread drains via ``after()`` polling.
"""

from __future__ import annotations

import logging
import queue
import threading
import tkinter as tk
import webbrowser
from dataclasses import dataclass
from tkinter import ttk
from typing import Any, Callable

from skilledge.i18n import t
from skilledge.pipeline import STATUS_ERROR, STATUS_PROCESSING, STATUS_READY, STATUS_RECORDING
from skilledge.platform import exclude_from_capture, hide_from_taskbar
from skilledge.prompts import language_name, supported_languages
from skilledge.screens import Screen, ScreenState
from skilledge.session import DEFAULT_LANGUAGE, INTERVIEW_TYPES
from skilledge.window import WindowGeometry, conversation_geometry, geometry_for

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Look and feel
# ---------------------------------------------------------------------------

_BG = "#2d2d2d"
_PANEL = "#1e1e1e"
_CARD = "#3a3a3a"
_CARD_SELECTED = "#1a3a5a"
_FG = "#e0e0e0"
_MUTED = "#888888"
_ACCENT = "#4CAF50"
_ERROR = "#F44336"
_NOTICE = "#64B5F6"
_FONT = "Segoe UI"

_POLL_INTERVAL_MS = 16  # ~60 fps queue polling

_DOT_COLORS: dict[str, str] = {
    STATUS_READY: "#4CAF50",
    STATUS_RECORDING: "#F44336",
    STATUS_PROCESSING: "#FF9800",
    STATUS_ERROR: "#9E9E9E",
}

_STATUS_KEYS: dict[str, str] = {
    STATUS_READY: "tray.status.ready",
    STATUS_RECORDING: "tray.status.recording",
    STATUS_PROCESSING: "tray.status.processing",
    STATUS_ERROR: "tray.status.error",
}

# Widgets that consume the space bar themselves
_TEXT_INPUT_CLASSES = frozenset({"Entry", "TEntry", "Text", "TCombobox", "Spinbox"})


@dataclass
class WindowActions:
    """User intents raised by the window (all called on the tkinter thread)."""

    login: Callable[[str, str], None]
    register: Callable[[str, str, str, str], None]
    verify: Callable[[str, str], None]
    resend: Callable[[str], None]
    show_login: Callable[[], None]
    show_register: Callable[[], None]
    save_preferences: Callable[[str, str, str, str], None]
    select_interview_type: Callable[[str], None]
    toggle_recording: Callable[[], None]
    clear: Callable[[], None]
    logout: Callable[[], None]


class AppWindow:
    """The application window.

    Parameters
    ----------
    actions:
        Callbacks for every user intent.
    pricing_url:
        Opened in the browser from the upgrade screen.
    main_opacity:
        Alpha used on the main screen (other screens are opaque).
    content_protection:
        Ask the OS to keep the window out of screen capture.
    """

    def __init__(
        self,
        actions: WindowActions,
        pricing_url: str,
        main_opacity: float = 1.0,
        content_protection: bool = True,
    ) -> None:
        self._actions = actions
        self._pricing_url = pricing_url
        self._main_opacity = main_opacity
        self._content_protection = content_protection

        self._queue: queue.Queue[Callable[[], None]] = queue.Queue()

        root = tk.Tk()
        root.withdraw()
        root.title(t("app.name"))
        root.configure(bg=_BG)
        root.overrideredirect(True)
        root.attributes("-topmost", True)
        self._root: tk.Tk | None = root

        self._screen: Screen | None = None
        self._content: tk.Frame | None = None
        self._placed = False
        self._drag_offset = (0, 0)

        # Per-screen widgets (rebuilt on every screen change)
        self._error_label: tk.Label | None = None
        self._notice_label: tk.Label | None = None
        self._busy_label: tk.Label | None = None
        self._submit_buttons: list[tk.Button] = []
        self._type_cards: dict[str, tk.Frame] = {}
        self._status_dot: tk.Canvas | None = None
        self._dot_id: int | None = None
        self._status_label: tk.Label | None = None
        self._conversation: tk.Text | None = None
        self._placeholder: tk.Label | None = None
        self._account_menu: tk.Menu | None = None

        self._build_title_bar(root)
        self._body = tk.Frame(root, bg=_BG)
        self._body.pack(fill="both", expand=True)

        root.bind_all("<space>", self._on_space, add="+")

    # ------------------------------------------------------------------
    # Thread-safe API (callable from any thread)
    # ------------------------------------------------------------------

    def post(self, fn: Callable[[], None]) -> None:
        """Run *fn* on the tkinter thread."""
        self._queue.put(fn)

    def show(self) -> None:
        self.post(self._do_show)

    def hide(self) -> None:
        self.post(self._do_hide)

    def toggle_visible(self) -> None:
        self.post(self._do_toggle_visible)

    def stop(self) -> None:
        self.post(self._do_quit)

    def run_task(self, work: Callable[[], Any], on_done: Callable[[Any], None]) -> None:
        """Run *work* on a daemon thread and deliver its result on the tkinter thread."""

        def _worker() -> None:
            try:
                result = work()
            except Exception:
                logger.exception("Background task failed")
                return
            self.post(lambda: on_done(result))

        threading.Thread(target=_worker, name="skilledge-task", daemon=True).start()

    # ------------------------------------------------------------------
    # Tkinter-thread API
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Show the window and block in the tkinter event loop."""
        root = self._root
        if root is None:
            return
        root.after(_POLL_INTERVAL_MS, self._poll_queue)
        self._do_show()
        root.mainloop()

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> None:
        if self._root is not None:
            self._root.after(delay_ms, callback)

    def apply_screen(self, screen: Screen) -> None:
        """Resize for *screen* (wired to the controller's ``on_transition``)."""
        self._apply_geometry(geometry_for(screen, self._main_opacity))

    def render(self, state: ScreenState) -> None:
        """Bring the widgets in line with *state* (the controller's ``on_update``)."""
        if self._root is None:
            return
        if state.screen is not self._screen:
            self._build_screen(state)

        self._set_message(self._error_label, state.error)
        self._set_message(self._notice_label, state.notice)
        if self._busy_label is not None:
            self._busy_label.configure(text=t("loading.default") if state.busy else "")
        for button in self._submit_buttons:
            button.configure(state="disabled" if state.busy else "normal")

        if state.screen is Screen.INTERVIEW_TYPE and state.record is not None:
            self._highlight_type(state.record.preferences.interview_type)
        if state.screen is Screen.MAIN:
            self._refresh_account_menu(state)

    def set_status(self, status: str) -> None:
        if self._status_label is not None:
            self._status_label.configure(text=t(_STATUS_KEYS.get(status, "tray.status.ready")))
        if self._status_dot is not None and self._dot_id is not None:
            self._status_dot.itemconfigure(self._dot_id, fill=_DOT_COLORS.get(status, _MUTED))
        if status == STATUS_RECORDING:
            self._set_message(self._error_label, "")

    def show_error(self, message: str) -> None:
        self._set_message(self._error_label, message)

    def add_question(self, question: str) -> None:
        """Put a new exchange at the top of the conversation (latest first)."""
        text = self._conversation
        if text is None:
            return
        self._hide_placeholder()
        speaker = f"{t('main.interviewer')}\n"
        body = f"{question}\n"
        text.configure(state="normal")
        text.insert("1.0", speaker, ("speaker",), body, ("question",), "\n", ())
        # The answer slots in right below this question
        text.mark_set("answer", f"1.0 + {len(speaker) + len(body)} chars")
        text.mark_gravity("answer", "left")
        text.configure(state="disabled")

    def add_reply(self, reply: str) -> None:
        text = self._conversation
        if text is None:
            return
        self._hide_placeholder()
        index = "answer" if "answer" in text.mark_names() else "1.0"
        text.configure(state="normal")
        text.insert(index, f"{t('main.assistant')}\n", ("speaker",), f"{reply}\n", ("reply",))
        if index == "answer":
            text.mark_unset("answer")
        text.configure(state="disabled")

    def clear_conversation(self) -> None:
        text = self._conversation
        if text is None:
            return
        text.configure(state="normal")
        text.delete("1.0", "end")
        text.configure(state="disabled")
        if self._placeholder is not None:
            self._placeholder.place(relx=0.5, rely=0.5, anchor="center")
        self._apply_geometry(geometry_for(Screen.MAIN, self._main_opacity))

    def resize_for_conversation(self, exchanges: int) -> None:
        if self._screen is Screen.MAIN:
            self._apply_geometry(conversation_geometry(exchanges, self._main_opacity))

    # ------------------------------------------------------------------
    # Queue polling
    # ------------------------------------------------------------------

    def _poll_queue(self) -> None:
        root = self._root
        if root is None:
            return
        try:
            while True:
                fn = self._queue.get_nowait()
                try:
                    fn()
                except Exception:
                    logger.exception("Error in UI callback")
                if self._root is None:
                    return
        except queue.Empty:
            pass
        root.after(_POLL_INTERVAL_MS, self._poll_queue)

    # ------------------------------------------------------------------
    # Window management (tkinter thread only)
    # ------------------------------------------------------------------

    def _do_show(self) -> None:
        root = self._root
        if root is None:
            return
        root.deiconify()
        root.overrideredirect(True)
        root.lift()
        root.attributes("-topmost", True)
        self._apply_chrome()
        root.focus_force()

    def _do_hide(self) -> None:
        if self._root is not None:
            self._root.withdraw()

    def _do_toggle_visible(self) -> None:
        root = self._root
        if root is None:
            return
        if root.state() == "normal":
            self._do_hide()
        else:
            self._do_show()

    def _do_minimize(self) -> None:
        root = self._root
        if root is None:
            return
        # Tk refuses to iconify an override-redirect window
        root.overrideredirect(False)
        root.iconify()
        root.bind("<Map>", self._on_restored)

    def _on_restored(self, event: tk.Event) -> None:
        root = self._root
        if root is None or event.widget is not root:
            return
        root.unbind("<Map>")
        root.overrideredirect(True)
        self._apply_chrome()

    def _do_quit(self) -> None:
        root = self._root
        if root is None:
            return
        self._root = None
        self._forget_widgets()
        self._content = None
        root.quit()
        root.destroy()

    def _apply_chrome(self) -> None:
        root = self._root
        if root is None:
            return
        try:
            hide_from_taskbar(root)
        except (NotImplementedError, OSError) as exc:
            logger.debug("Taskbar hiding unavailable: %s", exc)
        if not self._content_protection:
            return
        try:
            exclude_from_capture(root)
        except (NotImplementedError, OSError) as exc:
            logger.debug("Capture exclusion unavailable: %s", exc)

    def _apply_geometry(self, geometry: WindowGeometry) -> None:
        root = self._root
        if root is None:
            return
        screen_w = root.winfo_screenwidth()
        screen_h = root.winfo_screenheight()
        if self._placed:
            x, y = root.winfo_x(), root.winfo_y()
        else:
            x = (screen_w - geometry.width) // 2
            y = (screen_h - geometry.height) // 3
            self._placed = True
        # Keep on-screen after growing.
        x = max(0, min(x, screen_w - geometry.width))
        y = max(0, min(y, screen_h - geometry.height))
        root.geometry(f"{geometry.width}x{geometry.height}+{x}+{y}")
        root.attributes("-alpha", geometry.opacity)

    # ------------------------------------------------------------------
    # Title bar
    # ------------------------------------------------------------------

    def _build_title_bar(self, root: tk.Tk) -> None:
        bar = tk.Frame(root, bg=_PANEL, height=30)
        bar.pack(fill="x", side="top")

        title = tk.Label(bar, text=t("app.name"), font=(_FONT, 10, "bold"), bg=_PANEL, fg=_FG)
        title.pack(side="left", padx=10, pady=4)

        for glyph, command in (("×", self._do_hide), ("–", self._do_minimize)):
            button = tk.Label(bar, text=glyph, font=(_FONT, 12), bg=_PANEL, fg=_MUTED, padx=10, cursor="hand2")
            button.pack(side="right")
            button.bind("<Button-1>", lambda e, c=command: c())
            button.bind("<Enter>", lambda e, w=button: w.configure(fg=_FG))
            button.bind("<Leave>", lambda e, w=button: w.configure(fg=_MUTED))

        for widget in (bar, title):
            widget.bind("<ButtonPress-1>", self._on_drag_start)
            widget.bind("<B1-Motion>", self._on_drag_motion)

    def _on_drag_start(self, event: tk.Event) -> None:
        self._drag_offset = (event.x_root, event.y_root)

    def _on_drag_motion(self, event: tk.Event) -> None:
        root = self._root
        if root is None:
            return
        dx = event.x_root - self._drag_offset[0]
        dy = event.y_root - self._drag_offset[1]
        self._drag_offset = (event.x_root, event.y_root)
        root.geometry(f"+{root.winfo_x() + dx}+{root.winfo_y() + dy}")

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    def _on_space(self, event: tk.Event) -> None:
        if self._screen is not Screen.MAIN:
            return
        widget = event.widget
        if (
            isinstance(widget, tk.Misc)
            and widget.winfo_class() in _TEXT_INPUT_CLASSES
            and widget is not self._conversation
        ):
            return
        self._actions.toggle_recording()

    # ------------------------------------------------------------------
    # Screen construction
    # ------------------------------------------------------------------

    def _build_screen(self, state: ScreenState) -> None:
        if self._content is not None:
            self._content.destroy()
        self._forget_widgets()

        frame = tk.Frame(self._body, bg=_BG, padx=30, pady=20)
        frame.pack(fill="both", expand=True)
        self._content = frame
        self._screen = state.screen

        builders: dict[Screen, Callable[[tk.Frame, ScreenState], None]] = {
            Screen.LOGIN: self._build_login,
            Screen.REGISTER: self._build_register,
            Screen.VERIFICATION: self._build_verification,
            Screen.UPGRADE_REQUIRED: self._build_upgrade,
            Screen.PREFERENCES: self._build_preferences,
            Screen.INTERVIEW_TYPE: self._build_interview_type,
            Screen.MAIN: self._build_main,
        }
        builders[state.screen](frame, state)

    def _forget_widgets(self) -> None:
        self._error_label = self._notice_label = self._busy_label = None
        self._submit_buttons = []
        self._type_cards = {}
        self._status_dot = self._dot_id = self._status_label = None
        self._conversation = self._placeholder = self._account_menu = None

    def _build_login(self, frame: tk.Frame, state: ScreenState) -> None:
        self._heading(frame, t("login.title"))
        email = self._entry(frame, t("login.email"))
        password = self._entry(frame, t("login.password"), show="•")

        def submit() -> None:
            self._actions.login(email.get(), password.get())

        self._button(frame, t("login.submit"), submit)
        self._link(frame, t("login.to_register"), self._actions.show_register)
        self._messages(frame)
        password.bind("<Return>", lambda e: submit())
        email.focus_set()

    def _build_register(self, frame: tk.Frame, state: ScreenState) -> None:
        self._heading(frame, t("register.title"))
        first = self._entry(frame, t("register.first_name"))
        last = self._entry(frame, t("register.last_name"))
        email = self._entry(frame, t("login.email"))
        password = self._entry(frame, t("login.password"), show="•")

        def submit() -> None:
            self._actions.register(first.get(), last.get(), email.get(), password.get())

        self._button(frame, t("register.submit"), submit)
        self._link(frame, t("register.to_login"), self._actions.show_login)
        self._messages(frame)
        password.bind("<Return>", lambda e: submit())
        first.focus_set()

    def _build_verification(self, frame: tk.Frame, state: ScreenState) -> None:
        self._heading(frame, t("verification.title"))
        email = self._entry(frame, t("login.email"))
        email.insert(0, state.pending_email)
        code = self._entry(frame, t("verification.code"))

        def submit() -> None:
            self._actions.verify(email.get(), code.get())

        self._button(frame, t("verification.submit"), submit)
        self._link(frame, t("verification.resend"), lambda: self._actions.resend(email.get()))
        self._link(frame, t("register.to_login"), self._actions.show_login)
        self._messages(frame)
        code.bind("<Return>", lambda e: submit())
        code.focus_set()

    def _build_upgrade(self, frame: tk.Frame, state: ScreenState) -> None:
        self._heading(frame, t("upgrade.title"))
        tk.Label(
            frame, text=t("upgrade.body"), font=(_FONT, 11), bg=_BG, fg=_FG,
            wraplength=400, justify="center",
        ).pack(pady=(10, 20))
        self._button(frame, t("upgrade.pricing"), self._open_pricing)
        self._link(frame, t("upgrade.login"), self._actions.show_login)
        self._messages(frame)

    def _build_preferences(self, frame: tk.Frame, state: ScreenState) -> None:
        current = state.record.preferences if state.record is not None else None
        self._heading(frame, t("preferences.title"))

        name = self._entry(frame, t("preferences.display_name"))
        purpose = self._entry(frame, t("preferences.session_purpose"))

        self._label(frame, t("preferences.context_notes"))
        notes = tk.Text(
            frame, height=5, wrap="word", font=(_FONT, 10), bg=_PANEL, fg=_FG,
            insertbackground=_FG, relief="flat", padx=6, pady=6,
        )
        notes.pack(fill="x", pady=(0, 10))

        self._label(frame, t("preferences.language"))
        languages = supported_languages()
        names = [display for _, display in languages]
        language = ttk.Combobox(frame, values=names, state="readonly")
        language.pack(fill="x", pady=(0, 10))

        if current is not None:
            name.insert(0, current.display_name)
            purpose.insert(0, current.session_purpose)
            notes.insert("1.0", current.context_notes)
        language.set(language_name(current.language if current is not None else DEFAULT_LANGUAGE))

        def submit() -> None:
            index = language.current()
            code = languages[index][0] if index >= 0 else DEFAULT_LANGUAGE
            self._actions.save_preferences(name.get(), purpose.get(), notes.get("1.0", "end-1c"), code)

        self._button(frame, t("preferences.submit"), submit)
        self._messages(frame)
        name.focus_set()

    def _build_interview_type(self, frame: tk.Frame, state: ScreenState) -> None:
        self._heading(frame, t("interview.title"))
        for kind in INTERVIEW_TYPES:
            card = tk.Frame(frame, bg=_CARD, padx=16, pady=12, cursor="hand2")
            card.pack(fill="x", pady=6)
            title = tk.Label(card, text=t(f"interview.{kind}"), font=(_FONT, 13, "bold"), bg=_CARD, fg=_FG, anchor="w")
            title.pack(fill="x")
            desc = tk.Label(
                card, text=t(f"interview.{kind}.desc"), font=(_FONT, 10), bg=_CARD, fg=_MUTED,
                anchor="w", justify="left", wraplength=480,
            )
            desc.pack(fill="x")
            for widget in (card, title, desc):
                widget.bind("<Button-1>", lambda e, k=kind: self._actions.select_interview_type(k))
            self._type_cards[kind] = card
        self._messages(frame)

    def _build_main(self, frame: tk.Frame, state: ScreenState) -> None:
        frame.configure(padx=12, pady=8)

        header = tk.Frame(frame, bg=_BG)
        header.pack(fill="x")
        dot = tk.Canvas(header, width=14, height=14, bg=_BG, highlightthickness=0, bd=0)
        dot.pack(side="left", padx=(0, 6))
        self._dot_id = dot.create_oval(2, 2, 12, 12, fill=_DOT_COLORS[STATUS_READY], outline="")
        self._status_dot = dot
        self._status_label = tk.Label(header, text=t("tray.status.ready"), font=(_FONT, 10), bg=_BG, fg=_FG)
        self._status_label.pack(side="left")

        menu_button = tk.Menubutton(
            header, text="⚙", font=(_FONT, 12), bg=_BG, fg=_MUTED,
            activebackground=_CARD, relief="flat", takefocus=0,
        )
        menu_button.pack(side="right")
        self._account_menu = tk.Menu(menu_button, tearoff=0)
        menu_button.configure(menu=self._account_menu)

        clear = tk.Button(
            header, text=t("main.clear"), command=self._actions.clear, font=(_FONT, 9),
            bg=_CARD, fg=_FG, relief="flat", takefocus=0, padx=8,
        )
        clear.pack(side="right", padx=6)

        body = tk.Frame(frame, bg=_PANEL)
        body.pack(fill="both", expand=True, pady=(8, 4))
        conversation = tk.Text(
            body, wrap="word", font=(_FONT, 11), bg=_PANEL, fg=_FG, relief="flat",
            padx=10, pady=10, state="disabled", cursor="arrow", takefocus=0,
        )
        conversation.tag_configure("speaker", font=(_FONT, 9, "bold"), foreground=_MUTED)
        conversation.tag_configure("question", foreground="#B0BEC5")
        conversation.tag_configure("reply", foreground=_FG, spacing3=6)
        conversation.pack(fill="both", expand=True)
        self._conversation = conversation

        self._placeholder = tk.Label(
            body, text=t("main.placeholder"), font=(_FONT, 11), bg=_PANEL, fg=_MUTED,
        )
        self._placeholder.place(relx=0.5, rely=0.5, anchor="center")

        self._error_label = tk.Label(frame, text="", font=(_FONT, 9), bg=_BG, fg=_ERROR, anchor="w")
        self._error_label.pack(fill="x")
        frame.focus_set()

    # ------------------------------------------------------------------
    # Widget helpers
    # ------------------------------------------------------------------

    def _heading(self, parent: tk.Frame, text: str) -> None:
        tk.Label(parent, text=text, font=(_FONT, 16, "bold"), bg=_BG, fg=_FG).pack(pady=(10, 20))

    def _label(self, parent: tk.Frame, text: str) -> None:
        tk.Label(parent, text=text, font=(_FONT, 10), bg=_BG, fg=_MUTED, anchor="w").pack(fill="x")

    def _entry(self, parent: tk.Frame, label: str, show: str = "") -> tk.Entry:
        self._label(parent, label)
        entry = tk.Entry(
            parent, font=(_FONT, 11), bg=_PANEL, fg=_FG, insertbackground=_FG,
            relief="flat", show=show,
        )
        entry.pack(fill="x", ipady=6, pady=(0, 10))
        return entry

    def _button(self, parent: tk.Frame, text: str, command: Callable[[], None]) -> tk.Button:
        button = tk.Button(
            parent, text=text, command=command, font=(_FONT, 11, "bold"),
            bg=_ACCENT, fg="white", activebackground="#43A047", relief="flat", pady=6,
        )
        button.pack(fill="x", pady=(10, 6))
        self._submit_buttons.append(button)
        return button

    def _link(self, parent: tk.Frame, text: str, command: Callable[[], None]) -> None:
        link = tk.Label(parent, text=text, font=(_FONT, 10, "underline"), bg=_BG, fg=_NOTICE, cursor="hand2")
        link.pack(pady=4)
        link.bind("<Button-1>", lambda e: command())

    def _messages(self, parent: tk.Frame) -> None:
        self._busy_label = tk.Label(parent, text="", font=(_FONT, 10), bg=_BG, fg=_MUTED)
        self._busy_label.pack(pady=(10, 0))
        self._error_label = tk.Label(parent, text="", font=(_FONT, 10), bg=_BG, fg=_ERROR, wraplength=340)
        self._error_label.pack()
        self._notice_label = tk.Label(parent, text="", font=(_FONT, 10), bg=_BG, fg=_NOTICE, wraplength=340)
        self._notice_label.pack()

    @staticmethod
    def _set_message(label: tk.Label | None, text: str) -> None:
        if label is not None:
            label.configure(text=text)

    def _hide_placeholder(self) -> None:
        if self._placeholder is not None:
            self._placeholder.place_forget()

    def _highlight_type(self, selected: str) -> None:
        for kind, card in self._type_cards.items():
            color = _CARD_SELECTED if kind == selected else _CARD
            card.configure(bg=color)
            for child in card.winfo_children():
                child.configure(bg=color)

    def _refresh_account_menu(self, state: ScreenState) -> None:
        menu = self._account_menu
        if menu is None:
            return
        menu.delete(0, "end")
        account = state.record.account if state.record is not None else None
        if account is not None:
            menu.add_command(label=account.email, state="disabled")
            menu.add_command(label=t("main.plan", plan=account.subscription_tier), state="disabled")
            menu.add_command(label=t("main.minutes", minutes=account.minutes_remaining), state="disabled")
            menu.add_separator()
        menu.add_command(label=t("main.clear"), command=self._actions.clear)
        menu.add_command(label=t("main.logout"), command=self._actions.logout)

    def _open_pricing(self) -> None:
        logger.info("Opening pricing page")
        webbrowser.open(self._pricing_url)
