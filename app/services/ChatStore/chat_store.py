"""
Observable state for one chat session.

Holds the conversation, the pending attachments, the input draft and the
in-flight flag. Every mutation notifies the subscribed listeners so a view can
re-render; the store itself knows nothing about any UI framework.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Literal, TypedDict

from app.entities.message import Attachment, Message


ChatEventKind = Literal["messages", "pending", "loading", "input", "warning"]


class ChatEvent(TypedDict):
    kind: ChatEventKind
    detail: str | None


Listener = Callable[[ChatEvent], None]


class ChatStore:
    def __init__(
        self,
        logger: logging.Logger,
        initial_messages: list[Message] | None = None,
    ) -> None:
        self.logger = logger
        self._messages: list[Message] = list(initial_messages or [])
        self._pending: list[Attachment] = []
        self._input_text: str = ""
        self._is_loading: bool = False
        self._listeners: list[Listener] = []

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def pending_attachments(self) -> tuple[Attachment, ...]:
        return tuple(self._pending)

    @property
    def input_text(self) -> str:
        return self._input_text

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener and return a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def append_message(self, message: Message) -> None:
        self._messages.append(message)
        self._notify("messages")

    def add_pending(self, attachment: Attachment) -> None:
        self._pending.append(attachment)
        self._notify("pending")

    def remove_pending(self, index: int) -> Attachment | None:
        if index < 0 or index >= len(self._pending):
            return None
        removed = self._pending.pop(index)
        self._notify("pending")
        return removed

    def clear_pending(self) -> None:
        if not self._pending:
            return
        self._pending = []
        self._notify("pending")

    def set_input(self, text: str) -> None:
        if text == self._input_text:
            return
        self._input_text = text
        self._notify("input")

    def set_loading(self, is_loading: bool) -> None:
        if is_loading == self._is_loading:
            return
        self._is_loading = is_loading
        self._notify("loading")

    def warn(self, text: str) -> None:
        """Publish a user-visible warning without touching any state."""
        self._notify("warning", text)

    def _notify(self, kind: ChatEventKind, detail: str | None = None) -> None:
        event: ChatEvent = {"kind": kind, "detail": detail}
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                self.logger.exception("Listener failed while handling %s event", kind)
