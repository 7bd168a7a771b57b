from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable

from app.entities.file_source import FileSource
from app.entities.message import Attachment, Message
from app.services.AttachmentService.attachment_service_interface import (
    AttachmentServiceInterface,
)
from app.services.ChatService.chat_service_interface import ChatServiceInterface
from app.services.ChatStore.chat_store import ChatStore, Listener
from app.services.GeminiService.gemini_service import extract_grounding_metadata
from app.services.GeminiService.gemini_service_interface import GeminiServiceInterface


EMPTY_RESPONSE_TEXT = "I'm sorry, I couldn't generate a response."
ERROR_RESPONSE_TEXT = "Sorry, I encountered an error. Please try again."


class ChatService(ChatServiceInterface):
    def __init__(
        self,
        store: ChatStore,
        attachment_service: AttachmentServiceInterface,
        gemini: GeminiServiceInterface,
        logger: logging.Logger,
    ) -> None:
        self.store = store
        self.attachment_service = attachment_service
        self.gemini = gemini
        self.logger = logger

    @property
    def messages(self) -> tuple[Message, ...]:
        return self.store.messages

    @property
    def pending_attachments(self) -> tuple[Attachment, ...]:
        return self.store.pending_attachments

    @property
    def is_loading(self) -> bool:
        return self.store.is_loading

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.store.subscribe(listener)

    def set_input(self, text: str) -> None:
        self.store.set_input(text)

    async def stage(self, files: Iterable[FileSource]) -> list[Attachment]:
        return await self.attachment_service.stage(files)

    def unstage(self, index: int) -> None:
        self.attachment_service.unstage(index)

    def clear_staged(self) -> None:
        self.attachment_service.clear_staged()

    async def send(
        self,
        current_text: str | None = None,
        pending_attachments: list[Attachment] | None = None,
    ) -> Message | None:
        text = self.store.input_text if current_text is None else current_text
        attachments = (
            list(self.store.pending_attachments)
            if pending_attachments is None
            else list(pending_attachments)
        )

        if self.store.is_loading:
            self.logger.debug("Ignoring send while another request is in flight")
            return None

        if not text.strip() and not attachments:
            self.logger.debug("Ignoring empty send")
            return None

        # Everything up to the first await runs atomically on the event loop
        history = list(self.store.messages)
        user_message: Message = {
            "role": "user",
            "text": text,
            "files": [
                {
                    "mime_type": attachment["mime_type"],
                    "data": attachment["data"],
                    "name": attachment["name"],
                    "size_bytes": attachment["size_bytes"],
                }
                for attachment in attachments
            ],
        }
        self.store.append_message(user_message)
        self.store.set_input("")
        self.attachment_service.clear_staged()
        self.store.set_loading(True)

        try:
            model_message = await self._request_reply(history, text, user_message)
            self.store.append_message(model_message)
        finally:
            self.store.set_loading(False)

        # Callers get their own copy; the stored turn stays as created
        return copy.deepcopy(model_message)

    async def _request_reply(
        self, history: list[Message], text: str, user_message: Message
    ) -> Message:
        try:
            response = await self.gemini.exchange(history, text, user_message["files"])
            model_message: Message = {
                "role": "model",
                "text": getattr(response, "text", None) or EMPTY_RESPONSE_TEXT,
                "files": [],
            }
            grounding = extract_grounding_metadata(response)
            if grounding is not None:
                model_message["grounding_metadata"] = grounding
        except Exception as e:
            self.logger.error("Error sending message: %s", e, exc_info=True)
            model_message = {
                "role": "model",
                "text": ERROR_RESPONSE_TEXT,
                "files": [],
            }

        return model_message
