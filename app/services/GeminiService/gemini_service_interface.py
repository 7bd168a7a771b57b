from abc import ABC, abstractmethod

from google.genai import types

from app.entities.message import Attachment, Message


class GatewayError(Exception):
    """Raised when the model service cannot produce a response."""


class GeminiServiceInterface(ABC):
    @abstractmethod
    async def exchange(
        self,
        history: list[Message],
        new_text: str,
        new_files: list[Attachment],
    ) -> types.GenerateContentResponse:
        """
        Send the conversation plus the new user turn and return the raw reply.

        Raises:
            GatewayError: on any transport, service or response failure.
        """
