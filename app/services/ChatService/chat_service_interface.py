from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable

from app.entities.file_source import FileSource
from app.entities.message import Attachment, Message
from app.services.ChatStore.chat_store import Listener


class ChatServiceInterface(ABC):
    @property
    @abstractmethod
    def messages(self) -> tuple[Message, ...]:
        """Conversation snapshot, oldest first."""

    @property
    @abstractmethod
    def pending_attachments(self) -> tuple[Attachment, ...]:
        """Attachments staged for the next send."""

    @property
    @abstractmethod
    def is_loading(self) -> bool:
        """True while a send is waiting for the model."""

    @abstractmethod
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a state listener; returns the unsubscribe callable."""

    @abstractmethod
    def set_input(self, text: str) -> None:
        """Update the input draft."""

    @abstractmethod
    async def stage(self, files: Iterable[FileSource]) -> list[Attachment]:
        """Stage files for the next send."""

    @abstractmethod
    def unstage(self, index: int) -> None:
        """Remove one staged file."""

    @abstractmethod
    def clear_staged(self) -> None:
        """Remove every staged file."""

    @abstractmethod
    async def send(
        self,
        current_text: str | None = None,
        pending_attachments: list[Attachment] | None = None,
    ) -> Message | None:
        """
        Send the user turn and append the model reply.

        Returns the appended model message, or None when the send was ignored.
        """
