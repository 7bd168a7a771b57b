from abc import ABC, abstractmethod
from collections.abc import Iterable

from app.entities.file_source import FileSource
from app.entities.message import Attachment


class AttachmentServiceInterface(ABC):
    @abstractmethod
    def validate(self, file: FileSource) -> None:
        """Raise an AttachmentError when the file cannot be attached."""

    @abstractmethod
    async def stage(self, files: Iterable[FileSource]) -> list[Attachment]:
        """
        Validate, read and encode files into the pending set.

        Rejected files are reported as warnings, never raised. Returns the
        attachments staged by this call in completion order.
        """

    @abstractmethod
    def unstage(self, index: int) -> None:
        """Remove one pending attachment; no-op if out of range."""

    @abstractmethod
    def clear_staged(self) -> None:
        """Drop all pending attachments."""
