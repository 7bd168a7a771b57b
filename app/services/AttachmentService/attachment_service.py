from __future__ import annotations

import asyncio
import base64
import logging
from collections.abc import Iterable

from app.entities.file_source import FileSource
from app.entities.message import Attachment
from app.services.AttachmentService.attachment_service_interface import (
    AttachmentServiceInterface,
)
from app.services.ChatStore.chat_store import ChatStore


SUPPORTED_MIME_TYPES: frozenset[str] = frozenset(
    {
        "image/png",
        "image/jpeg",
        "image/webp",
        "image/heic",
        "image/heif",
        "application/pdf",
        "text/plain",
        "text/csv",
        "text/html",
        "text/css",
        "text/md",
        "text/rtf",
        "text/xml",
        "application/json",
        "video/mp4",
        "video/mpeg",
        "video/quicktime",
        "video/avi",
        "video/x-flv",
        "video/mpg",
        "video/webm",
        "video/wmv",
        "video/3gpp",
        "audio/wav",
        "audio/mp3",
        "audio/aiff",
        "audio/aac",
        "audio/ogg",
        "audio/flac",
    }
)

SUPPORTED_MIME_PREFIXES: tuple[str, ...] = ("image/", "video/", "audio/")


class AttachmentError(Exception):
    """Base error for attachment intake failures."""


class AttachmentTooLargeError(AttachmentError):
    def __init__(self, name: str, size_bytes: int) -> None:
        self.name = name
        self.size_bytes = size_bytes
        super().__init__(f"Attachment exceeds size limit: {size_bytes} bytes")


class UnsupportedAttachmentError(AttachmentError):
    def __init__(self, name: str, mime_type: str | None) -> None:
        self.name = name
        self.mime_type = mime_type
        super().__init__(f"Unsupported mime type: {mime_type}")


class AttachmentReadError(AttachmentError):
    """Raised when a staged file cannot be read or decoded."""


def is_supported_mime_type(mime_type: str | None) -> bool:
    if not mime_type:
        return False
    return mime_type in SUPPORTED_MIME_TYPES or mime_type.startswith(
        SUPPORTED_MIME_PREFIXES
    )


def encode_content(content: bytes | str) -> str:
    """
    Return base64 text for raw file content.

    Strings are expected to be base64 already, possibly as a data URL
    (``data:<mime>;base64,<payload>``); the header is stripped.
    """
    if isinstance(content, bytes):
        return base64.b64encode(content).decode("ascii")

    if content.startswith("data:"):
        _, _, content = content.partition(",")
    return content.strip()


class AttachmentService(AttachmentServiceInterface):
    # Inline payload ceiling of the model service.
    MAX_ATTACHMENT_BYTES: int = 15 * 1024 * 1024

    def __init__(self, store: ChatStore, logger: logging.Logger) -> None:
        self.store = store
        self.logger = logger

    def validate(self, file: FileSource) -> None:
        if file.size_bytes > self.MAX_ATTACHMENT_BYTES:
            raise AttachmentTooLargeError(file.name, file.size_bytes)

        if not is_supported_mime_type(file.mime_type):
            raise UnsupportedAttachmentError(file.name, file.mime_type)

    async def stage(self, files: Iterable[FileSource]) -> list[Attachment]:
        accepted: list[FileSource] = []
        for file in files:
            try:
                self.validate(file)
            except AttachmentTooLargeError as error:
                self.logger.info(
                    "Rejected oversized file %s (%s bytes)", error.name, error.size_bytes
                )
                self.store.warn(
                    f"File too large: {error.name}. Maximum size is 15MB."
                )
                continue
            except UnsupportedAttachmentError as error:
                self.logger.info(
                    "Rejected file %s with mime type: %s",
                    error.name,
                    error.mime_type or "unknown",
                )
                self.store.warn(
                    f"Unsupported file type: {error.name}. "
                    "Please upload images, PDFs, or text files."
                )
                continue
            accepted.append(file)

        if not accepted:
            return []

        staged: list[Attachment] = []

        async def load(file: FileSource) -> None:
            try:
                attachment = await self._load(file)
            except AttachmentReadError as error:
                self.logger.error(
                    "Failed to read %s: %s", file.name, error, exc_info=True
                )
                self.store.warn(f"Could not read file: {file.name}.")
                return
            staged.append(attachment)
            self.store.add_pending(attachment)

        await asyncio.gather(*(load(file) for file in accepted))

        self.logger.info("Staged %d of %d accepted files", len(staged), len(accepted))
        return staged

    def unstage(self, index: int) -> None:
        removed = self.store.remove_pending(index)
        if removed is None:
            self.logger.debug("Ignoring unstage for out of range index %s", index)

    def clear_staged(self) -> None:
        self.store.clear_pending()

    async def _load(self, file: FileSource) -> Attachment:
        try:
            content = await file.read()
            data = encode_content(content)
        except Exception as error:
            raise AttachmentReadError(str(error)) from error

        return {
            "data": data,
            "mime_type": file.mime_type,
            "name": file.name,
            "size_bytes": file.size_bytes,
        }
