"""
Raw file handles accepted by the attachment pipeline.

A file source declares its name, MIME type and size up front so it can be
validated before any content is read.
"""

from __future__ import annotations

import asyncio
import mimetypes
from abc import ABC, abstractmethod
from pathlib import Path


def decoded_length(text: str) -> int:
    """Byte size of base64 text once decoded, ignoring any data URL header."""
    if text.startswith("data:"):
        _, _, text = text.partition(",")
    payload = "".join(text.split())
    if not payload:
        return 0
    return len(payload) * 3 // 4 - payload[-2:].count("=")


class FileSource(ABC):
    name: str
    mime_type: str
    size_bytes: int

    @abstractmethod
    async def read(self) -> bytes | str:
        """
        Return the file content.

        Raw bytes are base64-encoded by the caller. A string is treated as
        base64 text, optionally prefixed by a data URL header.
        """


class LocalFileSource(FileSource):
    """File on the local disk."""

    def __init__(self, path: str | Path, mime_type: str | None = None) -> None:
        self.path = Path(path)
        self.name = self.path.name
        guessed, _ = mimetypes.guess_type(self.path.name)
        self.mime_type = mime_type or guessed or "application/octet-stream"
        self.size_bytes = self.path.stat().st_size

    async def read(self) -> bytes:
        return await asyncio.to_thread(self.path.read_bytes)


class InMemoryFileSource(FileSource):
    """Content already held in memory, as bytes or as a data URL."""

    def __init__(
        self,
        name: str,
        mime_type: str,
        content: bytes | str,
        size_bytes: int | None = None,
    ) -> None:
        self.name = name
        self.mime_type = mime_type
        self.content = content
        if size_bytes is None:
            size_bytes = (
                len(content)
                if isinstance(content, bytes)
                else decoded_length(content)
            )
        self.size_bytes = size_bytes

    async def read(self) -> bytes | str:
        return self.content
