"""
GeminiService: the single outbound call to the Gemini API.

Every request carries the assistant's system instruction and enables the
built-in Google Search grounding tool. Failures are never repaired here; they
are raised as GatewayError for the caller to absorb.
"""

from __future__ import annotations

import base64
import logging
from typing import TYPE_CHECKING, Any

from google import genai
from google.genai import types
from langfuse import observe

from app.entities.message import Attachment, GroundingMetadata, GroundingSource, Message
from app.services.GeminiService.gemini_service_interface import (
    GatewayError,
    GeminiServiceInterface,
)

if TYPE_CHECKING:
    from google.genai import Client


DEFAULT_MODEL_NAME = "gemini-3-flash-preview"

# Search grounding is always on; it is not a per-request option.
SEARCH_TOOLS: list[types.Tool] = [types.Tool(google_search=types.GoogleSearch())]


def _build_parts(text: str, files: list[Attachment]) -> list[types.Part]:
    parts: list[types.Part] = [types.Part.from_text(text=text)] if text else []

    for attachment in files:
        parts.append(
            types.Part.from_bytes(
                data=base64.b64decode(attachment["data"]),
                mime_type=attachment["mime_type"],
            )
        )

    # The API rejects turns without parts
    if not parts:
        parts.append(types.Part.from_text(text=""))

    return parts


def build_contents(
    history: list[Message],
    new_text: str,
    new_files: list[Attachment],
) -> list[types.Content]:
    """Map prior messages plus the new user turn to request contents, in order."""
    contents = [
        types.Content(
            role=message["role"],
            parts=_build_parts(message.get("text", ""), message.get("files", [])),
        )
        for message in history
    ]
    contents.append(
        types.Content(role="user", parts=_build_parts(new_text, new_files))
    )
    return contents


def extract_grounding_metadata(response: Any) -> GroundingMetadata | None:
    """
    Read the web citations of the first candidate, if any.

    Only the minimal shape is kept: the cited pages (uri and optional title)
    and the search queries the model issued.
    """
    candidates = getattr(response, "candidates", None)
    if not candidates:
        return None

    grounding = getattr(candidates[0], "grounding_metadata", None)
    if not grounding:
        return None

    sources: list[GroundingSource] = []
    for chunk in getattr(grounding, "grounding_chunks", None) or []:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None) if web else None
        if uri:
            sources.append({"uri": uri, "title": getattr(web, "title", None) or None})

    queries = [
        query
        for query in getattr(grounding, "web_search_queries", None) or []
        if isinstance(query, str) and query
    ]

    if not sources and not queries:
        return None

    return {"sources": sources, "search_queries": queries}


class GeminiService(GeminiServiceInterface):
    def __init__(
        self,
        api_key: str | None,
        system_prompt: str,
        logger: logging.Logger,
        model_name: str = DEFAULT_MODEL_NAME,
    ) -> None:
        """
        Args:
            api_key: Gemini API key; not checked until the first request
            system_prompt: Assistant persona sent as system instruction
            logger: Logger instance
            model_name: Gemini model used for every request
        """
        self.api_key = api_key
        self.system_prompt = system_prompt
        self.model_name = model_name
        self.logger = logger
        self._client: Client | None = None

        self.logger.info("GeminiService initialized. Model: %s", self.model_name)

    def _get_client(self) -> Client:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key or None)
        return self._client

    def _build_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=self.system_prompt,
            tools=SEARCH_TOOLS,
        )

    @observe()
    async def exchange(
        self,
        history: list[Message],
        new_text: str,
        new_files: list[Attachment],
    ) -> types.GenerateContentResponse:
        try:
            contents = build_contents(history, new_text, new_files)

            self.logger.info(
                "Sending %d turns to %s (%d new attachments)",
                len(contents),
                self.model_name,
                len(new_files),
            )

            response = await self._get_client().aio.models.generate_content(
                model=self.model_name,
                contents=contents,
                config=self._build_config(),
            )
        except Exception as e:
            raise GatewayError(f"Model request failed: {e}") from e

        if response is None:
            raise GatewayError("Model service returned no response")

        return response
