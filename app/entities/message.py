from typing import Literal, NotRequired, TypedDict


class Attachment(TypedDict):
    """User file payload encoded as base64."""

    data: str
    mime_type: str
    name: str
    size_bytes: int


class GroundingSource(TypedDict):
    """Web page cited by a grounded answer."""

    uri: str
    title: str | None


class GroundingMetadata(TypedDict):
    """Citations returned when the model answered with web search."""

    sources: list[GroundingSource]
    search_queries: list[str]


class Message(TypedDict):
    """One turn of the conversation."""

    files: list[Attachment]
    grounding_metadata: NotRequired[GroundingMetadata]
    role: Literal["user", "model"]
    text: str
