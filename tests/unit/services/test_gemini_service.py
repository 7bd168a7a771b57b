"""
Unit tests for GeminiService.

Tests cover request shaping, the fixed search grounding configuration,
failure normalization and grounding metadata extraction.
"""

import base64
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.entities.message import Attachment, Message
from app.services.GeminiService.gemini_service import (
    GeminiService,
    build_contents,
    extract_grounding_metadata,
)
from app.services.GeminiService.gemini_service_interface import GatewayError


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("GeminiServiceTest")


@pytest.fixture
def gemini_service(logger: logging.Logger) -> GeminiService:
    return GeminiService(
        api_key="test-key",
        system_prompt="You are a helpful school assistant.",
        model_name="gemini-test",
        logger=logger,
    )


@pytest.fixture
def pdf_attachment() -> Attachment:
    return {
        "data": base64.b64encode(b"%PDF-1.7 timetable").decode(),
        "mime_type": "application/pdf",
        "name": "timetable.pdf",
        "size_bytes": 18,
    }


class TestBuildContents:
    def test_history_then_new_turn_in_order(self) -> None:
        history: list[Message] = [
            {"role": "model", "text": "Hello!", "files": []},
            {"role": "user", "text": "When are exams?", "files": []},
            {"role": "model", "text": "In March.", "files": []},
        ]

        contents = build_contents(history, "Which subjects?", [])

        assert [c.role for c in contents] == ["model", "user", "model", "user"]
        assert [c.parts[0].text for c in contents] == [
            "Hello!",
            "When are exams?",
            "In March.",
            "Which subjects?",
        ]

    def test_inline_data_is_verbatim(self, pdf_attachment: Attachment) -> None:
        contents = build_contents([], "Summarize this", [pdf_attachment])

        parts = contents[-1].parts
        assert parts[0].text == "Summarize this"
        inline = parts[1].inline_data
        assert inline.mime_type == "application/pdf"
        assert inline.data == base64.b64decode(pdf_attachment["data"])

    def test_display_name_is_not_transmitted(self, pdf_attachment: Attachment) -> None:
        contents = build_contents([], "", [pdf_attachment])

        serialized = contents[-1].model_dump_json()
        assert "timetable.pdf" not in serialized

    def test_history_attachments_keep_their_order(self) -> None:
        files: list[Attachment] = [
            {
                "data": base64.b64encode(name.encode()).decode(),
                "mime_type": "text/plain",
                "name": name,
                "size_bytes": len(name),
            }
            for name in ("one", "two", "three")
        ]
        history: list[Message] = [{"role": "user", "text": "Files", "files": files}]

        contents = build_contents(history, "Thanks", [])

        datas = [part.inline_data.data for part in contents[0].parts[1:]]
        assert datas == [b"one", b"two", b"three"]

    def test_attachment_only_turn_has_no_empty_text_part(
        self, pdf_attachment: Attachment
    ) -> None:
        contents = build_contents([], "", [pdf_attachment])

        assert len(contents[-1].parts) == 1
        assert contents[-1].parts[0].inline_data is not None

    def test_empty_turn_still_has_a_part(self) -> None:
        contents = build_contents([], "", [])

        assert len(contents[-1].parts) == 1
        assert contents[-1].parts[0].text == ""


class TestExchange:
    @pytest.mark.asyncio
    async def test_exchange_sends_system_instruction_and_search_tool(
        self, gemini_service: GeminiService
    ) -> None:
        mock_response = MagicMock()
        mock_response.text = "Exams start in March."

        with patch(
            "app.services.GeminiService.gemini_service.genai.Client"
        ) as MockClient:
            mock_client = MockClient.return_value
            mock_client.aio.models.generate_content = AsyncMock(
                return_value=mock_response
            )

            result = await gemini_service.exchange([], "When are exams?", [])

        assert result is mock_response
        MockClient.assert_called_once_with(api_key="test-key")

        call_kwargs = mock_client.aio.models.generate_content.call_args[1]
        assert call_kwargs["model"] == "gemini-test"
        assert len(call_kwargs["contents"]) == 1

        config = call_kwargs["config"]
        assert config.system_instruction == "You are a helpful school assistant."
        assert len(config.tools) == 1
        assert config.tools[0].google_search is not None

    @pytest.mark.asyncio
    async def test_client_is_created_once(self, gemini_service: GeminiService) -> None:
        with patch(
            "app.services.GeminiService.gemini_service.genai.Client"
        ) as MockClient:
            MockClient.return_value.aio.models.generate_content = AsyncMock(
                return_value=MagicMock()
            )

            await gemini_service.exchange([], "one", [])
            await gemini_service.exchange([], "two", [])

        assert MockClient.call_count == 1

    @pytest.mark.asyncio
    async def test_api_error_becomes_gateway_error(
        self, gemini_service: GeminiService
    ) -> None:
        with patch(
            "app.services.GeminiService.gemini_service.genai.Client"
        ) as MockClient:
            MockClient.return_value.aio.models.generate_content = AsyncMock(
                side_effect=Exception("503 Service Unavailable")
            )

            with pytest.raises(GatewayError) as exc_info:
                await gemini_service.exchange([], "Hello", [])

        assert "503" in str(exc_info.value.__cause__)

    @pytest.mark.asyncio
    async def test_missing_api_key_fails_on_first_exchange(
        self, logger: logging.Logger
    ) -> None:
        with patch(
            "app.services.GeminiService.gemini_service.genai.Client",
            side_effect=ValueError("Missing key inputs argument!"),
        ):
            service = GeminiService(api_key=None, system_prompt="x", logger=logger)

            with pytest.raises(GatewayError):
                await service.exchange([], "Hello", [])

    @pytest.mark.asyncio
    async def test_none_response_becomes_gateway_error(
        self, gemini_service: GeminiService
    ) -> None:
        with patch(
            "app.services.GeminiService.gemini_service.genai.Client"
        ) as MockClient:
            MockClient.return_value.aio.models.generate_content = AsyncMock(
                return_value=None
            )

            with pytest.raises(GatewayError):
                await gemini_service.exchange([], "Hello", [])


class TestExtractGroundingMetadata:
    def _response(self, grounding: object) -> MagicMock:
        candidate = MagicMock()
        candidate.grounding_metadata = grounding
        response = MagicMock()
        response.candidates = [candidate]
        return response

    def test_extracts_sources_and_queries(self) -> None:
        web = MagicMock()
        web.uri = "https://navodaya.gov.in"
        web.title = "Navodaya Vidyalaya Samiti"
        untitled = MagicMock()
        untitled.uri = "https://example.org/results"
        untitled.title = None
        grounding = MagicMock()
        grounding.grounding_chunks = [MagicMock(web=web), MagicMock(web=untitled)]
        grounding.web_search_queries = ["JNV Junagadh admission"]

        result = extract_grounding_metadata(self._response(grounding))

        assert result == {
            "sources": [
                {"uri": "https://navodaya.gov.in", "title": "Navodaya Vidyalaya Samiti"},
                {"uri": "https://example.org/results", "title": None},
            ],
            "search_queries": ["JNV Junagadh admission"],
        }

    def test_chunks_without_web_are_skipped(self) -> None:
        grounding = MagicMock()
        grounding.grounding_chunks = [MagicMock(web=None)]
        grounding.web_search_queries = ["exam dates"]

        result = extract_grounding_metadata(self._response(grounding))

        assert result == {"sources": [], "search_queries": ["exam dates"]}

    def test_no_candidates(self) -> None:
        response = MagicMock()
        response.candidates = []

        assert extract_grounding_metadata(response) is None

    def test_no_grounding_metadata(self) -> None:
        assert extract_grounding_metadata(self._response(None)) is None

    def test_empty_grounding_metadata(self) -> None:
        grounding = MagicMock()
        grounding.grounding_chunks = None
        grounding.web_search_queries = None

        assert extract_grounding_metadata(self._response(grounding)) is None
