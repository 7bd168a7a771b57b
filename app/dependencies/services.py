import os
from pathlib import Path

from app.bootstrap.components import Components
from app.components.configuration.configuration_interface import (
    ConfigurationInterface,
)
from app.components.logger.logger_interface import LoggerInterface
from app.entities.message import Message
from app.services.AttachmentService.attachment_service import AttachmentService
from app.services.AttachmentService.attachment_service_interface import (
    AttachmentServiceInterface,
)
from app.services.ChatService.chat_service import ChatService
from app.services.ChatService.chat_service_interface import ChatServiceInterface
from app.services.ChatStore.chat_store import ChatStore
from app.services.GeminiService.gemini_service import DEFAULT_MODEL_NAME, GeminiService
from app.services.GeminiService.gemini_service_interface import GeminiServiceInterface


PROMPT_FILE_NAME = "assistant.prompt"


def _load_system_prompt(components: Components) -> str:
    configuration = components.get_component(ConfigurationInterface)
    prompt_path = Path(components.get_config_path()).parent / PROMPT_FILE_NAME

    try:
        system_prompt = prompt_path.read_text(encoding="utf-8").strip()
    except OSError:
        system_prompt = ""

    if not system_prompt:
        system_prompt = configuration.get_configuration("SYSTEM_PROMPT", str)

    return system_prompt


def get_gemini_service(components: Components) -> GeminiServiceInterface:
    """
    Create the Gemini gateway.

    The API key is read once here and checked only by the first request.
    """
    configuration = components.get_component(ConfigurationInterface)

    model_name = configuration.get_configuration(
        "MODEL_NAME", str, default=DEFAULT_MODEL_NAME
    )

    return GeminiService(
        api_key=os.getenv("GEMINI_API_KEY", "").strip() or None,
        system_prompt=_load_system_prompt(components),
        model_name=model_name,
        logger=components.get_component(LoggerInterface).get_logger("GeminiService"),
    )


def get_chat_store(components: Components) -> ChatStore:
    configuration = components.get_component(ConfigurationInterface)
    greeting = configuration.get_configuration("GREETING", str, default="").strip()

    initial_messages: list[Message] = []
    if greeting:
        initial_messages.append({"role": "model", "text": greeting, "files": []})

    return ChatStore(
        logger=components.get_component(LoggerInterface).get_logger("ChatStore"),
        initial_messages=initial_messages,
    )


def get_attachment_service(
    components: Components, store: ChatStore
) -> AttachmentServiceInterface:
    return AttachmentService(
        store=store,
        logger=components.get_component(LoggerInterface).get_logger(
            "AttachmentService"
        ),
    )


def get_chat_service(
    components: Components,
    gemini_service: GeminiServiceInterface | None = None,
) -> ChatServiceInterface:
    """Create a fresh chat session; each call starts a new conversation."""
    store = get_chat_store(components)

    return ChatService(
        store=store,
        attachment_service=get_attachment_service(components, store),
        gemini=gemini_service or get_gemini_service(components),
        logger=components.get_component(LoggerInterface).get_logger("ChatService"),
    )
