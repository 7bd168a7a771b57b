from app.dependencies.components import get_components
from app.dependencies.services import get_chat_service, get_gemini_service
from app.services.ChatService.chat_service_interface import ChatServiceInterface
from app.services.GeminiService.gemini_service_interface import GeminiServiceInterface


def bootstrap_chat(
    env: str = "development",
    config_path: str = "configuration",
) -> ChatServiceInterface:
    components = get_components(env=env, config_path=config_path)
    gemini: GeminiServiceInterface = get_gemini_service(components)

    chat: ChatServiceInterface = get_chat_service(components, gemini)
    return chat
