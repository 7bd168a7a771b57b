import os
import sys
from pathlib import Path
from threading import Lock
from typing import Any, TypeVar, cast

from dotenv import load_dotenv
from openinference.instrumentation.google_genai import GoogleGenAIInstrumentor

from app.components.configuration.configuration import Configuration
from app.components.configuration.configuration_interface import (
    ConfigurationInterface,
)
from app.components.logger.logger import Logger
from app.components.logger.logger_interface import LoggerInterface


load_dotenv()


def _is_test_environment() -> bool:
    """
    Check if we are running in a test environment.

    Returns:
        True if running under pytest or if TESTING env var is set, False otherwise.
    """
    if any("pytest" in arg for arg in sys.argv):
        return True

    if os.getenv("TESTING", "").lower() in ("true", "1", "yes"):
        return True

    return False


def _tracing_configured() -> bool:
    """
    Decide whether Gemini calls should be traced.

    Tracing is enabled by either of two configurations:

    1.  **Langfuse Native Integration:** `LANGFUSE_PUBLIC_KEY`, `LANGFUSE_SECRET_KEY`
        and `LANGFUSE_BASE_URL` are all set.

    2.  **Manual OpenTelemetry Configuration:** `OTEL_EXPORTER_OTLP_ENDPOINT` is set,
        in which case `OTEL_EXPORTER_OTLP_HEADERS` is required as well.

    With neither present the client runs untraced.

    Raises:
        RuntimeError: If an OTLP endpoint is configured without headers.
    """
    langfuse_public_key: str = os.getenv("LANGFUSE_PUBLIC_KEY", "").strip()
    langfuse_secret_key: str = os.getenv("LANGFUSE_SECRET_KEY", "").strip()
    langfuse_base_url: str = os.getenv("LANGFUSE_BASE_URL", "").strip()

    if langfuse_public_key and langfuse_secret_key and langfuse_base_url:
        return True

    otel_endpoint: str = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "").strip()
    otel_headers: str = os.getenv("OTEL_EXPORTER_OTLP_HEADERS", "").strip()

    if not otel_endpoint:
        return False

    if not otel_headers:
        raise RuntimeError(
            "OTEL_EXPORTER_OTLP_HEADERS environment variable is not set or is empty. "
            "Please set OTEL_EXPORTER_OTLP_HEADERS (e.g., 'Authorization=Basic <base64_credentials>') "
            "or provide LANGFUSE_PUBLIC_KEY, LANGFUSE_SECRET_KEY and LANGFUSE_BASE_URL."
        )

    return True


T = TypeVar("T")


class ComponentsMeta(type):
    _instances: dict[tuple[type, str], "Components"] = {}
    _lock: Lock = Lock()

    def __call__(cls, *args, **kwargs):
        env = args[0] if args else kwargs.get("env")
        if env is None:
            raise ValueError("Environment must be provided")

        env_key = str(env)
        key = (cls, env_key)
        with cls._lock:
            if key not in cls._instances:
                instance = super().__call__(*args, **kwargs)
                cls._instances[key] = instance
        return cls._instances[key]


class Components(metaclass=ComponentsMeta):
    _instrumented: bool = False

    def __init__(self, env: str, config_path: str) -> None:
        self.__env: str = env
        root_dir: str = str(Path(__file__).resolve().parents[2])
        self.__config_path: str = os.path.join(root_dir, config_path)
        self.__components: dict[type[Any], Any] = self.__bootstrap_components()

    def __bootstrap_components(self) -> dict[type[Any], Any]:
        if self.__env in {"development", "staging", "production"}:
            return self.__get_components()

        raise ValueError(f"Invalid environment: {self.__env}")

    def __get_components(self) -> dict[type[Any], Any]:
        configuration: ConfigurationInterface = Configuration(
            self.__env, self.__config_path
        )

        logger: LoggerInterface = Logger(
            log_format=configuration.get_configuration("LOG_FORMAT", str, default=""),
            log_level=configuration.get_configuration("LOG_LEVEL", str, default="INFO"),
        )
        _logger_instance = logger.get_logger("Components")

        if not _is_test_environment() and not Components._instrumented:
            if _tracing_configured():
                GoogleGenAIInstrumentor().instrument()
                Components._instrumented = True
                _logger_instance.info("Gemini tracing instrumentation enabled")
            else:
                _logger_instance.info("Tracing not configured; Gemini calls are untraced")

        components: dict[type[Any], Any] = {
            ConfigurationInterface: configuration,
            LoggerInterface: logger,
        }

        return components

    def get_component(self, component_name: type[T]) -> T:
        if component_name not in self.__components:
            raise ValueError(f"Component {component_name} not found")

        return cast(T, self.__components[component_name])

    def get_config_path(self) -> str:
        return self.__config_path
