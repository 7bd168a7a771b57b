import os
from pathlib import Path
from typing import Any, TypeVar

import yaml

from app.components.configuration.configuration_interface import (
    ConfigurationInterface,
)

T = TypeVar("T")

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


class Configuration(ConfigurationInterface):
    """
    Key/value settings for one environment.

    Values come from ``<config_path>/<env>.yaml``; environment variables with
    the same key take precedence over the file.
    """

    def __init__(self, env: str, config_path: str) -> None:
        self.env = env
        self.config_file = Path(config_path) / f"{env}.yaml"
        self._values: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if not self.config_file.exists():
            return {}

        with self.config_file.open(encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}

        if not isinstance(data, dict):
            raise ValueError(
                f"Configuration file {self.config_file} must contain a mapping"
            )
        return data

    def get_configuration(
        self, key: str, value_type: type[T], default: Any = None
    ) -> T:
        value = os.getenv(key)
        if value is None:
            value = self._values.get(key)

        if value is None:
            if default is None:
                raise KeyError(
                    f"Configuration key {key} is not set for environment {self.env}"
                )
            value = default

        return self._convert(key, value, value_type)

    @staticmethod
    def _convert(key: str, value: Any, value_type: type[T]) -> T:
        if isinstance(value, value_type):
            return value

        if value_type is bool and isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_VALUES:
                return True  # type: ignore[return-value]
            if lowered in _FALSE_VALUES:
                return False  # type: ignore[return-value]
            raise ValueError(f"Configuration key {key} is not a boolean: {value}")

        try:
            return value_type(value)  # type: ignore[call-arg]
        except (TypeError, ValueError) as error:
            raise ValueError(
                f"Configuration key {key} cannot be read as {value_type.__name__}"
            ) from error
