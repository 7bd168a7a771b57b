from abc import ABC, abstractmethod
from typing import Any, TypeVar

T = TypeVar("T")


class ConfigurationInterface(ABC):
    @abstractmethod
    def get_configuration(
        self, key: str, value_type: type[T], default: Any = None
    ) -> T:
        """
        Return the value stored under key, converted to value_type.

        Raises:
            KeyError: if the key is missing and no default is given.
        """
