import logging

from app.components.logger.logger_interface import LoggerInterface


DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ROOT_LOGGER_NAME = "studychat"


class Logger(LoggerInterface):
    def __init__(self, log_format: str | None = None, log_level: str | None = None):
        self.log_format = log_format or DEFAULT_LOG_FORMAT
        self.log_level = logging.getLevelName((log_level or "INFO").upper())
        if not isinstance(self.log_level, int):
            raise ValueError(f"Invalid log level: {log_level}")

        self._root = logging.getLogger(ROOT_LOGGER_NAME)
        self._root.setLevel(self.log_level)
        if not self._root.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(self.log_format))
            self._root.addHandler(handler)

    def get_logger(self, name: str) -> logging.Logger:
        return self._root.getChild(name)
