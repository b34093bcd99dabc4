import logging
import sys
from typing import Any

from stackline.core.ports.logger import Logger

DEFAULT_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


class _KeyValueFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        context = getattr(record, 'context', None)
        if not context:
            return base
        pairs = ' '.join(
            f'{key}={value!r}' for key, value in sorted(context.items())
        )
        return f'{base} | {pairs}'


class ConsoleLogger(Logger):
    """Logs to stderr so the command line output on stdout stays parseable."""

    def __init__(self, name: str, level: int | str = logging.WARNING) -> None:
        self._logger = logging.getLogger(name)
        self._logger.setLevel(
            level.upper() if isinstance(level, str) else level
        )
        if not self._logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(_KeyValueFormatter(DEFAULT_FORMAT))
            self._logger.addHandler(handler)
        self._logger.propagate = False

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        self._logger.exception(message, extra={'context': kwargs})

    def _log(self, level: int, message: str, context: dict) -> None:
        self._logger.log(level, message, extra={'context': context})
