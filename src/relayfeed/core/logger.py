"""
Structured logging with key=value and JSON output support.

Wraps the standard library ``logging`` module so that every relay, timer and
publish event can carry structured context (``url=...``, ``sub_id=...``)
without string formatting at the call site.

Two output modes are supported: human-readable key=value pairs (default) and
JSON objects for log aggregators. ``StructuredFormatter`` is a stdlib
``logging.Formatter`` that reads the ``structured_kv`` extra attached by
[Logger][relayfeed.core.logger.Logger]; when installed on the root handler it
unifies output from ``Logger`` and from plain ``logging.getLogger()`` calls
such as the one in ``utils.transport``.

Examples:
    ```python
    from relayfeed.core.logger import Logger

    logger = Logger("pool")
    logger.info("relay_connected", url="wss://yabu.me")
    # Output: relay_connected url=wss://yabu.me

    json_logger = Logger("pool", json_output=True)
    json_logger.info("relay_connected", url="wss://yabu.me")
    # Output: {"timestamp": "...", "level": "info", "service": "pool", ...}
    ```
"""

import datetime
import json
import logging
from typing import Any, ClassVar


def _truncate(value: str, max_value_length: int | None) -> str:
    if max_value_length and len(value) > max_value_length:
        dropped = len(value) - max_value_length
        return value[:max_value_length] + f"...<truncated {dropped} chars>"
    return value


def format_kv_pairs(
    kwargs: dict[str, Any],
    max_value_length: int | None = 1000,
    prefix: str = " ",
) -> str:
    """Format a dictionary as space-separated key=value pairs.

    Values are truncated to ``max_value_length`` characters. Values that are
    empty or contain whitespace, equals signs, or quotes are escaped and
    wrapped in double quotes.

    Args:
        kwargs: Key-value pairs to format.
        max_value_length: Maximum characters per value before truncation.
            Pass None to disable truncation.
        prefix: String prepended to the output (default: single space).

    Returns:
        Formatted string, e.g. ' url=wss://yabu.me reason="remote close"'.
        Returns an empty string if kwargs is empty.
    """
    if not kwargs:
        return ""

    parts = []
    for key, value in kwargs.items():
        s = _truncate(str(value), max_value_length)
        if not s or " " in s or "=" in s or '"' in s or "'" in s:
            escaped = s.replace("\\", "\\\\").replace('"', '\\"')
            parts.append(f'{key}="{escaped}"')
        else:
            parts.append(f"{key}={s}")

    return prefix + " ".join(parts)


class StructuredFormatter(logging.Formatter):
    """Formats log records as ``level name message key=value ...``.

    Records without ``structured_kv`` (plain ``logging.getLogger()`` calls)
    are emitted with the same prefix and no trailing pairs.
    """

    def format(self, record: logging.LogRecord) -> str:
        base = f"{record.levelname.lower()} {record.name} {record.getMessage()}"
        extra: dict[str, Any] = getattr(record, "structured_kv", {})
        if extra:
            base += format_kv_pairs(extra)
        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)
        return base


class Logger:
    """Structured logger that appends keyword arguments as extra fields.

    Every public method mirrors the standard logging API with an added
    ``**kwargs`` parameter holding the structured context.

    Examples:
        ```python
        logger = Logger("subscription")
        logger.info("subscription_started", sub_id="sub-1a2b3c4d", relays=4)
        # Output: subscription_started sub_id=sub-1a2b3c4d relays=4
        ```
    """

    _DEFAULT_MAX_VALUE_LENGTH: ClassVar[int] = 1000

    def __init__(
        self,
        name: str,
        *,
        json_output: bool = False,
        max_value_length: int | None = None,
    ) -> None:
        """Initialize a structured logger.

        Args:
            name: Logger name, typically the component name. Maps to the
                underlying ``logging.getLogger(name)`` call.
            json_output: If True, emit JSON objects instead of key=value pairs.
            max_value_length: Maximum character length for individual values
                before truncation. Defaults to 1000.
        """
        if max_value_length is None:
            max_value_length = self._DEFAULT_MAX_VALUE_LENGTH
        self._logger = logging.getLogger(name)
        self._json_output = json_output
        self._max_value_length = max_value_length

    @property
    def name(self) -> str:
        return self._logger.name

    def _format_json(self, msg: str, level: str, kwargs: dict[str, Any]) -> str:
        """Format message and kwargs as a JSON document.

        Includes ``timestamp`` (ISO 8601, UTC), ``level`` and ``service``
        (the logger name) next to the structured fields.
        """
        record = {
            "timestamp": datetime.datetime.now(datetime.UTC).isoformat(),
            "level": level,
            "service": self._logger.name,
            "message": msg,
            **kwargs,
        }
        return json.dumps(record, default=str)

    def _make_extra(self, kwargs: dict[str, Any]) -> dict[str, Any]:
        """Build the ``extra`` dict, pre-truncating long values."""
        if not kwargs:
            return {}
        truncated: dict[str, Any] = {}
        for key, value in kwargs.items():
            s = str(value)
            truncated[key] = (
                _truncate(s, self._max_value_length)
                if self._max_value_length and len(s) > self._max_value_length
                else value
            )
        return {"structured_kv": truncated}

    def _log(self, level: int, msg: str, kwargs: dict[str, Any], *, exc: bool = False) -> None:
        if not self._logger.isEnabledFor(level):
            return
        if self._json_output:
            label = "error" if exc else logging.getLevelName(level).lower()
            self._logger.log(level, self._format_json(msg, label, kwargs), exc_info=exc)
        else:
            self._logger.log(level, msg, extra=self._make_extra(kwargs), exc_info=exc)

    def debug(self, msg: str, **kwargs: Any) -> None:
        """Log a DEBUG level message with optional key=value pairs."""
        self._log(logging.DEBUG, msg, kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        """Log an INFO level message with optional key=value pairs."""
        self._log(logging.INFO, msg, kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        """Log a WARNING level message with optional key=value pairs."""
        self._log(logging.WARNING, msg, kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        """Log an ERROR level message with optional key=value pairs."""
        self._log(logging.ERROR, msg, kwargs)

    def critical(self, msg: str, **kwargs: Any) -> None:
        """Log a CRITICAL level message with optional key=value pairs."""
        self._log(logging.CRITICAL, msg, kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        """Log an ERROR level message with the active exception's traceback."""
        self._log(logging.ERROR, msg, kwargs, exc=True)
