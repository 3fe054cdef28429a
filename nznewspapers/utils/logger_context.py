import logging
from typing import Any


class ContextLogger(logging.LoggerAdapter):
    """
    LoggerAdapter whose fixed fields land in ``record.extra_data``, where
    `JsonLogFormatter` writes them as top-level keys. Per-call
    ``extra={"extra_data": {...}}`` values win over the fixed fields.
    """

    def process(self, msg, kwargs):
        extra = kwargs.setdefault("extra", {})
        extra["extra_data"] = {**self.extra, **extra.get("extra_data", {})}
        return msg, kwargs

    def bind(self, **fields: Any) -> "ContextLogger":
        """New adapter on the same logger with additional fixed fields."""
        return ContextLogger(self.logger, {**self.extra, **fields})


def with_context(logger: logging.Logger, **ctx: Any) -> ContextLogger:
    """Attach fixed fields (run_id, mode, ...) to every line from ``logger``."""
    return ContextLogger(logger, ctx)
