"""
Logging for the import and reconciliation commands.

`LoggerManager.get_logger()` hands out one configured `logging.Logger` per
name (and run): a console handler on stdout, colored with `colorlog`, and a
file handler writing either plain lines or JSON lines (`JsonLogFormatter`).

Reconciliation runs log structured progress snapshots, so their files are
JSON and live under ``logs/runs/<run_id>/``; see `TaskPaths`.
"""

import json
import logging
import os
import sys
from typing import Optional

from colorlog import ColoredFormatter

LINE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}


class LoggerManager:
    """
    Registry of named loggers.

    A logger is keyed by ``name`` or ``name-run_id``; asking again returns the
    same object, so handlers are attached once. Propagation is off: every
    line goes to exactly one console and one file.
    """

    _loggers = {}
    _default_log_dir = "logs"

    @classmethod
    def get_logger(
        cls,
        name: str,
        log_file: Optional[str] = None,
        level: str = "INFO",
        use_json: bool = False,
        use_color: bool = True,
        task_paths: Optional[object] = None,
        run_id: Optional[str] = None,
    ) -> logging.Logger:
        """
        Return the logger for ``name`` (and ``run_id``), creating it on first use.

        Args:
            name: Logger name, usually the command or component.
            log_file: Explicit log file path; wins over ``task_paths``.
            level: Threshold for both handlers ("DEBUG", "INFO", ...).
            use_json: Write the file as JSON lines.
            use_color: Color console output.
            task_paths: `TaskPaths` used to place the file (per run when
                ``run_id`` is given).
            run_id: Identifier of a reconciliation run.

        Returns:
            logging.Logger
        """
        key = f"{name}-{run_id}" if run_id else name
        if key in cls._loggers:
            return cls._loggers[key]

        logger = logging.getLogger(key)
        logger.setLevel(level.upper())
        logger.propagate = False
        logger.addHandler(cls._file_handler(cls._resolve_log_file(name, log_file, task_paths, run_id), level, use_json))
        logger.addHandler(cls._console_handler(level, use_color))

        cls._loggers[key] = logger
        return logger

    @classmethod
    def _resolve_log_file(cls, name: str, log_file: Optional[str], task_paths, run_id: Optional[str]) -> str:
        if not log_file and task_paths is not None:
            log_file = task_paths.get_log_path(run_id=run_id, name=name)
        if not log_file:
            log_file = os.path.join(cls._default_log_dir, f"{name}.log")
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        return log_file

    @staticmethod
    def set_level(logger: logging.Logger, level: str) -> None:
        """Apply ``level`` to a logger and all of its handlers."""
        logger.setLevel(level.upper())
        for handler in logger.handlers:
            handler.setLevel(level.upper())

    @classmethod
    def reset(cls) -> None:
        """Close and forget every logger handed out so far."""
        for logger in cls._loggers.values():
            for handler in logger.handlers[:]:
                handler.close()
                logger.removeHandler(handler)
        cls._loggers.clear()

    @staticmethod
    def _file_handler(path: str, level: str, use_json: bool) -> logging.Handler:
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setLevel(level.upper())
        handler.setFormatter(JsonLogFormatter() if use_json else logging.Formatter(LINE_FORMAT, DATE_FORMAT))
        return handler

    @staticmethod
    def _console_handler(level: str, use_color: bool) -> logging.Handler:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level.upper())
        if use_color:
            formatter = ColoredFormatter("%(log_color)s" + LINE_FORMAT, datefmt=DATE_FORMAT, log_colors=LOG_COLORS)
        else:
            formatter = logging.Formatter(LINE_FORMAT, DATE_FORMAT)
        handler.setFormatter(formatter)
        return handler


class JsonLogFormatter(logging.Formatter):
    """
    One JSON object per line.

    Fields passed as ``extra={"extra_data": {...}}`` become top-level keys::

        {"timestamp": "2022-06-14 10:15:00", "level": "INFO",
         "logger": "reconcile-reconcile_20220614_101500",
         "message": "Parser mode: 'report': 412 papers / 530 serials / 9310 records",
         "mode": "report", "run_id": "reconcile_20220614_101500", "stats": {...}}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(getattr(record, "extra_data", None) or {})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)
