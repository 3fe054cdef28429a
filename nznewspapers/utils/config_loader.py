from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from nznewspapers.utils.logger import LoggerManager
from nznewspapers.utils.task_paths import TaskPaths

_MISSING = object()


class ConfigLoader:
    """
    Read-only view of a ``config.yml`` with dotted-key lookup.

    Keys absent from the file fall back to ``defaults``, a flat mapping of
    dotted keys (``{"paths.paper_dir": "docs/data/papers"}``). A loader built
    without a path serves the defaults alone.
    """

    def __init__(self, path: Optional[str | Path] = None, defaults: Optional[Mapping[str, Any]] = None):
        self.path = Path(path) if path is not None else None
        self.defaults = dict(defaults or {})
        self.config = self._load() if self.path is not None else {}

    @staticmethod
    def _logger():
        return LoggerManager.get_logger(
            name="config", task_paths=TaskPaths(), run_id=None, use_json=True
        )

    def _load(self) -> dict:
        log = self._logger()
        context = {"path": str(self.path)}
        if not self.path.exists():
            log.error("config.missing", extra={"extra_data": context})
            raise FileNotFoundError(f"Config file not found: {self.path}")

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            log.error("config.parse_failed", extra={"extra_data": {**context, "error": str(e)}})
            raise

        # An empty file is an empty config
        data = {} if data is None else data
        if not isinstance(data, dict):
            log.error("config.not_a_mapping", extra={"extra_data": context})
            raise ValueError(f"Invalid config (expected a mapping) at {self.path}")

        log.info("config.loaded", extra={"extra_data": {**context, "sections": sorted(data)}})
        return data

    def _lookup(self, key: str) -> Any:
        node: Any = self.config
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return _MISSING
            node = node[part]
        return node

    def get(self, key: str, default: Any = None) -> Any:
        """Value at a dotted key; then the loader defaults; then ``default``."""
        value = self._lookup(key)
        if value is _MISSING or value is None:
            return self.defaults.get(key, default)
        return value

    def section(self, name: str) -> dict:
        value = self._lookup(name)
        return dict(value) if isinstance(value, dict) else {}

    def as_dict(self) -> dict:
        return self.config
