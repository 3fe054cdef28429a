from datetime import date, datetime
from pathlib import Path
from typing import Optional

from nznewspapers.store.newspaper_store import NewspaperStore
from nznewspapers.utils.config_loader import ConfigLoader
from nznewspapers.utils.logger import LoggerManager
from nznewspapers.utils.task_paths import TaskPaths

DEFAULTS = {
    "paths.paper_dir": "docs/data/papers",
    "paths.marc_dir": "docs/data/marc",
    "paths.marc_file": "data-import/Pubsnzapril2022.mrc",
    "paths.registry_dir": "data-import/2015-02-01-nznewspapers",
    "reconcile.source_label": "downloaded June 2022",
    "reconcile.last_load_date": "2013-04-02",
    "reconcile.progress_interval": 5,
    "logging.level": "INFO",
}


class Workspace:
    """
    The nznewspapers data checkout: where the records, MARC copies and
    import files live, resolved from an optional ``config.yml``.
    """

    def __init__(self, root_dir: str | Path, config_path: Optional[Path] = None):
        self.root_dir = Path(root_dir).resolve()
        self.task_paths = TaskPaths(project_root=self.root_dir)
        self._log = LoggerManager.get_logger(
            name="workspace", task_paths=self.task_paths, run_id=None, use_json=True,
        )

        default_config = self.root_dir / "config.yml"
        if config_path is None and default_config.exists():
            config_path = default_config
        # An explicit config must exist; ConfigLoader logs and raises
        self._loader = ConfigLoader(config_path, defaults=DEFAULTS)
        self.config = self._loader.as_dict()

        self.paper_dir = self._path("paths.paper_dir")
        self.marc_dir = self._path("paths.marc_dir")
        self.marc_file = self._path("paths.marc_file")
        self.registry_dir = self._path("paths.registry_dir")

        self._log.info(
            "workspace.paths",
            extra={"extra_data": {
                "root_dir": str(self.root_dir),
                "paper_dir": str(self.paper_dir),
                "marc_dir": str(self.marc_dir),
                "marc_file": str(self.marc_file),
            }},
        )

    def get(self, key: str):
        return self._loader.get(key)

    def _path(self, key: str) -> Path:
        path = Path(self.get(key))
        return path if path.is_absolute() else self.root_dir / path

    @property
    def source_label(self) -> str:
        return str(self.get("reconcile.source_label"))

    @property
    def progress_interval(self) -> float:
        return float(self.get("reconcile.progress_interval"))

    @property
    def log_level(self) -> str:
        return str(self.get("logging.level"))

    @property
    def last_load_date(self) -> Optional[date]:
        value = self.get("reconcile.last_load_date")
        if not value:
            return None
        if isinstance(value, date):
            return value
        text = str(value)
        fmt = "%y%m%d" if len(text) == 6 and text.isdigit() else "%Y-%m-%d"
        return datetime.strptime(text, fmt).date()

    def ensure_output_dirs(self) -> None:
        self.paper_dir.mkdir(parents=True, exist_ok=True)
        self.marc_dir.mkdir(parents=True, exist_ok=True)

    def store(self) -> NewspaperStore:
        return NewspaperStore(self.paper_dir, self.marc_dir)
