from datetime import datetime
from pathlib import Path
from typing import Optional


class TaskPaths:
    """
    Where the command line tools put their logs.

        <root>/logs/<name>.log                  command and component logs
        <root>/logs/runs/<run_id>/<name>.log    one directory per reconciliation run
    """

    def __init__(self, logs_root: str = "logs", project_root: Optional[Path] = None):
        base = Path(project_root) if project_root else Path()
        self.logs_root = base / logs_root

    def run_dir(self, run_id: str) -> Path:
        return self.logs_root / "runs" / run_id

    def get_log_path(self, run_id: Optional[str] = None, name: str = "nzn") -> str:
        """Log file for ``name``, creating its directory."""
        directory = self.run_dir(run_id) if run_id else self.logs_root
        directory.mkdir(parents=True, exist_ok=True)
        return str(directory / f"{name}.log")

    @staticmethod
    def new_run_id(prefix: str = "run") -> str:
        """Timestamped run identifier, e.g. ``reconcile_20220614_101500``."""
        return f"{prefix}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
