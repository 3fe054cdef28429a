from pathlib import Path
from typing import Optional

import typer  # type: ignore

from nznewspapers.core.workspace import Workspace
from nznewspapers.errors import NznError
from nznewspapers.ingestion.registry_tsv import REGISTRY_FILENAME, import_registry
from nznewspapers.reconcile.runner import ReconcileRun, RunMode
from nznewspapers.store.newspaper_store import NewspaperStore
from nznewspapers.utils.logger import LoggerManager
from nznewspapers.utils.task_paths import TaskPaths

app = typer.Typer(help="Import and reconcile New Zealand newspaper records.")

cli_logger = LoggerManager.get_logger(
    name="cli",
    level="INFO",
    task_paths=TaskPaths(),
    run_id=None,
)


def _workspace(root: Path, config: Optional[Path]) -> Workspace:
    try:
        return Workspace(root, config_path=config)
    except FileNotFoundError as e:
        cli_logger.error(str(e))
        raise typer.Exit(code=1)


@app.command("import-registry")
def import_registry_command(
    input_dir: Optional[Path] = typer.Argument(
        None, help="Directory holding newspapers.txt (default from config)."
    ),
    json_dir: Optional[Path] = typer.Argument(
        None, help="Output directory for the per-newspaper JSON (default from config)."
    ),
    root: Path = typer.Option(Path("."), "--root", help="Data checkout root."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to config.yml."),
):
    """
    Merge the tab-separated registry export into the newspaper JSON records.
    """
    workspace = _workspace(root, config)
    input_dir = input_dir or workspace.registry_dir
    json_dir = json_dir or workspace.paper_dir
    input_file = input_dir / REGISTRY_FILENAME

    if not input_file.exists():
        cli_logger.error(f"Missing input file: {input_file}")
        raise typer.Exit(code=1)

    cli_logger.info(f"Input dir: {input_dir}")
    cli_logger.info(f"Output dir: {json_dir}")
    json_dir.mkdir(parents=True, exist_ok=True)

    try:
        report = import_registry(input_file, NewspaperStore(json_dir, workspace.marc_dir))
    except NznError as e:
        cli_logger.error(str(e))
        raise typer.Exit(code=1)

    typer.echo(f"Imported {report.written} records from {report.source_file}")
    for genre, count in sorted(report.genre_counts.items()):
        typer.echo(f" * {genre or '(none)'} -> {count}")


@app.command("reconcile")
def reconcile_command(
    mode: str = typer.Argument(
        RunMode.REPORT.value,
        help="report | add-new-records | update-existing-records | update-marc-files",
    ),
    marc_file: Optional[Path] = typer.Option(None, "--marc-file", help="MARC21 (ISO 2709) input file."),
    root: Path = typer.Option(Path("."), "--root", help="Data checkout root."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to config.yml."),
):
    """
    Reconcile a National Bibliography MARC file with the newspaper records.

    The default mode, report, is a dry run: nothing is written.
    """
    run_mode = RunMode.from_arg(mode)
    if run_mode is None:
        cli_logger.warning(f"Warning: unknown mode '{mode}', defaulting to 'report'")
        run_mode = RunMode.REPORT

    workspace = _workspace(root, config)
    marc_path = marc_file or workspace.marc_file
    if not marc_path.exists():
        cli_logger.error(f"Missing MARC file: {marc_path}")
        raise typer.Exit(code=1)
    if not workspace.paper_dir.is_dir():
        cli_logger.error(f"Missing newspaper directory: {workspace.paper_dir}")
        raise typer.Exit(code=1)

    run_id = TaskPaths.new_run_id("reconcile")
    cli_logger.info(f" * MARC input:    {marc_path}")
    cli_logger.info(f" * Newspaper dir: {workspace.paper_dir}")
    cli_logger.info(f" * MARC outputs:  {workspace.marc_dir}")
    cli_logger.info(f" * Mode:          {run_mode.value}")

    if run_mode is not RunMode.REPORT:
        try:
            workspace.ensure_output_dirs()
        except OSError as e:
            cli_logger.error(f"Cannot create output directories: {e}")
            raise typer.Exit(code=1)

    run = ReconcileRun(
        workspace.store(),
        mode=run_mode,
        source_label=workspace.source_label,
        last_load_date=workspace.last_load_date,
        progress_interval=workspace.progress_interval,
        run_id=run_id,
        task_paths=workspace.task_paths,
        log_level=workspace.log_level,
    )
    try:
        stats = run.run_file(marc_path)
    except NznError as e:
        cli_logger.error(f"Reconciliation failed: {e}")
        raise typer.Exit(code=1)

    typer.echo(stats.headline(run_mode.value))
    typer.echo(stats.summary())


def main():
    app()


if __name__ == "__main__":
    main()
