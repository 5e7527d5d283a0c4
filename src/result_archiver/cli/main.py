"""CLI entrypoint implementing `result-archiver build`."""

from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.table import Table

from ..archiving import DataArchive, DefaultArchiveManager, build_task_archives
from ..config import AppConfig, load_config
from ..logging_config import configure_logging
from ..packaging import ZipDataArchive, zip_archive_factory
from ..schemas import ReservedFilename
from ..utils import load_task_result

console = Console()


def _build_manager(config: AppConfig) -> DefaultArchiveManager:
    reserved: List[ReservedFilename] = []
    if config.archive.include_answers:
        reserved.append(ReservedFilename.ANSWERS)
    if config.archive.include_task_result:
        reserved.append(ReservedFilename.TASK_RESULT)
    return DefaultArchiveManager(config.archive, zip_archive_factory(config.dist_dir, reserved))


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="result-archiver", message="Result Archiver %(version)s")
def app() -> None:
    """Build upload archives from task result trees."""


@app.command("build")
@click.argument("result_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--config", "config_path", type=click.Path(exists=True, path_type=Path), default=None)
@click.option(
    "--dist-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Directory the archives are written to.",
)
@click.option("--schedule-id", type=str, default=None, help="Schedule identifier for the root archive.")
@click.option(
    "--abort-on-failure",
    is_flag=True,
    default=False,
    help="Stop the whole build when any archive fails instead of dropping it.",
)
@click.option("--verbose", is_flag=True, default=False, help="Increase logging verbosity.")
def build_command(
    result_path: Path,
    config_path: Optional[Path],
    dist_dir: Optional[Path],
    schedule_id: Optional[str],
    abort_on_failure: bool,
    verbose: bool,
) -> None:
    """Archive the task result tree stored at RESULT_PATH."""

    logger = configure_logging(verbose=verbose, logger_name="result_archiver.cli")
    config = load_config(config_path, dist_dir=dist_dir)
    if abort_on_failure:
        config.archive.continue_on_failure = False

    manager = _build_manager(config)
    try:
        task_result = load_task_result(result_path)
        archives = build_task_archives(manager, task_result, schedule_identifier=schedule_id)
    except Exception as exc:
        logger.exception("Archive build for %s aborted", result_path)
        console.print(f"Status: failed ({exc})", markup=False)
        raise SystemExit(1)

    table = Table(title="Archive Summary", show_lines=True)
    table.add_column("Archive")
    table.add_column("Files")
    table.add_column("Output")

    for archive in archives:
        table.add_row(archive.identifier, _describe_files(archive), _describe_output(archive))

    console.print(table)
    console.print(f"Archives: {len(archives)}")
    console.print("Status: succeeded")


def _describe_files(archive: DataArchive) -> str:
    if isinstance(archive, ZipDataArchive):
        return ", ".join(archive.filenames)
    return ""


def _describe_output(archive: DataArchive) -> str:
    output_path = getattr(archive, "output_path", None)
    return str(output_path) if output_path else ""


if __name__ == "__main__":  # pragma: no cover
    app()
