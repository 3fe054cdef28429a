"""Import the tab-separated newspaper registry export into the record store.

Each row is merged into ``<paper_dir>/<id>.json``. Column labels become
record keys:

    Id              -> id
    Current?        -> is-current
    Placecode       -> nzn-placecode
    Modified At/By  -> dropped
    anything else   -> lower-kebab-case ("First Year" -> "first-year")

Empty cells never overwrite stored values.
"""

import csv
from collections import Counter
from pathlib import Path
from typing import Dict, Iterator, Optional

from pydantic import BaseModel, Field

from nznewspapers.errors import MissingInputError
from nznewspapers.marc.text import kebab_case
from nznewspapers.store.newspaper_store import NewspaperStore
from nznewspapers.utils.logger import LoggerManager

REGISTRY_FILENAME = "newspapers.txt"

COLUMN_RENAMES: Dict[str, str] = {
    "Id": "id",
    "Current?": "is-current",
    "Placecode": "nzn-placecode",
}
DROPPED_COLUMNS = {"Modified At", "Modified By"}

IMPORT_SOURCE = "Imported from the nznewspapers registry export {name}."

logger = LoggerManager.get_logger("import_registry")


class ImportReport(BaseModel):
    """Summary of one registry import."""

    source_file: str
    rows: int = 0
    written: int = 0
    skipped_no_id: int = 0
    genre_counts: Dict[str, int] = Field(default_factory=dict)


def map_row(row: Dict[str, Optional[str]]) -> Dict[str, str]:
    """Translate one registry row into record keys."""
    fields: Dict[str, str] = {}
    for column, raw in row.items():
        if column is None or column in DROPPED_COLUMNS:
            continue
        value = (raw or "").strip()
        if column in COLUMN_RENAMES:
            key = COLUMN_RENAMES[column]
        else:
            if value == "":
                continue
            key = kebab_case(column)
        fields[key] = value
    return fields


def read_registry_rows(tsv_path: Path) -> Iterator[Dict[str, Optional[str]]]:
    """Yield header-keyed rows, skipping empty lines, cells trimmed."""
    with open(tsv_path, "r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f, delimiter="\t")
        if reader.fieldnames:
            reader.fieldnames = [name.strip() for name in reader.fieldnames]
        for row in reader:
            if not any((value or "").strip() for value in row.values() if isinstance(value, str)):
                continue
            yield row


def import_registry(tsv_path: Path, store: NewspaperStore) -> ImportReport:
    """Merge every registry row into the store.

    Args:
        tsv_path: Path to the registry export (newspapers.txt)
        store: Target newspaper store

    Returns:
        ImportReport with row and genre counts

    Raises:
        MissingInputError: if the export does not exist
    """
    tsv_path = Path(tsv_path)
    if not tsv_path.exists():
        logger.error(f"Missing input file: {tsv_path}")
        raise MissingInputError(tsv_path)

    logger.info(f"Input file: {tsv_path}")
    logger.info(f"Output dir: {store.paper_dir}")

    report = ImportReport(source_file=tsv_path.name)
    genres: Counter = Counter()
    source = IMPORT_SOURCE.format(name=tsv_path.name)

    for row in read_registry_rows(tsv_path):
        report.rows += 1
        fields = map_row(row)
        newspaper_id = fields.pop("id", "")
        if not newspaper_id:
            report.skipped_no_id += 1
            logger.warning(f"Registry row {report.rows} has no Id, skipped")
            continue

        store.merge(newspaper_id, fields, source)
        report.written += 1
        genres[(row.get("Genre") or "").strip()] += 1

    report.genre_counts = dict(genres)
    logger.info(f"Imported {report.written} of {report.rows} registry rows")
    logger.info(f"Genres: {report.genre_counts}")
    return report
