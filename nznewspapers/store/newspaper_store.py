"""Flat-file store of newspaper records.

One JSON document per newspaper id in ``paper_dir`` plus an archival MARC
text copy per id in ``marc_dir``. Every write bumps the record revision by
exactly one and appends the change annotation to ``_changes.jsonl``.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

import pymarc
from pydantic import ValidationError

from nznewspapers.errors import RecordStoreError
from nznewspapers.utils.logger import LoggerManager
from .models import NewspaperRecord

CHANGELOG_NAME = "_changes.jsonl"


class NewspaperStore:
    """Reads and writes ``<paper_dir>/<id>.json`` records.

    Attributes:
        paper_dir: Directory holding one JSON file per newspaper
        marc_dir: Directory holding the archival MARC text copies
    """

    def __init__(self, paper_dir: Path, marc_dir: Optional[Path] = None):
        self.paper_dir = Path(paper_dir)
        self.marc_dir = Path(marc_dir) if marc_dir else self.paper_dir.parent / "marc"
        self.changelog_path = self.paper_dir / CHANGELOG_NAME
        self.logger = LoggerManager.get_logger("store")

    def paper_path(self, newspaper_id: str) -> Path:
        return self.paper_dir / f"{newspaper_id}.json"

    def marc_path(self, newspaper_id: str) -> Path:
        return self.marc_dir / f"{newspaper_id}.txt"

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def read_raw(self, newspaper_id: str) -> Optional[dict]:
        """Return the stored JSON object, or None when the file does not exist.

        Raises:
            RecordStoreError: if the file exists but is not valid JSON
        """
        path = self.paper_path(newspaper_id)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            self.logger.error(f"Malformed newspaper record: {path}")
            raise RecordStoreError.from_malformed_json(path, e) from e
        except OSError as e:
            raise RecordStoreError(f"Failed to read {path}: {e}", path=path, original_error=e) from e
        if not isinstance(data, dict):
            raise RecordStoreError(f"Newspaper record {path} is not a JSON object", path=path)
        return data

    def read(self, newspaper_id: str) -> Optional[NewspaperRecord]:
        data = self.read_raw(newspaper_id)
        if data is None:
            return None
        data.setdefault("id", newspaper_id)
        try:
            return NewspaperRecord.model_validate(data)
        except ValidationError as e:
            raise RecordStoreError.from_malformed_json(self.paper_path(newspaper_id), e) from e

    def ids(self) -> list[str]:
        if not self.paper_dir.exists():
            return []
        return sorted(p.stem for p in self.paper_dir.glob("*.json"))

    def read_all(self) -> Dict[str, NewspaperRecord]:
        """Load every stored record, keyed by id (file stem)."""
        records = {}
        for newspaper_id in self.ids():
            records[newspaper_id] = self.read(newspaper_id)
        return records

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def write(self, newspaper_id: str, record: NewspaperRecord, source: str) -> NewspaperRecord:
        """Persist a record, replacing the stored document.

        The revision is taken from the stored file, not from ``record``, so
        it always advances by one per write (1 for a new file). Unmodelled
        keys already in the stored file are preserved.

        Returns:
            The record as written, with its new revision
        """
        existing = self.read_raw(newspaper_id) or {}
        document = {k: v for k, v in existing.items() if not self._is_superseded_key(k)}
        document.update(record.to_json_dict())
        document["id"] = newspaper_id
        document["revision"] = self._next_revision(existing)
        self._write_document(newspaper_id, document, source)
        return NewspaperRecord.model_validate(document)

    def merge(self, newspaper_id: str, fields: dict, source: str) -> dict:
        """Merge raw key/values into the stored document (registry import)."""
        existing = self.read_raw(newspaper_id) or {}
        document = dict(existing)
        document["id"] = newspaper_id
        document.update(fields)
        document["revision"] = self._next_revision(existing)
        self._write_document(newspaper_id, document, source)
        return document

    def write_marc(self, newspaper_id: str, record: pymarc.Record) -> Path:
        """Write the archival text serialization of a MARC record."""
        path = self.marc_path(newspaper_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as fh:
                writer = pymarc.TextWriter(fh)
                writer.write(record)
                writer.close(close_fh=False)
        except OSError as e:
            self.logger.error(f"Failed to write MARC copy {path}: {e}")
            raise RecordStoreError.from_write_failure(path, e) from e
        return path

    @staticmethod
    def _next_revision(existing: dict) -> int:
        revision = existing.get("revision")
        return int(revision) + 1 if revision else 1

    @staticmethod
    def _is_superseded_key(key: str) -> bool:
        """Registry-import keys replaced by their camelCase form on write."""
        return key in _LEGACY_KEYS

    def _write_document(self, newspaper_id: str, document: dict, source: str) -> None:
        path = self.paper_path(newspaper_id)
        entry = {
            "id": newspaper_id,
            "revision": document["revision"],
            "source": source,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(json.dumps(document, indent=2, ensure_ascii=False))
            with open(self.changelog_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False) + "\n")
        except OSError as e:
            self.logger.error(f"Failed to write newspaper record {path}: {e}")
            raise RecordStoreError.from_write_failure(path, e) from e

        self.logger.debug(
            f"Wrote {path.name} (revision {document['revision']})",
            extra={"extra_data": entry},
        )


_LEGACY_KEYS = {
    "marc-control-number",
    "is-current",
    "first-year",
    "final-year",
    "nzn-placecode",
}
