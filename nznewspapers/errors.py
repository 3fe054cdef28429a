"""Exceptions raised by the import and reconciliation tools.

Every exception here is fatal for the current run: the CLI logs it and exits
with status 1. Records that are merely skipped are counted, never raised.
"""

from pathlib import Path
from typing import Optional


class NznError(Exception):
    """Base class for fatal import/reconciliation errors."""


class MissingInputError(NznError):
    """A required input file or directory does not exist."""

    def __init__(self, path: Path, what: str = "input file"):
        self.path = Path(path)
        self.what = what
        super().__init__(f"Missing {what}: {self.path}")


class DuplicateControlNumberError(NznError):
    """Two stored newspaper records claim the same MARC control number.

    The run aborts instead of merging the records, so the control number
    index can never point at the wrong newspaper.
    """

    def __init__(
        self,
        control_number: str,
        newspaper_id: str,
        title: Optional[str],
        existing_id: str,
        existing_title: Optional[str],
        genre: Optional[str] = None,
    ):
        self.control_number = control_number
        self.newspaper_id = newspaper_id
        self.existing_id = existing_id
        detail = f"{title} / {genre}" if genre else f"{title}"
        message = (
            f"Duplicate MARC number '{control_number}': {newspaper_id} ({detail}) "
            f"matches {existing_id} ({existing_title})"
        )
        super().__init__(message)


class RecordStoreError(NznError):
    """A stored newspaper record could not be read or written."""

    def __init__(self, message: str, path: Optional[Path] = None, original_error: Exception = None):
        super().__init__(message)
        self.path = path
        self.original_error = original_error

    @classmethod
    def from_malformed_json(cls, path: Path, error: Exception) -> "RecordStoreError":
        """Malformed JSON is never treated as an absent record."""
        return cls(f"Malformed newspaper record {path}: {error}", path=path, original_error=error)

    @classmethod
    def from_write_failure(cls, path: Path, error: Exception) -> "RecordStoreError":
        return cls(f"Failed to write {path}: {type(error).__name__}: {error}", path=path, original_error=error)


class MarcParseError(NznError):
    """A MARC chunk could not be decoded; parse errors are not retried."""

    def __init__(self, message: str, record_number: Optional[int] = None, original_error: Exception = None):
        super().__init__(message)
        self.record_number = record_number
        self.original_error = original_error
