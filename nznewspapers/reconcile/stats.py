"""Per-category counters for a reconciliation run."""

import threading
from collections import Counter
from typing import Dict

RECORDS = "records"
SERIALS = "serials"
NEWSPAPERS = "newspapers"
NOT_NEWSPAPER = "count-skipped-not-newspaper"

SKIPPED_NO_CONTROL_NUMBER = "count-skipped-no-nz-control-number"
SKIPPED_MICROFORM = "count-skipped-microform"
SKIPPED_ELECTRONIC = "count-skipped-electronic"
SKIPPED_INFREQUENT = "count-skipped-infrequent"
SKIPPED_PLACENAME = "count-skipped-placename"

EXISTING_RECORD = "count-existing-record"
EXISTING_RECORD_UPDATED = "count-existing-record-updated"
NEW_RECORD = "count-new-record"
NEW_RECORD_SINCE_LAST_LOAD = "count-new-record-since-last-load"

RECORDS_WRITTEN = "count-records-written"
MARC_FILES_WRITTEN = "count-marc-files-written"


class RunStats:
    """Thread-safe labelled counters.

    The progress ticker reads snapshots from its own thread while the run
    loop increments, so every access goes through one lock.
    """

    def __init__(self):
        self._counts: Counter = Counter()
        self._lock = threading.Lock()

    def add(self, label: str, amount: int = 1) -> None:
        with self._lock:
            self._counts[label] += amount

    def get(self, label: str) -> int:
        with self._lock:
            return self._counts.get(label, 0)

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(sorted(self._counts.items()))

    def headline(self, mode: str) -> str:
        snap = self.snapshot()
        return (
            f"Parser mode: '{mode}': {snap.get(NEWSPAPERS, 0)} papers / "
            f"{snap.get(SERIALS, 0)} serials / {snap.get(RECORDS, 0)} records"
        )

    def summary(self) -> str:
        lines = ["Stats"]
        for key, value in self.snapshot().items():
            if key.startswith("count-"):
                lines.append(f" * {key} -> {value}")
        return "\n".join(lines)
