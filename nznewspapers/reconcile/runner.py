"""Batch reconciliation of a MARC file against the newspaper record store.

`ReconcileRun` streams MARC records one at a time through the parser and the
decision engine, writes at most one newspaper record per entry (as the run
mode allows) and keeps the run statistics.

States::

    idle -> streaming -> draining -> done
      \\________\\___________\\______-> fatal

``fatal`` is entered on a duplicate control number, an undecodable MARC
record, an unreadable stored record or a failed write; the error is re-raised
to the caller after the progress timer is stopped.
"""

from datetime import date
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, NamedTuple, Optional

import pymarc

from nznewspapers.marc.dates import describe_partial_date
from nznewspapers.marc.models import RecordKind
from nznewspapers.marc.parse import iter_marc_file, parse_marc_record
from nznewspapers.store.models import NewspaperRecord
from nznewspapers.store.newspaper_store import NewspaperStore
from nznewspapers.utils.logger import LoggerManager
from nznewspapers.utils.logger_context import with_context
from nznewspapers.utils.task_paths import TaskPaths
from . import stats as counters
from .engine import DEFAULT_SOURCE_LABEL, Action, Decision, classify
from .index import IdentifierIndex
from .progress import DEFAULT_INTERVAL_SECONDS, ProgressTicker
from .stats import RunStats


class RunMode(str, Enum):
    REPORT = "report"
    ADD_NEW_RECORDS = "add-new-records"
    UPDATE_EXISTING_RECORDS = "update-existing-records"
    UPDATE_MARC_FILES = "update-marc-files"

    @classmethod
    def from_arg(cls, value: Optional[str]) -> Optional["RunMode"]:
        """Case-insensitive lookup; None for unknown values."""
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class RunState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    DRAINING = "draining"
    DONE = "done"
    FATAL = "fatal"


class WritePolicy(NamedTuple):
    """What a run mode is allowed to persist."""

    creates: bool
    updates: bool
    marc_actions: FrozenSet[Action]


WRITE_POLICIES: Dict[RunMode, WritePolicy] = {
    # Dry run: decisions are counted, nothing touches the store
    RunMode.REPORT: WritePolicy(False, False, frozenset()),
    RunMode.ADD_NEW_RECORDS: WritePolicy(True, False, frozenset({Action.CREATE})),
    RunMode.UPDATE_EXISTING_RECORDS: WritePolicy(False, True, frozenset({Action.UPDATE})),
    # Archive copies only, for entries that already have a stored record
    RunMode.UPDATE_MARC_FILES: WritePolicy(False, False, frozenset({Action.UPDATE, Action.UNCHANGED})),
}


class ReconcileRun:
    """One pass of a MARC file over the newspaper store.

    Owns all per-run state: the identifier index, the statistics and the
    latest in-run state of every record this run created or updated.
    """

    def __init__(
        self,
        store: NewspaperStore,
        mode: RunMode = RunMode.REPORT,
        source_label: str = DEFAULT_SOURCE_LABEL,
        last_load_date: Optional[date] = None,
        progress_interval: float = DEFAULT_INTERVAL_SECONDS,
        run_id: Optional[str] = None,
        task_paths: Optional[TaskPaths] = None,
        log_level: str = "INFO",
    ):
        self.store = store
        self.mode = mode
        self.policy = WRITE_POLICIES[mode]
        self.source_label = source_label
        self.last_load_date = last_load_date
        self.progress_interval = progress_interval
        self.run_id = run_id

        self.state = RunState.IDLE
        self.stats = RunStats()
        self.index: Optional[IdentifierIndex] = None
        self.decisions: List[Decision] = []
        self._latest: Dict[str, NewspaperRecord] = {}

        base_logger = LoggerManager.get_logger(
            "reconcile", level=log_level, use_json=True,
            task_paths=task_paths or TaskPaths(), run_id=run_id,
        )
        # A logger cached by an earlier run keeps its handlers but takes this run's level
        LoggerManager.set_level(base_logger, log_level)
        self.logger = with_context(base_logger, mode=mode.value, run_id=run_id)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def prepare(self) -> IdentifierIndex:
        """Scan the store and build the control number index."""
        self.logger.info("Scanning existing newspaper records")
        records = self.store.read_all()
        self.index = IdentifierIndex.build(records)
        self.logger.info(
            f" * Read {len(records)} records, {len(self.index)} with MARC numbers, "
            f"{len(self.index.places)} places"
        )
        return self.index

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    def run_file(self, marc_path: Path) -> RunStats:
        self.logger.info(f"Launching MARC parser for {marc_path}")
        return self.run(iter_marc_file(marc_path))

    def run(self, records: Iterable[pymarc.Record]) -> RunStats:
        """Process every record, then log the final statistics.

        Raises:
            NznError: any fatal error; the run is left in the ``fatal`` state
        """
        if self.state is not RunState.IDLE:
            raise RuntimeError(f"Run already used (state={self.state.value})")

        ticker = ProgressTicker(self.log_progress, interval=self.progress_interval)
        try:
            if self.index is None:
                self.prepare()
            self.state = RunState.STREAMING
            ticker.start()
            for record in records:
                self.process(record)
            self.state = RunState.DRAINING
        except Exception as e:
            self.state = RunState.FATAL
            self.logger.error(f"Run aborted: {type(e).__name__}: {e}")
            raise
        finally:
            ticker.stop()

        self.logger.info("Finished processing MARC records")
        self.log_progress()
        self.state = RunState.DONE
        return self.stats

    def process(self, record: pymarc.Record) -> Optional[Decision]:
        """Parse, classify and (mode permitting) persist one MARC record."""
        self.stats.add(counters.RECORDS)
        outcome = parse_marc_record(record)
        if outcome.kind is RecordKind.NOT_SERIAL:
            return None

        self.stats.add(counters.SERIALS)
        if outcome.kind is RecordKind.NOT_NEWSPAPER:
            self.stats.add(counters.NOT_NEWSPAPER)
            return None

        self.stats.add(counters.NEWSPAPERS)
        decision = classify(
            outcome.parsed,
            self.index,
            self._load_record,
            source_label=self.source_label,
            last_load_date=self.last_load_date,
        )
        for label in decision.labels:
            self.stats.add(label)

        if decision.action is Action.CREATE:
            self.index.register(decision.control_number, decision.newspaper_id, decision.record.title)
        if decision.record is not None:
            self._latest[decision.newspaper_id] = decision.record
        if decision.action is not Action.SKIP:
            self.decisions.append(decision)
            self._log_decision(decision)

        self._persist(decision, record)
        return decision

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load_record(self, newspaper_id: str) -> Optional[NewspaperRecord]:
        if newspaper_id in self._latest:
            return self._latest[newspaper_id]
        return self.store.read(newspaper_id)

    def _is_stored(self, newspaper_id: str) -> bool:
        return self.store.paper_path(newspaper_id).exists()

    def _persist(self, decision: Decision, record: pymarc.Record) -> None:
        newspaper_id = decision.newspaper_id
        if decision.needs_write:
            allowed = self.policy.updates if self._is_stored(newspaper_id) else self.policy.creates
            if allowed:
                written = self.store.write(newspaper_id, decision.record, decision.note)
                self._latest[newspaper_id] = written
                self.stats.add(counters.RECORDS_WRITTEN)

        if (
            newspaper_id
            and decision.control_number
            and decision.action in self.policy.marc_actions
            and self._is_stored(newspaper_id)
        ):
            self.store.write_marc(newspaper_id, record)
            self.stats.add(counters.MARC_FILES_WRITTEN)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _log_decision(self, decision: Decision) -> None:
        described = {
            field: f"{old} -> {new}"
            + (f" ({describe_partial_date(new)})" if field.endswith("_year") else "")
            for field, (old, new) in decision.changes.items()
        }
        record_logger = self.logger.bind(
            newspaper_id=decision.newspaper_id, control_number=decision.control_number,
        )
        record_logger.debug(
            f"{decision.action.value} {decision.newspaper_id} (MARC {decision.control_number})",
            extra={"extra_data": {"action": decision.action.value, "changes": described}},
        )

    def log_progress(self) -> None:
        self.logger.info(
            self.stats.headline(self.mode.value),
            extra={"extra_data": {"stats": self.stats.snapshot()}},
        )
        self.logger.info(self.stats.summary())
