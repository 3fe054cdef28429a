"""End-to-end reconciliation runs over a temporary store."""

import json
import logging
import threading

import pytest

from conftest import BOOK_LEADER, make_newspaper_marc
from nznewspapers.errors import DuplicateControlNumberError, MarcParseError, RecordStoreError
from nznewspapers.reconcile import stats
from nznewspapers.reconcile.engine import Action
from nznewspapers.reconcile.runner import WRITE_POLICIES, ReconcileRun, RunMode, RunState
from nznewspapers.store.newspaper_store import CHANGELOG_NAME, NewspaperStore


@pytest.fixture
def store(paper_dir, tmp_path, seed_paper):
    seed_paper(
        "1",
        title="Evening Post",
        idMarcControlNumber="1234",
        firstYear="19uu",
        finalYear="9999",
        isCurrent=True,
        placename="Wellington",
        placecode="wgtn",
        district="Wellington City",
        region="Wellington",
    )
    return NewspaperStore(paper_dir, tmp_path / "marc")


@pytest.fixture
def extract(marc_file):
    """Update for record 1, one new paper, one monthly and one book."""
    return marc_file([
        make_newspaper_marc(control_numbers=["1234"], date1="1865"),
        make_newspaper_marc(control_numbers=["9876"], title="Kaitaia times.", place="Kaitaia, N.Z. :"),
        make_newspaper_marc(control_numbers=["5555"], frequency="Monthly."),
        make_newspaper_marc(control_numbers=["4444"], leader=BOOK_LEADER),
    ])


def _document(paper_dir, newspaper_id):
    return json.loads((paper_dir / f"{newspaper_id}.json").read_text(encoding="utf-8"))


def _run(store, marc_path, mode):
    run = ReconcileRun(store, mode=mode)
    run.run_file(marc_path)
    return run


class TestModes:

    def test_report_is_a_dry_run(self, store, extract, paper_dir, tmp_path):
        before = (paper_dir / "1.json").read_text(encoding="utf-8")

        run = _run(store, extract, RunMode.REPORT)

        assert run.state is RunState.DONE
        assert sorted(p.name for p in paper_dir.iterdir()) == ["1.json"]
        assert (paper_dir / "1.json").read_text(encoding="utf-8") == before
        assert not (tmp_path / "marc").exists()

        assert run.stats.get(stats.RECORDS) == 4
        assert run.stats.get(stats.SERIALS) == 3
        assert run.stats.get(stats.NEWSPAPERS) == 3
        assert run.stats.get(stats.EXISTING_RECORD) == 1
        assert run.stats.get(stats.EXISTING_RECORD_UPDATED) == 1
        assert run.stats.get(stats.NEW_RECORD) == 1
        assert run.stats.get(stats.SKIPPED_INFREQUENT) == 1
        assert run.stats.get(stats.RECORDS_WRITTEN) == 0

    def test_add_new_records_only_creates(self, store, extract, paper_dir, tmp_path):
        run = _run(store, extract, RunMode.ADD_NEW_RECORDS)

        created = _document(paper_dir, "2")
        assert created["title"] == "Kaitaia Times"
        assert created["idMarcControlNumber"] == "9876"
        assert created["placename"] == "Kaitaia"
        assert created["placecode"] == "unknown"
        assert created["revision"] == 1
        assert (tmp_path / "marc" / "2.txt").exists()

        assert _document(paper_dir, "1")["firstYear"] == "19uu"
        assert not (tmp_path / "marc" / "1.txt").exists()
        assert run.stats.get(stats.RECORDS_WRITTEN) == 1
        assert run.stats.get(stats.MARC_FILES_WRITTEN) == 1

    def test_update_existing_records_only_updates(self, store, extract, paper_dir, tmp_path):
        _run(store, extract, RunMode.UPDATE_EXISTING_RECORDS)

        updated = _document(paper_dir, "1")
        assert updated["firstYear"] == "1865"
        assert updated["revision"] == 1
        assert not (paper_dir / "2.json").exists()
        assert (tmp_path / "marc" / "1.txt").exists()

        changelog = (paper_dir / CHANGELOG_NAME).read_text(encoding="utf-8")
        assert "(MARC record 1234) downloaded June 2022." in changelog

    def test_update_marc_files_writes_copies_only(self, store, extract, paper_dir, tmp_path):
        run = _run(store, extract, RunMode.UPDATE_MARC_FILES)

        assert (tmp_path / "marc" / "1.txt").exists()
        assert not (tmp_path / "marc" / "2.txt").exists()
        assert _document(paper_dir, "1")["firstYear"] == "19uu"
        assert run.stats.get(stats.RECORDS_WRITTEN) == 0
        assert run.stats.get(stats.MARC_FILES_WRITTEN) == 1

    def test_update_marc_files_covers_unchanged_matches(self, store, marc_file, tmp_path):
        path = marc_file([make_newspaper_marc(control_numbers=["1234"], date1="1uuu")])

        run = _run(store, path, RunMode.UPDATE_MARC_FILES)

        assert run.decisions[0].action is Action.UNCHANGED
        assert (tmp_path / "marc" / "1.txt").exists()
        assert Action.CREATE not in WRITE_POLICIES[RunMode.UPDATE_MARC_FILES].marc_actions


class TestRevisionsAndIdempotency:

    def test_create_then_update(self, store, marc_file, paper_dir):
        _run(store, marc_file([make_newspaper_marc(control_numbers=["9876"], date1="19uu")], "first.mrc"),
             RunMode.ADD_NEW_RECORDS)
        assert _document(paper_dir, "2")["revision"] == 1

        _run(store, marc_file([make_newspaper_marc(control_numbers=["9876"], date1="1903")], "second.mrc"),
             RunMode.UPDATE_EXISTING_RECORDS)
        document = _document(paper_dir, "2")
        assert document["revision"] == 2
        assert document["firstYear"] == "1903"

    def test_rerun_changes_nothing(self, store, extract):
        _run(store, extract, RunMode.ADD_NEW_RECORDS)
        _run(store, extract, RunMode.UPDATE_EXISTING_RECORDS)

        for mode in (RunMode.ADD_NEW_RECORDS, RunMode.UPDATE_EXISTING_RECORDS):
            run = _run(store, extract, mode)
            assert run.stats.get(stats.NEW_RECORD) == 0
            assert run.stats.get(stats.EXISTING_RECORD_UPDATED) == 0
            assert run.stats.get(stats.RECORDS_WRITTEN) == 0
            assert run.stats.get(stats.EXISTING_RECORD) == 2

    def test_repeated_number_in_one_extract_creates_once(self, store, marc_file, paper_dir):
        path = marc_file([
            make_newspaper_marc(control_numbers=["9876"], date1="19uu"),
            make_newspaper_marc(control_numbers=["9876"], date1="1903"),
        ])

        run = _run(store, path, RunMode.ADD_NEW_RECORDS)

        assert run.stats.get(stats.NEW_RECORD) == 1
        assert run.stats.get(stats.EXISTING_RECORD) == 1
        assert sorted(p.name for p in paper_dir.glob("*.json")) == ["1.json", "2.json"]


class TestFailures:

    def test_duplicate_control_number_is_fatal(self, store, seed_paper, extract, paper_dir):
        seed_paper("7", title="Evening Post (copy)", idMarcControlNumber="1234")
        run = ReconcileRun(store, mode=RunMode.UPDATE_EXISTING_RECORDS, progress_interval=0.01)

        with pytest.raises(DuplicateControlNumberError):
            run.run_file(extract)

        assert run.state is RunState.FATAL
        assert _document(paper_dir, "1")["firstYear"] == "19uu"
        assert not any(t.name == "reconcile-progress" and t.is_alive() for t in threading.enumerate())

    def test_undecodable_marc_is_fatal(self, store, tmp_path):
        path = tmp_path / "broken.mrc"
        path.write_bytes(make_newspaper_marc(control_numbers=["1234"]).as_marc() + b"xxxxx")
        run = ReconcileRun(store, mode=RunMode.REPORT)

        with pytest.raises(MarcParseError):
            run.run_file(path)

        assert run.state is RunState.FATAL
        assert run.stats.get(stats.RECORDS) == 1
        assert not any(t.name == "reconcile-progress" and t.is_alive() for t in threading.enumerate())

    def test_malformed_stored_record_is_fatal(self, store, extract, paper_dir):
        (paper_dir / "3.json").write_text("{\"id\": \"3\",", encoding="utf-8")
        run = ReconcileRun(store, mode=RunMode.REPORT)

        with pytest.raises(RecordStoreError):
            run.run_file(extract)

        assert run.state is RunState.FATAL
        assert run.stats.get(stats.RECORDS) == 0

    def test_failed_write_is_fatal(self, store, extract, paper_dir, tmp_path):
        (tmp_path / "marc").write_text("not a directory", encoding="utf-8")
        run = ReconcileRun(store, mode=RunMode.UPDATE_EXISTING_RECORDS)

        with pytest.raises(RecordStoreError):
            run.run_file(extract)

        assert run.state is RunState.FATAL
        assert run.stats.get(stats.RECORDS) == 1
        assert not any(t.name == "reconcile-progress" and t.is_alive() for t in threading.enumerate())

    def test_run_is_single_use(self, store, extract):
        run = _run(store, extract, RunMode.REPORT)
        with pytest.raises(RuntimeError):
            run.run_file(extract)


def test_later_run_applies_its_log_level(store, extract):
    _run(store, extract, RunMode.REPORT)
    run = ReconcileRun(store, mode=RunMode.REPORT, log_level="DEBUG")

    assert run.logger.logger.level == logging.DEBUG
    assert all(h.level == logging.DEBUG for h in run.logger.logger.handlers)

    ReconcileRun(store, mode=RunMode.REPORT, log_level="WARNING")
    assert run.logger.logger.level == logging.WARNING


def test_run_mode_from_arg():
    assert RunMode.from_arg("Add-New-Records") is RunMode.ADD_NEW_RECORDS
    assert RunMode.from_arg("report") is RunMode.REPORT
    assert RunMode.from_arg("publish") is None
    assert RunMode.from_arg(None) is None
