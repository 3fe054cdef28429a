"""Command line tests for the import and reconcile commands."""

import json

import pytest
from typer.testing import CliRunner

from app.cli import app
from conftest import make_newspaper_marc

runner = CliRunner()


@pytest.fixture
def checkout(tmp_path, marc_file):
    """A data checkout with one stored paper and a two-record extract."""
    papers = tmp_path / "papers"
    papers.mkdir()
    (papers / "1.json").write_text(
        json.dumps({"id": "1", "title": "Evening Post", "idMarcControlNumber": "1234", "firstYear": "19uu",
                    "finalYear": "9999", "isCurrent": True, "placename": "Wellington"}),
        encoding="utf-8",
    )
    (tmp_path / "config.yml").write_text(
        "paths:\n  paper_dir: papers\n  marc_dir: marc\n  marc_file: extract.mrc\n  registry_dir: registry\n",
        encoding="utf-8",
    )
    marc_file([
        make_newspaper_marc(control_numbers=["1234"], date1="1865"),
        make_newspaper_marc(control_numbers=["9876"], place="Kaitaia, N.Z. :"),
    ])
    return tmp_path


class TestReconcileCommand:

    def test_report(self, checkout):
        result = runner.invoke(app, ["reconcile", "report", "--root", str(checkout)])

        assert result.exit_code == 0, result.output
        assert "Parser mode: 'report': 2 papers / 2 serials / 2 records" in result.output
        assert " * count-new-record -> 1" in result.output
        assert not (checkout / "papers" / "2.json").exists()

    def test_unknown_mode_falls_back_to_report(self, checkout):
        result = runner.invoke(app, ["reconcile", "publish", "--root", str(checkout)])

        assert result.exit_code == 0, result.output
        assert "Parser mode: 'report'" in result.output

    def test_add_new_records(self, checkout):
        result = runner.invoke(app, ["reconcile", "add-new-records", "--root", str(checkout)])

        assert result.exit_code == 0, result.output
        created = json.loads((checkout / "papers" / "2.json").read_text(encoding="utf-8"))
        assert created["idMarcControlNumber"] == "9876"
        assert (checkout / "marc" / "2.txt").exists()

    def test_missing_marc_file(self, checkout):
        result = runner.invoke(
            app, ["reconcile", "report", "--root", str(checkout), "--marc-file", str(checkout / "none.mrc")]
        )
        assert result.exit_code == 1

    def test_blocked_output_dir_exits_1(self, checkout):
        (checkout / "marc").write_text("not a directory", encoding="utf-8")
        result = runner.invoke(app, ["reconcile", "add-new-records", "--root", str(checkout)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)

    def test_duplicate_control_number_exits_1(self, checkout):
        (checkout / "papers" / "7.json").write_text(
            json.dumps({"id": "7", "idMarcControlNumber": "1234"}), encoding="utf-8"
        )
        result = runner.invoke(app, ["reconcile", "update-existing-records", "--root", str(checkout)])
        assert result.exit_code == 1

    def test_malformed_record_exits_1(self, checkout):
        (checkout / "papers" / "3.json").write_text("{not json", encoding="utf-8")
        result = runner.invoke(app, ["reconcile", "report", "--root", str(checkout)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)

    def test_failed_write_exits_1(self, checkout):
        (checkout / "papers" / "_changes.jsonl").mkdir()
        result = runner.invoke(app, ["reconcile", "update-existing-records", "--root", str(checkout)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)


class TestImportRegistryCommand:

    def test_import(self, checkout):
        registry = checkout / "registry"
        registry.mkdir()
        (registry / "newspapers.txt").write_text(
            "Id\tTitle\tGenre\n3\tStar\tDaily\n", encoding="utf-8"
        )

        result = runner.invoke(app, ["import-registry", "--root", str(checkout)])

        assert result.exit_code == 0, result.output
        assert "Imported 1 records from newspapers.txt" in result.output
        assert " * Daily -> 1" in result.output
        assert json.loads((checkout / "papers" / "3.json").read_text(encoding="utf-8"))["title"] == "Star"

    def test_missing_export(self, checkout):
        result = runner.invoke(app, ["import-registry", str(checkout / "nowhere"), "--root", str(checkout)])
        assert result.exit_code == 1
