"""Shared builders for MARC records and newspaper stores."""

import json

import pytest
from pymarc import Field, Record, Subfield

SERIAL_LEADER = "00000cas a2200000 a 4500"
BOOK_LEADER = "00000cam a2200000 a 4500"


def make_008(entered="130101", type_of_date="c", date1="1970", date2="9999", resource="n"):
    """40-character serial 008 with the positions the parser reads."""
    return f"{entered}{type_of_date}{date1}{date2}nz dr {resource}".ljust(40, " ")


def make_newspaper_marc(
    control_numbers=("1234",),
    title="The evening post /",
    place="Wellington [N.Z.] :",
    frequency="Daily.",
    medium=None,
    extent=None,
    leader=SERIAL_LEADER,
    **fields_008,
):
    """Build a pymarc Record shaped like a national bibliography newspaper entry."""
    record = Record(leader=leader)
    record.add_field(Field(tag="008", data=make_008(**fields_008)))
    for number in control_numbers:
        record.add_field(Field(tag="035", indicators=[" ", " "], subfields=[Subfield(code="a", value=f"(Nz){number}")]))

    title_subfields = [Subfield(code="a", value=title)]
    if medium:
        title_subfields.append(Subfield(code="h", value=medium))
    record.add_field(Field(tag="245", indicators=["1", "4"], subfields=title_subfields))

    if place:
        record.add_field(Field(tag="260", indicators=[" ", " "], subfields=[Subfield(code="a", value=place)]))
    if extent:
        record.add_field(Field(tag="300", indicators=[" ", " "], subfields=[Subfield(code="a", value=extent)]))
    if frequency:
        record.add_field(Field(tag="310", indicators=[" ", " "], subfields=[Subfield(code="a", value=frequency)]))
    return record


@pytest.fixture
def marc_file(tmp_path):
    """Write records to an ISO 2709 file and return its path."""

    def _write(records, name="extract.mrc"):
        path = tmp_path / name
        with open(path, "wb") as fh:
            for record in records:
                fh.write(record.as_marc())
        return path

    return _write


@pytest.fixture
def paper_dir(tmp_path):
    path = tmp_path / "papers"
    path.mkdir()
    return path


@pytest.fixture
def seed_paper(paper_dir):
    """Write a raw JSON document into the paper directory."""

    def _seed(newspaper_id, **document):
        document.setdefault("id", newspaper_id)
        path = paper_dir / f"{newspaper_id}.json"
        path.write_text(json.dumps(document), encoding="utf-8")
        return path

    return _seed
