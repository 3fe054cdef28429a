"""MARC21 parser for New Zealand National Bibliography newspaper records.

Reads ISO 2709 (binary) MARC files with pymarc and extracts the fields the
reconciler needs into a `ParsedBibRecord`. Only serials (Leader/06 ``a`` +
Leader/07 ``s``) whose 008/21 continuing resource type is ``n`` (newspaper)
are promoted; everything else is reported through `RecordKind` so the
caller can count it.
"""

import re
from pathlib import Path
from typing import Callable, Iterator, List, NamedTuple, Optional

import pymarc
from pymarc import MARCReader

from nznewspapers.errors import MarcParseError
from .dates import is_partial_date
from .models import ParsedBibRecord, ParseOutcome, RecordKind
from .places import normalize_place

CONTROL_NUMBER_PREFIX = "(Nz)"
NEWSPAPER_GENRE_PREFIX = "New Zealand newspapers"

SERIAL_RECORD_TYPE = "a"
SERIAL_BIB_LEVEL = "s"
NEWSPAPER_RESOURCE_TYPE = "n"

# Repeated-field policies
ACCUMULATE = "accumulate"
LAST_WINS = "last_wins"


def _nz_control_number(value: str) -> Optional[str]:
    if value.startswith(CONTROL_NUMBER_PREFIX):
        return value[len(CONTROL_NUMBER_PREFIX):]
    return None


def _clean_frequency(value: str) -> str:
    return re.sub(r"[.,?]+$", "", value.strip())


def _newspaper_genre(value: str) -> Optional[str]:
    return value if value.startswith(NEWSPAPER_GENRE_PREFIX) else None


def _as_is(value: str) -> str:
    return value


class ExtractionRule(NamedTuple):
    """One tag$subfield -> ParsedBibRecord attribute mapping.

    ``transform`` returns None to ignore a value (e.g. a 035 from another
    namespace) without touching the current attribute value.
    """

    tag: str
    code: str
    attribute: str
    policy: str
    transform: Callable[[str], Optional[str]] = _as_is


EXTRACTION_RULES: List[ExtractionRule] = [
    ExtractionRule("035", "a", "control_numbers", ACCUMULATE, _nz_control_number),
    ExtractionRule("245", "a", "title", LAST_WINS),
    ExtractionRule("245", "h", "medium", LAST_WINS),
    ExtractionRule("130", "a", "uniform_title", LAST_WINS),
    ExtractionRule("250", "a", "edition", LAST_WINS),
    ExtractionRule("300", "a", "physical_extent", LAST_WINS),
    ExtractionRule("310", "a", "frequency", LAST_WINS, _clean_frequency),
    ExtractionRule("655", "a", "genre", LAST_WINS, _newspaper_genre),
    ExtractionRule("260", "a", "raw_place", LAST_WINS),
]

# (tag, subfield, match, flag) - substring tests on 245$h and 300$a
FORMAT_FLAG_RULES = [
    ("245", "h", lambda v: v.startswith("[electronic resource]"), "is_electronic"),
    ("245", "h", lambda v: v.startswith("[microform]"), "is_microform"),
    ("300", "a", lambda v: "microf" in v, "is_microform"),
    ("300", "a", lambda v: "online resource" in v, "is_electronic"),
    ("300", "a", lambda v: "electronic documents" in v, "is_electronic"),
]


def _subfield_values(record: pymarc.Record, tag: str, code: str) -> Iterator[str]:
    for field in record.get_fields(tag):
        for value in field.get_subfields(code):
            yield value


def _partial_date(token: str) -> Optional[str]:
    # Blanks and fill characters ("    ", "||||") carry no date
    return token if is_partial_date(token) else None


def extract_general_info(record: pymarc.Record) -> dict:
    """Extract date and resource-type positions from the 008 field."""
    info = {}
    for field in record.get_fields("008"):
        data = field.data or ""
        info = {
            "date_on_file": data[0:6] or None,
            "type_of_date": data[6:7] or None,
            "date1": _partial_date(data[7:11]),
            "date2": _partial_date(data[11:15]),
            "continuing_resource_type": data[21:22] or None,
        }
    return info


def extract_fields(record: pymarc.Record) -> dict:
    """Apply EXTRACTION_RULES and FORMAT_FLAG_RULES to a record."""
    values: dict = {"control_numbers": []}

    for rule in EXTRACTION_RULES:
        for raw in _subfield_values(record, rule.tag, rule.code):
            value = rule.transform(raw)
            if value is None:
                continue
            if rule.policy == ACCUMULATE:
                values.setdefault(rule.attribute, []).append(value)
            else:
                values[rule.attribute] = value

    for tag, code, matches, flag in FORMAT_FLAG_RULES:
        if any(matches(v) for v in _subfield_values(record, tag, code)):
            values[flag] = True

    return values


def parse_marc_record(record: pymarc.Record) -> ParseOutcome:
    """Parse one MARC record.

    Args:
        record: pymarc.Record object

    Returns:
        ParseOutcome whose ``parsed`` is set only for newspaper serials
    """
    leader = str(record.leader)
    record_type = leader[6:7]
    bib_level = leader[7:8]

    if record_type != SERIAL_RECORD_TYPE or bib_level != SERIAL_BIB_LEVEL:
        return ParseOutcome(kind=RecordKind.NOT_SERIAL)

    general = extract_general_info(record)
    if general.get("continuing_resource_type") != NEWSPAPER_RESOURCE_TYPE:
        return ParseOutcome(kind=RecordKind.NOT_NEWSPAPER)

    fields = extract_fields(record)
    parsed = ParsedBibRecord(
        record_type=record_type,
        bibliographic_level=bib_level,
        placename=normalize_place(fields.get("raw_place")),
        **general,
        **fields,
    )
    return ParseOutcome(kind=RecordKind.NEWSPAPER, parsed=parsed)


def parse(record: pymarc.Record) -> Optional[ParsedBibRecord]:
    """Parse a record, returning None for anything that is not a newspaper."""
    return parse_marc_record(record).parsed


def iter_marc_file(marc_path: Path) -> Iterator[pymarc.Record]:
    """Stream records from an ISO 2709 file.

    Raises:
        MarcParseError: when pymarc cannot decode a record. The reader does
            not resynchronise after a bad chunk, so the run stops there.
    """
    with open(marc_path, "rb") as fh:
        reader = MARCReader(fh, to_unicode=True, force_utf8=True, utf8_handling="replace")
        for number, record in enumerate(reader, start=1):
            if record is None:
                error = reader.current_exception
                raise MarcParseError(
                    f"Failed to parse MARC record #{number} in {marc_path}: "
                    f"{type(error).__name__}: {error}",
                    record_number=number,
                    original_error=error,
                )
            yield record
