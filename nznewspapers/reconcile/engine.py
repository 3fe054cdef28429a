"""Decides what to do with each parsed MARC newspaper record.

Given a `ParsedBibRecord` and the run's `IdentifierIndex`, `classify()`
returns a `Decision`:

- ``skip``: the first matching rule in `SKIP_RULES` (no control number,
  microform, electronic, infrequent, place not of interest)
- ``unchanged``: matched a stored newspaper but nothing would change
- ``update``: matched a stored newspaper and some dates are more specific
- ``create``: no stored newspaper claims the control number

The engine never writes; the run coordinator persists decisions.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

from pydantic import BaseModel, Field

from nznewspapers.errors import RecordStoreError
from nznewspapers.marc.dates import ONGOING_DATE, is_more_specific, is_partial_date
from nznewspapers.marc.models import ParsedBibRecord
from nznewspapers.marc.text import title_cleanup
from nznewspapers.store.models import UNKNOWN_PLACE, NewspaperRecord
from . import stats as counters
from .index import IdentifierIndex

DEFAULT_GENRE = "Unknown"
DEFAULT_SOURCE_LABEL = "downloaded June 2022"

UPDATE_NOTE = (
    "Date updated from the New Zealand National Bibliography "
    "(MARC record {number}) {source_label}."
)
CREATE_NOTE = (
    "Extracted from the New Zealand National Bibliography "
    "(MARC record {number}) {source_label}."
)


class Action(str, Enum):
    SKIP = "skip"
    UNCHANGED = "unchanged"
    UPDATE = "update"
    CREATE = "create"


class SkipRule(NamedTuple):
    label: str
    applies: Callable[[ParsedBibRecord], bool]


# Evaluated in order; the first rule that applies decides the skip reason
SKIP_RULES: List[SkipRule] = [
    SkipRule(counters.SKIPPED_NO_CONTROL_NUMBER, lambda p: not p.control_number),
    SkipRule(counters.SKIPPED_MICROFORM, lambda p: p.is_microform),
    SkipRule(counters.SKIPPED_ELECTRONIC, lambda p: p.is_electronic),
    SkipRule(counters.SKIPPED_INFREQUENT, lambda p: p.is_infrequent),
    SkipRule(counters.SKIPPED_PLACENAME, lambda p: not p.placename),
]


class Decision(BaseModel):
    """Outcome of classifying one parsed record."""

    action: Action
    labels: List[str] = Field(default_factory=list, description="Stats counters to increment")
    newspaper_id: Optional[str] = None
    control_number: Optional[str] = None
    record: Optional[NewspaperRecord] = Field(None, description="Record to persist (update/create)")
    changes: Dict[str, Tuple[Any, Any]] = Field(default_factory=dict, description="field -> (old, new)")
    note: Optional[str] = Field(None, description="Change annotation passed to the store")

    @property
    def reason(self) -> str:
        return self.labels[0] if self.labels else self.action.value

    @property
    def needs_write(self) -> bool:
        return self.action in (Action.UPDATE, Action.CREATE)


def skip_reason(parsed: ParsedBibRecord) -> Optional[str]:
    for rule in SKIP_RULES:
        if rule.applies(parsed):
            return rule.label
    return None


def parse_file_date(value: Optional[str]) -> Optional[date]:
    """008/00-05 ``yymmdd`` to a date; None if absent or malformed."""
    if not value:
        return None
    try:
        return datetime.strptime(value, "%y%m%d").date()
    except ValueError:
        return None


def compute_update(current: NewspaperRecord, parsed: ParsedBibRecord) -> Tuple[NewspaperRecord, Dict[str, Tuple[Any, Any]]]:
    """Apply the catalogue dates to a stored record where they are more specific.

    Returns:
        (updated record, changes); changes is empty when nothing differs
    """
    changes: Dict[str, Tuple[Any, Any]] = {}
    first_year = current.first_year
    final_year = current.final_year

    if is_partial_date(parsed.date1) and first_year != parsed.date1 and is_more_specific(first_year, parsed.date1):
        changes["first_year"] = (first_year, parsed.date1)
        first_year = parsed.date1

    if is_partial_date(parsed.date2) and final_year != parsed.date2 and is_more_specific(final_year, parsed.date2):
        changes["final_year"] = (final_year, parsed.date2)
        final_year = parsed.date2

    is_current = final_year == ONGOING_DATE
    if current.is_current != is_current:
        changes["is_current"] = (current.is_current, is_current)

    if not changes:
        return current, changes

    updated = current.model_copy(
        update={"first_year": first_year, "final_year": final_year, "is_current": is_current},
        deep=True,
    )
    return updated, changes


def build_new_record(newspaper_id: str, control_number: str, parsed: ParsedBibRecord, index: IdentifierIndex) -> NewspaperRecord:
    """New newspaper record from a catalogue entry with no stored match."""
    place = index.place(parsed.placename) or UNKNOWN_PLACE
    return NewspaperRecord(
        id=newspaper_id,
        title=title_cleanup(parsed.title) or None,
        genre=DEFAULT_GENRE,
        id_marc_control_number=control_number,
        is_current=parsed.is_currently_published,
        first_year=parsed.date1,
        final_year=parsed.date2,
        frequency=parsed.frequency or None,
        placename=parsed.placename,
        placecode=place.placecode,
        district=place.district,
        region=place.region,
    )


def classify(
    parsed: ParsedBibRecord,
    index: IdentifierIndex,
    load_record: Callable[[str], Optional[NewspaperRecord]],
    source_label: str = DEFAULT_SOURCE_LABEL,
    last_load_date: Optional[date] = None,
) -> Decision:
    """Classify a parsed record against the index.

    Args:
        parsed: Parsed MARC newspaper record
        index: Control number index and place table for this run
        load_record: Returns the current state of a stored newspaper
        source_label: Describes the catalogue extract in change notes
        last_load_date: Creates for records entered after this date are
            also counted as new since the last load

    Returns:
        Decision; for ``create`` a fresh id has been allocated from the index
    """
    reason = skip_reason(parsed)
    if reason:
        return Decision(action=Action.SKIP, labels=[reason], control_number=parsed.control_number)

    match = index.resolve(parsed.control_numbers)
    if match:
        control_number, newspaper_id = match
        current = load_record(newspaper_id)
        if current is None:
            raise RecordStoreError(f"Indexed newspaper {newspaper_id} has no stored record")

        updated, changes = compute_update(current, parsed)
        if not changes:
            return Decision(
                action=Action.UNCHANGED,
                labels=[counters.EXISTING_RECORD],
                newspaper_id=newspaper_id,
                control_number=control_number,
            )
        return Decision(
            action=Action.UPDATE,
            labels=[counters.EXISTING_RECORD, counters.EXISTING_RECORD_UPDATED],
            newspaper_id=newspaper_id,
            control_number=control_number,
            record=updated,
            changes=changes,
            note=UPDATE_NOTE.format(number=control_number, source_label=source_label),
        )

    control_number = parsed.control_number
    newspaper_id = index.allocate_id()
    record = build_new_record(newspaper_id, control_number, parsed, index)

    decision_labels = [counters.NEW_RECORD]
    entered = parse_file_date(parsed.date_on_file)
    if last_load_date and entered and entered > last_load_date:
        decision_labels.append(counters.NEW_RECORD_SINCE_LAST_LOAD)

    return Decision(
        action=Action.CREATE,
        labels=decision_labels,
        newspaper_id=newspaper_id,
        control_number=control_number,
        record=record,
        changes={name: (None, value) for name, value in record.model_dump(exclude_none=True).items() if name != "revision"},
        note=CREATE_NOTE.format(number=control_number, source_label=source_label),
    )
