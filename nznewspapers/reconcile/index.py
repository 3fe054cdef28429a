"""Control number and place lookups built from the stored newspaper records."""

from typing import Dict, Iterable, Mapping, Optional, Tuple

from nznewspapers.errors import DuplicateControlNumberError
from nznewspapers.store.models import NewspaperRecord, PlaceRecord


class IdentifierIndex:
    """Bidirectional control number <-> newspaper id map plus the place table.

    Built once per run from the stored records and then owned by the run
    coordinator; the decision engine only reads it, the coordinator
    registers newly created records.
    """

    def __init__(self):
        self._id_by_number: Dict[str, str] = {}
        self._number_by_id: Dict[str, str] = {}
        self._titles: Dict[str, Optional[str]] = {}
        self._places: Dict[str, PlaceRecord] = {}
        self._next_id = 1

    @classmethod
    def build(cls, records: Mapping[str, NewspaperRecord]) -> "IdentifierIndex":
        """Index every stored record.

        Raises:
            DuplicateControlNumberError: two records claim one control number
        """
        index = cls()
        for newspaper_id, newspaper in records.items():
            number = newspaper.id_marc_control_number
            if number:
                if number in index._id_by_number:
                    existing_id = index._id_by_number[number]
                    raise DuplicateControlNumberError(
                        control_number=number,
                        newspaper_id=newspaper_id,
                        title=newspaper.title,
                        existing_id=existing_id,
                        existing_title=index._titles.get(existing_id),
                        genre=newspaper.genre,
                    )
                index._register(number, newspaper_id, newspaper.title)

            # First record seen for a place name defines its codes
            if newspaper.placename and newspaper.placename not in index._places:
                index._places[newspaper.placename] = newspaper.place()

            index._bump_next_id(newspaper_id)
        return index

    def _register(self, number: str, newspaper_id: str, title: Optional[str]) -> None:
        self._id_by_number[number] = newspaper_id
        self._number_by_id[newspaper_id] = number
        self._titles[newspaper_id] = title

    def _bump_next_id(self, newspaper_id: str) -> None:
        if newspaper_id.isdigit():
            self._next_id = max(self._next_id, int(newspaper_id) + 1)

    # ------------------------------------------------------------------

    def lookup(self, control_number: Optional[str]) -> Optional[str]:
        if not control_number:
            return None
        return self._id_by_number.get(control_number)

    def control_number_for(self, newspaper_id: str) -> Optional[str]:
        return self._number_by_id.get(newspaper_id)

    def resolve(self, control_numbers: Iterable[str]) -> Optional[Tuple[str, str]]:
        """Find the stored newspaper for any of a record's control numbers.

        Returns:
            (control_number, newspaper_id) for the last number that matches,
            or None
        """
        match = None
        for number in control_numbers:
            newspaper_id = self.lookup(number)
            if newspaper_id:
                match = (number, newspaper_id)
        return match

    def register(self, control_number: str, newspaper_id: str, title: Optional[str] = None) -> None:
        """Record a newly created newspaper so later entries resolve to it."""
        existing_id = self._id_by_number.get(control_number)
        if existing_id and existing_id != newspaper_id:
            raise DuplicateControlNumberError(
                control_number=control_number,
                newspaper_id=newspaper_id,
                title=title,
                existing_id=existing_id,
                existing_title=self._titles.get(existing_id),
            )
        self._register(control_number, newspaper_id, title)
        self._bump_next_id(newspaper_id)

    def allocate_id(self) -> str:
        """Next unused numeric newspaper id."""
        newspaper_id = str(self._next_id)
        self._next_id += 1
        return newspaper_id

    def place(self, placename: Optional[str]) -> Optional[PlaceRecord]:
        if not placename:
            return None
        return self._places.get(placename)

    @property
    def places(self) -> Dict[str, PlaceRecord]:
        return dict(self._places)

    def __len__(self) -> int:
        return len(self._id_by_number)
