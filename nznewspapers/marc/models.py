"""Data models for parsed MARC newspaper records."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .dates import ONGOING_DATE

# 310$a values too infrequent for a newspaper listing
INFREQUENT_FREQUENCIES = ("Annual", "Semiannual", "Quarterly", "Monthly")


class RecordKind(str, Enum):
    """How far a MARC record got through the serial/newspaper filters."""

    NOT_SERIAL = "not_serial"
    NOT_NEWSPAPER = "not_newspaper"
    NEWSPAPER = "newspaper"


class ParsedBibRecord(BaseModel):
    """Normalized fields extracted from one MARC newspaper record.

    All values are as catalogued except ``placename`` (normalized from
    ``raw_place``) and ``frequency`` (trailing punctuation removed).
    Absent tags leave the corresponding field None.
    """

    record_type: Optional[str] = Field(None, description="Leader/06 type of record")
    bibliographic_level: Optional[str] = Field(None, description="Leader/07 bibliographic level")

    # 008 general information
    date_on_file: Optional[str] = Field(None, description="008/00-05 date entered on file (yymmdd)")
    type_of_date: Optional[str] = Field(None, description="008/06 type of date/publication status")
    date1: Optional[str] = Field(None, description="008/07-10 beginning date (partial date)")
    date2: Optional[str] = Field(None, description="008/11-14 ending date (partial date)")
    continuing_resource_type: Optional[str] = Field(None, description="008/21 type of continuing resource")

    control_numbers: List[str] = Field(
        default_factory=list,
        description="035$a values with the (Nz) prefix removed, in record order"
    )
    title: Optional[str] = Field(None, description="245$a")
    medium: Optional[str] = Field(None, description="245$h")
    uniform_title: Optional[str] = Field(None, description="130$a")
    edition: Optional[str] = Field(None, description="250$a")
    physical_extent: Optional[str] = Field(None, description="300$a")
    frequency: Optional[str] = Field(None, description="310$a, trimmed")
    genre: Optional[str] = Field(None, description="655$a starting with 'New Zealand newspapers'")
    raw_place: Optional[str] = Field(None, description="260$a as catalogued")
    placename: Optional[str] = Field(None, description="Normalized 260$a, None when not of interest")

    is_electronic: bool = Field(False, description="Set from 245$h or 300$a")
    is_microform: bool = Field(False, description="Set from 245$h or 300$a")

    @property
    def control_number(self) -> Optional[str]:
        """Primary control number (the last one catalogued)."""
        return self.control_numbers[-1] if self.control_numbers else None

    @property
    def is_infrequent(self) -> bool:
        return self.frequency in INFREQUENT_FREQUENCIES

    @property
    def is_currently_published(self) -> bool:
        return self.date2 == ONGOING_DATE


class ParseOutcome(BaseModel):
    """Result of running one MARC record through the parser."""

    kind: RecordKind
    parsed: Optional[ParsedBibRecord] = None
