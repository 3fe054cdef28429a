"""Data model for the per-newspaper JSON records."""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class PlaceRecord(BaseModel):
    """Placecode/district/region triple for one canonical place name."""

    placecode: Optional[str] = None
    district: Optional[str] = None
    region: Optional[str] = None


UNKNOWN_PLACE = PlaceRecord(
    placecode="unknown",
    district="Unknown District",
    region="Unknown Region",
)


class NewspaperRecord(BaseModel):
    """One newspaper as stored in ``<paper_dir>/<id>.json``.

    Keys are written in camelCase (the form the static site reads). Records
    produced by the registry import use kebab-case column keys; those are
    accepted on read and rewritten in camelCase on the next write. Any key not
    modelled here is kept verbatim.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    title: Optional[str] = None
    genre: Optional[str] = None
    id_marc_control_number: Optional[str] = Field(
        None,
        serialization_alias="idMarcControlNumber",
        validation_alias=AliasChoices("idMarcControlNumber", "marc-control-number", "id_marc_control_number"),
    )
    is_current: Optional[bool] = Field(
        None,
        serialization_alias="isCurrent",
        validation_alias=AliasChoices("isCurrent", "is-current", "is_current"),
    )
    first_year: Optional[str] = Field(
        None,
        serialization_alias="firstYear",
        validation_alias=AliasChoices("firstYear", "first-year", "first_year"),
    )
    final_year: Optional[str] = Field(
        None,
        serialization_alias="finalYear",
        validation_alias=AliasChoices("finalYear", "final-year", "final_year"),
    )
    frequency: Optional[str] = None
    placename: Optional[str] = None
    placecode: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("placecode", "nzn-placecode"),
    )
    district: Optional[str] = None
    region: Optional[str] = None
    revision: int = 0

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_string(cls, value):
        return str(value) if value is not None else value

    @field_validator("first_year", "final_year", mode="before")
    @classmethod
    def _year_as_string(cls, value):
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("is_current", mode="before")
    @classmethod
    def _registry_flag(cls, value):
        # Registry exports write "Yes"/"No"; anything unrecognised is unknown
        if isinstance(value, str):
            return {"yes": True, "y": True, "true": True, "1": True,
                    "no": False, "n": False, "false": False, "0": False}.get(value.strip().lower())
        return value

    @field_validator("id_marc_control_number", mode="before")
    @classmethod
    def _blank_control_number(cls, value):
        if value is None or str(value).strip() == "":
            return None
        return str(value).strip()

    def place(self) -> PlaceRecord:
        return PlaceRecord(placecode=self.placecode, district=self.district, region=self.region)

    def to_json_dict(self) -> dict:
        """Serializable form, camelCase keys, unset optional fields omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)
