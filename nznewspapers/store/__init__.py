from .models import NewspaperRecord, PlaceRecord, UNKNOWN_PLACE
from .newspaper_store import NewspaperStore

__all__ = ["NewspaperRecord", "NewspaperStore", "PlaceRecord", "UNKNOWN_PLACE"]
