"""Title and name cleanup shared by the parser and the decision engine."""

import re
import unicodedata
from typing import Optional

# Words kept lower case inside a title ("Otago Witness and Daily Times")
SMALL_WORDS = {"a", "an", "and", "at", "by", "for", "in", "of", "on", "or", "the", "to"}

# ISBD punctuation that trails MARC subfields (245$a "Evening post /")
TRAILING_PUNCT = " \t/:;,.=+"


def title_cleanup(text: Optional[str]) -> str:
    """Tidy a MARC title or place string for display.

    Steps:
        1. Unicode normalize (NFKC) and collapse whitespace
        2. Strip trailing ISBD punctuation and unbalanced closing brackets
        3. Capitalize words that are entirely lower case, except small words
           after the first position. Words with capitals ("N.Z.", "McLeod")
           are left alone.

    >>> title_cleanup("the evening   post /")
    'The Evening Post'
    """
    if not text:
        return ""

    cleaned = unicodedata.normalize("NFKC", text)
    cleaned = " ".join(cleaned.split())

    while cleaned and (cleaned[-1] in TRAILING_PUNCT or _is_unbalanced_close(cleaned)):
        cleaned = cleaned[:-1]

    words = []
    for position, word in enumerate(cleaned.split(" ")):
        if word and word.islower():
            if position > 0 and word in SMALL_WORDS:
                words.append(word)
            else:
                words.append(word[0].upper() + word[1:])
        else:
            words.append(word)

    return " ".join(words).strip()


def _is_unbalanced_close(text: str) -> bool:
    return text[-1] == "]" and text.count("[") < text.count("]")


def kebab_case(label: str) -> str:
    """Registry column label to record key: ``"First Year"`` -> ``"first-year"``."""
    return re.sub(r"\s+", "-", label.strip().lower())
