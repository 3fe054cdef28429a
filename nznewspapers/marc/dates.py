"""Partial dates from MARC 008 positions 07-14.

A partial date is a 4-character year token where trailing digits may be
replaced by ``u`` (unknown): ``"1970"``, ``"197u"`` (decade known), ``"19uu"``
(century known), ``"1uuu"`` (millennium known) and ``"uuuu"``. The sentinel
``"9999"`` in date2 means the title is still being published.

Specificity order used when deciding whether catalogue data should overwrite
stored data:

    fully specified > decade > century > millennium > unknown

``"9999"`` is never overwritten by a real year, and a candidate of ``"9999"``
or ``"uuuu"`` never carries new information.
"""

import re
from typing import Optional

UNKNOWN_MARKER = "u"
UNKNOWN_DATE = "uuuu"
ONGOING_DATE = "9999"

_PARTIAL_DATE_RE = re.compile(r"^[0-9u]{4}$")


def is_partial_date(token: Optional[str]) -> bool:
    """True for 4-character tokens made of digits and ``u``."""
    return bool(token) and bool(_PARTIAL_DATE_RE.match(token))


def unknown_digits(token: str) -> int:
    """Number of trailing unknown markers (0 for ``"1970"``, 4 for ``"uuuu"``)."""
    return len(token) - len(token.rstrip(UNKNOWN_MARKER))


def is_more_specific(current: Optional[str], candidate: Optional[str]) -> bool:
    """Return True if ``candidate`` is strictly more specific than ``current``.

    Rules, first match wins:
        1. current has no trailing ``u``          -> False (already maximal)
        2. candidate is "uuuu" or "9999"          -> False (no information)
        3. current is "9999" or "uuuu"            -> True
        4. current ends in "uuu" (millennium)     -> True
        5. current ends in "uu" (century)         -> True unless candidate ends in "uuu"
        6. current ends in "u" (decade)           -> True unless candidate ends in "uu"

    A missing stored value is treated as "uuuu"; a missing candidate never wins.

    Examples:
        >>> is_more_specific("197u", "1970")
        True
        >>> is_more_specific("19uu", "1uuu")
        False
    """
    if current is None:
        current = UNKNOWN_DATE
    if candidate is None:
        return False

    if not current.endswith(UNKNOWN_MARKER):
        return False

    if candidate in (ONGOING_DATE, UNKNOWN_DATE):
        return False

    if current in (ONGOING_DATE, UNKNOWN_DATE):
        return True

    if current.endswith("uuu"):
        return True

    if current.endswith("uu"):
        return not candidate.endswith("uuu")

    return not candidate.endswith("uu")


def describe_partial_date(token: Optional[str]) -> str:
    """Human-readable label for a partial date.

    >>> describe_partial_date("19uu")
    "sometime in the 1900's"
    """
    if not token or token.endswith(UNKNOWN_DATE):
        return "an unknown date"
    if token == ONGOING_DATE:
        return "still published"
    masked = unknown_digits(token)
    if masked == 3:
        return f"sometime in the {token[0]}000's"
    if masked == 2:
        return f"sometime in the {token[:2]}00's"
    if masked == 1:
        return f"sometime in the {token[:3]}0's"
    return token
