"""Place-of-publication cleanup for MARC 260$a values.

Turns imprint places such as ``"[Auckland, N.Z.]"`` or ``"Wanganui [N.Z.] :"``
into the canonical names used by the newspaper records (``"Auckland"``,
``"Wanganui"``). Places outside New Zealand come back as ``None`` and the
caller skips the whole record.
"""

from typing import Optional

from .text import title_cleanup

# Overseas places that show up in the national bibliography
EXCLUDED_PLACES = ("Apia", "Egypt", "London", "Sydney")

NZ_MARKER = "N.Z"


def _cut(name: str, marker: str) -> str:
    """Truncate at the first ``marker``; a cut at position 0 or 1 is ignored."""
    position = name.find(marker)
    if position > 1:
        return name[:position]
    return name


def normalize_place(raw: Optional[str]) -> Optional[str]:
    """Clean a raw 260$a place string.

    Args:
        raw: Unprocessed place name read from the MARC record

    Returns:
        Canonical place name, or None if the place is empty or not of interest

    Rules (applied in order):
        1. Empty -> None
        2. Mentions an excluded overseas place -> None
        3. Strip one leading "["
        4. If "N.Z" occurs: cut at the first ",", then at "N.Z", then at "["
        5. Strip trailing "?"
        6. title_cleanup(); empty result -> None

    Examples:
        >>> normalize_place("[Auckland, N.Z.]")
        'Auckland'
        >>> normalize_place("Apia, Samoa") is None
        True
    """
    if not raw:
        return None

    name = raw
    if any(place in name for place in EXCLUDED_PLACES):
        return None

    if name.startswith("["):
        name = name[1:]

    if NZ_MARKER in name:
        name = _cut(name, ",")
        name = _cut(name, NZ_MARKER)
        name = _cut(name, "[")

    name = name.strip().rstrip("?")
    name = title_cleanup(name)
    return name or None
