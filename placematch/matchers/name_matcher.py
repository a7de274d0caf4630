import re
from rapidfuzz import fuzz

_APOSTROPHES = re.compile(r"['‘’`]")
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_name(name: str) -> str:
    """
    Normalize a place name for comparison across providers.

    "Joe's Pizza & Pasta" -> "joes pizza and pasta"
    """
    s = (name or "").lower()
    s = _APOSTROPHES.sub("", s)
    s = s.replace("&", "and")
    s = _NON_ALNUM.sub("", s)
    s = _WHITESPACE.sub(" ", s)
    return s.strip()


def names_match(a: str, b: str) -> bool:
    """
    Determine whether two place names refer to the same place.

    Names match when their normalized forms are equal or one contains the other,
    so "Gramercy Tavern" matches "Gramercy Tavern NYC". Short generic names can
    produce false positives ("Bar" matches "Wine Bar Deluxe").

    Args:
        a (str): First place name.
        b (str): Second place name.

    Returns:
        bool: True if the names match.
    """
    na = normalize_name(a)
    nb = normalize_name(b)
    # "" is a substring of everything
    if not na or not nb:
        return False
    if na == nb:
        return True
    return na in nb or nb in na


def name_similarity(a: str, b: str) -> float:
    """Fuzzy similarity (0-100) between normalized names. Used to flag near misses for review."""
    na = normalize_name(a)
    nb = normalize_name(b)
    if not na or not nb:
        return 0.0
    return float(fuzz.token_set_ratio(na, nb))
