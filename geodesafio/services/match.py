# geodesafio/services/match.py
from __future__ import annotations
from typing import Iterable, List, Optional


# --- Normalization helpers ----------------------------------------------------

def norm_title(s: Optional[str]) -> str:
    """
    Normalize landmark titles and guesses for matching:
    - strip surrounding whitespace
    - case-fold (handles accented capitals like 'É')
    Inner spacing and accents are kept: 'Catedral da Sé' != 'catedral da se'.
    """
    return (s or "").strip().casefold()


def is_match(guess: Optional[str], title: str) -> bool:
    """
    True only for an exact match after normalization.
    No typo forgiveness and no partial credit.
    """
    g = norm_title(guess)
    return bool(g) and g == norm_title(title)


# --- Multiple choice ------------------------------------------------------------

def choice_options(title: str, distractors: Iterable[str]) -> List[str]:
    """
    Options offered once the multiple-choice mode kicks in.
    Keeps the record's order; the correct title goes first only when the
    record did not already list it.
    """
    out: List[str] = []
    seen = set()
    for opt in distractors:
        key = norm_title(opt)
        if key and key not in seen:
            seen.add(key)
            out.append(str(opt).strip())
    if norm_title(title) not in seen:
        out.insert(0, title.strip())
    return out


def find_option(selected: Optional[str], options: Iterable[str]) -> Optional[str]:
    """Return the offered option matching `selected`, or None."""
    key = norm_title(selected)
    if not key:
        return None
    for opt in options:
        if norm_title(opt) == key:
            return opt
    return None
