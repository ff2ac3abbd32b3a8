"""
Filtering and option derivation over the loaded provider list.

All functions are pure: they read the provider sequence and return new lists.

Matching rules:
    - category / specialty / area: exact equality, skipped when unselected
    - query: case-insensitive substring of name, specialty or area
             (surrounding whitespace ignored; a blank query matches all)

Option lists are distinct, blank-free and sorted with collation_key, which
orders Arabic text alphabetically regardless of diacritics.

Public API:
    apply_filters(providers, selection)      → list[Provider]
    derive_areas(providers)                  → list[str]
    derive_specialties(providers, category)  → list[str]
    count_by_category(providers)             → dict[Category, int]
"""

import re
import unicodedata
from collections.abc import Iterable, Sequence

from directory.models import Category, FilterSelection, Provider

_ARABIC_DIACRITICS = re.compile(r"[\u0610-\u061A\u064B-\u065F\u0670\u06D6-\u06DC\u06DF-\u06ED]")


def collation_key(text: str) -> tuple[str, str]:
    """Sort key: NFKC, tashkeel stripped, casefolded; raw text breaks ties."""
    folded = unicodedata.normalize("NFKC", text)
    folded = _ARABIC_DIACRITICS.sub("", folded).casefold()
    return folded, text


def _distinct_sorted(values: Iterable[str | None]) -> list[str]:
    return sorted({v for v in values if v and v.strip()}, key=collation_key)


def _contains(haystack: str | None, needle: str) -> bool:
    return bool(haystack) and needle in haystack.casefold()


def matches_query(provider: Provider, query: str) -> bool:
    needle = query.strip().casefold()
    if not needle:
        return True
    return (
        _contains(provider.name, needle)
        or _contains(provider.specialty, needle)
        or _contains(provider.area, needle)
    )


def apply_filters(providers: Sequence[Provider], selection: FilterSelection) -> list[Provider]:
    """Return the providers satisfying every non-empty field of selection, in input order."""
    return [
        p for p in providers
        if (not selection.category or p.category == selection.category)
        and (not selection.specialty or p.specialty == selection.specialty)
        and (not selection.area or p.area == selection.area)
        and matches_query(p, selection.query)
    ]


def derive_areas(providers: Iterable[Provider]) -> list[str]:
    return _distinct_sorted(p.area for p in providers)


def derive_specialties(providers: Iterable[Provider], category: Category | None) -> list[str]:
    """
    Specialties offered for the selected category.

    With no category selected the list is empty: the specialty control only
    offers "all" until the user picks a category.
    """
    if not category:
        return []
    return _distinct_sorted(p.specialty for p in providers if p.category == category)


def count_by_category(providers: Iterable[Provider]) -> dict[Category, int]:
    counts = {c: 0 for c in Category}
    for p in providers:
        counts[p.category] += 1
    return counts
