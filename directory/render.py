"""
HTML rendering for directory results.

Every call returns the complete markup for the results container; callers
replace the previous content wholesale (no incremental diffing).

    render_card(provider)      → one provider card
    render_results(providers)  → all cards, or a single "no results" block
    render_error(message)      → the user-visible error block
"""

import html
import logging
from collections.abc import Sequence
from typing import Protocol

from directory.models import Provider, split_phones

log = logging.getLogger(__name__)

RESULTS_ID = "results"

NO_RESULTS_MESSAGE = "لا توجد نتائج تطابق معايير البحث"
LOAD_ERROR_MESSAGE = "حدث خطأ أثناء تحميل البيانات. يرجى تحديث الصفحة والمحاولة مرة أخرى."

__all__ = [
    "LOAD_ERROR_MESSAGE",
    "NO_RESULTS_MESSAGE",
    "RESULTS_ID",
    "ResultsContainer",
    "render_card",
    "render_error",
    "render_results",
    "split_phones",
]

_PHONE_ICON = (
    '<svg class="w-4 h-4 ml-2" fill="none" stroke="currentColor" viewBox="0 0 24 24">'
    '<path stroke-linecap="round" stroke-linejoin="round" stroke-width="2" '
    'd="M3 5a2 2 0 012-2h3.28a1 1 0 01.948.684l1.498 4.493a1 1 0 01-.502 1.21l-2.257 1.13'
    'a11.042 11.042 0 005.516 5.516l1.13-2.257a1 1 0 011.21-.502l4.493 1.498a1 1 0 01.684.949'
    'V19a2 2 0 01-2 2h-1C9.716 21 3 14.284 3 6V5z"/></svg>'
)

_EMPTY_CARD = '<div class="provider-card provider-card--empty"></div>'


class ResultsContainer(Protocol):
    """The element that displays results; replace() swaps its entire content."""

    def replace(self, markup: str) -> None: ...


def _esc(text: str) -> str:
    return html.escape(text, quote=True)


def render_card(provider: Provider) -> str:
    phones = "".join(
        f'<a href="tel:{_esc(num)}" class="phone-link">{_PHONE_ICON}{_esc(num)}</a>'
        for num in split_phones(provider.phone)
    )

    parts = [
        f'<div class="provider-card" data-category="{_esc(provider.category.value)}">',
        f'<h3 class="provider-name">{_esc(provider.name)}</h3>',
    ]
    if provider.specialty:
        parts.append(f'<p class="provider-specialty">{_esc(provider.specialty)}</p>')
    parts.append(f'<p class="provider-area">{_esc(provider.area)}</p>')
    if provider.address:
        parts.append(f'<p class="provider-address">{_esc(provider.address)}</p>')
    parts.append(f'<div class="phone-numbers">{phones}</div>')
    parts.append("</div>")
    return "".join(parts)


def render_results(providers: Sequence[Provider]) -> str:
    """
    Markup for the results grid.

    A card that fails to render is logged and replaced by an empty card so
    one malformed record cannot blank the whole grid.
    """
    if not providers:
        return f'<div class="no-results">{_esc(NO_RESULTS_MESSAGE)}</div>'

    cards = []
    for provider in providers:
        try:
            cards.append(render_card(provider))
        except Exception:
            log.exception("Failed to render card for %r", getattr(provider, "name", provider))
            cards.append(_EMPTY_CARD)
    return "".join(cards)


def render_error(message: str = LOAD_ERROR_MESSAGE) -> str:
    return f'<div class="error-message" role="alert">{_esc(message)}</div>'
