"""
Server-rendered directory page: RTL Arabic layout, category counters,
filter form and the results container.
"""

import html

from directory.controls import ALL_LABEL, PLACEHOLDER
from directory.models import Category, FilterSelection
from directory.render import RESULTS_ID

_STYLE = """
body { font-family: Tahoma, Arial, sans-serif; background: #f3f4f6; margin: 0; }
header { background: #1d4ed8; color: #fff; padding: 1rem 2rem; }
.stats { display: flex; gap: 1rem; flex-wrap: wrap; margin-top: .5rem; }
.stat { background: rgba(255,255,255,.15); border-radius: .5rem; padding: .25rem .75rem; }
form { display: grid; grid-template-columns: repeat(auto-fit, minmax(12rem, 1fr));
       gap: .75rem; padding: 1rem 2rem; }
#results { display: grid; grid-template-columns: repeat(auto-fill, minmax(16rem, 1fr));
           gap: 1rem; padding: 0 2rem 2rem; }
.provider-card { background: #fff; border-radius: .5rem; padding: 1rem;
                 box-shadow: 0 1px 3px rgba(0,0,0,.1); }
.provider-name { margin: 0 0 .5rem; font-size: 1.1rem; }
.provider-specialty, .provider-area, .provider-address { margin: 0 0 .5rem; color: #4b5563; }
.phone-link { display: flex; align-items: center; color: #2563eb; text-decoration: none; }
.phone-link svg { width: 1rem; height: 1rem; margin-left: .5rem; }
.no-results, .error-message { grid-column: 1 / -1; text-align: center; padding: 2rem; color: #6b7280; }
.error-message { color: #dc2626; }
"""


def _esc(text: str) -> str:
    return html.escape(text, quote=True)


def _select(name: str, options: list[tuple[str, str]], selected: str | None) -> str:
    items = [f'<option value="">{_esc(ALL_LABEL)}</option>']
    for value, label in options:
        mark = " selected" if value == selected else ""
        items.append(f'<option value="{_esc(value)}"{mark}>{_esc(label)}</option>')
    return (
        f'<select id="{name}" name="{name}" data-placeholder="{_esc(PLACEHOLDER)}" '
        f'onchange="this.form.submit()">{"".join(items)}</select>'
    )


def render_page(
    results_markup: str,
    *,
    selection: FilterSelection,
    areas: list[str],
    specialties: list[str],
    counts: dict[Category, int],
) -> str:
    category = selection.category.value if selection.category else None
    stats = "".join(
        f'<span class="stat" id="{c.value}Count">{_esc(c.label)}: {counts.get(c, 0)}</span>'
        for c in Category
    )
    form = "".join([
        '<form method="get" action="/">',
        _select("category", [(c.value, c.label) for c in Category], category),
        _select("specialty", [(s, s) for s in specialties], selection.specialty),
        _select("area", [(a, a) for a in areas], selection.area),
        f'<input type="search" id="searchInput" name="q" value="{_esc(selection.query)}" '
        f'placeholder="{_esc("ابحث بالاسم أو التخصص أو المنطقة")}">',
        "</form>",
    ])
    return (
        '<!DOCTYPE html><html lang="ar" dir="rtl"><head><meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width, initial-scale=1">'
        f"<title>{_esc('دليل مقدمي الرعاية الصحية')}</title><style>{_STYLE}</style></head>"
        f"<body><header><h1>{_esc('دليل مقدمي الرعاية الصحية')}</h1>"
        f'<div class="stats">{stats}</div></header>'
        f'{form}<main id="{RESULTS_ID}">{results_markup}</main></body></html>'
    )
