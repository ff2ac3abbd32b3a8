"""
FastAPI application for the healthcare provider directory.

Run as a script:
    python app/app.py

Or as a module:
    uvicorn app.app:app --reload

The five directory files are loaded once at startup (concurrently; a failing
file is logged and skipped). Everything after that is in-memory filtering.

Endpoints:
    GET /                 HTML page with filter form and provider cards
    GET /providers        JSON: {"count": int, "providers": [...]}
                          params: category, specialty, area, q (all optional)
    GET /areas            sorted distinct areas
    GET /specialties      sorted distinct specialties for ?category=
    GET /stats            provider count per category
    GET /health           load status

Specialties exist only within a category: on both GET / and GET /providers a
specialty that is not offered for the selected category is ignored, and with
no category every specialty is ignored.

Data endpoints answer 503 when nothing could be loaded.
Logs each request and wall-clock response time to stdout and logs/app.log
(rotating, 5 MB max, 3 backups).
"""

import logging
import logging.handlers
import sys
import time
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ValidationError

# Ensure project root is on sys.path when running as a script (python app/app.py)
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.page import render_page
from directory.config import LOG_DIR, LOG_FILE, default_sources
from directory.models import Category, FilterSelection, Provider
from directory.render import LOAD_ERROR_MESSAGE, render_error, render_results
from directory.search import apply_filters, count_by_category, derive_areas, derive_specialties
from etl.pipeline import LoadResult, load_providers


def _setup_logging() -> None:
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    fmt = logging.Formatter("%(asctime)s  %(levelname)s  %(message)s")

    stream = logging.StreamHandler(sys.stdout)
    stream.setFormatter(fmt)

    # Rotate at 5 MB, keep 3 backups
    rotating = logging.handlers.RotatingFileHandler(
        LOG_FILE, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
    )
    rotating.setFormatter(fmt)

    root = logging.getLogger()
    root.setLevel(logging.INFO)
    root.addHandler(stream)
    root.addHandler(rotating)

_setup_logging()
log = logging.getLogger("api")

# Replaced in tests to point at fixture files.
SOURCES: list[tuple[str, Category]] = default_sources()


# ---------------------------------------------------------------------------
# App + lifespan
# ---------------------------------------------------------------------------

_directory: LoadResult | None = None


@asynccontextmanager
async def lifespan(_: FastAPI):
    global _directory

    log.info("Loading directory sources…")
    try:
        _directory = await load_providers(SOURCES)
    except Exception:
        log.exception("Directory load failed; serving the load error page.")
        _directory = LoadResult()
    if _directory.failures:
        log.warning("  %d source(s) failed: %s", len(_directory.failures), ", ".join(_directory.failures))
    log.info("  %d providers ready.", len(_directory.providers))

    yield  # server runs here


app = FastAPI(title="Provider Directory", lifespan=lifespan)


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

class ProviderResult(BaseModel):
    name: str
    category: Category
    category_label: str
    specialty: str | None
    area: str
    address: str | None
    phone: str
    phone_numbers: list[str]

    @classmethod
    def from_provider(cls, p: Provider) -> "ProviderResult":
        return cls(
            name=p.name,
            category=p.category,
            category_label=p.category.label,
            specialty=p.specialty,
            area=p.area,
            address=p.address,
            phone=p.phone,
            phone_numbers=p.phone_numbers,
        )


class ProvidersResponse(BaseModel):
    count: int
    providers: list[ProviderResult]


class StatsResponse(BaseModel):
    total: int
    categories: dict[str, int]


class HealthResponse(BaseModel):
    status: str
    providers: int
    failed_sources: list[str]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _providers() -> tuple[Provider, ...]:
    """Loaded providers, or 503 when the directory could not be loaded."""
    if _directory is None or _directory.is_empty:
        raise HTTPException(status_code=503, detail=LOAD_ERROR_MESSAGE)
    return _directory.providers


def _selection(category: str | None, specialty: str | None, area: str | None, q: str | None) -> FilterSelection:
    # HTML forms send "" for "all", so category is parsed here instead of by FastAPI.
    try:
        return FilterSelection(category=category, specialty=specialty, area=area, query=q)
    except ValidationError:
        raise HTTPException(status_code=422, detail=f"Unknown category: {category!r}")


def _offered(selection: FilterSelection, providers) -> FilterSelection:
    """Drop a specialty that is not offered for the selected category."""
    if selection.specialty is None:
        return selection
    if selection.specialty in derive_specialties(providers, selection.category):
        return selection
    return selection.with_specialty(None)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get("/providers", response_model=ProvidersResponse)
def providers(
    category: str | None = None,
    specialty: str | None = None,
    area: str | None = None,
    q: str | None = None,
) -> ProvidersResponse:
    t0 = time.perf_counter()
    available = _providers()
    selection = _offered(_selection(category, specialty, area, q), available)
    results = apply_filters(available, selection)

    elapsed = time.perf_counter() - t0
    log.info(
        "providers category=%s  specialty=%r  area=%r  q=%r  hits=%d  %.3fs",
        selection.category.value if selection.category else None,
        selection.specialty, selection.area, selection.query, len(results), elapsed,
    )
    return ProvidersResponse(
        count=len(results),
        providers=[ProviderResult.from_provider(p) for p in results],
    )


@app.get("/areas", response_model=list[str])
def areas() -> list[str]:
    return derive_areas(_providers())


@app.get("/specialties", response_model=list[str])
def specialties(category: str | None = None) -> list[str]:
    selection = _selection(category, None, None, None)
    return derive_specialties(_providers(), selection.category)


@app.get("/stats", response_model=StatsResponse)
def stats() -> StatsResponse:
    providers = _providers()
    counts = count_by_category(providers)
    return StatsResponse(total=len(providers), categories={c.value: n for c, n in counts.items()})


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    loaded = _directory or LoadResult()
    return HealthResponse(
        status="ok" if not loaded.is_empty else "empty",
        providers=len(loaded.providers),
        failed_sources=list(loaded.failures),
    )


@app.get("/", response_class=HTMLResponse)
def index(
    category: str | None = None,
    specialty: str | None = None,
    area: str | None = None,
    q: str | None = None,
) -> HTMLResponse:
    selection = _selection(category, specialty, area, q)
    loaded = _directory or LoadResult()

    # The form resubmits the old specialty when the category changes.
    selection = _offered(selection, loaded.providers)
    offered = derive_specialties(loaded.providers, selection.category)

    if loaded.is_empty:
        markup = render_error(LOAD_ERROR_MESSAGE)
    else:
        try:
            markup = render_results(apply_filters(loaded.providers, selection))
        except Exception:
            log.exception("Rendering results failed for %r", selection)
            markup = render_error(LOAD_ERROR_MESSAGE)

    page = render_page(
        markup,
        selection=selection,
        areas=derive_areas(loaded.providers),
        specialties=offered,
        counts=loaded.counts,
    )
    return HTMLResponse(page)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    log.info("=== Provider Directory: starting up on http://0.0.0.0:8000 ===")
    uvicorn.run(app, host="0.0.0.0", port=8000, reload=False)
