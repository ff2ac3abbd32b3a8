"""
Load pipeline: fetch every source concurrently, tag, and merge into one list.

Failure policy:
  - A source that fails (transport error, non-2xx, bad encoding or JSON,
    not an array, or any unexpected error while fetching)
    contributes no records; the others are unaffected
  - Failures are logged and reported in LoadResult.failures, not raised
  - If nothing at all was loaded, LoadResult.is_empty is True and the caller
    must show a load error rather than an empty result list

Records are concatenated in the order of the sources list.
"""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from directory.config import default_sources
from directory.models import Category, Provider
from directory.search import count_by_category
from etl.sources import Source, SourceError, fetch_source

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadResult:
    providers: tuple[Provider, ...] = ()
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.providers

    @property
    def counts(self) -> dict[Category, int]:
        return count_by_category(self.providers)


async def _load_one(source: Source) -> list[Provider] | SourceError:
    try:
        return await asyncio.to_thread(fetch_source, source)
    except SourceError as exc:
        log.warning("Error loading %s: %s", source.locator, exc.reason)
        return exc
    except Exception as exc:
        log.exception("Unexpected error loading %s", source.locator)
        return SourceError(source.locator, f"{type(exc).__name__}: {exc}")


async def load_providers(sources: Iterable[tuple[str, Category]] | None = None) -> LoadResult:
    """Fetch all sources in parallel and wait for every one of them."""
    if sources is None:
        sources = default_sources()
    sources = [Source(loc, Category(cat)) for loc, cat in sources]
    log.info("Loading %d sources…", len(sources))

    results = await asyncio.gather(*(_load_one(s) for s in sources))

    providers: list[Provider] = []
    failures: dict[str, str] = {}
    for source, result in zip(sources, results):
        if isinstance(result, SourceError):
            failures[source.locator] = result.reason
        else:
            providers.extend(result)

    loaded = LoadResult(tuple(providers), failures)
    log.info(
        "Total providers: %d (%s)",
        len(loaded.providers),
        ", ".join(f"{c.value}={n}" for c, n in loaded.counts.items()),
    )
    if loaded.is_empty:
        log.error("No providers loaded from any source.")
    return loaded


def run(sources: Iterable[tuple[str, Category]] | None = None) -> LoadResult:
    """Blocking entry point for callers without an event loop."""
    return asyncio.run(load_providers(sources))
