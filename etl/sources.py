"""
Fetch a single directory source and turn it into Provider records.

A source is a (locator, category) pair. The locator is either an http(s)
URL, fetched with requests, or a path to a local JSON file; relative paths
resolve against DIRECTORY_DATA_DIR.

The body must be a JSON array of objects. The category is stamped from the
source, never read from the file. Objects that fail validation (missing
name or area, wrong shape) are skipped with a warning; anything that stops
the whole body from being read raises SourceError.

Each fetch is a single attempt: no retries, no backoff.
"""

import json
import logging
from pathlib import Path
from typing import Any, NamedTuple

import requests
from pydantic import ValidationError

from directory.config import DATA_DIR, FETCH_TIMEOUT
from directory.models import Category, Provider

log = logging.getLogger(__name__)

SESSION = requests.Session()
SESSION.headers["User-Agent"] = "Provider-Directory/1.0"
SESSION.headers["Accept"] = "application/json"


class Source(NamedTuple):
    locator: str
    category: Category


class SourceError(Exception):
    """A source could not be fetched or parsed."""

    def __init__(self, locator: str, reason: str):
        super().__init__(f"{locator}: {reason}")
        self.locator = locator
        self.reason = reason


# ---------------------------------------------------------------------------
# Raw fetch
# ---------------------------------------------------------------------------

def _is_url(locator: str) -> bool:
    return locator.startswith(("http://", "https://"))


def _fetch_url(url: str) -> Any:
    try:
        resp = SESSION.get(url, timeout=FETCH_TIMEOUT)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise SourceError(url, str(exc)) from exc
    try:
        return resp.json()
    except ValueError as exc:
        raise SourceError(url, f"invalid JSON: {exc}") from exc


def _read_file(locator: str) -> Any:
    path = Path(locator)
    if not path.is_absolute():
        path = DATA_DIR / path
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise SourceError(locator, str(exc)) from exc
    # UnicodeDecodeError is a ValueError, so bad encoding fails like bad JSON.
    try:
        return json.loads(raw.decode("utf-8-sig"))
    except ValueError as exc:
        raise SourceError(locator, f"invalid JSON: {exc}") from exc


def fetch_raw(locator: str) -> list[Any]:
    """Return the top-level JSON array behind locator."""
    data = _fetch_url(locator) if _is_url(locator) else _read_file(locator)
    if not isinstance(data, list):
        raise SourceError(locator, f"expected a JSON array, got {type(data).__name__}")
    return data


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

def to_providers(records: list[Any], category: Category, locator: str = "") -> list[Provider]:
    """Validate raw records and stamp each with category."""
    providers = []
    for i, record in enumerate(records):
        if not isinstance(record, dict):
            log.warning("%s[%d]: skipping non-object record.", locator, i)
            continue
        try:
            providers.append(Provider.model_validate({**record, "category": category}))
        except ValidationError as exc:
            fields = ", ".join(str(e["loc"][0]) for e in exc.errors() if e["loc"])
            log.warning("%s[%d]: skipping invalid record (%s).", locator, i, fields or exc)
    return providers


def fetch_source(source: Source | tuple[str, Category]) -> list[Provider]:
    """Fetch, parse and tag one source. Raises SourceError on failure."""
    locator, category = source
    category = Category(category)
    records = fetch_raw(locator)
    providers = to_providers(records, category, locator)
    log.info("Loaded %d %s from %s", len(providers), category.value, locator)
    return providers
