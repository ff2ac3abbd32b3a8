"""
DirectoryController: owns the loaded providers and the current selection,
wires the filter controls, and re-renders the results on every change.

    controller = DirectoryController(
        providers,
        category=..., specialty=..., area=..., search=...,   # widget adapters
        results=...,                                         # ResultsContainer
        scheduler=AsyncioScheduler(),                        # for the debounce
    )
    controller.start()

Each event replaces the selection with a new FilterSelection, so there is
never a half-updated selection. Selecting a category clears the specialty
and repopulates the specialty control.
"""

import logging
from collections.abc import Sequence

from directory.config import DEBOUNCE_MS
from directory.controls import (
    ALL_LABEL,
    Debouncer,
    Option,
    Scheduler,
    SelectControl,
    TextControl,
    options_from,
)
from directory.models import Category, FilterSelection, Provider
from directory.render import LOAD_ERROR_MESSAGE, ResultsContainer, render_error, render_results
from directory.search import apply_filters, derive_areas, derive_specialties

log = logging.getLogger(__name__)

_ALL = Option("", ALL_LABEL)


class DirectoryController:
    def __init__(
        self,
        providers: Sequence[Provider],
        *,
        category: SelectControl,
        specialty: SelectControl,
        area: SelectControl,
        search: TextControl,
        results: ResultsContainer,
        scheduler: Scheduler | None = None,
        debounce: float = DEBOUNCE_MS / 1000,
    ):
        controls = {
            "category": category,
            "specialty": specialty,
            "area": area,
            "search": search,
            "results": results,
        }
        for name, control in controls.items():
            if control is None:
                raise ValueError(f"Required control not provided: {name}")

        self._providers = tuple(providers)
        self._category  = category
        self._specialty = specialty
        self._area      = area
        self._search    = search
        self._results   = results

        self._selection = FilterSelection()
        self._visible: list[Provider] = []
        self._started = False
        self._populating = False
        self._debounced_query = Debouncer(scheduler, debounce, self.set_query)

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def providers(self) -> tuple[Provider, ...]:
        return self._providers

    @property
    def selection(self) -> FilterSelection:
        return self._selection

    @property
    def visible(self) -> list[Provider]:
        return list(self._visible)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Populate the controls, subscribe to them and draw the first result set."""
        if not self._providers:
            log.error("No providers loaded; showing load error.")
            self._results.replace(render_error(LOAD_ERROR_MESSAGE))
            return

        if self._started:
            self.refresh()
            return

        self._populating = True
        try:
            self._category.set_options([_ALL] + [Option(c.value, c.label) for c in Category])
            self._area.set_options([_ALL] + options_from(derive_areas(self._providers)))
        finally:
            self._populating = False
        self._refresh_specialties()

        self._category.on_change(self._on_category)
        self._specialty.on_change(self._on_specialty)
        self._area.on_change(self._on_area)
        self._search.on_change(self._debounced_query)
        self._started = True

        log.info("Directory ready: %d providers.", len(self._providers))
        self.refresh()

    def refresh(self) -> None:
        """Re-apply the current selection and replace the rendered results."""
        try:
            if self._selection.is_empty:
                self._visible = list(self._providers)
            else:
                self._visible = apply_filters(self._providers, self._selection)
            markup = render_results(self._visible)
        except Exception:
            log.exception("Rendering results failed for %r", self._selection)
            self._visible = []
            markup = render_error(LOAD_ERROR_MESSAGE)
        self._results.replace(markup)

    # ------------------------------------------------------------------
    # Selection changes
    # ------------------------------------------------------------------

    def select_category(self, value: Category | str | None) -> None:
        self._selection = self._selection.with_category(value)
        log.debug("Category → %s", self._selection.category)
        self._refresh_specialties()
        self.refresh()

    def select_specialty(self, value: str | None) -> None:
        self._selection = self._selection.with_specialty(value)
        log.debug("Specialty → %s", self._selection.specialty)
        self.refresh()

    def select_area(self, value: str | None) -> None:
        self._selection = self._selection.with_area(value)
        log.debug("Area → %s", self._selection.area)
        self.refresh()

    def set_query(self, text: str | None) -> None:
        self._selection = self._selection.with_query(text)
        log.debug("Query → %r", self._selection.query)
        self.refresh()

    def _refresh_specialties(self) -> None:
        specialties = derive_specialties(self._providers, self._selection.category)
        self._populating = True
        try:
            self._specialty.set_options([_ALL] + options_from(specialties))
        finally:
            self._populating = False

    # Widget callbacks. Change events raised while the controller itself is
    # repopulating options are ignored.

    def _on_category(self, value: str | None) -> None:
        if not self._populating:
            self.select_category(value)

    def _on_specialty(self, value: str | None) -> None:
        if not self._populating:
            self.select_specialty(value)

    def _on_area(self, value: str | None) -> None:
        if not self._populating:
            self.select_area(value)
