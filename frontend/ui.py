"""
Streamlit frontend for the provider directory.

    streamlit run frontend/ui.py

Loads the directory files in-process (once per server process) and drives a
DirectoryController through Streamlit widgets. Each widget is wrapped in a
small adapter that implements the controller's control interface.
"""

import logging
import sys
from collections.abc import Callable
from pathlib import Path

import streamlit as st

# Ensure project root is on sys.path when launched via `streamlit run`
sys.path.insert(0, str(Path(__file__).parent.parent))

from directory.controller import DirectoryController
from directory.controls import Option
from directory.models import Category
from directory.render import RESULTS_ID
from etl.pipeline import LoadResult, run as load_directory

log = logging.getLogger("frontend")

st.set_page_config(page_title="دليل مقدمي الرعاية الصحية", layout="wide")

st.markdown(
    """
<style>
.stApp { direction: rtl; }
#results { display: grid; grid-template-columns: repeat(auto-fill, minmax(16rem, 1fr)); gap: 1rem; }
.provider-card { background: #fff; border-radius: .5rem; padding: 1rem; box-shadow: 0 1px 3px rgba(0,0,0,.1); }
.provider-name { margin: 0 0 .5rem; }
.phone-link { display: flex; align-items: center; gap: .5rem; }
.phone-link svg { width: 1rem; height: 1rem; }
.no-results, .error-message { grid-column: 1 / -1; text-align: center; padding: 2rem; }
.error-message { color: #dc2626; }
</style>
""",
    unsafe_allow_html=True,
)


# ---------------------------------------------------------------------------
# Widget adapters
# ---------------------------------------------------------------------------

class StreamlitSelect:
    """st.selectbox behind the SelectControl interface; "" means "all"."""

    def __init__(self, label: str, key: str):
        self.label = label
        self.key = key
        self._options: list[Option] = []
        self._callback: Callable[[str | None], None] | None = None

    def set_options(self, options: list[Option]) -> None:
        self._options = list(options)
        if st.session_state.get(self.key, "") not in {o.value for o in self._options}:
            st.session_state[self.key] = ""

    def get_value(self) -> str | None:
        return st.session_state.get(self.key) or None

    def on_change(self, callback: Callable[[str | None], None]) -> None:
        self._callback = callback

    def _changed(self) -> None:
        if self._callback:
            self._callback(self.get_value())

    def draw(self) -> None:
        labels = {o.value: o.label for o in self._options}
        st.selectbox(
            self.label,
            [o.value for o in self._options],
            key=self.key,
            format_func=lambda v: labels.get(v, v),
            on_change=self._changed,
        )


class StreamlitText:
    """st.text_input behind the TextControl interface."""

    def __init__(self, label: str, key: str, placeholder: str = ""):
        self.label = label
        self.key = key
        self.placeholder = placeholder
        self._callback: Callable[[str], None] | None = None

    def get_value(self) -> str:
        return st.session_state.get(self.key, "")

    def on_change(self, callback: Callable[[str], None]) -> None:
        self._callback = callback

    def _changed(self) -> None:
        if self._callback:
            self._callback(self.get_value())

    def draw(self) -> None:
        st.text_input(self.label, key=self.key, placeholder=self.placeholder, on_change=self._changed)


class StreamlitResults:
    """Holds the latest results markup; draw() writes it into the page."""

    def __init__(self):
        self.markup = ""

    def replace(self, markup: str) -> None:
        self.markup = markup

    def draw(self) -> None:
        st.markdown(f'<div id="{RESULTS_ID}">{self.markup}</div>', unsafe_allow_html=True)


# ---------------------------------------------------------------------------
# Data + controller
# ---------------------------------------------------------------------------

@st.cache_resource(show_spinner="جاري تحميل البيانات...")
def _load() -> LoadResult:
    try:
        return load_directory()
    except Exception:
        log.exception("Directory load failed.")
        return LoadResult()


def _controller(loaded: LoadResult) -> tuple[DirectoryController, dict]:
    if "directory" not in st.session_state:
        widgets = {
            "category": StreamlitSelect("الفئة", "category"),
            "specialty": StreamlitSelect("التخصص", "specialty"),
            "area": StreamlitSelect("المنطقة", "area"),
            "search": StreamlitText("بحث", "search", "ابحث بالاسم أو التخصص أو المنطقة"),
            "results": StreamlitResults(),
        }
        # text_input only fires on Enter/blur, so no debounce is needed here.
        controller = DirectoryController(loaded.providers, debounce=0, **widgets)
        controller.start()
        st.session_state["directory"] = (controller, widgets)
    return st.session_state["directory"]


# ---------------------------------------------------------------------------
# Page
# ---------------------------------------------------------------------------

st.title("دليل مقدمي الرعاية الصحية")

loaded = _load()
controller, widgets = _controller(loaded)

if not loaded.is_empty:
    counts = loaded.counts
    for col, category in zip(st.columns(len(Category)), Category):
        col.metric(category.label, counts[category])

    cols = st.columns(4)
    for col, name in zip(cols, ("category", "specialty", "area", "search")):
        with col:
            widgets[name].draw()

    st.caption(f"{len(controller.visible)} / {len(controller.providers)}")

widgets["results"].draw()
