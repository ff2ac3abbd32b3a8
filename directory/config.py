"""
Runtime configuration for the provider directory.

Values come from the environment (a .env file in the working directory is
loaded first) and fall back to the defaults below:

    DIRECTORY_DATA_DIR       folder holding <category>.json   (default: ./data)
    DIRECTORY_DATA_URL       base URL; when set, sources are fetched over HTTP
    DIRECTORY_FETCH_TIMEOUT  seconds per HTTP fetch            (default: 15)
    DIRECTORY_DEBOUNCE_MS    free-text query debounce window   (default: 300)
    DIRECTORY_LOG_DIR        folder for the rotating app log   (default: ./logs)
"""

import os
from pathlib import Path

from dotenv import load_dotenv

from directory.models import Category

load_dotenv()

ROOT_DIR = Path(__file__).parent.parent

DATA_DIR      = Path(os.getenv("DIRECTORY_DATA_DIR", ROOT_DIR / "data"))
DATA_URL      = os.getenv("DIRECTORY_DATA_URL", "").rstrip("/")
FETCH_TIMEOUT = float(os.getenv("DIRECTORY_FETCH_TIMEOUT", "15"))
DEBOUNCE_MS   = int(os.getenv("DIRECTORY_DEBOUNCE_MS", "300"))
LOG_DIR       = Path(os.getenv("DIRECTORY_LOG_DIR", ROOT_DIR / "logs"))
LOG_FILE      = LOG_DIR / "app.log"

# Source files in the order their records are concatenated.
SOURCE_ORDER = (
    Category.HOSPITALS,
    Category.PHARMACIES,
    Category.CLINICS,
    Category.LABS,
    Category.DOCTORS,
)


def default_sources() -> list[tuple[str, Category]]:
    """
    Return the (locator, category) pairs for the five directory files.

    Locators are URLs under DIRECTORY_DATA_URL when it is set, otherwise
    paths under DIRECTORY_DATA_DIR.
    """
    if DATA_URL:
        return [(f"{DATA_URL}/{c.value}.json", c) for c in SOURCE_ORDER]
    return [(str(DATA_DIR / f"{c.value}.json"), c) for c in SOURCE_ORDER]
