"""
Data model for the provider directory.

    Category         closed set of provider kinds, one per source file
    Provider         one directory entry (immutable after load)
    FilterSelection  the user's current filter values (replaced, never mutated)
"""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator

# Hyphen, en-dash and any whitespace separate numbers inside one phone field.
_PHONE_SEP = re.compile(r"[-–\s]+")


class Category(str, Enum):
    HOSPITALS  = "hospitals"
    PHARMACIES = "pharmacies"
    CLINICS    = "clinics"
    LABS       = "labs"
    DOCTORS    = "doctors"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


CATEGORY_LABELS: dict[Category, str] = {
    Category.HOSPITALS:  "مستشفيات",
    Category.PHARMACIES: "صيدليات",
    Category.CLINICS:    "عيادات",
    Category.LABS:       "مختبرات",
    Category.DOCTORS:    "أطباء",
}


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def split_phones(phone: str | None) -> list[str]:
    """
    Split a phone field into individual numbers.

    "01234567 - 09876543" → ["01234567", "09876543"]
    "0123"                → ["0123"]
    """
    if not phone:
        return []
    return [p.strip() for p in _PHONE_SEP.split(phone) if p.strip()]


class Provider(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    category: Category
    area: str
    specialty: str | None = None
    address: str | None = None
    phone: str = ""

    @field_validator("name", "area", mode="before")
    @classmethod
    def _required_text(cls, value):
        value = _blank_to_none(value)
        if value is None:
            raise ValueError("must be a non-empty string")
        return value

    @field_validator("specialty", "address", mode="before")
    @classmethod
    def _optional_text(cls, value):
        return _blank_to_none(value)

    @field_validator("phone", mode="before")
    @classmethod
    def _phone_text(cls, value):
        # Some files store a bare number rather than a string.
        if value is None:
            return ""
        return str(value)

    @property
    def phone_numbers(self) -> list[str]:
        return split_phones(self.phone)


class FilterSelection(BaseModel):
    """
    Current filter values. Empty fields do not constrain the result.

    Use the with_* methods to derive a new selection; with_category always
    clears the specialty because the specialty options depend on it.
    """

    model_config = ConfigDict(frozen=True)

    category: Category | None = None
    specialty: str | None = None
    area: str | None = None
    query: str = ""

    @field_validator("category", "specialty", "area", mode="before")
    @classmethod
    def _empty_is_none(cls, value):
        return _blank_to_none(value)

    @field_validator("query", mode="before")
    @classmethod
    def _query_text(cls, value):
        return "" if value is None else str(value)

    def with_category(self, category: Category | str | None) -> "FilterSelection":
        return FilterSelection(
            category=category, specialty=None, area=self.area, query=self.query
        )

    def with_specialty(self, specialty: str | None) -> "FilterSelection":
        return self.model_copy(update={"specialty": _blank_to_none(specialty)})

    def with_area(self, area: str | None) -> "FilterSelection":
        return self.model_copy(update={"area": _blank_to_none(area)})

    def with_query(self, query: str | None) -> "FilterSelection":
        return self.model_copy(update={"query": query or ""})

    @property
    def is_empty(self) -> bool:
        return not (self.category or self.specialty or self.area or self.query.strip())
