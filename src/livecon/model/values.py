"""Value kinds for untyped console values.

Variables and live objects stay plain Python objects; ``ValueKind`` is a
tag computed on demand so hosts can show what a value currently is.
"""

from __future__ import annotations

import numbers
from enum import Enum

from pydantic import BaseModel, ConfigDict


class ValueKind(str, Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    NUMERIC = "numeric"
    TEXT = "text"
    OBJECT = "object"


class ValueInfo(BaseModel):
    """Tagged description of one stored value."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: ValueKind
    type_name: str
    display: str


def kind_of(value: object) -> ValueKind:
    """Classify *value*.

    bool is checked before numbers since ``bool`` is an ``int`` subclass.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, numbers.Number):
        return ValueKind.NUMERIC
    if isinstance(value, str):
        return ValueKind.TEXT
    return ValueKind.OBJECT


def display_string(value: object, null_text: str = "null") -> str:
    """Default human-readable form of *value*; ``None`` renders as *null_text*."""
    if value is None:
        return null_text
    return str(value)
