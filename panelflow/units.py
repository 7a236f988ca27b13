# MIT License
"""Tagged numeric units and shared validators.

Quantities flowing through the engine are tagged with :func:`typing.NewType`
aliases over ``float``.  At runtime they are plain floats, but a type checker
refuses to pass a :data:`Kilometers` where :data:`Kilograms` is expected and
arithmetic on tagged values yields an untagged ``float``, so every result has
to be re-tagged explicitly at the point where its unit is known.

The validators reject ``nan`` and infinite values along with out-of-range
ones.
"""
from __future__ import annotations

import math
from typing import NewType

from .errors import InvalidInputError

Kilograms = NewType("Kilograms", float)
Kilometers = NewType("Kilometers", float)
Miles = NewType("Miles", float)
TonsCO2e = NewType("TonsCO2e", float)
USD = NewType("USD", float)
Hours = NewType("Hours", float)
KilogramsPerHour = NewType("KilogramsPerHour", float)


def require_positive(value: float, name: str) -> None:
    if not math.isfinite(value) or value <= 0:
        raise InvalidInputError(f"{name} must be > 0")


def require_non_negative(value: float, name: str) -> None:
    if not math.isfinite(value) or value < 0:
        raise InvalidInputError(f"{name} must be >= 0")


def require_rate(value: float, name: str) -> None:
    """Reject fractions outside the closed unit interval."""
    if not 0 <= value <= 1:
        raise InvalidInputError(f"{name} must be between 0 and 1")
