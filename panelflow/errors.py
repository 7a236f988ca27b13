# MIT License
"""Exceptions raised by the panelflow engine."""


class InvalidInputError(ValueError):
    """Raised when an input violates a positivity, range or period invariant."""


class GridTooLargeError(InvalidInputError):
    """Raised when a sensitivity sweep would exceed the grid point cap."""


__all__ = ["InvalidInputError", "GridTooLargeError"]
