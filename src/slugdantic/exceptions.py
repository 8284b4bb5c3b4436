from __future__ import annotations

from pathlib import Path


class SlugdanticError(Exception):
    """Base exception for slugdantic errors."""


class InvalidSlugSource(SlugdanticError):
    """Raised when the slug source is missing or cannot be read from a record."""


class MissingSlugFieldError(SlugdanticError):
    """Raised when a model does not declare the field meant to hold the slug."""


class SlugExhausted(SlugdanticError):
    """Raised when the collision search gives up before finding a free slug."""

    def __init__(self, base: str, attempts: int) -> None:
        super().__init__(f"No free slug found for '{base}' after {attempts} attempts")
        self.base = base
        self.attempts = attempts


class SlugConflictError(SlugdanticError):
    """Raised at commit time when another record already holds a unique value."""

    def __init__(self, field: str, value: str, path: Path | None = None) -> None:
        super().__init__(f"Value '{value}' for unique field '{field}' is already taken")
        self.field = field
        self.value = value
        self.path = path


class UnknownFormatError(SlugdanticError):
    """Raised when a requested file format is not supported."""


class MissingPathError(SlugdanticError):
    """Raised when an operation requires a path but none is known."""
