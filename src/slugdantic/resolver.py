from __future__ import annotations

from typing import Callable, Container, Optional, TypeVar

from loguru import logger

from .exceptions import SlugExhausted

R = TypeVar("R")
Lookup = Callable[[str], Optional[R]]
SelfCheck = Callable[[R], bool]

DEFAULT_MAX_ATTEMPTS = 1000


def suffixed(base: str, max_length: int, counter: int) -> str:
    """Append ``-<counter>`` to ``base`` without exceeding ``max_length``.

    When the suffix alone is longer than ``max_length`` the base is dropped
    entirely and the suffix is returned as-is.
    """
    suffix = f"-{counter}"
    return base[: max(max_length - len(suffix), 0)] + suffix


def resolve_unique(
    base_candidate: str,
    max_length: int,
    lookup: Lookup,
    is_self: SelfCheck,
    *,
    current: str | None = None,
    exclude: Container[str] = (),
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    """Find a slug derived from ``base_candidate`` that no other record holds.

    Parameters
    ----------
    base_candidate:
        Escaped source text. Truncated to ``max_length`` before use.
    lookup:
        Returns the stored record holding a slug, or ``None``.
    is_self:
        Tells whether a record returned by ``lookup`` is the one being saved.
    current:
        Slug the record holds right now. When the truncated base equals it the
        current slug is kept and no lookup happens.
    exclude:
        Values known to be taken even if ``lookup`` does not see them yet,
        typically a slug that just lost a commit race.
    max_attempts:
        Number of candidates tried before giving up with ``SlugExhausted``.
    """
    base = base_candidate[:max_length]
    if base == current and base not in exclude:
        return current

    candidate = base
    counter = 1
    for _ in range(max_attempts):
        if candidate not in exclude:
            existing = lookup(candidate)
            if existing is None or is_self(existing):
                return candidate
        logger.debug("Slug '{}' is taken", candidate)
        counter += 1
        candidate = suffixed(base, max_length, counter)
    raise SlugExhausted(base, max_attempts)
