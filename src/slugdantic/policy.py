from __future__ import annotations


def is_stale(permanent: bool, current_slug: str | None, source_value: str | None) -> bool:
    """Return ``True`` when the slug should be regenerated on this save.

    A permanent slug that already holds a value is frozen, and an empty source
    leaves whatever slug exists untouched.
    """
    if permanent and current_slug:
        return False
    if not source_value:
        return False
    return True
