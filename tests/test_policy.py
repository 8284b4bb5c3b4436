from __future__ import annotations

import pytest

from slugdantic import is_stale


@pytest.mark.parametrize(
    ("permanent", "current", "source", "expected"),
    [
        (True, None, "Hello", True),
        (True, "", "Hello", True),
        (True, "hello", "Hello", False),
        (True, "hello", "Changed", False),
        (False, "hello", "Hello", True),
        (False, None, "Hello", True),
        (False, "hello", "", False),
        (False, "hello", None, False),
        (True, None, None, False),
        (True, None, "", False),
    ],
)
def test_is_stale(permanent: bool, current: str | None, source: str | None, expected: bool) -> None:
    assert is_stale(permanent, current, source) is expected
