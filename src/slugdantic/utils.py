from __future__ import annotations

import re

from unidecode import unidecode

NON_WORD_PATTERN = re.compile(r"[^A-Za-z0-9_]+")
SPACE_PATTERN = re.compile(r" +")


def escape(text: str) -> str:
    """Turn ``text`` into a lowercase, hyphen separated, URL-safe slug.

    Non-ASCII characters are transliterated to their nearest approximation,
    or dropped when none exists. The result may be empty.
    """
    ascii_text = unidecode(text)
    ascii_text = NON_WORD_PATTERN.sub(" ", ascii_text)
    ascii_text = ascii_text.strip().lower()
    return SPACE_PATTERN.sub("-", ascii_text)
