"""
Unique, URL-safe slugs for Pydantic records.

:class:`SlugGenerator` derives a slug from a source field and keeps it stable
or refreshed according to a permanence flag. It runs as a pre-save stage of a
:class:`Collection`, a directory of files sharing one Pydantic schema.
"""

from loguru import logger

from .collection import Collection, SaveStage
from .config import DEFAULT_SLUG_SIZE, SlugConfig, configure
from .exceptions import InvalidSlugSource, SlugConflictError, SlugExhausted
from .generator import SlugGenerator
from .handlers import FileHandler
from .policy import is_stale
from .resolver import resolve_unique
from .utils import escape

logger.disable(__name__)

__all__ = (
    "Collection",
    "DEFAULT_SLUG_SIZE",
    "FileHandler",
    "InvalidSlugSource",
    "SaveStage",
    "SlugConfig",
    "SlugConflictError",
    "SlugExhausted",
    "SlugGenerator",
    "configure",
    "escape",
    "is_stale",
    "resolve_unique",
)
