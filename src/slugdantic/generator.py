from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Container, Optional

from loguru import logger
from pydantic import BaseModel

from .config import SlugConfig, configure
from .exceptions import InvalidSlugSource
from .policy import is_stale
from .resolver import resolve_unique
from .utils import escape

if TYPE_CHECKING:
    from .collection import Collection


class SlugGenerator:
    """Pre-save stage that keeps a record's slug in sync with its source.

    The generator is composed with a store rather than mixed into the model:
    register it with :meth:`Collection.register_stage` and it runs before each
    save, touching nothing but ``config.field``.

    Example::

        posts = Collection(Post, path="posts", format="yaml")
        posts.register_stage(SlugGenerator.for_model(Post, source="title"))
    """

    def __init__(self, config: SlugConfig) -> None:
        self.config = config

    @classmethod
    def for_model(cls, model: type[BaseModel], **options: Any) -> "SlugGenerator":
        return cls(configure(model, **options))

    @property
    def field(self) -> str:
        return self.config.field

    # Stage protocol ----------------------------------------------------
    def __call__(
        self,
        record: BaseModel,
        store: "Collection[Any]",
        *,
        exclude: Container[str] = (),
    ) -> None:
        self.generate(
            record,
            lambda candidate: store.find_one_by(self.field, candidate),
            is_self=lambda found: store.is_same(found, record),
            exclude=exclude,
        )

    # Generation --------------------------------------------------------
    def generate(
        self,
        record: BaseModel,
        lookup: Callable[[str], Optional[BaseModel]],
        *,
        is_self: Callable[[BaseModel], bool] | None = None,
        exclude: Container[str] = (),
    ) -> str | None:
        """Write a fresh unique slug into ``record`` when the current one is stale.

        Returns the slug the record holds afterwards.
        """
        source_value = self.source_value(record)
        current = self.to_param(record)
        if not is_stale(self.config.permanent, current, source_value):
            logger.debug("Keeping slug {!r} on {}", current, type(record).__name__)
            return current

        slug = resolve_unique(
            escape(source_value),
            self.config.size,
            lookup,
            is_self or (lambda found: found is record),
            current=current,
            exclude=exclude,
            max_attempts=self.config.max_attempts,
        )
        setattr(record, self.field, slug)
        logger.debug("Generated slug {!r} for {}", slug, type(record).__name__)
        return slug

    def source_value(self, record: BaseModel) -> str | None:
        name = self.config.source
        try:
            value = getattr(record, name)
        except AttributeError as exc:
            raise InvalidSlugSource(f"Invalid slug source '{name}'.") from exc
        if callable(value):
            value = value()
        if value is not None and not isinstance(value, str):
            raise InvalidSlugSource(
                f"Slug source '{name}' must produce a string or None, got {type(value).__name__}"
            )
        return value

    # Accessors ---------------------------------------------------------
    def to_param(self, record: BaseModel) -> str | None:
        """Return the slug that identifies ``record`` externally."""
        return getattr(record, self.field, None)

    def url_for(self, record: BaseModel, prefix: str = "/") -> str:
        slug = self.to_param(record)
        if not slug:
            raise ValueError(f"{type(record).__name__} has no slug yet")
        return prefix.rstrip("/") + "/" + slug
