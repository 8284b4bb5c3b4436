from __future__ import annotations

import inspect
import types
from typing import Any, Union, get_args, get_origin

from annotated_types import MaxLen
from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.fields import FieldInfo

from .exceptions import InvalidSlugSource, MissingSlugFieldError
from .resolver import DEFAULT_MAX_ATTEMPTS

DEFAULT_SLUG_SIZE = 50


class SlugConfig(BaseModel):
    """Slug options for one record type, fixed once configured."""

    model_config = ConfigDict(frozen=True)

    source: str = Field(min_length=1, description="Field, property or method holding the text")
    permanent: bool = Field(default=True, description="Never replace a slug once set")
    size: int = Field(default=DEFAULT_SLUG_SIZE, ge=1, description="Maximum slug length")
    field: str = Field(default="slug", min_length=1, description="Field receiving the slug")
    max_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=1)


def configure(
    model: type[BaseModel],
    *,
    source: str | None = None,
    permanent_slug: bool = True,
    size: int | None = None,
    field: str = "slug",
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> SlugConfig:
    """Validate slug options against ``model`` and build its :class:`SlugConfig`.

    ``size`` defaults to the ``max_length`` declared on the source field, or
    ``DEFAULT_SLUG_SIZE`` when the source has none (or is a method).
    """
    if not source:
        raise InvalidSlugSource("You must specify a source to generate the slug.")
    if not has_source(model, source):
        raise InvalidSlugSource(
            f"Invalid slug source '{source}' for {model.__name__}: "
            "expected a str field, a property or a method."
        )
    if field not in model.model_fields:
        raise MissingSlugFieldError(f"{model.__name__} declares no '{field}' field to hold the slug")

    if size is None:
        size = declared_size(model, source) or DEFAULT_SLUG_SIZE
    return SlugConfig(
        source=source,
        permanent=permanent_slug,
        size=size,
        field=field,
        max_attempts=max_attempts,
    )


def has_source(model: type[BaseModel], name: str) -> bool:
    info = model.model_fields.get(name)
    if info is not None:
        return _is_str_annotation(info.annotation)
    attribute = inspect.getattr_static(model, name, None)
    return isinstance(attribute, property) or callable(attribute)


def declared_size(model: type[BaseModel], name: str) -> int | None:
    info: FieldInfo | None = model.model_fields.get(name)
    if info is None:
        return None
    for constraint in info.metadata:
        if isinstance(constraint, MaxLen):
            return constraint.max_length
        if isinstance(constraint, StringConstraints) and constraint.max_length is not None:
            return constraint.max_length
    return None


def _is_str_annotation(annotation: Any) -> bool:
    if annotation is str:
        return True
    if get_origin(annotation) in (Union, types.UnionType):
        return any(arg is str for arg in get_args(annotation))
    return False
