from __future__ import annotations

import pytest
from pydantic import BaseModel, Field

from slugdantic import SlugGenerator
from slugdantic.exceptions import InvalidSlugSource


class Page(BaseModel):
    title: str | None = Field(default=None, max_length=10)
    slug: str | None = None

    def label(self) -> str:
        return f"Page {self.title}"

    def weight(self) -> int:
        return 3


class Stub(BaseModel):
    slug: str | None = None


def test_non_permanent_slug_follows_source() -> None:
    generator = SlugGenerator.for_model(Page, source="title", permanent_slug=False)
    page = Page(title="Hello")

    assert generator.generate(page, {}.get) == "hello"
    page.title = "Goodbye"
    assert generator.generate(page, {}.get) == "goodbye"
    assert page.slug == "goodbye"


def test_permanent_slug_is_frozen() -> None:
    generator = SlugGenerator.for_model(Page, source="title")
    page = Page(title="Hello")

    generator.generate(page, {}.get)
    page.title = "Goodbye"
    generator.generate(page, {}.get)

    assert page.slug == "hello"


@pytest.mark.parametrize("title", [None, ""])
def test_empty_source_leaves_slug_alone(title: str | None) -> None:
    generator = SlugGenerator.for_model(Page, source="title", permanent_slug=False)
    page = Page(title=title, slug="kept")

    assert generator.generate(page, {}.get) == "kept"
    assert Page(title=title).slug is None


def test_long_source_is_truncated_to_size() -> None:
    generator = SlugGenerator.for_model(Page, source="label", size=8)
    page = Page(title="Overview")

    taken = {"page-ove": Page(title="Other")}
    assert generator.generate(page, taken.get) == "page-o-2"
    assert len(page.slug) == 8


def test_unreadable_source_fails_at_generation() -> None:
    generator = SlugGenerator.for_model(Page, source="title")
    with pytest.raises(InvalidSlugSource):
        generator.generate(Stub(), {}.get)


def test_non_string_source_fails() -> None:
    generator = SlugGenerator.for_model(Page, source="weight")
    with pytest.raises(InvalidSlugSource):
        generator.generate(Page(title="x"), {}.get)


def test_to_param_and_url_for() -> None:
    generator = SlugGenerator.for_model(Page, source="title")
    page = Page(title="About Us")

    assert generator.to_param(page) is None
    with pytest.raises(ValueError):
        generator.url_for(page)

    generator.generate(page, {}.get)
    assert generator.to_param(page) == "about-us"
    assert generator.url_for(page) == "/about-us"
    assert generator.url_for(page, prefix="/pages/") == "/pages/about-us"
