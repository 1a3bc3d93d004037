import pytest

from recipe_book.categories import (
    CATEGORIES,
    CATEGORY_SLUGS,
    category_from_slug,
    find_category,
    normalize_category,
)
from recipe_book.slugs import slugify, unique_slug


def test_every_category_has_a_slug() -> None:
    assert set(CATEGORY_SLUGS) == set(CATEGORIES)
    assert all(category_from_slug(CATEGORY_SLUGS[name]) == name for name in CATEGORIES)


@pytest.mark.parametrize(
    "raw,expected",
    (
        ("Dessert", "Dessert"),
        ("  side   dish ", "Side Dish"),
        ("side-dish", "Side Dish"),
        ("Main Course", "Dinner"),
        ("Starter", "Appetizer"),
        ("Elevenses", "Dinner"),
        ("", "Dinner"),
        (None, "Dinner"),
    ),
)
def test_normalize_category(raw: str | None, expected: str) -> None:
    assert normalize_category(raw) == expected


@pytest.mark.parametrize(
    "raw,expected",
    (
        ("dessert", "Dessert"),
        ("SIDE-DISH", "Side Dish"),
        ("Main Course", "Dinner"),
        ("Nonsense", None),
        ("", None),
    ),
)
def test_find_category_does_not_guess(raw: str, expected: str | None) -> None:
    assert find_category(raw) == expected


@pytest.mark.parametrize(
    "title,expected",
    (
        ("Simple Pancakes", "simple-pancakes"),
        ("  Crème brûlée!  ", "creme-brulee"),
        ("Mac & Cheese (v2)", "mac-cheese-v2"),
        ("!!!", "recipe"),
    ),
)
def test_slugify(title: str, expected: str) -> None:
    assert slugify(title) == expected


def test_slugify_is_bounded() -> None:
    slug = slugify("very " * 40)
    assert len(slug) <= 80
    assert not slug.endswith("-")


@pytest.mark.asyncio
async def test_unique_slug_appends_counter() -> None:
    taken = {"pancakes", "pancakes-2"}

    async def exists(slug: str) -> bool:
        return slug in taken

    assert await unique_slug("Pancakes", exists) == "pancakes-3"
    assert await unique_slug("Waffles", exists) == "waffles"
