CATEGORIES = (
    "Appetizer",
    "Breakfast",
    "Lunch",
    "Dinner",
    "Side Dish",
    "Dessert",
    "Snack",
    "Beverage",
)

DEFAULT_CATEGORY = "Dinner"

CATEGORY_SLUGS = {
    "Appetizer": "appetizer",
    "Breakfast": "breakfast",
    "Lunch": "lunch",
    "Dinner": "dinner",
    "Side Dish": "side-dish",
    "Dessert": "dessert",
    "Snack": "snack",
    "Beverage": "beverage",
}

CATEGORY_FROM_SLUG = {slug: name for name, slug in CATEGORY_SLUGS.items()}

# Names the model was historically prompted with.
LEGACY_CATEGORIES = {
    "main course": "Dinner",
    "main": "Dinner",
    "entree": "Dinner",
    "starter": "Appetizer",
    "side": "Side Dish",
    "drink": "Beverage",
}


def category_slug(name: str) -> str | None:
    return CATEGORY_SLUGS.get(name)


def category_from_slug(slug: str) -> str | None:
    return CATEGORY_FROM_SLUG.get(slug.lower())


def find_category(raw: str | None) -> str | None:
    """The category named by `raw` (a name, slug or legacy name), if any."""
    if not raw:
        return None
    value = " ".join(raw.strip().split())
    for name in CATEGORIES:
        if name.lower() == value.lower():
            return name
    from_slug = category_from_slug(value)
    if from_slug is not None:
        return from_slug
    return LEGACY_CATEGORIES.get(value.lower())


def normalize_category(raw: str | None) -> str:
    """Map whatever a user or the model gave us onto one of `CATEGORIES`."""
    return find_category(raw) or DEFAULT_CATEGORY
