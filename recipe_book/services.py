"""Recipe use cases. Ownership and admin rules live here, storage does not care."""

from datetime import datetime, timezone
import logging
from pathlib import Path
from typing import Any
import uuid

from recipe_book.categories import find_category, normalize_category
from recipe_book.errors import Forbidden, InvalidRecipe, NotAuthenticated, RecipeNotFound
from recipe_book.images import InvalidImage, delete_image, image_owner
from recipe_book.models import Recipe, User
from recipe_book.repository import RecipesRepository
from recipe_book.slugs import unique_slug


logger = logging.getLogger(__name__)


ADMIN_ONLY = ("featured", "featured_order")


def now() -> str:
    return datetime.now(timezone.utc).isoformat()


def is_admin(user: User | None, admin_user_id: str | None) -> bool:
    return bool(user and admin_user_id and user.id == admin_user_id)


def can_view(recipe: Recipe, user: User | None, admin_user_id: str | None) -> bool:
    if recipe.featured or recipe.by_admin:
        return True
    if user is None:
        return False
    return recipe.user_id == user.id or is_admin(user, admin_user_id)


def can_edit(recipe: Recipe, user: User | None, admin_user_id: str | None) -> bool:
    if user is None:
        return False
    return recipe.user_id == user.id or is_admin(user, admin_user_id)


def _clean_fields(fields: dict[str, Any]) -> dict[str, Any]:
    cleaned = dict(fields)
    if "title" in cleaned:
        cleaned["title"] = str(cleaned["title"] or "").strip()
        if not cleaned["title"]:
            raise InvalidRecipe("Title is required")
    if "category" in cleaned:
        cleaned["category"] = normalize_category(cleaned["category"])
    for name in ("ingredients", "instructions"):
        if name in cleaned:
            cleaned[name] = [str(i).strip() for i in cleaned[name] or [] if str(i).strip()]
    # Keep the flat lists in step with the groups, search reads the flat lists.
    if cleaned.get("ingredient_groups") and not cleaned.get("ingredients"):
        cleaned["ingredients"] = [
            i for g in cleaned["ingredient_groups"] for i in g.ingredients
        ]
    if cleaned.get("instruction_groups") and not cleaned.get("instructions"):
        cleaned["instructions"] = [
            i for g in cleaned["instruction_groups"] for i in g.instructions
        ]
    return cleaned


def _check_image_path(
    fields: dict[str, Any], user: User, current: str = ""
) -> None:
    path = fields.get("image_path")
    if path and path != current and image_owner(path) != user.id:
        raise InvalidImage("Invalid image path.")


async def get_recipe(
    id: str,
    *,
    user: User | None,
    repository: RecipesRepository,
    admin_user_id: str | None = None,
) -> Recipe:
    recipe = await repository.get(id)
    if not can_view(recipe, user, admin_user_id):
        raise RecipeNotFound()
    return recipe


async def get_recipe_by_slug(
    slug: str,
    *,
    user: User | None,
    repository: RecipesRepository,
    admin_user_id: str | None = None,
) -> Recipe:
    recipe = await repository.get_by_slug(slug)
    if not can_view(recipe, user, admin_user_id):
        raise RecipeNotFound()
    return recipe


async def list_recipes(
    *,
    user: User | None,
    repository: RecipesRepository,
    admin_user_id: str | None = None,
    query: str | None = None,
    category: str | None = None,
    featured: bool | None = None,
) -> list[Recipe]:
    if category:
        category = find_category(category)
        if category is None:
            return []
    return await repository.find(
        query=query,
        category=category,
        featured=featured,
        visible_to=user.id if user else None,
        unrestricted=is_admin(user, admin_user_id),
    )


async def category_counts(
    *,
    user: User | None,
    repository: RecipesRepository,
    admin_user_id: str | None = None,
) -> dict[str, int]:
    return await repository.category_counts(
        visible_to=user.id if user else None,
        unrestricted=is_admin(user, admin_user_id),
    )


async def create_recipe(
    fields: dict[str, Any],
    *,
    user: User | None,
    repository: RecipesRepository,
    admin_user_id: str | None = None,
) -> Recipe:
    if user is None:
        raise NotAuthenticated()
    cleaned = _clean_fields({"title": "", **fields})
    _check_image_path(cleaned, user)
    admin = is_admin(user, admin_user_id)
    if not admin:
        for name in ADMIN_ONLY:
            cleaned.pop(name, None)

    recipe = Recipe(
        id=uuid.uuid4().hex,
        user_id=user.id,
        title=cleaned["title"],
        slug=await unique_slug(cleaned["title"], repository.slug_exists),
        description=cleaned.get("description") or "",
        ingredients=cleaned.get("ingredients"),
        ingredient_groups=cleaned.get("ingredient_groups"),
        instructions=cleaned.get("instructions"),
        instruction_groups=cleaned.get("instruction_groups"),
        prep_time=cleaned.get("prep_time") or "",
        cook_time=cleaned.get("cook_time") or "",
        servings=cleaned.get("servings") or "",
        category=cleaned.get("category") or normalize_category(None),
        image=cleaned.get("image") or "",
        image_path=cleaned.get("image_path") or "",
        featured=bool(cleaned.get("featured")),
        featured_order=cleaned.get("featured_order"),
        by_admin=admin,
        created_at=now(),
    )
    await repository.create(recipe)
    logger.info("Created recipe %s (%s) for user %s", recipe.slug, recipe.id, user.id)
    return recipe


async def update_recipe(
    id: str,
    fields: dict[str, Any],
    *,
    user: User | None,
    repository: RecipesRepository,
    admin_user_id: str | None = None,
    uploads_dir: Path | None = None,
) -> Recipe:
    """Change only the given fields of a recipe the user may edit.

    A replaced image is removed from `uploads_dir` once the update is stored.
    """
    if user is None:
        raise NotAuthenticated()
    recipe = await repository.get(id)
    if not can_edit(recipe, user, admin_user_id):
        raise Forbidden()

    changes = _clean_fields(fields)
    _check_image_path(changes, user, current=recipe.image_path)
    if not is_admin(user, admin_user_id):
        for name in ADMIN_ONLY:
            changes.pop(name, None)

    if "title" in changes and changes["title"] != recipe.title:

        async def taken(slug: str) -> bool:
            return slug != recipe.slug and await repository.slug_exists(slug)

        changes["slug"] = await unique_slug(changes["title"], taken)

    changes["updated_at"] = now()
    updated = await repository.update(id, changes)
    if (
        uploads_dir is not None
        and recipe.image_path
        and updated.image_path != recipe.image_path
    ):
        delete_image(recipe.image_path, uploads_dir=uploads_dir)
    logger.info("Updated recipe %s", id)
    return updated


async def delete_recipe(
    id: str,
    *,
    user: User | None,
    repository: RecipesRepository,
    admin_user_id: str | None = None,
    uploads_dir: Path | None = None,
) -> None:
    if user is None:
        raise NotAuthenticated()
    recipe = await repository.get(id)
    if not can_edit(recipe, user, admin_user_id):
        raise Forbidden()
    await repository.delete(id)
    if recipe.image_path and uploads_dir is not None:
        delete_image(recipe.image_path, uploads_dir=uploads_dir)
    logger.info("Deleted recipe %s", id)
