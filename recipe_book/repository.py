import json
from typing import Any, Mapping

from databases import Database

from recipe_book.errors import RecipeNotFound
from recipe_book.models import IngredientGroup, InstructionGroup, Recipe


CREATE_RECIPES_TABLE = """
CREATE TABLE IF NOT EXISTS recipes (
    id VARCHAR(64) PRIMARY KEY,
    user_id VARCHAR(64) NOT NULL,
    title VARCHAR(256) NOT NULL,
    slug VARCHAR(128) NOT NULL UNIQUE,
    description TEXT NOT NULL DEFAULT '',
    ingredients TEXT NOT NULL DEFAULT '[]',
    ingredient_groups TEXT NOT NULL DEFAULT '[]',
    instructions TEXT NOT NULL DEFAULT '[]',
    instruction_groups TEXT NOT NULL DEFAULT '[]',
    prep_time VARCHAR(64) NOT NULL DEFAULT '',
    cook_time VARCHAR(64) NOT NULL DEFAULT '',
    servings VARCHAR(32) NOT NULL DEFAULT '',
    category VARCHAR(64) NOT NULL DEFAULT '',
    image TEXT NOT NULL DEFAULT '',
    image_path VARCHAR(256) NOT NULL DEFAULT '',
    featured BOOLEAN NOT NULL DEFAULT 0,
    featured_order INTEGER,
    by_admin BOOLEAN NOT NULL DEFAULT 0,
    created_at VARCHAR(40) NOT NULL,
    updated_at VARCHAR(40)
)
"""

CREATE_RECIPES_USER_INDEX = (
    "CREATE INDEX IF NOT EXISTS recipes_user_id ON recipes (user_id)"
)

CREATE_RECIPE = """
INSERT INTO recipes (
    id, user_id, title, slug, description, ingredients, ingredient_groups,
    instructions, instruction_groups, prep_time, cook_time, servings, category,
    image, image_path, featured, featured_order, by_admin, created_at, updated_at
) VALUES (
    :id, :user_id, :title, :slug, :description, :ingredients, :ingredient_groups,
    :instructions, :instruction_groups, :prep_time, :cook_time, :servings, :category,
    :image, :image_path, :featured, :featured_order, :by_admin, :created_at, :updated_at
)
"""

GET_RECIPE = "SELECT * FROM recipes WHERE id = :id"

GET_RECIPE_BY_SLUG = "SELECT * FROM recipes WHERE slug = :slug"

SLUG_EXISTS = "SELECT 1 FROM recipes WHERE slug = :slug"

DELETE_RECIPE = "DELETE FROM recipes WHERE id = :id"

# Anonymous viewers see featured and admin recipes, users also see their own.
VISIBLE = "(featured = 1 OR by_admin = 1 OR user_id = :viewer)"

SEARCHABLE = (
    "title",
    "description",
    "category",
    "ingredients",
)

JSON_COLUMNS = ("ingredients", "instructions")
GROUP_COLUMNS = ("ingredient_groups", "instruction_groups")
UPDATABLE = (
    "title",
    "slug",
    "description",
    "ingredients",
    "ingredient_groups",
    "instructions",
    "instruction_groups",
    "prep_time",
    "cook_time",
    "servings",
    "category",
    "image",
    "image_path",
    "featured",
    "featured_order",
    "updated_at",
)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _to_column(name: str, value: Any) -> Any:
    if name in JSON_COLUMNS:
        return json.dumps(list(value or []), ensure_ascii=False)
    if name in GROUP_COLUMNS:
        return json.dumps([g.to_dict() for g in value or []], ensure_ascii=False)
    return value


def recipe_to_values(recipe: Recipe) -> dict[str, Any]:
    values = {
        "id": recipe.id,
        "user_id": recipe.user_id,
        "title": recipe.title,
        "slug": recipe.slug,
        "description": recipe.description,
        "prep_time": recipe.prep_time,
        "cook_time": recipe.cook_time,
        "servings": recipe.servings,
        "category": recipe.category,
        "image": recipe.image,
        "image_path": recipe.image_path,
        "featured": recipe.featured,
        "featured_order": recipe.featured_order,
        "by_admin": recipe.by_admin,
        "created_at": recipe.created_at,
        "updated_at": recipe.updated_at,
    }
    for name in (*JSON_COLUMNS, *GROUP_COLUMNS):
        values[name] = _to_column(name, getattr(recipe, name))
    return values


def recipe_from_row(row: Mapping[str, Any]) -> Recipe:
    def loads(name: str) -> list[Any]:
        raw = row[name]
        return json.loads(raw) if raw else []

    return Recipe(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        slug=row["slug"],
        description=row["description"] or "",
        ingredients=loads("ingredients"),
        ingredient_groups=[
            IngredientGroup.from_dict(g, i)
            for i, g in enumerate(loads("ingredient_groups"))
        ],
        instructions=loads("instructions"),
        instruction_groups=[
            InstructionGroup.from_dict(g, i)
            for i, g in enumerate(loads("instruction_groups"))
        ],
        prep_time=row["prep_time"] or "",
        cook_time=row["cook_time"] or "",
        servings=row["servings"] or "",
        category=row["category"] or "",
        image=row["image"] or "",
        image_path=row["image_path"] or "",
        featured=bool(row["featured"]),
        featured_order=row["featured_order"],
        by_admin=bool(row["by_admin"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class RecipesRepository:
    """Recipes repository."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def create_tables(self) -> None:
        await self.db.execute(query=CREATE_RECIPES_TABLE)  # pyright: ignore[reportUnknownMemberType]
        await self.db.execute(query=CREATE_RECIPES_USER_INDEX)  # pyright: ignore[reportUnknownMemberType]

    async def create(self, recipe: Recipe) -> Recipe:
        await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            CREATE_RECIPE, values=recipe_to_values(recipe)
        )
        return recipe

    async def get(self, id: str) -> Recipe:
        row = await self.db.fetch_one(  # pyright: ignore[reportUnknownMemberType]
            GET_RECIPE, values={"id": id}
        )
        if row is None:
            raise RecipeNotFound()
        return recipe_from_row(row)  # pyright: ignore[reportArgumentType]

    async def get_by_slug(self, slug: str) -> Recipe:
        row = await self.db.fetch_one(  # pyright: ignore[reportUnknownMemberType]
            GET_RECIPE_BY_SLUG, values={"slug": slug}
        )
        if row is None:
            raise RecipeNotFound()
        return recipe_from_row(row)  # pyright: ignore[reportArgumentType]

    async def slug_exists(self, slug: str) -> bool:
        row = await self.db.fetch_one(  # pyright: ignore[reportUnknownMemberType]
            SLUG_EXISTS, values={"slug": slug}
        )
        return row is not None

    async def find(
        self,
        *,
        query: str | None = None,
        category: str | None = None,
        featured: bool | None = None,
        user_id: str | None = None,
        visible_to: str | None = None,
        unrestricted: bool = False,
    ) -> list[Recipe]:
        """Recipes newest first.

        `visible_to` is the viewing user's id, `unrestricted` lifts the
        visibility rule entirely (admins).
        """
        clauses: list[str] = []
        values: dict[str, Any] = {}

        if not unrestricted:
            clauses.append(VISIBLE)
            values["viewer"] = visible_to
        if query:
            like = " OR ".join(
                f"LOWER({column}) LIKE :query ESCAPE '\\'" for column in SEARCHABLE
            )
            clauses.append(f"({like})")
            values["query"] = f"%{_escape_like(query.strip().lower())}%"
        if category:
            clauses.append("category = :category")
            values["category"] = category
        if featured is not None:
            clauses.append("featured = :featured")
            values["featured"] = featured
        if user_id:
            clauses.append("user_id = :user_id")
            values["user_id"] = user_id

        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
            f"SELECT * FROM recipes{where} ORDER BY created_at DESC, rowid DESC",
            values=values,
        )
        return [recipe_from_row(r) for r in rows]  # pyright: ignore[reportArgumentType]

    async def featured(self, *, limit: int | None = None) -> list[Recipe]:
        sql = (
            "SELECT * FROM recipes WHERE featured = 1 "
            "ORDER BY featured_order IS NOT NULL, featured_order ASC, "
            "created_at DESC, rowid DESC"
        )
        values: dict[str, Any] = {}
        if limit is not None:
            sql += " LIMIT :limit"
            values["limit"] = limit
        rows = await self.db.fetch_all(sql, values=values)  # pyright: ignore[reportUnknownMemberType]
        return [recipe_from_row(r) for r in rows]  # pyright: ignore[reportArgumentType]

    async def search(
        self,
        query: str,
        *,
        visible_to: str | None = None,
        unrestricted: bool = False,
    ) -> list[Recipe]:
        return await self.find(
            query=query, visible_to=visible_to, unrestricted=unrestricted
        )

    async def update(self, id: str, fields: dict[str, Any]) -> Recipe:
        changes = {k: v for k, v in fields.items() if k in UPDATABLE}
        if changes:
            assignments = ", ".join(f"{k} = :{k}" for k in changes)
            values = {k: _to_column(k, v) for k, v in changes.items()}
            values["id"] = id
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                f"UPDATE recipes SET {assignments} WHERE id = :id", values=values
            )
        return await self.get(id)

    async def delete(self, id: str) -> None:
        await self.get(id)
        await self.db.execute(DELETE_RECIPE, values={"id": id})  # pyright: ignore[reportUnknownMemberType]

    async def category_counts(
        self,
        *,
        visible_to: str | None = None,
        unrestricted: bool = False,
    ) -> dict[str, int]:
        where = "" if unrestricted else f" WHERE {VISIBLE}"
        values = {} if unrestricted else {"viewer": visible_to}
        rows = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
            f"SELECT category, COUNT(*) AS n FROM recipes{where} "
            "GROUP BY category ORDER BY category",
            values=values,
        )
        return {r["category"]: r["n"] for r in rows}  # pyright: ignore[reportUnknownVariableType]
