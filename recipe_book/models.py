from typing import Any

import markdown2  # pyright: ignore[reportMissingTypeStubs]


class IngredientGroup:
    def __init__(
        self,
        *,
        name: str,
        ingredients: list[str] | None = None,
        sort_order: int = 0,
    ) -> None:
        self.name = name
        self.ingredients = [] if ingredients is None else ingredients
        self.sort_order = sort_order

    def __repr__(self) -> str:
        return f"<IngredientGroup(name={self.name}, n={len(self.ingredients)})>"

    @classmethod
    def from_dict(cls, data: dict[str, Any], sort_order: int = 0) -> "IngredientGroup":
        return cls(
            name=str(data.get("name") or ""),
            ingredients=[str(i) for i in data.get("ingredients") or []],
            sort_order=int(data.get("sortOrder", sort_order) or sort_order),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "ingredients": self.ingredients,
            "sortOrder": self.sort_order,
        }


class InstructionGroup:
    def __init__(
        self,
        *,
        name: str,
        instructions: list[str] | None = None,
        sort_order: int = 0,
    ) -> None:
        self.name = name
        self.instructions = [] if instructions is None else instructions
        self.sort_order = sort_order

    def __repr__(self) -> str:
        return f"<InstructionGroup(name={self.name}, n={len(self.instructions)})>"

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], sort_order: int = 0
    ) -> "InstructionGroup":
        return cls(
            name=str(data.get("name") or ""),
            instructions=[str(i) for i in data.get("instructions") or []],
            sort_order=int(data.get("sortOrder", sort_order) or sort_order),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "instructions": self.instructions,
            "sortOrder": self.sort_order,
        }


class Recipe:
    def __init__(
        self,
        *,
        id: str,
        user_id: str,
        title: str,
        slug: str,
        description: str = "",
        ingredients: list[str] | None = None,
        ingredient_groups: list[IngredientGroup] | None = None,
        instructions: list[str] | None = None,
        instruction_groups: list[InstructionGroup] | None = None,
        prep_time: str = "",
        cook_time: str = "",
        servings: str = "",
        category: str = "",
        image: str = "",
        image_path: str = "",
        featured: bool = False,
        featured_order: int | None = None,
        by_admin: bool = False,
        created_at: str = "",
        updated_at: str | None = None,
    ) -> None:
        self.id = id
        self.user_id = user_id
        self.title = title
        self.slug = slug
        self.description = description
        self.ingredients = [] if ingredients is None else ingredients
        self.ingredient_groups = [] if ingredient_groups is None else ingredient_groups
        self.instructions = [] if instructions is None else instructions
        self.instruction_groups = (
            [] if instruction_groups is None else instruction_groups
        )
        self.prep_time = prep_time
        self.cook_time = cook_time
        self.servings = servings
        self.category = category
        self.image = image
        self.image_path = image_path
        self.featured = featured
        self.featured_order = featured_order
        self.by_admin = by_admin
        self.created_at = created_at
        self.updated_at = updated_at

    def __repr__(self) -> str:
        return f"<Recipe(id={self.id}, title={self.title})>"

    def __str__(self) -> str:
        return self.title

    @property
    def html(self) -> str:
        return markdown2.markdown(  # pyright: ignore[reportUnknownVariableType, reportUnknownMemberType]
            self.description, safe_mode="escape"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "slug": self.slug,
            "description": self.description,
            "ingredients": self.ingredients,
            "ingredientGroups": [g.to_dict() for g in self.ingredient_groups],
            "instructions": self.instructions,
            "instructionGroups": [g.to_dict() for g in self.instruction_groups],
            "prepTime": self.prep_time,
            "cookTime": self.cook_time,
            "servings": self.servings,
            "category": self.category,
            "image": self.image,
            "imagePath": self.image_path,
            "featured": self.featured,
            "featuredOrder": self.featured_order,
            "byAdmin": self.by_admin,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


class RecipeAnalysis:
    """Recipe data read out of an image, a webpage or chat by the model."""

    def __init__(
        self,
        *,
        title: str = "Untitled Recipe",
        description: str = "",
        ingredients: list[str] | None = None,
        ingredient_groups: list[IngredientGroup] | None = None,
        instructions: list[str] | None = None,
        instruction_groups: list[InstructionGroup] | None = None,
        prep_time: str = "",
        cook_time: str = "",
        servings: str = "4",
        category: str = "Dinner",
    ) -> None:
        self.title = title
        self.description = description
        self.ingredients = [] if ingredients is None else ingredients
        self.ingredient_groups = [] if ingredient_groups is None else ingredient_groups
        self.instructions = [] if instructions is None else instructions
        self.instruction_groups = (
            [] if instruction_groups is None else instruction_groups
        )
        self.prep_time = prep_time
        self.cook_time = cook_time
        self.servings = servings
        self.category = category

    def __repr__(self) -> str:
        return f"<RecipeAnalysis(title={self.title})>"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "ingredients": self.ingredients,
            "instructions": self.instructions,
            "prepTime": self.prep_time,
            "cookTime": self.cook_time,
            "servings": self.servings,
            "category": self.category,
        }
        if self.ingredient_groups:
            data["ingredientGroups"] = [g.to_dict() for g in self.ingredient_groups]
        if self.instruction_groups:
            data["instructionGroups"] = [
                g.to_dict() for g in self.instruction_groups
            ]
        return data


class AnalysisResult:
    def __init__(
        self,
        *,
        recipe: RecipeAnalysis,
        confidence: float,
        processing_time: int,
        image_count: int | None = None,
        source_url: str | None = None,
    ) -> None:
        self.recipe = recipe
        self.confidence = confidence
        self.processing_time = processing_time
        self.image_count = image_count
        self.source_url = source_url

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "recipe": self.recipe.to_dict(),
            "confidence": self.confidence,
            "processingTime": self.processing_time,
        }
        if self.image_count is not None:
            data["imageCount"] = self.image_count
        if self.source_url is not None:
            data["sourceUrl"] = self.source_url
        return data


class User:
    def __init__(
        self,
        *,
        id: str,
        email: str,
        name: str = "",
        password_hash: str = "",
        created_at: str = "",
    ) -> None:
        self.id = id
        self.email = email
        self.name = name
        self.password_hash = password_hash
        self.created_at = created_at

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"

    @property
    def display_name(self) -> str:
        return self.name or self.email.split("@")[0]

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "email": self.email, "name": self.name}
