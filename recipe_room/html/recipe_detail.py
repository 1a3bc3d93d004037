from markupsafe import Markup

from recipe_book.categories import category_slug
from recipe_book.models import Recipe


class RecipeDetail:
    def __init__(
        self,
        recipe: Recipe,
        *,
        can_edit: bool = False,
    ) -> None:
        self.recipe = recipe
        self.can_edit = can_edit

    @property
    def title(self) -> str:
        return self.recipe.title

    @property
    def description(self) -> Markup:
        return Markup(self.recipe.html)

    @property
    def category_url(self) -> str:
        return f"/category/{category_slug(self.recipe.category) or ''}"

    @property
    def ingredient_sections(self) -> list[tuple[str, list[str]]]:
        """Grouped when the recipe has groups, else one unnamed section."""
        if self.recipe.ingredient_groups:
            return [(g.name, g.ingredients) for g in self.recipe.ingredient_groups]
        return [("", self.recipe.ingredients)]

    @property
    def instruction_sections(self) -> list[tuple[str, list[str]]]:
        if self.recipe.instruction_groups:
            return [(g.name, g.instructions) for g in self.recipe.instruction_groups]
        return [("", self.recipe.instructions)]
