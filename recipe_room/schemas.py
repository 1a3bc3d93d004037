from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from recipe_book.models import IngredientGroup, InstructionGroup


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IngredientGroupIn(CamelModel):
    name: str = ""
    ingredients: list[str] = Field(default_factory=list)


class InstructionGroupIn(CamelModel):
    name: str = ""
    instructions: list[str] = Field(default_factory=list)


class RecipeIn(CamelModel):
    """Recipe fields as the API receives them. Every field is optional so the
    same model serves creation and partial updates."""

    title: str | None = Field(default=None, json_schema_extra={"example": "Simple Pancakes"})
    description: str | None = None
    ingredients: list[str] | None = Field(
        default=None, json_schema_extra={"example": ["flour", "milk", "egg"]}
    )
    ingredient_groups: list[IngredientGroupIn] | None = None
    instructions: list[str] | None = None
    instruction_groups: list[InstructionGroupIn] | None = None
    prep_time: str | None = None
    cook_time: str | None = None
    servings: str | None = None
    category: str | None = None
    image: str | None = None
    image_path: str | None = None
    featured: bool | None = None
    featured_order: int | None = None

    @field_validator("servings", mode="before")
    @classmethod
    def servings_as_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    def to_fields(self) -> dict[str, Any]:
        """Only the fields the client sent, groups as domain objects."""
        fields = self.model_dump(exclude_unset=True)
        if self.ingredient_groups is not None:
            fields["ingredient_groups"] = [
                IngredientGroup(name=g.name, ingredients=g.ingredients, sort_order=i)
                for i, g in enumerate(self.ingredient_groups)
            ]
        if self.instruction_groups is not None:
            fields["instruction_groups"] = [
                InstructionGroup(name=g.name, instructions=g.instructions, sort_order=i)
                for i, g in enumerate(self.instruction_groups)
            ]
        return {k: v for k, v in fields.items() if v is not None or k == "featured_order"}


class AnalyzeRecipeIn(CamelModel):
    image_data: str | list[str] | None = None


class ExtractRecipeUrlIn(CamelModel):
    url: str | None = None


class ChatHistoryEntry(CamelModel):
    sender: str
    text: str


class ChefIn(CamelModel):
    message: str
    conversation_history: list[ChatHistoryEntry] = Field(default_factory=list)


class ImageDeleteIn(CamelModel):
    path: str
