"""Recipe form text <-> recipe fields.

Ingredients and instructions are typed one per line. A line starting with `#`
opens a named group, e.g.

    # For the sauce
    2 tbsp butter
    2 tbsp flour
"""

from typing import Any

from starlette.datastructures import FormData

from recipe_book.models import IngredientGroup, InstructionGroup, Recipe, RecipeAnalysis


def split_lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def parse_grouped_lines(text: str) -> tuple[list[str], list[tuple[str, list[str]]]]:
    """Flat items, plus groups when any `#` heading is present."""
    lines = split_lines(text)
    if not any(line.startswith("#") for line in lines):
        return lines, []

    items: list[str] = []
    groups: list[tuple[str, list[str]]] = []
    for line in lines:
        if line.startswith("#"):
            groups.append((line.lstrip("#").strip(), []))
            continue
        if not groups:
            groups.append(("", []))
        groups[-1][1].append(line)
        items.append(line)
    return items, [(name, group) for name, group in groups if group]


def grouped_text(items: list[str], groups: list[tuple[str, list[str]]]) -> str:
    if not groups:
        return "\n".join(items)
    parts = []
    for name, group in groups:
        if name:
            parts.append(f"# {name}")
        parts.extend(group)
    return "\n".join(parts)


def recipe_fields_from_form(form: FormData) -> dict[str, Any]:
    ingredients, ingredient_groups = parse_grouped_lines(str(form.get("ingredients", "")))
    instructions, instruction_groups = parse_grouped_lines(
        str(form.get("instructions", ""))
    )
    return {
        "title": str(form.get("title", "")),
        "description": str(form.get("description", "")),
        "ingredients": ingredients,
        "ingredient_groups": [
            IngredientGroup(name=name, ingredients=group, sort_order=i)
            for i, (name, group) in enumerate(ingredient_groups)
        ],
        "instructions": instructions,
        "instruction_groups": [
            InstructionGroup(name=name, instructions=group, sort_order=i)
            for i, (name, group) in enumerate(instruction_groups)
        ],
        "prep_time": str(form.get("prep_time", "")),
        "cook_time": str(form.get("cook_time", "")),
        "servings": str(form.get("servings", "")),
        "category": str(form.get("category", "")),
    }


def form_values(recipe: Recipe | RecipeAnalysis | None) -> dict[str, str]:
    """Prefill values for the recipe form."""
    if recipe is None:
        return {}
    return {
        "title": recipe.title,
        "description": recipe.description,
        "ingredients": grouped_text(
            recipe.ingredients,
            [(g.name, g.ingredients) for g in recipe.ingredient_groups],
        ),
        "instructions": grouped_text(
            recipe.instructions,
            [(g.name, g.instructions) for g in recipe.instruction_groups],
        ),
        "prep_time": recipe.prep_time,
        "cook_time": recipe.cook_time,
        "servings": recipe.servings,
        "category": recipe.category,
    }
