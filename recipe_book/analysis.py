"""Turn a model's answer into a `RecipeAnalysis`.

The model is asked for bare JSON but does not always comply. It may wrap the
object in markdown fences or surround it with chatter, so we strip fences,
then fall back to the first brace-delimited block.
"""

import json
import logging
import re
from typing import Any

from recipe_book.categories import normalize_category
from recipe_book.errors import AnalysisParseError, MissingFieldsError
from recipe_book.models import IngredientGroup, InstructionGroup, RecipeAnalysis


logger = logging.getLogger(__name__)


REQUIRED_FIELDS = ("title", "ingredients", "instructions")
UNTITLED = "Untitled Recipe"
DEFAULT_SERVINGS = "4"

FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
FENCE_END = re.compile(r"\s*```$")
JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


def strip_fences(content: str) -> str:
    cleaned = content.strip()
    if cleaned.startswith("```"):
        cleaned = FENCE_START.sub("", cleaned)
        cleaned = FENCE_END.sub("", cleaned)
    return cleaned


def parse_json_object(content: str) -> dict[str, Any]:
    try:
        data = json.loads(strip_fences(content))
    except json.JSONDecodeError:
        match = JSON_BLOCK.search(content)
        if match is None:
            logger.error("No JSON found in AI response: %s", content)
            raise AnalysisParseError("AI response did not contain valid recipe data")
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError:
            logger.error("Failed to parse AI response as JSON: %s", content)
            raise AnalysisParseError("Failed to parse recipe data from AI response")

    if not isinstance(data, dict):
        raise AnalysisParseError("AI response did not contain valid recipe data")
    return data


def as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        value = [value]
    return [str(v).strip() for v in value if v and str(v).strip()]


def as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _groups(raw: Any, key: str) -> list[dict[str, Any]]:
    if not isinstance(raw, list):
        return []
    groups = []
    for i, group in enumerate(raw):
        if not isinstance(group, dict):
            continue
        items = as_list(group.get(key))
        if not items:
            continue
        groups.append({"name": as_text(group.get("name")), key: items, "sortOrder": i})
    return groups


def missing_fields(data: dict[str, Any]) -> list[str]:
    missing = []
    for field in REQUIRED_FIELDS:
        if field in ("ingredients", "instructions"):
            groups_key = "ingredientGroups" if field == "ingredients" else "instructionGroups"
            if data.get(field) or data.get(groups_key):
                continue
        elif data.get(field):
            continue
        missing.append(field)
    return missing


def analysis_from_dict(data: dict[str, Any]) -> RecipeAnalysis:
    """Build a `RecipeAnalysis`, filling in defaults for optional fields.

    Grouped ingredients/instructions also populate the flat lists when the
    model only gave groups, so consumers reading the flat lists see everything.
    """
    ingredient_groups = [
        IngredientGroup.from_dict(g, i)
        for i, g in enumerate(_groups(data.get("ingredientGroups"), "ingredients"))
    ]
    instruction_groups = [
        InstructionGroup.from_dict(g, i)
        for i, g in enumerate(_groups(data.get("instructionGroups"), "instructions"))
    ]

    ingredients = as_list(data.get("ingredients"))
    if not ingredients:
        ingredients = [i for g in ingredient_groups for i in g.ingredients]
    instructions = as_list(data.get("instructions"))
    if not instructions:
        instructions = [i for g in instruction_groups for i in g.instructions]

    return RecipeAnalysis(
        title=as_text(data.get("title")) or UNTITLED,
        description=as_text(data.get("description")),
        ingredients=ingredients,
        ingredient_groups=ingredient_groups,
        instructions=instructions,
        instruction_groups=instruction_groups,
        prep_time=as_text(data.get("prepTime")),
        cook_time=as_text(data.get("cookTime")),
        servings=as_text(data.get("servings")) or DEFAULT_SERVINGS,
        category=normalize_category(as_text(data.get("category"))),
    )


def parse_analysis(content: str, *, validate: bool = True) -> RecipeAnalysis:
    """Parse one answer from the model.

    With `validate` the answer must carry a title, ingredients and
    instructions. Single pages of a multi-page recipe are parsed without it
    and validated once merged.
    """
    data = parse_json_object(content)
    if validate:
        missing = missing_fields(data)
        if missing:
            raise MissingFieldsError(missing)
    return analysis_from_dict(data)


def validate_analysis(analysis: RecipeAnalysis) -> RecipeAnalysis:
    missing = []
    if not analysis.title or analysis.title == UNTITLED:
        missing.append("title")
    if not analysis.ingredients:
        missing.append("ingredients")
    if not analysis.instructions:
        missing.append("instructions")
    if missing:
        raise MissingFieldsError(missing)
    return analysis
