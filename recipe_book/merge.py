"""Merge several analyses of the same recipe into one.

A recipe photographed over several pages is analysed one page at a time.
Pages overlap, so the same ingredient or step can show up in more than one
analysis, sometimes cut short at a page edge. Merging keeps the order the
pages were given in and drops those repeats.
"""

from collections import Counter
import re
from typing import Callable, Iterable, Sequence

from recipe_book.analysis import UNTITLED
from recipe_book.categories import normalize_category
from recipe_book.models import IngredientGroup, InstructionGroup, RecipeAnalysis


# Keys shorter than this never absorb, or get absorbed by, a longer item.
MIN_CONTAINED_WORDS = 3

BULLET = re.compile(r"^\s*[-*•·–]+\s*")
NUMBERING = re.compile(
    r"^\s*(?:step\s*\d+\s*[:.)\-]?|\(?\d+\s*(?:[.:](?!\d)|\))|\d+\s+-\s)\s*", re.IGNORECASE
)
NOT_WORD = re.compile(r"[^\w/]+")


def clean_ingredient(text: str) -> str:
    return BULLET.sub("", text).strip()


def clean_instruction(text: str) -> str:
    cleaned = BULLET.sub("", text)
    previous = None
    while previous != cleaned:
        previous = cleaned
        cleaned = NUMBERING.sub("", cleaned)
    return cleaned.strip()


def item_key(text: str) -> str:
    """Comparison key: lower case, no markers or numbering, no punctuation."""
    key = clean_instruction(text).lower()
    key = NOT_WORD.sub(" ", key).replace("_", " ")
    return " ".join(key.split())


def is_duplicate(a: str, b: str) -> bool:
    if a == b:
        return True
    shorter, longer = (a, b) if len(a) <= len(b) else (b, a)
    if len(shorter.split()) < MIN_CONTAINED_WORDS:
        return False
    return f" {shorter} " in f" {longer} "


def dedupe(items: Iterable[str], clean: Callable[[str], str]) -> list[str]:
    """Order-preserving de-duplication keeping the more detailed wording."""
    kept: list[tuple[str, str]] = []
    for item in items:
        text = clean(item)
        key = item_key(text)
        if not key:
            continue
        for i, (seen_key, seen_text) in enumerate(kept):
            if is_duplicate(key, seen_key):
                if len(text) > len(seen_text):
                    kept[i] = (key, text)
                break
        else:
            kept.append((key, text))
    return [text for _, text in kept]


def _merge_named(
    groups: Iterable[tuple[str, list[str]]],
    clean: Callable[[str], str],
) -> list[tuple[str, list[str]]]:
    names: dict[str, str] = {}
    items: dict[str, list[str]] = {}
    for name, group_items in groups:
        key = " ".join(name.lower().split())
        if key not in names:
            names[key] = name.strip()
            items[key] = []
        items[key].extend(group_items)
    merged = []
    for key, name in names.items():
        unique = dedupe(items[key], clean)
        if unique:
            merged.append((name, unique))
    return merged


def merge_ingredient_groups(
    groups: Iterable[IngredientGroup],
) -> list[IngredientGroup]:
    merged = _merge_named(((g.name, g.ingredients) for g in groups), clean_ingredient)
    return [
        IngredientGroup(name=name, ingredients=items, sort_order=i)
        for i, (name, items) in enumerate(merged)
    ]


def merge_instruction_groups(
    groups: Iterable[InstructionGroup],
) -> list[InstructionGroup]:
    merged = _merge_named(((g.name, g.instructions) for g in groups), clean_instruction)
    return [
        InstructionGroup(name=name, instructions=items, sort_order=i)
        for i, (name, items) in enumerate(merged)
    ]


def _first(values: Iterable[str]) -> str:
    return next((v.strip() for v in values if v and v.strip()), "")


def _title(analyses: Sequence[RecipeAnalysis]) -> str:
    return _first(a.title for a in analyses if a.title.strip() != UNTITLED) or UNTITLED


def _category(analyses: Sequence[RecipeAnalysis]) -> str:
    votes = Counter(normalize_category(a.category) for a in analyses)
    # max() returns the first maximal element, so ties go to the earliest page.
    order = list(dict.fromkeys(normalize_category(a.category) for a in analyses))
    return max(order, key=lambda c: votes[c])


def merge_analyses(analyses: Sequence[RecipeAnalysis]) -> RecipeAnalysis:
    if not analyses:
        raise ValueError("Nothing to merge.")

    descriptions = [a.description.strip() for a in analyses if a.description.strip()]

    return RecipeAnalysis(
        title=_title(analyses),
        description=max(descriptions, key=len) if descriptions else "",
        ingredients=dedupe(
            (i for a in analyses for i in a.ingredients), clean_ingredient
        ),
        ingredient_groups=merge_ingredient_groups(
            g for a in analyses for g in a.ingredient_groups
        ),
        instructions=dedupe(
            (i for a in analyses for i in a.instructions), clean_instruction
        ),
        instruction_groups=merge_instruction_groups(
            g for a in analyses for g in a.instruction_groups
        ),
        prep_time=_first(a.prep_time for a in analyses),
        cook_time=_first(a.cook_time for a in analyses),
        servings=_first(a.servings for a in analyses),
        category=_category(analyses),
    )
