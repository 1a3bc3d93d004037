from starlette.datastructures import FormData

from recipe_book.models import IngredientGroup, Recipe
from recipe_room.forms import form_values, parse_grouped_lines, recipe_fields_from_form


def test_parse_grouped_lines_without_headings() -> None:
    items, groups = parse_grouped_lines("2 eggs\n\n  1 cup milk \n")
    assert items == ["2 eggs", "1 cup milk"]
    assert groups == []


def test_parse_grouped_lines_with_headings() -> None:
    items, groups = parse_grouped_lines(
        "pinch of salt\n# Dough\n500g flour\n# Empty\n## Sauce\n2 tbsp butter"
    )
    assert items == ["pinch of salt", "500g flour", "2 tbsp butter"]
    assert groups == [
        ("", ["pinch of salt"]),
        ("Dough", ["500g flour"]),
        ("Sauce", ["2 tbsp butter"]),
    ]


def test_recipe_fields_from_form() -> None:
    form = FormData(
        [
            ("title", "Pizza"),
            ("ingredients", "# Dough\n500g flour\n# Topping\ntomato"),
            ("instructions", "Knead\nBake"),
            ("servings", "2"),
            ("category", "Dinner"),
        ]
    )
    fields = recipe_fields_from_form(form)
    assert fields["title"] == "Pizza"
    assert fields["ingredients"] == ["500g flour", "tomato"]
    assert [(g.name, g.ingredients, g.sort_order) for g in fields["ingredient_groups"]] == [
        ("Dough", ["500g flour"], 0),
        ("Topping", ["tomato"], 1),
    ]
    assert fields["instructions"] == ["Knead", "Bake"]
    assert fields["instruction_groups"] == []
    assert fields["description"] == ""


def test_form_values_writes_group_headings() -> None:
    recipe = Recipe(
        id="1",
        user_id="u",
        title="Pizza",
        slug="pizza",
        ingredients=["500g flour", "tomato"],
        ingredient_groups=[
            IngredientGroup(name="Dough", ingredients=["500g flour"]),
            IngredientGroup(name="Topping", ingredients=["tomato"]),
        ],
        instructions=["Knead", "Bake"],
    )
    values = form_values(recipe)
    assert values["ingredients"] == "# Dough\n500g flour\n# Topping\ntomato"
    assert values["instructions"] == "Knead\nBake"
    assert form_values(None) == {}
