from pathlib import Path
from typing import Callable

import httpx
from starlette.testclient import TestClient

from conftest import FakeOpenAI, recipe_json
from recipe_book.llm_service import LLMService
from recipe_room.app import create_app
from recipe_room.config import Config


Signup = Callable[..., httpx.Response]

PIZZA_FORM = {
    "title": "Weeknight Pizza",
    "description": "Crisp and *quick*. <script>alert(1)</script>",
    "ingredients": "# Dough\n500g flour\n300ml water\n# Topping\ntomato sauce",
    "instructions": "Knead the dough\nBake hot",
    "prep_time": "20 minutes",
    "cook_time": "10 minutes",
    "servings": "2",
    "category": "Dinner",
}


def stored_images(client: TestClient) -> list[Path]:
    uploads: Path = client.app.state.config.uploads_dir  # pyright: ignore[reportAttributeAccessIssue]
    return sorted(p for p in uploads.rglob("*") if p.is_file())


def test_homepage(client: TestClient) -> None:
    resp = client.get("/")
    assert resp.status_code == 200
    assert "Recipe Collection" in resp.text
    assert 'href="/category/side-dish"' in resp.text


def test_signup_signin_signout(client: TestClient, signup: Signup) -> None:
    resp = signup(client, "cook@example.com", name="Ada")
    assert resp.status_code == 303
    assert resp.headers["location"] == "/"
    assert "Ada" in client.get("/").text

    resp = client.get("/auth/signin", follow_redirects=False)
    assert resp.status_code == 303

    client.post("/auth/signout")
    resp = client.post(
        "/auth/signin",
        data={"email": "cook@example.com", "password": "wrong-password"},
    )
    assert resp.status_code == 401
    assert "Invalid email or password" in resp.text

    resp = client.post(
        "/auth/signin?next=/profile",
        data={"email": " Cook@Example.com", "password": "secret123"},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    assert resp.headers["location"] == "/profile"


def test_signup_errors(client: TestClient, signup: Signup) -> None:
    signup(client, "cook@example.com")

    resp = signup(client, "cook@example.com")
    assert resp.status_code == 400
    assert "already exists" in resp.text

    resp = signup(client, "other@example.com", password="123")
    assert resp.status_code == 400
    assert "at least 6 characters" in resp.text


def test_signin_ignores_offsite_next(client: TestClient, signup: Signup) -> None:
    signup(client)
    client.post("/auth/signout")
    resp = client.post(
        "/auth/signin?next=//evil.example.com",
        data={"email": "cook@example.com", "password": "secret123"},
        follow_redirects=False,
    )
    assert resp.headers["location"] == "/"


def test_pages_need_sign_in(client: TestClient) -> None:
    for path in ("/add", "/profile"):
        resp = client.get(path, follow_redirects=False)
        assert resp.status_code == 303
        assert resp.headers["location"] == f"/auth/signin?next={path}"


def test_add_recipe(client: TestClient, signup: Signup) -> None:
    signup(client)
    resp = client.post("/add", data=PIZZA_FORM, follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/recipe/weeknight-pizza"

    page = client.get("/recipe/weeknight-pizza").text
    assert "<h3>Dough</h3>" in page
    assert "<li>300ml water</li>" in page
    assert "<em>quick</em>" in page
    assert "<script>alert(1)</script>" not in page
    assert "/recipe/weeknight-pizza/edit" in page

    assert "Weeknight Pizza" in client.get("/profile").text
    assert "Weeknight Pizza" in client.get("/category/dinner").text
    assert "Weeknight Pizza" in client.get("/search", params={"q": "flour"}).text


def test_add_recipe_with_photo(client: TestClient, signup: Signup) -> None:
    signup(client)
    resp = client.post(
        "/add",
        data=PIZZA_FORM,
        files={"image": ("pizza.png", b"\x89PNG\r\n", "image/png")},
    )
    assert resp.status_code == 200
    assert 'src="/uploads/' in resp.text


def test_add_recipe_needs_title(client: TestClient, signup: Signup) -> None:
    signup(client)
    resp = client.post(
        "/add",
        data={**PIZZA_FORM, "title": ""},
        files={"image": ("pizza.png", b"\x89PNG\r\n", "image/png")},
    )
    assert resp.status_code == 400
    assert "Title is required" in resp.text
    assert "500g flour" in resp.text
    assert stored_images(client) == []


def test_edit_replaces_photo(client: TestClient, signup: Signup) -> None:
    signup(client)
    client.post(
        "/add",
        data=PIZZA_FORM,
        files={"image": ("pizza.png", b"\x89PNG\r\n", "image/png")},
    )
    [first] = stored_images(client)
    assert first.suffix == ".png"

    resp = client.post(
        "/recipe/weeknight-pizza/edit",
        data=PIZZA_FORM,
        files={"image": ("pizza.gif", b"GIF89a", "image/gif")},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    [second] = stored_images(client)
    assert second.suffix == ".gif"
    assert f"/uploads/{second.parent.name}/{second.name}" in client.get(
        "/recipe/weeknight-pizza"
    ).text


def test_edit_and_delete(client: TestClient, signup: Signup) -> None:
    signup(client, "alice@example.com")
    client.post("/add", data=PIZZA_FORM)

    resp = client.get("/recipe/weeknight-pizza/edit")
    assert resp.status_code == 200
    assert "# Dough\n500g flour" in resp.text

    resp = client.post(
        "/recipe/weeknight-pizza/edit",
        data={**PIZZA_FORM, "title": "Friday Pizza"},
        follow_redirects=False,
    )
    assert resp.headers["location"] == "/recipe/friday-pizza"
    assert client.get("/recipe/weeknight-pizza").status_code == 404

    resp = client.post("/recipe/friday-pizza/delete", follow_redirects=False)
    assert resp.headers["location"] == "/profile"
    assert client.get("/recipe/friday-pizza").status_code == 404


def test_other_users_cannot_edit(client: TestClient, signup: Signup) -> None:
    signup(client, "alice@example.com")
    client.post("/add", data=PIZZA_FORM)
    recipe_id = client.get("/api/recipes").json()[0]["id"]

    signup(client, "bob@example.com")
    assert client.get("/recipe/weeknight-pizza").status_code == 404
    assert client.get(f"/api/recipes/{recipe_id}").status_code == 404

    resp = client.get("/recipe/weeknight-pizza/edit", follow_redirects=False)
    assert resp.status_code == 404


def test_featured_recipe_edit_is_forbidden(client: TestClient, signup: Signup) -> None:
    signup(client, "admin@example.com")
    client.post("/add", data=PIZZA_FORM)
    admin_id = client.get("/api/recipes").json()[0]["userId"]
    client.app.state.config.admin_user_id = admin_id  # pyright: ignore[reportAttributeAccessIssue]
    client.post("/add", data={**PIZZA_FORM, "title": "House Pizza"})

    signup(client, "bob@example.com")
    page = client.get("/recipe/house-pizza")
    assert page.status_code == 200
    assert "/recipe/house-pizza/edit" not in page.text

    resp = client.get("/recipe/house-pizza/edit")
    assert resp.status_code == 403
    assert "You can only edit your own recipes." in resp.text

    resp = client.post("/recipe/house-pizza/delete")
    assert resp.status_code == 403


def test_category_pages(client: TestClient) -> None:
    for old in ("Dinner", "DINNER", "main course"):
        resp = client.get(f"/category/{old}", follow_redirects=False)
        assert resp.status_code == 301
        assert resp.headers["location"] == "/category/dinner"

    resp = client.get("/category/Side Dish", follow_redirects=False)
    assert resp.status_code == 301
    assert resp.headers["location"] == "/category/side-dish"

    assert client.get("/category/side-dish").status_code == 200

    resp = client.get("/category/brunch")
    assert resp.status_code == 404
    assert "Category not found" in resp.text


def test_missing_recipe_page(client: TestClient) -> None:
    resp = client.get("/recipe/nothing-here")
    assert resp.status_code == 404
    assert "Recipe not found" in resp.text


def test_add_from_url(client: TestClient, signup: Signup, fake_openai: FakeOpenAI) -> None:
    signup(client)
    fake_openai.completions.reply = recipe_json(
        ingredientGroups=[{"name": "Glaze", "ingredients": ["icing sugar"]}],
    )
    resp = client.post("/add/url", data={"url": "https://example.com/lemon-cake"})
    assert resp.status_code == 200
    assert 'value="Lemon Cake"' in resp.text
    assert "# Glaze\nicing sugar" in resp.text
    assert '<option value="Dessert" selected>' in resp.text


def test_add_from_images(client: TestClient, signup: Signup) -> None:
    signup(client)
    resp = client.post(
        "/add/images",
        files=[
            ("images", ("page1.jpg", b"\xff\xd8\xff", "image/jpeg")),
            ("images", ("page2.jpg", b"\xff\xd8\xff", "image/jpeg")),
        ],
    )
    assert resp.status_code == 200
    assert 'value="Lemon Cake"' in resp.text


def test_add_from_url_error(client: TestClient, signup: Signup) -> None:
    signup(client)
    resp = client.post("/add/url", data={"url": "https://example.com/missing"})
    assert resp.status_code == 400
    assert "Failed to fetch webpage content" in resp.text


def test_chef_page(client: TestClient, offline_client: TestClient) -> None:
    assert 'id="chef-form"' in client.get("/chef").text
    assert "Set an OpenAI API key" in offline_client.get("/chef").text


def test_uploads_dir_is_created_on_startup(config: Config, llm: LLMService) -> None:
    app = create_app(config, llm=llm)
    assert not config.uploads_dir.exists()

    with TestClient(app) as client:
        assert config.uploads_dir.is_dir()
        assert client.get("/uploads/missing.png").status_code == 404
