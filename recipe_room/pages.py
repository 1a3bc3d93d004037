import base64
import functools
from typing import Any, Awaitable, Callable
from urllib.parse import quote

from jinja2 import Environment
from starlette.datastructures import FormData, UploadFile
from starlette.requests import Request
from starlette.responses import FileResponse, HTMLResponse, RedirectResponse, Response
from starlette.routing import Route

from recipe_book import services
from recipe_book.categories import CATEGORIES, CATEGORY_SLUGS, find_category
from recipe_book.errors import InvalidAnalysisInput, RecipeBookError, RecipeNotFound
from recipe_book.images import delete_image, save_image
from recipe_book.llm_service import LLMService
from recipe_book.models import Recipe, RecipeAnalysis, User
from recipe_book.repository import RecipesRepository
from recipe_book.users import UsersRepository
from recipe_room import auth
from recipe_room.forms import form_values, recipe_fields_from_form
from recipe_room.html.recipe_detail import RecipeDetail


def aHTMLResponse(route: Callable[..., Awaitable[str | tuple[str, int]]]):
    @functools.wraps(route)
    async def wrapper(*args: Any, **kwargs: Any) -> HTMLResponse:
        resp = await route(*args, **kwargs)
        if not isinstance(resp, tuple):
            html, code = resp, 200
        else:
            html, code = resp
        return HTMLResponse(html, status_code=code)

    return wrapper


def templates(request: Request) -> Environment:
    return request.app.state.templates


async def render(request: Request, template_name: str, **context: Any) -> str:
    config = request.app.state.config
    return templates(request).get_template(template_name).render(
        user=await auth.current_user(request),
        page_title=config.page_title,
        page_subtitle=config.page_subtitle,
        categories=CATEGORIES,
        category_slugs=CATEGORY_SLUGS,
        **context,
    )


def _repo(request: Request) -> RecipesRepository:
    return request.app.state.repo


def _admin_id(request: Request) -> str | None:
    return request.app.state.config.admin_user_id


def safe_next(value: str | None) -> str:
    """Only follow local redirects after signing in."""
    if value and value.startswith("/") and not value.startswith("//"):
        return value
    return "/"


def signin_redirect(request: Request) -> RedirectResponse:
    return RedirectResponse(
        f"/auth/signin?next={quote(request.url.path)}", status_code=303
    )


async def favicon(request: Request) -> Response:
    icon = request.app.state.config.assets_dir / "img" / "favicon.ico"
    if icon.exists():
        return FileResponse(icon)
    return Response(status_code=204)


@aHTMLResponse
async def homepage(request: Request) -> str:
    user = await auth.current_user(request)
    repo, admin_id = _repo(request), _admin_id(request)
    featured = await repo.featured(limit=6)
    counts = await services.category_counts(
        user=user, repository=repo, admin_user_id=admin_id
    )
    mine = await repo.find(user_id=user.id, visible_to=user.id) if user else []
    return await render(
        request,
        "index.html",
        featured=featured,
        counts=counts,
        my_recipes=mine,
    )


@aHTMLResponse
async def search(request: Request) -> str:
    query = request.query_params.get("q", "").strip()
    recipes: list[Recipe] = []
    if query:
        recipes = await services.list_recipes(
            user=await auth.current_user(request),
            repository=_repo(request),
            admin_user_id=_admin_id(request),
            query=query,
        )
    return await render(request, "search.html", query=query, recipes=recipes)


async def category(request: Request) -> Response:
    param = request.path_params["category"]
    name = find_category(param)
    if name is None:
        raise RecipeNotFound("Category not found")
    if param != CATEGORY_SLUGS[name]:
        # Old links used the display name, e.g. /category/Side Dish.
        return RedirectResponse(f"/category/{CATEGORY_SLUGS[name]}", status_code=301)

    recipes = await services.list_recipes(
        user=await auth.current_user(request),
        repository=_repo(request),
        admin_user_id=_admin_id(request),
        category=name,
    )
    return HTMLResponse(
        await render(request, "category.html", category=name, recipes=recipes)
    )


async def _visible_recipe(request: Request) -> tuple[Recipe, User | None]:
    user = await auth.current_user(request)
    recipe = await services.get_recipe_by_slug(
        request.path_params["slug"],
        user=user,
        repository=_repo(request),
        admin_user_id=_admin_id(request),
    )
    return recipe, user


@aHTMLResponse
async def recipe_detail(request: Request) -> str:
    recipe, user = await _visible_recipe(request)
    detail = RecipeDetail(
        recipe,
        can_edit=services.can_edit(recipe, user, _admin_id(request)),
    )
    return await render(request, "recipe-detail.html", recipe=detail)


async def _image_fields(
    form: FormData, request: Request, user: User
) -> dict[str, str]:
    image = form.get("image")
    if not isinstance(image, UploadFile) or not image.size:
        return {}
    url, path = save_image(
        await image.read(),
        content_type=image.content_type or "",
        uploads_dir=request.app.state.config.uploads_dir,
        owner=user.id,
    )
    return {"image": url, "image_path": path}


def _discard_upload(request: Request, fields: dict[str, Any]) -> None:
    """Remove an image stored for a recipe that was never saved."""
    if fields.get("image_path"):
        delete_image(fields["image_path"], uploads_dir=request.app.state.config.uploads_dir)


async def _form_page(
    request: Request,
    *,
    action: str,
    values: dict[str, str],
    error: str | None = None,
    status_code: int = 200,
    heading: str = "Add a recipe",
) -> HTMLResponse:
    html = await render(
        request,
        "recipe-form.html",
        action=action,
        values=values,
        error=error,
        heading=heading,
        ai_enabled=request.app.state.llm.configured,
    )
    return HTMLResponse(html, status_code=status_code)


async def add(request: Request) -> Response:
    user = await auth.current_user(request)
    if user is None:
        return signin_redirect(request)

    if request.method == "GET":
        return await _form_page(request, action="/add", values={})

    async with request.form() as form:
        fields = recipe_fields_from_form(form)
        try:
            fields.update(await _image_fields(form, request, user))
            recipe = await services.create_recipe(
                fields,
                user=user,
                repository=_repo(request),
                admin_user_id=_admin_id(request),
            )
        except RecipeBookError as e:
            _discard_upload(request, fields)
            return await _form_page(
                request,
                action="/add",
                values={k: str(v) for k, v in form.items() if isinstance(v, str)},
                error=e.message,
                status_code=e.status_code,
            )
    return RedirectResponse(f"/recipe/{recipe.slug}", status_code=303)


def _data_url(content: bytes, content_type: str) -> str:
    return f"data:{content_type};base64,{base64.b64encode(content).decode('utf-8')}"


async def _analysis_page(
    request: Request,
    analysis: Callable[[LLMService], Awaitable[RecipeAnalysis]],
) -> Response:
    if await auth.current_user(request) is None:
        return signin_redirect(request)
    try:
        recipe = await analysis(request.app.state.llm)
    except RecipeBookError as e:
        return await _form_page(
            request, action="/add", values={}, error=e.message, status_code=e.status_code
        )
    return await _form_page(request, action="/add", values=form_values(recipe))


async def add_from_images(request: Request) -> Response:
    """Prefill the add form from photographed recipe pages."""
    async with request.form() as form:
        data_urls = [
            _data_url(await image.read(), image.content_type or "image/jpeg")
            for image in form.getlist("images")
            if isinstance(image, UploadFile) and image.size
        ]

    async def analysis(llm: LLMService) -> RecipeAnalysis:
        if not data_urls:
            raise InvalidAnalysisInput("Please choose at least one image.")
        return (await llm.analyze_images(data_urls)).recipe

    return await _analysis_page(request, analysis)


async def add_from_url(request: Request) -> Response:
    async with request.form() as form:
        url = str(form.get("url", "")).strip()

    async def analysis(llm: LLMService) -> RecipeAnalysis:
        if not url:
            raise InvalidAnalysisInput("URL is required")
        return (await llm.extract_from_url(url)).recipe

    return await _analysis_page(request, analysis)


async def edit(request: Request) -> Response:
    recipe, user = await _visible_recipe(request)
    if user is None:
        return signin_redirect(request)
    action = f"/recipe/{recipe.slug}/edit"
    heading = f"Edit {recipe.title}"

    if request.method == "GET":
        if not services.can_edit(recipe, user, _admin_id(request)):
            return HTMLResponse(await render(request, "403.html"), status_code=403)
        return await _form_page(
            request, action=action, values=form_values(recipe), heading=heading
        )

    async with request.form() as form:
        fields = recipe_fields_from_form(form)
        try:
            fields.update(await _image_fields(form, request, user))
            updated = await services.update_recipe(
                recipe.id,
                fields,
                user=user,
                repository=_repo(request),
                admin_user_id=_admin_id(request),
                uploads_dir=request.app.state.config.uploads_dir,
            )
        except RecipeBookError as e:
            _discard_upload(request, fields)
            return await _form_page(
                request,
                action=action,
                values={k: str(v) for k, v in form.items() if isinstance(v, str)},
                error=e.message,
                status_code=e.status_code,
                heading=heading,
            )
    return RedirectResponse(f"/recipe/{updated.slug}", status_code=303)


async def delete(request: Request) -> Response:
    recipe, user = await _visible_recipe(request)
    await services.delete_recipe(
        recipe.id,
        user=user,
        repository=_repo(request),
        admin_user_id=_admin_id(request),
        uploads_dir=request.app.state.config.uploads_dir,
    )
    return RedirectResponse("/profile", status_code=303)


async def profile(request: Request) -> Response:
    user = await auth.current_user(request)
    if user is None:
        return signin_redirect(request)
    recipes = await _repo(request).find(user_id=user.id, visible_to=user.id)
    return HTMLResponse(await render(request, "profile.html", recipes=recipes))


async def signin(request: Request) -> Response:
    next_url = safe_next(request.query_params.get("next"))
    if await auth.current_user(request) is not None:
        return RedirectResponse("/", status_code=303)

    if request.method == "GET":
        return HTMLResponse(await render(request, "signin.html", next=next_url))

    async with request.form() as form:
        email = str(form.get("email", ""))
        password = str(form.get("password", ""))
    users: UsersRepository = request.app.state.users
    try:
        user = await users.authenticate(email=email, password=password)
    except RecipeBookError as e:
        html = await render(
            request, "signin.html", next=next_url, email=email, error=e.message
        )
        return HTMLResponse(html, status_code=e.status_code)
    auth.sign_in(request, user)
    return RedirectResponse(next_url, status_code=303)


async def signup(request: Request) -> Response:
    if await auth.current_user(request) is not None:
        return RedirectResponse("/", status_code=303)

    if request.method == "GET":
        return HTMLResponse(await render(request, "signup.html"))

    async with request.form() as form:
        email = str(form.get("email", ""))
        password = str(form.get("password", ""))
        name = str(form.get("name", ""))
    users: UsersRepository = request.app.state.users
    try:
        user = await users.create(email=email, password=password, name=name)
    except RecipeBookError as e:
        html = await render(
            request, "signup.html", email=email, name=name, error=e.message
        )
        return HTMLResponse(html, status_code=e.status_code)
    auth.sign_in(request, user)
    return RedirectResponse("/", status_code=303)


async def signout(request: Request) -> RedirectResponse:
    auth.sign_out(request)
    return RedirectResponse("/", status_code=303)


@aHTMLResponse
async def chef_page(request: Request) -> str:
    return await render(request, "chef.html", ai_enabled=request.app.state.llm.configured)


routes = [
    Route("/", homepage),
    Route("/search", search),
    Route("/category/{category}", category),
    Route("/add", add, methods=["GET", "POST"]),
    Route("/add/images", add_from_images, methods=["POST"]),
    Route("/add/url", add_from_url, methods=["POST"]),
    Route("/recipe/{slug}", recipe_detail),
    Route("/recipe/{slug}/edit", edit, methods=["GET", "POST"]),
    Route("/recipe/{slug}/delete", delete, methods=["POST"]),
    Route("/profile", profile),
    Route("/chef", chef_page),
    Route("/auth/signin", signin, methods=["GET", "POST"]),
    Route("/auth/signup", signup, methods=["GET", "POST"]),
    Route("/auth/signout", signout, methods=["POST"]),
    Route("/favicon.ico", favicon),
]
