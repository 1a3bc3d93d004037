import contextlib
import logging
from typing import AsyncIterator

from databases import Database
from jinja2 import Environment, FileSystemLoader, select_autoescape
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware import Middleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, Response
from starlette.routing import Mount
from starlette.staticfiles import StaticFiles

from recipe_book.errors import NotAuthenticated, RecipeBookError
from recipe_book.llm_service import LLMService
from recipe_book.repository import RecipesRepository
from recipe_book.users import UsersRepository
from recipe_room import api, pages
from recipe_room.config import Config, Env
from recipe_room.logs import setup_logging


logger = logging.getLogger(__name__)


def wants_json(request: Request) -> bool:
    return request.url.path.startswith("/api/")


async def _error_page(request: Request, message: str, status_code: int) -> HTMLResponse:
    name = "404.html" if status_code == 404 else "error.html"
    html = await pages.render(request, name, message=message, status_code=status_code)
    return HTMLResponse(html, status_code=status_code)


async def recipe_book_error(request: Request, exc: RecipeBookError) -> Response:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    if wants_json(request):
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)
    if isinstance(exc, NotAuthenticated):
        return pages.signin_redirect(request)
    return await _error_page(request, exc.message, exc.status_code)


async def http_error(request: Request, exc: HTTPException) -> Response:
    if wants_json(request):
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code)
    return await _error_page(request, exc.detail, exc.status_code)


async def server_error(request: Request, exc: Exception) -> Response:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if wants_json(request):
        return JSONResponse({"error": "Internal server error"}, status_code=500)
    return HTMLResponse("Something went wrong.", status_code=500)


def create_app(
    config: Config | None = None,
    *,
    llm: LLMService | None = None,
) -> Starlette:
    """Serve with `uvicorn --factory recipe_room.app:create_app`."""
    config = Config() if config is None else config
    setup_logging(config.log_level)

    db = Database(config.db_url)
    recipes = RecipesRepository(db)
    users = UsersRepository(db)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        await db.connect()
        await recipes.create_tables()
        await users.create_tables()
        config.uploads_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Recipe Room ready (%s)", config.env.value)
        yield
        await db.disconnect()

    app = Starlette(
        debug=True if config.env == Env.local else False,
        routes=[
            *api.routes,
            *pages.routes,
            Mount(
                "/uploads",
                StaticFiles(directory=config.uploads_dir, check_dir=False),
                name="uploads",
            ),
            Mount(
                "/assets",
                StaticFiles(directory=config.assets_dir, check_dir=False),
                name="assets",
            ),
        ],
        middleware=[
            Middleware(
                SessionMiddleware,
                secret_key=config.secret_key,
                https_only=config.env == Env.prod,
            ),
        ],
        exception_handlers={
            RecipeBookError: recipe_book_error,
            HTTPException: http_error,
            Exception: server_error,
        },
        lifespan=lifespan,
    )

    if llm is None:
        llm = LLMService(
            config.openai_api_key,
            vision_model=config.vision_model,
            text_model=config.text_model,
            chat_model=config.chat_model,
            max_images=config.max_images,
        )
    if not llm.configured:
        logger.warning("OPENAI_API_KEY is not set, AI features are disabled")

    app.state.config = config
    app.state.db = db
    app.state.repo = recipes
    app.state.users = users
    app.state.llm = llm
    app.state.templates = Environment(
        loader=FileSystemLoader(config.html_dir),
        autoescape=select_autoescape(),
    )
    return app