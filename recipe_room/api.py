"""JSON api. Errors are raised as `RecipeBookError`s and rendered by the app."""

import logging
from typing import Any, AsyncIterator, TypeVar

from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile
from starlette.requests import Request
from starlette.responses import JSONResponse, StreamingResponse
from starlette.routing import Route

from recipe_book import services
from recipe_book.errors import BadRequest, InvalidAnalysisInput
from recipe_book.images import InvalidImage, delete_image, save_image
from recipe_book.llm_service import LLMService
from recipe_book.repository import RecipesRepository
from recipe_room.auth import current_user, require_user
from recipe_room.schemas import (
    AnalyzeRecipeIn,
    ChefIn,
    ExtractRecipeUrlIn,
    ImageDeleteIn,
    RecipeIn,
)


logger = logging.getLogger(__name__)


M = TypeVar("M", bound=BaseModel)


async def read_model(request: Request, model: type[M]) -> M:
    try:
        data: Any = await request.json()
    except ValueError:
        # Invalid JSON, or a body that is not UTF-8 at all.
        raise BadRequest("Request body must be valid JSON")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first["loc"])
        raise BadRequest(f"Invalid {field}: {first['msg']}" if field else first["msg"])


def _repo(request: Request) -> RecipesRepository:
    return request.app.state.repo


def _llm(request: Request) -> LLMService:
    return request.app.state.llm


def _admin_id(request: Request) -> str | None:
    return request.app.state.config.admin_user_id


async def list_recipes(request: Request) -> JSONResponse:
    params = request.query_params
    recipes = await services.list_recipes(
        user=await current_user(request),
        repository=_repo(request),
        admin_user_id=_admin_id(request),
        query=params.get("q") or None,
        category=params.get("category") or None,
        featured=True if params.get("featured") == "true" else None,
    )
    return JSONResponse([r.to_dict() for r in recipes])


async def create_recipe(request: Request) -> JSONResponse:
    user = await require_user(request)
    payload = await read_model(request, RecipeIn)
    recipe = await services.create_recipe(
        payload.to_fields(),
        user=user,
        repository=_repo(request),
        admin_user_id=_admin_id(request),
    )
    return JSONResponse(recipe.to_dict(), status_code=201)


async def recipe(request: Request) -> JSONResponse:
    id = request.path_params["id"]
    repo, admin_id = _repo(request), _admin_id(request)

    match request.method:
        case "GET":
            found = await services.get_recipe(
                id,
                user=await current_user(request),
                repository=repo,
                admin_user_id=admin_id,
            )
            return JSONResponse(found.to_dict())
        case "PUT":
            user = await require_user(request)
            payload = await read_model(request, RecipeIn)
            updated = await services.update_recipe(
                id,
                payload.to_fields(),
                user=user,
                repository=repo,
                admin_user_id=admin_id,
                uploads_dir=request.app.state.config.uploads_dir,
            )
            return JSONResponse(updated.to_dict())
        case "DELETE":
            user = await require_user(request)
            await services.delete_recipe(
                id,
                user=user,
                repository=repo,
                admin_user_id=admin_id,
                uploads_dir=request.app.state.config.uploads_dir,
            )
            return JSONResponse({"success": True})
        case _:
            raise ValueError("Unsupported method.")


async def recipe_by_slug(request: Request) -> JSONResponse:
    found = await services.get_recipe_by_slug(
        request.path_params["slug"],
        user=await current_user(request),
        repository=_repo(request),
        admin_user_id=_admin_id(request),
    )
    return JSONResponse(found.to_dict())


async def category_recipe_counts(request: Request) -> JSONResponse:
    counts = await services.category_counts(
        user=await current_user(request),
        repository=_repo(request),
        admin_user_id=_admin_id(request),
    )
    return JSONResponse(counts)


async def analyze_recipe(request: Request) -> JSONResponse:
    payload = await read_model(request, AnalyzeRecipeIn)
    if not payload.image_data:
        raise InvalidAnalysisInput("Image data is required")
    result = await _llm(request).analyze_images(payload.image_data)
    return JSONResponse(result.to_dict())


async def extract_recipe_url(request: Request) -> JSONResponse:
    payload = await read_model(request, ExtractRecipeUrlIn)
    if not payload.url:
        raise InvalidAnalysisInput("URL is required")
    result = await _llm(request).extract_from_url(payload.url)
    return JSONResponse(result.to_dict())


async def chef(request: Request) -> StreamingResponse:
    payload = await read_model(request, ChefIn)
    if not payload.message.strip():
        raise InvalidAnalysisInput("Message is required")
    chunks = await _llm(request).chef_stream(
        payload.message,
        [entry.model_dump() for entry in payload.conversation_history],
    )

    async def body() -> AsyncIterator[str]:
        try:
            async for chunk in chunks:
                yield chunk
        except Exception:
            # Headers are gone already, all we can do is end the reply.
            logger.exception("Chef stream failed")
            yield "\n\nSorry, something went wrong."

    return StreamingResponse(
        body(),
        media_type="text/plain; charset=utf-8",
        headers={"Cache-Control": "no-cache"},
    )


async def upload_image(request: Request) -> JSONResponse:
    user = await require_user(request)
    uploads_dir = request.app.state.config.uploads_dir

    if request.method == "DELETE":
        payload = await read_model(request, ImageDeleteIn)
        delete_image(payload.path, uploads_dir=uploads_dir, owner=user.id)
        return JSONResponse({"success": True})

    async with request.form() as form:
        upload = form.get("file")
        if not isinstance(upload, UploadFile):
            raise InvalidImage("No file provided")
        content = await upload.read()
        content_type = upload.content_type or ""
    url, path = save_image(
        content, content_type=content_type, uploads_dir=uploads_dir, owner=user.id
    )
    return JSONResponse({"url": url, "path": path})


routes = [
    Route("/api/recipes", list_recipes, methods=["GET"]),
    Route("/api/recipes", create_recipe, methods=["POST"]),
    Route("/api/recipes/slug/{slug}", recipe_by_slug, methods=["GET"]),
    Route("/api/recipes/{id}", recipe, methods=["GET", "PUT", "DELETE"]),
    Route("/api/category-recipe-counts", category_recipe_counts, methods=["GET"]),
    Route("/api/analyze-recipe", analyze_recipe, methods=["POST"]),
    Route("/api/extract-recipe-url", extract_recipe_url, methods=["POST"]),
    Route("/api/chef", chef, methods=["POST"]),
    Route("/api/upload-image", upload_image, methods=["POST", "DELETE"]),
]
