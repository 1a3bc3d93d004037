import json
from pathlib import Path
from types import SimpleNamespace
from typing import Any, AsyncIterator, Callable, Iterator

import httpx
import pytest
import pytest_asyncio
from databases import Database
from starlette.testclient import TestClient

from recipe_book.llm_service import LLMService
from recipe_book.repository import RecipesRepository
from recipe_room.app import create_app
from recipe_room.config import Config, Env


ROOT = Path(__file__).parent.parent

RECIPE_PAGE = """
<html>
  <head><title>Lemon Cake</title><script>var tracking = 1;</script></head>
  <body>
    <nav>Home | Recipes</nav>
    <h1>Lemon Cake</h1>
    <ul><li>200g flour</li><li>2 eggs</li></ul>
    <p>Bake for 30 minutes.</p>
  </body>
</html>
"""


def completion(content: str | None, tokens: int = 100) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=tokens),
    )


def recipe_json(**fields: Any) -> str:
    data = {
        "title": "Lemon Cake",
        "description": "A bright, easy cake.",
        "ingredients": ["200g flour", "2 eggs"],
        "instructions": ["Mix everything together", "Bake for 30 minutes"],
        "prepTime": "10 minutes",
        "cookTime": "30 minutes",
        "servings": "8",
        "category": "Dessert",
    }
    data.update(fields)
    return json.dumps(data)


Reply = str | list[str] | Exception


class FakeCompletions:
    """Stands in for `openai.AsyncClient().chat.completions`.

    `reply` is either a fixed answer or a function of the request kwargs.
    Streamed requests answer with the chunks of a list reply.
    """

    def __init__(self) -> None:
        self.reply: Reply | Callable[[dict[str, Any]], Reply] = recipe_json()
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        reply = self.reply(kwargs) if callable(self.reply) else self.reply
        if isinstance(reply, Exception):
            raise reply
        if kwargs.get("stream"):
            parts = reply if isinstance(reply, list) else [reply]

            async def chunks() -> AsyncIterator[SimpleNamespace]:
                for part in parts:
                    yield SimpleNamespace(
                        choices=[SimpleNamespace(delta=SimpleNamespace(content=part))]
                    )

            return chunks()
        assert isinstance(reply, str)
        return completion(reply)


class FakeOpenAI:
    def __init__(self) -> None:
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)


def webpage_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/lemon-cake":
        return httpx.Response(200, text=RECIPE_PAGE)
    return httpx.Response(404, text="Not found")


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    return FakeOpenAI()


@pytest.fixture
def llm(fake_openai: FakeOpenAI) -> LLMService:
    return LLMService(
        openai_client=fake_openai,  # pyright: ignore[reportArgumentType]
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(webpage_handler)),
    )


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(
        _env_file=None,  # pyright: ignore[reportCallIssue]
        env=Env.dev,
        html_dir=ROOT / "assets" / "html",
        assets_dir=ROOT / "assets",
        uploads_dir=tmp_path / "uploads",
        db_url=f"sqlite+aiosqlite:///{tmp_path / 'recipes.db'}",
        openai_api_key=None,
        secret_key="test-secret",
        admin_user_id=None,
    )


@pytest.fixture
def client(config: Config, llm: LLMService) -> Iterator[TestClient]:
    with TestClient(create_app(config, llm=llm)) as client:
        yield client


@pytest.fixture
def offline_client(config: Config) -> Iterator[TestClient]:
    """An app without an OpenAI key."""
    with TestClient(create_app(config, llm=LLMService())) as client:
        yield client


@pytest.fixture
def signup() -> Callable[..., httpx.Response]:
    def signup(
        client: TestClient,
        email: str = "cook@example.com",
        password: str = "secret123",
        name: str = "",
    ) -> httpx.Response:
        client.post("/auth/signout", follow_redirects=False)
        return client.post(
            "/auth/signup",
            data={"email": email, "password": password, "name": name},
            follow_redirects=False,
        )

    return signup


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> AsyncIterator[Database]:
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'repo.db'}")
    await database.connect()
    yield database
    await database.disconnect()


@pytest_asyncio.fixture
async def repo(db: Database) -> RecipesRepository:
    repository = RecipesRepository(db)
    await repository.create_tables()
    return repository
