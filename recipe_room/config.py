from enum import Enum
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Env(Enum):
    local = "local"
    dev = "dev"
    prod = "prod"


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: Env = Env.local
    html_dir: Path = Path("assets/html")
    assets_dir: Path = Path("assets")
    uploads_dir: Path = Path("uploads")
    db_url: str = "sqlite+aiosqlite:///recipe_room.db"
    openai_api_key: str | None = None
    vision_model: str = "gpt-4o"
    text_model: str = "gpt-4o"
    chat_model: str = "gpt-4o"
    max_images: int = 10
    secret_key: str = "change-me"
    admin_user_id: str | None = None
    log_level: str = "INFO"
    page_title: str = "Recipe Collection"
    page_subtitle: str = (
        "Save your favorites, discover new ones, and build your own recipe room "
        "to cook from anytime."
    )
