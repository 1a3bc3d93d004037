from enum import Enum
from typing import Any, Protocol

import openai


TIMEOUT = 60 * 2
DATA_URL_PREFIX = "data:image/"


def openai_client_factory(api_key: str, *, timeout: float = TIMEOUT) -> openai.AsyncClient:
    return openai.AsyncClient(api_key=api_key, timeout=timeout, max_retries=0)


def is_data_url(value: str) -> bool:
    return value.startswith(DATA_URL_PREFIX)


class Content(Protocol):
    def to_dict(self) -> dict[str, Any]:
        ...


class ContentType(Enum):
    text = "text"
    image_url = "image_url"


class TextContent:
    type = ContentType.text

    def __init__(self, text: str) -> None:
        self.text = text

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "text": self.text}


class ImgContent:
    type = ContentType.image_url

    def __init__(self, url: str, detail: str = "high") -> None:
        self.url = url
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "image_url": {"url": self.url, "detail": self.detail},
        }


class ChatMsg:
    def __init__(self, *, role: str, content: str | list[Content]) -> None:
        self.role = role
        self.content = content

    def __repr__(self) -> str:
        return f"<ChatMsg(role={self.role})>"

    def to_dict(self) -> dict[str, Any]:
        content = (
            self.content
            if isinstance(self.content, str)
            else [c.to_dict() for c in self.content]
        )
        return {"role": self.role, "content": content}


def history_to_messages(history: list[dict[str, Any]]) -> list[ChatMsg]:
    """Chat widget history (`{sender, text}`) as chat messages."""
    messages = []
    for entry in history:
        text = str(entry.get("text") or "")
        if not text:
            continue
        role = "user" if entry.get("sender") == "user" else "assistant"
        messages.append(ChatMsg(role=role, content=text))
    return messages


def describe_openai_error(exc: openai.OpenAIError) -> tuple[str, int]:
    """A user facing message and status code for an api failure."""
    if isinstance(exc, openai.AuthenticationError):
        return "Invalid OpenAI API key. Please check your configuration.", 401
    if isinstance(exc, openai.RateLimitError):
        if getattr(exc, "code", None) == "insufficient_quota":
            return "OpenAI quota exceeded. Please check your account.", 402
        return "Rate limit exceeded. Please try again in a moment.", 429
    return "The AI service failed to respond. Please try again.", 500
