import asyncio
import logging
from typing import Any, AsyncIterator

import httpx
import openai

from recipe_book.analysis import parse_analysis, validate_analysis
from recipe_book.aopenai import (
    ChatMsg,
    ImgContent,
    TextContent,
    describe_openai_error,
    history_to_messages,
    is_data_url,
    openai_client_factory,
)
from recipe_book.errors import InvalidAnalysisInput, LLMNotConfigured, LLMUnavailable
from recipe_book.merge import merge_analyses
from recipe_book.models import AnalysisResult, RecipeAnalysis
from recipe_book.prompts import (
    ANALYZE_IMAGE_PROMPT,
    CHEF_PROMPT,
    EXTRACT_URL_SYSTEM_PROMPT,
    ExtractUrlPrompt,
)
from recipe_book.webpage import text_from_webpage


logger = logging.getLogger(__name__)


CONFIDENCE = 0.9
MAX_WEBPAGE_CHARS = 8000
IMAGE_MAX_TOKENS = 1500
URL_MAX_TOKENS = 2000
TEMPERATURE = 0.1


class LLMService:
    def __init__(
        self,
        api_key: str | None = None,
        *,
        openai_client: openai.AsyncClient | None = None,
        http_client: httpx.AsyncClient | None = None,
        vision_model: str = "gpt-4o",
        text_model: str = "gpt-4o",
        chat_model: str = "gpt-4o",
        max_images: int = 10,
    ) -> None:
        if openai_client is None and api_key:
            openai_client = openai_client_factory(api_key)
        self._openai_client = openai_client
        self.http_client = http_client
        self.vision_model = vision_model
        self.text_model = text_model
        self.chat_model = chat_model
        self.max_images = max_images

    @property
    def configured(self) -> bool:
        return self._openai_client is not None

    @property
    def openai_client(self) -> openai.AsyncClient:
        if self._openai_client is None:
            raise LLMNotConfigured()
        return self._openai_client

    async def _complete(
        self,
        messages: list[ChatMsg],
        *,
        model: str,
        max_tokens: int,
    ) -> tuple[str, int]:
        try:
            resp = await self.openai_client.chat.completions.create(
                model=model,
                messages=[m.to_dict() for m in messages],  # pyright: ignore[reportArgumentType]
                max_tokens=max_tokens,
                temperature=TEMPERATURE,
            )
        except openai.OpenAIError as e:
            logger.exception("OpenAI request failed")
            raise LLMUnavailable(*describe_openai_error(e)) from e

        content = resp.choices[0].message.content if resp.choices else None
        if not content:
            raise LLMUnavailable("No response from OpenAI API")
        logger.debug("Raw AI response: %s", content)
        tokens = resp.usage.total_tokens if resp.usage else 0
        return content, tokens

    async def analyze_image(self, data_url: str) -> tuple[RecipeAnalysis, int]:
        """One page of a recipe. Not validated, a page may hold only steps."""
        message = ChatMsg(
            role="user",
            content=[TextContent(ANALYZE_IMAGE_PROMPT), ImgContent(data_url)],
        )
        content, tokens = await self._complete(
            [message], model=self.vision_model, max_tokens=IMAGE_MAX_TOKENS
        )
        return parse_analysis(content, validate=False), tokens

    async def analyze_images(self, images: str | list[str]) -> AnalysisResult:
        """Analyse every page concurrently and merge the answers in page order."""
        data_urls = [images] if isinstance(images, str) else list(images)
        if not data_urls or not all(isinstance(i, str) and i for i in data_urls):
            raise InvalidAnalysisInput("Image data is required")
        if not all(is_data_url(i) for i in data_urls):
            raise InvalidAnalysisInput("Invalid image format. Please upload a valid image.")
        if len(data_urls) > self.max_images:
            raise InvalidAnalysisInput(
                f"Too many images. Please upload at most {self.max_images}."
            )

        if not self.configured:
            raise LLMNotConfigured()

        logger.info("Starting AI recipe analysis of %d image(s)", len(data_urls))
        results = await asyncio.gather(*(self.analyze_image(u) for u in data_urls))
        recipe = validate_analysis(merge_analyses([analysis for analysis, _ in results]))
        logger.info("Successfully analyzed recipe: %s", recipe.title)
        return AnalysisResult(
            recipe=recipe,
            confidence=CONFIDENCE,
            processing_time=sum(tokens for _, tokens in results),
            image_count=len(data_urls),
        )

    async def extract_from_url(self, url: str) -> AnalysisResult:
        if not self.configured:
            raise LLMNotConfigured()
        logger.info("Starting recipe extraction from URL: %s", url)
        text = await text_from_webpage(url, http_client=self.http_client)
        messages = [
            ChatMsg(role="system", content=EXTRACT_URL_SYSTEM_PROMPT),
            ChatMsg(role="user", content=str(ExtractUrlPrompt(text[:MAX_WEBPAGE_CHARS]))),
        ]
        content, tokens = await self._complete(
            messages, model=self.text_model, max_tokens=URL_MAX_TOKENS
        )
        recipe = validate_analysis(merge_analyses([parse_analysis(content)]))
        logger.info("Successfully extracted recipe: %s", recipe.title)
        return AnalysisResult(
            recipe=recipe,
            confidence=CONFIDENCE,
            processing_time=tokens,
            source_url=url,
        )

    async def chef_stream(
        self,
        message: str,
        history: list[dict[str, Any]] | None = None,
    ) -> AsyncIterator[str]:
        """Open a streamed chef reply.

        The request is made here so api failures surface before any of the
        response has been sent. The returned iterator yields text chunks.
        """
        messages = [
            ChatMsg(role="system", content=CHEF_PROMPT),
            *history_to_messages(history or []),
            ChatMsg(role="user", content=message),
        ]
        try:
            stream = await self.openai_client.chat.completions.create(
                model=self.chat_model,
                messages=[m.to_dict() for m in messages],  # pyright: ignore[reportArgumentType]
                stream=True,
            )
        except openai.OpenAIError as e:
            logger.exception("OpenAI chat request failed")
            raise LLMUnavailable(*describe_openai_error(e)) from e

        async def chunks() -> AsyncIterator[str]:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content

        return chunks()
