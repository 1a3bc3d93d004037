import logging
from urllib.parse import urlparse

import bs4
import httpx

from recipe_book.errors import InvalidAnalysisInput


logger = logging.getLogger(__name__)


USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
TIMEOUT = 20
NOISE_TAGS = ("script", "style", "noscript", "nav", "header", "footer", "aside", "form")


def validate_url(url: str) -> str:
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidAnalysisInput("Invalid URL format")
    return url.strip()


def html_to_text(html: str) -> str:
    soup = bs4.BeautifulSoup(html, features="html.parser")
    for tag in soup(NOISE_TAGS):
        tag.decompose()
    lines = (line.strip() for line in soup.get_text("\n").splitlines())
    return "\n".join(line for line in lines if line)


async def text_from_webpage(
    url: str,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> str:
    url = validate_url(url)
    close = http_client is None
    client = (
        httpx.AsyncClient(timeout=TIMEOUT, follow_redirects=True)
        if http_client is None
        else http_client
    )
    try:
        resp = await client.get(url, headers={"User-Agent": USER_AGENT})
        resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("Could not fetch %s: %r", url, e)
        raise InvalidAnalysisInput(
            "Failed to fetch webpage content. Please check the URL and try again."
        ) from e
    finally:
        if close:
            await client.aclose()
    return html_to_text(resp.text)
