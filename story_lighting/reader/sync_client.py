from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx

from .config import ClientConfig
from .models import ContainerLocator, ExtractedArticle, LookupResult, SubmitResult
from .shell import CHECK_ARTICLE, COLOR_UPDATE, RECORD_COLORS, SEND_ARTICLE, MessageHandler

logger = logging.getLogger(__name__)


class MessageTransport(Protocol):
    async def send(self, message: Dict[str, Any]) -> Dict[str, Any]:
        ...


class LocalMessageTransport:
    """Delivers messages to an in-process host shell."""

    def __init__(self, handler: MessageHandler):
        self.handler = handler

    async def send(self, message: Dict[str, Any]) -> Dict[str, Any]:
        return self.handler.handle(message)


class HttpMessageTransport:
    """
    Posts messages as JSON to ``{base_url}/messages``. No timeout and no
    retry unless configured; a stalled call simply stays pending.
    """

    def __init__(self, config: Optional[ClientConfig] = None, client: Optional[httpx.AsyncClient] = None):
        self.config = config or ClientConfig()
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=httpx.Timeout(self.config.timeout_s),
            headers=self.config.headers,
        )

    async def send(self, message: Dict[str, Any]) -> Dict[str, Any]:
        response = await self.client.post("/messages", json=message)
        response.raise_for_status()
        return response.json()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()


def _received(response: Any) -> bool:
    if not isinstance(response, dict):
        return False
    return bool(response.get("recieved", response.get("received", False)))


def _error(response: Any) -> Optional[str]:
    if not isinstance(response, dict):
        return f"Improper response: {response!r}"
    return response.get("error")


class SyncClient:
    """
    Queries and stores the canonical article record through the host shell
    and reports position colors. Failures never propagate to the reader:
    they are logged and degrade to "not cached" / "not stored".
    """

    def __init__(self, transport: MessageTransport):
        self.transport = transport
        self._lookup_task: Optional[asyncio.Task] = None

    async def lookup(self, url: str) -> LookupResult:
        try:
            response = await self.transport.send({"type": CHECK_ARTICLE, "url": url})
        except Exception:  # noqa: BLE001
            logger.exception("Lookup for %s failed; treating as not cached", url)
            return LookupResult.miss()
        return self.parse_lookup(response)

    def start_lookup(self, url: str) -> asyncio.Task:
        """Schedule the page's single lookup. Cancel it with ``cancel_lookup``."""
        if self._lookup_task is not None and not self._lookup_task.done():
            raise RuntimeError("A lookup is already in flight for this page")
        self._lookup_task = asyncio.get_running_loop().create_task(self.lookup(url))
        return self._lookup_task

    def cancel_lookup(self) -> bool:
        if self._lookup_task is None or self._lookup_task.done():
            return False
        return self._lookup_task.cancel()

    @staticmethod
    def parse_lookup(response: Any) -> LookupResult:
        if not isinstance(response, dict) or response.get("exists") is None:
            logger.error("Improper response to %s query: %r", CHECK_ARTICLE, response)
            return LookupResult.miss()
        if not response["exists"]:
            return LookupResult.miss()

        article = response.get("article") or {}
        paragraphs: List[str] = list(article.get("paragraphs") or [])
        colors = article.get("colors")
        if colors is not None and len(colors) != len(paragraphs):
            logger.error(
                "Cached colors (%s) do not match paragraphs (%s); discarding colors",
                len(colors),
                len(paragraphs),
            )
            colors = None
        return LookupResult(
            exists=True,
            locator=ContainerLocator.from_message(article.get("element")),
            paragraphs=paragraphs,
            colors=list(colors) if colors is not None else None,
            title=article.get("title"),
            author=article.get("author"),
            date=article.get("date"),
        )

    async def submit(self, article: ExtractedArticle, url: str) -> SubmitResult:
        message = {
            "type": SEND_ARTICLE,
            "element": article.locator.to_message(),
            "url": url,
            "title": article.metadata.title,
            "author": article.metadata.author,
            "date": article.metadata.date,
            "paragraphs": list(article.paragraphs),
        }
        try:
            response = await self.transport.send(message)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Submitting article %s failed: %s", url, exc)
            return SubmitResult(received=False, error=str(exc))
        result = SubmitResult(received=_received(response), error=_error(response))
        if result.received:
            logger.info("Article %s submitted", url)
        else:
            logger.warning("Article %s was not stored: %s", url, result.error)
        return result

    async def report_color(self, color: str) -> bool:
        try:
            response = await self.transport.send({"type": COLOR_UPDATE, "color": color})
        except Exception as exc:  # noqa: BLE001
            logger.warning("Color report failed: %s", exc)
            return False
        if not _received(response):
            logger.warning("Color report %s was not acknowledged: %s", color, _error(response))
            return False
        logger.debug("Reported color %s", color)
        return True

    async def record_colors(self, url: str, colors: Sequence[str]) -> bool:
        try:
            response = await self.transport.send({"type": RECORD_COLORS, "url": url, "colors": list(colors)})
        except Exception as exc:  # noqa: BLE001
            logger.warning("Recording colors for %s failed: %s", url, exc)
            return False
        if not _received(response):
            logger.warning("Colors for %s were not stored: %s", url, _error(response))
            return False
        return True
