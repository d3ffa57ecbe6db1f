from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from dateutil import parser as date_parser

from .config import ExtractionConfig
from .identity import article_id_for, canonicalize_url
from .models import ArticleRecord, ContainerLocator
from .repository import ArticleIntegrityError, ArticleRepository

logger = logging.getLogger(__name__)

CHECK_ARTICLE = "checkArticleContent"
SEND_ARTICLE = "sendArticleContent"
COLOR_UPDATE = "colorUpdate"
RECORD_COLORS = "recordColors"


def parse_article_date(value: Optional[str]) -> Optional[datetime]:
    if not value or value == ExtractionConfig.unknown_date:
        return None
    try:
        return date_parser.parse(value.replace("\xa0", " "), fuzzy=True)
    except (ValueError, OverflowError):
        return None


class MessageHandler:
    """
    Host-shell side of the message contract. Answers lookups and submissions
    against an article repository and receives position color updates.
    """

    def __init__(
        self,
        repository: ArticleRepository,
        on_color: Optional[Callable[[str], None]] = None,
    ):
        self.repo = repository
        self.on_color = on_color
        self.last_color: Optional[str] = None

    def handle(self, message: Dict[str, Any]) -> Dict[str, Any]:
        message_type = message.get("type")
        if message_type == COLOR_UPDATE:
            return self._color_update(message)
        if message_type == CHECK_ARTICLE:
            return self._check_article(message)
        if message_type == SEND_ARTICLE:
            return self._send_article(message)
        if message_type == RECORD_COLORS:
            return self._record_colors(message)
        logger.warning("Unknown message type %r", message_type)
        return {"error": f"Unknown message type: {message_type}"}

    def _color_update(self, message: Dict[str, Any]) -> Dict[str, Any]:
        color = message.get("color")
        logger.info("Color update %s", color)
        self.last_color = color
        if self.on_color is not None and color is not None:
            self.on_color(color)
        return {"recieved": True}

    def _check_article(self, message: Dict[str, Any]) -> Dict[str, Any]:
        url = message.get("url") or ""
        try:
            article = self.repo.get_article(article_id_for(url))
        except Exception:  # noqa: BLE001
            logger.exception("Store error while checking article %s; treating as not cached", url)
            return {"exists": False}
        if article is None:
            return {"exists": False}
        return {
            "exists": True,
            "article": {
                "element": article.locator.to_message(),
                "colors": article.colors,
                "paragraphs": article.paragraphs,
                "title": article.title,
                "author": article.author,
                "date": article.date,
                "url": article.url,
            },
        }

    def _send_article(self, message: Dict[str, Any]) -> Dict[str, Any]:
        url = message.get("url") or ""
        date = message.get("date") or ExtractionConfig.unknown_date
        article = ArticleRecord(
            id=article_id_for(url),
            url=canonicalize_url(url),
            locator=ContainerLocator.from_message(message.get("element")),
            title=message.get("title") or "",
            author=message.get("author") or ExtractionConfig.unknown_author,
            date=date,
            paragraphs=list(message.get("paragraphs") or []),
            published_at=parse_article_date(date),
        )
        try:
            created = self.repo.create_article_if_absent(article)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Failed to store article %s", url)
            return {"recieved": False, "error": str(exc)}
        if not created:
            logger.info("Article %s already stored; keeping existing record", article.id)
        return {"recieved": True, "created": created}

    def _record_colors(self, message: Dict[str, Any]) -> Dict[str, Any]:
        url = message.get("url") or ""
        colors = list(message.get("colors") or [])
        try:
            updated = self.repo.update_colors(article_id_for(url), colors)
        except ArticleIntegrityError as exc:
            logger.error("Rejected colors for %s: %s", url, exc)
            return {"recieved": False, "error": str(exc)}
        except Exception as exc:  # noqa: BLE001
            logger.exception("Failed to store colors for %s", url)
            return {"recieved": False, "error": str(exc)}
        if not updated:
            return {"recieved": False, "error": "Article not found"}
        return {"recieved": True}
