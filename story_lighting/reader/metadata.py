from __future__ import annotations

import re
from typing import Iterable, Optional, Sequence, Tuple

from bs4 import Tag

from .config import ExtractionConfig
from .dom import RemovalMarks, inner_text
from .layout import LiveDocument
from .models import ArticleMetadata

_LEADING_ON_RE = re.compile(r"^\s*on\s+", re.IGNORECASE)
_LEADING_BY_RE = re.compile(r"^\s*by\s+", re.IGNORECASE)
_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")
_BR_MARKUP_RE = re.compile(r"<br[^>]*>", re.IGNORECASE)

_TEXT = "innerText"


def extract_title(title: str, separators: Sequence[str] = ExtractionConfig.title_separators) -> str:
    """Cut a page title at the first site-name separator, checked in priority order."""
    for separator in separators:
        position = title.find(separator)
        if position > 0:
            return title[:position]
    return title


def normalize_date(value: str) -> str:
    value = _LEADING_ON_RE.sub("", value.strip())
    value = _LINE_BREAK_RE.sub("\xa0", value)
    value = _BR_MARKUP_RE.sub("\xa0", value)
    return value.strip()


def normalize_author(value: str, particle_max_length: int = 3) -> str:
    author = " ".join(value.split())
    if author and author == author.upper():
        words = author.split(" ")
        last = len(words) - 1
        for position, word in enumerate(words):
            if len(word) < particle_max_length and position not in (0, last):
                # Particles such as "de", "da", "van"
                words[position] = word.lower()
            else:
                words[position] = word[:1].upper() + word[1:].lower()
        author = " ".join(words)
    return _LEADING_BY_RE.sub("", author).strip()


class MetadataExtractor:
    """Title, date and author heuristics over the whole document."""

    def __init__(self, config: Optional[ExtractionConfig] = None):
        self.config = config or ExtractionConfig()

    def extract(
        self,
        document: LiveDocument,
        container: Optional[Tag] = None,
        marks: Optional[RemovalMarks] = None,
    ) -> ArticleMetadata:
        return ArticleMetadata(
            title=self.title(document),
            author=self.author(document, container, marks),
            date=self.date(document, container, marks),
        )

    def title(self, document: LiveDocument) -> str:
        return extract_title(document.title, self.config.title_separators)

    def date(
        self,
        document: LiveDocument,
        container: Optional[Tag] = None,
        marks: Optional[RemovalMarks] = None,
    ) -> str:
        scope = container if container is not None else document.body
        body, head = document.body, document.head
        candidates: Iterable[Tuple[Optional[Tag], Tuple[str, ...], bool]] = (
            (scope.select_one('[class^="date"]'), (_TEXT,), True),
            (scope.select_one('[class*="-date"]'), (_TEXT,), True),
            (scope.select_one('[class*="_date"]'), (_TEXT,), True),
            (body.select_one('[class^="date"]'), (_TEXT,), False),
            (body.select_one('[class*="-date"]'), (_TEXT,), False),
            (body.select_one('[class*="_date"]'), (_TEXT,), False),
            (head.select_one('meta[name^="date"]'), ("content",), False),
            (head.select_one('meta[name*="-date"]'), ("content",), False),
            (scope.select_one("time"), ("datetime", _TEXT), True),
            (body.select_one("time"), ("datetime", _TEXT), False),
        )
        for element, attributes, removable in candidates:
            value = self._date_value(element, attributes)
            if value is None:
                continue
            if removable and marks is not None:
                marks.mark(element)
            return normalize_date(value)
        return self.config.unknown_date

    def _date_value(self, element: Optional[Tag], attributes: Tuple[str, ...]) -> Optional[str]:
        if element is None:
            return None
        # Later attributes override earlier ones, so visible text beats `datetime`.
        found = None
        for attribute in attributes:
            value = inner_text(element) if attribute == _TEXT else element.get(attribute)
            if value and len(value.split(" ")) < self.config.max_date_words:
                found = value
        return found

    def author(
        self,
        document: LiveDocument,
        container: Optional[Tag] = None,
        marks: Optional[RemovalMarks] = None,
    ) -> str:
        scope = container if container is not None else document.body
        body = document.body
        limit = self.config.max_author_words
        candidates = (
            (scope.select_one('[rel*="author"]'), limit, True),
            (scope.select_one('[class*="author"]'), limit, True),
            (body.select_one('[rel*="author"]'), limit, False),
            (body.select_one('[class*="author"]'), self.config.max_author_words_fallback, False),
        )
        author: Optional[str] = None
        for element, max_words, removable in candidates:
            if element is None:
                continue
            text = inner_text(element)
            if len(text.split()) < max_words and "".join(text.split()):
                if removable and marks is not None:
                    marks.mark(element)
                author = text
                break

        if author is None:
            meta = document.head.select_one('meta[name*="author"]')
            content = meta.get("content") if meta is not None else None
            if content and content.strip():
                author = content

        if author is None:
            return self.config.unknown_author
        return normalize_author(author, self.config.particle_max_length) or self.config.unknown_author
