from __future__ import annotations

import math
import re
from typing import Dict, List, Optional, Protocol

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from .dom import BLOCK_TAGS, class_tokens, inner_text, is_hidden, iter_tags
from .models import BBox, Viewport

_SPACE_RE = re.compile(r"[ \t\n\r\f]+")


class LayoutProvider(Protocol):
    def box(self, node: Tag) -> Optional[BBox]:
        ...

    def invalidate(self) -> None:
        ...


class MappingLayout:
    """
    Layout backed by explicit boxes, e.g. measured by a browser host.
    Boxes are in document coordinates; nodes without a box render nothing.
    """

    def __init__(self, boxes: Optional[Dict[int, BBox]] = None):
        self._boxes: Dict[int, BBox] = dict(boxes or {})

    def place(self, node: Tag, top: float, height: float, x: float = 0.0, width: float = 800.0) -> BBox:
        bbox = BBox(x=x, y=top, w=width, h=height)
        self._boxes[id(node)] = bbox
        return bbox

    def box(self, node: Tag) -> Optional[BBox]:
        return self._boxes.get(id(node))

    def invalidate(self) -> None:
        return None


class FlowLayout:
    """
    Deterministic block-flow estimate of rendered geometry for headless use.

    Blocks stack vertically; a text run takes one ``line_height`` per
    ``chars_per_line`` characters of each line. Hidden subtrees collapse
    to zero height. Inline elements share the box of the block holding them.
    """

    def __init__(
        self,
        soup: BeautifulSoup,
        width: float = 800.0,
        line_height: float = 24.0,
        chars_per_line: int = 80,
        block_spacing: float = 16.0,
    ):
        self.soup = soup
        self.width = width
        self.line_height = line_height
        self.chars_per_line = max(1, chars_per_line)
        self.block_spacing = block_spacing
        self._boxes: Optional[Dict[int, BBox]] = None
        self._contains_block: Dict[int, bool] = {}

    def box(self, node: Tag) -> Optional[BBox]:
        if self._boxes is None:
            self._compute()
        return self._boxes.get(id(node))

    def invalidate(self) -> None:
        self._boxes = None

    def _compute(self) -> None:
        self._boxes = {}
        self._contains_block = {}
        root = self.soup.body or self.soup.find("html")
        if root is None:
            return
        self._place(root, 0.0)

    def _place(self, node: Tag, top: float) -> float:
        if is_hidden(node):
            self._assign_subtree(node, top, 0.0)
            return 0.0
        if not self._has_block_descendant(node):
            height = self._text_height(inner_text(node))
            self._assign_subtree(node, top, height)
            return height

        cursor = top
        inline_text: List[str] = []
        inline_tags: List[Tag] = []

        def flush() -> None:
            nonlocal cursor
            text = "".join(inline_text).strip()
            height = self._text_height(text)
            for tag in inline_tags:
                self._assign_subtree(tag, cursor, height)
            if height:
                cursor += height + self.block_spacing
            inline_text.clear()
            inline_tags.clear()

        for child in node.children:
            if isinstance(child, PreformattedString):
                continue
            if isinstance(child, NavigableString):
                inline_text.append(_SPACE_RE.sub(" ", str(child)))
                continue
            if not isinstance(child, Tag):
                continue
            if child.name in BLOCK_TAGS or self._has_block_descendant(child):
                flush()
                height = self._place(child, cursor)
                if height:
                    cursor += height + self.block_spacing
            else:
                inline_tags.append(child)
                if not is_hidden(child):
                    inline_text.append(inner_text(child) if child.name != "br" else "\n")
        flush()

        height = max(0.0, cursor - top - self.block_spacing) if cursor > top else 0.0
        self._boxes[id(node)] = BBox(x=0.0, y=top, w=self.width, h=height)
        return height

    def _has_block_descendant(self, node: Tag) -> bool:
        key = id(node)
        cached = self._contains_block.get(key)
        if cached is None:
            cached = any(
                isinstance(d, Tag) and d.name in BLOCK_TAGS for d in node.descendants
            )
            self._contains_block[key] = cached
        return cached

    def _text_height(self, text: str) -> float:
        if not text.strip():
            return 0.0
        lines = 0
        for line in text.split("\n"):
            lines += max(1, math.ceil(len(line) / self.chars_per_line))
        return lines * self.line_height

    def _assign_subtree(self, node: Tag, top: float, height: float) -> None:
        for tag in iter_tags(node):
            self._boxes[id(tag)] = BBox(x=0.0, y=top, w=self.width, h=height)


class LiveDocument:
    """
    The rendered document a page session works against: a parsed tree,
    a layout provider and the current viewport.
    """

    def __init__(
        self,
        soup: BeautifulSoup,
        layout: Optional[LayoutProvider] = None,
        viewport: Optional[Viewport] = None,
    ):
        self.soup = soup
        self.layout = layout if layout is not None else FlowLayout(soup)
        self.viewport = viewport or Viewport()

    @classmethod
    def from_html(
        cls,
        html: str,
        layout: Optional[LayoutProvider] = None,
        viewport: Optional[Viewport] = None,
    ) -> "LiveDocument":
        return cls(BeautifulSoup(html, "lxml"), layout=layout, viewport=viewport)

    @property
    def body(self) -> Tag:
        return self.soup.body or self.soup

    @property
    def head(self) -> Tag:
        return self.soup.head or self.soup

    @property
    def title(self) -> str:
        tag = self.head.find("title") or self.soup.find("title")
        if tag is None:
            return ""
        return " ".join(tag.get_text().split())

    def rendered_height(self, node: Tag) -> float:
        bbox = self.layout.box(node)
        return bbox.h if bbox else 0.0

    def client_rect(self, node: Tag) -> BBox:
        bbox = self.layout.box(node)
        if bbox is None:
            return BBox(x=0.0, y=0.0, w=0.0, h=0.0)
        return BBox(x=bbox.x, y=bbox.y - self.viewport.scroll_y, w=bbox.w, h=bbox.h)

    def scroll_to(self, scroll_y: float) -> Viewport:
        self.viewport = Viewport(scroll_y=scroll_y, height=self.viewport.height, width=self.viewport.width)
        return self.viewport

    def find_by_id(self, element_id: str) -> Optional[Tag]:
        if not element_id:
            return None
        return self.soup.find(id=element_id)

    def find_by_class_name(self, class_name: str) -> List[Tag]:
        wanted = set(class_name.split())
        if not wanted:
            return []
        return [
            tag
            for tag in self.soup.find_all(True)
            if wanted.issubset(class_tokens(tag))
        ]

    def invalidate_layout(self) -> None:
        self.layout.invalidate()
