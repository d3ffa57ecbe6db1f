from __future__ import annotations

import re
from typing import Dict, Iterator, List

from bs4 import NavigableString, Tag
from bs4.element import PreformattedString

BLOCK_TAGS = frozenset(
    {
        "address",
        "article",
        "aside",
        "blockquote",
        "body",
        "dd",
        "details",
        "div",
        "dl",
        "dt",
        "fieldset",
        "figcaption",
        "figure",
        "footer",
        "form",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "hr",
        "html",
        "li",
        "main",
        "nav",
        "ol",
        "p",
        "pre",
        "section",
        "summary",
        "table",
        "tbody",
        "td",
        "tfoot",
        "th",
        "thead",
        "tr",
        "ul",
    }
)

# Never rendered as text.
SKIP_TAGS = frozenset({"script", "style", "noscript", "template", "head", "title", "meta", "link"})

VOID_TAGS = frozenset({"br", "img", "input", "wbr"})

_HIDDEN_STYLE_RE = re.compile(r"display\s*:\s*none|visibility\s*:\s*hidden", re.IGNORECASE)
_WORD_RE = re.compile(r"\S+")
_SPACE_RE = re.compile(r"[ \t\n\r\f]+")
_BLOCK_BREAK = "\x1e"
_BLOCK_BREAK_RE = re.compile(r" *\x1e[\x1e ]*")
_LINE_EDGE_RE = re.compile(r" *\n *")


def class_tokens(node: Tag) -> List[str]:
    value = node.get("class")
    if not value:
        return []
    if isinstance(value, str):
        return value.split()
    return [token for token in value if token]


def class_string(node: Tag) -> str:
    return " ".join(class_tokens(node))


def is_hidden(node: Tag) -> bool:
    if node.name in SKIP_TAGS:
        return True
    if node.has_attr("hidden"):
        return True
    if node.name == "input" and (node.get("type") or "").lower() == "hidden":
        return True
    style = node.get("style")
    return bool(style and _HIDDEN_STYLE_RE.search(style))


def iter_tags(root: Tag) -> Iterator[Tag]:
    """Yield ``root`` followed by every descendant element in document order."""
    yield root
    for node in root.descendants:
        if isinstance(node, Tag):
            yield node


def inner_text(node: Tag) -> str:
    """
    Approximate the browser's ``innerText`` for an element of a parsed tree.

    Hidden and non-rendered elements are skipped, ``<br>`` becomes a newline
    and block boundaries become a single line break. Horizontal whitespace
    collapses; non-breaking spaces are kept.
    """
    parts: List[str] = []

    def walk(element: Tag) -> None:
        for child in element.children:
            if isinstance(child, PreformattedString):
                continue
            if isinstance(child, NavigableString):
                parts.append(_SPACE_RE.sub(" ", str(child)))
                continue
            if not isinstance(child, Tag) or is_hidden(child):
                continue
            if child.name == "br":
                parts.append("\n")
                continue
            block = child.name in BLOCK_TAGS
            if block:
                parts.append(_BLOCK_BREAK)
            walk(child)
            if block:
                parts.append(_BLOCK_BREAK)

    walk(node)
    text = _BLOCK_BREAK_RE.sub("\n", "".join(parts))
    text = _LINE_EDGE_RE.sub("\n", text)
    return text.strip(" \n")


def count_words(text: str) -> int:
    return len(_WORD_RE.findall(text or ""))


def child_index(node: Tag) -> int:
    """Position of ``node`` among its parent's children with the same tag name."""
    parent = node.parent
    if parent is None:
        return 0
    for position, sibling in enumerate(parent.find_all(node.name, recursive=False)):
        if sibling is node:
            return position
    return 0


class RemovalMarks:
    """
    Nodes flagged for removal during extraction. Flags live here rather than
    on the live tree, which extraction must not mutate.
    """

    def __init__(self):
        self._nodes: Dict[int, Tag] = {}

    def mark(self, node: Tag) -> None:
        self._nodes[id(node)] = node

    def __contains__(self, node: object) -> bool:
        return id(node) in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)
