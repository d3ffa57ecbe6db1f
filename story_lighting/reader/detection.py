from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from bs4 import Tag

from .config import ExtractionConfig
from .dom import RemovalMarks, child_index, class_string, count_words, inner_text
from .layout import LiveDocument
from .models import ContainerLocator, LocatorStrategy

logger = logging.getLogger(__name__)


@dataclass
class DetectedContainer:
    node: Tag
    locator: ContainerLocator
    word_count: int
    document_word_count: int


class ContainerDetector:
    """
    Finds the element holding a long-form article. Starts from the visible
    paragraph with the most words and widens the selection through its
    ancestors until it covers ``coverage_threshold`` of the page's words.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None):
        self.config = config or ExtractionConfig()

    def detect(self, document: LiveDocument, marks: Optional[RemovalMarks] = None) -> DetectedContainer:
        marks = marks if marks is not None else RemovalMarks()
        body = document.body
        total_words = count_words(inner_text(body))

        tag = self.config.paragraph_tag
        candidates = body.find_all(tag)
        if not candidates:
            tag = self.config.fallback_block_tag
            candidates = body.find_all(tag)

        best: Tag = body
        best_count = 0
        for candidate in candidates:
            height = document.rendered_height(candidate)
            if (
                self.passes_blacklist(candidate)
                and self.passes_blacklist(candidate.parent)
                and height != 0
            ):
                word_count = count_words(inner_text(candidate))
                if word_count > best_count:
                    best, best_count = candidate, word_count
            if height == 0:
                marks.mark(candidate)

        if total_words == 0:
            logger.info("Document has no words; using body as container")
            return DetectedContainer(body, self.build_locator(document, body), 0, 0)

        selected, selected_count = best, best_count
        while (
            selected_count / total_words < self.config.coverage_threshold
            and selected is not body
            and selected.parent is not None
            and inner_text(selected.parent)
        ):
            selected = selected.parent
            selected_count = count_words(inner_text(selected))

        # A single paragraph is never the article.
        if selected.name == tag and selected.find(tag) is None and selected.parent is not None:
            selected = selected.parent
            selected_count = count_words(inner_text(selected))

        if best is body:
            logger.info("No qualifying paragraph found; falling back to document body")

        return DetectedContainer(
            node=selected,
            locator=self.build_locator(document, selected),
            word_count=selected_count,
            document_word_count=total_words,
        )

    def passes_blacklist(self, node: Optional[Tag]) -> bool:
        if node is None or not isinstance(node, Tag):
            return True
        classes = class_string(node)
        element_id = node.get("id") or ""
        return not any(
            entry in classes or entry in element_id for entry in self.config.blacklist
        )

    def build_locator(self, document: LiveDocument, node: Tag) -> ContainerLocator:
        locator = ContainerLocator()
        element_id = node.get("id") or ""
        if element_id:
            locator.id = element_id
            locator.strategies.append(LocatorStrategy.BY_ID)

        classes = class_string(node)
        if classes and len(document.find_by_class_name(classes)) == 1:
            locator.class_name = classes
            locator.strategies.append(LocatorStrategy.BY_CLASS_NAME)

        if locator.is_empty and self.config.structural_locator:
            locator.path = structural_path(document, node)
            locator.strategies.append(LocatorStrategy.BY_PATH)
        return locator


def structural_path(document: LiveDocument, node: Tag) -> str:
    """Child-index path from the body to ``node``, e.g. ``div[1]/article[0]``."""
    body = document.body
    steps: List[str] = []
    current = node
    while current is not None and current is not body:
        steps.append(f"{current.name}[{child_index(current)}]")
        current = current.parent
    if current is None:
        return ""
    return "/".join(reversed(steps))


def resolve_path(document: LiveDocument, path: str) -> Optional[Tag]:
    current: Tag = document.body
    if not path:
        return current
    for step in path.split("/"):
        name, _, rest = step.partition("[")
        try:
            position = int(rest.rstrip("]"))
        except ValueError:
            return None
        siblings = current.find_all(name, recursive=False)
        if position >= len(siblings):
            return None
        current = siblings[position]
    return current


def locate_container(document: LiveDocument, locator: ContainerLocator) -> Optional[Tag]:
    """
    Re-find a previously detected container. Ids win; class names are only
    trusted when they match exactly one element; the structural path is last.
    """
    if LocatorStrategy.BY_ID in locator.strategies:
        element = document.find_by_id(locator.id)
        if element is not None:
            return element

    if LocatorStrategy.BY_CLASS_NAME in locator.strategies:
        elements = document.find_by_class_name(locator.class_name)
        if len(elements) == 1:
            return elements[0]
        if elements:
            logger.debug("Class %r matched %s elements; not usable", locator.class_name, len(elements))

    if LocatorStrategy.BY_PATH in locator.strategies:
        return resolve_path(document, locator.path)

    return None
