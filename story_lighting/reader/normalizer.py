from __future__ import annotations

import copy
import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag

from .config import ExtractionConfig
from .dom import BLOCK_TAGS, VOID_TAGS, RemovalMarks, class_tokens, inner_text, is_hidden, iter_tags

logger = logging.getLogger(__name__)

_DELETE_ATTR = "data-simple-delete"


def paragraph_tag_for(root: Tag, config: ExtractionConfig) -> str:
    """Tag treated as a paragraph under ``root``: the paragraph tag, or the fallback block tag when none exist."""
    if root.find(config.paragraph_tag) is not None:
        return config.paragraph_tag
    return config.fallback_block_tag


class ContentNormalizer:
    """
    Turns a detected container into its canonical paragraph sequence.

    All work happens on a detached clone; the live tree is only read.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None):
        self.config = config or ExtractionConfig()
        self._noise_class_re = re.compile(self.config.noise_class_pattern)

    def normalize(self, container: Tag, marks: Optional[RemovalMarks] = None) -> List[str]:
        work, clone = self._clone(container, marks)

        self._split_on_double_breaks(work, clone)
        for element in list(iter_tags(clone)):
            if element is clone:
                continue
            self._strip_presentation(element)
        for element in list(iter_tags(clone)):
            if element is clone or element.has_attr(_DELETE_ATTR):
                continue
            self._mark_noise(work, element)
        removed = self._remove_marked(clone)
        logger.debug("Removed %s elements from cloned container", removed)

        tag = paragraph_tag_for(clone, self.config)
        paragraphs = [inner_text(p).strip() for p in clone.find_all(tag)]
        logger.debug("Extracted %s paragraphs", len(paragraphs))
        return paragraphs

    def _clone(self, container: Tag, marks: Optional[RemovalMarks]):
        work = BeautifulSoup("", "lxml")
        clone = copy.copy(container)
        work.append(clone)
        # Copies keep structure, so both walks visit matching elements in step.
        for live, copied in zip(iter_tags(container), iter_tags(clone)):
            if copied is clone:
                continue
            if (marks is not None and live in marks) or is_hidden(copied):
                copied[_DELETE_ATTR] = "true"
        return work, clone

    def _split_on_double_breaks(self, work: BeautifulSoup, clone: Tag) -> None:
        for br in list(clone.find_all("br")):
            if br.parent is None or not self._starts_break_run(br):
                continue
            run = self._break_run(br)
            if len(run) < 2:
                continue
            parent = br.parent
            if parent.name == "p":
                self._split_paragraph(work, parent, run)
            elif parent.name in BLOCK_TAGS:
                self._wrap_around_run(work, run)

    @staticmethod
    def _starts_break_run(br: Tag) -> bool:
        sibling = br.previous_sibling
        while isinstance(sibling, NavigableString) and not sibling.strip():
            sibling = sibling.previous_sibling
        return not (isinstance(sibling, Tag) and sibling.name == "br")

    @staticmethod
    def _break_run(br: Tag) -> List:
        run = [br]
        sibling = br.next_sibling
        pending = []
        while sibling is not None:
            if isinstance(sibling, NavigableString) and not sibling.strip():
                pending.append(sibling)
            elif isinstance(sibling, Tag) and sibling.name == "br":
                run.extend(pending)
                run.append(sibling)
                pending = []
            else:
                break
            sibling = sibling.next_sibling
        return run if sum(1 for n in run if isinstance(n, Tag)) >= 2 else [br]

    @staticmethod
    def _split_paragraph(work: BeautifulSoup, paragraph: Tag, run: List) -> None:
        tail = work.new_tag("p")
        for node in list(run[-1].next_siblings):
            tail.append(node.extract())
        for node in run:
            node.extract()
        paragraph.insert_after(tail)

    @staticmethod
    def _wrap_around_run(work: BeautifulSoup, run: List) -> None:
        def inline_run(start, direction: str) -> List:
            nodes = []
            node = getattr(start, direction)
            while node is not None:
                if isinstance(node, Tag) and node.name in BLOCK_TAGS:
                    break
                nodes.append(node)
                node = getattr(node, direction)
            return nodes

        before = list(reversed(inline_run(run[0], "previous_sibling")))
        after = inline_run(run[-1], "next_sibling")
        for group, anchor, place in ((before, run[0], "insert_before"), (after, run[-1], "insert_after")):
            if not any(not isinstance(n, NavigableString) or n.strip() for n in group):
                continue
            wrapper = work.new_tag("p")
            getattr(anchor, place)(wrapper)
            for node in group:
                wrapper.append(node.extract())
        for node in run:
            node.extract()

    def _strip_presentation(self, element: Tag) -> None:
        for attribute in self.config.presentational_attributes:
            if attribute in element.attrs:
                del element[attribute]

    def _mark_noise(self, work: BeautifulSoup, element: Tag) -> None:
        if element.parent is None:
            return

        if element.name not in VOID_TAGS:
            content = element.decode_contents().strip()
            if content in ("", "&nbsp;", "\xa0"):
                element[_DELETE_ATTR] = "true"
                return

        if element.name == "pre" and not self.config.keep_preformatted:
            if element.find("code", recursive=False) is None:
                self._replace_with_paragraph(work, element, keep_breaks=True)
                return

        if element.name == "font":
            self._replace_with_paragraph(work, element, keep_breaks=False)
            return

        if self._is_noise(element):
            element[_DELETE_ATTR] = "true"

    def _is_noise(self, element: Tag) -> bool:
        if element.name in self.config.noise_tags:
            return True
        if element.get("encoding") == self.config.tex_encoding:
            return True
        tokens = class_tokens(element)
        flagged = element.get("aria-hidden") == "true" or any(
            self._noise_class_re.search(token) for token in tokens
        )
        return flagged and self.config.math_fallback_class not in tokens

    @staticmethod
    def _replace_with_paragraph(work: BeautifulSoup, element: Tag, keep_breaks: bool) -> None:
        paragraph = work.new_tag("p")
        for child in list(element.children):
            if keep_breaks and isinstance(child, NavigableString):
                lines = str(child).split("\n")
                for position, line in enumerate(lines):
                    if position:
                        paragraph.append(work.new_tag("br"))
                    if line:
                        paragraph.append(NavigableString(line))
                child.extract()
            else:
                paragraph.append(child.extract())
        element.replace_with(paragraph)

    @staticmethod
    def _remove_marked(clone: Tag) -> int:
        marked = clone.find_all(attrs={_DELETE_ATTR: True})
        for element in marked:
            element.extract()
        return len(marked)
