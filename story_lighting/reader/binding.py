from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from bs4 import BeautifulSoup, Tag

from .config import ExtractionConfig
from .dom import inner_text
from .layout import LiveDocument
from .models import ParagraphBinding
from .normalizer import paragraph_tag_for

logger = logging.getLogger(__name__)

INDICATOR_CLASS = "storyLight-color-indicator"
LABEL_CLASS = "storyLight-color-label"
INPUT_CLASS = "storyLight-color-input"
FILL_CLASS = "storyLight-color-fill"
DEFAULT_COLOR = "#000000"

_DROP_PATH = (
    "M34.7,1.5c-1.1-1-2.5-1.5-3.9-1.5C29.4,0,28,0.5,27,1.5l0,0L8.9,20.9H9C-3,33.8-3,53.8,9,66.7"
    "c5.7,6.1,13.7,9.6,22,9.6l0,0c8.3,0,16.3-3.4,22-9.5C65,53.9,65,33.9,53,21L34.7,1.5z"
)


def input_id(index: int) -> str:
    return f"storyLight-paragraph-id-{index}-color-input"


def fill_id(index: int) -> str:
    return f"storyLight-paragraph-id-{index}-color-fill"


class ColorAffordance:
    """
    The color picker attached to one bound paragraph. ``set_color`` plays the
    part of the input-change listener: it updates both the input value and
    the fill of the drop icon.
    """

    def __init__(self, index: int, input_tag: Tag, fill_tag: Tag):
        self.index = index
        self.input = input_tag
        self.fill = fill_tag

    @property
    def value(self) -> str:
        return self.input.get("value") or DEFAULT_COLOR

    def set_color(self, value: str) -> None:
        self.input["value"] = value
        self.fill["style"] = f"fill: {value};"

    @classmethod
    def attach(cls, soup: BeautifulSoup, node: Tag, index: int) -> "ColorAffordance":
        existing = node.find("input", id=input_id(index))
        if existing is not None:
            fill = node.find(id=fill_id(index))
            if fill is not None:
                return cls(index, existing, fill)

        indicator = soup.new_tag("div", attrs={"class": INDICATOR_CLASS})
        label = soup.new_tag("label", attrs={"class": LABEL_CLASS})
        input_tag = soup.new_tag(
            "input",
            attrs={"class": INPUT_CLASS, "id": input_id(index), "type": "color"},
        )
        svg = soup.new_tag(
            "svg",
            attrs={
                "version": "1.1",
                "xmlns": "http://www.w3.org/2000/svg",
                "viewBox": "0 0 62 76.3",
                "xml:space": "preserve",
            },
        )
        fill = soup.new_tag("path", attrs={"id": fill_id(index), "class": FILL_CLASS, "d": _DROP_PATH})
        svg.append(fill)
        label.append(input_tag)
        label.append(svg)
        indicator.append(label)
        node.append(indicator)
        return cls(index, input_tag, fill)


def bind_paragraphs(
    document: LiveDocument,
    container: Tag,
    paragraphs: Sequence[str],
    colors: Optional[Sequence[str]] = None,
    config: Optional[ExtractionConfig] = None,
) -> List[ParagraphBinding]:
    """
    Align the canonical paragraph sequence with the container's live
    paragraphs and attach a color affordance to each match.

    The canonical list must appear as an in-order subsequence of the live
    paragraph texts; live paragraphs that do not match the next canonical
    entry are skipped, and canonical entries left over at the end stay
    unbound.
    """
    config = config or ExtractionConfig()
    tag = paragraph_tag_for(container, config)
    bindings: List[ParagraphBinding] = []
    j = 0
    for index, node in enumerate(container.find_all(tag)):
        if j >= len(paragraphs):
            break
        text = inner_text(node).strip()
        if text != paragraphs[j]:
            continue
        node["data-paragraph-id"] = str(index)
        affordance = ColorAffordance.attach(document.soup, node, index)
        bindings.append(
            ParagraphBinding(index=index, paragraph_index=j, text=text, node=node, affordance=affordance)
        )
        j += 1

    if colors is not None:
        if len(colors) == len(paragraphs):
            for binding in bindings:
                binding.affordance.set_color(colors[binding.paragraph_index])
        else:
            logger.debug("Ignoring %s colors for %s paragraphs", len(colors), len(paragraphs))

    if j < len(paragraphs):
        logger.debug("Bound %s of %s paragraphs", j, len(paragraphs))
    document.invalidate_layout()
    return bindings
