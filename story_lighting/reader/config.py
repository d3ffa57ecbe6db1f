from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass
class ExtractionConfig:
    # Detection
    paragraph_tag: str = "p"
    fallback_block_tag: str = "div"
    coverage_threshold: float = 0.4
    blacklist: Tuple[str, ...] = ("comment",)
    structural_locator: bool = True

    # Normalization
    keep_preformatted: bool = False
    presentational_attributes: Tuple[str, ...] = (
        "style",
        "color",
        "width",
        "height",
        "background",
        "bgcolor",
        "border",
    )
    noise_tags: Tuple[str, ...] = ("style", "svg", "noindex", "hr", "aside", "figure")
    noise_class_pattern: str = r"(meta|contributions|ad-slot)"
    math_fallback_class: str = "mwe-math-fallback-image-inline"
    tex_encoding: str = "application/x-tex"

    # Metadata
    title_separators: Tuple[str, ...] = (" — ", " – ", " - ", " | ", " : ")
    max_date_words: int = 10
    max_author_words: int = 5
    max_author_words_fallback: int = 6
    particle_max_length: int = 3
    unknown_date: str = "Unknown date"
    unknown_author: str = "Unknown author"


@dataclass
class TrackingConfig:
    dominance_threshold: float = 0.5
    default_color: str = "#000000"


@dataclass
class ClientConfig:
    base_url: str = "http://localhost:8000"
    timeout_s: Optional[float] = None
    headers: dict = field(default_factory=dict)
