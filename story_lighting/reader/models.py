from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from bs4 import Tag

    from .binding import ColorAffordance


class LocatorStrategy(str, Enum):
    BY_ID = "id"
    BY_CLASS_NAME = "class"
    BY_PATH = "path"


class SessionPhase(str, Enum):
    IDLE = "idle"
    LOOKUP = "lookup"
    EXTRACTION = "extraction"
    BINDING = "binding"
    TRACKING = "tracking"
    CLOSED = "closed"


@dataclass
class BBox:
    x: float
    y: float
    w: float
    h: float


@dataclass
class Viewport:
    scroll_y: float = 0.0
    height: float = 800.0
    width: float = 1280.0


@dataclass
class ContainerLocator:
    """
    Serializable description used to re-find the article container on a
    later visit. Strategies are tried in the order they were recorded.
    """

    strategies: List[LocatorStrategy] = field(default_factory=list)
    id: str = ""
    class_name: str = ""
    path: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.strategies

    def to_message(self) -> Dict[str, Any]:
        return {
            "method": [s.value for s in self.strategies],
            "id": self.id,
            "class": self.class_name,
            "path": self.path,
        }

    @classmethod
    def from_message(cls, payload: Optional[Dict[str, Any]]) -> "ContainerLocator":
        payload = payload or {}
        strategies = []
        for raw in payload.get("method") or []:
            try:
                strategies.append(LocatorStrategy(raw))
            except ValueError:
                continue
        return cls(
            strategies=strategies,
            id=payload.get("id") or "",
            class_name=payload.get("class") or "",
            path=payload.get("path") or "",
        )


@dataclass
class ArticleMetadata:
    title: str
    author: str
    date: str


@dataclass
class ExtractedArticle:
    locator: ContainerLocator
    container: "Tag"
    paragraphs: List[str]
    metadata: ArticleMetadata


@dataclass
class ParagraphBinding:
    index: int
    paragraph_index: int
    text: str
    node: "Tag"
    affordance: Optional["ColorAffordance"] = None


@dataclass
class ScrollSpy:
    index: int
    paragraph_index: int
    node: "Tag"
    top: float = 0.0
    height: float = 0.0
    visible_fraction: float = 0.0
    in_viewport: bool = False
    partially_clipped: bool = False

    @classmethod
    def for_binding(cls, binding: ParagraphBinding) -> "ScrollSpy":
        return cls(index=binding.index, paragraph_index=binding.paragraph_index, node=binding.node)


@dataclass
class ArticleRecord:
    id: str
    url: str
    locator: ContainerLocator
    title: str
    author: str
    date: str
    paragraphs: List[str]
    colors: Optional[List[str]] = None
    published_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class LookupResult:
    exists: bool
    locator: Optional[ContainerLocator] = None
    paragraphs: List[str] = field(default_factory=list)
    colors: Optional[List[str]] = None
    title: Optional[str] = None
    author: Optional[str] = None
    date: Optional[str] = None

    @classmethod
    def miss(cls) -> "LookupResult":
        return cls(exists=False)


@dataclass
class SubmitResult:
    received: bool
    error: Optional[str] = None


@dataclass
class SessionState:
    """
    Mutable state owned by one page session. Nothing here is shared
    between sessions.
    """

    phase: SessionPhase = SessionPhase.IDLE
    cached: bool = False
    dominant_index: int = -1
    paragraphs: List[str] = field(default_factory=list)
    colors: Optional[List[str]] = None
    bindings: List[ParagraphBinding] = field(default_factory=list)
    spies: List[ScrollSpy] = field(default_factory=list)
    locator: Optional[ContainerLocator] = None
    container: Optional["Tag"] = None
