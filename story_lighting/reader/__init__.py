"""
Reader subsystem exports.
"""

from .binding import ColorAffordance, bind_paragraphs
from .config import ClientConfig, ExtractionConfig, TrackingConfig
from .detection import ContainerDetector, DetectedContainer, locate_container, structural_path
from .engine import ExtractionEngine, HeuristicExtractionEngine
from .identity import article_id_for, canonicalize_url
from .layout import FlowLayout, LayoutProvider, LiveDocument, MappingLayout
from .metadata import MetadataExtractor, extract_title, normalize_author, normalize_date
from .models import (
    ArticleMetadata,
    ArticleRecord,
    BBox,
    ContainerLocator,
    ExtractedArticle,
    LocatorStrategy,
    LookupResult,
    ParagraphBinding,
    ScrollSpy,
    SessionPhase,
    SessionState,
    SubmitResult,
    Viewport,
)
from .normalizer import ContentNormalizer
from .repository import (
    ArticleIntegrityError,
    ArticleRepository,
    InMemoryArticleRepository,
    SqlAlchemyArticleRepository,
)
from .session import ReadingSession
from .shell import MessageHandler
from .sync_client import HttpMessageTransport, LocalMessageTransport, MessageTransport, SyncClient
from .tracking import VisibilityTracker, classify, select_dominant_paragraph

__all__ = [
    "ArticleIntegrityError",
    "ArticleMetadata",
    "ArticleRecord",
    "ArticleRepository",
    "BBox",
    "ClientConfig",
    "ColorAffordance",
    "ContainerDetector",
    "ContainerLocator",
    "ContentNormalizer",
    "DetectedContainer",
    "ExtractedArticle",
    "ExtractionConfig",
    "ExtractionEngine",
    "FlowLayout",
    "HeuristicExtractionEngine",
    "HttpMessageTransport",
    "InMemoryArticleRepository",
    "LayoutProvider",
    "LiveDocument",
    "LocalMessageTransport",
    "LocatorStrategy",
    "LookupResult",
    "MappingLayout",
    "MessageHandler",
    "MessageTransport",
    "MetadataExtractor",
    "ParagraphBinding",
    "ReadingSession",
    "ScrollSpy",
    "SessionPhase",
    "SessionState",
    "SqlAlchemyArticleRepository",
    "SubmitResult",
    "SyncClient",
    "TrackingConfig",
    "Viewport",
    "VisibilityTracker",
    "article_id_for",
    "bind_paragraphs",
    "canonicalize_url",
    "classify",
    "extract_title",
    "locate_container",
    "normalize_author",
    "normalize_date",
    "select_dominant_paragraph",
    "structural_path",
]
