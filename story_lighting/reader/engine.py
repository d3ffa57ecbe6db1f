from __future__ import annotations

import logging
from typing import Optional

from .config import ExtractionConfig
from .detection import ContainerDetector
from .dom import RemovalMarks
from .layout import LiveDocument
from .metadata import MetadataExtractor
from .models import ExtractedArticle
from .normalizer import ContentNormalizer

logger = logging.getLogger(__name__)


class ExtractionEngine:
    """
    Abstract extraction engine. Implementations should be stateless and reusable.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None):
        self.config = config or ExtractionConfig()

    def extract(self, document: LiveDocument) -> ExtractedArticle:
        raise NotImplementedError


class HeuristicExtractionEngine(ExtractionEngine):
    """
    Detector + metadata + normalizer pipeline.

    Metadata runs before normalization so that bylines and dates found
    inside the container are left out of the paragraph text.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None):
        super().__init__(config)
        self.detector = ContainerDetector(self.config)
        self.metadata = MetadataExtractor(self.config)
        self.normalizer = ContentNormalizer(self.config)

    def extract(self, document: LiveDocument) -> ExtractedArticle:
        marks = RemovalMarks()
        detected = self.detector.detect(document, marks)
        metadata = self.metadata.extract(document, detected.node, marks)
        paragraphs = self.normalizer.normalize(detected.node, marks)
        logger.info(
            "Extracted %s paragraphs from <%s> covering %s/%s words",
            len(paragraphs),
            detected.node.name,
            detected.word_count,
            detected.document_word_count,
        )
        return ExtractedArticle(
            locator=detected.locator,
            container=detected.node,
            paragraphs=paragraphs,
            metadata=metadata,
        )
