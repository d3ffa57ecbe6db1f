from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Set

from .binding import bind_paragraphs
from .config import TrackingConfig
from .detection import locate_container
from .engine import ExtractionEngine, HeuristicExtractionEngine
from .layout import LiveDocument
from .models import ScrollSpy, SessionPhase, SessionState, Viewport
from .sync_client import SyncClient
from .tracking import VisibilityTracker, select_dominant_paragraph

logger = logging.getLogger(__name__)


class ReadingSession:
    """
    Page-session controller. Drives one loaded document through
    lookup -> (cached binding | extraction + submission) -> tracking, and
    owns the session state the scroll pipeline reads and updates.
    """

    def __init__(
        self,
        document: LiveDocument,
        url: str,
        client: SyncClient,
        engine: Optional[ExtractionEngine] = None,
        tracking: Optional[TrackingConfig] = None,
    ):
        self.document = document
        self.url = url
        self.client = client
        self.engine = engine or HeuristicExtractionEngine()
        self.tracking = tracking or TrackingConfig()
        self.state = SessionState()
        self.tracker: Optional[VisibilityTracker] = None
        self._pending: Set[asyncio.Task] = set()

    async def start(self) -> SessionState:
        self.state.phase = SessionPhase.LOOKUP
        lookup = await self.client.start_lookup(self.url)

        container = None
        if lookup.exists:
            container = locate_container(self.document, lookup.locator)
            if container is None:
                logger.warning("Cached container for %s not found; extracting afresh", self.url)
            else:
                self.state.cached = True
                self.state.locator = lookup.locator
                self.state.paragraphs = lookup.paragraphs
                self.state.colors = lookup.colors

        if container is None:
            self.state.phase = SessionPhase.EXTRACTION
            article = self.engine.extract(self.document)
            container = article.container
            self.state.locator = article.locator
            self.state.paragraphs = article.paragraphs
            if not lookup.exists:
                self._spawn(self.client.submit(article, self.url))

        self.state.container = container
        self.state.phase = SessionPhase.BINDING
        self.state.bindings = bind_paragraphs(
            self.document,
            container,
            self.state.paragraphs,
            colors=self.state.colors,
            config=self.engine.config,
        )
        self.tracker = VisibilityTracker(self.document, self.state.bindings)
        self.state.spies = self.tracker.spies
        self.state.phase = SessionPhase.TRACKING
        self.on_scroll()
        return self.state

    def on_scroll(self, viewport: Optional[Viewport] = None) -> Optional[ScrollSpy]:
        """Handle one scroll-class event; reports only when the dominant paragraph changes."""
        if self.tracker is None:
            return None
        if viewport is not None:
            self.document.viewport = viewport
        self.tracker.update()
        dominant = select_dominant_paragraph(self.state.spies, self.tracking)
        if dominant is None or dominant.index == self.state.dominant_index:
            return dominant

        self.state.dominant_index = dominant.index
        color = self.color_of(dominant.index)
        self._spawn(self.client.report_color(color))
        return dominant

    def scroll_to(self, scroll_y: float) -> Optional[ScrollSpy]:
        self.document.scroll_to(scroll_y)
        return self.on_scroll()

    def color_of(self, index: int) -> str:
        for binding in self.state.bindings:
            if binding.index == index and binding.affordance is not None:
                return binding.affordance.value
        return self.tracking.default_color

    def on_color_input(self, index: int, color: str) -> bool:
        for binding in self.state.bindings:
            if binding.index == index and binding.affordance is not None:
                binding.affordance.set_color(color)
                return True
        return False

    def current_colors(self) -> List[str]:
        stored = self.state.colors
        colors = list(stored) if stored is not None else [self.tracking.default_color] * len(self.state.paragraphs)
        for binding in self.state.bindings:
            if binding.affordance is not None:
                colors[binding.paragraph_index] = binding.affordance.value
        return colors

    async def save_colors(self) -> bool:
        colors = self.current_colors()
        saved = await self.client.record_colors(self.url, colors)
        if saved:
            self.state.colors = colors
        return saved

    async def drain(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def close(self) -> None:
        self.client.cancel_lookup()
        for task in list(self._pending):
            task.cancel()
        self.state.phase = SessionPhase.CLOSED

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        task.add_done_callback(self._log_outcome)
        return task

    @staticmethod
    def _log_outcome(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task %s failed: %s", task.get_name(), exc, exc_info=exc)
