from __future__ import annotations

from typing import Iterable, List, Optional

from .config import TrackingConfig
from .layout import LiveDocument
from .models import ParagraphBinding, ScrollSpy


class VisibilityTracker:
    """
    Recomputes each tracked paragraph's on-screen geometry. Runs on every
    scroll-class event, so it does one box lookup per paragraph and nothing
    else.
    """

    def __init__(self, document: LiveDocument, bindings: Iterable[ParagraphBinding]):
        self.document = document
        self.spies: List[ScrollSpy] = [ScrollSpy.for_binding(b) for b in bindings]

    def update(self, viewport_height: Optional[float] = None) -> List[ScrollSpy]:
        if viewport_height is None:
            viewport_height = self.document.viewport.height
        for spy in self.spies:
            rect = self.document.client_rect(spy.node)
            classify(spy, rect.y, rect.h, viewport_height)
        return self.spies


def classify(spy: ScrollSpy, top: float, height: float, viewport_height: float) -> ScrollSpy:
    """Update ``spy`` in place from a viewport-relative box."""
    spy.top = top
    spy.height = height
    spy.in_viewport = False
    spy.partially_clipped = False
    spy.visible_fraction = 0.0
    if height <= 0:
        return spy

    bottom = top + height
    if top < 0 and bottom > viewport_height:
        # Taller than the viewport and spanning it.
        spy.in_viewport = True
        spy.partially_clipped = True
        spy.visible_fraction = viewport_height / height
    elif top < 0 and bottom > 0:
        spy.in_viewport = True
        spy.partially_clipped = True
        spy.visible_fraction = bottom / height
    elif 0 < top < viewport_height and bottom > viewport_height:
        spy.in_viewport = True
        spy.partially_clipped = True
        spy.visible_fraction = (viewport_height - top) / height
    elif 0 < top < viewport_height:
        spy.in_viewport = True
        spy.visible_fraction = 1.0
    return spy


def select_dominant_paragraph(
    spies: Iterable[ScrollSpy],
    config: Optional[TrackingConfig] = None,
) -> Optional[ScrollSpy]:
    """Topmost paragraph that is more than ``dominance_threshold`` visible."""
    threshold = (config or TrackingConfig()).dominance_threshold
    visible = [s for s in spies if s.in_viewport and s.visible_fraction > threshold]
    if not visible:
        return None
    return min(visible, key=lambda s: s.top)
