"""
Story Lighting reader core package.

This package augments long-form articles with a per-paragraph color
marker. It exposes dataclasses for containers, paragraphs and scroll
state, the heuristic extraction engine (container detection, content
normalization, metadata), the paragraph re-identifier and visibility
tracker, and an async sync client that keeps article records in step
with an external store.
"""
