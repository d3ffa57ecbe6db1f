"""
Example: run a full reading session over a saved article page using SQLite as the store.

Usage:
    python3 reading_demo.py --html /path/to/article.html --url https://example.com/story
"""

import argparse
import asyncio
import logging
from pathlib import Path

from story_lighting.reader import (
    LiveDocument,
    LocalMessageTransport,
    MessageHandler,
    ReadingSession,
    SqlAlchemyArticleRepository,
    SyncClient,
    Viewport,
)


def setup_logging(verbose: bool = False) -> None:
    log_dir = Path("./logs")
    log_dir.mkdir(exist_ok=True)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_dir / "reader.log", encoding="utf-8"),
        ],
        force=True,
    )


async def run(args: argparse.Namespace) -> None:
    args.db.parent.mkdir(parents=True, exist_ok=True)
    repo = SqlAlchemyArticleRepository(f"sqlite+pysqlite:///{args.db}")
    handler = MessageHandler(repo, on_color=lambda color: print(f"  position color -> {color}"))
    client = SyncClient(LocalMessageTransport(handler))

    html = args.html.read_text(encoding="utf-8")
    document = LiveDocument.from_html(html, viewport=Viewport(height=args.viewport_height))
    session = ReadingSession(document, args.url, client)

    state = await session.start()
    print(f"Session started (cached={state.cached}) with {len(state.bindings)} bound paragraphs")
    await session.drain()

    total = document.rendered_height(document.body)
    scroll_y = 0.0
    while scroll_y <= total:
        dominant = session.scroll_to(scroll_y)
        if dominant is not None:
            print(f"scroll={scroll_y:.0f} dominant paragraph={dominant.index}")
        await session.drain()
        scroll_y += args.scroll_step

    if args.save_colors:
        saved = await session.save_colors()
        print(f"Colors saved: {saved}")
    session.close()


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--html", required=True, type=Path, help="Path to a saved article page")
    parser.add_argument("--url", required=True, help="URL the page was loaded from")
    parser.add_argument("--db", default=Path("./data/story_lighting.db"), type=Path, help="SQLite DB path")
    parser.add_argument("--viewport-height", default=800.0, type=float, help="Viewport height in pixels")
    parser.add_argument("--scroll-step", default=200.0, type=float, help="Pixels scrolled per simulated event")
    parser.add_argument("--save-colors", action="store_true", help="Record the current colors at the end")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    if args.scroll_step <= 0:
        parser.error("--scroll-step must be positive")
    if not args.html.exists():
        raise FileNotFoundError(f"HTML not found: {args.html}")

    setup_logging(args.verbose)
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
