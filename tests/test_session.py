import asyncio
import logging

from story_lighting.reader import (
    ArticleRecord,
    ContainerLocator,
    ExtractionConfig,
    HeuristicExtractionEngine,
    InMemoryArticleRepository,
    LiveDocument,
    LocalMessageTransport,
    LocatorStrategy,
    MappingLayout,
    MessageHandler,
    ReadingSession,
    SessionPhase,
    SyncClient,
    Viewport,
    article_id_for,
    canonicalize_url,
)

URL = "https://example.com/long-road"

STORY_HTML = """
<html><head><title>The Long Road — Daily Planet</title></head>
<body>
<header><a href="/">Daily Planet</a></header>
<article id="story">
<p class="byline author">BY CLARK KENT</p>
<time datetime="2021-03-03">March 3</time>
<p>It was a cold morning when the train finally arrived at the station.</p>
<p style="color: red">Nobody on the platform seemed to notice the stranger.</p>
<aside><p>Subscribe now for more stories like this one today.</p></aside>
<p>He walked slowly toward the old clock tower.</p>
</article>
<div class="comment-list"><p>First! This story is great and I loved every single word of it here.</p></div>
</body></html>
"""

PARAGRAPHS = [
    "It was a cold morning when the train finally arrived at the station.",
    "Nobody on the platform seemed to notice the stranger.",
    "He walked slowly toward the old clock tower.",
]


def _environment():
    repo = InMemoryArticleRepository()
    colors = []
    handler = MessageHandler(repo, on_color=colors.append)
    return repo, handler, colors


def _story_document():
    """Story page with explicit geometry: paragraphs 400px tall, 500px apart, starting 20px down."""
    layout = MappingLayout()
    document = LiveDocument.from_html(STORY_HTML, layout=layout, viewport=Viewport(height=800))
    story = document.find_by_id("story")
    top = 20
    for node in story.find_all("p"):
        if "byline" in (node.get("class") or []) or node.find_parent("aside") is not None:
            layout.place(node, top=top, height=24)
            continue
        layout.place(node, top=top, height=400)
        top += 500
    layout.place(document.soup.find("div", class_="comment-list").p, top=top, height=48)
    return document


def test_engine_extracts_story():
    article = HeuristicExtractionEngine().extract(LiveDocument.from_html(STORY_HTML))

    assert article.container.get("id") == "story"
    assert article.locator.strategies == [LocatorStrategy.BY_ID]
    assert article.paragraphs == PARAGRAPHS
    assert article.metadata.title == "The Long Road"
    assert article.metadata.author == "Clark Kent"
    assert article.metadata.date == "March 3"


def test_first_visit_extracts_and_submits():
    repo, handler, colors = _environment()

    async def scenario():
        session = ReadingSession(_story_document(), URL, SyncClient(LocalMessageTransport(handler)))
        state = await session.start()
        await session.drain()
        return session, state

    session, state = asyncio.run(scenario())

    assert state.cached is False
    assert state.phase == SessionPhase.TRACKING
    assert [b.index for b in state.bindings] == [1, 2, 4]
    stored = repo.get_article(article_id_for(URL))
    assert stored.paragraphs == PARAGRAPHS
    assert stored.url == canonicalize_url(URL)
    assert stored.author == "Clark Kent"
    # Initial pass reports the first paragraph.
    assert state.dominant_index == 1
    assert colors == ["#000000"]


def test_scroll_reports_only_on_dominant_change():
    _, handler, colors = _environment()

    async def scenario():
        session = ReadingSession(_story_document(), URL, SyncClient(LocalMessageTransport(handler)))
        await session.start()
        session.on_color_input(2, "#00ff00")

        observed = []
        for scroll_y in (0, 100, 300, 350, 800):
            dominant = session.scroll_to(scroll_y)
            observed.append(dominant.index if dominant else None)
            await session.drain()
        return observed

    observed = asyncio.run(scenario())
    assert observed == [1, 1, 2, 2, 4]
    assert colors == ["#000000", "#00ff00", "#000000"]


def test_second_visit_binds_cached_paragraphs_and_colors():
    repo, handler, _ = _environment()

    async def visit():
        session = ReadingSession(_story_document(), URL, SyncClient(LocalMessageTransport(handler)))
        state = await session.start()
        await session.drain()
        return session, state

    async def scenario():
        first, _ = await visit()
        first.on_color_input(2, "#ff0000")
        assert await first.save_colors() is True
        first.close()
        return await visit()

    session, state = asyncio.run(scenario())

    assert state.cached is True
    assert state.paragraphs == PARAGRAPHS
    assert [b.affordance.value for b in state.bindings] == ["#000000", "#ff0000", "#000000"]
    assert repo.get_article(article_id_for(URL)).colors == ["#000000", "#ff0000", "#000000"]
    assert len(repo.list_articles()) == 1


def test_missing_cached_container_falls_back_without_resubmitting():
    repo, handler, _ = _environment()
    repo.save_article(
        ArticleRecord(
            id=article_id_for(URL),
            url=canonicalize_url(URL),
            locator=ContainerLocator([LocatorStrategy.BY_ID], id="gone"),
            title="Old",
            author="Someone",
            date="Unknown date",
            paragraphs=["stale"],
        )
    )

    async def scenario():
        session = ReadingSession(_story_document(), URL, SyncClient(LocalMessageTransport(handler)))
        state = await session.start()
        await session.drain()
        return state

    state = asyncio.run(scenario())
    assert state.cached is False
    assert state.paragraphs == PARAGRAPHS
    assert len(state.bindings) == 3
    assert repo.get_article(article_id_for(URL)).paragraphs == ["stale"]


def test_store_outage_still_tracks_reading():
    class OfflineTransport:
        async def send(self, message):
            raise ConnectionError("offline")

    async def scenario():
        session = ReadingSession(_story_document(), URL, SyncClient(OfflineTransport()))
        state = await session.start()
        await session.drain()
        return state

    state = asyncio.run(scenario())
    assert state.phase == SessionPhase.TRACKING
    assert len(state.bindings) == 3
    assert state.dominant_index == 1


def test_close_ends_the_session():
    _, handler, _ = _environment()

    async def scenario():
        session = ReadingSession(_story_document(), URL, SyncClient(LocalMessageTransport(handler)))
        await session.start()
        session.close()
        return session

    session = asyncio.run(scenario())
    assert session.state.phase == SessionPhase.CLOSED


def test_null_shell_responses_surface_in_logs(caplog):
    class NullTransport:
        async def send(self, message):
            if message["type"] == "checkArticleContent":
                return {"exists": False}
            return None

    async def scenario():
        session = ReadingSession(_story_document(), URL, SyncClient(NullTransport()))
        await session.start()
        await session.drain()

    with caplog.at_level("WARNING"):
        asyncio.run(scenario())

    messages = [r.getMessage() for r in caplog.records if r.levelno >= logging.WARNING]
    assert any("was not stored" in m for m in messages)
    assert any("was not acknowledged" in m for m in messages)


def test_failing_background_task_is_logged(caplog):
    class BrokenReportClient(SyncClient):
        async def report_color(self, color):
            raise RuntimeError("shell went away")

    _, handler, _ = _environment()

    async def scenario():
        session = ReadingSession(_story_document(), URL, BrokenReportClient(LocalMessageTransport(handler)))
        await session.start()
        await session.drain()

    with caplog.at_level("ERROR", logger="story_lighting.reader.session"):
        asyncio.run(scenario())

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "shell went away" in errors[0].getMessage()
    assert errors[0].exc_info is not None


def test_engine_config_drives_binding():
    html = (
        '<body><div id="story"><section>alpha beta gamma delta</section>'
        "<section>epsilon zeta eta theta</section></div><div>noise</div></body>"
    )
    _, handler, _ = _environment()
    engine = HeuristicExtractionEngine(ExtractionConfig(paragraph_tag="section"))

    async def scenario():
        session = ReadingSession(
            LiveDocument.from_html(html), URL, SyncClient(LocalMessageTransport(handler)), engine=engine
        )
        state = await session.start()
        await session.drain()
        return state

    state = asyncio.run(scenario())
    assert state.paragraphs == ["alpha beta gamma delta", "epsilon zeta eta theta"]
    assert [b.node.name for b in state.bindings] == ["section", "section"]
