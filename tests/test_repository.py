import pytest

from story_lighting.reader import (
    ArticleIntegrityError,
    ArticleRecord,
    ContainerLocator,
    InMemoryArticleRepository,
    LocatorStrategy,
    SqlAlchemyArticleRepository,
    article_id_for,
    canonicalize_url,
)


@pytest.fixture(params=["memory", "sqlite"])
def repo(request, tmp_path):
    if request.param == "memory":
        return InMemoryArticleRepository()
    return SqlAlchemyArticleRepository(f"sqlite+pysqlite:///{tmp_path / 'test.db'}")


def _article(url="https://example.com/story", paragraphs=("p1", "p2"), colors=None, title="Story"):
    return ArticleRecord(
        id=article_id_for(url),
        url=canonicalize_url(url),
        locator=ContainerLocator([LocatorStrategy.BY_ID], id="story"),
        title=title,
        author="Jane Doe",
        date="March 3, 2021",
        paragraphs=list(paragraphs),
        colors=colors,
    )


def test_repository_roundtrip(repo):
    article = _article()
    repo.save_article(article)

    fetched = repo.get_article(article.id)
    assert fetched is not None
    assert fetched.paragraphs == ["p1", "p2"]
    assert fetched.locator.strategies == [LocatorStrategy.BY_ID]
    assert fetched.locator.id == "story"
    assert fetched.colors is None
    assert repo.get_article("missing") is None
    assert [a.id for a in repo.list_articles()] == [article.id]


def test_create_if_absent_keeps_first_record(repo):
    assert repo.create_article_if_absent(_article(title="First")) is True
    assert repo.create_article_if_absent(_article(title="Second")) is False
    assert repo.get_article(article_id_for("https://example.com/story")).title == "First"


def test_update_colors(repo):
    article = _article()
    repo.save_article(article)

    assert repo.update_colors(article.id, ["#111111", "#222222"]) is True
    assert repo.get_article(article.id).colors == ["#111111", "#222222"]
    assert repo.update_colors("missing", ["#111111"]) is False


def test_color_length_mismatch_is_rejected(repo):
    article = _article()
    repo.save_article(article)

    with pytest.raises(ArticleIntegrityError):
        repo.update_colors(article.id, ["#111111"])
    with pytest.raises(ArticleIntegrityError):
        repo.save_article(_article(colors=["#111111"]))
    assert repo.get_article(article.id).colors is None


def test_unicode_paragraphs_survive_sqlite(tmp_path):
    repo = SqlAlchemyArticleRepository(f"sqlite+pysqlite:///{tmp_path / 'test.db'}")
    article = _article(paragraphs=["café\xa0crème", "日本語"])
    repo.save_article(article)
    assert repo.get_article(article.id).paragraphs == ["café\xa0crème", "日本語"]


def test_canonical_url_identity():
    assert canonicalize_url("HTTPS://Example.COM/a?b=1#frag") == "https://example.com/a?b=1"
    assert canonicalize_url("https://example.com/a?b=1", preserve_query=False) == "https://example.com/a"
    assert article_id_for(" https://EXAMPLE.com/a#top ") == article_id_for("https://example.com/a")
    assert article_id_for("https://example.com/a") != article_id_for("https://example.com/b")
    assert len(article_id_for("https://example.com/a")) == 40
