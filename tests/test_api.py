import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.dependencies import get_handler, get_repo
from story_lighting.reader import MessageHandler, SqlAlchemyArticleRepository, article_id_for

URL = "https://example.com/story"


@pytest.fixture
def client(tmp_path):
    repo = SqlAlchemyArticleRepository(f"sqlite+pysqlite:///{tmp_path / 'api.db'}")
    handler = MessageHandler(repo)
    app = create_app()
    app.dependency_overrides[get_repo] = lambda: repo
    app.dependency_overrides[get_handler] = lambda: handler
    return TestClient(app)


def _send(client, paragraphs=("p1", "p2")):
    return client.post(
        "/messages",
        json={
            "type": "sendArticleContent",
            "element": {"method": ["id"], "id": "story", "class": "", "path": ""},
            "url": URL,
            "title": "Story",
            "author": "Jane Doe",
            "date": "March 3, 2021",
            "paragraphs": list(paragraphs),
        },
    )


def test_healthz_counts_stored_articles(client):
    assert client.get("/healthz").json() == {"status": "ok", "articles": 0}
    _send(client)
    assert client.get("/healthz").json() == {"status": "ok", "articles": 1}


def test_openapi_groups_routes_by_channel(client):
    schema = client.get("/openapi.json").json()
    assert [tag["name"] for tag in schema["tags"]] == ["messages", "articles"]
    assert schema["paths"]["/messages"]["post"]["tags"] == ["messages"]


def test_message_round_trip(client):
    miss = client.post("/messages", json={"type": "checkArticleContent", "url": URL})
    assert miss.json() == {"exists": False}

    sent = _send(client)
    assert sent.status_code == 200
    assert sent.json()["recieved"] is True

    hit = client.post("/messages", json={"type": "checkArticleContent", "url": URL}).json()
    assert hit["exists"] is True
    assert hit["article"]["paragraphs"] == ["p1", "p2"]
    assert hit["article"]["element"]["id"] == "story"
    assert hit["article"]["colors"] is None


def test_color_update_message(client):
    response = client.post("/messages", json={"type": "colorUpdate", "color": "#ff0000"})
    assert response.json() == {"recieved": True}


def test_articles_listing_and_detail(client):
    _send(client)
    article_id = article_id_for(URL)

    listing = client.get("/articles").json()
    assert [a["id"] for a in listing] == [article_id]
    assert listing[0]["paragraph_count"] == 2

    detail = client.get(f"/articles/{article_id}").json()
    assert detail["paragraphs"] == ["p1", "p2"]
    assert detail["url"] == URL

    assert client.get("/articles/missing").status_code == 404


def test_put_colors_enforces_length(client):
    _send(client)
    article_id = article_id_for(URL)

    rejected = client.put(f"/articles/{article_id}/colors", json={"colors": ["#111111"]})
    assert rejected.status_code == 422

    accepted = client.put(f"/articles/{article_id}/colors", json={"colors": ["#111111", "#222222"]})
    assert accepted.status_code == 200
    assert client.get(f"/articles/{article_id}").json()["colors"] == ["#111111", "#222222"]

    assert client.put("/articles/missing/colors", json={"colors": []}).status_code == 404
