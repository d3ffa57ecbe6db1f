from __future__ import annotations

import os
from typing import List

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from story_lighting.reader import ArticleRepository

from api.dependencies import get_repo
from api.routes.articles import router as articles_router
from api.routes.messages import router as messages_router

TAGS = [
    {"name": "messages", "description": "Host-shell message channel used by the reader overlay."},
    {"name": "articles", "description": "Stored article records and their paragraph colors."},
]


def _allowed_origins() -> List[str]:
    # The reader runs inside arbitrary pages, so every origin is allowed unless narrowed.
    raw = os.getenv("STORY_LIGHTING_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def create_app() -> FastAPI:
    app = FastAPI(
        title="Story Lighting API",
        version="0.1.0",
        description="Article cache and color store behind the Story Lighting reader.",
        openapi_tags=TAGS,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_allowed_origins(),
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["*"],
    )

    app.include_router(messages_router)
    app.include_router(articles_router)

    @app.get("/healthz")
    def health(repo: ArticleRepository = Depends(get_repo)) -> dict:
        return {"status": "ok", "articles": len(repo.list_articles())}

    return app


app = create_app()
