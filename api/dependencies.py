from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from story_lighting.reader import ArticleRepository, MessageHandler, SqlAlchemyArticleRepository

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///./data/story_lighting.db"


@lru_cache(maxsize=1)
def get_repo() -> ArticleRepository:
    db_url = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
    if db_url == DEFAULT_DATABASE_URL:
        Path("./data").mkdir(exist_ok=True)
    return SqlAlchemyArticleRepository(db_url)


@lru_cache(maxsize=1)
def get_handler() -> MessageHandler:
    return MessageHandler(get_repo())
