from __future__ import annotations

import json
from copy import deepcopy
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy import Column, DateTime, String, Text, create_engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .models import ArticleRecord, ContainerLocator

Base = declarative_base()


class ArticleIntegrityError(ValueError):
    """Colors and paragraphs of an article record disagree in length."""


def check_colors(paragraphs: Sequence[str], colors: Optional[Sequence[str]]) -> None:
    if colors is not None and len(colors) != len(paragraphs):
        raise ArticleIntegrityError(
            f"Expected {len(paragraphs)} colors, got {len(colors)}"
        )


class ArticleModel(Base):
    __tablename__ = "articles"
    id = Column(String, primary_key=True)
    url = Column(String)
    title = Column(String)
    author = Column(String)
    date = Column(String)
    published_at = Column(DateTime)
    locator_json = Column(Text)
    paragraphs_json = Column(Text)
    colors_json = Column(Text)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)


class ArticleRepository:
    """
    Persistence boundary for article records, keyed by the content-addressed
    URL hash. Implementations can target SQLite/Postgres or any other store.
    """

    def get_article(self, article_id: str) -> Optional[ArticleRecord]:
        raise NotImplementedError

    def save_article(self, article: ArticleRecord) -> None:
        """Insert or replace; the last write wins."""
        raise NotImplementedError

    def create_article_if_absent(self, article: ArticleRecord) -> bool:
        """Insert only when no record exists yet. Returns True if inserted."""
        raise NotImplementedError

    def update_colors(self, article_id: str, colors: Sequence[str]) -> bool:
        raise NotImplementedError

    def list_articles(self) -> List[ArticleRecord]:
        raise NotImplementedError


class InMemoryArticleRepository(ArticleRepository):
    """
    Simple in-memory store for local runs and tests. Keeps copies of records
    to avoid cross-mutation between calls.
    """

    def __init__(self):
        self.articles: Dict[str, ArticleRecord] = {}

    def _clone(self, obj):
        return deepcopy(obj)

    def get_article(self, article_id: str) -> Optional[ArticleRecord]:
        article = self.articles.get(article_id)
        return self._clone(article) if article else None

    def save_article(self, article: ArticleRecord) -> None:
        check_colors(article.paragraphs, article.colors)
        self.articles[article.id] = self._clone(article)

    def create_article_if_absent(self, article: ArticleRecord) -> bool:
        if article.id in self.articles:
            return False
        self.save_article(article)
        return True

    def update_colors(self, article_id: str, colors: Sequence[str]) -> bool:
        article = self.articles.get(article_id)
        if not article:
            return False
        check_colors(article.paragraphs, colors)
        article.colors = list(colors)
        article.updated_at = datetime.utcnow()
        return True

    def list_articles(self) -> List[ArticleRecord]:
        return [self._clone(a) for a in self.articles.values()]


class SqlAlchemyArticleRepository(ArticleRepository):
    """
    SQL-backed repository using SQLAlchemy. Works with SQLite/Postgres URLs.
    """

    def __init__(self, database_url: str):
        self.engine = create_engine(database_url, future=True)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False, future=True)

    def _session(self) -> Session:
        return self.SessionLocal()

    def _to_record(self, model: ArticleModel) -> ArticleRecord:
        colors = json.loads(model.colors_json) if model.colors_json else None
        return ArticleRecord(
            id=model.id,
            url=model.url,
            locator=ContainerLocator.from_message(json.loads(model.locator_json or "{}")),
            title=model.title,
            author=model.author,
            date=model.date,
            paragraphs=json.loads(model.paragraphs_json or "[]"),
            colors=colors,
            published_at=model.published_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, article: ArticleRecord) -> ArticleModel:
        return ArticleModel(
            id=article.id,
            url=article.url,
            title=article.title,
            author=article.author,
            date=article.date,
            published_at=article.published_at,
            locator_json=json.dumps(article.locator.to_message()),
            paragraphs_json=json.dumps(article.paragraphs, ensure_ascii=False),
            colors_json=json.dumps(article.colors) if article.colors is not None else None,
            created_at=article.created_at,
            updated_at=article.updated_at,
        )

    def get_article(self, article_id: str) -> Optional[ArticleRecord]:
        with self._session() as session:
            model = session.get(ArticleModel, article_id)
            if not model:
                return None
            return self._to_record(model)

    def save_article(self, article: ArticleRecord) -> None:
        check_colors(article.paragraphs, article.colors)
        with self._session() as session:
            session.merge(self._to_model(article))
            session.commit()

    def create_article_if_absent(self, article: ArticleRecord) -> bool:
        check_colors(article.paragraphs, article.colors)
        with self._session() as session:
            if session.get(ArticleModel, article.id) is not None:
                return False
            session.add(self._to_model(article))
            try:
                session.commit()
            except IntegrityError:
                # Another writer inserted the same key first.
                session.rollback()
                return False
            return True

    def update_colors(self, article_id: str, colors: Sequence[str]) -> bool:
        with self._session() as session:
            model = session.get(ArticleModel, article_id)
            if not model:
                return False
            check_colors(json.loads(model.paragraphs_json or "[]"), colors)
            model.colors_json = json.dumps(list(colors))
            model.updated_at = datetime.utcnow()
            session.commit()
            return True

    def list_articles(self) -> List[ArticleRecord]:
        with self._session() as session:
            models = session.execute(select(ArticleModel)).scalars().all()
            return [self._to_record(m) for m in models]
