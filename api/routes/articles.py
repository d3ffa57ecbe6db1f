from __future__ import annotations

from typing import List

from fastapi import APIRouter, Body, Depends, HTTPException

from story_lighting.reader import ArticleIntegrityError, ArticleRecord, ArticleRepository

from api.dependencies import get_repo

router = APIRouter(prefix="/articles", tags=["articles"])


def _summary(article: ArticleRecord) -> dict:
    return {
        "id": article.id,
        "url": article.url,
        "title": article.title,
        "author": article.author,
        "date": article.date,
        "published_at": article.published_at,
        "paragraph_count": len(article.paragraphs),
        "has_colors": article.colors is not None,
    }


@router.get("")
def list_articles(repo: ArticleRepository = Depends(get_repo)):
    return [_summary(a) for a in repo.list_articles()]


@router.get("/{article_id}")
def get_article(article_id: str, repo: ArticleRepository = Depends(get_repo)):
    article = repo.get_article(article_id)
    if not article:
        raise HTTPException(status_code=404, detail=f"Article not found: {article_id}")
    return {
        **_summary(article),
        "element": article.locator.to_message(),
        "paragraphs": article.paragraphs,
        "colors": article.colors,
    }


@router.put("/{article_id}/colors")
def put_colors(
    article_id: str,
    colors: List[str] = Body(..., embed=True),
    repo: ArticleRepository = Depends(get_repo),
):
    try:
        updated = repo.update_colors(article_id, colors)
    except ArticleIntegrityError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    if not updated:
        raise HTTPException(status_code=404, detail=f"Article not found: {article_id}")
    return {"id": article_id, "colors": colors}
