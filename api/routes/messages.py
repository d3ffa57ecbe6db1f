from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from story_lighting.reader import MessageHandler

from api.dependencies import get_handler

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("")
def post_message(
    message: Dict[str, Any] = Body(...),
    handler: MessageHandler = Depends(get_handler),
) -> Dict[str, Any]:
    """Host-shell endpoint: one JSON message in, one JSON response out."""
    return handler.handle(message)
