"""
Realtime Routes - websocket bridge to the in-process change feed

Browsers cannot set headers on a websocket handshake, so the publishable
key travels as the ``apikey`` query parameter.
"""

from fastapi import APIRouter, Query, WebSocket, status
import asyncio
import secrets
import logging

from cinesocial.database import get_backend
from cinesocial.realtime import (
    ChangeEvent,
    Subscription,
    subscribe_to_comment_votes,
    subscribe_to_review_comments,
    unsubscribe,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/realtime", tags=["Realtime"])


async def _forward(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        await websocket.send_json(await queue.get())


async def _stream(websocket: WebSocket, queue: asyncio.Queue, subscription: Subscription) -> None:
    """Push queued events until the client goes away, then drop the subscription"""
    await websocket.accept()
    sender = asyncio.create_task(_forward(websocket, queue))
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        sender.cancel()
        (outcome,) = await asyncio.gather(sender, return_exceptions=True)
        if isinstance(outcome, Exception):
            logger.warning(f"Websocket send failed on channel {subscription.channel.name}: {outcome}")
        unsubscribe(subscription)
        logger.debug(f"Websocket closed for channel {subscription.channel.name}")


def _key_is_valid(websocket: WebSocket, apikey: str) -> bool:
    return secrets.compare_digest(apikey, get_backend(websocket).publishable_key)


@router.websocket("/reviews/{review_id}/comments")
async def review_comments_feed(websocket: WebSocket, review_id: str, apikey: str = Query(...)):
    """New comments on a review, as JSON, as they are committed"""
    if not _key_is_valid(websocket, apikey):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def on_comment(comment) -> None:
        # Called on the committing thread
        loop.call_soon_threadsafe(queue.put_nowait, comment.model_dump(mode="json"))

    subscription = subscribe_to_review_comments(get_backend(websocket).realtime, review_id, on_comment)
    await _stream(websocket, queue, subscription)


@router.websocket("/comments/{comment_id}/votes")
async def comment_votes_feed(websocket: WebSocket, comment_id: str, apikey: str = Query(...)):
    """Every vote insert/update/delete on a comment"""
    if not _key_is_valid(websocket, apikey):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def on_vote(change: ChangeEvent) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, change.to_dict())

    subscription = subscribe_to_comment_votes(get_backend(websocket).realtime, comment_id, on_vote)
    await _stream(websocket, queue, subscription)
