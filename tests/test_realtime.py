import asyncio
import logging

import pytest

from cinesocial.models.review import Comment
from cinesocial.realtime import (
    ALL_EVENTS,
    DELETE,
    INSERT,
    UPDATE,
    ChangeEvent,
    subscribe_to_comment_votes,
    subscribe_to_review_comments,
    unsubscribe,
)
from cinesocial.routes.realtime import _stream
from cinesocial.schemas.review import CommentResponse
from cinesocial.services.comment_service import CommentService
from cinesocial.services.review_service import ReviewService
from cinesocial.services.vote_service import VoteService, UPVOTE, DOWNVOTE
from cinesocial.utils.errors import unwrap_response


@pytest.fixture
def review(db_session, alice, movie):
    return unwrap_response(ReviewService.create_review(db_session, alice.id, movie.id, 8, "Great film"))


@pytest.fixture
def other_review(db_session, bob, movie):
    return unwrap_response(ReviewService.create_review(db_session, bob.id, movie.id, 6, "Decent"))


def test_review_comment_feed(backend, db_session, bob, review, other_review):
    received = []
    subscription = subscribe_to_review_comments(backend.realtime, review.id, received.append)

    CommentService.create_comment(db_session, bob.id, review.id, "first")
    CommentService.create_comment(db_session, bob.id, other_review.id, "elsewhere")
    CommentService.create_comment(db_session, bob.id, review.id, "second")

    assert [c.comment_text for c in received] == ["first", "second"]
    assert all(isinstance(c, CommentResponse) for c in received)
    assert received[0].review_id == review.id
    assert subscription.state == "open"


def test_rolled_back_changes_are_not_published(backend, db_session, bob, review):
    received = []
    subscribe_to_review_comments(backend.realtime, review.id, received.append)

    db_session.add(Comment(review_id=review.id, user_id=bob.id, comment_text="never mind"))
    db_session.flush()
    db_session.rollback()

    assert received == []


def test_vote_feed_sees_insert_update_delete(backend, db_session, alice, bob, review):
    comment = unwrap_response(CommentService.create_comment(db_session, bob.id, review.id, "Agreed!"))
    events = []
    subscribe_to_comment_votes(backend.realtime, comment.id, events.append)

    VoteService.vote_on_comment(db_session, alice.id, comment.id, UPVOTE)
    VoteService.vote_on_comment(db_session, alice.id, comment.id, DOWNVOTE)
    VoteService.remove_vote(db_session, alice.id, comment.id)

    assert [e.event_type for e in events] == [INSERT, UPDATE, DELETE]
    assert all(isinstance(e, ChangeEvent) and e.table == "comment_votes" for e in events)
    assert events[0].new["vote_type"] == UPVOTE
    assert events[1].new["vote_type"] == DOWNVOTE
    assert events[1].old["vote_type"] == UPVOTE
    assert events[2].old["comment_id"] == comment.id
    assert all(e.commit_timestamp is not None for e in events)


def test_unsubscribe_stops_delivery(backend, db_session, bob, review):
    received = []
    subscription = subscribe_to_review_comments(backend.realtime, review.id, received.append)

    CommentService.create_comment(db_session, bob.id, review.id, "before")
    unsubscribe(subscription)
    CommentService.create_comment(db_session, bob.id, review.id, "after")

    assert [c.comment_text for c in received] == ["before"]
    assert subscription.closed
    assert f"review:{review.id}:comments" not in backend.realtime.channels

    # a second unsubscribe is harmless
    unsubscribe(subscription)


def test_subscription_as_context_manager(backend, db_session, bob, review):
    received = []
    with subscribe_to_review_comments(backend.realtime, review.id, received.append) as subscription:
        CommentService.create_comment(db_session, bob.id, review.id, "inside")
    CommentService.create_comment(db_session, bob.id, review.id, "outside")

    assert len(received) == 1
    assert subscription.closed


def test_subscribers_share_a_channel(backend, db_session, bob, review):
    first, second = [], []
    one = subscribe_to_review_comments(backend.realtime, review.id, first.append)
    subscribe_to_review_comments(backend.realtime, review.id, second.append)

    CommentService.create_comment(db_session, bob.id, review.id, "hello")
    unsubscribe(one)
    CommentService.create_comment(db_session, bob.id, review.id, "again")

    assert len(first) == 1
    assert len(second) == 2


def test_failing_handler_does_not_break_others(backend, db_session, bob, review, caplog):
    received = []

    def broken(comment):
        raise RuntimeError("handler exploded")

    subscribe_to_review_comments(backend.realtime, review.id, broken)
    subscribe_to_review_comments(backend.realtime, review.id, received.append)

    with caplog.at_level(logging.ERROR, logger="cinesocial.realtime"):
        response = CommentService.create_comment(db_session, bob.id, review.id, "still saved")

    assert response.error is None
    assert len(received) == 1
    assert "handler exploded" in caplog.text


def test_channel_rejects_unknown_event(backend):
    with pytest.raises(ValueError):
        backend.realtime.channel("bad").on("TRUNCATE", "comments", lambda change: None)


def test_wildcard_binding_without_filter(backend, db_session, alice, movie):
    events = []
    backend.realtime.channel("all-reviews").on(ALL_EVENTS, "reviews", events.append).subscribe()

    review = unwrap_response(ReviewService.create_review(db_session, alice.id, movie.id, 7, "Hmm"))
    ReviewService.delete_review(db_session, alice.id, review.id)

    assert [e.event_type for e in events] == [INSERT, DELETE]
    assert events[1].to_dict()["old"]["id"] == review.id


class _BrokenSocket:
    """Accepts, fails every send, then reports the client gone"""

    def __init__(self):
        self.send_failed = asyncio.Event()

    async def accept(self):
        pass

    async def send_json(self, data):
        self.send_failed.set()
        raise RuntimeError("socket write failed")

    async def receive(self):
        await self.send_failed.wait()
        return {"type": "websocket.disconnect"}


def test_stream_collects_send_failures(backend, review, caplog):
    subscription = subscribe_to_review_comments(backend.realtime, review.id, lambda comment: None)

    async def run():
        queue = asyncio.Queue()
        queue.put_nowait({"comment_text": "lost"})
        await _stream(_BrokenSocket(), queue, subscription)

    with caplog.at_level(logging.WARNING, logger="cinesocial.routes.realtime"):
        asyncio.run(run())

    assert "socket write failed" in caplog.text
    assert subscription.closed
