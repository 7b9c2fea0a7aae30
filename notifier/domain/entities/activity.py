"""Entities read from the media interaction and comment history."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class InteractionActivity:
    """A like or favorite left by another user on owned media."""

    interaction_id: str
    interaction_type: str
    media_id: str
    media_title: str
    actor_email: str
    actor_name: str | None
    created_at: datetime | None


@dataclass
class CommentActivity:
    """A comment left by another user on owned media."""

    comment_id: str
    comment_text: str
    media_id: str
    media_title: str
    actor_email: str
    actor_name: str | None
    created_at: datetime | None


__all__ = ["CommentActivity", "InteractionActivity"]
