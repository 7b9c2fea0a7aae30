"""Tagged results reported by the notification pipelines."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from .notification import Notification

T = TypeVar("T")


class OutcomeStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"
    FAILED = "failed"


@dataclass
class Outcome(Generic[T]):
    """A value plus whether it was produced normally or from a safe default."""

    value: T
    status: OutcomeStatus = OutcomeStatus.OK
    error: str | None = None

    @classmethod
    def ok(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def degraded(cls, value: T, error: BaseException | str) -> "Outcome[T]":
        return cls(value=value, status=OutcomeStatus.DEGRADED, error=str(error))

    @property
    def is_degraded(self) -> bool:
        return self.status is OutcomeStatus.DEGRADED


class SkipReason(str, Enum):
    """Why the creation pipeline declined to create a notification."""

    SELF_NOTIFICATION = "self_notification"
    ACTION_DISABLED = "action_disabled"
    SPAM_BLOCKED = "spam_blocked"
    DAILY_LIMIT = "daily_limit"
    QUIET_HOURS_DEFERRED = "quiet_hours_deferred"


@dataclass
class CreationResult:
    """Result of a ``create`` call on the notification engine.

    ``notification`` is ``None`` whenever a policy rejected the event; ``reason``
    then tells which one. ``degraded`` lists the pipeline steps that fell back to
    a safe default because their store was unavailable.
    """

    notification: Notification | None = None
    reason: SkipReason | None = None
    detail: str | None = None
    deferred_payload: dict[str, Any] | None = None
    degraded: list[str] = field(default_factory=list)

    @property
    def created(self) -> bool:
        return self.notification is not None

    @property
    def status(self) -> OutcomeStatus:
        if self.degraded:
            return OutcomeStatus.DEGRADED
        return OutcomeStatus.OK


__all__ = ["CreationResult", "Outcome", "OutcomeStatus", "SkipReason"]
