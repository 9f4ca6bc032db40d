"""avapush event types.

An Event is one blank-line-delimited record of the push stream.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass
class Event(Generic[T]):
    """A single event delivered by a subscription.

    ``payload`` is only set when ``tag`` is the recognized tag of the
    stream kind; other tags are delivered with ``payload=None``.
    """

    tag: str
    payload: T | None = None
    id: str = ""
    retry_hint: int | None = None
    """The record's ``retry`` field in milliseconds, if present."""


class EventType:
    """Event tags recognized by the built-in stream kinds."""

    ORDER_DEPTH = "ORDER_DEPTH"
    ORDER = "ORDER"
