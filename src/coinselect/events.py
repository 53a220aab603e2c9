"""
Selection event contract.

A narrow notification channel, not a general bus: the coin manager publishes
a handful of event types and whatever notification fabric the application
runs subscribes to them. Delivery is synchronous, at most once per publish
and best-effort. A failing subscriber is logged and skipped, it never breaks
the operation that emitted the event.

Events carry only counts, amounts and coin identities already visible to the
caller. Labels, addresses and key material never appear here.
"""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Annotated, Literal, Union

from loguru import logger
from pydantic import BaseModel, Field

from coinselect.constants import DEFAULT_EVENT_HISTORY_SIZE
from coinselect.models import CoinState, OutPoint


class _Event(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {"frozen": True}


class Selected(_Event):
    kind: Literal["selected"] = "selected"
    strategy: str
    input_count: int = Field(..., ge=1)
    fee: int = Field(..., ge=0)
    change: int = Field(..., ge=0)


class SelectionFailed(_Event):
    kind: Literal["selection_failed"] = "selection_failed"
    strategy: str
    available: int = Field(..., ge=0)
    required: int = Field(..., ge=0)
    reason: str = "insufficient_funds"


class Frozen(_Event):
    kind: Literal["frozen"] = "frozen"
    coin_id: OutPoint


class Unfrozen(_Event):
    kind: Literal["unfrozen"] = "unfrozen"
    coin_id: OutPoint


class StatusChanged(_Event):
    kind: Literal["status_changed"] = "status_changed"
    coin_id: OutPoint
    new_state: CoinState | Literal["added", "removed"]


Event = Annotated[
    Union[Selected, SelectionFailed, Frozen, Unfrozen, StatusChanged],
    Field(discriminator="kind"),
]

Subscriber = Callable[[Event], None]


class EventChannel:
    """
    Fire-and-forget publisher with per-kind subscriptions.

    Keeps a bounded history of published events, which is what tests and
    diagnostics usually want instead of wiring a subscriber.
    """

    def __init__(self, history_size: int = DEFAULT_EVENT_HISTORY_SIZE):
        self._lock = threading.Lock()
        self._subscribers: list[tuple[Subscriber, frozenset[str] | None]] = []
        self._history: deque[Event] = deque(maxlen=history_size)

    def subscribe(
        self, callback: Subscriber, kinds: Iterable[str] | None = None
    ) -> Callable[[], None]:
        """
        Register a callback, optionally only for some event kinds.

        Returns a function that removes the subscription.
        """
        entry = (callback, frozenset(kinds) if kinds is not None else None)
        with self._lock:
            self._subscribers.append(entry)

        def unsubscribe() -> None:
            with self._lock:
                if entry in self._subscribers:
                    self._subscribers.remove(entry)

        return unsubscribe

    def publish(self, event: Event) -> None:
        with self._lock:
            self._history.append(event)
            subscribers = list(self._subscribers)

        for callback, kinds in subscribers:
            if kinds is not None and event.kind not in kinds:
                continue
            try:
                callback(event)
            except Exception:
                logger.exception(f"Event subscriber failed on {event.kind} event")

    def publish_all(self, events: Iterable[Event]) -> None:
        for event in events:
            self.publish(event)

    @property
    def history(self) -> list[Event]:
        with self._lock:
            return list(self._history)

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)
