"""Event bus notifying listeners about registry changes and bulk runs."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, DefaultDict

__all__ = ["Event", "EventHandler", "EventBus", "STANDARD_EVENTS"]

STANDARD_EVENTS = (
    "project_added",
    "project_removed",
    "project_skipped",
    "feature_started",
    "feature_finished",
)


@dataclass(frozen=True)
class Event:
    name: str
    payload: dict[str, Any]


EventHandler = Callable[[Event], None]


@dataclass(frozen=True)
class _Subscription:
    priority: int
    order: int
    handler: EventHandler


class EventBus:
    """Synchronous bus; handlers run by descending priority, then subscription order."""

    def __init__(self) -> None:
        self._handlers: DefaultDict[str, list[_Subscription]] = defaultdict(list)
        self._counter = 0

    def on(self, event_name: str, handler: EventHandler, priority: int = 0) -> None:
        if event_name not in STANDARD_EVENTS:
            raise ValueError(f"unknown event '{event_name}'")
        self._counter += 1
        self._handlers[event_name].append(
            _Subscription(priority=priority, order=self._counter, handler=handler)
        )

    def emit(self, event_name: str, **payload: Any) -> Event:
        event = Event(event_name, dict(payload))
        for subscription in sorted(
            self._handlers.get(event_name, ()),
            key=lambda item: (-item.priority, item.order),
        ):
            subscription.handler(event)
        return event
