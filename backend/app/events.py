"""Ordered progress-event plumbing shared by the planner and the group solver.

Core components receive an :class:`EventEmitter` and call it synchronously; the
emitter snapshots the payload into JSON-safe data and hands the event to a sink.
The sink is either a plain list (``EventRecorder``) or an :class:`EventChannel`
that an HTTP stream drains concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any, Generic, TypeVar

from pydantic_core import to_jsonable_python

from .contracts import GroupEvent, PlanningEvent

logger = logging.getLogger(__name__)

E = TypeVar("E", PlanningEvent, GroupEvent)

_CLOSED = object()


class EventEmitter(Generic[E]):
    def __init__(self, sink: Callable[[E], None], event_cls: type[E]) -> None:
        self._sink = sink
        self._event_cls = event_cls

    def __call__(self, type_: str, message: str, data: Any = None) -> E:
        # Matrices and plans keep mutating after an event is emitted, so the
        # payload is frozen into plain JSON data at emission time.
        payload = to_jsonable_python(data) if data is not None else None
        event = self._event_cls(type=type_, message=message, data=payload)
        self._sink(event)
        return event


class EventRecorder(Generic[E]):
    """Collects events in memory; used by the non-streaming endpoints and tests."""

    def __init__(self, event_cls: type[E]) -> None:
        self.events: list[E] = []
        self.emit: EventEmitter[E] = EventEmitter(self.events.append, event_cls)

    @property
    def types(self) -> list[str]:
        return [event.type for event in self.events]


class EventChannel(Generic[E]):
    """Unbounded FIFO channel between one producer task and one consumer.

    ``emit`` never blocks the producer and never reorders events.
    """

    def __init__(self, event_cls: type[E]) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False
        self.emit: EventEmitter[E] = EventEmitter(self._put, event_cls)

    def _put(self, event: E) -> None:
        if self._closed:
            logger.debug("Dropping event emitted after channel close: %s", event.type)
            return
        self._queue.put_nowait(event)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    async def __aiter__(self) -> AsyncIterator[E]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item


def planning_recorder() -> EventRecorder[PlanningEvent]:
    return EventRecorder(PlanningEvent)


def group_recorder() -> EventRecorder[GroupEvent]:
    return EventRecorder(GroupEvent)


PlanningEmitter = EventEmitter[PlanningEvent]
GroupEmitter = EventEmitter[GroupEvent]

__all__ = [
    "EventChannel",
    "EventEmitter",
    "EventRecorder",
    "GroupEmitter",
    "PlanningEmitter",
    "group_recorder",
    "planning_recorder",
]
