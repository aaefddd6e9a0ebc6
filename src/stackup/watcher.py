"""Incremental reporting of CloudFormation stack events.

CloudFormation keeps an append-only event log per stack and returns it
newest-first, one page at a time. ``EventWatcher`` remembers the newest event
it has already reported (the "horizon") so each poll yields only what is new,
oldest-first.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import Any

from .exceptions import NoSuchStack
from .models import StackEvent

logger = logging.getLogger(__name__)

Horizon = tuple[Any, ...] | None


def advance(
    horizon: Horizon, events: Iterable[StackEvent]
) -> tuple[Horizon, list[StackEvent]]:
    """
    Split a newest-first event sequence at the horizon.

    Args:
        horizon: Identity of the newest event already reported, or None
        events: Events newest-first

    Returns:
        ``(new_horizon, unseen)`` where ``unseen`` is every event newer than
        ``horizon`` in oldest-first order, and ``new_horizon`` is the identity
        of the newest event (unchanged if there was nothing new).
    """
    unseen: list[StackEvent] = []
    for event in events:
        if event.identity == horizon:
            break
        unseen.append(event)
    if not unseen:
        return horizon, []
    unseen.reverse()
    return unseen[-1].identity, unseen


class EventWatcher:
    """
    Yield each event of one stack at most once.

    Example:
        watcher = EventWatcher(cfn, "my-stack")
        watcher.zero()
        ...  # start an operation
        watcher.each_new_event(lambda e: print(e.summary()))

    Attributes:
        stack_name: Stack name or id the event log is read for
        horizon: Identity of the newest event already reported
    """

    def __init__(self, client: Any, stack_name: str) -> None:
        self._client = client
        self.stack_name = stack_name
        self.horizon: Horizon = None

    def _pages(self) -> Iterator[Sequence[dict[str, Any]]]:
        kwargs: dict[str, Any] = {"StackName": self.stack_name}
        while True:
            response = self._client.describe_stack_events(**kwargs)
            yield response.get("StackEvents", [])
            next_token = response.get("NextToken")
            if not next_token:
                return
            kwargs["NextToken"] = next_token

    def _events_until_horizon(self) -> Iterator[StackEvent]:
        """Walk the log newest-first, fetching pages only until the horizon."""
        try:
            for page in self._pages():
                for data in page:
                    event = StackEvent.from_api(data)
                    yield event
                    if event.identity == self.horizon:
                        return
        except NoSuchStack:
            # No stack, no events.
            return

    def zero(self) -> None:
        """Move the horizon to the newest existing event; history is never reported."""
        try:
            response = self._client.describe_stack_events(StackName=self.stack_name)
        except NoSuchStack:
            self.horizon = None
            return
        events = response.get("StackEvents", [])
        self.horizon = StackEvent.from_api(events[0]).identity if events else None
        logger.debug("event horizon for %s set to %s", self.stack_name, self.horizon)

    def new_events(self) -> list[StackEvent]:
        """Return events newer than the horizon, oldest-first, and advance past them."""
        self.horizon, unseen = advance(self.horizon, self._events_until_horizon())
        return unseen

    def each_new_event(self, handler: Callable[[StackEvent], Any]) -> None:
        """Call ``handler`` once for each new event, oldest-first."""
        for event in self.new_events():
            handler(event)
