"""Event log — bounded store of recent build events.

Keeps the newest events in a ring buffer; older ones fall off the end.
Totals that must survive eviction live in :class:`BuildCollector`.

Every ``record_*`` call happens on the event-loop thread (template loads
made from Jinja's worker thread are handed back to the loop), so the log
takes no lock.

"""

from collections import deque

from tabby.observability.events import BuildStackEvent


class EventLog:
    """Ring buffer of build events with type/time filtering.

    Args:
        max_events: Maximum number of events to retain.

    """

    __slots__ = ("_events",)

    def __init__(self, max_events: int = 10_000) -> None:
        self._events: deque[BuildStackEvent] = deque(maxlen=max_events)

    def append(self, event: BuildStackEvent) -> None:
        self._events.append(event)

    def query(
        self,
        *,
        event_type: type | None = None,
        since_ns: int = 0,
        limit: int = 100,
    ) -> list[BuildStackEvent]:
        """Return matching events, most recent first.

        Args:
            event_type: Only return events of this type.
            since_ns: Only return events recorded at or after this timestamp.
            limit: Maximum number of events to return.

        """
        results: list[BuildStackEvent] = []
        for event in reversed(self._events):
            if len(results) >= limit:
                break
            if event_type is not None and not isinstance(event, event_type):
                continue
            if event.timestamp_ns < since_ns:
                continue
            results.append(event)
        return results

    def __len__(self) -> int:
        return len(self._events)
