"""Build collector — records render-engine events into an EventLog.

The RenderContext owns one collector; the render path and the rebuild
machine call its ``record_*`` methods.  Per-type totals are kept apart
from the bounded log, so counts stay exact after old events are evicted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from tabby.observability.events import (
    DataLoaded,
    FileRendered,
    FileSkipped,
    RebuildEvent,
    now_ns,
)
from tabby.observability.log import EventLog

if TYPE_CHECKING:
    from tabby.observability.events import BuildStackEvent


class BuildCollector:
    """Explicit recording API on top of an :class:`EventLog`.

    Args:
        log: The EventLog to store events in.

    """

    __slots__ = ("_log", "_totals")

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()
        self._totals: dict[type, int] = {}

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    def _record(self, event: BuildStackEvent) -> None:
        self._log.append(event)
        self._totals[type(event)] = self._totals.get(type(event), 0) + 1

    # ----- Render events -----

    def record_rendered(
        self,
        source: str,
        target: str,
        *,
        size_bytes: int = 0,
        duration_ms: float = 0.0,
    ) -> None:
        """Record a written target file."""
        self._record(
            FileRendered(
                source=source,
                target=target,
                size_bytes=size_bytes,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    def record_skipped(
        self,
        source: str,
        target: str = "",
        *,
        reason: Literal["up_to_date", "no_content", "no_renderer"],
    ) -> None:
        """Record a file that was considered but not written."""
        self._record(
            FileSkipped(source=source, target=target, reason=reason, timestamp_ns=now_ns())
        )

    # ----- Input events -----

    def record_data_loaded(
        self,
        source: Literal["data", "dependency"],
        *,
        mtime: float,
        base_mtime: float,
    ) -> None:
        """Record a data or dependency scan."""
        self._record(
            DataLoaded(source=source, mtime=mtime, base_mtime=base_mtime, timestamp_ns=now_ns())
        )

    # ----- Watch events -----

    def record_rebuild(
        self,
        kind: str,
        trigger_path: str,
        *,
        outcome: Literal["done", "failed", "dropped"],
        duration_ms: float = 0.0,
    ) -> None:
        """Record how the rebuild machine handled a watch event."""
        self._record(
            RebuildEvent(
                kind=kind,
                trigger_path=trigger_path,
                outcome=outcome,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    # ----- Summaries -----

    def count(self, event_type: type) -> int:
        """Return how many events of *event_type* were ever recorded."""
        return self._totals.get(event_type, 0)

    def slowest(self, n: int = 3, *, since_ns: int = 0) -> list[FileRendered]:
        """Return up to *n* retained renders since *since_ns*, slowest first."""
        rendered = [
            event
            for event in self._log.query(
                event_type=FileRendered, since_ns=since_ns, limit=len(self._log)
            )
            if isinstance(event, FileRendered)
        ]
        rendered.sort(key=lambda event: event.duration_ms, reverse=True)
        return rendered[:n]
