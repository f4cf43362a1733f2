"""Build observability — a bounded event log of render-engine activity.

Records every written file, every skip (with its reason), every data or
dependency scan, and every watch-triggered rebuild.

Quick Start:
    >>> from tabby.observability import BuildCollector, FileRendered
    >>> collector = BuildCollector()
    >>> collector.record_rendered("/src/a.j2", "/out/a.html", size_bytes=12)
    >>> collector.count(FileRendered)
    1

"""

from tabby.observability.collector import BuildCollector
from tabby.observability.events import (
    BuildStackEvent,
    DataLoaded,
    FileRendered,
    FileSkipped,
    RebuildEvent,
    now_ns,
)
from tabby.observability.log import EventLog

__all__ = [
    "BuildCollector",
    "BuildStackEvent",
    "DataLoaded",
    "EventLog",
    "FileRendered",
    "FileSkipped",
    "RebuildEvent",
    "now_ns",
]
