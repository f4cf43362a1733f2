"""Build event model.

Defines event types for the render engine and the watch rebuild loop.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal


# ---------------------------------------------------------------------------
# Render events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRendered:
    """A target file was written.

    Attributes:
        source: Source file path.
        target: Output file path.
        size_bytes: Size of the written content in bytes.
        duration_ms: Time spent producing and writing the content.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    source: str
    target: str
    size_bytes: int
    duration_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class FileSkipped:
    """A file was considered but nothing was written.

    Attributes:
        source: Source file path.
        target: Output file path (empty when no renderer matched).
        reason: Why nothing was written.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    source: str
    target: str
    reason: Literal["up_to_date", "no_content", "no_renderer"]
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Input events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DataLoaded:
    """The data directory (or the dependency set) was scanned.

    Attributes:
        source: What was scanned: ``"data"`` or ``"dependency"``.
        mtime: Aggregate modification time found (epoch ms).
        base_mtime: The context's base mtime after the scan.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    source: Literal["data", "dependency"]
    mtime: float
    base_mtime: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Watch events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RebuildEvent:
    """A watch event was handled (or dropped) by the rebuild machine.

    Attributes:
        kind: The watch event kind.
        trigger_path: File whose change triggered the event.
        outcome: ``done``, ``failed``, or ``dropped`` (machine was busy).
        duration_ms: Time the triggered work took (0 for dropped events).
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    kind: str
    trigger_path: str
    outcome: Literal["done", "failed", "dropped"]
    duration_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type BuildStackEvent = FileRendered | FileSkipped | DataLoaded | RebuildEvent


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
