"""Reactive layer — keep the output tree in sync under ``--watch``.

Connects filesystem changes to re-renders through one tagged event
channel and a single-flight rebuild machine.
"""

from tabby.reactive.rebuild import RebuildMachine
from tabby.reactive.watcher import ProjectWatcher, WatchEvent, classify_change

__all__ = [
    "ProjectWatcher",
    "RebuildMachine",
    "WatchEvent",
    "classify_change",
]
