"""Data layer — out-of-band inputs that affect every rendered file.

Loads the data directory (with an optional cache file) and scans
dependency paths for their newest modification time.
"""

from tabby.data.loader import MTIME_KEY, load_data, read_cache, write_cache
from tabby.data.mtime import get_mtime

__all__ = [
    "MTIME_KEY",
    "get_mtime",
    "load_data",
    "read_cache",
    "write_cache",
]
