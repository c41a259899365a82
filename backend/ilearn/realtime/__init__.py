"""Live snapshots of documents and collections.

Importing this package registers the session listeners that feed the hub.
"""
from .hub import ChangeHub, hub, paths_overlap
from .snapshot import UnknownPathError, parse_path, read_snapshot

__all__ = [
    "ChangeHub",
    "hub",
    "paths_overlap",
    "UnknownPathError",
    "parse_path",
    "read_snapshot",
]
