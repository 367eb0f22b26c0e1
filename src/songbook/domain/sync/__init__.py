"""Sync domain - reconciliation of library scans against the index.

This domain handles:
- Identity assignment for new files
- Adding and relocating index entries
- Pruning entries for deleted files
- Blank tag cleanup
"""

from .engine import (
    ReconcileResult,
    add_entries,
    assign_identities,
    clean_tags,
    prune_stale,
    reconcile,
)

__all__ = [
    "ReconcileResult",
    "add_entries",
    "assign_identities",
    "clean_tags",
    "prune_stale",
    "reconcile",
]
