"""Reconcile domain - merging device user state into source catalogs.

This domain handles:
- Matching device entries to source entries (path, then name)
- Computing loss-avoiding field updates
- Applying them per category with an atomic catalog replace
"""

from .engine import ReconcileResult, compute_updates, reconcile_category

__all__ = [
    "ReconcileResult",
    "compute_updates",
    "reconcile_category",
]
