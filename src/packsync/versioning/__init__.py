"""Linear version history for modpacks."""

from .history import VersionControl, compute_changes, next_tag

__all__ = ["VersionControl", "compute_changes", "next_tag"]
