"""Result types for reconciliation and import runs."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ActionType(str, Enum):
    """Kind of physical action taken against an instance."""

    FETCH = "fetch"
    TOGGLE = "toggle"
    REMOVE = "remove"
    CONFIG = "config"


class ActionStatus(str, Enum):
    """Outcome of a single action."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class ActionResult:
    """
    Result of one reconciliation action.

    Attributes:
        action: What was attempted
        status: How it went
        bucket: Content bucket (or "config" for override files)
        target: Relative path inside the instance
        mod_id: Catalog id, when the action concerns a member
        error_message: Failure detail
        duration_ms: Wall time of the action
    """

    action: ActionType
    status: ActionStatus
    bucket: str
    target: str
    mod_id: str | None = None
    error_message: str | None = None
    duration_ms: float | None = None

    @property
    def success(self) -> bool:
        return self.status == ActionStatus.SUCCEEDED


@dataclass
class ApplyResult:
    """
    Aggregate outcome of applying a reconciliation plan.

    ``success`` is False only for structural failures (the instance could
    not be used at all). Individual item failures land in ``errors`` and
    are counted in ``skipped``.
    """

    success: bool = True
    fetched: int = 0
    skipped: int = 0
    toggled: int = 0
    removed: int = 0
    configs_copied: int = 0
    configs_skipped: int = 0
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    actions: list[ActionResult] = field(default_factory=list)
    cancelled: bool = False
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def duration_seconds(self) -> float:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0.0

    def get_summary(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "fetched": self.fetched,
            "skipped": self.skipped,
            "toggled": self.toggled,
            "removed": self.removed,
            "configs_copied": self.configs_copied,
            "configs_skipped": self.configs_skipped,
            "warnings": len(self.warnings),
            "errors": len(self.errors),
            "cancelled": self.cancelled,
            "duration_seconds": round(self.duration_seconds, 3),
        }


@dataclass
class ImportResult:
    """
    Outcome of a completed import.

    Attributes:
        modpack_id: Modpack the manifest was imported into
        created: Whether the modpack was created by this import
        registered: New records added to the catalog
        reused: Entries that matched an existing record exactly
        kept_existing: Conflicts resolved in favour of the local record
        replaced: Conflicts resolved in favour of the incoming record
        added: Members newly added to the modpack
        removed: Members dropped because a mirror import did not list them
        version_id: Head snapshot after the import
        warnings: Non-fatal notes (e.g. incomplete manifest entries)
    """

    modpack_id: str
    created: bool = False
    registered: int = 0
    reused: int = 0
    kept_existing: int = 0
    replaced: int = 0
    added: int = 0
    removed: int = 0
    version_id: str | None = None
    warnings: list[str] = field(default_factory=list)

    def get_summary(self) -> str:
        return (
            f"{self.added} added, {self.removed} removed, {self.registered} new records, "
            f"{self.reused} reused, {self.kept_existing} kept, {self.replaced} replaced"
        )
