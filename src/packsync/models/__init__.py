"""Data models for packsync."""

from .imports import (
    ConflictResolution,
    ImportConflict,
    ImportManifest,
    ImportOutcome,
    ImportStatus,
    ManifestEntry,
    PendingImport,
)
from .modpack import ModpackDefinition, RemoteSource
from .plan import (
    DISABLED_SUFFIX,
    InstanceFile,
    InstanceState,
    MemberRef,
    ReconciliationPlan,
    SyncStatus,
    ToggleItem,
)
from .records import ContentBucket, ModRecord
from .results import ActionResult, ActionStatus, ActionType, ApplyResult, ImportResult
from .sources import CurseForgeSource, LocalSource, ModrinthSource, SourceRef, parse_source
from .versions import Change, ChangeKind, RollbackCheck, VersionHistory, VersionSnapshot

__all__ = [
    # Sources
    "CurseForgeSource",
    "ModrinthSource",
    "LocalSource",
    "SourceRef",
    "parse_source",
    # Library
    "ContentBucket",
    "ModRecord",
    "ModpackDefinition",
    "RemoteSource",
    # Versions
    "Change",
    "ChangeKind",
    "VersionSnapshot",
    "VersionHistory",
    "RollbackCheck",
    # Reconciliation
    "DISABLED_SUFFIX",
    "InstanceFile",
    "InstanceState",
    "MemberRef",
    "ToggleItem",
    "ReconciliationPlan",
    "SyncStatus",
    # Results
    "ActionType",
    "ActionStatus",
    "ActionResult",
    "ApplyResult",
    "ImportResult",
    # Imports
    "ManifestEntry",
    "ImportManifest",
    "ImportConflict",
    "ConflictResolution",
    "PendingImport",
    "ImportStatus",
    "ImportOutcome",
]
