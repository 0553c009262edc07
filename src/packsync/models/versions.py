"""Version history models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from .records import utcnow


class ChangeKind(str, Enum):
    """Kind of membership change between two snapshots."""

    ADD = "add"
    REMOVE = "remove"
    ENABLE = "enable"
    DISABLE = "disable"


class Change(BaseModel):
    """One derived membership change. Never edited by hand."""

    kind: ChangeKind
    mod_id: str
    mod_name: str | None = None

    def __str__(self) -> str:
        label = self.mod_name or self.mod_id
        return f"{self.kind.value} {label}"


class VersionSnapshot(BaseModel):
    """Full copy of a modpack's membership at one point in its history."""

    id: str
    parent_id: str | None = None
    tag: str
    message: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    member_ids: list[str] = Field(default_factory=list)
    disabled_ids: list[str] = Field(default_factory=list)
    loader: str = ""
    target_version: str = ""
    changes: list[Change] = Field(default_factory=list)


class VersionHistory(BaseModel):
    """Append-only chain of snapshots for one modpack."""

    modpack_id: str
    head_id: str | None = None
    versions: list[VersionSnapshot] = Field(default_factory=list)

    def find(self, version_id: str) -> VersionSnapshot | None:
        for snapshot in self.versions:
            if snapshot.id == version_id:
                return snapshot
        return None

    @property
    def head(self) -> VersionSnapshot | None:
        if self.head_id is None:
            return None
        return self.find(self.head_id)


@dataclass
class RollbackCheck:
    """
    Which members of a snapshot can still be restored.

    Attributes:
        version_id: Snapshot being checked
        available: Member ids that still exist in the catalog
        missing: Member ids no longer in the catalog
    """

    version_id: str
    available: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.missing
