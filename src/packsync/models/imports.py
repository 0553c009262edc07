"""Import manifest, conflict and pending-token models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from .records import ContentBucket, ModRecord, check_filename, utcnow
from .results import ImportResult
from .sources import SourceRef


class ManifestEntry(BaseModel):
    """One content reference listed by an external manifest."""

    source: SourceRef
    name: str | None = None
    filename: str | None = None
    version: str = ""
    bucket: ContentBucket = ContentBucket.MOD
    enabled: bool = True
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, v: str | None) -> str | None:
        return check_filename(v) if v else v

    @property
    def key(self) -> str:
        return self.source.key


class ImportManifest(BaseModel):
    """A pack definition authored elsewhere, normalised at ingestion."""

    format: Literal["curseforge", "packsync"]
    name: str
    version: str = "1.0.0"
    target_version: str = ""
    loader: str = ""
    loader_version: str | None = None
    description: str = ""
    author: str | None = None
    overrides: str | None = None
    entries: list[ManifestEntry] = Field(default_factory=list)


class ConflictResolution(str, Enum):
    """Caller's choice for one version conflict."""

    USE_EXISTING = "use_existing"
    USE_NEW = "use_new"


class ImportConflict(BaseModel):
    """An incoming entry whose project already exists with a different file."""

    incoming: ManifestEntry
    existing: ModRecord

    @property
    def key(self) -> str:
        return self.incoming.key


class PendingImport(BaseModel):
    """
    Serializable state of an import halted on conflicts.

    Holds everything ``resolve`` needs: the records to register, the ids to
    reuse and the conflicts awaiting a decision. Nothing in the catalog or
    the target modpack has been touched while a token is pending.
    """

    token_id: str
    created_at: datetime = Field(default_factory=utcnow)
    manifest: ImportManifest
    target_modpack_id: str | None = None
    mirror: bool = False
    new_records: list[ModRecord] = Field(default_factory=list)
    reused_ids: list[str] = Field(default_factory=list)
    conflicts: list[ImportConflict] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ImportStatus(str, Enum):
    CLEAN = "clean"
    CONFLICTED = "conflicted"


@dataclass
class ImportOutcome:
    """
    Result of beginning an import.

    A clean import carries its ``result``. A conflicted one carries the
    conflicts and the ``token`` to pass back to ``resolve``.
    """

    status: ImportStatus
    result: ImportResult | None = None
    conflicts: list[ImportConflict] = field(default_factory=list)
    token: PendingImport | None = None

    @property
    def is_clean(self) -> bool:
        return self.status == ImportStatus.CLEAN
