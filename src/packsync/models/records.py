"""Catalog record model."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .sources import SourceRef, parse_source


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentBucket(str, Enum):
    """Which instance folder a record's file lives in."""

    MOD = "mod"
    RESOURCEPACK = "resourcepack"
    SHADER = "shader"

    @property
    def folder(self) -> str:
        return _BUCKET_FOLDERS[self]


_BUCKET_FOLDERS = {
    ContentBucket.MOD: "mods",
    ContentBucket.RESOURCEPACK: "resourcepacks",
    ContentBucket.SHADER: "shaderpacks",
}

# Suffix that marks a file as present but turned off in an instance
DISABLED_SUFFIX = ".disabled"


def check_filename(filename: str) -> str:
    """
    Reject names an instance probe could not map back to a record.

    Path separators, hidden names and names already in the disabled form
    would be written to disk but never recognised on the next probe.
    """
    if "/" in filename or "\\" in filename:
        raise ValueError(f"filename must not contain path separators: {filename!r}")
    if filename.startswith("."):
        raise ValueError(f"filename must not be hidden: {filename!r}")
    if filename.endswith(DISABLED_SUFFIX):
        raise ValueError(f"filename must be the enabled form, not {filename!r}")
    return filename


class ModRecord(BaseModel):
    """
    One piece of content in the catalog.

    Records are immutable. The id is always the source key, so two records
    describing the same upstream file (or the same local bytes) share an id
    and the catalog keeps only the first one it saw.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    source: SourceRef
    name: str = Field(min_length=1)
    version: str = ""
    loader: str = ""
    target_version: str = ""
    bucket: ContentBucket = ContentBucket.MOD
    filename: str = Field(min_length=1)
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="before")
    @classmethod
    def default_id_from_source(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("id"):
            source = data.get("source")
            key = getattr(source, "key", None)
            if key is None and isinstance(source, dict):
                key = parse_source(source).key
            if key:
                data = {**data, "id": key}
        return data

    @model_validator(mode="after")
    def check_id_matches_source(self) -> "ModRecord":
        if self.id != self.source.key:
            raise ValueError(f"record id {self.id!r} does not match source key {self.source.key!r}")
        check_filename(self.filename)
        return self

    @property
    def identity(self) -> tuple[str, str] | None:
        """Upstream project identity used by the supersede rule."""
        return self.source.identity
