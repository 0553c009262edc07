"""Source references with Pydantic v2 discriminated unions.

A source reference says where a piece of content came from. It is resolved
once, when a manifest or file is ingested, and from then on code only deals
with the typed variants below.
"""

import re
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

_BASE62 = re.compile(r"^[A-Za-z0-9]+$")


class _SourceBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def identity(self) -> tuple[str, str] | None:
        """
        (kind, project_id) pair shared by every file of one upstream project.

        None for sources that have no project concept.
        """
        project_id = getattr(self, "project_id", None)
        if project_id is None:
            return None
        return (self.kind, str(project_id))  # type: ignore[attr-defined]


class CurseForgeSource(_SourceBase):
    """A file on CurseForge, addressed by numeric project and file ids."""

    kind: Literal["curseforge"] = "curseforge"
    project_id: int = Field(gt=0)
    file_id: int = Field(gt=0)
    download_url: str | None = None

    @property
    def key(self) -> str:
        return f"cf-{self.project_id}-{self.file_id}"


class ModrinthSource(_SourceBase):
    """A version on Modrinth. Both ids are base62 strings, so the key is unambiguous."""

    kind: Literal["modrinth"] = "modrinth"
    project_id: str = Field(min_length=1)
    version_id: str = Field(min_length=1)
    download_url: str | None = None

    @field_validator("project_id", "version_id")
    @classmethod
    def validate_base62(cls, v: str) -> str:
        if not _BASE62.match(v):
            raise ValueError(f"Modrinth ids are alphanumeric, got {v!r}")
        return v

    @property
    def file_id(self) -> str:
        return self.version_id

    @property
    def key(self) -> str:
        return f"mr-{self.project_id}-{self.version_id}"


class LocalSource(_SourceBase):
    """A file imported from disk, addressed by its content hash."""

    kind: Literal["local"] = "local"
    sha256: str
    path: str | None = None

    @field_validator("sha256")
    @classmethod
    def validate_sha256(cls, v: str) -> str:
        v = v.strip().lower()
        if len(v) != 64 or any(c not in "0123456789abcdef" for c in v):
            raise ValueError("sha256 must be 64 hex characters")
        return v

    @property
    def project_id(self) -> None:
        return None

    @property
    def file_id(self) -> str:
        return self.sha256

    @property
    def key(self) -> str:
        return f"local-{self.sha256[:16]}"


SourceRef = Annotated[
    CurseForgeSource | ModrinthSource | LocalSource,
    Field(discriminator="kind"),
]

_source_adapter: TypeAdapter[CurseForgeSource | ModrinthSource | LocalSource] = TypeAdapter(
    SourceRef
)


def parse_source(data: dict) -> CurseForgeSource | ModrinthSource | LocalSource:
    """Validate a raw mapping into the matching source variant."""
    return _source_adapter.validate_python(data)
