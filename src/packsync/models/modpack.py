"""Modpack definition model."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from .records import utcnow


class RemoteSource(BaseModel):
    """Manifest URL a modpack is kept in sync with."""

    url: str
    last_checked: datetime | None = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("remote source url must be http(s)")
        return v


class ModpackDefinition(BaseModel):
    """
    A named, mutable membership set with an enabled/disabled overlay.

    ``member_ids`` keeps insertion order but never holds duplicates.
    ``disabled_ids`` is always a subset of ``member_ids``; the validator
    below repairs documents that were edited by hand.
    """

    model_config = {"extra": "ignore"}

    id: str
    name: str = Field(min_length=1)
    version: str = "1.0.0"
    member_ids: list[str] = Field(default_factory=list)
    disabled_ids: list[str] = Field(default_factory=list)
    target_version: str = ""
    loader: str = ""
    loader_version: str | None = None
    description: str = ""
    remote_source: RemoteSource | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def normalize_membership(self) -> "ModpackDefinition":
        self.member_ids = list(dict.fromkeys(self.member_ids))
        members = set(self.member_ids)
        self.disabled_ids = [m for m in dict.fromkeys(self.disabled_ids) if m in members]
        return self

    def is_member(self, mod_id: str) -> bool:
        return mod_id in self.member_ids

    def is_enabled(self, mod_id: str) -> bool:
        return mod_id in self.member_ids and mod_id not in self.disabled_ids

    def touch(self) -> None:
        self.updated_at = utcnow()
