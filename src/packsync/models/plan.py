"""Instance probe and reconciliation plan types.

None of these are persisted. A plan is always recomputable from a modpack
definition, its records and a fresh instance probe.
"""

from dataclasses import dataclass, field

from .records import DISABLED_SUFFIX, ContentBucket, ModRecord


@dataclass(frozen=True)
class InstanceFile:
    """
    A content file found in (or destined for) an instance bucket.

    Attributes:
        bucket: Content bucket the file lives in
        filename: Enabled-form filename (no disabled suffix)
        enabled: Whether the file is in its enabled physical form
    """

    bucket: ContentBucket
    filename: str
    enabled: bool = True

    def physical_name(self, disabled_suffix: str = DISABLED_SUFFIX) -> str:
        return self.filename if self.enabled else self.filename + disabled_suffix


@dataclass
class InstanceState:
    """Per bucket, filename -> enabled flag, as found on disk."""

    files: dict[ContentBucket, dict[str, bool]] = field(
        default_factory=lambda: {bucket: {} for bucket in ContentBucket}
    )

    def lookup(self, bucket: ContentBucket, filename: str) -> bool | None:
        """Enabled flag for a file in either physical form, or None if absent."""
        return self.files.get(bucket, {}).get(filename)

    def add(self, bucket: ContentBucket, filename: str, enabled: bool = True) -> None:
        self.files.setdefault(bucket, {})[filename] = enabled

    def iter_files(self) -> list[InstanceFile]:
        return [
            InstanceFile(bucket, name, enabled)
            for bucket, entries in self.files.items()
            for name, enabled in sorted(entries.items())
        ]

    def __len__(self) -> int:
        return sum(len(entries) for entries in self.files.values())


@dataclass(frozen=True)
class MemberRef:
    """A member that must be fetched, and the form it should land in."""

    record: ModRecord
    want_enabled: bool = True

    @property
    def target(self) -> InstanceFile:
        return InstanceFile(self.record.bucket, self.record.filename, self.want_enabled)


@dataclass(frozen=True)
class ToggleItem:
    """A member present on disk in the wrong enabled/disabled form."""

    file: InstanceFile
    want_enabled: bool
    mod_id: str


@dataclass
class ReconciliationPlan:
    """
    Delta between a modpack's logical membership and an instance.

    Attributes:
        missing: Members not present in either physical form
        obsolete: Files to delete (only populated for clear-existing plans)
        toggle: Members present in the wrong form
        untracked: Files no member accounts for; informational only
        clear_existing: Whether the plan was computed for a destructive pass
    """

    missing: list[MemberRef] = field(default_factory=list)
    obsolete: list[InstanceFile] = field(default_factory=list)
    toggle: list[ToggleItem] = field(default_factory=list)
    untracked: list[InstanceFile] = field(default_factory=list)
    clear_existing: bool = False

    @property
    def is_empty(self) -> bool:
        return not (self.missing or self.obsolete or self.toggle)

    def get_summary(self) -> dict[str, int]:
        return {
            "missing": len(self.missing),
            "obsolete": len(self.obsolete),
            "toggle": len(self.toggle),
            "untracked": len(self.untracked),
        }


@dataclass
class SyncStatus:
    """Quick needs-sync check, without building a full plan for callers."""

    missing: int = 0
    extra: int = 0
    toggle: int = 0

    @property
    def needs_sync(self) -> bool:
        return bool(self.missing or self.toggle)
