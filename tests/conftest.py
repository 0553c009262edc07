"""Pytest configuration and shared fixtures.

Fixtures are organized by category:
- Store fixtures: in-memory document store and the stores built on it
- Record fixtures: factories for catalog records
- Resolver fixtures: a scriptable content resolver
- Instance fixtures: temporary instance directories
"""

import hashlib
from pathlib import Path

import pytest

from packsync.library import CatalogStore, ModpackStore
from packsync.models import (
    ContentBucket,
    CurseForgeSource,
    LocalSource,
    ModpackDefinition,
    ModrinthSource,
    ModRecord,
)
from packsync.observability.metrics import reset_global_collector
from packsync.persistence import MemoryDocumentStore
from packsync.resolvers.base import AnySource, ContentResolver, RemoteFile
from packsync.utils.exceptions import ContentFetchError
from packsync.versioning import VersionControl

# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def fresh_metrics():
    """Every test starts with an empty process-wide metrics collector."""
    reset_global_collector()
    yield
    reset_global_collector()


@pytest.fixture
def store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def catalog(store: MemoryDocumentStore) -> CatalogStore:
    return CatalogStore(store)


@pytest.fixture
def modpacks(store: MemoryDocumentStore, catalog: CatalogStore) -> ModpackStore:
    return ModpackStore(store, catalog)


@pytest.fixture
def versions(
    store: MemoryDocumentStore, modpacks: ModpackStore, catalog: CatalogStore
) -> VersionControl:
    return VersionControl(store, modpacks, catalog)


@pytest.fixture
def pack(modpacks: ModpackStore) -> ModpackDefinition:
    """An empty Forge 1.20.1 modpack."""
    return modpacks.create("Test Pack", target_version="1.20.1", loader="forge")


# =============================================================================
# Record Fixtures
# =============================================================================


def cf_record(
    project_id: int,
    file_id: int,
    name: str | None = None,
    filename: str | None = None,
    bucket: ContentBucket = ContentBucket.MOD,
    version: str = "1.0",
) -> ModRecord:
    """Build a CurseForge record with predictable name and filename."""
    return ModRecord(
        source=CurseForgeSource(project_id=project_id, file_id=file_id),
        name=name or f"Mod {project_id}",
        filename=filename or f"mod{project_id}-{file_id}.jar",
        version=version,
        bucket=bucket,
    )


def mr_record(project_id: str, version_id: str, name: str | None = None) -> ModRecord:
    return ModRecord(
        source=ModrinthSource(project_id=project_id, version_id=version_id),
        name=name or project_id.title(),
        filename=f"{project_id}-{version_id}.jar",
    )


def local_record(data: bytes, filename: str, path: Path | None = None) -> ModRecord:
    return ModRecord(
        source=LocalSource(
            sha256=hashlib.sha256(data).hexdigest(), path=str(path) if path else None
        ),
        name=Path(filename).stem,
        filename=filename,
    )


@pytest.fixture
def make_cf_record():
    return cf_record


@pytest.fixture
def make_mr_record():
    return mr_record


@pytest.fixture
def make_local_record():
    return local_record


# =============================================================================
# Resolver Fixtures
# =============================================================================


class FakeResolver(ContentResolver):
    """
    Content resolver backed by dictionaries.

    Every fetch returns ``payload-<key>`` unless the key is listed in
    ``failing``. ``files`` feeds ``lookup_file`` and ``latest`` feeds
    ``find_compatible_file`` (keyed by project id as a string).
    """

    def __init__(self) -> None:
        self.failing: set[str] = set()
        self.files: dict[str, RemoteFile] = {}
        self.latest: dict[str, RemoteFile] = {}
        self.fetched: list[str] = []
        self.broken_lookups: set[str] = set()

    async def fetch(self, source: AnySource, filename: str | None = None) -> bytes:
        self.fetched.append(source.key)
        if source.key in self.failing:
            raise ContentFetchError(source.key, "HTTP 404", status_code=404)
        return f"payload-{source.key}".encode()

    async def lookup_file(self, source: AnySource) -> RemoteFile | None:
        return self.files.get(source.key)

    async def find_compatible_file(
        self, kind: str, project_id: int | str, target_version: str, loader: str
    ) -> RemoteFile | None:
        if str(project_id) in self.broken_lookups:
            raise ContentFetchError(f"{kind}-{project_id}", "lookup failed")
        return self.latest.get(str(project_id))


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver()


# =============================================================================
# Instance Fixtures
# =============================================================================


@pytest.fixture
def instance_dir(tmp_path: Path) -> Path:
    """An empty instance directory with a mods folder."""
    path = tmp_path / "instance"
    (path / "mods").mkdir(parents=True)
    return path
