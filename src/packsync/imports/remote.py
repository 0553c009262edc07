"""Pull-based sync of a modpack with a manifest published at a URL.

A modpack whose ``remote_source`` is set can be checked against the
published manifest (what would change) and pulled from it (a mirror import:
members the manifest no longer lists are dropped).
"""

from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import HttpConfig
from ..library.modpacks import ModpackStore
from ..models import ImportManifest, ImportOutcome
from ..utils.exceptions import ManifestError, RemoteSourceError
from .coordinator import ImportCoordinator
from .manifest import parse_manifest

logger = structlog.get_logger(__name__)


class RemoteManifestClient:
    """Fetches manifest documents over HTTP."""

    def __init__(self, config: HttpConfig | None = None) -> None:
        self.config = config or HttpConfig()
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "RemoteManifestClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                follow_redirects=True,
                headers={"User-Agent": self.config.user_agent, "Accept": "application/json"},
            )
        return self._client

    async def fetch_json(self, url: str) -> dict[str, Any]:
        """
        GET a JSON document.

        Raises:
            RemoteSourceError: On network failure, an error status or a body
                that is not a JSON object
        """
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type((httpx.NetworkError, httpx.TimeoutException)),
                stop=stop_after_attempt(self.config.retry_attempts),
                wait=wait_exponential(multiplier=1, min=2, max=10),
                reraise=True,
            ):
                with attempt:
                    response = await self.client.get(url)
        except httpx.HTTPError as e:
            raise RemoteSourceError(url, f"request failed: {e}") from e

        if response.is_error:
            raise RemoteSourceError(url, f"HTTP {response.status_code}")
        try:
            body = response.json()
        except ValueError as e:
            raise RemoteSourceError(url, "response is not JSON") from e
        if not isinstance(body, dict):
            raise RemoteSourceError(url, "response is not a JSON object")
        return body

    async def fetch_manifest(self, url: str) -> ImportManifest:
        """
        Fetch and parse a manifest.

        Raises:
            RemoteSourceError: If the document cannot be fetched or parsed
        """
        body = await self.fetch_json(url)
        try:
            return parse_manifest(body)
        except ManifestError as e:
            raise RemoteSourceError(url, str(e)) from e


@dataclass
class RemoteCheck:
    """
    Difference between a modpack and its published manifest.

    Attributes:
        modpack_id: Checked modpack
        url: Manifest location
        remote_version: Version the manifest declares
        local_version: Current tag of the modpack
        added: Source keys listed remotely but not a member locally
        removed: Member ids no longer listed remotely
    """

    modpack_id: str
    url: str
    remote_version: str
    local_version: str
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed) or self.remote_version != self.local_version


class RemoteSync:
    """Check and pull modpacks from their remote manifests."""

    def __init__(
        self,
        modpacks: ModpackStore,
        coordinator: ImportCoordinator,
        client: RemoteManifestClient | None = None,
    ) -> None:
        self.modpacks = modpacks
        self.coordinator = coordinator
        self.client = client or RemoteManifestClient()

    def _url(self, modpack_id: str) -> str | None:
        definition = self.modpacks.get(modpack_id)
        if definition is None or definition.remote_source is None:
            return None
        return definition.remote_source.url

    async def check(self, modpack_id: str) -> RemoteCheck | None:
        """
        Compare a modpack with its remote manifest without changing members.

        Returns:
            RemoteCheck, or None if the modpack is unknown or has no remote

        Raises:
            RemoteSourceError: If the manifest cannot be fetched
        """
        url = self._url(modpack_id)
        if url is None:
            return None
        manifest = await self.client.fetch_manifest(url)
        definition = self.modpacks.get(modpack_id)
        if definition is None:
            return None

        remote_keys = [entry.key for entry in manifest.entries]
        remote_set = set(remote_keys)
        members = set(definition.member_ids)
        check = RemoteCheck(
            modpack_id=modpack_id,
            url=url,
            remote_version=manifest.version,
            local_version=definition.version,
            added=[key for key in remote_keys if key not in members],
            removed=[mod_id for mod_id in definition.member_ids if mod_id not in remote_set],
        )
        self.modpacks.mark_checked(modpack_id)
        logger.info(
            "Remote checked",
            modpack_id=modpack_id,
            remote_version=check.remote_version,
            added=len(check.added),
            removed=len(check.removed),
        )
        return check

    async def pull(self, modpack_id: str) -> ImportOutcome | None:
        """
        Mirror the remote manifest into the modpack.

        Conflicts are returned for resolution like any other import.

        Raises:
            RemoteSourceError: If the manifest cannot be fetched
        """
        url = self._url(modpack_id)
        if url is None:
            return None
        manifest = await self.client.fetch_manifest(url)
        outcome = await self.coordinator.begin(manifest, target_modpack_id=modpack_id, mirror=True)
        self.modpacks.mark_checked(modpack_id)
        return outcome
