"""HTTP resolver for records that carry their own download location.

It does not search any catalog: ``find_compatible_file`` always returns
None. It serves three kinds of source:

- any source with a ``download_url``;
- CurseForge files without one, through the public CDN path layout
  (``/files/<first 4 digits of file id>/<rest>/<filename>``);
- local files, read back from their recorded path and checked against the
  recorded hash.
"""

import asyncio
import hashlib
import time
from pathlib import Path
from urllib.parse import quote

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import HttpConfig
from ..models.sources import CurseForgeSource, LocalSource
from ..observability.metrics import get_global_collector
from ..utils.exceptions import ContentFetchError
from .base import AnySource, ContentResolver, RemoteFile

logger = structlog.get_logger(__name__)

CURSEFORGE_CDN = "https://edge.forgecdn.net/files"


def curseforge_cdn_url(file_id: int, filename: str) -> str:
    """CDN url for a CurseForge file, e.g. 4512045 -> /files/4512/45/<filename>."""
    digits = str(file_id)
    head, tail = digits[:4], digits[4:]
    tail = str(int(tail)) if tail else "0"
    return f"{CURSEFORGE_CDN}/{head}/{tail}/{quote(filename)}"


class DirectDownloadResolver(ContentResolver):
    """Downloads content over HTTP with retries on transient network errors."""

    def __init__(self, config: HttpConfig | None = None) -> None:
        self.config = config or HttpConfig()
        self._client: httpx.AsyncClient | None = None
        self.collector = get_global_collector()

    async def __aenter__(self) -> "DirectDownloadResolver":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """HTTP client, created on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                follow_redirects=True,
                headers={"User-Agent": self.config.user_agent},
                limits=httpx.Limits(
                    max_connections=self.config.max_connections,
                    max_keepalive_connections=self.config.max_connections,
                ),
            )
        return self._client

    def download_url(self, source: AnySource, filename: str | None) -> str | None:
        """Where a source can be downloaded from, if anywhere."""
        if isinstance(source, LocalSource):
            return None
        if source.download_url:
            return source.download_url
        if isinstance(source, CurseForgeSource) and filename:
            return curseforge_cdn_url(source.file_id, filename)
        return None

    async def fetch(self, source: AnySource, filename: str | None = None) -> bytes:
        if isinstance(source, LocalSource):
            return await self._read_local(source)

        url = self.download_url(source, filename)
        if url is None:
            raise ContentFetchError(source.key, "no download location known")

        start = time.monotonic()
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
            raise ContentFetchError(source.key, f"request failed: {e}") from e

        self.collector.record_fetch_latency(source.kind, (time.monotonic() - start) * 1000)

        if response.is_error:
            raise ContentFetchError(
                source.key,
                f"HTTP {response.status_code} from {url}",
                status_code=response.status_code,
            )
        logger.debug("Downloaded", key=source.key, url=url, bytes=len(response.content))
        return response.content

    async def _read_local(self, source: LocalSource) -> bytes:
        if not source.path:
            raise ContentFetchError(source.key, "local record has no path")
        path = Path(source.path)
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise ContentFetchError(source.key, f"cannot read {path}: {e}") from e
        if hashlib.sha256(data).hexdigest() != source.sha256:
            raise ContentFetchError(source.key, f"{path} changed since it was imported")
        return data

    async def find_compatible_file(
        self, kind: str, project_id: int | str, target_version: str, loader: str
    ) -> RemoteFile | None:
        return None
