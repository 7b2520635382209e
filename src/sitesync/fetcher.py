"""HTTP transport for index documents.

Redirects are followed manually so that the hop limit comes from settings
and every hop is logged. Transport failures are reported with their own
error codes and are never confused with a broken document.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urljoin

import httpx
import structlog

from sitesync.checksums import checksum
from sitesync.config import FetcherSettings
from sitesync.errors import ErrorCode, SiteSyncError

log = structlog.get_logger()

_REDIRECT_CODES = frozenset({301, 302, 303, 307, 308})


@dataclass(frozen=True)
class FetchedIndex:
    url: str
    content: bytes
    last_modified: str | None
    checksum: str
    not_modified: bool = False


def build_http_client(settings: FetcherSettings | None = None) -> httpx.AsyncClient:
    settings = settings or FetcherSettings()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.timeout_seconds),
        follow_redirects=False,
        headers={"User-Agent": "sitesync"},
    )


class Fetcher:
    def __init__(self, client: httpx.AsyncClient, settings: FetcherSettings | None = None) -> None:
        self._client = client
        self._settings = settings or FetcherSettings()

    async def fetch(self, url: str, *, if_modified_since: str | None = None) -> FetchedIndex:
        """Download ``url`` and return its body with the Last-Modified signal.

        With ``if_modified_since`` a 304 reply yields ``not_modified=True``
        and empty content.
        """
        headers = {"If-Modified-Since": if_modified_since} if if_modified_since else {}
        current = url
        for _ in range(self._settings.max_redirects + 1):
            try:
                response = await self._client.get(current, headers=headers)
            except httpx.HTTPError as exc:
                log.warning("index_fetch_error", url=current, error=str(exc))
                raise SiteSyncError(
                    ErrorCode.INDEX_FETCH_FAILED,
                    f"Could not fetch {current}: {exc}",
                    recoverable=True,
                ) from exc

            if response.status_code in _REDIRECT_CODES:
                location = response.headers.get("location")
                if not location:
                    raise SiteSyncError(
                        ErrorCode.INDEX_FETCH_FAILED,
                        f"Redirect from {current} without a Location header",
                        recoverable=True,
                    )
                target = urljoin(current, location)
                log.debug("index_redirect", source_url=current, target_url=target)
                current = target
                continue

            if response.status_code == 304:
                return FetchedIndex(
                    url=current,
                    content=b"",
                    last_modified=response.headers.get("last-modified", if_modified_since),
                    checksum="",
                    not_modified=True,
                )
            if response.status_code == 404:
                raise SiteSyncError(ErrorCode.INDEX_NOT_FOUND, f"No index at {current}")
            if not response.is_success:
                raise SiteSyncError(
                    ErrorCode.INDEX_FETCH_FAILED,
                    f"Fetching {current} failed with HTTP {response.status_code}",
                    recoverable=True,
                )

            content = response.content
            fetched = FetchedIndex(
                url=current,
                content=content,
                last_modified=response.headers.get("last-modified"),
                checksum=checksum(content),
            )
            log.info("index_fetched", url=current, size=len(content), checksum=fetched.checksum)
            return fetched

        raise SiteSyncError(
            ErrorCode.TOO_MANY_REDIRECTS,
            f"More than {self._settings.max_redirects} redirects fetching {url}",
        )
