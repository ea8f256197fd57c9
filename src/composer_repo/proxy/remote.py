"""Upstream sources of per-package documents."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import httpx
import structlog

from composer_repo.errors import ComposerRepoError, ErrorCode

if TYPE_CHECKING:
    from composer_repo.name import PackageName

log = structlog.get_logger()


class Remote(Protocol):
    async def get(self) -> bytes | None:
        """Upstream content, or ``None`` when the upstream has none."""
        ...


class EmptyRemote:
    async def get(self) -> bytes | None:
        return None


def build_http_client(timeout_seconds: float = 30.0) -> httpx.AsyncClient:
    """Shared client for upstream requests."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_seconds),
        follow_redirects=True,
        headers={"Accept": "application/json"},
    )


class HttpRemote:
    """Per-package document of an upstream Composer repository (``/p2/<name>.json``)."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, name: PackageName) -> None:
        self._client = client
        self._url = f"{base_url.rstrip('/')}/p2/{name.vendor}/{name.package}.json"

    async def get(self) -> bytes | None:
        try:
            response = await self._client.get(self._url)
        except httpx.HTTPError as exc:
            raise ComposerRepoError(
                ErrorCode.UPSTREAM_FETCH_FAILED,
                f"Upstream request failed for {self._url}: {exc}",
                recoverable=True,
            ) from exc
        if not response.is_success:
            log.info("upstream_no_content", url=self._url, status=response.status_code)
            return None
        return response.content


class RemoteWithErrorHandling:
    """Turns any failure of the wrapped remote into "no content"."""

    def __init__(self, origin: Remote) -> None:
        self._origin = origin

    async def get(self) -> bytes | None:
        try:
            return await self._origin.get()
        except Exception:
            log.warning("upstream_fetch_error", exc_info=True)
            return None
