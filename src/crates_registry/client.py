"""Async crates.io API client."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Final

import httpx
import msgspec

from crates_registry.models import (
    CrateResponse,
    CrateVersion,
    ReverseDependenciesPage,
    VersionsPage,
)
from obs.otel import SCOPE_REGISTRY, get_tracer, record_http_request

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_URL: Final = "https://crates.io"
DEFAULT_USER_AGENT: Final = "cargo2hf (https://github.com/cargo2hf/cargo2hf)"
VERSIONS_PAGE_SIZE: Final = 100


class RegistryError(RuntimeError):
    """A crates.io request failed or returned an unusable payload."""

    def __init__(self, crate: str, reason: str, *, status_code: int | None = None) -> None:
        self.crate = crate
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"crates.io lookup for {crate!r} failed: {reason}")


class CratesIoClient:
    """Thin async wrapper around the crates.io read API.

    One client is shared by every network extractor of a run. Requests are
    spaced at least ``min_interval_s`` apart (crawler policy) and responses
    are cached per request path, so concurrent callers asking for the same
    crate share a single request.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        min_interval_s: float = 1.0,
    ) -> None:
        self._http = http
        self._min_interval_s = min_interval_s
        self._throttle = asyncio.Lock()
        self._last_request: float | None = None
        self._cache: dict[str, asyncio.Task[object]] = {}
        self._crate_decoder = msgspec.json.Decoder(CrateResponse)
        self._versions_decoder = msgspec.json.Decoder(VersionsPage)
        self._reverse_decoder = msgspec.json.Decoder(ReverseDependenciesPage)

    @classmethod
    def create(
        cls,
        *,
        base_url: str = DEFAULT_REGISTRY_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout_s: float = 30.0,
        min_interval_s: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> CratesIoClient:
        """Build a client that owns its ``httpx.AsyncClient``.

        Returns
        -------
        CratesIoClient
            Client ready for use; close it with :meth:`aclose`.
        """
        http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"User-Agent": user_agent, "Accept": "application/json"},
            timeout=timeout_s,
            follow_redirects=True,
            transport=transport,
        )
        logger.debug("Initialized crates.io client for %s", base_url)
        return cls(http, min_interval_s=min_interval_s)

    async def aclose(self) -> None:
        """Close the underlying HTTP client and drop cached responses."""
        for task in self._cache.values():
            if not task.done():
                task.cancel()
        self._cache.clear()
        await self._http.aclose()

    async def crate(self, name: str) -> CrateResponse:
        """Return ``GET /api/v1/crates/{name}``.

        Raises
        ------
        RegistryError
            Raised when the crate is unknown or the request fails.
        """
        path = f"/api/v1/crates/{name}"
        result = await self._cached(path, lambda: self._get(name, path, self._crate_decoder))
        assert isinstance(result, CrateResponse)
        return result

    async def reverse_dependency_count(self, name: str) -> int | None:
        """Return the number of crates depending on ``name``."""
        path = f"/api/v1/crates/{name}/reverse_dependencies"

        async def _fetch() -> object:
            page = await self._get(name, path, self._reverse_decoder, params={"per_page": 1})
            return page.meta.total

        result = await self._cached(path, _fetch)
        return result if isinstance(result, int) else None

    async def versions(self, name: str) -> tuple[CrateVersion, ...]:
        """Return every published version of ``name`` in registry order (newest first).

        Follows ``meta.next_page`` until the listing is exhausted.
        """
        path = f"/api/v1/crates/{name}/versions"
        result = await self._cached(path, lambda: self._all_versions(name, path))
        assert isinstance(result, tuple)
        return result

    async def _all_versions(self, name: str, path: str) -> tuple[CrateVersion, ...]:
        collected: list[CrateVersion] = []
        params: dict[str, str | int] = {"per_page": VERSIONS_PAGE_SIZE}
        while True:
            page = await self._get(name, path, self._versions_decoder, params=params)
            collected.extend(page.versions)
            next_page = page.meta.next_page
            if not next_page or not page.versions:
                break
            query = httpx.QueryParams(next_page.lstrip("?"))
            params = dict(query.items())
        logger.debug("Fetched %d versions of %s", len(collected), name)
        return tuple(collected)

    async def _cached(self, key: str, factory: Callable[[], Awaitable[object]]) -> object:
        task = self._cache.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._cache[key] = task
        return await asyncio.shield(task)

    async def _wait_turn(self) -> None:
        async with self._throttle:
            if self._last_request is not None:
                delay = self._min_interval_s - (time.monotonic() - self._last_request)
                if delay > 0:
                    await asyncio.sleep(delay)
            self._last_request = time.monotonic()

    async def _get[T](
        self,
        crate: str,
        path: str,
        decoder: msgspec.json.Decoder[T],
        *,
        params: dict[str, str | int] | None = None,
    ) -> T:
        await self._wait_turn()
        with get_tracer(SCOPE_REGISTRY).start_as_current_span(
            "crates_io.get", attributes={"http.route": path, "crate": crate}
        ) as span:
            try:
                response = await self._http.get(path, params=params)
            except httpx.HTTPError as exc:
                record_http_request(path, status_code=None)
                raise RegistryError(crate, f"request error ({exc})") from exc
            span.set_attribute("http.status_code", response.status_code)
        record_http_request(path, status_code=response.status_code)
        if response.status_code == httpx.codes.NOT_FOUND:
            raise RegistryError(crate, "not found on the registry", status_code=404)
        if response.is_error:
            msg = f"HTTP {response.status_code} for {path}"
            raise RegistryError(crate, msg, status_code=response.status_code)
        try:
            return decoder.decode(response.content)
        except msgspec.DecodeError as exc:
            raise RegistryError(crate, f"malformed response ({exc})") from exc


__all__ = [
    "DEFAULT_REGISTRY_URL",
    "DEFAULT_USER_AGENT",
    "VERSIONS_PAGE_SIZE",
    "CratesIoClient",
    "RegistryError",
]
