"""Download CSAF advisories over HTTP, one at a time, in batches or from an index.

``CsafFetcher`` does the work with a blocking client and ``AsyncCsafFetcher``
with an asyncio one. Single downloads raise ``FetchError``. Batch
operations give back ``(key, result)`` pairs, where the result is either the
parsed item or the ``FetchError`` that stopped it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Awaitable, Callable, Optional, TypeVar, Union

import httpx

from .csaf import CSAF

log = logging.getLogger(__name__)

_T = TypeVar("_T")
_Outcome = Union[CSAF, "FetchError"]
_SaveOutcome = Optional["FetchError"]


class FetchError(Exception):
    """Raised when an advisory or an index cannot be fetched, parsed or saved."""


class StatusError(FetchError):
    """The server answered with a status code outside the 2xx range."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"HTTP status error: {status}, body: {body}")
        self.status = status
        self.body = body


@dataclass(frozen=True)
class FetcherConfig:
    """Timeouts, retry policy and identification used by the fetchers."""

    timeout_secs: float = 30
    max_retries: int = 3
    retry_delay_ms: int = 1000
    user_agent: str = "CSAF-Fetcher/0.1.0"

    def __post_init__(self) -> None:
        if self.timeout_secs <= 0:
            raise ValueError("timeout_secs must be positive")
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if self.retry_delay_ms < 0:
            raise ValueError("retry_delay_ms must not be negative")

    @property
    def _retry_delay(self) -> float:
        return self.retry_delay_ms / 1000

    def _client_options(self) -> dict:
        return {
            "timeout": self.timeout_secs,
            "headers": {"User-Agent": self.user_agent},
            "follow_redirects": True,
        }


def parse_index(content: str) -> list[str]:
    """Return the JSON file paths listed in an index.txt, one per line."""
    lines = (line.strip() for line in content.splitlines())
    return [line for line in lines if line.endswith(".json")]


def build_url(base_url: str, path: str) -> str:
    """Join a base URL and a relative path with exactly one slash between them."""
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def filename_from_path(path: str) -> str:
    """The file name part of an index path, used when saving locally."""
    return PurePosixPath(path.strip()).name


def _validate_url(url: str) -> None:
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise FetchError(f"Invalid URL: {exc}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise FetchError(f"Invalid URL: {url}")


def _check_status(response: httpx.Response) -> None:
    if not response.is_success:
        raise StatusError(response.status_code, response.text)


def _parse_csaf(response: httpx.Response) -> CSAF:
    _check_status(response)
    try:
        return CSAF.from_json(response.text)
    except ValueError as exc:
        raise FetchError(f"JSON parse error: {exc}") from exc


def _save(csaf: CSAF, output_path: Union[str, Path]) -> None:
    path = Path(output_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        csaf.to_file(path)
    except OSError as exc:
        raise FetchError(f"IO error: {exc}") from exc


def _prepare_dir(output_dir: Union[str, Path]) -> Path:
    directory = Path(output_dir)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FetchError(f"IO error: {exc}") from exc
    return directory


class CsafFetcher:
    """Blocking CSAF fetcher; use as a context manager or call ``close``."""

    def __init__(self, config: Optional[FetcherConfig] = None) -> None:
        self.config = config or FetcherConfig()
        self._client = httpx.Client(**self.config._client_options())

    def __enter__(self) -> "CsafFetcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _get(self, url: str) -> httpx.Response:
        try:
            return self._client.get(url)
        except httpx.HTTPError as exc:
            raise FetchError(f"HTTP request failed: {exc}") from exc

    def _with_retries(self, url: str, operation: Callable[[str], _T]) -> _T:
        _validate_url(url)
        for attempt in range(self.config.max_retries + 1):
            try:
                return operation(url)
            except FetchError as exc:
                if attempt == self.config.max_retries:
                    log.error("giving up on %s: %s", url, exc)
                    raise
                log.warning("attempt %d for %s failed: %s", attempt + 1, url, exc)
                time.sleep(self.config._retry_delay)
        raise FetchError(f"no attempt made for {url}")

    def _fetch_once(self, url: str) -> CSAF:
        return _parse_csaf(self._get(url))

    def _index_once(self, url: str) -> list[str]:
        response = self._get(url)
        _check_status(response)
        return parse_index(response.text)

    def _outcome(self, url: str) -> _Outcome:
        try:
            return self.fetch(url)
        except FetchError as exc:
            return exc

    def fetch(self, url: str) -> CSAF:
        """Download and parse one advisory, retrying on failure."""
        log.debug("fetching %s", url)
        return self._with_retries(url, self._fetch_once)

    def fetch_and_save(self, url: str, output_path: Union[str, Path]) -> CSAF:
        """Download one advisory and write it as JSON to ``output_path``."""
        csaf = self.fetch(url)
        _save(csaf, output_path)
        return csaf

    def fetch_batch(self, urls: list[str]) -> list[tuple[str, _Outcome]]:
        """Fetch each URL in turn; failures are returned, not raised."""
        return [(url, self._outcome(url)) for url in urls]

    def fetch_index(self, index_url: str) -> list[str]:
        """Download an index.txt and return the advisory paths it lists."""
        return self._with_retries(index_url, self._index_once)

    def fetch_from_index(self, index_url: str, base_url: str) -> list[tuple[str, _Outcome]]:
        """Fetch every advisory an index lists, keyed by its index path."""
        paths = self.fetch_index(index_url)
        log.info("index %s lists %d advisories", index_url, len(paths))
        return [(path, self._outcome(build_url(base_url, path))) for path in paths]

    def fetch_from_index_and_save(
        self, index_url: str, base_url: str, output_dir: Union[str, Path]
    ) -> list[tuple[str, _SaveOutcome]]:
        """Fetch every indexed advisory into ``output_dir``; None marks success."""
        directory = _prepare_dir(output_dir)
        results: list[tuple[str, _SaveOutcome]] = []
        for path in self.fetch_index(index_url):
            try:
                self.fetch_and_save(build_url(base_url, path), directory / filename_from_path(path))
                results.append((path, None))
            except FetchError as exc:
                results.append((path, exc))
        return results


class AsyncCsafFetcher:
    """Asyncio CSAF fetcher; use as an async context manager or call ``aclose``."""

    def __init__(self, config: Optional[FetcherConfig] = None) -> None:
        self.config = config or FetcherConfig()
        self._client = httpx.AsyncClient(**self.config._client_options())

    async def __aenter__(self) -> "AsyncCsafFetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, url: str) -> httpx.Response:
        try:
            return await self._client.get(url)
        except httpx.HTTPError as exc:
            raise FetchError(f"HTTP request failed: {exc}") from exc

    async def _with_retries(self, url: str, operation: Callable[[str], Awaitable[_T]]) -> _T:
        _validate_url(url)
        for attempt in range(self.config.max_retries + 1):
            try:
                return await operation(url)
            except FetchError as exc:
                if attempt == self.config.max_retries:
                    log.error("giving up on %s: %s", url, exc)
                    raise
                log.warning("attempt %d for %s failed: %s", attempt + 1, url, exc)
                await asyncio.sleep(self.config._retry_delay)
        raise FetchError(f"no attempt made for {url}")

    async def _fetch_once(self, url: str) -> CSAF:
        return _parse_csaf(await self._get(url))

    async def _index_once(self, url: str) -> list[str]:
        response = await self._get(url)
        _check_status(response)
        return parse_index(response.text)

    async def _outcome(self, url: str) -> _Outcome:
        try:
            return await self.fetch(url)
        except FetchError as exc:
            return exc

    async def fetch(self, url: str) -> CSAF:
        """Download and parse one advisory, retrying on failure."""
        log.debug("fetching %s", url)
        return await self._with_retries(url, self._fetch_once)

    async def fetch_and_save(self, url: str, output_path: Union[str, Path]) -> CSAF:
        """Download one advisory and write it as JSON to ``output_path``."""
        csaf = await self.fetch(url)
        _save(csaf, output_path)
        return csaf

    async def fetch_batch(self, urls: list[str]) -> list[tuple[str, _Outcome]]:
        """Fetch each URL one after another; failures are returned, not raised."""
        return [(url, await self._outcome(url)) for url in urls]

    async def fetch_batch_concurrent(self, urls: list[str]) -> list[tuple[str, _Outcome]]:
        """Fetch all URLs at once; results keep the order of ``urls``."""
        outcomes = await asyncio.gather(*(self._outcome(url) for url in urls))
        return list(zip(urls, outcomes))

    async def fetch_index(self, index_url: str) -> list[str]:
        """Download an index.txt and return the advisory paths it lists."""
        return await self._with_retries(index_url, self._index_once)

    async def fetch_from_index(
        self, index_url: str, base_url: str
    ) -> list[tuple[str, _Outcome]]:
        """Fetch every indexed advisory in turn, keyed by its index path."""
        paths = await self.fetch_index(index_url)
        log.info("index %s lists %d advisories", index_url, len(paths))
        return [(path, await self._outcome(build_url(base_url, path))) for path in paths]

    async def fetch_from_index_concurrent(
        self, index_url: str, base_url: str
    ) -> list[tuple[str, _Outcome]]:
        """Fetch every indexed advisory concurrently, keyed by its index path."""
        paths = await self.fetch_index(index_url)
        outcomes = await asyncio.gather(
            *(self._outcome(build_url(base_url, path)) for path in paths)
        )
        return list(zip(paths, outcomes))

    async def fetch_from_index_with_check(
        self,
        index_url: str,
        base_url: str,
        check_exists: Callable[[str], Awaitable[bool]],
    ) -> list[tuple[str, _Outcome]]:
        """Fetch indexed advisories for which ``check_exists(path)`` is false.

        Skipped paths do not appear in the result.
        """
        results: list[tuple[str, _Outcome]] = []
        for path in await self.fetch_index(index_url):
            if await check_exists(path):
                log.debug("skipping %s, already present", path)
                continue
            results.append((path, await self._outcome(build_url(base_url, path))))
        return results

    async def fetch_from_index_and_save(
        self, index_url: str, base_url: str, output_dir: Union[str, Path]
    ) -> list[tuple[str, _SaveOutcome]]:
        """Fetch every indexed advisory into ``output_dir``; None marks success."""
        directory = _prepare_dir(output_dir)
        results: list[tuple[str, _SaveOutcome]] = []
        for path in await self.fetch_index(index_url):
            try:
                await self.fetch_and_save(
                    build_url(base_url, path), directory / filename_from_path(path)
                )
                results.append((path, None))
            except FetchError as exc:
                results.append((path, exc))
        return results