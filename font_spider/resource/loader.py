# font_spider/resource/loader.py
"""
Resource loader: reads local files and fetches remote URLs with timeout,
retry/backoff and at most one in-flight fetch per resource key.
"""
from __future__ import annotations

import asyncio
from functools import partial
from pathlib import Path
from typing import Dict, Optional, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout

from font_spider.config import SpiderConfig
from font_spider.errors import ResourceError
from font_spider.logger import logger
from font_spider.models import Resource, SpiderHooks
from font_spider.resource.paths import is_remote

__all__ = ["ResourceLoader"]


class ResourceLoader:
    """Loads text resources for one spider run.

    The cache maps a resource key to the task fetching it, so concurrent
    callers share a single fetch. It is owned by the run that creates the
    loader and is never shared between runs.
    """

    _RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)

    def __init__(
        self,
        config: SpiderConfig,
        *,
        hooks: Optional[SpiderHooks] = None,
        cache: Optional[Dict[str, asyncio.Future]] = None,
        session: Optional[ClientSession] = None,
    ) -> None:
        self.config = config
        self.hooks = hooks or SpiderHooks()
        self._cache: Dict[str, asyncio.Future] = {} if cache is None else cache
        self.session = session
        self._owns_session = session is None
        self.fetch_count = 0

    async def __aenter__(self) -> ResourceLoader:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def load(
        self, key: str, content: Optional[str] = None, *, cache: Optional[bool] = None
    ) -> Resource:
        """
        Return the resource for *key*.

        Explicit *content* resolves immediately and is never cached. Otherwise
        an existing (finished or in-flight) fetch for the key is reused.
        Raises ResourceError when the file or URL cannot be loaded.
        """
        origin = "remote" if is_remote(key) else "local"
        if content is not None:
            return Resource(key, content, origin)

        keep = self.config.cache if cache is None else cache
        task = self._cache.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch(key, origin))
            self._cache[key] = task
            task.add_done_callback(partial(self._settle, key, keep))
        else:
            logger.debug("Resource cache hit: %s", key)
        # shield: a cancelled waiter must not cancel the fetch other callers share
        return await asyncio.shield(task)

    def _settle(self, key: str, keep: bool, task: asyncio.Future) -> None:
        failed = task.cancelled() or task.exception() is not None
        if (failed or not keep) and self._cache.get(key) is task:
            del self._cache[key]

    async def _fetch(self, key: str, origin: str) -> Resource:
        self.hooks.before_fetch(key)
        self.fetch_count += 1
        try:
            if origin == "remote":
                content = await self._fetch_remote(key)
            else:
                content = await self._read_local(key)
        except ResourceError as exc:
            logger.debug("Load failed: %s (%s)", key, exc.cause)
            self.hooks.on_fetch_error(key, exc)
            raise
        logger.debug("Loaded %s (%d chars)", key, len(content))
        self.hooks.on_fetch_success(key)
        return Resource(key, content, origin)

    @staticmethod
    async def _read_local(key: str) -> str:
        try:
            return await asyncio.to_thread(
                Path(key).read_text, encoding="utf-8", errors="replace"
            )
        except OSError as exc:
            raise ResourceError(key, exc.strerror or str(exc)) from exc

    def _ensure_session(self) -> ClientSession:
        if self.session is None or self.session.closed:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.resource_timeout),
                headers={
                    "User-Agent": self.config.user_agent,
                    "Accept-Encoding": "gzip, deflate",
                },
                raise_for_status=False,
            )
            self._owns_session = True
        return self.session

    async def _fetch_remote(self, url: str) -> str:
        session = self._ensure_session()
        attempts = 0
        while True:
            try:
                async with session.get(url) as resp:
                    status = resp.status
                    if 200 <= status < 300:
                        return await resp.text(errors="replace")
                    if status not in self._RETRY_STATUS:
                        raise ResourceError(url, f"HTTP {status}")
                    raise ClientError(f"HTTP {status}")
            except asyncio.TimeoutError as exc:
                # no retry on timeout
                raise ResourceError(url, "timeout") from exc
            except ClientError as exc:
                attempts += 1
                if attempts > self.config.retry_times:
                    raise ResourceError(url, str(exc) or type(exc).__name__) from exc
                # exponential backoff, cap at 60s
                backoff = min(2**attempts, 60)
                logger.debug(
                    "Retry %d/%d for %s after %.2f s", attempts, self.config.retry_times, url, backoff
                )
                await asyncio.sleep(backoff)
