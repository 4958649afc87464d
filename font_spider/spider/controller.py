# font_spider/spider/controller.py
"""
Spider controller: runs the per-document resolvers concurrently and merges
their results into one list of web fonts with the characters they render.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from aiohttp import ClientSession

from font_spider.config import SpiderConfig
from font_spider.errors import DocumentError, FontSpiderError, format_error_chain
from font_spider.logger import logger
from font_spider.models import HtmlSource, SpiderHooks, WebFontUsage
from font_spider.parser.html_parser import HtmlView
from font_spider.resource.loader import ResourceLoader
from font_spider.spider.context import SpiderContext
from font_spider.spider.resolver import DocumentUsage, FontUsageResolver

__all__ = ["SpiderController", "merge_documents"]

SourcesT = Union[HtmlSource, str, Path, Iterable[Any]]


def merge_documents(
    documents: Iterable[DocumentUsage], *, unique: bool = True, sort: bool = True
) -> List[WebFontUsage]:
    """
    Merge per-document results by font identity, in document order.

    The first occurrence of an identity fixes its files and attributes; later
    ones add selectors and characters. Each document that declared the font
    is then queried once with the font's full selector list, so a selector
    learned from one page also collects text on the others. Fonts that end
    up without characters are dropped.
    """
    table: Dict[str, WebFontUsage] = {}
    views: Dict[str, List[HtmlView]] = {}

    for document in documents:
        for font in document.fonts:
            merged = table.get(font.identity)
            if merged is None:
                table[font.identity] = dataclasses.replace(
                    font, selectors=list(font.selectors), collected=list(font.collected)
                )
                views[font.identity] = []
            else:
                merged.add_selectors(font.selectors)
                merged.add_chars(font.collected)
            views[font.identity].append(document.view)

    results: List[WebFontUsage] = []
    for identity, merged in table.items():
        if merged.selectors:
            # TODO: a bare "*" in the list requeries every element of every page
            selector_list = ", ".join(merged.selectors)
            for view in views[identity]:
                merged.add_chars(view.query_text(selector_list))
        if merged.finalize(unique=unique, sort=sort):
            results.append(merged)
        else:
            logger.debug("Font %r renders no characters, dropped", merged.family)
    return results


class SpiderController:
    """Одна сессия паука над набором HTML-документов.

    После :meth:`run` в ``errors`` лежат некритичные ошибки (недоступные
    таблицы стилей и т. п.), в ``failures`` — документы, которые не удалось
    обработать.
    """

    def __init__(
        self,
        sources: SourcesT,
        config: Optional[SpiderConfig] = None,
        *,
        hooks: Optional[SpiderHooks] = None,
        session: Optional[ClientSession] = None,
    ) -> None:
        if isinstance(sources, (HtmlSource, str, Path, dict)):
            sources = [sources]
        self.sources: List[HtmlSource] = [HtmlSource.coerce(s) for s in sources]
        self.config = config or SpiderConfig()
        self.hooks = hooks or SpiderHooks()
        self._session = session
        self.errors: List[FontSpiderError] = []
        self.failures: Dict[str, DocumentError] = {}

    async def run(self) -> List[WebFontUsage]:
        """
        Resolve every source and return the merged web fonts.

        With ``silent`` (default) a failed document is logged and skipped;
        otherwise the first failure in input order is raised as DocumentError.
        """
        previous_level = logger.level
        if self.config.debug:
            logger.setLevel(logging.DEBUG)
        try:
            return await self._run()
        finally:
            logger.setLevel(previous_level)

    async def _run(self) -> List[WebFontUsage]:
        logger.info("Spider started: %d document(s)", len(self.sources))
        started = time.monotonic()

        async with ResourceLoader(self.config, hooks=self.hooks, session=self._session) as loader:
            context = SpiderContext.create(self.config, loader, self.hooks, self.errors)
            outcomes = await asyncio.gather(
                *(FontUsageResolver(source, context).resolve() for source in self.sources),
                return_exceptions=True,
            )

        documents: List[DocumentUsage] = []
        for outcome in outcomes:
            if isinstance(outcome, DocumentError):
                self.failures[outcome.path] = outcome
                logger.warning("%s", format_error_chain(outcome))
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            documents.append(outcome)

        if self.failures and not self.config.silent:
            raise next(iter(self.failures.values()))

        usages = merge_documents(documents, unique=self.config.unique, sort=self.config.sort)
        logger.info(
            "Spider finished in %.2f s: %d font(s), %d failed document(s), %d warning(s)",
            time.monotonic() - started,
            len(usages),
            len(self.failures),
            len(self.errors),
        )
        return usages
