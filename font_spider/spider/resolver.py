# font_spider/spider/resolver.py
"""
Per-document font usage: which declared web fonts a document's stylesheets
bind to which selectors, plus literal ``content`` characters.
"""
from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Set, Union

from font_spider.errors import (
    CssParseError,
    DocumentError,
    FontSpiderError,
    ResourceError,
)
from font_spider.logger import logger
from font_spider.models import CssRecord, FontFace, HtmlSource, StyleRule, WebFontUsage
from font_spider.parser.css_parser import declared_font_properties
from font_spider.parser.html_parser import HtmlView
from font_spider.resource.paths import is_remote
from font_spider.spider.context import SpiderContext

__all__ = ["DocumentUsage", "FontUsageResolver", "match_fonts"]


@dataclass(slots=True)
class DocumentUsage:
    """Fonts found for one document; DOM text is collected later by the controller."""

    path: str
    view: HtmlView
    fonts: List[WebFontUsage]


def match_fonts(records: List[CssRecord]) -> Dict[str, WebFontUsage]:
    """Bind style rules to the font faces whose family they name.

    Returns usages keyed by identity; each carries the selectors of the
    matching rules and their literal ``content`` characters.
    """
    usages: Dict[str, WebFontUsage] = {}
    faces: List[FontFace] = []
    rules: List[StyleRule] = []
    for record in records:
        if isinstance(record, FontFace):
            if record.identity not in usages:
                usages[record.identity] = WebFontUsage.from_face(record)
                faces.append(record)
        else:
            rules.append(record)

    for rule in rules:
        for identity in rule.matched_identities(faces):
            usage = usages[identity]
            usage.add_selectors(rule.selectors)
            usage.add_chars(rule.literal_chars)
    return usages


class FontUsageResolver:
    """Resolves one HTML source against the shared run context."""

    def __init__(self, source: Union[HtmlSource, str, Any], context: SpiderContext) -> None:
        self.source = HtmlSource.coerce(source)
        self.context = context
        path = self.source.path
        self.path = path if is_remote(path) else os.path.abspath(path)

    async def resolve(self) -> DocumentUsage:
        """
        Load and parse the document and its stylesheets.

        Any failure is raised as DocumentError chained to its cause.
        """
        ctx = self.context
        ctx.hooks.before_document_parse(self.path)
        try:
            resource = await ctx.loader.load(self.path, self.source.contents, cache=False)
            view = await ctx.html.parse(resource)
            records = await self._css_records(view)
            usages = match_fonts(records)
            self._inline_styles(view, usages)
            self._inherited_content(view, records, usages)
        except FontSpiderError as exc:
            error = DocumentError(self.path)
            error.__cause__ = exc
            ctx.hooks.on_document_error(self.path, error)
            raise error
        ctx.hooks.after_document_parse(self.path)
        logger.debug("Resolved %s: %d font(s)", self.path, len(usages))
        return DocumentUsage(self.path, view, list(usages.values()))

    async def _css_records(self, view: HtmlView) -> List[CssRecord]:
        tasks = [self._linked(key) for key in view.get_css_files() if key]
        for index, content in enumerate(view.get_inline_style_contents(), start=1):
            if content.strip():
                key = f"{view.file}#style:nth-of-type({index})"
                tasks.append(self._inline(key, content, view.base))

        results = await asyncio.gather(*tasks, return_exceptions=True)
        records: List[CssRecord] = []
        for result in results:
            if isinstance(result, BaseException):
                raise result
            records.extend(result)
        return records

    async def _linked(self, key: str) -> List[CssRecord]:
        ctx = self.context
        try:
            resource = await ctx.loader.load(key)
        except ResourceError as exc:
            logger.warning("Skipped stylesheet of %s: %s", self.path, exc)
            ctx.errors.append(exc)
            return []
        return await self._parse(ctx.css.parse(resource))

    async def _inline(self, key: str, content: str, base: str) -> List[CssRecord]:
        resource = await self.context.loader.load(key, content)
        return await self._parse(self.context.css.parse(resource, base=base, cacheable=False))

    async def _parse(self, parsing) -> List[CssRecord]:
        try:
            return await parsing
        except CssParseError as exc:
            logger.warning("Skipped stylesheet of %s: %s", self.path, exc)
            self.context.errors.append(exc)
            return []

    @staticmethod
    def _inline_styles(view: HtmlView, usages: Dict[str, WebFontUsage]) -> None:
        """Elements with ``style="font-family: …"`` render their own text in that font."""
        for style, text in view.get_inline_style_elements():
            families = _style_families(style)
            for usage in usages.values():
                if usage.family.casefold() in families:
                    usage.add_chars(text)

    @staticmethod
    def _inherited_content(
        view: HtmlView, records: List[CssRecord], usages: Dict[str, WebFontUsage]
    ) -> None:
        """
        ``content`` of a rule that sets no font family is drawn in the font its
        host element inherits: every font set on the host or one of its
        ancestors gets the rule's selectors and characters.
        """
        rules = [record for record in records if isinstance(record, StyleRule)]
        pseudo_rules = [rule for rule in rules if rule.literal_chars and not rule.families]
        if not pseudo_rules:
            return

        # identity -> ids of the elements the font is set on
        hosts: Dict[str, Set[int]] = {identity: set() for identity in usages}
        for rule in rules:
            if rule.literal_chars:
                continue
            matched = [identity for identity, u in usages.items() if rule.names(u.family)]
            if matched:
                ids = {id(element) for element in view.elements(", ".join(rule.selectors))}
                for identity in matched:
                    hosts[identity] |= ids
        for element in view.inline_font_elements():
            families = _style_families(str(element["style"]))
            for identity, usage in usages.items():
                if usage.family.casefold() in families:
                    hosts[identity].add(id(element))

        for rule in pseudo_rules:
            for element in view.elements(", ".join(rule.selectors), pseudo_host=True):
                lineage = {id(element), *(id(parent) for parent in element.parents)}
                for identity, usage in usages.items():
                    if hosts[identity] & lineage:
                        usage.add_selectors(rule.selectors)
                        usage.add_chars(rule.literal_chars)


def _style_families(style: str) -> Set[str]:
    return {f.casefold() for f in declared_font_properties(style).get("font-family", [])}
