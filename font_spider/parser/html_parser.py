"""HTML interpreter for FontSpider.

Parses one document with BeautifulSoup and exposes what the spider needs
from it:

* linked stylesheets: :meth:`HtmlView.get_css_files`, one entry per
  ``<link rel="stylesheet">`` (``None`` for disabled or ignored links, so
  positions still line up with the markup; alternate stylesheets are left out);
* inline ``<style>`` blocks: :meth:`HtmlView.get_inline_style_contents`;
* elements with a font in their ``style`` attribute:
  :meth:`HtmlView.get_inline_style_elements`;
* matched elements and rendered text of a selector list:
  :meth:`HtmlView.elements`, :meth:`HtmlView.query_text`.

Selector matching is delegated to soupsieve through ``soup.select``.
Unsupported selectors yield no text instead of failing the query.
"""
from __future__ import annotations

import re
from collections.abc import Sequence
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, ParserRejectedMarkup
from bs4.element import Tag
from soupsieve import SelectorSyntaxError

from font_spider.errors import HtmlParseError, SelectorQueryError
from font_spider.logger import logger
from font_spider.models import Resource
from font_spider.parser.css_values import split_top_level, strip_state_pseudo
from font_spider.resource.paths import PathPipeline, dirname, resolve

__all__: Sequence[str] = ("HtmlView", "HtmlInterpreter")

# Never rendered as glyphs, so their text is left out of queried text.
_NON_RENDERED = ["script", "style", "noscript", "template"]
_PSEUDO_ELEMENT_RE = re.compile(r"::?(?:before|after)$", re.IGNORECASE)


def _is_disabled(tag: Tag) -> bool:
    disabled = tag.get("disabled")
    return disabled is not None and str(disabled).lower() != "false"


class HtmlView:
    """Read-only view over one parsed document."""

    def __init__(
        self,
        soup: BeautifulSoup,
        file: str,
        base: str,
        pipeline: PathPipeline,
        style_contents: List[str],
    ) -> None:
        self.file = file
        self.base = base
        self._soup = soup
        self._pipeline = pipeline
        self._style_contents = style_contents

    def get_css_files(self) -> List[Optional[str]]:
        files: List[Optional[str]] = []
        for link in self._soup.find_all("link"):
            rel = link.get("rel") or []
            if isinstance(rel, str):
                rel = rel.split()
            rel = {r.lower() for r in rel}
            # alternate stylesheets are not applied until the user picks them
            if "stylesheet" not in rel or "alternate" in rel:
                continue
            href = link.get("href")
            if not href or _is_disabled(link):
                files.append(None)
                continue
            files.append(self._pipeline(self.base, str(href)))
        return files

    def get_inline_style_contents(self) -> List[str]:
        return list(self._style_contents)

    def inline_font_elements(self) -> List[Tag]:
        return self.select('[style*="font"]')

    def get_inline_style_elements(self) -> List[Tuple[str, str]]:
        """``(style attribute, element text)`` for elements declaring a font inline."""
        return [(str(tag["style"]), tag.get_text()) for tag in self.inline_font_elements()]

    def select(self, selector: str) -> List[Tag]:
        try:
            return list(self._soup.select(selector))
        except (SelectorSyntaxError, NotImplementedError, ValueError) as exc:
            raise SelectorQueryError(selector, str(exc)) from exc

    def elements(self, selector_list: str, *, pseudo_host: bool = False) -> List[Tag]:
        """Elements matched by any selector of the list.

        Each comma-separated selector is queried on its own, so one that the
        engine rejects does not hide the matches of the others. With
        *pseudo_host* a trailing ``::before``/``::after`` is dropped and the
        elements hosting the pseudo-element are returned.
        """
        found: List[Tag] = []
        for selector in split_top_level(selector_list):
            selector = strip_state_pseudo(selector)
            if pseudo_host:
                selector = _PSEUDO_ELEMENT_RE.sub("", selector).strip() or "*"
            if not selector:
                continue
            try:
                found.extend(self.select(selector))
            except SelectorQueryError as exc:
                logger.debug("%s", exc)
        return found

    def query_text(self, selector_list: str) -> str:
        """Concatenated text of every element matched by any selector of the list."""
        return "".join(element.get_text() for element in self.elements(selector_list))


class HtmlInterpreter:
    """Builds :class:`HtmlView` objects; links are resolved through *pipeline*."""

    def __init__(self, pipeline: PathPipeline) -> None:
        self.pipeline = pipeline

    async def parse(self, resource: Resource) -> HtmlView:
        try:
            soup = BeautifulSoup(resource.content, "html.parser")
        except (ParserRejectedMarkup, AssertionError) as exc:
            raise HtmlParseError(resource.key, str(exc)) from exc

        base = dirname(resource.key)
        base_tag = soup.find("base", href=True)
        if base_tag is not None:
            base = resolve(base, str(base_tag["href"]))

        styles = [
            tag.get_text() for tag in soup.find_all("style") if not _is_disabled(tag)
        ]
        for element in soup(_NON_RENDERED):
            # already gone with an enclosing <noscript>/<template>
            if not element.decomposed:
                element.decompose()

        logger.debug("Parsed HTML %s (base %s, %d <style>)", resource.key, base, len(styles))
        return HtmlView(soup, resource.key, base, self.pipeline, styles)
