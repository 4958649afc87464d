# font_spider/parser/css_parser.py
"""
Stylesheet interpreter: turns one stylesheet into ``FontFace`` and
``StyleRule`` records, following ``@import`` through the resource loader.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Union

import tinycss2

from font_spider.config import SpiderConfig
from font_spider.errors import CssParseError, FontSpiderError, ImportLimitExceeded, ResourceError
from font_spider.logger import logger
from font_spider.models import CssRecord, FontFace, FontFileRef, Resource, StyleRule
from font_spider.parser.css_values import (
    FONT_ATTRIBUTES,
    canonical_attribute,
    content_literal,
    font_identity,
    infer_format,
    parse_font_family,
    parse_font_shorthand,
    parse_font_src,
    split_top_level,
)
from font_spider.resource.loader import ResourceLoader
from font_spider.resource.paths import PathPipeline, dirname

__all__ = ["CssInterpreter", "declared_font_properties"]

# Conditional group rules: nested rules are taken as always present.
_GROUP_RULES = ("media", "supports")


def declared_font_properties(content: Union[str, Iterable[Any]]) -> Dict[str, Any]:
    """Collect font-related declarations of one block, last declaration wins.

    ``font`` expands into ``font-family`` and the attributes it sets (the
    rest reset to ``normal``); a later longhand overrides it. An
    ``!important`` declaration is only overridden by another important one.
    """
    declarations = tinycss2.parse_blocks_contents(content, skip_comments=True, skip_whitespace=True)
    props: Dict[str, Any] = {}
    important: set[str] = set()

    def assign(name: str, value: Any, is_important: bool) -> None:
        if name in important and not is_important:
            return
        props[name] = value
        if is_important:
            important.add(name)

    for decl in declarations:
        if decl.type != "declaration":
            continue
        name = decl.lower_name
        if name == "font":
            parsed = parse_font_shorthand(decl.value)
            if parsed is None:
                continue
            assign("font-family", parsed["font-family"], decl.important)
            for attr in FONT_ATTRIBUTES:
                assign(attr, parsed.get(attr, "normal"), decl.important)
        elif name == "font-family":
            families = parse_font_family(decl.value)
            if families:
                assign(name, families, decl.important)
        elif name in FONT_ATTRIBUTES:
            assign(name, tinycss2.serialize(decl.value).strip(), decl.important)
        elif name == "content":
            assign(name, content_literal(decl.value), decl.important)
        elif name == "src":
            assign(name, decl.value, decl.important)
    return props


class CssInterpreter:
    """Parses stylesheets of one spider run.

    Parsed results are cached by resource key, so a stylesheet reached via
    several ``<link>``/``@import`` paths is interpreted once. Tolerated
    failures (an import that cannot be fetched or parsed) are logged and
    collected in :attr:`errors`.
    """

    def __init__(
        self,
        loader: ResourceLoader,
        pipeline: PathPipeline,
        config: SpiderConfig,
        *,
        cache: Optional[Dict[str, tuple]] = None,
        errors: Optional[List[FontSpiderError]] = None,
    ) -> None:
        self.loader = loader
        self.pipeline = pipeline
        self.max_import_files = config.max_import_files
        if cache is None and config.cache:
            cache = {}
        self._cache = cache
        self.errors: List[FontSpiderError] = [] if errors is None else errors
        self.parse_count = 0

    async def parse(
        self,
        resource: Resource,
        *,
        base: Optional[str] = None,
        import_depth: int = 0,
        cacheable: bool = True,
    ) -> List[CssRecord]:
        """
        Interpret *resource* and return its records in source order.

        *base* is the directory relative URLs resolve against (defaults to the
        stylesheet's own directory). Raises CssParseError for content the
        tokenizer rejects and ImportLimitExceeded when the ``@import`` chain is
        deeper than ``max_import_files``.
        """
        key = resource.key
        use_cache = cacheable and self._cache is not None
        if use_cache and key in self._cache:
            logger.debug("CSS cache hit: %s", key)
            return list(self._cache[key])

        nodes = tinycss2.parse_stylesheet(resource.content, skip_comments=True, skip_whitespace=True)
        self.parse_count += 1
        records = await self._walk(nodes, key, dirname(key) if base is None else base, import_depth)

        if use_cache:
            self._cache[key] = tuple(records)
        return records

    async def _walk(self, nodes: Iterable[Any], file: str, base: str, depth: int) -> List[CssRecord]:
        records: List[CssRecord] = []
        for node in nodes:
            if node.type == "error":
                raise CssParseError(file, node.message, node.source_line)
            if node.type == "qualified-rule":
                rule = self._style_rule(node)
                if rule is not None:
                    records.append(rule)
            elif node.type == "at-rule":
                keyword = node.lower_at_keyword
                if keyword == "import":
                    records.extend(await self._import(node, file, base, depth))
                elif keyword == "font-face":
                    face = self._font_face(node, base)
                    if face is not None:
                        records.append(face)
                elif keyword in _GROUP_RULES and node.content is not None:
                    nested = tinycss2.parse_rule_list(
                        node.content, skip_comments=True, skip_whitespace=True
                    )
                    records.extend(await self._walk(nested, file, base, depth))
        return records

    # @import url("fineprint.css") print;
    # @import 'custom.css';
    # @import url(landscape.css) screen and (orientation: landscape);
    async def _import(self, node: Any, file: str, base: str, depth: int) -> List[CssRecord]:
        href = _import_href(node.prelude)
        if not href:
            return []
        key = self.pipeline(base, href)
        if key is None:
            return []
        logger.debug("@import %s (from %s, depth %d)", key, file, depth + 1)
        if depth + 1 > self.max_import_files:
            raise ImportLimitExceeded(key, self.max_import_files)

        try:
            resource = await self.loader.load(key)
        except ResourceError as exc:
            logger.warning("Skipped @import in %s: %s", file, exc)
            self.errors.append(exc)
            return []
        try:
            return await self.parse(resource, import_depth=depth + 1)
        except CssParseError as exc:
            logger.warning("Skipped @import in %s: %s", file, exc)
            self.errors.append(exc)
            return []

    def _font_face(self, node: Any, base: str) -> Optional[FontFace]:
        props = declared_font_properties(node.content or [])
        families = props.get("font-family")
        if not families:
            return None
        family = families[0]

        files: List[FontFileRef] = []
        for url, fmt in parse_font_src(props.get("src", [])):
            key = self.pipeline(base, url)
            if key is not None:
                files.append(FontFileRef(key, infer_format(url, fmt)))
        if not files:
            logger.debug("@font-face %s has no usable files, skipped", family)
            return None

        attrs = {name: canonical_attribute(name, props.get(name)) for name in FONT_ATTRIBUTES}
        logger.debug("@font-face %s %s", family, attrs)
        return FontFace(
            identity=font_identity(
                family, attrs["font-stretch"], attrs["font-weight"], attrs["font-style"]
            ),
            family=family,
            files=tuple(dict.fromkeys(files)),
            stretch=attrs["font-stretch"],
            weight=attrs["font-weight"],
            style=attrs["font-style"],
        )

    @staticmethod
    def _style_rule(node: Any) -> Optional[StyleRule]:
        props = declared_font_properties(node.content)
        families = props.get("font-family", [])
        if not families and "content" not in props:
            return None
        selectors = split_top_level(tinycss2.serialize(node.prelude))
        if not selectors:
            return None
        return StyleRule(
            selectors=tuple(selectors),
            families=tuple(families),
            literal_chars=props.get("content", ""),
        )


def _import_href(prelude: Iterable[Any]) -> Optional[str]:
    """Target of an ``@import``; trailing media queries are ignored."""
    for token in prelude:
        if token.type in ("whitespace", "comment"):
            continue
        if token.type in ("string", "url"):
            return token.value
        if token.type == "function" and token.lower_name == "url":
            args = [t.value for t in token.arguments if t.type == "string"]
            return args[0] if args else None
        return None
    return None
