"""CSS value helpers used by the stylesheet interpreter.

Every function here is pure. Values may be given either as CSS source text
or as a list of :mod:`tinycss2` component values (e.g. a declaration's
``value``), so the same helper serves the parser and the tests.

* :func:`split_top_level`: split selector text on commas outside quotes,
  parentheses and brackets.
* :func:`parse_font_family`: ``font-family`` list, quotes stripped.
* :func:`parse_font_shorthand`: the ``font`` shorthand, or ``None``.
* :func:`parse_content` / :func:`content_literal`: ``content`` strings and
  ``attr()`` references.
* :func:`parse_font_src`: ``url()`` + optional ``format()`` pairs.
* :func:`font_identity`: stable key of a family + attributes.
"""
from __future__ import annotations

import hashlib
import posixpath
import re
from collections.abc import Sequence
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
from urllib.parse import urlparse

import tinycss2

from font_spider.models import FontFormat

__all__: Sequence[str] = (
    "split_top_level",
    "parse_font_family",
    "parse_font_shorthand",
    "parse_content",
    "content_literal",
    "parse_font_src",
    "infer_format",
    "strip_state_pseudo",
    "canonical_attribute",
    "font_identity",
)

ValueT = Union[str, Iterable[Any]]

FONT_ATTRIBUTES: Tuple[str, ...] = ("font-stretch", "font-weight", "font-style")

_SIZE_KEYWORDS = frozenset(
    {"xx-small", "x-small", "small", "medium", "large", "x-large", "xx-large", "xxx-large",
     "larger", "smaller"}
)
_SYSTEM_FONTS = frozenset({"caption", "icon", "menu", "message-box", "small-caption", "status-bar"})
_STYLE_KEYWORDS = frozenset({"italic", "oblique"})
_WEIGHT_KEYWORDS = frozenset({"bold", "bolder", "lighter"})
_STRETCH_RE = re.compile(r"^((ultra|extra|semi)-)?(condensed|expanded)$")
_WEIGHT_ALIASES = {"400": "normal", "700": "bold"}

_STATE_PSEUDO_RE = re.compile(
    r"(?<!:):(?:hover|focus|visited|active|link|checked|disabled|enabled|selected|target)(?![\w-])",
    re.IGNORECASE,
)

_EXTENSIONS = {
    ".eot": FontFormat.EMBEDDED_OPENTYPE,
    ".woff2": FontFormat.WOFF2,
    ".woff": FontFormat.WOFF,
    ".ttf": FontFormat.TRUETYPE,
    ".otf": FontFormat.OPENTYPE,
    ".svg": FontFormat.SVG,
}


def _tokens(value: ValueT) -> List[Any]:
    if isinstance(value, str):
        return tinycss2.parse_component_value_list(value, skip_comments=True)
    return list(value)


def _significant(tokens: Iterable[Any]) -> List[Any]:
    return [t for t in tokens if t.type not in ("whitespace", "comment")]


def _comma_groups(tokens: Iterable[Any]) -> List[List[Any]]:
    groups: List[List[Any]] = [[]]
    for token in tokens:
        if token.type == "literal" and token.value == ",":
            groups.append([])
        else:
            groups[-1].append(token)
    return groups


def split_top_level(text: str, sep: str = ",") -> List[str]:
    """Split *text* on *sep* outside quotes, ``()`` and ``[]``; drop empty parts.

    >>> split_top_level('.a, [data-x="1,2"], .b:not(.c, .d)')
    ['.a', '[data-x="1,2"]', '.b:not(.c, .d)']
    """
    parts: List[str] = []
    buf: List[str] = []
    depth = 0
    quote: Optional[str] = None
    i = 0
    while i < len(text):
        char = text[i]
        if char == "\\" and i + 1 < len(text):
            buf.append(text[i : i + 2])
            i += 2
            continue
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char in "([":
            depth += 1
        elif char in ")]":
            depth = max(0, depth - 1)
        elif char == sep and depth == 0:
            parts.append("".join(buf).strip())
            buf = []
            i += 1
            continue
        buf.append(char)
        i += 1
    parts.append("".join(buf).strip())
    return [p for p in parts if p]


def parse_font_family(value: ValueT) -> List[str]:
    """Return family names in order; unquoted multi-word names are joined by one space."""
    families: List[str] = []
    for group in _comma_groups(_tokens(value)):
        names: List[str] = []
        for token in _significant(group):
            if token.type in ("string", "ident"):
                names.append(token.value)
            else:
                # var(), functions and stray tokens cannot be resolved statically
                names = []
                break
        name = " ".join(names).strip()
        if name:
            families.append(name)
    return families


def parse_font_shorthand(value: ValueT) -> Optional[Dict[str, Any]]:
    """Parse the ``font`` shorthand.

    Returns a dict with ``font-family`` (list) and ``font-size`` plus whichever
    of ``font-style``, ``font-variant``, ``font-weight``, ``font-stretch`` and
    ``line-height`` were given, or ``None`` when the value has no size or no
    family (system fonts, ``inherit``, ``var()`` …).
    """
    tokens = _significant(_tokens(value))
    result: Dict[str, Any] = {}
    size_at: Optional[int] = None

    for index, token in enumerate(tokens):
        if token.type == "ident":
            keyword = token.lower_value
            if keyword == "normal":
                continue
            if keyword in _STYLE_KEYWORDS:
                result["font-style"] = keyword
            elif keyword == "small-caps":
                result["font-variant"] = keyword
            elif keyword in _WEIGHT_KEYWORDS:
                result["font-weight"] = keyword
            elif _STRETCH_RE.match(keyword):
                result["font-stretch"] = keyword
            elif keyword in _SIZE_KEYWORDS:
                size_at = index
                break
            else:
                return None
        elif token.type == "number" and token.is_integer and 1 <= token.int_value <= 1000:
            result["font-weight"] = str(token.int_value)
        elif token.type in ("dimension", "percentage"):
            size_at = index
            break
        elif token.type == "number" and token.value == 0:
            size_at = index
            break
        elif token.type == "function" and token.lower_name in ("calc", "clamp", "min", "max"):
            size_at = index
            break
        else:
            return None

    if size_at is None:
        return None

    result["font-size"] = tinycss2.serialize([tokens[size_at]])
    rest = tokens[size_at + 1 :]
    if rest and rest[0].type == "literal" and rest[0].value == "/":
        if len(rest) < 2:
            return None
        result["line-height"] = tinycss2.serialize([rest[1]])
        rest = rest[2:]

    families = parse_font_family(rest)
    if not families:
        return None
    result["font-family"] = families
    return result


def parse_content(value: ValueT) -> List[Tuple[str, str]]:
    """Split a ``content`` value into ``("string", text)`` and ``("attr", name)`` parts."""
    parts: List[Tuple[str, str]] = []
    for token in _tokens(value):
        if token.type == "string":
            parts.append(("string", token.value))
        elif token.type == "function" and token.lower_name == "attr":
            names = [t.value for t in _significant(token.arguments) if t.type == "ident"]
            if names:
                parts.append(("attr", names[0]))
    return parts


def content_literal(value: ValueT) -> str:
    """Only the literal strings of a ``content`` value; ``attr()`` cannot be evaluated."""
    return "".join(text for kind, text in parse_content(value) if kind == "string")


def parse_font_src(value: ValueT) -> List[Tuple[str, Optional[str]]]:
    """Return ``(url, format)`` pairs of an ``@font-face`` ``src``; ``local()`` is skipped."""
    sources: List[Tuple[str, Optional[str]]] = []
    for group in _comma_groups(_tokens(value)):
        url: Optional[str] = None
        fmt: Optional[str] = None
        for token in _significant(group):
            if token.type == "url":
                url = token.value
            elif token.type == "function" and token.lower_name in ("url", "src"):
                args = [t.value for t in _significant(token.arguments) if t.type == "string"]
                url = args[0] if args else None
            elif token.type == "function" and token.lower_name == "format":
                args = [t.value for t in _significant(token.arguments) if t.type in ("string", "ident")]
                fmt = args[0] if args else None
        if url:
            sources.append((url, fmt))
    return sources


def infer_format(url: str, declared: Optional[str] = None) -> FontFormat:
    """Format from an explicit ``format()`` hint, else from the file extension."""
    if declared:
        name = declared.strip().lower().removesuffix("-variations")
        try:
            return FontFormat(name)
        except ValueError:
            return FontFormat.UNKNOWN
    path = urlparse(url).path if "://" in url else re.sub(r"[?#].*$", "", url)
    return _EXTENSIONS.get(posixpath.splitext(path)[1].lower(), FontFormat.UNKNOWN)


def strip_state_pseudo(selector: str) -> str:
    """Remove pseudo-classes a static document can never be in (``:hover`` …)."""
    return _STATE_PSEUDO_RE.sub("", selector).strip()


def canonical_attribute(name: str, value: Optional[str]) -> str:
    value = (value or "normal").strip().lower() or "normal"
    if name == "font-weight":
        return _WEIGHT_ALIASES.get(value, value)
    return value


def font_identity(
    family: str,
    stretch: Optional[str] = None,
    weight: Optional[str] = None,
    style: Optional[str] = None,
) -> str:
    """Stable identity of a font: md5 of the family and canonical attributes."""
    key = "|".join(
        [
            family.strip().casefold(),
            canonical_attribute("font-stretch", stretch),
            canonical_attribute("font-weight", weight),
            canonical_attribute("font-style", style),
        ]
    )
    return hashlib.md5(key.encode("utf-8"), usedforsecurity=False).hexdigest()
