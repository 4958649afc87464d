"""
Data models for FontSpider: resources, parsed CSS records and the final
per-font usage handed to the compression step.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union


class FontFormat(str, Enum):
    """Font file formats recognised in ``@font-face`` ``src`` descriptors."""

    TRUETYPE = "truetype"
    OPENTYPE = "opentype"
    WOFF = "woff"
    WOFF2 = "woff2"
    EMBEDDED_OPENTYPE = "embedded-opentype"
    SVG = "svg"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class Resource:
    """Fetched text of a local file or remote URL, immutable once loaded."""

    key: str
    content: str
    origin: str  # "local" | "remote"


@dataclass(slots=True)
class HtmlSource:
    """An HTML input: a path/URL, optionally with already-fetched contents."""

    path: str
    contents: Optional[str] = None

    @classmethod
    def coerce(cls, source: Union["HtmlSource", str, Path, Mapping[str, Any]]) -> "HtmlSource":
        if isinstance(source, HtmlSource):
            return source
        if isinstance(source, Mapping):
            contents = source.get("contents")
            if isinstance(contents, bytes):
                contents = contents.decode("utf-8", errors="replace")
            return cls(str(source["path"]), contents)
        return cls(str(source))


@dataclass(frozen=True, slots=True)
class FontFileRef:
    url: str
    format: FontFormat = FontFormat.UNKNOWN

    def to_dict(self) -> Dict[str, str]:
        return {"url": self.url, "format": self.format.value}


@dataclass(frozen=True, slots=True)
class FontFace:
    """One ``@font-face`` rule. Equal family + attributes give equal identity."""

    identity: str
    family: str
    files: Tuple[FontFileRef, ...]
    stretch: str = "normal"
    weight: str = "normal"
    style: str = "normal"

    @property
    def attributes(self) -> Dict[str, str]:
        return {"stretch": self.stretch, "weight": self.weight, "style": self.style}


@dataclass(frozen=True, slots=True)
class StyleRule:
    """An ordinary selector rule that names font families or carries ``content``."""

    selectors: Tuple[str, ...]
    families: Tuple[str, ...] = ()
    literal_chars: str = ""

    def names(self, family: str) -> bool:
        wanted = family.casefold()
        return any(name.casefold() == wanted for name in self.families)

    def matches(self, face: FontFace) -> bool:
        """True if any of the rule's ``font-family`` values names *face*'s family."""
        return self.names(face.family)

    def matched_identities(self, faces: Iterable[FontFace]) -> set[str]:
        return {face.identity for face in faces if self.matches(face)}


CssRecord = Union[FontFace, StyleRule]


@dataclass(slots=True)
class WebFontUsage:
    """Merged usage of one font identity across all documents of a run.

    ``chars`` stays empty until :meth:`finalize` turns the collected
    characters into the string handed to the compressor.
    """

    identity: str
    family: str
    files: List[FontFileRef]
    stretch: str = "normal"
    weight: str = "normal"
    style: str = "normal"
    selectors: List[str] = field(default_factory=list)
    chars: str = ""
    collected: List[str] = field(default_factory=list, repr=False)

    @classmethod
    def from_face(cls, face: FontFace) -> "WebFontUsage":
        return cls(
            identity=face.identity,
            family=face.family,
            files=list(face.files),
            stretch=face.stretch,
            weight=face.weight,
            style=face.style,
        )

    def add_selectors(self, selectors: Iterable[str]) -> None:
        self.selectors = list(dict.fromkeys([*self.selectors, *selectors]))

    def add_chars(self, text: Iterable[str]) -> None:
        self.collected.extend(text)

    def finalize(self, *, unique: bool = True, sort: bool = True) -> str:
        self.chars = finalize_chars(self.collected, unique=unique, sort=sort)
        return self.chars

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identity": self.identity,
            "family": self.family,
            "stretch": self.stretch,
            "weight": self.weight,
            "style": self.style,
            "files": [f.to_dict() for f in self.files],
            "chars": self.chars,
            "selectors": list(self.selectors),
        }


_CONTROL_CHARS = str.maketrans("", "", "\n\r\t")


def finalize_chars(chars: Iterable[str], *, unique: bool = True, sort: bool = True) -> str:
    """Dedupe (first occurrence wins), sort by code point, drop ``\\n\\r\\t``."""
    items: List[str] = [c for chunk in chars for c in chunk]
    if unique:
        items = list(dict.fromkeys(items))
    if sort:
        items.sort()
    return "".join(items).translate(_CONTROL_CHARS)


def _noop(*_args: Any) -> None:
    return None


@dataclass(slots=True)
class SpiderHooks:
    """Lifecycle callbacks invoked by the spider; all default to no-ops."""

    before_fetch: Callable[[str], Any] = _noop
    on_fetch_success: Callable[[str], Any] = _noop
    on_fetch_error: Callable[[str, Exception], Any] = _noop
    before_document_parse: Callable[[str], Any] = _noop
    after_document_parse: Callable[[str], Any] = _noop
    on_document_error: Callable[[str, Exception], Any] = _noop
