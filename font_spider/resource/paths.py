# File: font_spider/resource/paths.py
"""font_spider.resource.paths: разрешение, нормализация и фильтрация путей ресурсов.

Все функции чистые и синхронные. Любой путь, который попадает в загрузчик,
проходит фиксированный порядок: ignore → map → normalize.
"""

from __future__ import annotations

import os
import re
from typing import Callable, Iterable, Optional, Pattern, Sequence, Tuple, Union
from urllib.parse import unquote, urldefrag, urljoin, urlparse

from font_spider.logger import logger

__all__: Sequence[str] = (
    "is_remote",
    "resolve",
    "normalize",
    "dirname",
    "ignore_filter",
    "map_filter",
    "PathPipeline",
)

PatternT = Union[str, Pattern[str]]

_REMOTE_RE = re.compile(r"^https?://", re.IGNORECASE)
_QUERY_OR_FRAGMENT_RE = re.compile(r"[?#].*$", re.DOTALL)


def is_remote(key: str) -> bool:
    """True, если ключ — абсолютный http(s) URL."""
    return bool(_REMOTE_RE.match(key))


def resolve(base: str, ref: str) -> str:
    """Делает ссылку абсолютной относительно каталога *base* (локального или удалённого)."""
    ref = ref.strip()
    if is_remote(ref):
        return ref
    if ref.startswith("//"):
        return urljoin(base, ref) if is_remote(base) else f"https:{ref}"
    if is_remote(base):
        return urljoin(base, ref)
    if ref.lower().startswith("file://"):
        return unquote(urlparse(ref).path)
    return os.path.normpath(os.path.join(base, ref))


def normalize(key: str) -> str:
    """Удаляет фрагмент (и query для локальных путей), канонизирует локальный путь."""
    if is_remote(key):
        url, _fragment = urldefrag(key)
        return url
    path = unquote(_QUERY_OR_FRAGMENT_RE.sub("", key))
    return os.path.normpath(path) if path else path


def dirname(key: str) -> str:
    """Каталог ресурса: для URL — с завершающим слешем, чтобы urljoin работал."""
    if is_remote(key):
        return urljoin(key, ".")
    return os.path.dirname(key)


def _compile_ignore(pattern: PatternT) -> Callable[[str], bool]:
    if isinstance(pattern, re.Pattern):
        return lambda key: bool(pattern.search(key))
    esc = re.escape(pattern).replace(r"\*", ".*").replace(r"\?", ".")
    regex = re.compile(f"(?:^|/){esc}$")
    return lambda key: bool(regex.search(key))


def ignore_filter(patterns: Iterable[PatternT]) -> Callable[[str], bool]:
    """Компилирует шаблоны один раз; возвращает предикат «ресурс игнорируется»."""
    matchers = [_compile_ignore(p) for p in patterns]

    def is_ignored(key: str) -> bool:
        return any(match(key) for match in matchers)

    return is_ignored


def map_filter(rules: Iterable[Tuple[PatternT, str]]) -> Callable[[str], str]:
    """Компилирует пары [шаблон, замена]; применяет их по порядку как глобальную замену."""
    compiled = [
        (re.compile(pattern) if isinstance(pattern, str) else pattern, replacement)
        for pattern, replacement in rules
    ]

    def rewrite(key: str) -> str:
        for regex, replacement in compiled:
            key = regex.sub(replacement, key)
        return key

    return rewrite


class PathPipeline:
    """resolve → ignore → map → normalize для ссылок из HTML и CSS."""

    def __init__(
        self,
        ignore: Iterable[PatternT] = (),
        rules: Iterable[Tuple[PatternT, str]] = (),
    ) -> None:
        self.is_ignored = ignore_filter(ignore)
        self.rewrite = map_filter(rules)

    @classmethod
    def from_config(cls, config) -> PathPipeline:
        return cls(config.ignore, config.map)

    def __call__(self, base: str, ref: str) -> Optional[str]:
        """Возвращает ключ ресурса или None, если ссылка игнорируется."""
        ref = ref.strip()
        if not ref or ref.lower().startswith(("data:", "javascript:", "about:")):
            return None
        resolved = resolve(base, ref)
        if self.is_ignored(normalize(resolved)):
            logger.debug("Ignored resource: %s", resolved)
            return None
        key = normalize(self.rewrite(resolved))
        if key != normalize(resolved):
            logger.debug("Mapped resource: %s -> %s", resolved, key)
        return key
