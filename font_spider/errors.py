"""
Иерархия исключений FontSpider.

Каждая ошибка хранит контекст (файл, строку, селектор), чтобы вызывающая
сторона могла показать пользователю, где именно произошёл сбой.
"""
from __future__ import annotations

from typing import List, Optional

__all__ = [
    "FontSpiderError",
    "ResourceError",
    "CssParseError",
    "ImportLimitExceeded",
    "HtmlParseError",
    "SelectorQueryError",
    "DocumentError",
    "format_error_chain",
]


class FontSpiderError(Exception):
    """Базовый класс для всех ошибок пакета."""


class ResourceError(FontSpiderError):
    """Не удалось загрузить ресурс (файл, URL, таймаут, HTTP-статус)."""

    def __init__(self, key: str, cause: str) -> None:
        self.key = key
        self.cause = cause
        super().__init__(f'load "{key}" failed: {cause}')


class CssParseError(FontSpiderError):
    """Токенизатор CSS отверг содержимое таблицы стилей."""

    def __init__(self, file: str, message: str, line: Optional[int] = None) -> None:
        self.file = file
        self.line = line
        self.message = message
        where = f"{file}:{line}" if line is not None else file
        super().__init__(f'parse "{where}" failed: {message}')


class ImportLimitExceeded(FontSpiderError):
    """Цепочка @import глубже допустимого (обычно это цикл импортов)."""

    def __init__(self, file: str, limit: int) -> None:
        self.file = file
        self.limit = limit
        super().__init__(f'@import "{file}" exceeds the limit of {limit} nested imports')


class HtmlParseError(FontSpiderError):
    """HTML-документ не удалось разобрать."""

    def __init__(self, file: str, message: str) -> None:
        self.file = file
        self.message = message
        super().__init__(f'parse "{file}" failed: {message}')


class SelectorQueryError(FontSpiderError):
    """Селектор не поддерживается движком запросов."""

    def __init__(self, selector: str, message: str) -> None:
        self.selector = selector
        self.message = message
        super().__init__(f'query "{selector}" failed: {message}')


class DocumentError(FontSpiderError):
    """Внешний контекст для любой ошибки, из-за которой документ не обработан."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f'spider "{path}" failed')


def format_error_chain(exc: BaseException) -> str:
    """Склеивает цепочку ``__cause__`` от внешнего контекста к первопричине."""
    parts: List[str] = []
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        parts.append(str(current) or type(current).__name__)
        current = current.__cause__
    return ": ".join(parts)
