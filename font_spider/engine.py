# File: font_spider/engine.py
"""font_spider.engine: фасад для запуска паука из кода, CLI и тестов."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List, Optional

from font_spider.config import SpiderConfig, load_config
from font_spider.errors import format_error_chain
from font_spider.logger import logger
from font_spider.models import SpiderHooks, WebFontUsage
from font_spider.spider.controller import SourcesT, SpiderController

__all__ = ["Engine", "start_spider"]

Compressor = Callable[[WebFontUsage], Any]


async def start_spider(
    sources: SourcesT,
    config: Optional[SpiderConfig] = None,
    hooks: Optional[SpiderHooks] = None,
) -> List[WebFontUsage]:
    """
    Запускает паука над sources и возвращает список WebFontUsage.

    Parameters
    ----------
    sources : str | Path | HtmlSource | Iterable
        Пути или URL HTML-документов (можно с уже загруженным содержимым).
    config : SpiderConfig, optional
        Настройки запуска; по умолчанию SpiderConfig().
    hooks : SpiderHooks, optional
        Колбэки жизненного цикла.
    """
    controller = SpiderController(sources, config, hooks=hooks)
    return await controller.run()


class Engine:
    """Синхронная точка входа: запуск паука и передача шрифтов компрессору."""

    @staticmethod
    def load_config(path: Optional[str]) -> SpiderConfig:
        """Загружает конфиг из YAML/JSON или использует значения по умолчанию."""
        return load_config(path)

    def __init__(
        self, config: Optional[SpiderConfig] = None, hooks: Optional[SpiderHooks] = None
    ) -> None:
        self.config = config or SpiderConfig()
        self.hooks = hooks

    def run(
        self, sources: SourcesT, compressor: Optional[Compressor] = None
    ) -> List[WebFontUsage]:
        """Запускает паука; каждый найденный шрифт передаётся в compressor, если он задан."""
        previous_level = logger.level
        if self.config.debug:
            logger.setLevel(logging.DEBUG)
        logger.info("Starting spider…")

        try:
            usages = asyncio.run(start_spider(sources, self.config, self.hooks))
        except Exception as exc:
            logger.error("Spider failed: %s", format_error_chain(exc))
            raise
        finally:
            logger.setLevel(previous_level)

        if compressor is not None:
            for usage in usages:
                try:
                    compressor(usage)
                except Exception as exc:
                    logger.error("Compressing %r failed: %s", usage.family, exc)
                    raise
        return usages
