# font_spider/__init__.py
"""
FontSpider package initializer.
Defines package version and exposes the public API.
"""
__version__ = "0.1.0"

from font_spider.config import SpiderConfig, load_config
from font_spider.engine import Engine, start_spider
from font_spider.errors import FontSpiderError
from font_spider.models import HtmlSource, SpiderHooks, WebFontUsage

__all__ = [
    "__version__",
    "Engine",
    "FontSpiderError",
    "HtmlSource",
    "SpiderConfig",
    "SpiderHooks",
    "WebFontUsage",
    "load_config",
    "start_spider",
]
