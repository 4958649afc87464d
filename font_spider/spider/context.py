# font_spider/spider/context.py
"""
State owned by one spider run: configuration, hooks, loader and the
interpreters with their caches. Every document task of the run receives the
same context; two runs never share one.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from font_spider.config import SpiderConfig
from font_spider.errors import FontSpiderError
from font_spider.models import SpiderHooks
from font_spider.parser.css_parser import CssInterpreter
from font_spider.parser.html_parser import HtmlInterpreter
from font_spider.resource.loader import ResourceLoader
from font_spider.resource.paths import PathPipeline


@dataclass(slots=True)
class SpiderContext:
    config: SpiderConfig
    hooks: SpiderHooks
    loader: ResourceLoader
    pipeline: PathPipeline
    css: CssInterpreter
    html: HtmlInterpreter
    errors: List[FontSpiderError] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        config: SpiderConfig,
        loader: ResourceLoader,
        hooks: Optional[SpiderHooks] = None,
        errors: Optional[List[FontSpiderError]] = None,
    ) -> SpiderContext:
        errors = [] if errors is None else errors
        pipeline = PathPipeline.from_config(config)
        return cls(
            config=config,
            hooks=hooks or loader.hooks,
            loader=loader,
            pipeline=pipeline,
            css=CssInterpreter(loader, pipeline, config, errors=errors),
            html=HtmlInterpreter(pipeline),
            errors=errors,
        )
