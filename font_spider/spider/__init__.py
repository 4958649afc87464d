"""font_spider.spider: разбор отдельных документов и сведение результатов."""

from font_spider.spider.controller import SpiderController, merge_documents
from font_spider.spider.resolver import DocumentUsage, FontUsageResolver

__all__ = ["DocumentUsage", "FontUsageResolver", "SpiderController", "merge_documents"]
