"""font_spider.parser: разбор CSS и HTML."""
