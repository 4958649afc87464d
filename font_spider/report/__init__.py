# File: font_spider/report/__init__.py
"""font_spider.report: сериализация результатов паука, используемая CLI и тестами."""

from font_spider.report.json_report import render_json, to_json, usages_to_data

__all__ = ["render_json", "to_json", "usages_to_data"]
