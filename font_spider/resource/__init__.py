"""font_spider.resource: загрузка ресурсов и преобразование путей."""
