# font_spider/report/json_report.py

"""
Генерация JSON-отчёта для проекта FontSpider.

Сериализация списка WebFontUsage в строку или файл.
"""
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List

from font_spider.models import WebFontUsage


def usages_to_data(usages: Iterable[WebFontUsage]) -> List[Dict[str, Any]]:
    """Список словарей в порядке шрифтов: family, identity, files, chars, selectors."""
    return [usage.to_dict() for usage in usages]


def to_json(usages: Iterable[WebFontUsage], *, pretty: bool = False) -> str:
    return json.dumps(usages_to_data(usages), ensure_ascii=False, indent=2 if pretty else None)


def render_json(usages: Iterable[WebFontUsage], output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Сохраняет отчёт в формате JSON по указанному пути.

    :param usages: результат паука (список WebFontUsage)
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла

    Пример:
    ```python
    from font_spider.report.json_report import render_json
    report_path = render_json(usages, 'reports/fonts.json')
    print(f"JSON report saved to: {report_path}")
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    # Запись в файл с Unicode: символы шрифта должны читаться как есть
    with output.open('w', encoding='utf-8') as f:
        f.write(to_json(usages, pretty=pretty))

    return output
