# === FILE: font_spider/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска FontSpider через командную строку.

Команды:
  run       Найти веб-шрифты HTML-документов и символы, которые они отображают
  config    Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: ./font-spider.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)
  --log-format FORMAT Формат логирования (e.g. "%(asctime)s %(levelname)s %(message)s")

Команда run опции:
  --json PATH                  Сохранить JSON-отчёт в файл
  --pretty                     Преформатировать JSON-вывод (отступ 2)
  --ignore PATTERN             Не загружать ресурсы по шаблону (можно несколько раз)
  --map PATTERN REPLACEMENT    Переписать путь регулярным выражением (можно несколько раз)
  --no-unique / --no-sort      Не удалять повторы / не сортировать символы
  --debug                      Подробное логирование паука

Дополнительно:
  --version, -v       Показать версию FontSpider

Пример:
  font-spider run index.html about.html --json fonts.json --pretty --ignore "*.eot"
"""
import sys
import asyncio
from pathlib import Path

import click
from pydantic import ValidationError

from font_spider import __version__
from font_spider.config import SpiderConfig, load_config
from font_spider.engine import start_spider
from font_spider.errors import format_error_chain
from font_spider.logger import configure
from font_spider.report.json_report import render_json, to_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='FontSpider, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML или JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='WARNING', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stderr, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд FontSpider CLI."""
    configure(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('run', context_settings=CONTEXT_SETTINGS)
@click.argument('html_files', nargs=-1, required=True)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--pretty', is_flag=True,
    help='Преформатировать JSON-вывод (отступ 2)'
)
@click.option(
    '--ignore', '-i', 'ignore',
    multiple=True,
    help='Шаблон ресурсов, которые не загружаются (* и ?)'
)
@click.option(
    '--map', '-m', 'map_rules',
    nargs=2, multiple=True,
    metavar='PATTERN REPLACEMENT',
    help='Переписать путь ресурса: регулярное выражение и замена'
)
@click.option('--unique/--no-unique', default=None, help='Удалять повторяющиеся символы')
@click.option('--sort/--no-sort', default=None, help='Сортировать символы по кодовой точке')
@click.option('--debug', is_flag=True, help='Подробное логирование паука')
@click.pass_context
def run(ctx, html_files, json_output, pretty, ignore, map_rules, unique, sort, debug):
    """Найти используемые веб-шрифты и их символы в HTML_FILES."""
    cfg: SpiderConfig = ctx.obj['config']

    overrides = {}
    if ignore:
        overrides['ignore'] = [*cfg.ignore, *ignore]
    if map_rules:
        overrides['map'] = [*cfg.map, *map_rules]
    if unique is not None:
        overrides['unique'] = unique
    if sort is not None:
        overrides['sort'] = sort
    if debug:
        overrides['debug'] = True
    if overrides:
        try:
            cfg = SpiderConfig.model_validate({**cfg.model_dump(), **overrides})
        except ValidationError as e:
            print_error(f'Неверные параметры: {e}')

    try:
        usages = asyncio.run(start_spider(list(html_files), cfg))
    except Exception as e:
        print_error(f'Ошибка при обходе: {format_error_chain(e)}')

    # Если не сохраняем в файл, печатаем в stdout
    if not json_output:
        click.echo(to_json(usages, pretty=pretty))
        return

    try:
        saved_json = render_json(usages, json_output, pretty=pretty)
        click.echo(f'JSON report: {saved_json}')
    except Exception as e:
        print_error(f'Ошибка при сохранении JSON: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


# expose these names at module level for test monkey-patching
cli.start_spider = start_spider
cli.render_json = render_json

if __name__ == "__main__":
    cli()
