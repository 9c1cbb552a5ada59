# === FILE: page_mirror/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска PageMirror через командную строку.

Команды:
  fetch URL...   Скачать страницы (снимок <host>.html); по флагам метаданные и зеркало
  config         Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования (e.g. "%(asctime)s %(levelname)s %(message)s")

Команда fetch опции:
  --metadata, -m      Вывести метаданные страниц (ссылки, изображения, время)
  --mirror            Сохранить зеркало страниц вместе с ресурсами
  --output-dir, -o    Корень вывода (override output_dir / OUTPUT_DIRECTORY)
  --json PATH         Сохранить JSON-отчёт в файл
  --html PATH         Сохранить HTML-отчёт в файл
  --template DIR      Папка с Jinja2-шаблонами
  --pretty            Преформатировать JSON-отчёт (отступ 2)

Дополнительно:
  --version, -v       Показать версию PageMirror

Пример:
  page-mirror fetch https://example.com https://example.org --metadata --mirror -o ./mirrors
"""
import asyncio
import json
import sys
from pathlib import Path

import click

from page_mirror import __version__
from page_mirror.config import load_config
from page_mirror.engine import process
from page_mirror.logger import init_logging, logger
from page_mirror.report.html_report import render_html
from page_mirror.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='PageMirror, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд PageMirror CLI."""
    init_logging(
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


@cli.command('fetch', context_settings=CONTEXT_SETTINGS)
@click.argument('urls', nargs=-1, required=True)
@click.option('--metadata', '-m', is_flag=True, help='Вывести метаданные страниц')
@click.option('--mirror', is_flag=True, help='Сохранить зеркало страниц и их ресурсов')
@click.option(
    '--output-dir', '-o', 'output_dir',
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help='Корень вывода (override output_dir)'
)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Папка с Jinja2-шаблонами (по умолчанию встроенные)'
)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-отчёт (отступ 2)')
@click.pass_context
def fetch(ctx, urls, metadata, mirror, output_dir, json_output, html_output, template_dir, pretty):
    """Скачать страницы и, по флагам, вывести метаданные и сохранить зеркало."""
    cfg = ctx.obj['config']
    if output_dir is not None:
        cfg = cfg.model_copy(update={'output_dir': output_dir.expanduser()})
    logger.info('Using output directory: %s', cfg.output_dir)
    logger.info('Metadata: %s, Mirror: %s', metadata, mirror)

    try:
        report = asyncio.run(process(list(urls), cfg, mirror=mirror, metadata=metadata))
    except Exception as e:
        print_error(f'Ошибка при обработке: {e}')

    totals = report.totals
    click.echo(
        f"Pages mirrored: {totals['pages_ok']}/{totals['pages']}, "
        f"assets saved: {totals['assets_saved']}, assets failed: {totals['assets_failed']}, "
        f"snapshots: {totals['snapshots_ok']}/{len(report.snapshots)}"
    )
    if metadata:
        for snap in report.snapshots:
            if snap["metadata"]:
                click.echo(f"Metadata: {json.dumps(snap['metadata'], ensure_ascii=False)}")

    if json_output:
        try:
            saved_json = render_json(report, json_output, pretty=pretty)
            click.echo(f'JSON report: {saved_json}')
        except Exception as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(report, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
