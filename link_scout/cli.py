# === FILE: link_scout/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска LinkScout через командную строку.

Команды:
  check     Проверить все ссылки документа и вывести отчёт
  config    Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: link_scout.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)
  --log-format FORMAT Формат логирования

Команда check опции:
  --document PATH        Markdown-документ (override document)
  --results PATH         Файл кеша результатов (override results)
  --max-connections INT  Максимум одновременных запросов
  --reset-cache          Забыть ранее подтверждённые рабочие URL
  --json PATH            Сохранить JSON-отчёт в файл

Дополнительно:
  --version, -v       Показать версию LinkScout

Пример:
  link-scout check --document README.md --results results.yaml
"""
import asyncio
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from link_scout import __version__
from link_scout.config import load_config
from link_scout.engine import start_check
from link_scout.logger import init_logging
from link_scout.parser.markdown_parser import ExtractionError
from link_scout.report import render_json, report_lines

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='LinkScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
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
    """Группа команд LinkScout CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except (OSError, ValueError, TypeError, ValidationError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('check', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--document', '-d', 'document',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Markdown-документ для проверки (override document)'
)
@click.option(
    '--results', '-r', 'results',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Файл кеша результатов (override results)'
)
@click.option(
    '--max-connections', '-n', 'max_connections',
    type=click.IntRange(min=1),
    default=None,
    help='Максимум одновременных запросов'
)
@click.option(
    '--reset-cache', is_flag=True,
    help='Перепроверить и ранее рабочие URL'
)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.pass_context
def check(ctx, document, results, max_connections, reset_cache, json_output):
    """Проверить ссылки документа; код выхода 1, если есть нерабочие."""
    cfg = ctx.obj['config']
    overrides = {
        key: value
        for key, value in (
            ('document', document),
            ('results', results),
            ('max_connections', max_connections),
        )
        if value is not None
    }
    if overrides:
        cfg = cfg.model_copy(update=overrides)

    try:
        summary = asyncio.run(start_check(cfg, reset_cache=reset_cache))
    except ExtractionError as e:
        print_error(f'Ошибка разбора документа: {e}')
    except OSError as e:
        print_error(f'Ошибка при проверке: {e}')

    click.echo('')
    for line in report_lines(summary):
        click.echo(line)

    if json_output:
        try:
            saved_json = render_json(summary, json_output)
            click.echo(f'JSON report: {saved_json}')
        except OSError as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if not summary.ok:
        ctx.exit(1)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
