"""
recex CLI commands

This module provides the command-line interface for parsing and validating
receipt text.
"""

import json
import logging
from datetime import datetime

import click

from recex.config.receipt_config import ReceiptConfig
from recex.exceptions import ConfigurationError
from recex.processors.receipt.backfill import format_rate
from recex.processors.receipt.pipeline import ReceiptPipeline
from recex.processors.receipt.validator import format_validation_messages

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _load_config(config_path):
    try:
        if config_path:
            return ReceiptConfig.from_file(config_path)
        return ReceiptConfig.load_default()
    except ConfigurationError as e:
        click.echo(f'Error: {e}', err=True)
        raise click.Abort()


@click.group()
@click.option('--log-level', type=click.Choice(LOG_LEVELS), default='WARNING', help='Logging level')
def cli(log_level):
    """recex command-line interface"""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@cli.command()
@click.argument('file', type=click.File('r', encoding='utf-8'))
@click.option('--validate', 'run_validation', is_flag=True, help='Validate the parsed invoice')
@click.option('--apply-corrections', is_flag=True, help='Apply suggested corrections (implies --validate)')
@click.option('--today', help='Reference date for the future-date check (YYYY-MM-DD)')
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Path to configuration file')
@click.option('--text', 'as_text', is_flag=True, help='Print validation messages as text instead of JSON')
def parse(file, run_validation, apply_corrections, today, config_path, as_text):
    """Parse a receipt text FILE ('-' for standard input) and print the invoice as JSON"""
    config = _load_config(config_path)

    reference_date = None
    if today:
        try:
            reference_date = datetime.strptime(today, '%Y-%m-%d').date()
        except ValueError:
            raise click.BadParameter(f'Invalid date: {today}', param_hint='--today')

    pipeline = ReceiptPipeline(config, apply_corrections=apply_corrections, today=reference_date)
    result = pipeline.process(file.read())

    if not result.success:
        click.echo(f'Error: {result.error}', err=True)
        raise click.Abort()

    if as_text and (run_validation or apply_corrections):
        click.echo(format_validation_messages(result.validation) or 'No issues found')
        return

    output = {'invoice': result.invoice.to_dict()}
    if run_validation or apply_corrections:
        output['validation'] = result.validation.to_dict()
        output['status'] = result.status.value
        output['corrected'] = result.corrected
    click.echo(json.dumps(output, indent=2, ensure_ascii=False))


@cli.command()
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Path to configuration file')
def merchants(config_path):
    """List the known merchants and their tax profiles"""
    config = _load_config(config_path)

    if not config.known_merchants:
        click.echo('No known merchants configured')
        return

    for merchant in config.known_merchants:
        click.echo(f'{merchant.name} ({merchant.key})')
        if merchant.website:
            click.echo(f'  Website: {merchant.website}')
        if merchant.variations:
            click.echo(f'  Variations: {", ".join(merchant.variations)}')
        for name, rate in merchant.tax_rates.items():
            click.echo(f'  {name}: {format_rate(rate)}%')


if __name__ == '__main__':
    cli()
