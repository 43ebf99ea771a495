"""Main CLI entry point for roomrec."""
import os

import click

from .config import config
from .record import record
from .server import server


@click.group()
@click.option('--log-level', default='INFO', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Set logging level')
@click.version_option(package_name='roomrec')
def cli(log_level):
    """Encoder-backed room recording service."""
    os.environ['ROOMREC_LOG_LEVEL'] = log_level


cli.add_command(server)
cli.add_command(record)
cli.add_command(config)


def main():
    cli()
