"""Configuration management commands."""
import click

from ..config import Config, dump_config_env, dump_config_toml, get_config

FORMATS = click.Choice(['toml', 'env'])


def _render(cfg: Config, fmt: str) -> str:
    return dump_config_env(cfg) if fmt == 'env' else dump_config_toml(cfg)


@click.group()
def config():
    """Configuration management commands."""
    pass


@config.command("show")
@click.option('--format', 'fmt', type=FORMATS, default='toml', help='Output format: toml or env')
def show(fmt):
    """Show current effective configuration."""
    click.echo(_render(get_config(), fmt))


@config.command("defaults")
@click.option('--format', 'fmt', type=FORMATS, default='toml', help='Output format: toml or env')
def defaults(fmt):
    """Show built-in default configuration."""
    click.echo(_render(Config(), fmt))
