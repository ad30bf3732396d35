import logging
import pathlib
import shlex
import typing

import click

from . import __doc__, __version__
from .bootstrap import Bootstrap
from .config import (
    AGE_VERSION, DEFAULT_COMMAND, MISE_VERSION, SOPS_VERSION, BootstrapConfig, Config)
from .releases import Downloader
from .secrets import SecretKeeper
from .utils import find_root_directory

log = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s [%(levelname)s] : %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=(logging.DEBUG if debug else logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT)


class PathType(click.Path):
    def convert(self, value, param, ctx):
        return pathlib.Path(super().convert(value, param, ctx))


class CommandGroup(click.Group):
    """A group that prints the full usage text and exits 1 for unknown commands."""

    def resolve_command(self, ctx, args):
        name = click.utils.make_str(args[0])
        if self.get_command(ctx, name) is None and not ctx.resilient_parsing:
            configure_logging(ctx.params.get('debug', False))
            log.error(f"Unknown command: {name}")
            click.echo(ctx.get_help())
            ctx.exit(1)
        return super().resolve_command(ctx, args)


path_option = click.option(
    '-p', '--path',
    type=PathType(
        file_okay=False,
        dir_okay=True,
        exists=True),
    envvar='SECRETARY_PATH',
    default=find_root_directory,
    required=True,
    help="Defaults to the current git repository.")

debug_option = click.option(
    '-d', '--debug', 'debug',
    default=False,
    is_flag=True,
    help="Enable debug logging.")


@click.group(cls=CommandGroup, help=__doc__, invoke_without_command=True)
@path_option
@debug_option
@click.option(
    '-v', '--verbose', 'verbose',
    default=False,
    is_flag=True,
    help="Display sops' STDERR output.")
@click.option(
    '--sops-version',
    envvar='SECRETARY_SOPS_VERSION',
    default=SOPS_VERSION,
    show_default=True,
    help="Release of sops to download.")
@click.option(
    '--age-version',
    envvar='SECRETARY_AGE_VERSION',
    default=AGE_VERSION,
    show_default=True,
    help="Release of age-keygen to download.")
@click.pass_context
def main(
        ctx,
        path: pathlib.Path,
        debug: bool,
        verbose: bool,
        sops_version: str,
        age_version: str):
    configure_logging(debug)

    if ctx.invoked_subcommand is None:
        log.error("No command provided")
        click.echo(ctx.get_help())
        ctx.exit(1)

    config = Config.from_root(path, sops_version=sops_version, age_version=age_version)
    ctx.obj = SecretKeeper(config, downloader=Downloader(), verbose=verbose)


@main.command()
def version():
    """Show the application version."""
    click.echo(f"secretary {__version__}")


@main.command()
@click.pass_obj
def keygen(sk: SecretKeeper):
    """Generate a new AGE key file."""
    sk.keygen()


@main.command()
@click.pass_obj
def decrypt(sk: SecretKeeper):
    """Decrypt the secrets file."""
    sk.decrypt()


@main.command()
@click.pass_obj
def encrypt(sk: SecretKeeper):
    """Encrypt the secrets file."""
    sk.encrypt()


@main.command()
@click.pass_obj
def clean(sk: SecretKeeper):
    """Delete the decrypted plaintext file."""
    if sk.clean():
        click.echo(f"Deleted {sk.config.plaintext_file}")


@click.command(context_settings=dict(
    ignore_unknown_options=True,
    allow_interspersed_args=False))
@path_option
@debug_option
@click.option(
    '--mise-version',
    envvar='SECRETARY_MISE_VERSION',
    default=MISE_VERSION,
    show_default=True,
    help="Release of mise to install when it is missing.")
@click.option(
    '--default-command',
    envvar='SECRETARY_DEFAULT_COMMAND',
    default=' '.join(DEFAULT_COMMAND),
    show_default=True,
    help="Command to run when no command is given.")
@click.argument('command', nargs=-1, type=click.UNPROCESSED)
def bootstrap(
        path: pathlib.Path,
        debug: bool,
        mise_version: str,
        default_command: str,
        command: typing.Sequence[str]):
    """
    Install mise if it is missing, then run a command in place of this one.

    Everything after the options is executed as-is.
    """
    configure_logging(debug)
    config = BootstrapConfig.from_root(
        path,
        mise_version=mise_version,
        default_command=shlex.split(default_command))
    wrapper = Bootstrap(config, downloader=Downloader())
    wrapper.ensure()
    wrapper.exec(command)
