import functools
import logging
import pathlib
import typing

import attr
import click

from . import __doc__, __version__
from .age import Age
from .api import keeper
from .config import Config
from .forge import Forge
from .mirror import Mirror
from .recipients import RecipientList, append, resolve
from .secrets import Outcome, Secret, SecretKeeper

log = logging.getLogger(__name__)


def enc(sk: SecretKeeper, secret: Secret) -> str:
    """Style a path to an encrypted file."""
    return click.style(str(secret.encrypted.relative_to(sk.config.mirror)), fg='green')


def dec(secret: Secret) -> str:
    """Style the name of a plaintext file."""
    return click.style(secret.name, fg='red')


class PathType(click.Path):
    def convert(self, value, param, ctx):
        return pathlib.Path(super().convert(value, param, ctx))


class AliasedGroup(click.Group):
    aliases = {'up': 'update'}

    def get_command(self, ctx, cmd_name):
        return super().get_command(ctx, self.aliases.get(cmd_name, cmd_name))


@attr.s(frozen=True)
class Options:
    config: Config = attr.ib()
    age: Age = attr.ib()
    verbose: bool = attr.ib(default=False)


def pass_keeper(f):
    """Run a command with a SecretKeeper for the project in the current directory."""
    @click.pass_obj
    @functools.wraps(f)
    def wrapper(options: Options, *args, **kwargs):
        sk = keeper(pathlib.Path.cwd(), config=options.config, age=options.age)
        return f(sk, *args, **kwargs)
    return wrapper


@click.group(cls=AliasedGroup, help=__doc__, invoke_without_command=True)
@click.option(
    '--home',
    type=PathType(file_okay=False, dir_okay=True),
    envvar='DOTAGE_HOME',
    default=None,
    help="Defaults to ~/.config/dotage.")
@click.option(
    '-d', '--debug', 'debug',
    default=False,
    is_flag=True,
    help="Enable debug logging.")
@click.option(
    '-v', '--verbose', 'verbose',
    default=False,
    is_flag=True,
    help="Report unchanged files and display age's STDERR output.")
@click.pass_context
def main(
        ctx,
        home: typing.Optional[pathlib.Path],
        debug: bool,
        verbose: bool):
    logging.basicConfig(level=(logging.DEBUG if debug else logging.WARNING))
    ctx.obj = Options(
        config=Config.load(home),
        age=Age(verbose=verbose),
        verbose=verbose)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)


@main.command()
def version():
    """Show the application version."""
    click.echo(f"dotage {__version__}")


@main.command()
@click.argument('url', type=click.STRING)
@click.pass_obj
def init(options: Options, url: str):
    """Clone the shared repository of encrypted files."""
    Mirror(options.config.mirror).clone(url)
    click.echo(f"Cloned {url} into {options.config.mirror}")


@main.command()
@click.argument(
    'path',
    type=PathType(exists=True, file_okay=True, dir_okay=False))
@click.pass_obj
def privkey(options: Options, path: pathlib.Path):
    """Set the private key used to decrypt files."""
    link = options.config.set_privkey(path)
    click.echo(f"Decrypting with {path} (linked from {link})")


@main.command()
@click.argument('hostname', type=click.STRING)
@click.pass_obj
def forge(options: Options, hostname: str):
    """Set the forge that usernames are looked up on."""
    options.config.set_forge(hostname)
    click.echo(f"Looking up keys on {hostname}")


@main.command()
@click.argument(
    'mode',
    type=click.Choice(['force']),
    required=False,
    default=None)
@click.option(
    '--force/--no-force',
    default=False,
    help="Update files that are newer than the mirror.")
@pass_keeper
@click.pass_obj
def update(options: Options, sk: SecretKeeper, mode: typing.Optional[str], force: bool):
    """
    Decrypt files from the shared repository into the project.

    Files that don't exist are created. Files that differ from the shared
    copy are updated after showing the changes and asking for confirmation.
    Files modified more recently than the shared copy was committed are
    skipped unless forced.
    """
    for secret, outcome in sk.update(force=(force or mode == 'force')):
        if outcome is Outcome.UPDATED:
            click.echo(f"updated {dec(secret)}")
        elif outcome is Outcome.SKIPPED:
            click.echo(f"skip {dec(secret)}, newer than remote")
        elif outcome is Outcome.UNCHANGED and options.verbose:
            click.echo(f"unchanged {dec(secret)}")


@main.command()
@click.argument('tokens', type=click.STRING, nargs=-1, required=True)
@pass_keeper
@click.pass_obj
def addkeys(options: Options, sk: SecretKeeper, tokens: typing.Sequence[str]):
    """
    Add recipients to the project's recipient list.

    Each token is either a public key, added as it is, or a username on the
    configured forge whose published keys are fetched and added. Review the
    result before committing it.
    """
    lines = resolve(tokens, Forge(options.config.forge))
    click.echo(append(RecipientList.local(sk.directory).path, lines), nl=False)


@main.command()
@click.argument('file', type=click.STRING)
@click.argument('message', type=click.STRING, required=False, default=None)
@pass_keeper
def commit(sk: SecretKeeper, file: str, message: typing.Optional[str]):
    """Encrypt a file into the shared repository, commit it and push it."""
    outcome = sk.commit(file, message)
    secret = sk[file]
    if outcome is Outcome.DECLINED:
        click.echo(f"Not committing {dec(secret)}")
    else:
        click.echo(f"Committed {dec(secret)} to {enc(sk, secret)}")


@main.command(name='log')
@click.argument('file', type=click.STRING)
@pass_keeper
def history(sk: SecretKeeper, file: str):
    """Show the history of a file in the shared repository."""
    click.echo_via_pager(sk.history(file))


@main.command()
@pass_keeper
def ls(sk: SecretKeeper):
    """List the project's encrypted files and how they compare."""
    for secret in sk:
        click.echo(f"{enc(sk, secret)} -> {dec(secret)} ({sk.compare(secret)})")


@main.command()
@click.argument('files', type=click.STRING, nargs=-1, required=True)
@pass_keeper
def cat(sk: SecretKeeper, files: typing.Sequence[str]):
    """Print the contents of the shared copy of files."""
    for file in files:
        click.echo(sk.contents(sk[file]), nl=False)
