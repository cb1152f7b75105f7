import contextlib
import enum
import logging
import os
import pathlib
import shutil
import tempfile
import typing

import attr
import click

from .age import Age, Encryptor
from .config import Config
from .mirror import VersionControl
from .recipients import RecipientList
from .utils import (
    DotageException,
    NotTracked,
    SecretNotFound,
    Unchanged,
    diff_lines,
    style_diff,
)

log = logging.getLogger(__name__)

SUFFIX = '.age'
PLAINTEXT_MODE = 0o600


def read_text(path: pathlib.Path) -> str:
    """Read a file for display, replacing bytes that aren't UTF-8."""
    return path.read_bytes().decode('utf-8', errors='replace')


class Freshness(enum.Enum):
    LOCAL_NEWER = 'local newer'
    REMOTE_NEWER_OR_EQUAL = 'remote newer'
    NOT_COMPARABLE = 'not comparable'


class Reason(enum.Enum):
    NOT_FOUND = 'not found'
    NOT_TRACKED = 'not tracked'


class Outcome(enum.Enum):
    UPDATED = 'updated'
    UNCHANGED = 'unchanged'
    SKIPPED = 'skipped'
    DECLINED = 'declined'
    COMMITTED = 'committed'


@attr.s(frozen=True, kw_only=True)
class Comparison:
    """
    The result of comparing a plaintext file against its encrypted copy.

    Timestamps are whole seconds; the local one is the plaintext's
    modification time and the remote one is the time of the latest commit
    that touched the encrypted file.
    """

    local_mtime: typing.Optional[int] = attr.ib(default=None)
    remote_time: typing.Optional[int] = attr.ib(default=None)
    reason: typing.Optional[Reason] = attr.ib(default=None)

    @property
    def freshness(self) -> Freshness:
        if self.reason is not None:
            return Freshness.NOT_COMPARABLE
        if self.local_mtime > self.remote_time:
            return Freshness.LOCAL_NEWER
        return Freshness.REMOTE_NEWER_OR_EQUAL

    def __str__(self):
        if self.reason is not None:
            return self.reason.value
        return self.freshness.value


@attr.s(frozen=True, kw_only=True)
class Secret:
    name: str = attr.ib()
    encrypted: pathlib.Path = attr.ib()
    decrypted: pathlib.Path = attr.ib()

    def __attrs_post_init__(self):
        if self.encrypted.suffix != SUFFIX:
            raise DotageException(
                f"I don't know how to decrypt {self.encrypted.name}")

    def __str__(self):
        return self.name

    def plaintext(self) -> str:
        log.debug(f"Reading contents of {self.decrypted}")
        return read_text(self.decrypted)


@attr.s(frozen=True, kw_only=True)
class SecretKeeper:
    """Keeps a project's plaintext files in step with the mirror."""

    project: str = attr.ib()
    config: Config = attr.ib()
    vcs: VersionControl = attr.ib()
    directory: pathlib.Path = attr.ib(factory=pathlib.Path.cwd)
    encryptor: Encryptor = attr.ib(factory=Age)
    confirm: typing.Callable[[str], bool] = attr.ib(default=click.confirm)

    @property
    def project_dir(self) -> pathlib.Path:
        return self.config.mirror / self.project

    def secret(self, name: str) -> Secret:
        if pathlib.PurePath(name).name != name or name in ('', '.', '..'):
            raise DotageException(
                f"{name!r} is not a file name in the project root")
        return Secret(
            name=name,
            encrypted=self.project_dir / f"{name}{SUFFIX}",
            decrypted=self.directory / name)

    def __getitem__(self, name: str) -> Secret:
        return self.secret(name)

    def __iter__(self) -> typing.Iterator[Secret]:
        if not self.project_dir.is_dir():
            return iter(())
        encrypted = sorted(
            p for p in self.project_dir.glob(f'*{SUFFIX}') if p.is_file())
        return iter([self.secret(p.name[:-len(SUFFIX)]) for p in encrypted])

    def compare(self, secret: Secret) -> Comparison:
        if not secret.decrypted.exists() or not secret.encrypted.exists():
            return Comparison(reason=Reason.NOT_FOUND)

        remote_time = self.vcs.last_commit_time(secret.encrypted)
        if remote_time is None:
            return Comparison(reason=Reason.NOT_TRACKED)

        local_mtime = int(secret.decrypted.stat().st_mtime)
        log.debug(f"{secret}: local {local_mtime}, remote {remote_time}")
        return Comparison(local_mtime=local_mtime, remote_time=remote_time)

    @contextlib.contextmanager
    def decrypted(self, secret: Secret) -> typing.Iterator[pathlib.Path]:
        """Decrypt a secret into a temporary file that is removed afterwards."""
        if not secret.encrypted.exists():
            log.warning(f"{secret.encrypted} does not exist")
            raise SecretNotFound(f"No encrypted copy of {secret} in {self.project_dir}")

        with tempfile.TemporaryDirectory(prefix='dotage-') as directory:
            output = pathlib.Path(directory) / secret.name
            self.encryptor.decrypt(secret.encrypted, output, self.config.identity)
            yield output

    def contents(self, secret: Secret) -> bytes:
        with self.decrypted(secret) as path:
            return path.read_bytes()

    def update(self, force: bool = False) -> typing.Iterator[typing.Tuple[Secret, Outcome]]:
        """Bring plaintext files up to date with the mirror."""
        self.vcs.pull()
        for secret in self:
            yield secret, self.update_secret(secret, force=force)

    def update_secret(self, secret: Secret, force: bool = False) -> Outcome:
        if not secret.decrypted.exists():
            with self.decrypted(secret) as remote:
                shutil.copyfile(remote, secret.decrypted)
            os.chmod(secret.decrypted, PLAINTEXT_MODE)
            log.info(f"Created {secret.decrypted} from {secret.encrypted}")
            return Outcome.UPDATED

        comparison = self.compare(secret)
        if comparison.freshness is Freshness.LOCAL_NEWER and not force:
            log.info(f"{secret} is newer than the mirror ({comparison})")
            return Outcome.SKIPPED

        with self.decrypted(secret) as remote:
            if remote.read_bytes() == secret.decrypted.read_bytes():
                return Outcome.UNCHANGED

            diff = diff_lines(
                secret.plaintext(), read_text(remote),
                f"local/{secret}", f"remote/{secret}")
            if not self.confirm(f"{style_diff(diff)}\nUpdate {secret} with these changes?"):
                return Outcome.DECLINED

            shutil.copyfile(remote, secret.decrypted)
            log.info(f"Updated {secret.decrypted} from {secret.encrypted}")
            return Outcome.UPDATED

    def commit(self, name: str, message: typing.Optional[str] = None) -> Outcome:
        """Encrypt a plaintext file into the mirror, commit it and push it."""
        secret = self.secret(name)
        if not secret.decrypted.exists():
            raise SecretNotFound(f"{secret.decrypted} does not exist")

        self.vcs.pull()

        if secret.encrypted.exists():
            with self.decrypted(secret) as remote:
                if remote.read_bytes() == secret.decrypted.read_bytes():
                    raise Unchanged(f"unchanged {secret}")
                diff = diff_lines(
                    read_text(remote), secret.plaintext(),
                    f"remote/{secret}", f"local/{secret}")

            comparison = self.compare(secret)
            if comparison.freshness is Freshness.REMOTE_NEWER_OR_EQUAL:
                prompt = (
                    f"{style_diff(diff)}\n"
                    f"The mirror's {secret} is as new as or newer than yours, "
                    f"commit anyway?")
                if not self.confirm(prompt):
                    return Outcome.DECLINED

        recipients = RecipientList.require(self.directory, self.config)
        self.encryptor.encrypt(secret.decrypted, secret.encrypted, recipients.path)
        self.vcs.commit(secret.encrypted, message or f"update {secret}")
        self.vcs.push()
        return Outcome.COMMITTED

    def history(self, name: str) -> str:
        secret = self.secret(name)
        if self.vcs.last_commit_time(secret.encrypted) is None:
            raise NotTracked(f"{secret.encrypted} has never been committed")
        return self.vcs.log(secret.encrypted)
