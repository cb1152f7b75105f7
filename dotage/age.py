import logging
import pathlib
import subprocess
import typing

import attr

from .utils import DotageException

log = logging.getLogger(__name__)


class Encryptor:
    def encrypt(
            self,
            plaintext: pathlib.Path,
            encrypted: pathlib.Path,
            recipients: pathlib.Path) -> None:
        raise NotImplementedError

    def decrypt(
            self,
            encrypted: pathlib.Path,
            decrypted: pathlib.Path,
            identity: pathlib.Path) -> None:
        raise NotImplementedError


@attr.s(frozen=True)
class Age(Encryptor):
    verbose: bool = attr.ib(default=False)
    parents: bool = attr.ib(default=True)
    binary: str = attr.ib(default='age')

    def command(self, arguments: typing.Sequence[str]) -> typing.Tuple[str, ...]:
        return (self.binary, *arguments)

    def run(self, arguments: typing.Sequence[str]) -> subprocess.CompletedProcess:
        command = self.command(arguments)
        log.debug(f"Running {' '.join(command)}")
        try:
            result = subprocess.run(
                command,
                encoding='utf-8',
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=True)
        except FileNotFoundError:
            raise DotageException(
                f"Could not run '{self.binary}' - is age installed?")
        except subprocess.CalledProcessError as error:
            for line in error.stderr.splitlines():
                log.error(line)
            raise DotageException(
                f"'{self.binary}' exited with status {error.returncode}")

        if self.verbose:
            for line in result.stderr.splitlines():
                log.warning(line)
        return result

    def encrypt(
            self,
            plaintext: pathlib.Path,
            encrypted: pathlib.Path,
            recipients: pathlib.Path) -> None:
        """Encrypt a file to every key listed in a recipients file."""
        log.debug(f"Encrypting {plaintext} to {encrypted} for {recipients}")

        if not encrypted.parent.exists():
            if self.parents:
                encrypted.parent.mkdir(parents=True)
            else:
                raise DotageException(
                    f"Directory {encrypted.parent} does not exist")

        self.run([
            '--encrypt',
            '--recipients-file', str(recipients),
            '--output', str(encrypted),
            str(plaintext),
        ])

    def decrypt(
            self,
            encrypted: pathlib.Path,
            decrypted: pathlib.Path,
            identity: pathlib.Path) -> None:
        log.debug(f"Decrypting {encrypted} to {decrypted} with {identity}")
        self.run([
            '--decrypt',
            '--identity', str(identity),
            '--output', str(decrypted),
            str(encrypted),
        ])
