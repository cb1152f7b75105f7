"""
Recipient lists name everyone who can decrypt a project's files.

A recipient list has one entry per line. Lines starting with '#' are comments,
except that a first line of '# repo=<name>' sets the project's name in the
mirror. Every other line is a public key that age accepts as a recipient.
"""

import logging
import pathlib
import re
import typing

import attr

from .config import Config
from .forge import KeyFetcher
from .utils import ConfigMissing

log = logging.getLogger(__name__)

FILENAME = '.age-recipients'
KEY_PREFIXES = ('age1', 'ssh-ed25519 ', 'ssh-rsa ', 'sk-ssh-', 'ecdsa-sha2-')
REPO_DIRECTIVE = re.compile(r'^#\s*repo=(?P<name>\S+)\s*$')


def is_key(token: str) -> bool:
    return token.startswith(KEY_PREFIXES)


def resolve(tokens: typing.Iterable[str], fetcher: KeyFetcher) -> typing.List[str]:
    """
    Convert keys and forge usernames into recipient list lines.

    Keys are passed through unchanged. Usernames become a comment naming the
    URL their keys were fetched from followed by each fetched key.
    """
    lines: typing.List[str] = []
    for token in tokens:
        if is_key(token):
            lines.append(token)
            continue

        log.info(f"Treating {token!r} as a username on {fetcher.host}")
        lines.append(f"# {fetcher.url(token)}")
        lines.extend(fetcher.fetch(token))
    return lines


def append(path: pathlib.Path, lines: typing.Sequence[str]) -> str:
    """Append lines to a recipient list, creating it if needed."""
    text = path.read_text() if path.exists() else ''
    if text and not text.endswith('\n'):
        text += '\n'
    text += ''.join(f"{line}\n" for line in lines)
    path.write_text(text)
    log.info(f"Added {len(lines)} lines to {path}")
    return text


@attr.s(frozen=True)
class RecipientList:
    path: pathlib.Path = attr.ib()

    @classmethod
    def local(cls, directory: pathlib.Path) -> 'RecipientList':
        return cls(directory / FILENAME)

    @classmethod
    def load(
            cls,
            directory: pathlib.Path,
            config: Config) -> typing.Optional['RecipientList']:
        """The project's own recipient list, else the user's fallback list."""
        for path in (directory / FILENAME, config.recipients):
            if path.exists():
                log.debug(f"Using recipients from {path}")
                return cls(path)
        return None

    @classmethod
    def require(cls, directory: pathlib.Path, config: Config) -> 'RecipientList':
        recipients = cls.load(directory, config)
        if recipients is None:
            raise ConfigMissing(
                f"No recipients configured - create {directory / FILENAME} "
                f"with 'dotage addkeys' or write {config.recipients}")
        if not recipients.keys():
            raise ConfigMissing(
                f"{recipients.path} has no keys - add some with 'dotage addkeys'")
        return recipients

    def lines(self) -> typing.List[str]:
        return self.path.read_text().splitlines()

    def keys(self) -> typing.List[str]:
        return [line.strip() for line in self.lines()
                if line.strip() and not line.lstrip().startswith('#')]

    def repo_name(self) -> typing.Optional[str]:
        lines = self.lines()
        if not lines:
            return None
        match = REPO_DIRECTIVE.match(lines[0].strip())
        return match.group('name') if match else None


def repo_name(directory: pathlib.Path) -> str:
    """The name a project is stored under in the mirror."""
    local = RecipientList.local(directory)
    if local.path.exists():
        name = local.repo_name()
        if name:
            return name
    return directory.resolve().name
