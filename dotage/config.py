"""Settings stored in the dotage home directory."""

import logging
import os
import pathlib
import typing

import attr

log = logging.getLogger(__name__)

DEFAULT_FORGE = 'github.com'
DEFAULT_IDENTITIES = ('id_ed25519', 'id_rsa')


def default_home() -> pathlib.Path:
    xdg_config = os.environ.get('XDG_CONFIG_HOME')
    base = pathlib.Path(xdg_config) if xdg_config else pathlib.Path.home() / '.config'
    return base / 'dotage'


def default_identity() -> pathlib.Path:
    ssh = pathlib.Path.home() / '.ssh'
    for name in DEFAULT_IDENTITIES:
        if (ssh / name).exists():
            return ssh / name
    return ssh / DEFAULT_IDENTITIES[0]


@attr.s(frozen=True, kw_only=True)
class Config:
    home: pathlib.Path = attr.ib(factory=default_home)
    forge: str = attr.ib(default=DEFAULT_FORGE)
    identity: pathlib.Path = attr.ib(factory=default_identity)

    @classmethod
    def load(cls, home: typing.Optional[pathlib.Path] = None) -> 'Config':
        home = home or default_home()
        log.debug(f"Loading configuration from {home}")

        forge = DEFAULT_FORGE
        forge_file = home / 'forge'
        if forge_file.exists():
            forge = forge_file.read_text().strip() or DEFAULT_FORGE

        privkey = home / 'privkey'
        identity = privkey if privkey.exists() else default_identity()

        return cls(home=home, forge=forge, identity=identity)

    @property
    def mirror(self) -> pathlib.Path:
        return self.home / 'repo'

    @property
    def recipients(self) -> pathlib.Path:
        """The fallback recipient list used by projects without their own."""
        return self.home / 'recipients'

    def set_privkey(self, path: pathlib.Path) -> pathlib.Path:
        link = self.home / 'privkey'
        self.home.mkdir(parents=True, exist_ok=True)
        if link.is_symlink() or link.exists():
            link.unlink()
        link.symlink_to(path.expanduser().resolve())
        log.info(f"Linked {link} to {path}")
        return link

    def set_forge(self, hostname: str) -> None:
        self.home.mkdir(parents=True, exist_ok=True)
        (self.home / 'forge').write_text(f"{hostname}\n")
        log.info(f"Set forge to {hostname}")
