import os
import pathlib
import typing

import attr
import click.testing
import pytest

import dotage.cli
from dotage.age import Encryptor
from dotage.config import Config
from dotage.forge import KeyFetcher
from dotage.mirror import VersionControl
from dotage.secrets import SecretKeeper
from dotage.utils import RemoteOperationFailed

HEADER = b'fake-age:'
NOW = 1_700_000_000


def touch(path: pathlib.Path, timestamp: int) -> pathlib.Path:
    os.utime(path, (timestamp, timestamp))
    return path


@attr.s
class FakeAge(Encryptor):
    """Prefixes plaintext with a header instead of encrypting it."""

    encrypted: typing.List[pathlib.Path] = attr.ib(factory=list)
    decrypted: typing.List[pathlib.Path] = attr.ib(factory=list)
    outputs: typing.List[pathlib.Path] = attr.ib(factory=list)

    def encrypt(self, plaintext, encrypted, recipients):
        assert recipients.exists()
        encrypted.parent.mkdir(parents=True, exist_ok=True)
        encrypted.write_bytes(HEADER + plaintext.read_bytes())
        self.encrypted.append(encrypted)

    def decrypt(self, encrypted, decrypted, identity):
        data = encrypted.read_bytes()
        assert data.startswith(HEADER)
        decrypted.write_bytes(data[len(HEADER):])
        self.decrypted.append(encrypted)
        self.outputs.append(decrypted)


@attr.s
class FakeMirror(VersionControl):
    times: typing.Dict[pathlib.Path, int] = attr.ib(factory=dict)
    commits: typing.List[typing.Tuple[pathlib.Path, str]] = attr.ib(factory=list)
    pulls: int = attr.ib(default=0)
    pushes: int = attr.ib(default=0)
    fail_push: bool = attr.ib(default=False)
    now: int = attr.ib(default=NOW)

    def pull(self):
        self.pulls += 1

    def last_commit_time(self, path):
        return self.times.get(path)

    def commit(self, path, message):
        self.times[path] = self.now
        self.commits.append((path, message))

    def push(self):
        if self.fail_push:
            raise RemoteOperationFailed("push rejected")
        self.pushes += 1

    def log(self, path):
        return '\n'.join(message for p, message in self.commits if p == path)


@attr.s
class FakeForge(KeyFetcher):
    host: str = attr.ib(default='github.com')
    keys: typing.Dict[str, typing.List[str]] = attr.ib(factory=dict)
    fetched: typing.List[str] = attr.ib(factory=list)

    def fetch(self, username):
        self.fetched.append(username)
        return self.keys.get(username, [])


@attr.s
class Answers:
    """Answers confirmation prompts in order, remembering each prompt."""

    answers: typing.List[bool] = attr.ib(factory=list)
    prompts: typing.List[str] = attr.ib(factory=list)

    def __call__(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        return self.answers.pop(0)


@pytest.fixture()
def config(tmp_path) -> Config:
    home = tmp_path / 'home'
    (home / 'repo').mkdir(parents=True)
    return Config(home=home, identity=tmp_path / 'key.txt')


@pytest.fixture()
def project(tmp_path) -> pathlib.Path:
    directory = tmp_path / 'demo'
    directory.mkdir()
    (directory / '.age-recipients').write_text("age1teammate\n")
    return directory


@pytest.fixture()
def age() -> FakeAge:
    return FakeAge()


@pytest.fixture()
def mirror() -> FakeMirror:
    return FakeMirror()


@pytest.fixture()
def answers() -> Answers:
    return Answers()


@pytest.fixture()
def sk(config, project, age, mirror, answers) -> SecretKeeper:
    return SecretKeeper(
        project='demo',
        config=config,
        vcs=mirror,
        directory=project,
        encryptor=age,
        confirm=answers)


@pytest.fixture()
def remote(sk, mirror):
    """Store an encrypted file in the mirror as if it had been committed."""
    def remote_func(name: str, text: str, committed: typing.Optional[int] = NOW):
        secret = sk[name]
        secret.encrypted.parent.mkdir(parents=True, exist_ok=True)
        secret.encrypted.write_bytes(HEADER + text.encode())
        if committed is not None:
            mirror.times[secret.encrypted] = committed
        return secret

    return remote_func


@pytest.fixture()
def local(project):
    def local_func(name: str, text: str, modified: int = NOW):
        path = project / name
        path.write_text(text)
        return touch(path, modified)

    return local_func


@pytest.fixture()
def invoke(monkeypatch, config, project, sk):
    monkeypatch.chdir(project)
    monkeypatch.setattr(dotage.cli, 'keeper', lambda directory, **kwargs: sk)

    def invoke_func(arguments: typing.Sequence[str], input: typing.Optional[str] = None):
        assert all(isinstance(arg, str) for arg in arguments)
        runner = click.testing.CliRunner()
        return runner.invoke(
            dotage.cli.main, ['--home', str(config.home), *arguments], input=input)

    return invoke_func
