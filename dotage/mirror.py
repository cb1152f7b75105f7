"""
The mirror is a local clone of the repository that stores encrypted files.

Each project has a directory in the mirror holding one '<name>.age' file for
every plaintext file the project shares.
"""

import logging
import pathlib
import typing

import attr
import git

from .utils import ConfigMissing, DotageException, RemoteOperationFailed

log = logging.getLogger(__name__)


class VersionControl:
    def clone(self, url: str) -> None:
        raise NotImplementedError

    def pull(self) -> None:
        raise NotImplementedError

    def last_commit_time(self, path: pathlib.Path) -> typing.Optional[int]:
        raise NotImplementedError

    def commit(self, path: pathlib.Path, message: str) -> None:
        raise NotImplementedError

    def push(self) -> None:
        raise NotImplementedError

    def log(self, path: pathlib.Path) -> str:
        raise NotImplementedError


@attr.s(frozen=True)
class Mirror(VersionControl):
    root: pathlib.Path = attr.ib()

    @property
    def repo(self) -> git.Repo:
        try:
            return git.Repo(self.root)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            raise ConfigMissing(
                f"No repository at {self.root} - run 'dotage init <url>' first")

    def relative(self, path: pathlib.Path) -> str:
        return path.relative_to(self.root).as_posix()

    def clone(self, url: str) -> None:
        if self.root.exists() and any(self.root.iterdir()):
            raise DotageException(f"{self.root} already exists and is not empty")

        log.info(f"Cloning {url} into {self.root}")
        try:
            git.Repo.clone_from(url, self.root)
        except git.exc.GitCommandError as error:
            for line in error.stderr.splitlines():
                log.error(line)
            raise RemoteOperationFailed(f"Could not clone {url}")

    def pull(self) -> None:
        repo = self.repo
        if not repo.remotes:
            log.debug(f"{self.root} has no remotes, not pulling")
            return

        remote = repo.remotes[0]
        log.info(f"Pulling changes into {self.root}")
        try:
            if not repo.head.is_valid() and not repo.git.ls_remote('--heads', remote.name):
                log.debug(f"{remote.name} has no commits yet, not pulling")
                return
            repo.git.pull()
        except git.exc.GitCommandError as error:
            for line in error.stderr.splitlines():
                log.error(line)
            raise RemoteOperationFailed(f"Could not pull changes into {self.root}")

    def last_commit_time(self, path: pathlib.Path) -> typing.Optional[int]:
        """Timestamp of the most recent commit that touched a path."""
        repo = self.repo
        if not repo.head.is_valid():
            return None

        commit = next(repo.iter_commits(paths=self.relative(path), max_count=1), None)
        if commit is None:
            return None
        return commit.committed_date

    def commit(self, path: pathlib.Path, message: str) -> None:
        repo = self.repo
        log.info(f"Committing {self.relative(path)}: {message}")
        repo.index.add([self.relative(path)])
        repo.index.commit(message)

    def push(self) -> None:
        repo = self.repo
        if not repo.remotes:
            raise RemoteOperationFailed(
                f"Committed locally in {self.root} but it has no remote to push to")

        remote = repo.remotes[0]
        log.info(f"Pushing {self.root} to {remote.name}")
        try:
            repo.git.push('--set-upstream', remote.name, 'HEAD')
        except git.exc.GitCommandError as error:
            for line in error.stderr.splitlines():
                log.error(line)
            raise RemoteOperationFailed(
                f"Committed locally in {self.root} but could not push to "
                f"'{remote.name}' - the remote does not have this change, "
                f"push it manually")

    def log(self, path: pathlib.Path) -> str:
        return self.repo.git.log('--', self.relative(path))
