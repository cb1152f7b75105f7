import difflib
import pathlib
import typing

import click
import git


def find_git_directory(
        path: typing.Optional[pathlib.Path] = None) -> typing.Optional[pathlib.Path]:
    try:
        repo = git.Repo(path or pathlib.Path.cwd(), search_parent_directories=True)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
        return None
    if repo.bare or repo.working_tree_dir is None:
        return None
    return pathlib.Path(repo.working_tree_dir)


def require_project_root(path: pathlib.Path) -> pathlib.Path:
    """Check that a directory is the root of its own git work tree."""
    root = find_git_directory(path)
    if root is None or root.resolve() != path.resolve():
        raise WrongLocation(
            f"{path} is not the root of a git repository - "
            f"run this from the top level of your project")
    return root


def diff_lines(
        old: str,
        new: str,
        old_name: str,
        new_name: str) -> typing.List[str]:
    """A unified diff of two texts, empty when they are identical."""
    return list(difflib.unified_diff(
        old.splitlines(keepends=True),
        new.splitlines(keepends=True),
        fromfile=old_name,
        tofile=new_name))


def style_diff(lines: typing.Iterable[str]) -> str:
    styled = []
    for line in lines:
        line = line.rstrip('\n')
        if line.startswith(('+++', '---')):
            styled.append(click.style(line, bold=True))
        elif line.startswith('+'):
            styled.append(click.style(line, fg='green'))
        elif line.startswith('-'):
            styled.append(click.style(line, fg='red'))
        elif line.startswith('@@'):
            styled.append(click.style(line, fg='cyan'))
        else:
            styled.append(line)
    return '\n'.join(styled)


class DotageException(click.ClickException):
    pass


class ConfigMissing(DotageException):
    pass


class SecretNotFound(DotageException):
    pass


class NotTracked(DotageException):
    pass


class WrongLocation(DotageException):
    pass


class RemoteOperationFailed(DotageException):
    pass


class Unchanged(DotageException):
    pass
