import pathlib
import typing

from .age import Age
from .config import Config
from .mirror import Mirror
from .recipients import repo_name
from .secrets import SecretKeeper
from .utils import require_project_root


def keeper(
        directory: pathlib.Path,
        config: typing.Optional[Config] = None,
        age: Age = Age(),
        **kwargs) -> SecretKeeper:
    config = config or Config.load()
    directory = require_project_root(directory)
    return SecretKeeper(
        project=repo_name(directory),
        config=config,
        vcs=Mirror(config.mirror),
        directory=directory,
        encryptor=age,
        **kwargs)
