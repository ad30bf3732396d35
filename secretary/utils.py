import pathlib
import typing

import click
import git


def find_git_repository(
        path: typing.Optional[pathlib.Path] = None) -> typing.Optional[git.Repo]:
    try:
        return git.Repo(path, search_parent_directories=True)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
        return None


def find_root_directory() -> pathlib.Path:
    """Use the current git repository, or the current directory outside one."""
    repo = find_git_repository()
    if repo is None or repo.working_tree_dir is None:
        return pathlib.Path.cwd()
    return pathlib.Path(repo.working_tree_dir)


def unignored(
        repo: git.Repo,
        paths: typing.Iterable[pathlib.Path]) -> typing.Sequence[pathlib.Path]:
    """Return the paths inside the repository that git would not ignore."""
    working_dir = pathlib.Path(repo.working_tree_dir).resolve()
    candidates = {}
    for path in paths:
        try:
            relative = path.resolve().relative_to(working_dir)
        except ValueError:
            continue
        candidates[relative.as_posix()] = path

    if not candidates:
        return ()

    ignored = set(repo.ignored(*candidates.keys()))
    return tuple(p for name, p in sorted(candidates.items()) if name not in ignored)


class SecretaryException(click.ClickException):
    pass


class KeyFileExists(SecretaryException):
    pass


class KeyFileMissing(SecretaryException):
    pass


class ToolError(SecretaryException):
    def __init__(self, command: typing.Sequence[str], returncode: int):
        super().__init__(
            f"Command {' '.join(command)} failed with exit status {returncode}")
        self.command = tuple(command)
        self.returncode = returncode


class DownloadError(SecretaryException):
    pass
