"""Working-tree helpers for tests."""

from pathlib import Path

from gitlet.version_control import Commit, Repository


def write_file(root: Path, path: str, content: str) -> None:
    """Write a working-tree file, creating parent directories."""
    target = Path(root) / path
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8", newline="") as f:
        f.write(content)


def read_file(root: Path, path: str) -> str:
    with open(Path(root) / path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def commit_files(repo: Repository, message: str, **files: str) -> Commit:
    """Write, stage and commit files given as name=content."""
    for name, content in files.items():
        write_file(repo.work_dir, name, content)
        repo.add(name)
    return repo.commit(message)
