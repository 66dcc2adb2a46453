"""
CLI interface for gitlet.

Provides the command-line surface over a Repository session. Every command
loads the repository, runs, and saves it only on success; a failing command
prints one diagnostic line and leaves persisted state untouched.
"""

from pathlib import Path
from typing import List, Optional, Tuple

import click

from gitlet.config import config
from gitlet.logging import get_gitlet_logger, initialize_logging
from gitlet.version_control import (
    Commit,
    Repository,
    StorageError,
    UsageError,
    VersionControlError,
)

log = get_gitlet_logger("cli")


class GitletGroup(click.Group):
    """Command group that reports errors as a single line."""

    def resolve_command(self, ctx: click.Context, args: List[str]):
        if args and self.get_command(ctx, args[0]) is None:
            raise UsageError("No command with that name exists.")
        return super().resolve_command(ctx, args)

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except VersionControlError as e:
            log.error(
                "Command failed: {error}", error=e.message, error_type=type(e).__name__
            )
            click.echo(e.message)
        except StorageError as e:
            log.error("Storage error: {error}", error=str(e))
            click.echo(str(e))
        except click.UsageError as e:
            log.error("Usage error: {error}", error=e.format_message())
            click.echo(UsageError.default_message)


class OperandCommand(click.Command):
    """Command that keeps its raw operands, including a literal ``--``."""

    def parse_args(self, ctx: click.Context, args: List[str]) -> List[str]:
        ctx.meta["raw_operands"] = list(args)
        return super().parse_args(ctx, args)


def _open(ctx: click.Context) -> Repository:
    return Repository.open(ctx.obj["work_dir"])


def _format_commit(commit: Commit) -> str:
    lines = ["===", f"commit {commit.commit_id}"]
    if commit.is_merge:
        lines.append(f"Merge: {commit.parent_id[:7]} {commit.second_parent_id[:7]}")
    lines.append(f"Date: {commit.timestamp}")
    lines.append(commit.message)
    lines.append("")
    return "\n".join(lines)


@click.group(cls=GitletGroup, invoke_without_command=True)
@click.option(
    "--work-dir",
    "-C",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    help="Working tree to operate on",
)
@click.pass_context
def cli(ctx: click.Context, work_dir: Path):
    """gitlet: a tiny version-control system."""
    log_config = config.logging
    metadata_dir = config.repository.metadata_path(work_dir)
    initialize_logging(
        log_dir=metadata_dir / log_config.log_dir,
        level=log_config.level,
        rotation=log_config.rotation,
        retention=log_config.retention,
        format_string=log_config.format,
        enable_file_logging=log_config.enable_file_logging and metadata_dir.is_dir(),
        enable_console_logging=log_config.enable_console_logging,
    )
    ctx.obj = {"work_dir": work_dir}

    if ctx.invoked_subcommand is None:
        click.echo("Please enter a command.")


@cli.command()
@click.pass_context
def init(ctx: click.Context):
    """Create a repository in the working tree."""
    with Repository(ctx.obj["work_dir"]) as repo:
        repo.initialize()


@cli.command()
@click.argument("path")
@click.pass_context
def add(ctx: click.Context, path: str):
    """Stage a file."""
    with _open(ctx) as repo:
        repo.add(path)


@cli.command()
@click.argument("message", required=False, default="")
@click.pass_context
def commit(ctx: click.Context, message: str):
    """Commit staged changes."""
    with _open(ctx) as repo:
        repo.commit(message)


@cli.command()
@click.argument("path")
@click.pass_context
def rm(ctx: click.Context, path: str):
    """Unstage a file or remove a tracked file."""
    with _open(ctx) as repo:
        repo.remove(path)


@cli.command("log")
@click.pass_context
def log_command(ctx: click.Context):
    """Show history from the head commit."""
    repo = _open(ctx)
    for entry in repo.log():
        click.echo(_format_commit(entry))


@cli.command("global-log")
@click.pass_context
def global_log(ctx: click.Context):
    """Show every commit ever made."""
    repo = _open(ctx)
    for entry in repo.global_log():
        click.echo(_format_commit(entry))


@cli.command()
@click.argument("message")
@click.pass_context
def find(ctx: click.Context, message: str):
    """Print the ids of commits with the given message."""
    repo = _open(ctx)
    for commit_id in repo.find(message):
        click.echo(commit_id)


@cli.command()
@click.pass_context
def status(ctx: click.Context):
    """Show branches, staged files and working-tree changes."""
    report = _open(ctx).status()

    click.echo("=== Branches ===")
    for name in report.branches:
        click.echo(f"*{name}" if name == report.current_branch else name)
    click.echo()
    click.echo("=== Staged Files ===")
    for path in report.staged:
        click.echo(path)
    click.echo()
    click.echo("=== Removed Files ===")
    for path in report.removed:
        click.echo(path)
    click.echo()
    click.echo("=== Modifications Not Staged For Commit ===")
    for path, kind in sorted(report.modified.items()):
        click.echo(f"{path} ({kind})")
    click.echo()
    click.echo("=== Untracked Files ===")
    for path in report.untracked:
        click.echo(path)
    click.echo()


def _parse_checkout(operands: List[str]) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """
    Split checkout operands into (branch, commit_id, path).

    Accepted forms: ``BRANCH``, ``-- FILE`` and ``COMMIT -- FILE``.
    """
    if len(operands) == 1 and operands[0] != "--":
        return operands[0], None, None
    if len(operands) == 2 and operands[0] == "--":
        return None, None, operands[1]
    if len(operands) == 3 and operands[1] == "--":
        return None, operands[0], operands[2]
    raise UsageError()


@cli.command(cls=OperandCommand)
@click.argument("operands", nargs=-1)
@click.pass_context
def checkout(ctx: click.Context, operands: Tuple[str, ...]):
    """Restore a file from a commit, or switch branches.

    \b
    gitlet checkout -- FILE
    gitlet checkout COMMIT -- FILE
    gitlet checkout BRANCH
    """
    branch, commit_id, path = _parse_checkout(ctx.meta.get("raw_operands", list(operands)))
    with _open(ctx) as repo:
        if branch is not None:
            repo.checkout_branch(branch)
        else:
            repo.checkout_file(path, commit_id)


@cli.command()
@click.argument("name")
@click.pass_context
def branch(ctx: click.Context, name: str):
    """Create a branch at the head commit."""
    with _open(ctx) as repo:
        repo.create_branch(name)


@cli.command("rm-branch")
@click.argument("name")
@click.pass_context
def rm_branch(ctx: click.Context, name: str):
    """Delete a branch pointer."""
    with _open(ctx) as repo:
        repo.remove_branch(name)


@cli.command()
@click.argument("commit_id")
@click.pass_context
def reset(ctx: click.Context, commit_id: str):
    """Move the current branch to a commit."""
    with _open(ctx) as repo:
        repo.reset(commit_id)


@cli.command()
@click.argument("branch_name")
@click.pass_context
def merge(ctx: click.Context, branch_name: str):
    """Merge a branch into the current branch."""
    with _open(ctx) as repo:
        result = repo.merge(branch_name)

    for notice in result.notices():
        click.echo(notice)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
