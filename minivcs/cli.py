"""
Command-line interface for minivcs.

Each command is a thin wrapper over one VersionControl operation.
"""

from pathlib import Path
from typing import Optional, Tuple

import click

from minivcs.config import config
from minivcs.logging import initialize_logging
from minivcs.version_control import (
    VersionControl,
    VersionControlError,
    keep_local,
    take_incoming,
)


class VCSGroup(click.Group):
    """Click group that reports core errors as one-line messages."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except VersionControlError as e:
            raise click.ClickException(str(e)) from e


def _vc(ctx: click.Context) -> VersionControl:
    return ctx.obj["vc"]


def _relative(vc: VersionControl, path: str) -> str:
    try:
        return str(Path(path).relative_to(vc.root))
    except ValueError:
        return path


@click.group(cls=VCSGroup)
@click.option(
    "--repo",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Working directory of the repository",
)
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, repo: Path, verbose: bool):
    """A small local version-control system."""
    log_config = config.logging
    initialize_logging(
        log_dir=Path(log_config.log_dir),
        level="DEBUG" if verbose else log_config.level,
        rotation=log_config.rotation,
        retention=log_config.retention,
        enable_file_logging=log_config.enable_file_logging,
        enable_console_logging=log_config.enable_console_logging,
    )
    ctx.ensure_object(dict)
    ctx.obj["vc"] = VersionControl(repo)


@cli.command()
@click.pass_context
def init(ctx: click.Context):
    """Create an empty repository."""
    vc = _vc(ctx)
    vc.init()
    click.echo(f"Initialized empty repository in {vc.storage_dir}")


@cli.command()
@click.argument("paths", nargs=-1, required=True)
@click.pass_context
def add(ctx: click.Context, paths: Tuple[str, ...]):
    """Stage files for the next commit."""
    vc = _vc(ctx)
    for path in paths:
        vc.add(path)


@cli.command(name="rm")
@click.argument("path")
@click.pass_context
def remove(ctx: click.Context, path: str):
    """Unstage a file and delete it."""
    _vc(ctx).remove(path)


@cli.command()
@click.option("-m", "--message", required=True, help="Commit message")
@click.pass_context
def commit(ctx: click.Context, message: str):
    """Record staged files as a new commit."""
    vc = _vc(ctx)
    commit_hash = vc.commit(message)
    click.echo(f"[{vc.get_branch()} {vc.short_hash(commit_hash)}] {message}")


@cli.command()
@click.pass_context
def status(ctx: click.Context):
    """Show added, changed, deleted and untracked files."""
    vc = _vc(ctx)
    result = vc.status()
    click.echo(f"On branch {result.branch}")

    sections = (
        ("Added", result.added),
        ("Changed", result.changed),
        ("Deleted", result.deleted),
        ("Untracked", result.untracked),
    )
    for title, paths in sections:
        if not paths:
            continue
        click.echo(f"{title}:")
        for path in sorted(paths):
            click.echo(f"  {_relative(vc, path)}")

    if result.is_clean and not result.untracked:
        click.echo("Nothing to commit, working tree clean")


@cli.command()
@click.option("-n", "--max-count", type=int, default=None, help="Limit the number of commits")
@click.pass_context
def log(ctx: click.Context, max_count: Optional[int]):
    """Show the commit history of the current head."""
    vc = _vc(ctx)
    click.echo(f"Branch: {vc.get_branch()}")
    for entry in vc.get_log(max_count=max_count):
        click.echo(f"{entry.commit_hash}: {entry.message}")


@cli.command()
@click.pass_context
def branches(ctx: click.Context):
    """List branches, marking the current one."""
    vc = _vc(ctx)
    current = vc.get_branch()
    for name in vc.get_branches():
        marker = "*" if name == current else " "
        click.echo(f"{marker} {name}")


@cli.command(name="branch")
@click.argument("name")
@click.pass_context
def new_branch(ctx: click.Context, name: str):
    """Create a branch at the head commit and switch to it."""
    _vc(ctx).new_branch(name)
    click.echo(f"Switched to a new branch '{name}'")


@cli.command(name="rmbranch")
@click.argument("name")
@click.pass_context
def remove_branch(ctx: click.Context, name: str):
    """Delete a branch."""
    _vc(ctx).remove_branch(name)
    click.echo(f"Deleted branch {name}")


@cli.command()
@click.argument("ref")
@click.pass_context
def checkout(ctx: click.Context, ref: str):
    """Check out a branch or a commit hash."""
    vc = _vc(ctx)
    target = vc.checkout(ref)
    click.echo(f"HEAD is now at {vc.short_hash(target.commit_hash)} ({target.branch})")


@cli.command()
@click.argument("ref")
@click.option(
    "--on-conflict",
    type=click.Choice(["ask", "keep", "take"]),
    default="ask",
    show_default=True,
    help="Ask per file, always keep the local file, or always take the incoming one",
)
@click.pass_context
def merge(ctx: click.Context, ref: str, on_conflict: str):
    """Merge a branch or commit into the current branch."""
    vc = _vc(ctx)

    def ask(path: Path) -> bool:
        return click.confirm(
            f"Merge conflict in file {_relative(vc, str(path))}. Keep local version?",
            default=True,
        )

    policies = {"ask": ask, "keep": keep_local, "take": take_incoming}
    result = vc.merge(ref, policies[on_conflict])
    click.echo(f"Merge commit {vc.short_hash(result.commit_hash)}: {result.summary()}")


@cli.command()
@click.argument("path")
@click.pass_context
def reset(ctx: click.Context, path: str):
    """Restore a file from the last commit that stored it."""
    if not _vc(ctx).reset(path):
        click.echo(f"Nothing to restore for {path}")


@cli.command()
@click.pass_context
def clean(ctx: click.Context):
    """Delete every file that is not staged."""
    removed = _vc(ctx).clean()
    click.echo(f"Removed {removed} file(s)")


if __name__ == "__main__":
    cli()
