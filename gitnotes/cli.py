"""CLI entrypoint for gitnotes."""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .config import CONFIG_FILENAME


def _auto_detect_workspace(start: Path) -> Path | None:
    """Find the nearest directory holding a .gitnotes.toml by walking up from `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        if (p / CONFIG_FILENAME).is_file():
            return p
    return None


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return

    from rich.console import Console
    from rich.logging import RichHandler

    handler = RichHandler(console=Console(stderr=True), show_path=False)
    logger = logging.getLogger("gitnotes")
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG)
    logger.propagate = False


@click.group()
@click.version_option(__version__, prog_name="gitnotes")
@click.option(
    "--workspace",
    "-w",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help=f"Path to the workspace root (defaults to the nearest parent with {CONFIG_FILENAME})",
)
@click.option("--verbose", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx: click.Context, workspace: Path | None, verbose: bool) -> None:
    """gitnotes - wiki-link graph tools for markdown note collections.

    Each folder of the workspace is a collection; each markdown file is a note.
    Notes link to each other with [[Name]].
    """
    ctx.ensure_object(dict)
    _configure_logging(verbose)

    if workspace is None:
        detected = _auto_detect_workspace(Path.cwd())
        if detected is None:
            raise click.ClickException(
                f"Workspace not found. Pass --workspace /path/to/notes or run from a folder with {CONFIG_FILENAME}."
            )
        workspace = detected

    if not workspace.exists() or not workspace.is_dir():
        raise click.BadParameter(f"Directory '{workspace}' does not exist.", param_hint="--workspace / -w")

    ctx.obj["workspace"] = workspace.resolve()


def _run(fn, *args, **kwargs) -> None:
    """Call a command implementation and exit with its code."""
    try:
        exit_code = fn(*args, **kwargs)
    except (ValueError, FileExistsError, KeyError) as e:
        raise click.ClickException(str(e)) from e
    sys.exit(exit_code)


@cli.command()
@click.option("--collection", "-c", required=True, help="Focal collection (folder name)")
@click.option(
    "--scope",
    type=click.Choice(["local", "global"]),
    default="local",
    show_default=True,
    help="local: only the collection; global: plus notes one link away",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["json", "md", "dot", "svg", "rich"]),
    default="md",
    show_default=True,
    help="Output format",
)
@click.option(
    "--out",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write output to a file instead of stdout",
)
@click.pass_context
def graph(ctx: click.Context, collection: str, scope: str, fmt: str, out: Path | None) -> None:
    """Render the link graph of a collection."""
    from .commands.graph_cmd import run_graph

    _run(run_graph, ctx.obj["workspace"], collection, scope=scope, fmt=fmt, out=out)


@cli.command()
@click.argument("source")
@click.argument("target")
@click.option("--collection", "-c", default=None, help="Resolve note names inside this collection")
@click.pass_context
def connect(ctx: click.Context, source: str, target: str, collection: str | None) -> None:
    """Add a link from SOURCE to TARGET."""
    from .commands.link_cmd import run_connect

    _run(run_connect, ctx.obj["workspace"], source, target, collection=collection)


@cli.command()
@click.argument("source")
@click.argument("target")
@click.option("--collection", "-c", default=None, help="Resolve note names inside this collection")
@click.pass_context
def disconnect(ctx: click.Context, source: str, target: str, collection: str | None) -> None:
    """Remove every link from SOURCE to TARGET."""
    from .commands.link_cmd import run_disconnect

    _run(run_disconnect, ctx.obj["workspace"], source, target, collection=collection)


@cli.command()
@click.argument("note")
@click.argument("new_name")
@click.option("--collection", "-c", required=True, help="Collection owning the note")
@click.pass_context
def rename(ctx: click.Context, note: str, new_name: str, collection: str) -> None:
    """Rename NOTE to NEW_NAME and rewrite links to it.

    Exits with status 1 when some documents could not be rewritten; the note
    itself stays renamed.
    """
    from .commands.link_cmd import run_rename

    _run(run_rename, ctx.obj["workspace"], note, new_name, collection=collection)


@cli.command()
@click.argument("note")
@click.option("--collection", "-c", default=None, help="Resolve the note name inside this collection")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def backlinks(ctx: click.Context, note: str, collection: str | None, output_json: bool) -> None:
    """List notes linking to NOTE, with context."""
    from .commands.backlinks_cmd import run_backlinks

    _run(run_backlinks, ctx.obj["workspace"], note, collection=collection, output_json=output_json)


@cli.command()
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def broken(ctx: click.Context, output_json: bool) -> None:
    """List links that resolve to no note."""
    from .commands.backlinks_cmd import run_broken

    _run(run_broken, ctx.obj["workspace"], output_json=output_json)


@cli.command()
@click.option("--last", "last_n", type=int, default=20, show_default=True, help="Number of entries to show")
@click.pass_context
def history(ctx: click.Context, last_n: int) -> None:
    """Show recent connect, disconnect and rename operations."""
    from .commands.backlinks_cmd import run_history

    _run(run_history, ctx.obj["workspace"], last_n=last_n)


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
