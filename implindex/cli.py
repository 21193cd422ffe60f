"""implindex CLI — load, inspect, and re-render implementor shards."""

import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from implindex import __version__
from implindex.config import LOG_LEVELS

console = Console()
err_console = Console(stderr=True)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Logging level (default from config)",
)
@click.option("--config", "config_path", default=None, help="Path to implindex.yaml")
@click.pass_context
def main(ctx: click.Context, log_level: str | None, config_path: str | None):
    """implindex — registry of trait implementors from documentation shards.

    Shards may load before or after the registry host is ready; either
    way every shard ends up in the index exactly once.
    """
    from implindex.config import DEFAULT_CONFIG_FILE, load_config

    try:
        config = load_config(config_path or DEFAULT_CONFIG_FILE)
    except ValueError as e:
        raise click.ClickException(f"Bad configuration: {e}") from e

    logging.basicConfig(level=(log_level or config.log_level).upper())
    ctx.obj = config


# ── Load ─────────────────────────────────────────────────────────────


@main.command()
@click.argument("shards", nargs=-1)
@click.option(
    "--install-at",
    default=-1,
    help="Install the host before the N-th shard (0-based; default: after all)",
)
@click.option(
    "--policy",
    default=None,
    type=click.Choice(["queue", "single_slot"]),
    help="How shards loaded before the host are held",
)
@click.option("--json", "as_json", is_flag=True, help="Print the index as JSON")
@click.pass_obj
def load(config, shards: tuple, install_at: int, policy: str | None, as_json: bool):
    """Load SHARDS in order, as a page would, and print the merged index."""
    from implindex.registry import PendingPolicy, ShardContext, ShardProducer
    from implindex.shards import ShardFormatError, load_shard_file

    if policy:
        config.pending_policy = PendingPolicy(policy)

    paths = list(shards) or _discover(config.shard_dirs)
    if not paths:
        console.print("[yellow]No shard files given.[/]")
        return

    context = ShardContext.from_config(config)
    failed = False

    for i, path in enumerate(paths):
        if i == install_at:
            context.host.install()
        try:
            shard = load_shard_file(path)
        except (ShardFormatError, OSError) as e:
            err_console.print(f"  [red]x[/] {escape(str(e))}")
            failed = True
            continue
        result = ShardProducer.from_shard(shard).run(context)
        if not as_json:
            console.print(f"  [dim]{result.value}[/] {escape(path)}")

    context.host.install()

    if as_json:
        index = {cap: context.registry.to_dict(cap) for cap in context.registry.capabilities()}
        click.echo(json.dumps(index, indent=2, default=str))
    else:
        _print_index(context.registry)

    if failed:
        raise SystemExit(1)


# ── Show ─────────────────────────────────────────────────────────────


@main.command()
@click.argument("shard_path")
def show(shard_path: str):
    """List the libraries and implementors in one shard file."""
    from implindex.shards import ShardFormatError, load_shard_file

    try:
        shard = load_shard_file(shard_path)
    except (ShardFormatError, OSError) as e:
        err_console.print(f"[red]Failed to read shard:[/] {escape(str(e))}")
        raise SystemExit(1)

    console.print(f"\n[bold blue]implindex[/] — {escape(shard.capability)}\n")
    for library, entries in shard.libraries.items():
        console.print(f"  [cyan]{escape(library)}[/] ({len(entries)})")
        for entry in entries:
            console.print(f"    {escape(_describe(entry))}")


# ── Render ───────────────────────────────────────────────────────────


@main.command()
@click.argument("shard_path")
@click.option("--capability", "-c", default=None, help="Override the capability name")
def render(shard_path: str, capability: str | None):
    """Re-render a shard (YAML, JSON or JS) in the generated JS format."""
    from implindex.shards import ShardFormatError, load_shard_file, render_shard

    try:
        shard = load_shard_file(shard_path, capability)
    except (ShardFormatError, OSError) as e:
        err_console.print(f"[red]Failed to read shard:[/] {escape(str(e))}")
        raise SystemExit(1)

    click.echo(render_shard(shard), nl=False)


def _discover(shard_dirs: list[str]) -> list[str]:
    paths = []
    for shard_dir in shard_dirs:
        for pattern in ("**/*.js", "**/*.yaml", "**/*.yml", "**/*.json"):
            paths.extend(str(p) for p in sorted(Path(shard_dir).glob(pattern)))
    return paths


def _describe(entry, first_only: bool = False) -> str:
    from implindex.registry import ImplementorEntry

    if not isinstance(entry, ImplementorEntry):
        return repr(entry)
    types = [str(t) for t in entry.types] if isinstance(entry.types, list) else []
    if first_only:
        return types[0] if types else ""
    return ", ".join(types) or str(entry.text)


def _print_index(registry) -> None:
    if not len(registry):
        console.print("[yellow]Index is empty.[/]")
        return

    for capability in registry.capabilities():
        table = Table(title=f"Implementors of {escape(capability)}")
        table.add_column("Library", style="cyan")
        table.add_column("Count", justify="right", style="green")
        table.add_column("First type")

        for library in registry.libraries(capability):
            entries = registry.get(library, capability)
            first = _describe(entries[0], first_only=True) if entries else ""
            table.add_row(escape(library), str(len(entries)), escape(first))

        console.print(table)


if __name__ == "__main__":
    main()
