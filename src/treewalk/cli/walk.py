"""CLI command implementation for ``treewalk walk``."""

from __future__ import annotations

import io
import json
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from treewalk.config import load_settings
from treewalk.constants import (
    CONFIG_BROKEN_LINKS,
    CONFIG_LINKS,
    CONFIG_ORDER,
    CONFIG_REPRODUCIBLE,
    EXIT_BROKEN_LINK,
    EXIT_CONFIG,
    BrokenLinkAction,
    LinkMode,
    TraversalOrder,
    WalkOutcome,
)
from treewalk.errors import BrokenLinkError, ConfigLoadError
from treewalk.tree import DirectoryTree
from treewalk.visitor import CollectingVisitor

from .common import exit_on_broken_pipe, record_payload


def _overrides(
    *,
    postfix: bool,
    reproducible: bool | None,
    links: str | None,
    broken_links: str | None,
) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if postfix:
        overrides[CONFIG_ORDER] = TraversalOrder.POSTFIX.value
    if reproducible is not None:
        overrides[CONFIG_REPRODUCIBLE] = reproducible
    if links is not None:
        overrides[CONFIG_LINKS] = links
    if broken_links is not None:
        overrides[CONFIG_BROKEN_LINKS] = broken_links
    return overrides


def _render_table(records: list[dict[str, Any]], title: str) -> str:
    buffer = io.StringIO()
    console = Console(file=buffer, width=120)
    table = Table(title=title, show_edge=False, box=None, pad_edge=False)
    table.add_column("event", style="cyan", no_wrap=True)
    table.add_column("path")
    table.add_column("kind")
    table.add_column("size", justify="right")
    table.add_column("status")
    for rec in records:
        table.add_row(
            rec["event"],
            rec["path"],
            rec["kind"] or "?",
            "" if rec["size"] is None else str(rec["size"]),
            rec["status"],
        )
    console.print(table)
    return buffer.getvalue()


@click.command()
@click.option("--include", "-i", multiple=True, help="Include pattern (gitignore syntax); repeatable")
@click.option("--exclude", "-e", multiple=True, help="Exclude pattern (gitignore syntax); repeatable")
@click.option("--postfix", is_flag=True, help="Report directories after their contents")
@click.option(
    "--reproducible/--native-order",
    default=None,
    help="Sort directory listings (default from config)",
)
@click.option(
    "--links",
    type=click.Choice([m.value for m in LinkMode], case_sensitive=False),
    help="Follow symbolic links or report them as links",
)
@click.option(
    "--broken-links",
    type=click.Choice([a.value for a in BrokenLinkAction], case_sensitive=False),
    help="What to do with broken links when links are preserved",
)
@click.option("--ignore-defaults", "-I", is_flag=True, help="Ignore bundled default settings")
@click.option("--config", "config_path", type=click.Path(path_type=Path), help="Explicit config file path")
@click.option("--json", "as_json", is_flag=True, help="Emit the visit sequence as JSON")
@click.argument("root", type=click.Path(path_type=Path), default=Path())
def walk(
    *,
    include: tuple[str, ...],
    exclude: tuple[str, ...],
    postfix: bool,
    reproducible: bool | None,
    links: str | None,
    broken_links: str | None,
    ignore_defaults: bool,
    config_path: Path | None,
    as_json: bool,
    root: Path,
) -> None:
    """Walk ROOT and print every entry reported to the visitor, in order."""
    base = root if root.is_dir() else root.parent
    try:
        settings = load_settings(
            base_path=base,
            explicit_config=config_path,
            ignore_defaults=ignore_defaults,
            add_include=include,
            add_exclude=exclude,
            overrides=_overrides(postfix=postfix, reproducible=reproducible, links=links, broken_links=broken_links),
        )
    except ConfigLoadError as err:
        print(err, file=sys.stderr)
        raise SystemExit(EXIT_CONFIG) from err

    tree = DirectoryTree.from_settings(root, settings)
    visitor = CollectingVisitor(reproducible=settings.reproducible, links=settings.link_policy())
    try:
        outcome = tree.visit(visitor)
    except BrokenLinkError as err:
        print(err, file=sys.stderr)
        raise SystemExit(EXIT_BROKEN_LINK) from err

    records = [record_payload(r) for r in visitor.records]
    try:
        if as_json:
            payload = {"tree": tree.display_name, "outcome": outcome.value, "entries": records}
            print(json.dumps(payload, sort_keys=True, indent=2))
        else:
            print(_render_table(records, tree.display_name), end="")
            if outcome is WalkOutcome.MISSING_ROOT:
                print(f"{root}: not found", file=sys.stderr)
    except BrokenPipeError:
        exit_on_broken_pipe()
