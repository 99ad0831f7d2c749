"""Command-line interface for CardCutter.

Subcommands:

- ``repair``: sanitise tagged text from a file or stdin
- ``parse``: show the node structure of a tagged document
- ``export``: render a JSON card list to DOCX, PDF, clipboard HTML or text
- ``cut``: generate a card with Claude and add it to the card store
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from rich.text import Text

from cardcutter.errors import CardCutterError, ExportError
from cardcutter.tagged import Citation, Link, Tagline

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cardcutter.config import Settings
    from cardcutter.tagged import Node

console = Console()
err_console = Console(stderr=True)

EXPORT_FORMATS = ("docx", "pdf", "html", "text")


def _build_parser() -> argparse.ArgumentParser:
    """Build argparse parser for cardcutter subcommands."""
    parser = argparse.ArgumentParser(
        prog="cardcutter",
        description="Repair, inspect and export highlighted evidence cards.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # repair
    repair_p = sub.add_parser("repair", help="Sanitise <HL> markup")
    repair_p.add_argument(
        "file", nargs="?", default="-", help="Input file (- = stdin)"
    )

    # parse
    parse_p = sub.add_parser("parse", help="Show the parsed node structure")
    parse_p.add_argument(
        "file", nargs="?", default="-", help="Input file (- = stdin)"
    )

    # export
    export_p = sub.add_parser("export", help="Render cards to a document")
    export_p.add_argument("format", choices=EXPORT_FORMATS)
    export_p.add_argument("cards", type=Path, help="JSON array of cards")
    export_p.add_argument("-o", "--output", type=Path, required=True)
    export_p.add_argument(
        "--color", default=None, help="Default highlight colour (#RRGGBB)"
    )

    # cut
    cut_p = sub.add_parser("cut", help="Generate a card with Claude")
    cut_p.add_argument("tagline", help="Claim the evidence should support")
    cut_p.add_argument("link", help="Source URL")
    cut_p.add_argument(
        "--store", type=Path, default=None, help="Card store (default: settings)"
    )

    return parser


def _read_input(name: str) -> str:
    if name == "-":
        return sys.stdin.read()
    return Path(name).read_text(encoding="utf-8")


def _node_row(node: Node) -> tuple[str, Text]:
    if isinstance(node, Link):
        return "link", Text(f"{node.text} <{node.href}>", style="blue")
    if isinstance(node, Citation):
        return "cite", Text(node.text, style="bold italic")

    kind = "tagline" if isinstance(node, Tagline) else "text"
    rendered = Text()
    for run in node.runs:
        style = "bold black on green" if run.highlighted else ""
        rendered.append(run.text, style=style)
    return kind, rendered


def _cmd_repair(args: argparse.Namespace) -> int:
    from cardcutter.tagged import sanitize

    sys.stdout.write(sanitize(_read_input(args.file)))
    return 0


def _cmd_parse(args: argparse.Namespace, settings: Settings) -> int:
    from cardcutter.tagged import parse, sanitize

    nodes = parse(
        sanitize(_read_input(args.file)), settings.export.default_highlight_color
    )
    table = Table(title=f"{len(nodes)} nodes")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Kind", style="cyan")
    table.add_column("Content")
    for i, node in enumerate(nodes, start=1):
        kind, content = _node_row(node)
        table.add_row(str(i), kind, content)
    console.print(table)
    return 0


def _cmd_export(args: argparse.Namespace, settings: Settings) -> int:
    from cardcutter.cards import cards_from_json
    from cardcutter.config import normalise_hex_colour
    from cardcutter.export import (
        build_clipboard_html,
        build_clipboard_plain,
        render_cards_docx,
        render_pdf,
    )

    export_config = settings.export
    if args.color:
        export_config = export_config.model_copy(
            update={"default_highlight_color": normalise_hex_colour(args.color)}
        )
    color = export_config.default_highlight_color

    cards = cards_from_json(args.cards.read_bytes())
    if args.format == "docx":
        data = render_cards_docx(cards, color)
    elif args.format == "pdf":
        data = render_pdf(cards, export_config)
    elif args.format == "html":
        data = build_clipboard_html(cards, color).encode("utf-8")
    else:
        data = build_clipboard_plain(cards).encode("utf-8")

    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_bytes(data)
    console.print(
        f"[green]Exported[/] {len(cards)} card(s) to {args.output} "
        f"[dim]({len(data):,} bytes)[/]"
    )
    return 0


async def _cmd_cut(args: argparse.Namespace, settings: Settings) -> int:
    from cardcutter.cards import CardCollection, JsonFileStore
    from cardcutter.llm import ClaudeEvidenceGenerator

    store = JsonFileStore(args.store or settings.app.store_path)
    collection = CardCollection.from_settings(settings, store)
    collection.load()

    generator = ClaudeEvidenceGenerator.from_settings(settings)
    pending = collection.add_pending(args.tagline, args.link)
    with console.status("Cutting evidence..."):
        result = await generator.generate(pending.tagline, pending.link)

    card = collection.resolve(pending.id, result)
    if card is None:
        err_console.print(f"[red]Error:[/] {result.error or result.status}")
        return 1
    console.print(f"[green]Added[/] card {card.id} to {store.path}")
    return 0


def run(argv: Sequence[str] | None = None, settings: Settings | None = None) -> int:
    """Run the CLI and return the process exit code."""
    from cardcutter.config import get_settings

    args = _build_parser().parse_args(argv)
    settings = settings or get_settings()

    try:
        if args.command == "repair":
            return _cmd_repair(args)
        if args.command == "parse":
            return _cmd_parse(args, settings)
        if args.command == "export":
            return _cmd_export(args, settings)
        return asyncio.run(_cmd_cut(args, settings))
    except ExportError as exc:
        err_console.print(f"[red]Error:[/] {exc}")
        return 1
    except (OSError, ValidationError, ValueError, CardCutterError) as exc:
        err_console.print(f"[red]Error:[/] {exc}")
        return 2
