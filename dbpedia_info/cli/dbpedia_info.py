"""
CLI for the DBpedia info plugin - detect Wikipedia references and fetch info cards.
"""
import asyncio
import json
from contextlib import nullcontext
from functools import partial
from pathlib import Path
from typing import List, Optional

import httpx
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from ..common.config import settings
from ..common.errors import DbpediaLookupError
from ..common.log import setup_logging
from ..common.schemas import AnnotatedBlock, Card
from ..kg.dbpedia_query import lookup
from ..pipeline.hints_registry import InMemoryHintsRegistry
from ..pipeline.info_card import DbpediaInfoCard
from ..pipeline.link_detector import DbpediaInfoPlugin, WikipediaLinkDetector


app = typer.Typer(help="DBpedia info plugin CLI - Wikipedia reference hints")
console = Console()


@app.callback()
def main_options(
    log_level: str = typer.Option(settings.LOG_LEVEL, "--log-level", help="Logging level"),
):
    try:
        setup_logging(log_level)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def load_blocks(path: Path) -> List[AnnotatedBlock]:
    """Read blocks from a JSON array or a JSONL file."""
    with open(path, 'r', encoding='utf-8') as f:
        content = f.read()
    stripped = content.lstrip()
    if stripped.startswith('['):
        records = json.loads(stripped)
    else:
        records = [json.loads(line) for line in content.splitlines() if line.strip()]
    return [AnnotatedBlock.model_validate(rec) for rec in records]


def _read_blocks_or_exit(input_file: str) -> List[AnnotatedBlock]:
    input_path = Path(input_file)
    if not input_path.exists():
        console.print(f"[red]Error: Input file {input_file} not found[/red]")
        raise typer.Exit(1)
    try:
        return load_blocks(input_path)
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Error: invalid blocks in {input_file}: {e}[/red]")
        raise typer.Exit(1)


def _run_plugin(blocks: List[AnnotatedBlock], hr_id: str, raw_span: bool) -> List[Card]:
    detector = WikipediaLinkDetector(trim_whitespace_in_span=False if raw_span else None)
    registry = InMemoryHintsRegistry()
    return DbpediaInfoPlugin(detector).execute(hr_id, blocks, registry)


@app.command("hints")
def cmd_hints(
    input_file: str = typer.Option(..., "--in", help="Blocks file (JSON array or JSONL)"),
    hr_id: str = typer.Option("cli", "--hr-id", help="Hints registry event id"),
    raw_span: bool = typer.Option(False, "--raw-span", help="Hint the raw block bounds"),
):
    """Detect Wikipedia references and list the generated cards."""
    blocks = _read_blocks_or_exit(input_file)
    cards = _run_plugin(blocks, hr_id, raw_span)

    table = Table(title=f"Hints ({len(cards)} of {len(blocks)} blocks)")
    table.add_column("Term", style="cyan")
    table.add_column("Location", style="green")
    for card in cards:
        table.add_row(card.info.term, f"[{card.location[0]}, {card.location[1]}]")
    console.print(table)


@app.command("lookup")
def cmd_lookup(term: str = typer.Argument(..., help="English label of the entity")):
    """Query DBpedia for the description and thumbnail of a term."""
    try:
        result = asyncio.run(lookup(term))
    except DbpediaLookupError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"[blue]Term:[/blue] {term}")
    console.print(f"[green]Description:[/green] {result.description if result.description is not None else '-'}")
    console.print(f"[yellow]Image:[/yellow] {result.image if result.image is not None else '-'}")


async def render_cards(cards: List[Card], client: Optional[httpx.AsyncClient] = None) -> List[DbpediaInfoCard]:
    """Show every card once and wait for their lookups."""
    async with httpx.AsyncClient(timeout=settings.LOOKUP_TIMEOUT) if client is None else nullcontext(client) as c:
        shown = [DbpediaInfoCard.from_card(card, lookup=partial(lookup, client=c)) for card in cards]
        for info_card in shown:
            info_card.on_visible()
        await asyncio.gather(*(info_card.wait() for info_card in shown))
    return shown


@app.command("run-all")
def cmd_run_all(
    input_file: str = typer.Option(..., "--in", help="Blocks file (JSON array or JSONL)"),
    output_file: str = typer.Option(..., "--out", help="Output JSONL file"),
    hr_id: str = typer.Option("cli", "--hr-id", help="Hints registry event id"),
    raw_span: bool = typer.Option(False, "--raw-span", help="Hint the raw block bounds"),
    no_lookup: bool = typer.Option(False, "--no-lookup", help="Skip DBpedia lookups"),
):
    """Detect hints, render every card once and write the results as JSONL."""
    blocks = _read_blocks_or_exit(input_file)
    cards = _run_plugin(blocks, hr_id, raw_span)
    console.print(f"[green]{len(cards)} cards from {len(blocks)} blocks[/green]")

    shown = [] if no_lookup or not cards else asyncio.run(render_cards(cards))

    out_path = Path(output_file)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, 'w', encoding='utf-8') as f:
        for i, card in enumerate(cards):
            rec = card.model_dump(mode="json", by_alias=True)
            if shown:
                info = shown[i].as_dict()
                rec["display"] = {k: info[k] for k in ("description", "image", "state")}
            f.write(json.dumps(rec, ensure_ascii=False) + '\n')
    console.print(f"[green]Saved cards to {output_file}[/green]")


def main():
    app()


if __name__ == "__main__":
    main()
