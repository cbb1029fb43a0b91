"""CLI interface for docgraph.

Typer-based command-line interface with Rich output formatting.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
import uvicorn
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from docgraph import __version__
from docgraph.categorize import KeywordCategorizer, load_vocabulary
from docgraph.config import DocgraphConfig, load_config
from docgraph.exceptions import DocgraphError
from docgraph.graph import GraphExporter, RelationshipSynthesizer
from docgraph.graph.server import create_app
from docgraph.ingest import MarkdownParser
from docgraph.pipeline import Indexer
from docgraph.project import ProjectManager
from docgraph.search import SCOPES, Searcher, list_categories
from docgraph.section import MarkdownSectionParser

__all__ = ["app"]

app = typer.Typer(
    name="docgraph",
    help="Index markdown documentation and synthesize a document/section relationship graph.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show progress logging"),
    ] = False,
) -> None:
    """docgraph command-line interface."""
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
            force=True,
        )


def _load_project() -> tuple[ProjectManager, DocgraphConfig]:
    """Locate the enclosing project and load its config, or exit."""
    root = ProjectManager.find_project_root()
    if root is None:
        console.print(
            "[yellow]No docgraph project found.[/yellow] Run [bold]docgraph init[/bold] first."
        )
        raise typer.Exit(code=1)
    pm = ProjectManager(root)
    try:
        config = load_config(pm.config_path)
    except DocgraphError as e:
        console.print(f"[red]Invalid project config:[/red] {e}")
        raise typer.Exit(code=1) from e
    return pm, config


@app.command()
def version() -> None:
    """Show docgraph version."""
    console.print(f"docgraph {__version__}")


@app.command()
def init(
    name: Annotated[
        str,
        typer.Option("--name", "-n", help="Project name"),
    ] = "",
    docs_dir: Annotated[
        str,
        typer.Option("--docs", "-d", help="Directory holding the markdown documents"),
    ] = "",
) -> None:
    """Initialize a new docgraph project in the current directory."""
    pm = ProjectManager()
    try:
        project_dir = pm.init(name=name, docs_dir=docs_dir)
    except (DocgraphError, OSError) as e:
        console.print(f"[red]Failed to initialize project:[/red] {e}")
        raise typer.Exit(code=1) from e

    console.print(f"[green]Initialized docgraph project[/green] at {project_dir}")

    console.print("\nCreated:")
    console.print(f"  {pm.config_path}")

    console.print("\nNext steps:")
    console.print("  docgraph build           Index the docs directory")
    console.print("  docgraph status          Show project status")


@app.command()
def status() -> None:
    """Show project status: indexed documents, sections, relationships."""
    root = ProjectManager.find_project_root()
    pm = ProjectManager(root) if root is not None else ProjectManager()
    try:
        st = pm.status()
    except DocgraphError as e:
        console.print(f"[red]Failed to read project status:[/red] {e}")
        raise typer.Exit(code=1) from e

    if not st.initialized:
        console.print(
            "[yellow]No docgraph project found.[/yellow] Run [bold]docgraph init[/bold] first."
        )
        raise typer.Exit(code=1)

    console.print(f"[bold]docgraph project:[/bold] {st.root.name}")
    if st.config:
        console.print(f"  Docs: {st.config.source.docs_dir}")

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("metric", style="dim")
    table.add_column("value", style="bold")
    table.add_row("Documents", str(st.document_count))
    table.add_row("Sections", str(st.section_count))
    table.add_row("Relationships", str(st.relationship_count))
    table.add_row("Categories", str(st.category_count))
    console.print(table)

    if st.document_count == 0:
        console.print(
            "\n[dim]No documents indexed yet. Run [bold]docgraph build[/bold] to start.[/dim]"
        )


@app.command()
def build() -> None:
    """Rebuild the index from the docs directory."""
    pm, config = _load_project()
    docs_path = pm.docs_path(config)
    if not docs_path.is_dir():
        console.print(f"[red]Docs directory not found:[/red] {docs_path}")
        raise typer.Exit(code=1)

    vocabulary = load_vocabulary(config, pm.root)
    try:
        store = pm.open_store(config)
    except DocgraphError as e:
        console.print(f"[red]Failed to open index:[/red] {e}")
        raise typer.Exit(code=1) from e

    indexer = Indexer(
        parser=MarkdownParser(),
        section_parser=MarkdownSectionParser(),
        categorizer=KeywordCategorizer(vocabulary),
        synthesizer=RelationshipSynthesizer(
            doc_limit=config.index.category_doc_limit,
            section_limit=config.index.category_section_limit,
            extension=config.source.extension,
        ),
        store=store,
        config=config,
    )

    console.print(f"Indexing [bold]{docs_path}[/bold] ...")
    try:
        report = indexer.build(docs_path)
    except DocgraphError as e:
        console.print(f"[red]Build failed:[/red] {e}")
        raise typer.Exit(code=1) from e
    finally:
        store.close()

    for path, reason in report.skipped:
        console.print(f"  [yellow]Skipped[/yellow] {path}: {reason}")

    console.print(
        f"\n[green]Indexed {report.documents} document(s)[/green] "
        f"({report.sections} sections, {report.relationships} relationships)"
    )


@app.command()
def search(
    query: Annotated[str, typer.Argument(help="Search query")],
    scope: Annotated[
        str,
        typer.Option("--scope", "-s", help=f"What to search: {', '.join(SCOPES)}"),
    ] = "all",
    category: Annotated[
        str | None,
        typer.Option("--category", "-c", help="Only nodes scored in this category"),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-k", help="Maximum results per scope"),
    ] = None,
    exact: Annotated[
        bool,
        typer.Option("--exact", "-e", help="Match the query as one phrase"),
    ] = False,
) -> None:
    """Search indexed documents and sections."""
    pm, config = _load_project()
    try:
        store = pm.open_store(config)
        try:
            hits = Searcher(store).search(
                query,
                scope=scope,
                category=category,
                limit=limit or config.search.limit,
                exact=exact or config.search.exact,
            )
        finally:
            store.close()
    except DocgraphError as e:
        console.print(f"[red]Search failed:[/red] {e}")
        raise typer.Exit(code=1) from e

    if not hits:
        console.print("[dim]No results.[/dim]")
        return

    for hit in hits:
        label = hit.section_path or hit.title or hit.doc_path
        console.print(f"[bold]{label}[/bold] [dim]({hit.kind}: {hit.node_id})[/dim]")
        if hit.snippet:
            console.print(f"  {hit.snippet}", markup=False)


@app.command()
def categories() -> None:
    """List indexed categories and how many nodes fall in each."""
    pm, config = _load_project()
    try:
        store = pm.open_store(config)
        try:
            usage = list_categories(store)
        finally:
            store.close()
    except DocgraphError as e:
        console.print(f"[red]Failed to list categories:[/red] {e}")
        raise typer.Exit(code=1) from e

    if not usage:
        console.print("[dim]No categories indexed. Run [bold]docgraph build[/bold] first.[/dim]")
        return

    table = Table(show_header=True, box=None, padding=(0, 2))
    table.add_column("Category", style="bold")
    table.add_column("Nodes", justify="right")
    for name, count in usage:
        table.add_row(name, str(count))
    console.print(table)


@app.command()
def graph(
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the payload to a file instead of stdout"),
    ] = None,
) -> None:
    """Export the relationship graph as JSON."""
    pm, config = _load_project()
    try:
        store = pm.open_store(config)
        try:
            data = GraphExporter(store).export()
        finally:
            store.close()
    except DocgraphError as e:
        console.print(f"[red]Graph export failed:[/red] {e}")
        raise typer.Exit(code=1) from e

    payload = json.dumps(data.to_dict(), indent=2)
    if output is None:
        typer.echo(payload)
        return

    try:
        output.write_text(payload + "\n", encoding="utf-8")
    except OSError as e:
        console.print(f"[red]Failed to write {output}:[/red] {e}")
        raise typer.Exit(code=1) from e
    console.print(
        f"[green]Wrote graph[/green] ({len(data.nodes)} nodes, {len(data.edges)} links) to {output}"
    )


@app.command()
def serve(
    host: Annotated[
        str | None,
        typer.Option("--host", help="Bind address"),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="HTTP port"),
    ] = None,
) -> None:
    """Serve the graph payload over HTTP."""
    pm, config = _load_project()
    bind_host = host or config.server.host
    bind_port = port or config.server.port

    api = create_app(lambda: pm.open_store(config))
    console.print(f"Serving graph at [bold]http://{bind_host}:{bind_port}/api/graph-data[/bold]")
    uvicorn.run(api, host=bind_host, port=bind_port)
