import asyncio
import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from rrfsearch.config import Config
from rrfsearch.constants import (
    DEFAULT_DISTANCE_METHOD,
    DEFAULT_FULL_TEXT_WEIGHT,
    DEFAULT_MATCH_COUNT,
    DEFAULT_RRF_K,
    DEFAULT_SEMANTIC_WEIGHT,
    DISTANCE_METHODS,
)
from rrfsearch.errors import SearchError
from rrfsearch.filters import canonicalize, check_values, parse_filter, validate
from rrfsearch.logging import configure_logging, uvicorn_log_config
from rrfsearch.search import SearchParams

console = Console()


def _load_filter(raw: str | None) -> dict:
    if not raw:
        return {}
    try:
        path = Path(raw)
        text = path.read_text() if path.is_file() else raw
    except OSError:
        text = raw
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}") from e


@click.group(invoke_without_command=True)
@click.pass_context
def main(ctx):
    """rrfsearch - hybrid document search with metadata filters"""
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = Config()
    except ValueError as e:
        # Only fail if we're running a command that needs config
        ctx.obj["config_error"] = str(e)

    if ctx.invoked_subcommand is None:
        console.print("[bold]rrfsearch[/bold] - hybrid document search\n")
        console.print("Run [cyan]rrfsearch serve[/cyan] to start the server.")
        console.print("\nUse [cyan]rrfsearch --help[/cyan] for all commands.")


def _require_config(ctx) -> Config:
    if "config_error" in ctx.obj:
        console.print(f"[red]Error:[/red] {ctx.obj['config_error']}")
        raise SystemExit(1)
    return ctx.obj["config"]


@main.command()
@click.pass_context
def status(ctx):
    """Show the effective configuration."""
    config = _require_config(ctx)

    console.print("[bold]rrfsearch status[/bold]")
    console.print()
    console.print(f"Query engine: [cyan]{config.supabase_url or 'not set'}[/cyan]")
    console.print(f"Embedding model: {config.embedding_model}")
    console.print(f"Fusion mode: {config.fusion_mode}")
    console.print(f"Strict filters: {config.strict_filters}")

    if missing := config.missing():
        console.print()
        console.print("[bold]Missing environment variables:[/bold]")
        for name in missing:
            console.print(f"  [yellow]{name}[/yellow]")
        raise SystemExit(1)


@main.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.pass_context
def serve(ctx, host: str, port: int, reload: bool):
    """Start the search API server."""
    config = _require_config(ctx)

    import uvicorn

    console.print(f"[bold]rrfsearch server[/bold] starting on http://{host}:{port}")
    console.print("[dim]Press Ctrl+C to stop[/dim]")
    console.print()

    uvicorn.run(
        "rrfsearch.server.app:app",
        host=host,
        port=port,
        reload=reload,
        log_config=uvicorn_log_config(config.json_logs),
    )


@main.command("check-filter")
@click.argument("filter_json")
@click.pass_context
def check_filter(ctx, filter_json: str):
    """Validate a filter (JSON string or file) and print its canonical form."""
    expr = _load_filter(filter_json)
    if not validate(expr):
        console.print("[red]Invalid filter schema.[/red]")
        raise SystemExit(1)

    config = ctx.obj.get("config")
    if config is not None and config.strict_filters:
        try:
            check_values(parse_filter(expr))
        except SearchError as e:
            console.print(f"[red]{e.message}[/red]")
            raise SystemExit(1)

    console.print_json(json.dumps(canonicalize(expr)))


@main.command()
@click.argument("query")
@click.option("-f", "--filter", "filter_json", default=None, help="Metadata filter (JSON string or file)")
@click.option("-n", "--match-count", default=DEFAULT_MATCH_COUNT, show_default=True)
@click.option("--full-text-weight", default=DEFAULT_FULL_TEXT_WEIGHT, show_default=True)
@click.option("--semantic-weight", default=DEFAULT_SEMANTIC_WEIGHT, show_default=True)
@click.option("--rrf-k", default=DEFAULT_RRF_K, show_default=True)
@click.option(
    "--distance-method",
    default=DEFAULT_DISTANCE_METHOD,
    show_default=True,
    type=click.Choice(DISTANCE_METHODS),
)
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON response")
@click.pass_context
def search(
    ctx,
    query: str,
    filter_json: str | None,
    match_count: int,
    full_text_weight: float,
    semantic_weight: float,
    rrf_k: int,
    distance_method: str,
    as_json: bool,
):
    """Run one search against the configured query engine."""
    config = _require_config(ctx)
    configure_logging(config.log_level, json_logs=config.json_logs)

    params = SearchParams(
        match_count=match_count,
        full_text_weight=full_text_weight,
        semantic_weight=semantic_weight,
        rrf_k=rrf_k,
        distance_method=distance_method,
    )

    try:
        body = asyncio.run(_run_search(config, query, _load_filter(filter_json), params))
    except SearchError as e:
        console.print(f"[red]{e.code}:[/red] {e.message}")
        raise SystemExit(1)

    if as_json:
        console.print_json(json.dumps(body, default=str))
        return

    table = Table(title=f"Results for {query!r}")
    table.add_column("#", justify="right")
    table.add_column("id")
    table.add_column("rrf", justify="right")
    table.add_column("kw rank", justify="right")
    table.add_column("sem rank", justify="right")
    table.add_column("content")
    for i, result in enumerate(body["results"], 1):
        scores = result["search_scores"]
        table.add_row(
            str(i),
            str(result["id"]),
            f"{scores['rrf_score']:.5f}",
            str(scores["keyword_rank"] or "-"),
            str(scores["semantic_rank"] or "-"),
            (result["content"] or "")[:80],
        )
    console.print(table)

    summary = body["summary"]
    console.print(
        f"[dim]{summary['total_results']} results, distance={summary['distance_method_used']}, "
        f"filter applied={summary['filter_applied']}[/dim]"
    )


async def _run_search(config: Config, query: str, metadata_filter: dict, params: SearchParams) -> dict:
    from rrfsearch.server.runtime import Runtime

    runtime = Runtime(config=config)
    await runtime.connect()
    try:
        response = await runtime.orchestrator.search(query, metadata_filter, params)
        return response.to_dict()
    finally:
        await runtime.close()


if __name__ == "__main__":
    main()
