"""SchemaFAQ CLI — entry-point for all backend operations.

Usage:
    python cli/main.py --help

Commands:
    generate  → run the full FAQ pipeline for a URL
    scrape    → fetch + extract only (debug what the LLM will see)
    logs      → list / clear the run log
    serve     → start the HTTP API

API keys are read from the environment (``OPENROUTER_API_KEY``,
``SERPER_API_KEY``, optional ``FIRECRAWL_API_KEY``) or a ``.env`` file.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from faqbot.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
import json
import logging

import typer

from cli.commands.logs import logs_app
from cli.rendering import render_result
from faqbot.config import Credentials

app = typer.Typer(
    name="faqbot",
    help="SchemaFAQ CLI.",
    no_args_is_help=True,
)
app.add_typer(logs_app, name="logs")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show pipeline log output."),
) -> None:
    """Configure logging for every sub-command."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------
@app.command("generate")
def generate(
    url: str = typer.Argument(..., help="Page to generate an FAQ for."),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON."),
    strict_search: bool = typer.Option(
        False, "--strict-search", help="Abort if any keyword search fails."
    ),
) -> None:
    """Run the FAQ pipeline for URL and print the result."""
    from faqbot.pipeline import run_pipeline

    credentials = Credentials.from_env()
    missing = credentials.missing()
    if missing:
        typer.echo(f"[generate] Missing API key(s): {', '.join(missing)}", err=True)
        raise typer.Exit(1)

    typer.echo(f"[generate] Running pipeline for {url!r} …", err=True)
    result = asyncio.run(
        run_pipeline(url, credentials, strict_search=strict_search or None)
    )

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        typer.echo(render_result(result))

    if not result.ok:
        raise typer.Exit(1)


@app.command("scrape")
def scrape(
    url: str = typer.Argument(..., help="URL to scrape."),
) -> None:
    """Fetch and extract URL, printing the title and body the LLM would see."""
    from faqbot.errors import PipelineError
    from faqbot.pipeline.analysis import analyze_page
    from faqbot.scraper import extract_content, fetch_page

    typer.echo(f"[scrape] Fetching {url!r} …")
    try:
        raw = asyncio.run(fetch_page(url, Credentials.from_env()))
        typer.echo(f"[scrape] HTTP {raw.status_code} ({raw.format}), extracting content …")
        page = extract_content(raw)
    except PipelineError as exc:
        typer.echo(f"[scrape] {exc.stage} failed: {exc.message}", err=True)
        raise typer.Exit(1)

    typer.echo(f"[scrape] Title  : {page.title}")
    typer.echo(f"[scrape] Chars  : {len(page.body_text)}")
    analysis = analyze_page(raw)
    typer.echo(f"[scrape] SEO    : {analysis.seo_score}/100 ({analysis.word_count} words)")
    typer.echo("")
    typer.echo(page.body_text)


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
    reload: bool = typer.Option(False, help="Reload on code changes."),
) -> None:
    """Start the HTTP API under uvicorn."""
    import uvicorn

    uvicorn.run("faqbot.api.app:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
