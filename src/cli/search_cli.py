"""Typer-based command line for the site search service."""

import os

os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

from pathlib import Path

_project_root = Path(__file__).resolve().parent.parent.parent
from dotenv import load_dotenv

load_dotenv(_project_root / ".env")
load_dotenv(_project_root / ".env.local")

from typing import Optional
from urllib.parse import urlencode

import typer

from src.config import get_settings
from src.services.feeds import UnknownFeedTypeError, render_feed
from src.services.presenter import DataFetchError
from src.services.view_factory import build_search_environment, create_search_presenter

app = typer.Typer()

LOCAL_SITE_URL = "http://localhost"


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind"),
    port: int = typer.Option(8000, help="Port to listen on"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Run the search service with uvicorn."""
    import uvicorn

    uvicorn.run("src.main:app", host=host, port=port, reload=reload)


@app.command()
def layouts():
    """List the search view layouts found on the template path."""
    environment = build_search_environment(get_settings())
    for name in environment.layouts.names:
        typer.echo(name)


@app.command()
def render(
    query: str = typer.Argument(..., help="Search input, as typed in the search box"),
    feed: Optional[str] = typer.Option(None, help="Render a feed (rss or atom) instead of HTML"),
    start: int = typer.Option(0, help="Offset of the first result"),
):
    """Render the search page for QUERY to stdout."""
    settings = get_settings()
    environment = build_search_environment(settings)

    params = {"q": [query]}
    if start:
        params["start"] = [str(start)]
    url = f"{settings.base_url or LOCAL_SITE_URL}{settings.base_path}/search?{urlencode({'q': query})}"

    presenter = create_search_presenter(environment, settings, params, url)
    try:
        if feed:
            output, _ = render_feed(presenter, feed)
        else:
            output = presenter.render().html
    except (DataFetchError, UnknownFeedTypeError) as e:
        typer.echo(f"✗ {e}", err=True)
        raise typer.Exit(1)

    typer.echo(output)
