"""Typer root app: wires all subcommands together."""

from __future__ import annotations

import json

import typer

from vidsearch import __version__

app = typer.Typer(
    name="vidsearch",
    help="vidsearch: semantic and hybrid search over a video catalog.",
    add_completion=False,
    no_args_is_help=True,
)


@app.command("version")
def version_cmd() -> None:
    """Print version info as JSON."""
    print(json.dumps({"version": __version__, "package": "vidsearch"}))


# --- Register subcommand groups ---

from vidsearch.cli.catalog_cmd import catalog_app  # noqa: E402
from vidsearch.cli.config_cmd import config_app  # noqa: E402
from vidsearch.cli.index_cmd import index_app  # noqa: E402
from vidsearch.cli.search import search_app  # noqa: E402

app.add_typer(index_app, name="index", help="Build and maintain the embedding index")
app.add_typer(search_app, name="search", help="Semantic and hybrid search")
app.add_typer(catalog_app, name="catalog", help="Manage the video catalog")
app.add_typer(config_app, name="config", help="Show/set configuration")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
