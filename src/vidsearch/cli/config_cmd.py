"""vidsearch config command: show/set configuration."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.prompt import Prompt

from vidsearch.cli.output import output_json, output_text
from vidsearch.core.config import get_config, save_config
from vidsearch.core.constants import PROVIDER_PRESETS

config_app = typer.Typer()

_console = Console(stderr=True)


@config_app.command("show")
def config_show() -> None:
    """Show current configuration."""
    config = get_config()
    output_json({
        "provider": config.provider or "(not set)",
        "api_base_url": config.api_base_url,
        "api_key": "***" if config.api_key else "(not set)",
        "embed_model": config.embed_model or "(disabled)",
        "local_model": config.local_model,
        "db_path": str(config.db_path),
        "index_path": str(config.index_path),
        "batch_size": config.batch_size,
        "save_every_batches": config.save_every_batches,
        "encode_timeout_sec": config.encode_timeout_sec,
        "semantic_threshold": config.semantic_threshold,
        "hybrid_min_score": config.hybrid_min_score,
        "weights": {"semantic": config.semantic_weight, "keyword": config.keyword_weight},
    }, pretty=True)


@config_app.command("path")
def config_path() -> None:
    """Show path to the embedding index file."""
    config = get_config()
    output_text(str(config.index_path))


@config_app.command("set-provider")
def config_set_provider(
    provider: str = typer.Argument(..., help=f"One of: {', '.join(PROVIDER_PRESETS)}"),
) -> None:
    """Apply a provider preset and save it to config.json."""
    if provider not in PROVIDER_PRESETS:
        raise typer.BadParameter(f"must be one of {', '.join(PROVIDER_PRESETS)}")

    config_data = {"provider": provider, **PROVIDER_PRESETS[provider]}
    if provider != "local":
        api_key = Prompt.ask("  Enter API key (blank to use env vars)", console=_console, default="")
        if api_key.strip():
            config_data["api_key"] = api_key.strip()

    path = save_config(config_data)
    _console.print(f"  [green]✓[/green] Config saved to {path}")
    _console.print("  [yellow]Note:[/yellow] changing the model requires [bold]vidsearch index rebuild[/bold]")
