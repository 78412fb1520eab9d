"""Output helpers: JSON payloads to stdout, diagnostics to stderr."""

from __future__ import annotations

import json
import sys

import typer

from vidsearch.search.results import error_payload


def output_json(data: dict | list, pretty: bool = False) -> None:
    print(json.dumps(data, indent=2 if pretty else None, default=str))


def output_text(text: str) -> None:
    print(text)


def error(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)


def progress(message: str) -> None:
    print(message, file=sys.stderr)


def fail(exc: Exception) -> typer.Exit:
    """Print the failure payload (with its status code) and return the Exit to raise.

    Callers write ``raise fail(e)`` so the control flow stays visible.
    """
    status_code, payload = error_payload(exc)
    error(f"{exc} (status {status_code})")
    output_json({**payload, "status_code": status_code})
    return typer.Exit(1)
