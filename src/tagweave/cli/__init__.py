"""Tagweave command line interface."""

from tagweave.cli.main import app, typer_app

__all__ = ["app", "typer_app"]
