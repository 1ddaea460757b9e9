#!/usr/bin/env python3
"""
AgentWorkbench diagnostics.

Exercises the model catalog and workspace core from a terminal, without the
desktop UI:

    python main.py models
    python main.py snapshot ~/projects/demo
"""
import asyncio
import json
import logging
import sys

import click

from model_catalog import ModelCatalog
from storage import CredentialStore, SettingsStore
from workspace import read_text, snapshot

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    """Configure logging to terminal."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )


def _catalog() -> ModelCatalog:
    return ModelCatalog(credentials=CredentialStore(), settings=SettingsStore())


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging.")
def cli(debug: bool):
    """AgentWorkbench model catalog and workspace diagnostics."""
    configure_logging(logging.DEBUG if debug else logging.WARNING)


@cli.command()
@click.option("--available-only", is_flag=True, help="Hide models without credentials.")
def models(available_only: bool):
    """List the merged model catalog."""
    entries = asyncio.run(_catalog().list_models())
    for model in entries:
        if available_only and not model.available:
            continue
        mark = "✓" if model.available else "✗"
        click.echo(f"{mark} {model.id:<32} {model.provider_id:<14} {model.display_name}")


@cli.command()
def providers():
    """List providers and whether an API key is configured."""
    for provider in _catalog().list_providers():
        mark = "✓" if provider["hasApiKey"] else "✗"
        click.echo(f"{mark} {provider['id']:<14} {provider['name']}")


@cli.command("test-local")
@click.option("--endpoint", default=None, help="Ollama base URL (defaults to the saved endpoint).")
def test_local(endpoint):
    """Check that a local Ollama server is reachable."""
    catalog = _catalog()
    target = endpoint or catalog.get_local_endpoint()
    if asyncio.run(catalog.test_local_connection(endpoint)):
        click.echo(f"✓ Ollama is reachable at {target}")
    else:
        click.echo(f"✗ Cannot reach Ollama at {target}")
        sys.exit(1)


@cli.command("snapshot")
@click.argument("root", type=click.Path(exists=True, file_okay=False))
@click.option("--as-json", is_flag=True, help="Print entries as JSON.")
def snapshot_cmd(root: str, as_json: bool):
    """List a directory the way a bound workspace sees it."""
    try:
        entries = snapshot(root)
    except OSError as e:
        raise click.ClickException(str(e))
    if as_json:
        click.echo(json.dumps([e.to_dict() for e in entries], indent=2))
        return
    for entry in entries:
        suffix = "/" if entry.is_directory else f"  ({entry.size} bytes)"
        click.echo(f"{entry.virtual_path}{suffix}")


@cli.command("read")
@click.argument("root", type=click.Path(exists=True, file_okay=False))
@click.argument("virtual_path")
def read_cmd(root: str, virtual_path: str):
    """Print a workspace file by virtual path."""
    result = read_text(root, virtual_path)
    if not result.success:
        raise click.ClickException(f"{result.error_code.value}: {result.error}")
    click.echo(result.content, nl=False)


def main():
    """Main entry point."""
    return cli()


if __name__ == "__main__":
    sys.exit(main())
