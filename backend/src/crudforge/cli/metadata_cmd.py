"""Metadata CLI commands: validate and list routes."""

from pathlib import Path

import click

from crudforge.metadata.builder import build_controllers
from crudforge.metadata.loader import MetadataError, MetadataLoader
from crudforge.persistence.sqlite import SQLiteAdapter


def _resolve_metadata_path(path: Path | None) -> Path:
    """Metadata directory from --path, or ``metadata/`` under the repository root."""
    if path is not None:
        return path
    cwd = Path.cwd()
    if cwd.name == "backend":
        return cwd.parent / "metadata"
    return cwd / "metadata"


def _load(path: Path | None) -> MetadataLoader:
    metadata_path = _resolve_metadata_path(path)
    if not metadata_path.exists():
        click.echo(f"Error: Metadata directory not found at {metadata_path}", err=True)
        raise SystemExit(1)

    loader = MetadataLoader(metadata_path)
    try:
        loader.load_all()
    except MetadataError as e:
        click.echo(click.style(f"Metadata validation failed: {e}", fg="red"), err=True)
        raise SystemExit(1)
    return loader


_path_option = click.option(
    "--path",
    "metadata_path",
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Metadata directory (defaults to ./metadata).",
)


@click.group()
def metadata():
    """Metadata commands."""
    pass


@metadata.command()
@_path_option
def validate(metadata_path: Path | None):
    """Load model and controller metadata and report problems."""
    loader = _load(metadata_path)

    models = loader.list_models()
    click.echo(f"Loaded {len(models)} models:")
    for name in sorted(models):
        model = loader.get_model(name)
        click.echo(f"  ✓ {name} ({len(model.fields)} fields)")

    controllers = loader.list_controllers()
    click.echo(f"\nLoaded {len(controllers)} controllers:")
    for name in sorted(controllers):
        controller = loader.get_controller(name)
        click.echo(f"  ✓ {name} ({controller.shape})")

    click.echo(click.style("\nAll metadata is valid.", fg="green", bold=True))


@click.command()
@_path_option
def routes(metadata_path: Path | None):
    """Print every route the metadata's controllers register."""
    loader = _load(metadata_path)

    # Route tables only need model configurations, never a connection
    adapter = SQLiteAdapter(":memory:")
    try:
        controllers = build_controllers(loader, adapter)
    except MetadataError as e:
        click.echo(click.style(f"Metadata validation failed: {e}", fg="red"), err=True)
        raise SystemExit(1)

    for controller in controllers:
        for method, http_method, path in controller.routes():
            click.echo(f"{http_method:<7} {path:<45} {type(controller).__name__}.{method.value}")
