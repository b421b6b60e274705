"""CrudForge CLI entry point."""

import click


@click.group()
def cli():
    """CrudForge: REST controllers generated from model metadata."""
    pass


# Register subcommands
from crudforge.cli.metadata_cmd import metadata, routes  # noqa: E402
from crudforge.cli.serve_cmd import serve  # noqa: E402

cli.add_command(metadata)
cli.add_command(routes)
cli.add_command(serve)
