"""Development server command."""

import os

import click


@click.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address.")
@click.option(
    "--port",
    default=lambda: int(os.environ.get("CRUDFORGE_PORT", "8000")),
    type=int,
    help="Bind port (defaults to $CRUDFORGE_PORT or 8000).",
)
@click.option("--reload", is_flag=True, default=False, help="Reload on code changes.")
def serve(host: str, port: int, reload: bool):
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "crudforge.api.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level=os.environ.get("CRUDFORGE_LOG_LEVEL", "info"),
    )
