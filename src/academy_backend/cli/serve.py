import click
import uvicorn

from academy_backend.logging_config import configure_logging

@click.command()
@click.option("--host", "-h", default="0.0.0.0", show_default=True)
@click.option("--port", "-p", default=8000, type=int, show_default=True)
@click.option("--reload", is_flag=True, default=False, help="Restart on code changes (development)")
def serve(host, port, reload):
    """Run the HTTP API with uvicorn."""
    configure_logging()
    uvicorn.run("academy_backend.server:app", host=host, port=port, reload=reload)
