"""Main CLI entry point for the reasoning relay."""

from typing import Optional

import click
import uvicorn

from reasonrelay.llm.config import load_config_from_env


@click.group()
@click.version_option(version="0.1.0", prog_name="reasonrelay")
def cli() -> None:
    """Reasoning relay - stream model reasoning and answers to live clients."""
    pass


@cli.command()
@click.option("--host", default=None, help="Bind address (default: RELAY_HTTP_HOST or 0.0.0.0)")
@click.option("--port", type=int, default=None, help="Port (default: RELAY_HTTP_PORT or 8080)")
@click.option("--reload", is_flag=True, help="Reload on code changes (development only)")
@click.option("--log-level", default="info", show_default=True, help="uvicorn log level")
def serve(host: Optional[str], port: Optional[int], reload: bool, log_level: str) -> None:
    """Run the HTTP and WebSocket server."""
    config = load_config_from_env()
    bind_host = host or config.host
    bind_port = port or config.port

    click.echo(f"Relaying {config.model} on http://{bind_host}:{bind_port} (WebSocket at /ws)")
    uvicorn.run(
        "reasonrelay.api.app:app",
        host=bind_host,
        port=bind_port,
        reload=reload,
        log_level=log_level,
    )


def main() -> None:
    """CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
