from typing import Annotated

import typer
from rich.console import Console

serve_app = typer.Typer(help="Start servers.")
console = Console(stderr=True)

_TRANSPORT_ALIASES = {"stdio": "stdio", "http": "http", "httpstream": "http", "sse": "sse"}


def _normalize_transport(transport: str) -> str:
    normalized = _TRANSPORT_ALIASES.get(transport.strip().lower())
    if normalized is None:
        raise typer.BadParameter(f"Unsupported transport '{transport}'. Supported: stdio, http, sse")
    return normalized


@serve_app.command("mcp")
def mcp(
    transport: Annotated[
        str, typer.Option(envvar="TRANSPORT_TYPE", help="Transport: stdio, http (httpStream) or sse.")
    ] = "stdio",
    host: Annotated[str, typer.Option(envvar="HOST", help="Bind address for http/sse.")] = "0.0.0.0",
    port: Annotated[int, typer.Option(envvar="PORT", help="Port for http/sse.")] = 3000,
    watch: Annotated[bool, typer.Option(help="Invalidate the declaration cache when declarations change.")] = False,
) -> None:
    """Start the MCP server."""
    from snippet_check.config import load_settings
    from snippet_check.mcp.server import create_mcp_server

    resolved = _normalize_transport(transport)
    settings = load_settings()
    server = create_mcp_server(settings, watch=watch)
    if resolved == "stdio":
        console.print(f"[green]Starting MCP server for {settings.library} (transport: stdio)[/green]")
        server.run(transport="stdio")
        return
    console.print(f"[green]Starting MCP server for {settings.library} on {host}:{port} ({resolved})[/green]")
    server.run(transport=resolved, host=host, port=port)  # type: ignore[arg-type]
