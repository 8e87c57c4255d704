"""Confirmation prompt before each outgoing API call."""

import json
import logging
from typing import Any

import httpx
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

logger = logging.getLogger(__name__)
console = Console()

SENSITIVE_HEADERS = {"authorization", "x-api-key", "cookie"}


def _redact_sensitive_data(text: str) -> str:
    """Keep the first and last four characters of a secret."""
    if len(text) <= 8:
        return "****"

    return f"{text[:4]}...{text[-4:]}"


def _redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Redact sensitive headers like Authorization.

    Args:
        headers: Original headers dictionary.

    Returns:
        Dictionary with sensitive values redacted.
    """
    return {
        key: _redact_sensitive_data(value) if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


def _format_payload(data: Any) -> str:
    """Format request payload for display.

    Args:
        data: Request payload (dict, bytes, or other).

    Returns:
        Formatted payload string.
    """
    if isinstance(data, bytes):
        try:
            data = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return "[binary data]"

    if isinstance(data, (dict, list)):
        try:
            return json.dumps(data, indent=2)
        except (TypeError, ValueError):
            return str(data)

    return str(data) if data else "[no payload]"


def _prompt_for_confirmation() -> bool:
    """Ask the user whether to send the request.

    Returns:
        True if user confirms (y), False if user declines (n).
    """
    while True:
        response = console.input(
            "[bold cyan]Proceed with this API call? [y/n][/bold cyan] "
        ).strip().lower()

        if response in ("y", "yes"):
            return True
        elif response in ("n", "no"):
            return False
        else:
            console.print("[yellow]Please enter 'y' or 'n'[/yellow]")


def _print_request(request: httpx.Request) -> None:
    console.print("\n" + "=" * 80)
    console.print("[bold blue]API Request[/bold blue]")
    console.print("=" * 80)

    console.print(f"[bold cyan]Method:[/bold cyan] {request.method}")
    console.print(f"[bold cyan]URL:[/bold cyan] {request.url}")

    if request.headers:
        table = Table(title="Headers", show_header=True, header_style="bold magenta")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")
        for key, value in _redact_headers(dict(request.headers)).items():
            table.add_row(key, value)
        console.print(table)

    if request.content:
        payload_str = _format_payload(request.content)
        console.print("\n[bold cyan]Payload:[/bold cyan]")
        if payload_str.startswith(("{", "[")):
            console.print(Syntax(payload_str, "json", theme="monokai", line_numbers=False))
        else:
            console.print(payload_str)

    console.print("=" * 80)


class ConfirmationTransport(httpx.AsyncBaseTransport):
    """Async httpx transport that prompts for confirmation before each request."""

    def __init__(self, transport: httpx.AsyncBaseTransport) -> None:
        """Initialize confirmation transport with underlying transport.

        Args:
            transport: The underlying httpx transport to wrap.
        """
        self.transport = transport

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Handle request with confirmation prompt.

        Args:
            request: The HTTP request.

        Returns:
            The HTTP response.

        Raises:
            httpx.RequestError: If user declines confirmation.
        """
        _print_request(request)

        if not _prompt_for_confirmation():
            console.print("[bold red]✗ API call cancelled by user[/bold red]\n")
            raise httpx.RequestError("API call cancelled by user", request=request)

        console.print("[bold green]✓ Proceeding with API call[/bold green]\n")
        return await self.transport.handle_async_request(request)

    async def aclose(self) -> None:
        await self.transport.aclose()


def create_async_client(
    base_url: str,
    confirm: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
    **kwargs: Any,
) -> httpx.AsyncClient:
    """Create an httpx async client, optionally prompting before each request.

    Args:
        base_url: Base URL for the client.
        confirm: If True, prompt for confirmation before each API call.
        transport: Underlying transport. Defaults to httpx.AsyncHTTPTransport.
        **kwargs: Additional arguments passed to httpx.AsyncClient.

    Returns:
        Configured httpx.AsyncClient.
    """
    transport = transport or httpx.AsyncHTTPTransport()
    if confirm:
        transport = ConfirmationTransport(transport)

    return httpx.AsyncClient(base_url=base_url, transport=transport, **kwargs)
