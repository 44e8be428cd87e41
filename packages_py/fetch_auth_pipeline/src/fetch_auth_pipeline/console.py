"""
Console tracing and masking helpers.

Request/response exchanges are rendered as Rich panels when verbose tracing
is enabled. Credentials are masked before they reach a log record or the
console.
"""
import json
from typing import Any, Dict, Mapping, Optional

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

SENSITIVE_HEADERS = ("authorization", "proxy-authorization", "x-api-key", "cookie", "set-cookie")

console = Console(stderr=True)


def mask_sensitive(value: Optional[str], show_chars: int = 4) -> str:
    """
    Mask a sensitive value for logging.

    mask_sensitive("secretpassword123")  # "secr***"
    mask_sensitive("abc")                # "***"
    mask_sensitive(None)                 # "<none>"
    """
    if not value:
        return "<none>"
    if len(value) <= show_chars:
        return "*" * len(value)
    return value[:show_chars] + "***"


def mask_auth_header(value: Optional[str], show_chars: int = 15) -> str:
    """Mask an Authorization header value, keeping the scheme visible."""
    if not value:
        return "<none>"
    scheme, sep, credentials = value.partition(" ")
    if sep and scheme.lower() in ("bearer", "basic"):
        return f"{scheme} {mask_sensitive(credentials, max(0, show_chars - len(scheme) - 1))}"
    return mask_sensitive(value, show_chars)


def mask_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Copy of headers with credential headers masked."""
    masked = dict(headers)
    for key in masked:
        if key.lower() in SENSITIVE_HEADERS:
            masked[key] = mask_auth_header(masked[key])
    return masked


def _format_body(body: Optional[bytes]) -> str:
    if not body:
        return ""
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError:
        return f"<binary data: {len(body)} bytes>"
    try:
        return json.dumps(json.loads(text), indent=2, ensure_ascii=False)
    except ValueError:
        return text


def print_request(
    method: str,
    url: str,
    headers: Mapping[str, str],
    body: Optional[bytes] = None,
    target: Optional[Console] = None,
) -> None:
    """Render an outgoing request as a panel."""
    out = target or console
    out.print(Panel(f"[bold cyan]{method}[/bold cyan] {url}", title="[bold blue]Request[/bold blue]"))
    out.print("[bold]Headers:[/bold]", mask_headers(headers))
    body_str = _format_body(body)
    if body_str:
        out.print(Panel(Syntax(body_str, "json", theme="monokai"), title="[bold]Request Body[/bold]"))


def print_response(
    url: str,
    status: int,
    headers: Mapping[str, Any],
    content: Optional[bytes] = None,
    target: Optional[Console] = None,
) -> None:
    """Render a received response as a panel."""
    out = target or console
    status_color = "green" if 200 <= status < 300 else "red"
    out.print(
        Panel(
            f"[bold {status_color}]{status}[/bold {status_color}]",
            title=f"[bold blue]Response[/bold blue] ({url})",
        )
    )
    out.print("[bold]Headers:[/bold]", mask_headers(headers))
    body_str = _format_body(content)
    if body_str:
        out.print(Panel(Syntax(body_str, "json", theme="monokai"), title=f"[bold]Response Body[/bold] (URL: {url})"))
