"""Command-line interface for acp-bridge."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

if TYPE_CHECKING:
    from acp_bridge.config import Config
    from acp_bridge.state.events import NotificationEvent
    from acp_bridge.transport.websocket import Connector
    from acp_bridge.types.requests import IdentifiedPermissionRequest
    from acp_bridge.types.responses import RequestPermissionResponse

console = Console(stderr=True)
out = Console()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="acp-bridge",
        description="ACP over WebSocket - drive a remote Agent Client Protocol agent",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (can be repeated)",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Config file path (default: ./acp-bridge.yaml)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")

    connect_parser = subparsers.add_parser(
        "connect",
        help="Connect to an agent, open a session and optionally send a prompt",
    )
    connect_parser.add_argument(
        "url",
        nargs="?",
        help="Agent WebSocket URL (default: config url or ACP_BRIDGE_URL)",
    )
    connect_parser.add_argument(
        "--cwd",
        type=Path,
        default=Path.cwd(),
        help="Working directory for the new session",
    )
    connect_parser.add_argument(
        "--prompt",
        help="Prompt text to send once the session is open",
    )
    connect_parser.add_argument(
        "--auto-approve",
        action="store_true",
        help="Answer permission requests with the first allow option",
    )

    return parser


def run_cli(args: Sequence[str]) -> int:
    """Run the CLI with the given arguments."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.command is None:
        parser.print_help()
        return 1

    from acp_bridge.config import load_config
    from acp_bridge.logging import setup_logging

    config = load_config(config_path=parsed.config)
    if parsed.quiet:
        config.logging.verbose = 0
    elif parsed.verbose:
        config.logging.verbose = parsed.verbose + 1
    setup_logging(config.logging)

    if parsed.command == "connect":
        url = parsed.url or config.url
        if not url:
            console.print("[red]Error: No agent URL given[/red]")
            return 1
        return asyncio.run(
            run_connect(
                config,
                url,
                cwd=parsed.cwd,
                prompt=parsed.prompt,
                auto_approve=parsed.auto_approve,
                quiet=parsed.quiet,
            )
        )

    parser.print_help()
    return 1


def choose_permission(
    request: IdentifiedPermissionRequest, auto_approve: bool
) -> RequestPermissionResponse:
    """Pick the first allow option when approving, otherwise cancel."""
    from acp_bridge.types.common import PermissionOptionKind
    from acp_bridge.types.responses import RequestPermissionResponse

    if auto_approve:
        for option in request.options:
            if option.kind in (PermissionOptionKind.ALLOW_ONCE, PermissionOptionKind.ALLOW_ALWAYS):
                return RequestPermissionResponse.selected(option.option_id)
    return RequestPermissionResponse.cancelled()


async def run_connect(
    config: Config,
    url: str,
    cwd: Path,
    prompt: str | None = None,
    auto_approve: bool = False,
    quiet: bool = False,
    connector: Connector | None = None,
) -> int:
    """Connect, initialize, open a session and print what the agent sends.

    Returns:
        Exit code
    """
    from acp_bridge.client.fs import LocalFileSystem
    from acp_bridge.errors import BridgeError, JsonRpcError
    from acp_bridge.session import AcpSessionClient
    from acp_bridge.transport.websocket import open_websocket
    from acp_bridge.types.common import (
        ClientCapabilities,
        FileSystemCapability,
        Implementation,
        TextContent,
    )
    from acp_bridge.types.requests import InitializeRequest, NewSessionRequest, PromptRequest

    fs = LocalFileSystem(config.fs.root)

    session: AcpSessionClient

    def on_permission(request: IdentifiedPermissionRequest) -> None:
        response = choose_permission(request, auto_approve)
        if not quiet:
            title = request.tool_call.title or request.tool_call.tool_call_id
            console.print(
                f"[yellow]Permission requested:[/yellow] {escape(title)} "
                f"-> {response.outcome.option_id or response.outcome.outcome}"
            )
        session.resolve_permission(response)

    session = AcpSessionClient(
        url,
        reconnect_attempts=config.reconnect.attempts,
        reconnect_delay=config.reconnect.delay,
        read_text_file=fs.read_text_file if config.fs.read else None,
        write_text_file=fs.write_text_file if config.fs.write else None,
        on_request_permission=on_permission,
        connector=connector or open_websocket,
    )

    try:
        await session.connect()
        agent = session.agent
        assert agent is not None

        init = await agent.initialize(
            InitializeRequest(
                client_capabilities=ClientCapabilities(
                    fs=FileSystemCapability(
                        read_text_file=config.fs.read,
                        write_text_file=config.fs.write,
                    )
                ),
                client_info=Implementation(name=config.client.name, version=config.client.version),
            )
        )
        if not quiet:
            name = init.agent_info.name if init.agent_info else "agent"
            console.print(f"[green]Connected to {escape(name)}[/green] [dim]({url})[/dim]")

        new_session = await agent.new_session(NewSessionRequest(cwd=str(cwd.resolve())))
        if not quiet:
            console.print(f"[dim]Session {new_session.session_id}[/dim]")

        if prompt:
            response = await agent.prompt(
                PromptRequest(session_id=new_session.session_id, prompt=[TextContent(text=prompt)])
            )
            render_notifications(session.notifications)
            if not quiet:
                console.print(f"[dim]Stop reason: {response.stop_reason.value}[/dim]")
    except (BridgeError, JsonRpcError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1
    finally:
        await session.disconnect()

    return 0


def render_notifications(events: Sequence[NotificationEvent]) -> None:
    """Print the notification log, grouped, with tool calls merged."""
    from acp_bridge.state.aggregate import group_notifications, merge_tool_calls, tool_call_updates
    from acp_bridge.state.events import NotificationKind
    from acp_bridge.types.notifications import TOOL_CALL_KINDS

    for group in group_notifications(events):
        head = group[0]
        if head.kind is NotificationKind.ERROR:
            for event in group:
                out.print(f"[red]error:[/red] {escape(str(event.data))}")
        elif head.kind is NotificationKind.CONNECTION_CHANGE:
            for event in group:
                state = event.data
                out.print(f"[dim]connection: {state.status.value}[/dim]")  # type: ignore[union-attr]
        elif head.session_update in TOOL_CALL_KINDS:
            for call in merge_tool_calls(tool_call_updates(group)):
                status = call.status.value if call.status else "pending"
                title = escape(call.title or call.tool_call_id or "")
                out.print(f"[cyan]tool[/cyan] {title} {escape(f'[{status}]')}")
        else:
            text = "".join(_block_text(event) for event in group)
            label = (head.session_update or "").replace("_chunk", "").replace("_", " ")
            out.print(f"[bold]{escape(label)}:[/bold] {escape(text)}")


def _block_text(event: NotificationEvent) -> str:
    update = event.data.update  # type: ignore[union-attr]
    content = update.content
    if isinstance(content, dict):
        return str(content.get("text", ""))
    if content is not None and hasattr(content, "text"):
        return content.text
    return ""
