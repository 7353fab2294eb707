from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from agent_teams import transport as ev

_LOG_STYLES = {
    "error": "bold red",
    "warning": "yellow",
    "question": "bold cyan",
    "complete": "bold green",
    "file": "magenta",
    "progress": "blue",
    "bug": "red",
    "review": "cyan",
    "system": "bold",
}


class ConsoleTransport:
    """Renders orchestration events in the terminal."""

    def __init__(self, console: Console | None = None, *, verbose: bool = False) -> None:
        self.console = console or Console()
        self.verbose = verbose

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        c = self.console
        if event == ev.LOG:
            type_ = payload.get("type", "info")
            if type_ == "info" and not self.verbose:
                return
            who = payload.get("team_name") or payload.get("name") or type_
            style = _LOG_STYLES.get(type_, "dim")
            c.print(f"[{style}]{escape(f'[{who}]')}[/{style}] {escape(str(payload.get('message', '')))}", highlight=False)
        elif event == ev.PHASE_CHANGE:
            c.rule(f"phase {payload.get('index')}: {payload.get('phase')}")
        elif event == ev.USER_QUESTION:
            c.print(Panel(Text(payload.get("question", "")), title=f"Question from {payload.get('from_name')}", style="cyan"))
        elif event == ev.USER_INTERVENTION_NEEDED:
            c.print(
                Panel(
                    Text(f"{payload.get('reason', '')}\n\nRetries: {payload.get('retry_count')}"),
                    title=f"Intervention needed ({payload.get('from')})",
                    style="red",
                )
            )
        elif event == ev.TASK_COMPLETE:
            files = payload.get("files_created") or []
            body = payload.get("summary", "")
            if files:
                body += "\n\nFiles:\n" + "\n".join(f"- {f}" for f in files)
            c.print(Panel(Text(body), title="Project complete", style="green"))
        elif event == ev.ERROR:
            c.print(f"[bold red]error[/bold red]: {escape(str(payload.get('message')))}", highlight=False)
        elif event == ev.AGENT_STATUS and self.verbose:
            c.print(f"[dim]{payload.get('name')}: {payload.get('status')}[/dim]", highlight=False)
