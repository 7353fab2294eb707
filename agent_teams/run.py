from __future__ import annotations

import argparse
import asyncio
import dataclasses
import sys
from pathlib import Path

from rich.console import Console
from rich.prompt import Prompt

from agent_teams.chains import INTERVENTION_COMMANDS, PhaseScheduler
from agent_teams.config import Settings, load_settings, parse_team_config
from agent_teams.llm.factory import BACKENDS
from agent_teams.schema import PauseReason, ProjectStatus
from agent_teams.transport import JsonlTransport, MultiTransport, Transport
from agent_teams.ui.console import ConsoleTransport
from agent_teams.utils.run_log import RunLogPaths, append_snapshot, init_run_log, make_run_id


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="agent-teams")
    parser.add_argument("goal", type=str, help="What to build, e.g. 'a todo list web page'")
    parser.add_argument(
        "--team",
        action="append",
        default=[],
        metavar="ROLE=COUNT",
        help="Agents per role (repeatable), e.g. --team planner=2 --team developer=1",
    )
    parser.add_argument("--workdir", type=str, default=None, help="Project workspace directory")
    parser.add_argument("--backend", choices=BACKENDS, default=None, help="Reasoning engine backend")
    parser.add_argument("--no-log", action="store_true", help="Do not write logs/run_*.jsonl")
    parser.add_argument("--verbose", action="store_true", help="Show info logs and agent status changes")
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    changes: dict = {}
    if args.team:
        changes["team_config"] = parse_team_config(",".join(args.team))
    if args.workdir:
        changes["workdir"] = Path(args.workdir).resolve()
    if args.backend:
        changes["llm_backend"] = args.backend
    return dataclasses.replace(settings, **changes) if changes else settings


async def ask(prompt: str, console: Console, **kwargs) -> str:
    """Read a line in a worker thread so Ctrl-C still reaches the event loop."""
    return await asyncio.to_thread(Prompt.ask, prompt, console=console, **kwargs)


async def prompt_user(scheduler: PhaseScheduler, console: Console) -> None:
    state = scheduler.state
    if state.is_paused and state.pause_reason is PauseReason.QUESTION:
        answer = await ask("[bold cyan]Your answer[/bold cyan]", console)
        await scheduler.handle_user_answer(answer)
        return

    if not state.is_paused:
        console.print(f"[yellow]The {state.current_phase} team is waiting for input.[/yellow]")
    command = await ask("Command", console, choices=list(INTERVENTION_COMMANDS), default="retry")
    message = await ask("Message (optional)", console, default="")
    await scheduler.handle_user_intervention(command, message or None)


async def run_project(
    goal: str,
    settings: Settings,
    *,
    console: Console,
    log_paths: RunLogPaths | None,
    verbose: bool = False,
) -> PhaseScheduler:
    sinks: list[Transport] = [ConsoleTransport(console, verbose=verbose)]
    if log_paths is not None:
        sinks.append(JsonlTransport(log_paths))
    scheduler = PhaseScheduler.from_settings(settings, transport=MultiTransport(*sinks))

    try:
        await scheduler.initialize()
        await scheduler.start(goal)
        while scheduler.state.is_running:
            await prompt_user(scheduler, console)
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("[yellow]Interrupted, stopping project...[/yellow]")
        await scheduler.stop()
    return scheduler


def main() -> int:
    # Best-effort fix for terminals that do not default to UTF-8.
    try:
        sys.stdout.reconfigure(encoding="utf-8")
        sys.stderr.reconfigure(encoding="utf-8")
    except (AttributeError, OSError):
        pass

    args = build_parser().parse_args()
    console = Console()
    settings = apply_overrides(load_settings(), args)
    settings.workdir.mkdir(parents=True, exist_ok=True)

    log_paths = None if args.no_log else init_run_log(settings.log_dir, make_run_id())

    scheduler = asyncio.run(run_project(args.goal, settings, console=console, log_paths=log_paths, verbose=args.verbose))
    state = scheduler.state
    if log_paths is not None:
        append_snapshot(log_paths, state, extra={"stage": "final"})

    console.rule("agent-teams result")
    console.print(f"[bold]workdir[/bold]: {settings.workdir}")
    console.print(f"[bold]conversation_logs[/bold]: {scheduler.workspace.logs_dir}")
    if log_paths is not None:
        console.print(f"[bold]run_log[/bold]: {log_paths.jsonl_path}")
    console.print(f"[bold]status[/bold]: {state.status.value}")
    console.print(f"[bold]phases[/bold]: {' -> '.join(state.phase_order)}")
    console.print(f"[bold]files[/bold]: {state.created_files}")
    if any(state.retry_count.values()):
        console.print(f"[bold]retries[/bold]: {state.retry_count}")
    if state.last_error:
        console.print("[bold red]last_error[/bold red]")
        console.print(state.last_error, highlight=False, markup=False)
    return 0 if state.status is ProjectStatus.COMPLETED else 1


if __name__ == "__main__":
    raise SystemExit(main())
