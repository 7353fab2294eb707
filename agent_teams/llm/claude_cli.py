from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
from pathlib import Path

from agent_teams.errors import ReasoningEngineError

from .base import ChatMessage


@dataclass(frozen=True)
class CmdResult:
    returncode: int
    stdout: str
    stderr: str


async def run_piped(cmd: list[str], stdin_text: str, *, cwd: Path | None = None) -> CmdResult:
    p = await asyncio.create_subprocess_exec(
        *cmd,
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=str(cwd) if cwd else None,
    )
    try:
        out, err = await p.communicate(stdin_text.encode("utf-8"))
    except BaseException:
        # Cancelled or interrupted: do not leave the child running.
        with contextlib.suppress(ProcessLookupError):
            p.kill()
        await p.wait()
        raise
    return CmdResult(p.returncode or 0, out.decode("utf-8", errors="replace"), err.decode("utf-8", errors="replace"))


def flatten_messages(messages: list[ChatMessage]) -> str:
    """Render a chat as one prompt for a non-interactive ``claude -p`` call."""
    system = "\n".join(m.content for m in messages if m.role == "system").strip()
    convo = [m for m in messages if m.role != "system"]

    parts: list[str] = []
    if system:
        parts.append(f"[System instructions]\n{system}\n")
    if len(convo) > 1:
        parts.append("[Previous conversation]")
        for m in convo[:-1]:
            who = "User" if m.role == "user" else "Assistant"
            parts.append(f"{who}: {m.content}\n")
        parts.append("[Current message]")
    if convo:
        parts.append(convo[-1].content)
    return "\n".join(parts)


class ClaudeCliLLM:
    """Runs the `claude` CLI in print mode, one process per call."""

    def __init__(
        self,
        *,
        command: str = "claude",
        workdir: Path | None = None,
        permission_mode: str = "acceptEdits",
        allowed_tools: str | None = None,
    ) -> None:
        self.command = command
        self.workdir = workdir
        self.permission_mode = permission_mode
        self.allowed_tools = allowed_tools

    def build_command(self) -> list[str]:
        cmd = [self.command, "-p", "--permission-mode", self.permission_mode]
        if self.allowed_tools:
            cmd += ["--allowedTools", self.allowed_tools]
        return cmd

    async def chat(self, messages: list[ChatMessage], *, temperature: float = 0.2) -> str:
        # The CLI has no temperature knob; the argument is accepted for protocol compatibility.
        try:
            res = await run_piped(self.build_command(), flatten_messages(messages), cwd=self.workdir)
        except OSError as e:
            raise ReasoningEngineError(f"Failed to launch {self.command!r}: {e}") from e
        if res.returncode != 0:
            raise ReasoningEngineError(
                f"{self.command} exited with code {res.returncode}: {(res.stderr or res.stdout).strip()[:2000]}"
            )
        return res.stdout.strip()
