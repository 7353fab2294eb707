from __future__ import annotations

import asyncio
from collections.abc import Awaitable

from agent_teams.agents.team import Team
from agent_teams.config import Settings, parse_team_config
from agent_teams.errors import UnknownPhaseError
from agent_teams.llm import EngineFactory, build_engine_factory
from agent_teams.roles import DEFAULT_FIX_PHASE, get_phase_order
from agent_teams.schema import PauseReason, ProjectState, TaskContext, TeamAction, TeamResult
from agent_teams.transport import (
    CONVERSATION,
    DESIGN_UPDATED,
    ERROR,
    FILE_CREATED,
    LOG,
    PHASE_CHANGE,
    PHASE_STATUS,
    PROJECT_STOPPED,
    SPEC_UPDATED,
    TASK_COMPLETE,
    USER_INTERVENTION_NEEDED,
    USER_QUESTION,
    RecordingTransport,
    Transport,
    log_payload,
)
from agent_teams.utils.files import Workspace, validate_relative_path

INTERVENTION_COMMANDS = ("continue", "retry", "skip", "abort")

_DEFAULT_INTERVENTION_MESSAGES = {
    "continue": "The user approved moving on.",
    "retry": "Please try again.",
    "skip": "The previous phase was skipped.",
}


class PhaseScheduler:
    """
    Drives the teams of one project through the phase order.

    State machine: idle -> running <-> paused -> completed, with stopped
    reachable from anywhere. Every reasoning-engine call goes through a team
    turn; turns never overlap within a project. ``state`` is owned here and
    nothing else mutates it.
    """

    def __init__(
        self,
        team_config: dict[str, int] | str,
        *,
        engine_factory: EngineFactory,
        workspace: Workspace,
        transport: Transport | None = None,
        max_retry_count: int = 5,
        max_discussion_rounds: int = 3,
        fix_phase: str = DEFAULT_FIX_PHASE,
    ) -> None:
        if max_retry_count < 1:
            raise ValueError("max_retry_count must be >= 1")
        self.team_config = parse_team_config(team_config)
        self.engine_factory = engine_factory
        self.workspace = workspace
        self.transport: Transport = transport if transport is not None else RecordingTransport()
        self.max_retry_count = max_retry_count
        self.max_discussion_rounds = max_discussion_rounds
        self.fix_phase = fix_phase

        self.state = ProjectState()
        self.teams: dict[str, Team] = {}
        self._generation = 0  # bumped on stop; older turn results are discarded
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: Transport | None = None,
        workspace: Workspace | None = None,
        engine_factory: EngineFactory | None = None,
    ) -> PhaseScheduler:
        workspace = workspace or Workspace(settings.workdir)
        return cls(
            settings.team_config,
            engine_factory=engine_factory or build_engine_factory(settings, workdir=workspace.src_dir),
            workspace=workspace,
            transport=transport,
            max_retry_count=settings.max_retry_count,
            max_discussion_rounds=settings.max_discussion_rounds,
            fix_phase=settings.fix_phase,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        self.workspace.prepare()

        active = {role_id for role_id, count in self.team_config.items() if count > 0}
        phase_order = tuple(r for r in get_phase_order() if r in active)

        self.teams = {
            role_id: Team(
                role_id,
                self.team_config[role_id],
                engine_factory=self.engine_factory,
                transport=self.transport,
                side_effects=self,
                max_discussion_rounds=self.max_discussion_rounds,
            )
            for role_id in phase_order
        }
        self.state = ProjectState(phase_order=phase_order)
        self.log("system", f"Project initialized. Teams: {' -> '.join(phase_order)}")

    async def start(self, requirement: str) -> None:
        async with self._lock:
            if not self.teams:
                await self.initialize()
            self.state.is_running = True
            self.state.is_paused = False
            self.state.pause_reason = None
            self.state.completed = False
            self.state.stopped = False
            self.state.current_phase_index = 0

            self.log("system", "Project started")
            self.log_conversation("user", self.state.phase_order[0], "requirement", requirement)
            await self.run_current_phase(requirement)

    async def stop(self) -> None:
        """Stop the project. In-flight engine calls finish but their results are dropped."""
        self._generation += 1
        self.state.is_running = False
        self.state.is_paused = False
        self.state.pause_reason = None
        if not self.state.completed:
            self.state.stopped = True

        for team in self.teams.values():
            await team.stop()

        self.log("system", "Project stopped")
        self.transport.emit(PROJECT_STOPPED, {})

    # ------------------------------------------------------------------
    # Phase execution
    # ------------------------------------------------------------------

    async def run_current_phase(self, message: str, context: TaskContext | None = None) -> None:
        if not self.state.is_running or self.state.is_paused:
            return

        role_id = self.state.current_phase
        team = self.teams.get(role_id) if role_id else None
        if team is None:
            self.report_error(f"No team for phase index {self.state.current_phase_index} ({role_id!r})")
            return

        self.log("system", f"=== {team.display_name} started ===")
        self.transport.emit(PHASE_CHANGE, {"phase": role_id, "index": self.state.current_phase_index})
        self.transport.emit(PHASE_STATUS, {"phase": role_id, "status": "running"})

        task_context = TaskContext(
            from_team=context.from_team if context else None,
            spec=self.state.spec,
            design=self.state.design,
            files=list(self.state.created_files),
        )
        await self._guarded(role_id, self._run_turn(team.receive_task(message, task_context)))

    async def _run_turn(self, turn: Awaitable[TeamResult]) -> None:
        result = await self._await_result(turn)
        await self.handle_team_result(result)

    async def _await_result(self, turn: Awaitable[TeamResult]) -> TeamResult | None:
        generation = self._generation
        result = await turn
        if generation != self._generation or not self.state.is_running:
            self.log("info", f"Discarded a {result.action.value} result from {result.team} after stop")
            return None
        return result

    async def _guarded(self, phase: str | None, work: Awaitable[None]) -> None:
        """Run a team turn; a failure marks the phase as errored and leaves the state alone."""
        generation = self._generation
        try:
            await work
        except Exception as e:
            message = f"{type(e).__name__}: {e}"
            if generation != self._generation or not self.state.is_running:
                self.log("info", f"Discarded a failure from phase {phase} after stop: {message}")
                return
            self.state.last_error = message
            self.log("error", f"Phase {phase} failed: {message}")
            self.transport.emit(ERROR, {"message": message, "phase": phase})
            self.transport.emit(PHASE_STATUS, {"phase": phase, "status": "error"})

    async def handle_team_result(self, result: TeamResult | None) -> None:
        if result is None:
            return
        if not self.state.is_running:
            self.log("info", f"Ignored {result.action.value} from {result.team}: project is not running")
            return

        action = result.action
        if action is TeamAction.ASK_USER:
            self._pause_for_question(result.team, result.content)

        elif action is TeamAction.ASK_PREV_TEAM:
            await self.ask_previous_team(result.team, result.content)

        elif action is TeamAction.PHASE_COMPLETE:
            self.log("complete", f"{self._team_name(result.team)} finished: {result.content}")
            self.log_conversation(result.team, "next phase", "phase_complete", result.content)
            self.state.retry_count[result.team] = 0
            await self.move_to_next_phase(result.content)

        elif action is TeamAction.SEND_NEXT_TEAM:
            self.log_conversation(result.team, "next phase", "handoff", result.content)
            await self.move_to_next_phase(result.content)

        elif action is TeamAction.ROLLBACK:
            await self.rollback_to_previous_phase(result.team, result.content)

        elif action is TeamAction.REQUEST_FIX:
            await self.request_fix(result.team, result.content)

        elif action is TeamAction.TASK_COMPLETE:
            await self.complete_project(result.content)

        elif action is TeamAction.CONTINUE:
            # The team went idle; nothing happens until the next external trigger.
            self.log("info", f"{self._team_name(result.team)} is waiting for further input")
            self.transport.emit(PHASE_STATUS, {"phase": result.team, "status": "idle"})

    async def move_to_next_phase(self, message: str) -> None:
        previous = self.state.current_phase
        self.state.current_phase_index += 1

        if self.state.current_phase_index >= len(self.state.phase_order):
            self.state.current_phase_index = len(self.state.phase_order)
            await self.complete_project(message)
            return

        self.log("system", f"{previous} -> {self.state.current_phase} handoff")
        await self.run_current_phase(message, TaskContext(from_team=previous))

    async def rollback_to_previous_phase(self, from_team: str, reason: str) -> None:
        count = self._bump_retry(from_team)
        self.log("warning", f"Rollback requested by {from_team} ({count}/{self.max_retry_count}): {reason}")

        if count >= self.max_retry_count:
            self._request_intervention(from_team, reason, count)
            return

        if self.state.current_phase_index == 0:
            self.log("warning", f"{from_team} asked for a rollback but there is no previous phase")
            self._request_intervention(from_team, reason, count)
            return

        self.state.current_phase_index -= 1
        target = self.state.phase_order[self.state.current_phase_index]
        self.log("system", f"{from_team} -> {target} rollback")
        self.log_conversation(from_team, target, "rollback", reason)
        self.transport.emit(PHASE_CHANGE, {"phase": target, "index": self.state.current_phase_index})

        await self._run_turn(self.teams[target].receive_fix_request(from_team, reason))

    async def request_fix(self, from_team: str, issue: str) -> None:
        try:
            target_index = self.phase_index(self.fix_phase)
        except UnknownPhaseError as e:
            self.report_error(f"{e}; fix request from {from_team} dropped")
            return

        count = self._bump_retry(from_team)
        self.log("warning", f"Fix requested by {from_team} ({count}/{self.max_retry_count}): {issue}")

        if count >= self.max_retry_count:
            self._request_intervention(from_team, issue, count)
            return

        self.state.current_phase_index = target_index
        self.log("system", f"{from_team} -> {self.fix_phase} fix request")
        self.log_conversation(from_team, self.fix_phase, "fix_request", issue)
        self.transport.emit(PHASE_CHANGE, {"phase": self.fix_phase, "index": self.state.current_phase_index})

        await self._run_turn(self.teams[self.fix_phase].receive_fix_request(from_team, issue))

    async def ask_previous_team(self, from_team: str, question: str) -> None:
        order = self.state.phase_order
        from_index = order.index(from_team) if from_team in order else -1
        if from_index <= 0:
            # Nobody before the first phase; the user answers instead.
            self._pause_for_question(from_team, question)
            return

        previous = order[from_index - 1]
        self.log("system", f"{from_team} -> {previous} question")
        self.log_conversation(from_team, previous, "question", question)

        message = f"[Question from the {from_team} team]\n{question}\n\nPlease answer."
        answer = await self._await_result(self.teams[previous].receive_task(message, TaskContext(from_team=from_team)))
        if answer is None:
            return
        self.log_conversation(previous, from_team, "answer", answer.answer_text)

        await self._run_turn(self.teams[from_team].receive_team_answer(previous, answer.answer_text))

    async def complete_project(self, summary: str) -> None:
        self.state.is_running = False
        self.state.is_paused = False
        self.state.pause_reason = None
        self.state.completed = True
        self.state.current_phase_index = min(self.state.current_phase_index, len(self.state.phase_order))

        self.log("system", f"=== Project complete ===\n{summary}")
        self.log_conversation("system", "user", "complete", summary)
        log_path = self.workspace.save_conversation_log()
        self.log("file", f"Conversation log saved: {log_path}")

        self.transport.emit(TASK_COMPLETE, {"summary": summary, "files_created": list(self.state.created_files)})

    # ------------------------------------------------------------------
    # Human input
    # ------------------------------------------------------------------

    async def handle_user_answer(self, answer: str) -> None:
        async with self._lock:
            if not self.state.is_paused or self.state.pause_reason is not PauseReason.QUESTION:
                self.log("warning", "No question is pending; answer ignored")
                return

            self.state.is_paused = False
            self.state.pause_reason = None
            role_id = self.state.current_phase
            self.log_conversation("user", role_id or "?", "answer", answer)

            team = self.teams.get(role_id) if role_id else None
            if team is None:
                self.report_error(f"No team for phase index {self.state.current_phase_index} ({role_id!r})")
                return
            await self._guarded(role_id, self._run_turn(team.receive_user_answer(answer)))

    async def handle_user_intervention(self, command: str, message: str | None = None) -> None:
        async with self._lock:
            if not self.state.is_running:
                self.log("warning", f"Intervention {command!r} ignored: project is not running")
                return
            if command not in INTERVENTION_COMMANDS:
                self.log("warning", f"Unknown intervention command {command!r}; expected {', '.join(INTERVENTION_COMMANDS)}")
                return

            self.state.is_paused = False
            self.state.pause_reason = None
            self.log("system", f"User intervention: {command}")
            self.log_conversation("user", "system", "intervention", f"{command}: {message}" if message else command)

            if command == "abort":
                await self.stop()
                return

            text = message or _DEFAULT_INTERVENTION_MESSAGES[command]
            phase = self.state.current_phase
            if command == "continue":
                self.state.retry_count.clear()
                await self._guarded(phase, self.move_to_next_phase(text))
            elif command == "retry":
                if phase is not None:
                    self.state.retry_count[phase] = 0
                await self._guarded(phase, self.run_current_phase(text))
            elif command == "skip":
                await self._guarded(phase, self.move_to_next_phase(text))

    # ------------------------------------------------------------------
    # Side effects requested by teams
    # ------------------------------------------------------------------

    async def update_spec(self, content: str) -> None:
        self.state.spec = content
        self.workspace.write_spec(content)
        self.transport.emit(SPEC_UPDATED, {"content": content})
        self.log("file", "Specification updated: spec/spec.md")

    async def update_design(self, content: str) -> None:
        self.state.design = content
        self.workspace.write_design(content)
        self.transport.emit(DESIGN_UPDATED, {"content": content})
        self.log("file", "Design updated: spec/design.md")

    async def write_file(self, rel_path: str, content: str) -> None:
        try:
            rel = validate_relative_path(rel_path)
            self.workspace.write_file(rel, content)
        except ValueError as e:
            self.report_error(f"Rejected file write: {e}")
            return

        if self.state.add_created_file(rel):
            self.log_conversation(self.state.current_phase or "system", "system", "file_created", rel)
        self.transport.emit(FILE_CREATED, {"path": rel})
        self.log("file", f"File written: {rel}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def phase_index(self, phase: str) -> int:
        try:
            return self.state.phase_order.index(phase)
        except ValueError:
            raise UnknownPhaseError(phase) from None

    def _bump_retry(self, team: str) -> int:
        count = self.state.retries(team) + 1
        self.state.retry_count[team] = count
        return count

    def _pause_for_question(self, team: str, question: str) -> None:
        self.log("question", f"{self._team_name(team)} asks: {question}")
        self.log_conversation(team, "user", "question", question)
        self.state.is_paused = True
        self.state.pause_reason = PauseReason.QUESTION
        self.transport.emit(USER_QUESTION, {"from": team, "from_name": self._team_name(team), "question": question})

    def _request_intervention(self, team: str, reason: str, count: int) -> None:
        self.log("error", f"{self._team_name(team)} hit the same problem {count} times; user intervention needed")
        self.state.is_paused = True
        self.state.pause_reason = PauseReason.INTERVENTION
        self.transport.emit(USER_INTERVENTION_NEEDED, {"from": team, "reason": reason, "retry_count": count})

    def _team_name(self, role_id: str) -> str:
        team = self.teams.get(role_id)
        return team.display_name if team else role_id

    def report_error(self, message: str) -> None:
        self.log("error", message)
        self.transport.emit(ERROR, {"message": message})

    def log(self, type_: str, message: str) -> None:
        self.transport.emit(LOG, log_payload(type_, message))

    def log_conversation(self, from_: str, to: str, type_: str, content: str) -> None:
        entry = self.workspace.append_conversation_entry(from_, to, type_, content)
        self.transport.emit(CONVERSATION, entry)
