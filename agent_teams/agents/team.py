from __future__ import annotations

from typing import Protocol

from agent_teams.llm import EngineFactory
from agent_teams.roles import MAX_AGENTS_PER_TEAM, get_role
from agent_teams.schema import (
    TERMINAL_ACTIONS,
    Action,
    ActionType,
    DiscussionEntry,
    TaskContext,
    TeamAction,
    TeamResult,
)
from agent_teams.transport import LOG, STATUS, Transport, log_payload
from agent_teams.utils.action_parser import parse_actions

from .agent import Agent

SUMMARY_ENTRY_CHARS = 200

_STATUS_KINDS = {
    ActionType.PROGRESS: "progress",
    ActionType.BUG_REPORT: "bug",
    ActionType.REVIEW: "review",
}


class SideEffects(Protocol):
    """Where a team applies document and file actions (the scheduler)."""

    async def update_spec(self, content: str) -> None: ...

    async def update_design(self, content: str) -> None: ...

    async def write_file(self, rel_path: str, content: str) -> None: ...


class Team:
    """
    Leader plus members of one role.

    The leader receives every task and decides; members are only consulted
    through ``ASK_TEAM``. Each ``receive_*`` call sends to the leader and
    reduces the reply to exactly one TeamResult.
    """

    def __init__(
        self,
        role_id: str,
        agent_count: int,
        *,
        engine_factory: EngineFactory,
        transport: Transport,
        side_effects: SideEffects,
        max_discussion_rounds: int = 3,
    ) -> None:
        if agent_count < 1 or agent_count > MAX_AGENTS_PER_TEAM:
            raise ValueError(f"Team {role_id!r} needs 1..{MAX_AGENTS_PER_TEAM} agents, got {agent_count}")

        self.role_id = role_id
        self.role = get_role(role_id)
        self.transport = transport
        self.side_effects = side_effects
        self.max_discussion_rounds = max_discussion_rounds

        self.agents = [
            Agent(
                f"{role_id}-{i + 1}",
                role_id,
                i == 0,
                engine_factory=engine_factory,
                transport=transport,
            )
            for i in range(agent_count)
        ]
        self.leader = self.agents[0]
        self.members = self.agents[1:]

        self.discussion: list[DiscussionEntry] = []
        self.is_active = False

    @property
    def display_name(self) -> str:
        return f"{self.role.name} team"

    async def start(self) -> None:
        self.log("info", f"{self.display_name} starting ({len(self.agents)} agents)")
        for agent in self.agents:
            await agent.start()
        self.is_active = True

    async def receive_task(self, task: str, context: TaskContext | None = None) -> TeamResult:
        if not self.is_active:
            await self.start()

        self.log("info", "Leader received a task")
        self.discussion = []
        response = await self.leader.send(self.build_leader_message(task, context or TaskContext()))
        return await self.process_leader_response(response)

    def build_leader_message(self, task: str, context: TaskContext) -> str:
        message = ""
        if context.from_team:
            message += f"[Forwarded from the {context.from_team} team]\n"
        if context.spec:
            message += f"[Specification]\n{context.spec}\n\n"
        if context.files:
            message += f"[Created files]\n{', '.join(context.files)}\n\n"
        message += f"[Task]\n{task}"
        if self.members:
            message += (
                f"\n\nYou have {len(self.members)} team member(s). "
                "Use [ASK_TEAM] to ask for their opinion if needed."
            )
        return message

    async def receive_user_answer(self, answer: str) -> TeamResult:
        message = f"[User answer]\n{answer}\n\nContinue based on this information."
        return await self._send_to_leader(message)

    async def receive_team_answer(self, from_team: str, answer: str) -> TeamResult:
        message = f"[Answer from the {from_team} team]\n{answer}\n\nContinue based on this information."
        return await self._send_to_leader(message)

    async def receive_fix_request(self, from_team: str, issue: str) -> TeamResult:
        message = f"[Fix request from the {from_team} team]\n{issue}\n\nPlease resolve this problem."
        return await self._send_to_leader(message)

    async def _send_to_leader(self, message: str) -> TeamResult:
        if not self.is_active:
            await self.start()
        response = await self.leader.send(message)
        return await self.process_leader_response(response)

    async def process_leader_response(self, response: str) -> TeamResult:
        """
        Run the response-processing loop on one leader reply.

        Actions are handled in parser order: side effects are applied and the
        loop moves on, the first terminal action ends the turn, and ASK_TEAM
        consults the members and feeds their answers back to the leader. After
        ``max_discussion_rounds`` consultations the turn ends as ``continue``.
        """
        rounds = 0
        while True:
            if not self.is_active:
                # Stopped while the leader was thinking; the reply is dropped.
                return TeamResult(action=TeamAction.CONTINUE, team=self.role_id, response=response)
            self.discussion.append(DiscussionEntry(speaker="leader", text=response))

            question: Action | None = None
            for action in parse_actions(response):
                if action.type is ActionType.ASK_TEAM:
                    question = action
                    break
                terminal = TERMINAL_ACTIONS.get(action.type)
                if terminal is not None:
                    return TeamResult(action=terminal, team=self.role_id, content=action.content, response=response)
                await self.apply_action(action)

            if question is None:
                return TeamResult(action=TeamAction.CONTINUE, team=self.role_id, response=response)

            rounds += 1
            if rounds > self.max_discussion_rounds:
                self.log("warning", f"Discussion round limit ({self.max_discussion_rounds}) reached; ending turn")
                return TeamResult(action=TeamAction.CONTINUE, team=self.role_id, response=response)

            answers = await self.ask_members(question.content)
            if not self.is_active:
                return TeamResult(action=TeamAction.CONTINUE, team=self.role_id, response=response)
            message = (
                f"[Team member responses]\n{self.discussion_summary(answers)}\n\n"
                "Continue, taking your members' opinions into account."
            )
            response = await self.leader.send(message)

    async def apply_action(self, action: Action) -> None:
        if action.type is ActionType.UPDATE_SPEC:
            await self.side_effects.update_spec(action.content)
        elif action.type is ActionType.UPDATE_DESIGN:
            await self.side_effects.update_design(action.content)
        elif action.type is ActionType.WRITE_FILE:
            await self.side_effects.write_file(action.path or "", action.content)
        elif action.type in _STATUS_KINDS:
            kind = _STATUS_KINDS[action.type]
            self.log(kind, action.content)
            self.transport.emit(STATUS, {"team": self.role_id, "kind": kind, "message": action.content})
        # Stand-alone agent tags carry no meaning inside a team.

    async def ask_members(self, question: str) -> list[DiscussionEntry]:
        """Ask every member in turn; each sees the discussion so far."""
        if not self.members:
            return []

        self.log("info", f"Leader asks the team: {question}")
        answers: list[DiscussionEntry] = []
        for member in self.members:
            message = (
                f"[Leader question]\n{question}\n\n"
                f"[Discussion so far]\n{self.discussion_summary()}\n\n"
                "Please share your opinion."
            )
            response = await member.send(message)
            entry = DiscussionEntry(speaker=member.name, text=response)
            self.discussion.append(entry)
            answers.append(entry)
            self.log("info", f"{member.name} answered")
        return answers

    def discussion_summary(self, entries: list[DiscussionEntry] | None = None) -> str:
        entries = self.discussion if entries is None else entries
        return "\n\n".join(f"{e.speaker}: {_clip(e.text, SUMMARY_ENTRY_CHARS)}" for e in entries)

    async def stop(self) -> None:
        self.is_active = False
        for agent in self.agents:
            await agent.stop()

    def log(self, type_: str, message: str) -> None:
        self.transport.emit(LOG, log_payload(type_, message, team=self.role_id, team_name=self.display_name))


def _clip(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
