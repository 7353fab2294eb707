from __future__ import annotations

from agent_teams.errors import AgentNotStartedError, ReasoningEngineError
from agent_teams.llm import EngineFactory, ReasoningEngine
from agent_teams.roles import get_role
from agent_teams.transport import AGENT_STATUS, LOG, Transport, log_payload


class Agent:
    """
    One addressable identity inside a team.

    Forwards messages to its reasoning engine and returns the reply. It keeps
    no conversation state itself; memory lives in the engine.
    """

    def __init__(
        self,
        agent_id: str,
        role_id: str,
        is_leader: bool,
        *,
        engine_factory: EngineFactory,
        transport: Transport,
    ) -> None:
        self.id = agent_id
        self.role_id = role_id
        self.is_leader = is_leader
        self.role = get_role(role_id)
        self.name = f"{self.role.name}{' (leader)' if is_leader else ''} #{agent_id}"
        self._engine_factory = engine_factory
        self._transport = transport
        self.engine: ReasoningEngine | None = None
        self.is_live = False

    async def start(self) -> None:
        self.log("info", f"{self.name} starting...")
        self.update_status("starting")
        prompt = self.role.leader_prompt if self.is_leader else self.role.member_prompt
        self.engine = self._engine_factory(self.role_id, self.is_leader)
        await self.engine.start(prompt)
        self.is_live = True
        self.log("info", f"{self.name} ready")
        self.update_status("ready")

    async def send(self, message: str) -> str:
        if not self.is_live or self.engine is None:
            raise AgentNotStartedError(f"Agent {self.id} has not been started")

        self.update_status("thinking")
        try:
            response = await self.engine.send(message)
        except Exception as e:
            if isinstance(e, ReasoningEngineError) and e.agent_id is None:
                e.agent_id = self.id
            self.log("error", f"{type(e).__name__}: {e}")
            self.update_status("error")
            raise
        self.update_status("idle")
        return response

    async def stop(self) -> None:
        if self.engine is not None and self.is_live:
            await self.engine.stop()
        self.is_live = False
        self.update_status("stopped")

    def log(self, type_: str, message: str) -> None:
        self._transport.emit(LOG, log_payload(type_, message, agent=self.id, role=self.role_id, name=self.name))

    def update_status(self, status: str) -> None:
        self._transport.emit(
            AGENT_STATUS,
            {"agent": self.id, "role": self.role_id, "name": self.name, "is_leader": self.is_leader, "status": status},
        )
