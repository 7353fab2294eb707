from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from agent_teams.roles import DEFAULT_FIX_PHASE, MAX_AGENTS_PER_TEAM, ROLES

DEFAULT_TEAM_CONFIG = "planner=1,developer=1"


@dataclass(frozen=True)
class Settings:
    llm_backend: str

    ollama_base_url: str
    ollama_model: str

    anthropic_api_key: str | None
    anthropic_model: str

    openai_api_key: str | None
    openai_model: str
    openai_base_url: str

    claude_command: str

    team_config: dict[str, int] = field(default_factory=dict)
    max_retry_count: int = 5
    max_discussion_rounds: int = 3
    history_limit: int = 10
    fix_phase: str = DEFAULT_FIX_PHASE

    workdir: Path = Path("workspace")
    log_dir: Path = Path("logs")


def parse_team_config(raw: str | dict[str, int]) -> dict[str, int]:
    """
    Parse a team configuration into ``{role_id: agent_count}``.

    Accepts either a mapping or a ``"planner=1,developer=2"`` string.
    Roles missing from the input are disabled (count 0).
    """
    if isinstance(raw, dict):
        items = list(raw.items())
    else:
        items = []
        for chunk in raw.split(","):
            chunk = chunk.strip()
            if not chunk:
                continue
            if "=" not in chunk:
                raise ValueError(f"Invalid team entry {chunk!r}, expected ROLE=COUNT")
            role_id, count = chunk.split("=", 1)
            items.append((role_id.strip(), count.strip()))

    config = {role_id: 0 for role_id in ROLES}
    for role_id, count in items:
        if role_id not in ROLES:
            raise ValueError(f"Unknown role {role_id!r}, expected one of: {', '.join(ROLES)}")
        try:
            n = int(count)
        except (TypeError, ValueError):
            raise ValueError(f"Agent count for {role_id!r} must be an integer, got {count!r}") from None
        if n < 0 or n > MAX_AGENTS_PER_TEAM:
            raise ValueError(f"Agent count for {role_id!r} must be between 0 and {MAX_AGENTS_PER_TEAM}")
        config[role_id] = n

    if not any(config.values()):
        raise ValueError("At least one role needs a nonzero agent count")
    return config


def load_settings() -> Settings:
    # Allow users to keep secrets in a local `.env` (not committed).
    load_dotenv(override=False)

    def getenv(key: str, default: str | None = None) -> str | None:
        v = os.getenv(key)
        if v is None or v == "":
            return default
        return v

    def getint(key: str, default: int, *, minimum: int = 1) -> int:
        raw = getenv(key, str(default)) or str(default)
        try:
            value = int(raw)
        except ValueError:
            raise ValueError(f"{key} must be an integer, got {raw!r}") from None
        if value < minimum:
            raise ValueError(f"{key} must be >= {minimum}, got {value}")
        return value

    llm_backend = (getenv("AT_LLM_BACKEND", "mock") or "mock").strip().lower()

    ollama_base_url = getenv("AT_OLLAMA_BASE_URL", "http://localhost:11434") or ""
    ollama_model = getenv("AT_OLLAMA_MODEL", "llama3.1:latest") or ""

    anthropic_api_key = getenv("ANTHROPIC_API_KEY", None)
    anthropic_model = getenv("AT_ANTHROPIC_MODEL", "claude-3-5-sonnet-latest") or ""

    openai_api_key = getenv("OPENAI_API_KEY", None)
    openai_model = getenv("AT_OPENAI_MODEL", "gpt-4o-mini") or ""
    openai_base_url = getenv("AT_OPENAI_BASE_URL", "https://api.openai.com/v1") or ""

    claude_command = getenv("AT_CLAUDE_COMMAND", "claude") or "claude"

    team_config = parse_team_config(getenv("AT_TEAM_CONFIG", DEFAULT_TEAM_CONFIG) or DEFAULT_TEAM_CONFIG)
    fix_phase = (getenv("AT_FIX_PHASE", DEFAULT_FIX_PHASE) or DEFAULT_FIX_PHASE).strip()
    if fix_phase not in ROLES:
        raise ValueError(f"AT_FIX_PHASE={fix_phase!r} is not a known role")

    workdir = Path(getenv("AT_WORKDIR", "workspace") or "workspace").resolve()
    log_dir = Path(getenv("AT_LOG_DIR", "logs") or "logs").resolve()

    return Settings(
        llm_backend=llm_backend,
        ollama_base_url=ollama_base_url,
        ollama_model=ollama_model,
        anthropic_api_key=anthropic_api_key,
        anthropic_model=anthropic_model,
        openai_api_key=openai_api_key,
        openai_model=openai_model,
        openai_base_url=openai_base_url,
        claude_command=claude_command,
        team_config=team_config,
        max_retry_count=getint("AT_MAX_RETRY_COUNT", 5),
        max_discussion_rounds=getint("AT_MAX_DISCUSSION_ROUNDS", 3, minimum=0),
        history_limit=getint("AT_HISTORY_LIMIT", 10),
        fix_phase=fix_phase,
        workdir=workdir,
        log_dir=log_dir,
    )
