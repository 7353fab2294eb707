"""Tests for configuration loading and team config parsing."""

import io
import threading
from pathlib import Path

import pytest
from rich.console import Console

from agent_teams.config import load_settings, parse_team_config
from agent_teams.roles import ROLES, get_phase_order, get_role
from agent_teams.run import apply_overrides, build_parser, prompt_user
from agent_teams.schema import PauseReason, ProjectStatus
from conftest import make_settings

_ENV_KEYS = (
    "AT_LLM_BACKEND",
    "AT_TEAM_CONFIG",
    "AT_MAX_RETRY_COUNT",
    "AT_MAX_DISCUSSION_ROUNDS",
    "AT_HISTORY_LIMIT",
    "AT_FIX_PHASE",
    "AT_WORKDIR",
    "AT_LOG_DIR",
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Isolate load_settings from the developer's environment."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestParseTeamConfig:
    """ROLE=COUNT parsing and validation."""

    def test_string_form(self) -> None:
        """Unlisted roles are disabled."""
        config = parse_team_config("planner=2, developer=1")

        assert config == {"planner": 2, "designer": 0, "developer": 1, "reviewer": 0, "tester": 0}

    def test_mapping_form(self) -> None:
        assert parse_team_config({"tester": 3})["tester"] == 3

    @pytest.mark.parametrize(
        "raw",
        [
            "planner=4",
            "planner=-1",
            "planner=two",
            "marketing=1",
            "planner",
            "planner=0,developer=0",
            "",
            {"planner": 0},
        ],
    )
    def test_invalid(self, raw) -> None:
        with pytest.raises(ValueError):
            parse_team_config(raw)


class TestRoles:
    def test_phase_order(self) -> None:
        assert get_phase_order() == ["planner", "designer", "developer", "reviewer", "tester"]

    def test_prompts_mention_role(self) -> None:
        """Leader and member prompts are distinct and name the role."""
        role = get_role("reviewer")

        assert "Reviewer" in role.leader_prompt
        assert "Reviewer" in role.member_prompt
        assert role.leader_prompt != role.member_prompt

    def test_every_role_has_permission_mode(self) -> None:
        assert {r.permission_mode for r in ROLES.values()} <= {"acceptEdits", "bypassPermissions"}


class TestLoadSettings:
    """Environment-driven settings."""

    def test_defaults(self, clean_env, tmp_path) -> None:
        settings = load_settings()

        assert settings.llm_backend == "mock"
        assert settings.team_config["planner"] == 1
        assert settings.team_config["developer"] == 1
        assert settings.max_retry_count == 5
        assert settings.max_discussion_rounds == 3
        assert settings.history_limit == 10
        assert settings.fix_phase == "developer"
        assert settings.workdir == Path(tmp_path / "workspace").resolve()

    def test_overrides(self, clean_env) -> None:
        clean_env.setenv("AT_LLM_BACKEND", " OLLAMA ")
        clean_env.setenv("AT_TEAM_CONFIG", "designer=2,tester=1")
        clean_env.setenv("AT_MAX_RETRY_COUNT", "2")
        clean_env.setenv("AT_MAX_DISCUSSION_ROUNDS", "0")
        clean_env.setenv("AT_FIX_PHASE", "designer")

        settings = load_settings()

        assert settings.llm_backend == "ollama"
        assert settings.team_config["designer"] == 2
        assert settings.team_config["planner"] == 0
        assert settings.max_retry_count == 2
        assert settings.max_discussion_rounds == 0
        assert settings.fix_phase == "designer"

    def test_empty_values_fall_back_to_defaults(self, clean_env) -> None:
        clean_env.setenv("AT_HISTORY_LIMIT", "")
        clean_env.setenv("AT_LLM_BACKEND", "")

        settings = load_settings()

        assert settings.history_limit == 10
        assert settings.llm_backend == "mock"

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("AT_MAX_RETRY_COUNT", "0"),
            ("AT_MAX_RETRY_COUNT", "many"),
            ("AT_FIX_PHASE", "manager"),
            ("AT_TEAM_CONFIG", "planner=9"),
        ],
    )
    def test_invalid_values(self, clean_env, key, value) -> None:
        clean_env.setenv(key, value)

        with pytest.raises(ValueError):
            load_settings()


class TestCommandLine:
    """CLI flags layered over environment settings."""

    def test_overrides(self, tmp_path) -> None:
        args = build_parser().parse_args(
            ["a clock", "--team", "planner=2", "--team", "tester=1", "--backend", "ollama", "--workdir", str(tmp_path)]
        )

        settings = apply_overrides(make_settings(), args)

        assert args.goal == "a clock"
        assert settings.team_config["planner"] == 2
        assert settings.team_config["tester"] == 1
        assert settings.team_config["developer"] == 0
        assert settings.llm_backend == "ollama"
        assert settings.workdir == tmp_path.resolve()

    def test_no_flags_keeps_settings(self) -> None:
        settings = make_settings()

        assert apply_overrides(settings, build_parser().parse_args(["goal"])) is settings

    @pytest.mark.asyncio
    async def test_prompts_read_off_the_event_loop(self, monkeypatch, make_scheduler) -> None:
        """Blocking console reads run in a worker thread, then feed the scheduler."""
        threads = []

        class FakePrompt:
            @staticmethod
            def ask(prompt, **kwargs):
                threads.append(threading.get_ident())
                return "blue"

        monkeypatch.setattr("agent_teams.run.Prompt", FakePrompt)
        reply = "[ASK_USER]Which colour?[/ASK_USER]"
        scheduler, book = await make_scheduler({"planner": 1}, {"planner": [[reply, "[PHASE_COMPLETE]ok[/PHASE_COMPLETE]"]]})
        await scheduler.start("plan")
        assert scheduler.state.pause_reason is PauseReason.QUESTION

        await prompt_user(scheduler, Console(file=io.StringIO()))

        assert len(threads) == 1
        assert threads[0] != threading.get_ident()
        assert scheduler.state.status is ProjectStatus.COMPLETED
        assert "[User answer]\nblue" in book.sent("planner")[-1]
