"""Tests for the action tag protocol parser."""

import pytest

from agent_teams.schema import ActionType
from agent_teams.utils.action_parser import extract_message, parse_actions, parse_response


class TestParseActions:
    """Typed extraction of action tags."""

    def test_single_tag(self) -> None:
        """A closed tag yields one action with its content."""
        actions = parse_actions("Done.\n[PHASE_COMPLETE]Spec ready[/PHASE_COMPLETE]")

        assert len(actions) == 1
        assert actions[0].type is ActionType.PHASE_COMPLETE
        assert actions[0].content == "Spec ready"
        assert actions[0].path is None

    def test_content_is_trimmed(self) -> None:
        """Whitespace around the content is removed."""
        actions = parse_actions("[ASK_USER]\n   Which colour?  \n[/ASK_USER]")

        assert actions[0].content == "Which colour?"

    def test_write_file_path_and_content(self) -> None:
        """WRITE_FILE carries the trimmed path and content."""
        actions = parse_actions("[WRITE_FILE: src/app.js ]\nconsole.log(1);\n[/WRITE_FILE]")

        assert len(actions) == 1
        assert actions[0].type is ActionType.WRITE_FILE
        assert actions[0].path == "src/app.js"
        assert actions[0].content == "console.log(1);"

    def test_priority_order_beats_reading_order(self) -> None:
        """PHASE_COMPLETE is reported before PROGRESS even when written after it."""
        text = "[PROGRESS]halfway[/PROGRESS] text [PHASE_COMPLETE]done[/PHASE_COMPLETE]"

        types = [a.type for a in parse_actions(text)]

        assert types == [ActionType.PHASE_COMPLETE, ActionType.PROGRESS]

    def test_write_file_always_first(self) -> None:
        """WRITE_FILE occurrences precede every other type."""
        text = (
            "[PHASE_COMPLETE]done[/PHASE_COMPLETE]"
            "[PROGRESS]p[/PROGRESS]"
            "[WRITE_FILE:a.txt]A[/WRITE_FILE]"
            "[WRITE_FILE:b.txt]B[/WRITE_FILE]"
        )

        actions = parse_actions(text)

        assert [a.type for a in actions] == [
            ActionType.WRITE_FILE,
            ActionType.WRITE_FILE,
            ActionType.PHASE_COMPLETE,
            ActionType.PROGRESS,
        ]
        assert [a.path for a in actions[:2]] == ["a.txt", "b.txt"]

    def test_same_type_keeps_document_order(self) -> None:
        """Several tags of one type come back in reading order, matched non-greedily."""
        text = "[PROGRESS]one[/PROGRESS] middle [PROGRESS]two[/PROGRESS]"

        assert [a.content for a in parse_actions(text)] == ["one", "two"]

    def test_ask_team_outranks_terminal_tags(self) -> None:
        """ASK_TEAM heads the priority order."""
        text = "[TASK_COMPLETE]x[/TASK_COMPLETE][ASK_TEAM]opinions?[/ASK_TEAM]"

        assert parse_actions(text)[0].type is ActionType.ASK_TEAM

    def test_request_fix_ranks_after_status_tags(self) -> None:
        """REQUEST_FIX is extracted after PROGRESS, BUG_REPORT and REVIEW."""
        text = "[REQUEST_FIX]fix it[/REQUEST_FIX][BUG_REPORT]crash[/BUG_REPORT][REVIEW]meh[/REVIEW]"

        types = [a.type for a in parse_actions(text)]

        assert types == [ActionType.BUG_REPORT, ActionType.REVIEW, ActionType.REQUEST_FIX]

    @pytest.mark.parametrize(
        "text",
        [
            "[PROGRESS]never closed",
            "[PROGRESS]mismatched[/REVIEW]",
            "[progress]lower case[/progress]",
            "[OPINION]unknown type[/OPINION]",
            "[WRITE_FILE:]no path[/WRITE_FILE]",
            "[WRITE_FILE:   ]blank path[/WRITE_FILE]",
            "",
        ],
    )
    def test_malformed_or_unknown_tags_yield_nothing(self, text: str) -> None:
        """Protocol errors are dropped silently."""
        assert parse_actions(text) == []

    def test_standalone_agent_tags_are_recognized(self) -> None:
        """Auxiliary tags of stand-alone agents parse like any other type."""
        text = "[ASK_PLANNER]q[/ASK_PLANNER][REPLY_TO_DEVELOPER]a[/REPLY_TO_DEVELOPER]"

        types = [a.type for a in parse_actions(text)]

        assert types == [ActionType.ASK_PLANNER, ActionType.REPLY_TO_DEVELOPER]


class TestExtractMessage:
    """Residual plain message after stripping tags."""

    def test_strips_recognized_tags(self) -> None:
        """Known tag spans vanish and the rest is trimmed."""
        text = "  Here is the plan.\n[UPDATE_SPEC]# Spec[/UPDATE_SPEC]\n[PHASE_COMPLETE]ok[/PHASE_COMPLETE]  "

        assert extract_message(text) == "Here is the plan."

    def test_strips_unknown_well_formed_tags(self) -> None:
        """Spans of unknown types are removed too."""
        assert extract_message("Hi [OPINION]meh[/OPINION] there") == "Hi  there"

    def test_strips_write_file_spans(self) -> None:
        """Parameterized spans are removed."""
        assert extract_message("before[WRITE_FILE:x.py]print()[/WRITE_FILE]after") == "beforeafter"

    def test_leaves_unclosed_and_mismatched_tags(self) -> None:
        """Malformed tags stay in the message untouched."""
        text = "[PROGRESS]oops[/REVIEW]"

        assert extract_message(text) == text

    def test_strips_tags_formed_by_removal(self) -> None:
        """Removing an inner span cannot leave a recognizable tag behind."""
        text = "[PROG[X]y[/X]RESS]a[/PROGRESS] tail"

        message = extract_message(text)

        assert message == "tail"
        assert parse_actions(message) == []

    @pytest.mark.parametrize(
        "text",
        [
            "plain text only",
            "[ASK_USER]q[/ASK_USER] and [ROLLBACK]r[/ROLLBACK]",
            "[A]x [PROGRESS]y[/A] z[/PROGRESS]",
            "[PROGRESS][PROGRESS]nested[/PROGRESS][/PROGRESS]",
            "[WRITE_FILE:a][WRITE_FILE:b]c[/WRITE_FILE][/WRITE_FILE]",
            "[REVIEW]unclosed [BUG_REPORT]b[/BUG_REPORT]",
        ],
    )
    def test_stripped_message_contains_no_actions(self, text: str) -> None:
        """parse(extract_message(text)) never finds an action."""
        assert parse_actions(extract_message(text)) == []


class TestParseResponse:
    def test_returns_message_and_actions(self) -> None:
        """parse_response bundles both passes."""
        parsed = parse_response("Working on it. [PROGRESS]50%[/PROGRESS]")

        assert parsed.message == "Working on it."
        assert [a.content for a in parsed.actions] == ["50%"]
