"""
Unit tests for the CommandDispatcher component.

Tests per-kind action building, validation gating, success policies,
batch execution and fault containment.
"""

from datetime import datetime
from unittest.mock import Mock

import pytest

from waveops.coordination.command_dispatcher import CommandDispatcher
from waveops.coordination.types import (
    BatchOperation,
    BlockingRelation,
    CommandKind,
    LoadBalanceOperation,
    ParsedCommand,
    ParseResult,
    Priority,
    SyncOperation,
    TaskAssignment,
    TeamAssignment,
    WaveStartOperation,
)
from waveops.core.config_manager import DispatcherConfig
from waveops.core.error_handler import CommandExecutionError


def make_command(kind, parameters, confidence=0.9):
    return ParsedCommand(
        kind=kind,
        raw_text="test",
        actor="alice",
        timestamp=datetime(2024, 1, 1),
        parameters=parameters,
        confidence=confidence
    )


VALID_SYNC = make_command(CommandKind.TEAM_SYNC, SyncOperation(teams=["team-alpha", "team-beta"], condition="deploy"))
INVALID_ASSIGN = make_command(CommandKind.TEAM_ASSIGN, TeamAssignment(teams=["team-zzz"], tasks=["1"]))


def stub_parser(*commands, errors=None, warnings=None):
    """Parser double returning the given top-level commands"""
    parser = Mock(spec=["parse"])
    parser.parse.return_value = ParseResult(
        commands=list(commands), errors=list(errors or []), warnings=list(warnings or [])
    )
    return parser


@pytest.mark.unit
class TestExecute:
    """Per-kind handlers build action intents"""

    def test_wave_start_targets_current_wave(self, dispatcher, command_context):
        command = make_command(CommandKind.WAVE_START, WaveStartOperation(teams=["team-alpha"], wave_name="rollout"))
        result = dispatcher.execute(command, command_context)

        assert result.success
        assert result.actions[0].type == "wave_start"
        assert result.actions[0].target == "wave-2"
        assert result.actions[0].details["teams"] == ["team-alpha"]

    def test_wave_start_without_current_wave_uses_name(self, dispatcher, empty_context):
        command = make_command(CommandKind.WAVE_START, WaveStartOperation(teams=[], wave_name="rollout"))
        result = dispatcher.execute(command, empty_context)

        assert result.actions[0].target == "wave-rollout"
        assert result.actions[0].details["teams"] == []

    def test_wave_start_without_teams_uses_available_teams(self, dispatcher, command_context):
        command = make_command(CommandKind.WAVE_START, WaveStartOperation(teams=[], wave_name="2"))
        result = dispatcher.execute(command, command_context)

        assert result.actions[0].details["teams"] == list(command_context.available_teams)

    def test_team_assign(self, dispatcher, command_context):
        command = make_command(CommandKind.TEAM_ASSIGN, TeamAssignment(
            teams=["team-alpha", "team-beta"], tasks=["1", "2"], priority=Priority.HIGH
        ))
        result = dispatcher.execute(command, command_context)

        assert result.message == "Assigned teams team-alpha, team-beta to tasks 1, 2"
        action = result.actions[0]
        assert (action.type, action.target) == ("team_assignment", "teams")
        assert action.details == {"teams": ["team-alpha", "team-beta"], "tasks": ["1", "2"], "priority": Priority.HIGH}

    def test_task_assign(self, dispatcher, command_context):
        command = make_command(CommandKind.TASK_ASSIGN, TaskAssignment(task_id="W1.T001", team="team-beta"))
        result = dispatcher.execute(command, command_context)

        assert result.message == "Reassigned task W1.T001 to team team-beta"
        assert (result.actions[0].type, result.actions[0].target) == ("task_reassignment", "W1.T001")

    def test_team_block(self, dispatcher, command_context):
        command = make_command(CommandKind.TEAM_BLOCK, BlockingRelation("team-beta", "team-alpha", until="friday"))
        result = dispatcher.execute(command, command_context)

        assert result.message == "Blocked team team-beta on team team-alpha completion until friday"
        assert result.actions[0].type == "team_blocking"
        assert result.actions[0].target == "team-beta"
        assert result.actions[0].details["blocking_team"] == "team-alpha"

    def test_team_sync(self, dispatcher, command_context):
        result = dispatcher.execute(VALID_SYNC, command_context)

        assert result.message == "Synchronized teams team-alpha, team-beta on deploy"
        assert result.actions[0].type == "team_sync"

    def test_load_balance(self, dispatcher, command_context):
        command = make_command(CommandKind.LOAD_BALANCE, LoadBalanceOperation(
            teams=["team-alpha", "team-beta"], strategy="capacity_based"
        ))
        result = dispatcher.execute(command, command_context)

        assert result.message == "Load balanced across teams team-alpha, team-beta using capacity_based strategy"
        assert result.actions[0].details["strategy"] == "capacity_based"

    def test_unsupported_kind_becomes_failed_result(self, parser, command_context, mock_error_handler):
        dispatcher = CommandDispatcher(parser=parser, error_handler=mock_error_handler)
        del dispatcher.command_handlers[CommandKind.TEAM_SYNC]

        result = dispatcher.execute(VALID_SYNC, command_context)

        assert not result.success
        assert result.error == "Unsupported command type: team_sync"
        handled = mock_error_handler.handle_error.call_args[0][0]
        assert isinstance(handled, CommandExecutionError)
        assert handled.reason == "unsupported_type"

    def test_handler_fault_is_contained(self, dispatcher, command_context):
        command = make_command(CommandKind.TEAM_SYNC, SyncOperation(teams=None, condition="deploy"))
        result = dispatcher.execute(command, command_context)

        assert not result.success
        assert result.message.startswith("Command execution failed:")


@pytest.mark.unit
class TestBatchExecution:
    """Batch members run in order with per-member validation"""

    def test_members_run_in_order_and_actions_concatenate(self, dispatcher, command_context):
        assign = make_command(CommandKind.TASK_ASSIGN, TaskAssignment(task_id="W1.T001", team="team-beta"))
        batch = make_command(CommandKind.BATCH_OPERATION, BatchOperation(commands=[VALID_SYNC, assign]))

        result = dispatcher.execute(batch, command_context)

        assert result.success
        assert result.message == "Batch operation completed: 2/2 commands successful"
        assert [a.type for a in result.actions] == ["team_sync", "task_reassignment"]
        assert result.error is None

    def test_invalid_member_skipped_not_executed(self, dispatcher, command_context):
        batch = make_command(CommandKind.BATCH_OPERATION, BatchOperation(commands=[INVALID_ASSIGN, VALID_SYNC]))

        result = dispatcher.execute(batch, command_context)

        assert result.success
        assert result.message == "Batch operation completed: 1/2 commands successful"
        assert [a.type for a in result.actions] == ["team_sync"]
        assert result.error == "Unknown team: team-zzz"

    def test_all_members_invalid(self, dispatcher, command_context):
        batch = make_command(CommandKind.BATCH_OPERATION, BatchOperation(commands=[INVALID_ASSIGN]))

        result = dispatcher.execute(batch, command_context)

        assert not result.success
        assert result.message == "Batch operation completed: 0/1 commands successful"

    def test_strict_policy_requires_every_member(self, strict_dispatcher, command_context):
        batch = make_command(CommandKind.BATCH_OPERATION, BatchOperation(commands=[INVALID_ASSIGN, VALID_SYNC]))

        assert not strict_dispatcher.execute(batch, command_context).success

    def test_member_warnings_surface(self, dispatcher, command_context):
        assign = make_command(CommandKind.TEAM_ASSIGN, TeamAssignment(teams=["team-alpha"], tasks=["W9.T999"]))
        batch = make_command(CommandKind.BATCH_OPERATION, BatchOperation(commands=[assign]))

        result = dispatcher.execute(batch, command_context)

        assert result.warnings == ["Task W9.T999 may not exist in current wave"]


@pytest.mark.unit
class TestDispatch:
    """Pipeline aggregation and failure semantics"""

    def test_partial_failure_is_success(self, command_context):
        dispatcher = CommandDispatcher(parser=stub_parser(INVALID_ASSIGN, VALID_SYNC))

        result = dispatcher.dispatch("two commands", command_context)

        assert result.success
        assert result.metadata.total_commands == 2
        assert result.metadata.successful_commands == 1
        assert len(result.results) == 2
        assert [r.success for r in result.results] == [False, True]
        assert result.results[0].message == "Validation failed: Unknown team: team-zzz"
        assert result.results[0].error == "Unknown team: team-zzz"

    def test_all_policy_fails_on_partial_success(self, command_context):
        dispatcher = CommandDispatcher(
            parser=stub_parser(INVALID_ASSIGN, VALID_SYNC),
            config=DispatcherConfig(success_policy="all")
        )

        result = dispatcher.dispatch("two commands", command_context)

        assert not result.success
        assert result.metadata.successful_commands == 1

    def test_parse_diagnostics_forwarded(self, command_context):
        dispatcher = CommandDispatcher(parser=stub_parser(VALID_SYNC, errors=["bad segment"], warnings=["hint"]))

        result = dispatcher.dispatch("text", command_context)

        assert result.errors == ["bad segment"]
        assert result.warnings == ["hint"]

    def test_validation_suggestions_become_warnings(self, command_context):
        typo = make_command(CommandKind.TEAM_ASSIGN, TeamAssignment(teams=["team-alpa"], tasks=["1"]))
        dispatcher = CommandDispatcher(parser=stub_parser(typo))

        result = dispatcher.dispatch("text", command_context)

        assert not result.success
        assert result.warnings == ["Did you mean: team-alpha?"]

    def test_invalid_command_is_not_executed(self, command_context):
        dispatcher = CommandDispatcher(parser=stub_parser(INVALID_ASSIGN))
        dispatcher.command_handlers[CommandKind.TEAM_ASSIGN] = Mock()

        dispatcher.dispatch("text", command_context)

        dispatcher.command_handlers[CommandKind.TEAM_ASSIGN].assert_not_called()

    def test_empty_input(self, dispatcher, command_context):
        result = dispatcher.dispatch("   ", command_context)

        assert not result.success
        assert result.results == []
        assert result.errors == ["Empty command input"]
        assert result.metadata.total_commands == 0

    def test_fatal_error_is_contained(self, command_context, mock_error_handler):
        parser = Mock(spec=["parse"])
        parser.parse.side_effect = RuntimeError("boom")
        dispatcher = CommandDispatcher(parser=parser, error_handler=mock_error_handler)

        result = dispatcher.dispatch("start wave 2", command_context)

        assert not result.success
        assert result.errors == ["Fatal dispatch error: boom"]
        assert result.metadata.total_commands == 0
        mock_error_handler.handle_error.assert_called_once()

    def test_validator_fault_becomes_failed_result(self, command_context, mock_error_handler):
        dispatcher = CommandDispatcher(parser=stub_parser(VALID_SYNC), error_handler=mock_error_handler)
        dispatcher.validator = Mock()
        dispatcher.validator.validate.side_effect = ValueError("validator down")

        result = dispatcher.dispatch("text", command_context)

        assert not result.success
        assert result.results[0].message == "Execution failed: validator down"

    def test_default_validator_shared_with_parser(self, parser):
        assert CommandDispatcher(parser=parser).validator is parser.validator
