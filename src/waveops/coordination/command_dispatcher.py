"""Command Dispatcher for Wave Coordination

Runs the parse -> validate -> execute pipeline for one comment and
aggregates per-command outcomes. Handlers only describe side effects as
``CommandAction`` intents; applying them (issue updates, notifications) is
left to the caller. No failure escapes ``dispatch``: every fault degrades to
a field of the returned result.
"""

import time
from typing import Callable, Dict, List, Optional

from ..core.config_manager import DispatcherConfig
from ..core.error_handler import CommandExecutionError, ErrorHandler
from ..core.logging_manager import LoggingManager
from .command_parser import CommandParser
from .command_validator import CommandValidator
from .types import (
    BatchOperation,
    BlockingRelation,
    CommandAction,
    CommandContext,
    CommandDispatchResult,
    CommandExecutionResult,
    CommandKind,
    DispatchMetadata,
    LoadBalanceOperation,
    ParsedCommand,
    SyncOperation,
    TaskAssignment,
    TeamAssignment,
    WaveStartOperation,
)

CommandHandler = Callable[[ParsedCommand, CommandContext], CommandExecutionResult]


class CommandDispatcher:
    """Parses, validates and executes coordination commands."""

    def __init__(self, parser: Optional[CommandParser] = None,
                 validator: Optional[CommandValidator] = None,
                 config: Optional[DispatcherConfig] = None,
                 error_handler: Optional[ErrorHandler] = None):
        """Initialize the dispatcher.

        Args:
            parser: Command parser; a default parser is built when omitted
            validator: Command validator; defaults to the parser's validator
            config: Dispatch policy settings
            error_handler: Handler used to log and report faults
        """
        self.logger = LoggingManager.get_logger(__name__)
        self.config = config or DispatcherConfig()
        self.parser = parser or CommandParser()
        self.error_handler = error_handler or ErrorHandler()

        if validator is None:
            validator = self.parser.validator if isinstance(self.parser, CommandParser) else CommandValidator()
        self.validator = validator

        # Execution handlers keyed by command kind
        self.command_handlers = self._build_command_handlers()

    def _build_command_handlers(self) -> Dict[CommandKind, CommandHandler]:
        return {
            CommandKind.WAVE_START: self._execute_wave_start,
            CommandKind.TEAM_ASSIGN: self._execute_team_assign,
            CommandKind.TASK_ASSIGN: self._execute_task_assign,
            CommandKind.TEAM_BLOCK: self._execute_team_block,
            CommandKind.TEAM_SYNC: self._execute_team_sync,
            CommandKind.LOAD_BALANCE: self._execute_load_balance,
            CommandKind.BATCH_OPERATION: self._execute_batch_operation,
        }

    def dispatch(self, raw_input: str, context: CommandContext) -> CommandDispatchResult:
        """Parse a comment and execute every command it contains.

        Args:
            raw_input: Comment body
            context: Coordination snapshot for the comment

        Returns:
            Aggregated dispatch result
        """
        start_time = time.perf_counter()
        results: List[CommandExecutionResult] = []
        errors: List[str] = []
        warnings: List[str] = []

        try:
            parse_result = self.parser.parse(raw_input, context)
            errors.extend(parse_result.errors)
            warnings.extend(parse_result.warnings)

            for command in parse_result.commands:
                result = self._validate_and_execute(command, context, warnings)
                if not result.success:
                    self.logger.warning(f"Command {command.kind.value} failed: {result.message}")
                results.append(result)

            successful_commands = sum(1 for r in results if r.success)
            success = self._is_successful(successful_commands, len(results))

            self.logger.info(
                f"Dispatched comment on {context.repository}#{context.issue_number}: "
                f"{successful_commands}/{len(results)} commands successful"
            )

            return CommandDispatchResult(
                success=success,
                results=results,
                errors=errors,
                warnings=warnings,
                metadata=DispatchMetadata(
                    total_commands=len(parse_result.commands),
                    successful_commands=successful_commands,
                    processing_time_ms=self._elapsed_ms(start_time)
                )
            )

        except Exception as e:
            errors.append(self.error_handler.handle_error(e, "Fatal dispatch error"))
            return CommandDispatchResult(
                success=False,
                results=results,
                errors=errors,
                warnings=warnings,
                metadata=DispatchMetadata(processing_time_ms=self._elapsed_ms(start_time))
            )

    def execute(self, command: ParsedCommand, context: CommandContext) -> CommandExecutionResult:
        """Execute one parsed command.

        Faults raised by a handler are reported through the error handler and
        returned as a failed result.
        """
        try:
            handler = self.command_handlers.get(command.kind)
            if handler is None:
                raise CommandExecutionError(
                    f"Unsupported command type: {getattr(command.kind, 'value', command.kind)}",
                    command=str(getattr(command.kind, 'value', command.kind)),
                    reason="unsupported_type"
                )

            result = handler(command, context)
            self.logger.debug(f"Executed {command.kind.value}: {result.message}")
            return result

        except Exception as e:
            self.error_handler.handle_error(e, "Command execution failed")
            return CommandExecutionResult(
                command=command,
                success=False,
                message=f"Command execution failed: {e}",
                error=str(e)
            )

    def _validate_and_execute(self, command: ParsedCommand, context: CommandContext,
                              warnings: List[str]) -> CommandExecutionResult:
        try:
            validation = self.validator.validate(command, context)
            warnings.extend(validation.suggestions)
            if not validation.valid:
                return self._validation_failure(command, validation.errors)

            warnings.extend(validation.warnings)
            result = self.execute(command, context)
            warnings.extend(result.warnings)
            return result

        except Exception as e:
            self.error_handler.handle_error(e, f"Execution of {command.kind.value} failed")
            return CommandExecutionResult(
                command=command,
                success=False,
                message=f"Execution failed: {e}",
                error=str(e)
            )

    @staticmethod
    def _validation_failure(command: ParsedCommand, errors: List[str]) -> CommandExecutionResult:
        return CommandExecutionResult(
            command=command,
            success=False,
            message=f"Validation failed: {', '.join(errors)}",
            error=errors[0]
        )

    def _is_successful(self, successful: int, total: int) -> bool:
        if total == 0:
            return False
        if self.config.success_policy == "all":
            return successful == total
        return successful > 0

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return (time.perf_counter() - start_time) * 1000

    def _execute_wave_start(self, command: ParsedCommand, context: CommandContext) -> CommandExecutionResult:
        params: WaveStartOperation = command.parameters
        teams = list(params.teams) or list(context.available_teams)
        wave = context.current_wave if context.current_wave is not None else params.wave_name

        return CommandExecutionResult(
            command=command,
            success=True,
            message=f"Wave {params.wave_name} started with teams {', '.join(teams) or 'none'}",
            actions=[CommandAction(
                type="wave_start",
                target=f"wave-{wave}",
                details={"wave": params.wave_name, "teams": teams}
            )]
        )

    def _execute_team_assign(self, command: ParsedCommand, context: CommandContext) -> CommandExecutionResult:
        params: TeamAssignment = command.parameters

        return CommandExecutionResult(
            command=command,
            success=True,
            message=f"Assigned teams {', '.join(params.teams)} to tasks {', '.join(params.tasks)}",
            actions=[CommandAction(
                type="team_assignment",
                target="teams",
                details={"teams": params.teams, "tasks": params.tasks, "priority": params.priority}
            )]
        )

    def _execute_task_assign(self, command: ParsedCommand, context: CommandContext) -> CommandExecutionResult:
        params: TaskAssignment = command.parameters

        return CommandExecutionResult(
            command=command,
            success=True,
            message=f"Reassigned task {params.task_id} to team {params.team}",
            actions=[CommandAction(
                type="task_reassignment",
                target=params.task_id,
                details={"team": params.team, "priority": params.priority}
            )]
        )

    def _execute_team_block(self, command: ParsedCommand, context: CommandContext) -> CommandExecutionResult:
        params: BlockingRelation = command.parameters

        message = f"Blocked team {params.blocked_team} on team {params.blocking_team} {params.condition}"
        if params.until:
            message += f" until {params.until}"

        return CommandExecutionResult(
            command=command,
            success=True,
            message=message,
            actions=[CommandAction(
                type="team_blocking",
                target=params.blocked_team,
                details={
                    "blocking_team": params.blocking_team,
                    "condition": params.condition,
                    "until": params.until,
                }
            )]
        )

    def _execute_team_sync(self, command: ParsedCommand, context: CommandContext) -> CommandExecutionResult:
        params: SyncOperation = command.parameters

        return CommandExecutionResult(
            command=command,
            success=True,
            message=f"Synchronized teams {', '.join(params.teams)} on {params.condition}",
            actions=[CommandAction(
                type="team_sync",
                target="teams",
                details={"teams": params.teams, "condition": params.condition, "trigger": params.trigger}
            )]
        )

    def _execute_load_balance(self, command: ParsedCommand, context: CommandContext) -> CommandExecutionResult:
        params: LoadBalanceOperation = command.parameters

        return CommandExecutionResult(
            command=command,
            success=True,
            message=(
                f"Load balanced across teams {', '.join(params.teams)} "
                f"using {params.strategy} strategy"
            ),
            actions=[CommandAction(
                type="load_balance",
                target="teams",
                details={"teams": params.teams, "strategy": params.strategy, "constraints": params.constraints}
            )]
        )

    def _execute_batch_operation(self, command: ParsedCommand, context: CommandContext) -> CommandExecutionResult:
        """Execute batch members in order; each member is validated first."""
        params: BatchOperation = command.parameters
        member_results: List[CommandExecutionResult] = []
        warnings: List[str] = []

        for member in params.commands:
            validation = self.validator.validate(member, context)
            warnings.extend(validation.suggestions)
            if not validation.valid:
                member_results.append(self._validation_failure(member, validation.errors))
                continue

            warnings.extend(validation.warnings)
            member_results.append(self.execute(member, context))

        successful = sum(1 for r in member_results if r.success)
        member_errors = [r.error for r in member_results if not r.success and r.error]

        return CommandExecutionResult(
            command=command,
            success=self._is_successful(successful, len(member_results)),
            message=f"Batch operation completed: {successful}/{len(member_results)} commands successful",
            actions=[action for r in member_results for action in r.actions],
            error="; ".join(member_errors) or None,
            warnings=warnings
        )
