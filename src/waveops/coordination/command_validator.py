"""Context-Aware Command Validation

Checks parsed commands against the coordination context: referenced teams
must exist, referenced tasks should exist, and a few per-kind structural
rules apply. Errors block only the command they belong to.
"""

from typing import Callable, Dict, Optional

from ..core.config_manager import ParserConfig
from ..core.logging_manager import LoggingManager
from .fuzzy_matcher import FuzzyMatcher
from .types import (
    BlockingRelation,
    CommandContext,
    CommandKind,
    LoadBalanceOperation,
    ParsedCommand,
    SyncOperation,
    TaskAssignment,
    TeamAssignment,
    ValidationResult,
)

ValidationRule = Callable[[object, CommandContext, ValidationResult], None]


class CommandValidator:
    """Validates parsed commands against a coordination context."""

    def __init__(self, config: Optional[ParserConfig] = None,
                 fuzzy_matcher: Optional[FuzzyMatcher] = None):
        self.config = config or ParserConfig()
        self.fuzzy_matcher = fuzzy_matcher or FuzzyMatcher()
        self.logger = LoggingManager.get_logger(__name__)

        # Kinds without a rule (wave start, batch) only get the confidence check
        self.validation_rules = self._build_validation_rules()

    def _build_validation_rules(self) -> Dict[CommandKind, ValidationRule]:
        return {
            CommandKind.TEAM_ASSIGN: self._validate_team_assignment,
            CommandKind.TASK_ASSIGN: self._validate_task_assignment,
            CommandKind.TEAM_BLOCK: self._validate_blocking_relation,
            CommandKind.TEAM_SYNC: self._validate_sync_operation,
            CommandKind.LOAD_BALANCE: self._validate_load_balance,
        }

    def validate(self, command: ParsedCommand, context: CommandContext) -> ValidationResult:
        """Validate one command.

        Args:
            command: Parsed command to check
            context: Coordination snapshot the command refers to

        Returns:
            Validation result; ``valid`` is True when no errors were found
        """
        result = ValidationResult()

        rule = self.validation_rules.get(command.kind)
        if rule is not None:
            try:
                rule(command.parameters, context, result)
            except (AttributeError, TypeError) as e:
                self.logger.warning(f"Malformed {command.kind.value} parameters: {e}")
                result.errors.append(f"Validation error: {e}")

        if command.confidence < self.config.confidence_threshold:
            result.warnings.append(
                f"Low confidence command ({command.confidence:.2f}). Consider rephrasing."
            )

        if not result.valid:
            self.logger.debug(f"{command.kind.value} failed validation: {'; '.join(result.errors)}")

        return result

    def _check_team(self, team: str, context: CommandContext, result: ValidationResult,
                    label: str = "team"):
        if context.has_team(team):
            return

        result.errors.append(f"Unknown {label}: {team}")
        if self.config.enable_fuzzy_matching:
            similar = self.fuzzy_matcher.find_similar(team, context.available_teams)
            if similar:
                result.suggestions.append(f"Did you mean: {', '.join(similar)}?")

    def _check_task(self, task: str, context: CommandContext, result: ValidationResult):
        if not context.has_task(task):
            result.warnings.append(f"Task {task} may not exist in current wave")

    def _validate_team_assignment(self, params: TeamAssignment, context: CommandContext,
                                  result: ValidationResult):
        for team in params.teams:
            self._check_team(team, context, result)
        for task in params.tasks:
            self._check_task(task, context, result)

    def _validate_task_assignment(self, params: TaskAssignment, context: CommandContext,
                                  result: ValidationResult):
        self._check_team(params.team, context, result)
        self._check_task(params.task_id, context, result)

    def _validate_blocking_relation(self, params: BlockingRelation, context: CommandContext,
                                    result: ValidationResult):
        self._check_team(params.blocked_team, context, result, label="blocked team")
        self._check_team(params.blocking_team, context, result, label="blocking team")

        if params.blocked_team.lower() == params.blocking_team.lower():
            result.errors.append("Team cannot block on itself")

    def _validate_sync_operation(self, params: SyncOperation, context: CommandContext,
                                 result: ValidationResult):
        for team in params.teams:
            self._check_team(team, context, result)

        if not params.condition or not params.condition.strip():
            result.errors.append("Sync condition cannot be empty")

    def _validate_load_balance(self, params: LoadBalanceOperation, context: CommandContext,
                               result: ValidationResult):
        for team in params.teams:
            self._check_team(team, context, result)

        if len(params.teams) < 2:
            result.warnings.append("Load balancing requires at least 2 teams")
