"""Natural-Language Command Parser for Wave Coordination

Turns ticket comments into structured coordination commands. Input is
preprocessed, split into segments and every segment is matched against the
full pattern table; the highest-confidence candidate wins and the remaining
candidates above the configured threshold are kept as alternatives.
"""

import re
import time
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from ..core.config_manager import ParserConfig
from ..core.error_handler import CommandParseError, ParseErrorCode
from ..core.logging_manager import LoggingManager
from .command_validator import CommandValidator
from .list_expander import ListExpander
from .pattern_table import PatternTable, preprocess
from .segmenter import CommandSegmenter, Segment
from .types import (
    BatchOperation,
    BlockingRelation,
    CommandContext,
    CommandKind,
    CommandParameters,
    LoadBalanceOperation,
    ParsedCommand,
    ParseMetadata,
    ParseResult,
    Priority,
    SyncOperation,
    TaskAssignment,
    TeamAssignment,
    ValidationResult,
    WaveStartOperation,
)

EMPTY_INPUT_MESSAGE = "Empty command input"

ParameterBuilder = Callable[[Dict[str, Optional[str]]], Optional[CommandParameters]]


class CommandParser:
    """Parses coordination comments into ParsedCommand objects."""

    def __init__(self, config: Optional[ParserConfig] = None,
                 pattern_table: Optional[PatternTable] = None):
        """Initialize the parser.

        Args:
            config: Parser tunables; defaults apply when omitted
            pattern_table: Pre-built pattern table to share between parsers
        """
        self.config = config or ParserConfig()
        self.logger = LoggingManager.get_logger(__name__)

        self.pattern_table = pattern_table or PatternTable(self.config.vocabulary_extensions)
        self.segmenter = CommandSegmenter()
        self.expander = ListExpander(max_range_size=self.config.max_range_size)
        self.validator = CommandValidator(self.config)

        # Payload builders keyed by command kind
        self.parameter_builders = self._build_parameter_builders()

    def _build_parameter_builders(self) -> Dict[CommandKind, ParameterBuilder]:
        return {
            CommandKind.WAVE_START: self._build_wave_start,
            CommandKind.TEAM_ASSIGN: self._build_team_assign,
            CommandKind.TEAM_BLOCK: self._build_team_block,
            CommandKind.TASK_ASSIGN: self._build_task_assign,
            CommandKind.TEAM_SYNC: self._build_team_sync,
            CommandKind.LOAD_BALANCE: self._build_load_balance,
        }

    def parse(self, text: str, context: CommandContext) -> ParseResult:
        """Parse a comment into commands.

        Segments that match nothing are reported in ``errors`` (with template
        suggestions in ``warnings``) while the remaining segments still parse.
        Several recognized segments are wrapped in one batch operation.

        Args:
            text: Raw comment text
            context: Coordination snapshot for the comment

        Returns:
            Parse result with commands, diagnostics and metadata
        """
        start_time = time.perf_counter()

        try:
            processed = preprocess(text or "")
            segments = self.segmenter.segment(processed)

            if not segments:
                self.logger.debug("Empty command input")
                return ParseResult(
                    errors=[EMPTY_INPUT_MESSAGE],
                    metadata=ParseMetadata(parse_time_ms=self._elapsed_ms(start_time))
                )

            actor = context.resolve_actor()
            timestamp = datetime.now()

            commands: List[ParsedCommand] = []
            errors: List[str] = []
            warnings: List[str] = []

            for segment in segments:
                self.logger.debug(f"Parsing segment at position {segment.position}: {segment.text!r}")
                try:
                    command, segment_warnings = self._parse_segment(segment, actor, timestamp)
                except CommandParseError as e:
                    errors.append(f"{e.message} (position {e.position})")
                    if e.suggestions:
                        warnings.append(f"Suggestions: {', '.join(e.suggestions)}")
                    continue

                commands.append(command)
                warnings.extend(segment_warnings)

            confidence = self._mean([c.confidence for c in commands])
            ambiguity_score = self._mean([float(len(c.alternatives)) for c in commands])

            if len(commands) > 1:
                commands = [ParsedCommand(
                    kind=CommandKind.BATCH_OPERATION,
                    raw_text=text,
                    actor=actor,
                    timestamp=timestamp,
                    parameters=BatchOperation(commands=commands),
                    confidence=confidence
                )]

            result = ParseResult(
                commands=commands,
                errors=errors,
                warnings=warnings,
                metadata=ParseMetadata(
                    parse_time_ms=self._elapsed_ms(start_time),
                    confidence=confidence,
                    ambiguity_score=ambiguity_score
                )
            )

            self.logger.info(
                f"Parsed {len(segments)} segment(s): commands={len(commands)}, "
                f"errors={len(errors)}, confidence={confidence:.2f}"
            )
            return result

        except Exception as e:
            self.logger.exception("Fatal error while parsing command input")
            return ParseResult(
                errors=[f"Fatal parsing error: {e}"],
                metadata=ParseMetadata(
                    parse_time_ms=self._elapsed_ms(start_time),
                    confidence=0.0,
                    ambiguity_score=1.0
                )
            )

    def validate(self, command: ParsedCommand, context: CommandContext) -> ValidationResult:
        """Validate a parsed command with this parser's configuration."""
        return self.validator.validate(command, context)

    def _parse_segment(self, segment: Segment, actor: str,
                       timestamp: datetime) -> Tuple[ParsedCommand, List[str]]:
        """Match one segment against every pattern and pick the best candidate.

        Raises:
            CommandParseError: If no pattern yields a usable command
        """
        candidates: List[ParsedCommand] = []
        build_error: Optional[CommandParseError] = None

        for pattern in self.pattern_table.iter_patterns():
            match = pattern.match(segment.text)
            if not match:
                continue

            try:
                parameters = self.parameter_builders[pattern.kind](match.groupdict())
            except CommandParseError as e:
                self.logger.debug(f"Skipping {pattern.name} match: {e.message}")
                build_error = build_error or e
                continue

            if parameters is None:
                continue

            candidates.append(ParsedCommand(
                kind=pattern.kind,
                raw_text=segment.text,
                actor=actor,
                timestamp=timestamp,
                parameters=parameters,
                confidence=self.pattern_table.base_confidence(pattern.kind)
            ))

        if not candidates:
            if build_error is not None:
                build_error.position = segment.position
                raise build_error

            raise CommandParseError(
                f'Unable to parse command: "{segment.text}"',
                ParseErrorCode.UNKNOWN_COMMAND,
                position=segment.position,
                suggestions=self.pattern_table.suggest_templates(segment.text),
                context={
                    "segment": segment.text,
                    "known_commands": [kind.value for kind in self.pattern_table.kinds],
                }
            )

        best = candidates[0]
        for candidate in candidates[1:]:
            if candidate.confidence > best.confidence:
                best = candidate

        best.alternatives = self._select_alternatives(best, candidates)
        return best, self._ambiguity_warnings(segment, best)

    def _select_alternatives(self, best: ParsedCommand,
                             candidates: List[ParsedCommand]) -> List[ParsedCommand]:
        alternatives: List[ParsedCommand] = []

        for candidate in candidates:
            if candidate is best or candidate.confidence <= self.config.confidence_threshold:
                continue
            if self._same_command(candidate, best):
                continue
            if any(self._same_command(candidate, seen) for seen in alternatives):
                continue
            alternatives.append(candidate)

        # sorted() is stable, so ties keep table order
        alternatives = sorted(alternatives, key=lambda c: c.confidence, reverse=True)
        return alternatives[:self.config.max_alternatives]

    def _ambiguity_warnings(self, segment: Segment, best: ParsedCommand) -> List[str]:
        if self.config.allow_ambiguous_commands:
            return []

        tied_kinds = []
        for alternative in best.alternatives:
            if alternative.kind is not best.kind and alternative.confidence == best.confidence:
                if alternative.kind not in tied_kinds:
                    tied_kinds.append(alternative.kind)

        return [
            f'Ambiguous command "{segment.text}": also matches {kind.value}'
            for kind in tied_kinds
        ]

    @staticmethod
    def _same_command(a: ParsedCommand, b: ParsedCommand) -> bool:
        return a.kind is b.kind and a.parameters == b.parameters

    def _build_wave_start(self, groups: Dict[str, Optional[str]]) -> Optional[WaveStartOperation]:
        wave_name = _clean(groups.get('wave'))
        if not wave_name:
            return None

        return WaveStartOperation(
            teams=self.expander.expand_teams(groups.get('teams') or ""),
            wave_name=wave_name
        )

    def _build_team_assign(self, groups: Dict[str, Optional[str]]) -> Optional[TeamAssignment]:
        teams = self.expander.expand_teams(groups.get('teams') or "")
        tasks = self.expander.expand_tasks(groups.get('tasks') or "")
        if not teams or not tasks:
            return None

        return TeamAssignment(teams=teams, tasks=tasks, priority=_priority(groups))

    def _build_task_assign(self, groups: Dict[str, Optional[str]]) -> Optional[TaskAssignment]:
        tasks = self.expander.expand_tasks(groups.get('task') or "")
        teams = self.expander.expand_teams(groups.get('teams') or "")
        if len(tasks) != 1 or not teams:
            return None

        return TaskAssignment(task_id=tasks[0], team=teams[0], priority=_priority(groups))

    def _build_team_block(self, groups: Dict[str, Optional[str]]) -> Optional[BlockingRelation]:
        blocked = self.expander.expand_teams(groups.get('blocked') or "")
        blocking = self.expander.expand_teams(groups.get('blocking') or "")
        if not blocked or not blocking:
            return None

        return BlockingRelation(
            blocked_team=blocked[0],
            blocking_team=blocking[0],
            condition=_clean(groups.get('condition')) or "completion",
            until=_clean(groups.get('until')) or None
        )

    def _build_team_sync(self, groups: Dict[str, Optional[str]]) -> Optional[SyncOperation]:
        teams = self.expander.expand_teams(groups.get('teams') or "")
        if not teams:
            return None

        condition = _clean(groups.get('condition'))
        trigger = "completion" if "completion" in condition else "custom"
        return SyncOperation(teams=teams, condition=condition, trigger=trigger)

    def _build_load_balance(self, groups: Dict[str, Optional[str]]) -> Optional[LoadBalanceOperation]:
        teams = self.expander.expand_teams(groups.get('teams') or "")
        if not teams:
            return None

        strategy_token = groups.get('strategy') or groups.get('strategy_alt') or ""
        return LoadBalanceOperation(teams=teams, strategy=_strategy(strategy_token))

    @staticmethod
    def _mean(values: List[float]) -> float:
        return sum(values) / len(values) if values else 0.0

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return (time.perf_counter() - start_time) * 1000


def _clean(value: Optional[str]) -> str:
    """Trim whitespace and surrounding/embedded double quotes."""
    if not value:
        return ""
    return re.sub(r'\s+', ' ', value.replace('"', '')).strip()


def _priority(groups: Dict[str, Optional[str]]) -> Priority:
    return Priority.from_token(groups.get('priority') or groups.get('priority_alt'))


def _strategy(token: str) -> str:
    if "capacity" in token:
        return "capacity_based"
    if "priority" in token:
        return "priority_weighted"
    return "round_robin"
