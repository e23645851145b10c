"""Coordination command engine.

Parses ticket comments into wave coordination commands, validates them
against a context snapshot and dispatches them to per-kind handlers.
"""

from .command_dispatcher import CommandDispatcher
from .command_parser import CommandParser
from .command_validator import CommandValidator
from .context_builder import build_context, extract_wave_number, load_context_file
from .fuzzy_matcher import FuzzyMatcher
from .list_expander import ListExpander
from .pattern_table import PatternTable, preprocess
from .response_formatter import format_response_comment
from .segmenter import CommandSegmenter, Segment
from .types import (
    BatchOperation,
    BlockingRelation,
    CommandAction,
    CommandContext,
    CommandDispatchResult,
    CommandExecutionResult,
    CommandKind,
    LoadBalanceOperation,
    ParsedCommand,
    ParseResult,
    Priority,
    SyncOperation,
    TaskAssignment,
    TeamAssignment,
    ValidationResult,
    WaveStartOperation,
)

__all__ = [
    "CommandDispatcher",
    "CommandParser",
    "CommandValidator",
    "build_context",
    "extract_wave_number",
    "load_context_file",
    "FuzzyMatcher",
    "ListExpander",
    "PatternTable",
    "preprocess",
    "format_response_comment",
    "CommandSegmenter",
    "Segment",
    "BatchOperation",
    "BlockingRelation",
    "CommandAction",
    "CommandContext",
    "CommandDispatchResult",
    "CommandExecutionResult",
    "CommandKind",
    "LoadBalanceOperation",
    "ParsedCommand",
    "ParseResult",
    "Priority",
    "SyncOperation",
    "TaskAssignment",
    "TeamAssignment",
    "ValidationResult",
    "WaveStartOperation",
]
