"""WaveOps - Natural-Language Coordination Command Engine

Turns comments posted on coordination tickets into structured, validated
commands for multi-team wave workflows.
"""

__version__ = "0.1.0"
__author__ = "WaveOps Team"
__description__ = "Natural-language command parsing and dispatch for wave coordination"

from .coordination import CommandContext, CommandDispatcher, CommandParser, format_response_comment

__all__ = ["CommandContext", "CommandDispatcher", "CommandParser", "format_response_comment"]
