"""Command-line interface for the WaveOps command engine.

Parses or dispatches a coordination comment against a context snapshot
stored as YAML:

    waveops parse "assign team alpha to task W1.T001" --context ctx.yaml
    waveops dispatch "start wave 2 with teams alpha, beta" --context ctx.yaml --json
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .coordination.command_dispatcher import CommandDispatcher
from .coordination.command_parser import CommandParser
from .coordination.context_builder import load_context_file
from .coordination.response_formatter import format_response_comment
from .coordination.types import ParseResult
from .core.config_manager import AppConfig, ConfigManager
from .core.error_handler import ConfigurationError, ContextError
from .core.logging_manager import LoggingManager

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="waveops",
        description="WaveOps natural-language coordination command engine"
    )
    parser.add_argument("--config-dir", help="Configuration directory")
    parser.add_argument("--env", help="Configuration environment (development, testing, ...)")
    parser.add_argument("--log-level", choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        type=str.upper, help="Override the configured log level")

    subparsers = parser.add_subparsers(dest='command', help='Available commands')
    subparsers.required = True

    for name, help_text in (('parse', 'Parse a comment and show the recognized commands'),
                            ('dispatch', 'Parse, validate and execute a comment')):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('text', help="Comment text, or '-' to read it from stdin")
        sub.add_argument('--context', required=True, help='YAML file with the coordination context')
        sub.add_argument('--json', action='store_true', help='Print the result as JSON')

    return parser


def _load_config(args: argparse.Namespace) -> AppConfig:
    manager = ConfigManager(
        config_path=Path(args.config_dir) if args.config_dir else None,
        environment=args.env
    )
    config = manager.load_config()

    logging_manager = LoggingManager.setup(config.logging)
    if args.log_level:
        logging_manager.set_log_level(args.log_level)

    return config


def _print_parse_result(result: ParseResult):
    if not result.commands:
        print("❌ No commands recognized")

    for index, command in enumerate(result.commands, start=1):
        print(f"{index}. {command.kind.value} (confidence {command.confidence:.2f})")
        print(f"   {json.dumps(command.to_dict()['parameters'], ensure_ascii=False)}")
        for alternative in command.alternatives:
            print(f"   alternative: {alternative.kind.value} ({alternative.confidence:.2f})")

    for error in result.errors:
        print(f"⚠️  Error: {error}")
    for warning in result.warnings:
        print(f"⚠️  Warning: {warning}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the waveops command."""
    args = build_arg_parser().parse_args(argv)

    try:
        config = _load_config(args)
        context = load_context_file(args.context)
    except (ConfigurationError, ContextError) as e:
        print(f"❌ {e.message}", file=sys.stderr)
        return EXIT_USAGE

    text = sys.stdin.read() if args.text == '-' else args.text
    parser = CommandParser(config.parser)

    if args.command == 'parse':
        result = parser.parse(text, context)
        if args.json:
            print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        else:
            _print_parse_result(result)
        return EXIT_OK if result.commands else EXIT_FAILED

    dispatcher = CommandDispatcher(parser=parser, config=config.dispatcher)
    dispatch_result = dispatcher.dispatch(text, context)
    if args.json:
        print(json.dumps(dispatch_result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(format_response_comment(dispatch_result))

    return EXIT_OK if dispatch_result.success else EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
