"""
Pytest configuration and shared fixtures for WaveOps testing.

Provides coordination contexts, parser/dispatcher instances and temporary
configuration directories for unit, integration and performance tests.
"""

from unittest.mock import Mock

import pytest
import yaml

from waveops.coordination.command_dispatcher import CommandDispatcher
from waveops.coordination.command_parser import CommandParser
from waveops.coordination.command_validator import CommandValidator
from waveops.coordination.types import CommandContext
from waveops.core.config_manager import DispatcherConfig, ParserConfig
from waveops.core.error_handler import ErrorHandler

from .fixtures.sample_data import AVAILABLE_TASKS, AVAILABLE_TEAMS, SAMPLE_CONTEXT, TEAM_MEMBERSHIPS


# Context Fixtures
@pytest.fixture
def command_context():
    """Coordination context for wave 2 with the standard teams and tasks"""
    return CommandContext(
        issue_number=42,
        repository="acme/coordination",
        current_wave=2,
        available_teams=tuple(AVAILABLE_TEAMS),
        available_tasks=tuple(AVAILABLE_TASKS),
        team_memberships=dict(TEAM_MEMBERSHIPS),
        current_state={"state": "active"}
    )


@pytest.fixture
def empty_context():
    """Context with no teams, tasks or members"""
    return CommandContext(issue_number=1, repository="acme/empty")


@pytest.fixture
def context_file(tmp_path):
    """YAML context file matching the standard context"""
    path = tmp_path / "context.yaml"
    with open(path, "w") as f:
        yaml.safe_dump(SAMPLE_CONTEXT, f)
    return path


# Parser and Dispatcher Fixtures
@pytest.fixture
def parser_config():
    return ParserConfig()


@pytest.fixture
def parser(parser_config):
    return CommandParser(parser_config)


@pytest.fixture
def validator(parser_config):
    return CommandValidator(parser_config)


@pytest.fixture
def mock_error_handler():
    """Error handler double that records handled errors"""
    handler = Mock(spec=ErrorHandler)
    handler.handle_error.side_effect = lambda error, context=None: (
        f"{context}: {error}" if context else str(error)
    )
    return handler


@pytest.fixture
def dispatcher(parser):
    return CommandDispatcher(parser=parser, config=DispatcherConfig())


@pytest.fixture
def strict_dispatcher(parser):
    """Dispatcher that only succeeds when every command succeeds"""
    return CommandDispatcher(parser=parser, config=DispatcherConfig(success_policy="all"))


# Configuration Fixtures
@pytest.fixture
def temp_config_dir(tmp_path):
    """Temporary directory holding a default and a testing configuration"""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_config = {
        "app_name": "WaveOps-Test",
        "parser": {
            "confidence_threshold": 0.7,
            "max_alternatives": 2,
            "vocabulary_extensions": {"Start": ["Fire Up"]},
        },
        "dispatcher": {"success_policy": "any"},
        "logging": {"level": "debug", "log_to_console": False},
    }
    testing_config = {
        "parser": {"allow_ambiguous_commands": True},
    }

    with open(config_dir / "default_config.yaml", "w") as f:
        yaml.safe_dump(default_config, f)
    with open(config_dir / "testing.yaml", "w") as f:
        yaml.safe_dump(testing_config, f)

    return config_dir


@pytest.fixture
def clean_env(monkeypatch):
    """Remove WAVEOPS_* variables so configuration tests are hermetic"""
    import os
    for key in list(os.environ):
        if key.startswith("WAVEOPS_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
