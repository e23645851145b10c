"""Helpers for assembling CommandContext snapshots

The engine never fetches coordination data itself; callers (the CLI, a
webhook handler) gather teams, tasks and memberships and build the snapshot
with these helpers.
"""

import re
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Union

import yaml

from ..core.error_handler import ContextError
from ..core.logging_manager import LoggingManager
from .types import CommandContext

_WAVE_TITLE = re.compile(r'wave\s+(\d+)', re.IGNORECASE)

logger = LoggingManager.get_logger(__name__)


def extract_wave_number(title: Optional[str]) -> Optional[int]:
    """Return the wave number from a ticket title such as "Wave 3 coordination"."""
    if not title:
        return None

    match = _WAVE_TITLE.search(title)
    return int(match.group(1)) if match else None


def build_context(
    issue_number: int,
    repository: str,
    issue_title: Optional[str] = None,
    available_teams: Iterable[str] = (),
    available_tasks: Iterable[str] = (),
    team_memberships: Optional[Mapping[str, str]] = None,
    current_state: Optional[Mapping[str, Any]] = None,
    author: Optional[str] = None,
    current_wave: Optional[int] = None
) -> CommandContext:
    """Build a context snapshot for one comment.

    When ``current_wave`` is not given it is taken from ``issue_title``.
    """
    if current_wave is None:
        current_wave = extract_wave_number(issue_title)

    return CommandContext(
        issue_number=issue_number,
        repository=repository,
        current_wave=current_wave,
        available_teams=tuple(available_teams),
        available_tasks=tuple(available_tasks),
        team_memberships=dict(team_memberships or {}),
        current_state=dict(current_state or {}),
        author=author
    )


def load_context_file(path: Union[str, Path]) -> CommandContext:
    """Load a context snapshot from a YAML file.

    The document holds the CommandContext fields; an optional ``issue_title``
    supplies the wave number when ``current_wave`` is absent.

    Raises:
        ContextError: If the file is missing, unreadable or malformed
    """
    context_path = Path(path)
    if not context_path.is_file():
        raise ContextError(f"Context file not found: {context_path}")

    try:
        with open(context_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ContextError(f"Invalid YAML in context file {context_path}: {e}") from e
    except OSError as e:
        raise ContextError(f"Cannot read context file {context_path}: {e}") from e

    if not isinstance(data, dict):
        raise ContextError(f"Context file {context_path} must contain a mapping")

    data: Dict[str, Any] = dict(data)
    title = data.pop('issue_title', None)
    if data.get('current_wave') is None and title:
        data['current_wave'] = extract_wave_number(str(title))

    context = CommandContext.from_mapping(data)
    logger.debug(f"Loaded context for {context.repository}#{context.issue_number} from {context_path}")
    return context
