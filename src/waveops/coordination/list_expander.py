"""List and range expansion for team and task references

Turns fragments such as ``alpha, beta`` or ``1-3`` into identifier
sequences. Order is preserved and duplicates are kept.
"""

import re
from typing import List

from ..core.error_handler import CommandParseError, ParseErrorCode

TEAM_PREFIX = "team-"

_SEPARATOR = re.compile(r'[,&\s]+')
_NUMERIC_RANGE = re.compile(r'^(\d+)-(\d+)$')

# Connector and marker words that can appear inside a list fragment
_TEAM_MARKERS = frozenset({"team", "teams", "and"})
_TASK_MARKERS = frozenset({"task", "tasks", "and"})


class ListExpander:
    """Expands comma, ampersand or whitespace separated team and task lists."""

    def __init__(self, max_range_size: int = 100):
        self.max_range_size = max_range_size

    def expand_teams(self, text: str) -> List[str]:
        """Expand a team list fragment into canonical team ids.

        ``1-3`` becomes ``team-1, team-2, team-3``; ``alpha`` becomes
        ``team-alpha``; hyphenated names that are not numeric ranges are kept
        as typed.
        """
        teams: List[str] = []

        for token in self._tokenize(text, _TEAM_MARKERS):
            if token.startswith(TEAM_PREFIX):
                teams.append(token)
                continue

            bounds = self._numeric_range(token)
            if bounds is not None:
                teams.extend(f"{TEAM_PREFIX}{n}" for n in bounds)
            elif '-' in token:
                teams.append(token)
            else:
                teams.append(f"{TEAM_PREFIX}{token}")

        return teams

    def expand_tasks(self, text: str) -> List[str]:
        """Expand a task list fragment; digit ranges become single task numbers."""
        tasks: List[str] = []

        for token in self._tokenize(text, _TASK_MARKERS):
            bounds = self._numeric_range(token)
            if bounds is not None:
                tasks.extend(str(n) for n in bounds)
            else:
                tasks.append(token)

        return tasks

    def _tokenize(self, text: str, markers: frozenset) -> List[str]:
        if not text:
            return []

        tokens = []
        for raw in _SEPARATOR.split(text.strip()):
            token = raw.strip().strip('"').replace('#', '')
            if token and token not in markers:
                tokens.append(token)
        return tokens

    def _numeric_range(self, token: str):
        match = _NUMERIC_RANGE.match(token)
        if not match:
            return None

        try:
            start, end = int(match.group(1)), int(match.group(2))
        except ValueError as e:
            # Bounds past the interpreter's integer conversion limit
            raise CommandParseError(
                "Invalid range: range bounds are too large",
                ParseErrorCode.INVALID_RANGE,
                context={"max_range_size": self.max_range_size}
            ) from e

        if end < start:
            raise CommandParseError(
                f"Invalid range: {token} (start is greater than end)",
                ParseErrorCode.INVALID_RANGE,
                context={"range": token}
            )
        if end - start + 1 > self.max_range_size:
            raise CommandParseError(
                f"Invalid range: {token} expands to more than {self.max_range_size} items",
                ParseErrorCode.INVALID_RANGE,
                context={"range": token, "max_range_size": self.max_range_size}
            )

        return range(start, end + 1)
