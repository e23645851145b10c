"""Types for command parsing and execution

Command kinds, the per-kind parameter payloads, the coordination context
snapshot and the result structures produced by parsing, validation and
dispatch.
"""

from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

from ..core.error_handler import ContextError


class CommandKind(Enum):
    """Coordination command categories."""
    WAVE_START = "wave_start"
    TEAM_ASSIGN = "team_assign"
    TEAM_BLOCK = "team_block"
    TASK_ASSIGN = "task_assign"
    TEAM_SYNC = "team_sync"
    LOAD_BALANCE = "load_balance"
    BATCH_OPERATION = "batch_operation"


class Priority(IntEnum):
    """Task priority levels, ordered from least to most urgent."""
    LOW = 1
    NORMAL = 2
    HIGH = 3
    CRITICAL = 4

    @classmethod
    def from_token(cls, token: Optional[str]) -> 'Priority':
        """Map a user-typed priority word onto a level (default NORMAL)."""
        if not token:
            return cls.NORMAL

        aliases = {
            "low": cls.LOW,
            "normal": cls.NORMAL,
            "medium": cls.NORMAL,
            "high": cls.HIGH,
            "critical": cls.CRITICAL,
            "urgent": cls.CRITICAL,
        }
        return aliases.get(token.strip().lower(), cls.NORMAL)


BALANCE_STRATEGIES = ("round_robin", "capacity_based", "priority_weighted")
SYNC_TRIGGERS = ("completion", "custom")


@dataclass
class TeamAssignment:
    """Assign one or more teams to a list of tasks."""
    teams: List[str]
    tasks: List[str] = field(default_factory=list)
    priority: Priority = Priority.NORMAL


@dataclass
class WaveStartOperation(TeamAssignment):
    """Start a wave with the participating teams."""
    wave_name: str = ""


@dataclass
class TaskAssignment:
    """Move a single task to a team."""
    task_id: str
    team: str
    priority: Priority = Priority.NORMAL


@dataclass
class BlockingRelation:
    """Hold one team until another reaches a condition."""
    blocked_team: str
    blocking_team: str
    condition: str = "completion"
    until: Optional[str] = None


@dataclass
class SyncOperation:
    """Synchronize several teams on a shared condition."""
    teams: List[str]
    condition: str
    trigger: str = "custom"


@dataclass
class LoadBalanceOperation:
    """Redistribute work across teams."""
    teams: List[str]
    strategy: str = "round_robin"
    constraints: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BatchOperation:
    """Several independently parsed commands executed in order."""
    commands: List['ParsedCommand'] = field(default_factory=list)


CommandParameters = Union[
    TeamAssignment,
    WaveStartOperation,
    TaskAssignment,
    BlockingRelation,
    SyncOperation,
    LoadBalanceOperation,
    BatchOperation,
]


@dataclass
class ParsedCommand:
    """A structured command recognized in a comment."""
    kind: CommandKind
    raw_text: str
    actor: str
    timestamp: datetime
    parameters: CommandParameters
    confidence: float
    alternatives: List['ParsedCommand'] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return to_serializable(self)


@dataclass(frozen=True)
class CommandContext:
    """Read-only coordination snapshot supplied for one comment.

    Built by the context provider for each incoming event. Team and task
    lookups are case-insensitive because command text is lower-cased before
    matching.
    """
    issue_number: int
    repository: str
    current_wave: Optional[int] = None
    available_teams: Tuple[str, ...] = ()
    available_tasks: Tuple[str, ...] = ()
    team_memberships: Mapping[str, str] = field(default_factory=dict)
    current_state: Mapping[str, Any] = field(default_factory=dict)
    author: Optional[str] = None

    _team_keys: FrozenSet[str] = field(init=False, repr=False, compare=False)
    _task_keys: FrozenSet[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'available_teams', tuple(self.available_teams))
        object.__setattr__(self, 'available_tasks', tuple(self.available_tasks))
        object.__setattr__(self, '_team_keys', frozenset(t.lower() for t in self.available_teams))
        object.__setattr__(self, '_task_keys', frozenset(t.lower() for t in self.available_tasks))

    def has_team(self, team: str) -> bool:
        return team.lower() in self._team_keys

    def has_task(self, task: str) -> bool:
        return task.lower() in self._task_keys

    def resolve_actor(self) -> str:
        """Return the comment author, else the first known member, else 'unknown'."""
        if self.author:
            return self.author
        return next(iter(self.team_memberships), 'unknown')

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'CommandContext':
        """Build a context from plain data (e.g. a YAML document).

        Raises:
            ContextError: If required keys are missing or have the wrong shape
        """
        if not isinstance(data, Mapping):
            raise ContextError("Context must be a mapping")

        try:
            issue_number = int(data['issue_number'])
            repository = str(data['repository'])
        except KeyError as e:
            raise ContextError(f"Context is missing required key: {e.args[0]}") from e
        except (TypeError, ValueError) as e:
            raise ContextError(f"Invalid issue number: {data.get('issue_number')!r}") from e

        current_wave = data.get('current_wave')
        if current_wave is not None:
            try:
                current_wave = int(current_wave)
            except (TypeError, ValueError) as e:
                raise ContextError(f"Invalid current wave: {current_wave!r}") from e

        teams = _string_list(data.get('available_teams') or [], 'available_teams')
        tasks = _string_list(data.get('available_tasks') or [], 'available_tasks')

        memberships = data.get('team_memberships') or {}
        if not isinstance(memberships, Mapping):
            raise ContextError("team_memberships must be a mapping of actor to team")

        state = data.get('current_state') or {}
        if not isinstance(state, Mapping):
            raise ContextError("current_state must be a mapping")

        author = data.get('author')

        return cls(
            issue_number=issue_number,
            repository=repository,
            current_wave=current_wave,
            available_teams=tuple(teams),
            available_tasks=tuple(tasks),
            team_memberships={str(k): str(v) for k, v in memberships.items()},
            current_state=dict(state),
            author=str(author) if author else None
        )


def _string_list(value: Any, name: str) -> List[str]:
    if isinstance(value, str) or not isinstance(value, (list, tuple, set, frozenset)):
        raise ContextError(f"{name} must be a list of identifiers")
    return [str(item) for item in value]


@dataclass
class ValidationResult:
    """Outcome of checking a command against the coordination context."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return to_serializable(self)


@dataclass
class ParseMetadata:
    parse_time_ms: float = 0.0
    confidence: float = 0.0
    ambiguity_score: float = 0.0


@dataclass
class ParseResult:
    """Commands recognized in one comment plus parse diagnostics."""
    commands: List[ParsedCommand] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metadata: ParseMetadata = field(default_factory=ParseMetadata)

    def to_dict(self) -> Dict[str, Any]:
        return to_serializable(self)


@dataclass
class CommandAction:
    """A side effect the caller is expected to apply."""
    type: str
    target: str
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CommandExecutionResult:
    command: ParsedCommand
    success: bool
    message: str
    actions: List[CommandAction] = field(default_factory=list)
    error: Optional[str] = None
    # Non-blocking validation notes raised while executing batch members
    warnings: List[str] = field(default_factory=list)


@dataclass
class DispatchMetadata:
    total_commands: int = 0
    successful_commands: int = 0
    processing_time_ms: float = 0.0


@dataclass
class CommandDispatchResult:
    """Aggregated outcome of parsing, validating and executing a comment."""
    success: bool
    results: List[CommandExecutionResult] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metadata: DispatchMetadata = field(default_factory=DispatchMetadata)

    def to_dict(self) -> Dict[str, Any]:
        return to_serializable(self)


def to_serializable(value: Any) -> Any:
    """Convert result structures into JSON-compatible data."""
    if is_dataclass(value) and not isinstance(value, type):
        data = {
            f.name: to_serializable(getattr(value, f.name))
            for f in fields(value)
            if not f.name.startswith('_')
        }
        if isinstance(value, ValidationResult):
            data['valid'] = value.valid
        return data
    if isinstance(value, Enum):
        return value.name.lower() if isinstance(value, Priority) else value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): to_serializable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_serializable(v) for v in value]
    return value
