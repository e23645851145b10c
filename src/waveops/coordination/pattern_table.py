"""Grammar Pattern Table for Coordination Commands

Ordered registry of the phrasings accepted for each command kind, compiled
once at construction and read-only afterwards. Also hosts the input
preprocessor and the verb vocabulary used to hint at command templates when
nothing matches.
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from ..core.logging_manager import LoggingManager
from .types import CommandKind

# Words that end a team/task list inside a phrasing
_KEYWORDS = (
    r'(?:to|on|for|when|after|until|using|with|across|tasks?|priority|'
    r'strategy|waits?|depends?|blocks?)'
)
_ITEM = rf'(?!{_KEYWORDS}\b)[\w"#.-]+'
_LIST = rf'{_ITEM}(?:(?:\s*[,&]\s*|\s+){_ITEM})*'
_COMMA_LIST = rf'{_ITEM}(?:\s*[,&]\s*{_ITEM})*'

_PRIORITY = r'(?:\s+(?:with\s+)?(?P<priority>\w+)\s+priority|\s+priority\s+(?P<priority_alt>\w+))?'
_BLOCK_TAIL = r'(?:\s+until\s+(?P<until>.+)|\s+(?P<condition>.+))?'
_STRATEGY = r'(?:\s+using\s+(?P<strategy>[\w-]+)(?:\s+strategy)?|\s+(?P<strategy_alt>[\w-]+)\s+strategy)?'

_QUOTES = re.compile('[“”„‟‘’‚‛«»"\'`´]')


def preprocess(text: str) -> str:
    """Normalize raw comment text for matching.

    Quotes become straight double quotes, whitespace runs collapse,
    ``task#`` and ``team-`` references are split and everything is
    lower-cased.
    """
    processed = text.strip()
    processed = _QUOTES.sub('"', processed)
    processed = re.sub(r'\s+', ' ', processed)
    processed = re.sub(r'\btask#', 'task #', processed, flags=re.IGNORECASE)
    processed = re.sub(r'\bteam-', 'team ', processed, flags=re.IGNORECASE)
    return processed.lower()


@dataclass(frozen=True)
class CommandPattern:
    """One compiled phrasing for a command kind."""
    kind: CommandKind
    name: str
    regex: re.Pattern

    def match(self, segment: str) -> Optional[re.Match]:
        return self.regex.match(segment)


class PatternTable:
    """Immutable, ordered mapping of command kinds to their grammars."""

    BASE_CONFIDENCE: Mapping[CommandKind, float] = MappingProxyType({
        CommandKind.WAVE_START: 0.9,
        CommandKind.TEAM_ASSIGN: 0.85,
        CommandKind.TASK_ASSIGN: 0.85,
        CommandKind.TEAM_BLOCK: 0.8,
        CommandKind.LOAD_BALANCE: 0.8,
        CommandKind.TEAM_SYNC: 0.75,
    })

    TEMPLATES: Mapping[str, str] = MappingProxyType({
        'start': 'start wave <name> with teams <team-list>',
        'assign': 'assign teams <team-list> to tasks <task-list>',
        'reassign': 'reassign task <id> to team <name>',
        'block': 'block team <name> on team <other-name> completion',
        'sync': 'sync teams <team-list> on <condition>',
        'balance': 'balance teams <team-list> using <strategy>',
    })

    def __init__(self, vocabulary_extensions: Optional[Dict[str, List[str]]] = None):
        """Compile the grammar table and build the verb vocabulary.

        Args:
            vocabulary_extensions: Extra synonyms keyed by vocabulary verb
        """
        self.logger = LoggingManager.get_logger(__name__)

        self._table: Tuple[Tuple[CommandKind, Tuple[CommandPattern, ...]], ...] = tuple(
            (kind, tuple(
                CommandPattern(kind, name, re.compile(source))
                for name, source in phrasings
            ))
            for kind, phrasings in self._build_grammar()
        )
        self._vocabulary = self._build_vocabulary(vocabulary_extensions or {})
        self._hint_patterns = MappingProxyType({
            verb: tuple(re.compile(rf'\b{re.escape(word)}') for word in words)
            for verb, words in self._vocabulary.items()
        })

    def _build_grammar(self) -> List[Tuple[CommandKind, List[Tuple[str, str]]]]:
        """Build the phrasings for each command kind, in matching order.

        Returns:
            List of (kind, [(phrasing name, regex source)]) pairs
        """
        return [
            (CommandKind.WAVE_START, [
                ('start_wave',
                 rf'^(?:start|launch|kick\s+off)\s+wave\s+(?P<wave>[\w.-]+)'
                 rf'(?:\s+(?:with|using)\s+teams?\s+(?P<teams>{_LIST}))?$'),
                ('begin_wave',
                 rf'^begin\s+wave\s+(?P<wave>[\w.-]+)'
                 rf'(?:\s+(?:with\s+|using\s+)?teams?\s+(?P<teams>{_LIST}))?$'),
            ]),

            (CommandKind.TEAM_ASSIGN, [
                ('assign_teams_to_tasks',
                 rf'^(?:assign|give)\s+teams?\s+(?P<teams>{_LIST})\s+to\s+tasks?\s+(?P<tasks>{_LIST}){_PRIORITY}$'),
                ('give_teams_tasks',
                 rf'^give\s+teams?\s+(?P<teams>{_LIST})\s+tasks?\s+(?P<tasks>{_LIST}){_PRIORITY}$'),
                ('allocate_tasks_to_teams',
                 rf'^(?:allocate|delegate|assign)\s+tasks?\s+(?P<tasks>{_LIST})\s+to\s+teams?\s+(?P<teams>{_LIST}){_PRIORITY}$'),
            ]),

            (CommandKind.TEAM_BLOCK, [
                ('block_on',
                 rf'^block\s+teams?\s+(?P<blocked>{_LIST})\s+on\s+teams?\s+(?P<blocking>{_COMMA_LIST}){_BLOCK_TAIL}$'),
                ('waits_for',
                 rf'^teams?\s+(?P<blocked>{_LIST})\s+(?:waits?\s+for|depends?\s+on|blocks?\s+on)\s+'
                 rf'teams?\s+(?P<blocking>{_COMMA_LIST}){_BLOCK_TAIL}$'),
                ('make_wait',
                 rf'^make\s+teams?\s+(?P<blocked>{_LIST})\s+wait\s+for\s+teams?\s+(?P<blocking>{_COMMA_LIST}){_BLOCK_TAIL}$'),
            ]),

            (CommandKind.TASK_ASSIGN, [
                ('reassign_task',
                 rf'^(?:reassign|move|transfer)\s+tasks?\s+(?P<task>{_ITEM})\s+to\s+teams?\s+(?P<teams>{_LIST}){_PRIORITY}$'),
                ('assign_single_task',
                 rf'^assign\s+task\s+(?P<task>{_ITEM})\s+to\s+team\s+(?P<teams>{_ITEM}){_PRIORITY}$'),
            ]),

            (CommandKind.TEAM_SYNC, [
                ('sync_on',
                 rf'^(?:sync|synchronize)\s+teams?\s+(?P<teams>{_LIST})\s+(?:on|when|after)\s+(?P<condition>.+)$'),
                ('coordinate_for',
                 rf'^coordinate\s+teams?\s+(?P<teams>{_LIST})\s+(?:for|on|when|after)\s+(?P<condition>.+)$'),
            ]),

            (CommandKind.LOAD_BALANCE, [
                ('balance_teams',
                 rf'^(?:auto-?)?balance\s+(?:load\s+)?(?:across\s+)?teams?\s+(?P<teams>{_LIST}){_STRATEGY}$'),
                ('distribute_work',
                 rf'^distribute\s+(?:work\s+|load\s+)?(?:across\s+)?teams?\s+(?P<teams>{_LIST}){_STRATEGY}$'),
                ('rebalance_teams',
                 rf'^rebalance\s+(?:load\s+)?(?:across\s+)?teams?\s+(?P<teams>{_LIST}){_STRATEGY}$'),
            ]),
        ]

    def _build_vocabulary(self, extensions: Dict[str, List[str]]) -> Mapping[str, Tuple[str, ...]]:
        """Build verb synonym lists, merging configured extensions.

        Returns:
            Read-only mapping of vocabulary verb to synonyms (verb included)
        """
        vocabulary = {
            'start': ['start', 'launch', 'begin', 'initiate', 'kick off', 'commence'],
            'assign': ['assign', 'allocate', 'give', 'delegate', 'distribute'],
            'reassign': ['reassign', 'move', 'transfer'],
            'block': ['block', 'wait', 'depend', 'hold', 'pause'],
            'sync': ['sync', 'synchronize', 'coordinate', 'align'],
            'balance': ['balance', 'distribute', 'rebalance', 'level'],
        }

        for verb, words in extensions.items():
            if verb not in vocabulary:
                self.logger.warning(f"Ignoring vocabulary extension for unknown verb: {verb}")
                continue
            vocabulary[verb].extend(word for word in words if word not in vocabulary[verb])

        return MappingProxyType({verb: tuple(words) for verb, words in vocabulary.items()})

    @property
    def kinds(self) -> List[CommandKind]:
        """Command kinds in matching order."""
        return [kind for kind, _ in self._table]

    @property
    def vocabulary(self) -> Mapping[str, Tuple[str, ...]]:
        return self._vocabulary

    def iter_patterns(self) -> Iterator[CommandPattern]:
        """Yield every pattern of every kind in table order."""
        for _, patterns in self._table:
            yield from patterns

    def patterns_for(self, kind: CommandKind) -> Tuple[CommandPattern, ...]:
        for table_kind, patterns in self._table:
            if table_kind is kind:
                return patterns
        return ()

    def base_confidence(self, kind: CommandKind) -> float:
        return self.BASE_CONFIDENCE[kind]

    def suggest_templates(self, segment: str, limit: int = 3) -> List[str]:
        """Suggest command templates whose vocabulary appears in the segment."""
        suggestions = []

        for verb, hints in self._hint_patterns.items():
            if any(hint.search(segment) for hint in hints):
                suggestions.append(self.TEMPLATES[verb])
            if len(suggestions) >= limit:
                break

        return suggestions
