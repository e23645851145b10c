"""Splits a comment into independently parsed command segments."""

import re
from dataclasses import dataclass
from typing import List

_SEPARATOR = re.compile(r'\s*;\s*|\s+and\s+then\s+|\s+then\s+|\s+also\s+', re.IGNORECASE)
_LEADING_CONNECTOR = re.compile(r'^(?:and\s+then|then|also)\b\s*', re.IGNORECASE)
_TRAILING_PUNCTUATION = re.compile(r'[.!?]+$')


@dataclass(frozen=True)
class Segment:
    """One command candidate and its character offset in the input."""
    text: str
    position: int


class CommandSegmenter:
    """Splits on ``;``, "and then", "then" and "also", preserving order."""

    def segment(self, text: str) -> List[Segment]:
        """Split preprocessed text into non-empty, trimmed segments.

        Args:
            text: Preprocessed comment text

        Returns:
            Segments in input order; empty when the text holds no command
        """
        segments: List[Segment] = []
        start = 0

        for separator in _SEPARATOR.finditer(text):
            self._append(segments, text, start, separator.start())
            start = separator.end()
        self._append(segments, text, start, len(text))

        return segments

    def _append(self, segments: List[Segment], text: str, start: int, end: int):
        piece = text[start:end]
        offset = start + len(piece) - len(piece.lstrip())
        piece = piece.strip()

        # A connector left at the head of a segment, e.g. "; then assign ..."
        connector = _LEADING_CONNECTOR.match(piece)
        while connector and connector.end() > 0:
            offset += connector.end()
            piece = piece[connector.end():]
            connector = _LEADING_CONNECTOR.match(piece)

        piece = _TRAILING_PUNCTUATION.sub('', piece).strip()
        if piece:
            segments.append(Segment(piece, offset))
