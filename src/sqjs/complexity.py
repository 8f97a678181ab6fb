"""
Complexity analysis - cheap participant and message counting.

Counting is a heuristic over lines, not a grammar walk. It only gates the
performance warning, so being approximate is fine.
"""

import re
from typing import Optional, Set

from sqjs.model import DiagramMetrics, DiagramSource
from sqjs.validation import base as b

#: More participants than this triggers performance warning.
PARTICIPANT_THRESHOLD = 15
#: More messages than this triggers performance warning.
MESSAGE_THRESHOLD = 50

ARROW_RE = re.compile(r"-{1,2}>+")
# Groups carry surrounding blanks, callers strip them
MESSAGE_RE = re.compile(r"^([^-]+)-{1,2}>++([^:]+):")
TITLE_RE = re.compile(r"^title\s*:", re.IGNORECASE)
NOTE_RE = re.compile(r"^note\s+(left\s+of|right\s+of|over)\b", re.IGNORECASE)


def _declared_name(line: str) -> Optional[str]:
    alias = b.match_participant_alias(line)
    if alias:
        return alias[1]
    simple = b.PARTICIPANT_SIMPLE_RE.match(line)
    return simple.group(1) if simple else None


def _is_non_message_line(line: str) -> bool:
    return bool(TITLE_RE.match(line) or NOTE_RE.match(line) or b.PARTICIPANT_KEYWORD_RE.match(line))


class ComplexityAnalyzer:
    """Computes :class:`DiagramMetrics` for diagram source."""

    def analyze(self, source: DiagramSource) -> DiagramMetrics:
        content = source.content.strip()
        if not content:
            return DiagramMetrics.zero()

        participants: Set[str] = set()
        messages = 0
        for line in content.split("\n"):
            trimmed = line.strip()
            if not trimmed:
                continue
            declared = _declared_name(trimmed)
            if declared:
                participants.add(declared)
                continue
            if _is_non_message_line(trimmed):
                continue
            if ARROW_RE.search(trimmed):
                messages += 1
                match = MESSAGE_RE.match(trimmed)
                if match:
                    participants.update(name.strip() for name in match.groups() if name.strip())

        return DiagramMetrics(
            participant_count=len(participants),
            message_count=messages,
            exceeds_threshold=len(participants) > PARTICIPANT_THRESHOLD or messages > MESSAGE_THRESHOLD,
        )


def analyze_complexity(source: DiagramSource) -> DiagramMetrics:
    return ComplexityAnalyzer().analyze(source)
