"""
Sequence diagram parser.

Turns source text into :class:`SequenceDiagramDescription`. Participants that
are only used in messages or notes are added in order of first appearance,
after explicitly declared ones keep their declaration order.
"""

import re
from typing import Dict, List

from sqjs.diagram_model import (
    DiagramNote,
    DiagramSyntaxError,
    MessageType,
    NotePosition,
    SequenceDiagramDescription,
    SequenceMessage,
    SequenceParticipant,
)
from sqjs.validation import base as b

# Groups carry surrounding blanks, callers strip them
MESSAGE_LINE_RE = re.compile(r"^([^-]+)(-{1,2}>{1,2})([^:]+):(.*)$")
NOTE_LINE_RE = re.compile(r"^Note\s+(left of|right of|over)\s++([^:]*):(.*)$", re.IGNORECASE)

ARROWS: Dict[str, MessageType] = {
    "->": MessageType.SYNC,
    "->>": MessageType.ASYNC,
    "-->": MessageType.RETURN,
    "-->>": MessageType.RETURN_ASYNC,
}


class _Participants:
    def __init__(self) -> None:
        self.items: List[SequenceParticipant] = []
        self._index: Dict[str, SequenceParticipant] = {}

    def declare(self, id: str, name: str) -> None:
        existing = self._index.get(id)
        if existing is not None:
            # Redeclaration only updates display name
            existing.name = name
            return
        participant = SequenceParticipant(id=id, name=name)
        self.items.append(participant)
        self._index[id] = participant

    def use(self, id: str) -> None:
        if id not in self._index:
            self.declare(id, id)


def parse_sequence(content: str) -> SequenceDiagramDescription:
    """
    Parse diagram source.

    :param content: diagram source
    :return: SequenceDiagramDescription
    :raises DiagramSyntaxError: on first line that cannot be parsed
    """
    desc = SequenceDiagramDescription()
    participants = _Participants()
    title_seen = False

    for index, line in enumerate(content.split("\n")):
        line_number = index + 1
        trimmed = line.strip()
        if not trimmed:
            continue

        title_match = b.TITLE_RE.match(trimmed)
        if title_match:
            if not title_seen:
                title_seen = True
                desc.title = title_match.group(1).strip() or None
            continue

        if b.PARTICIPANT_KEYWORD_RE.match(trimmed):
            alias = b.match_participant_alias(trimmed)
            simple = b.PARTICIPANT_SIMPLE_RE.match(trimmed)
            if alias and alias[0]:
                participants.declare(alias[1], alias[0])
            elif simple:
                participants.declare(simple.group(1), simple.group(1))
            else:
                raise DiagramSyntaxError(f"Invalid participant declaration '{trimmed}'", line_number)
            continue

        note = NOTE_LINE_RE.match(trimmed)
        if note:
            position = NotePosition(re.sub(r"\s+", " ", note.group(1).lower()))
            targets = [target.strip() for target in note.group(2).split(",") if target.strip()]
            if not targets:
                raise DiagramSyntaxError("Note needs at least one participant", line_number)
            for target in targets:
                participants.use(target)
            desc.events.append(
                DiagramNote(text=note.group(3).strip(), position=position, attached_to=targets, line_number=line_number)
            )
            continue

        message = MESSAGE_LINE_RE.match(trimmed)
        if message is None or not message.group(1).strip() or not message.group(3).strip():
            raise DiagramSyntaxError(f"Unexpected '{trimmed}', expecting 'Participant->Other: Message'", line_number)
        sender, arrow, receiver, label = message.groups()
        sender = sender.strip()
        receiver = receiver.strip()
        participants.use(sender)
        participants.use(receiver)
        desc.events.append(
            SequenceMessage(
                from_id=sender,
                to_id=receiver,
                label=label.strip(),
                message_type=ARROWS[arrow],
                line_number=line_number,
            )
        )

    desc.participants = participants.items
    return desc
