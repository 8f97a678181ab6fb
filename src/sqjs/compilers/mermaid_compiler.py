"""
Mermaid compiler - Generates Mermaid.js sequence diagram syntax.

The generated text is embedded in HTML or Markdown and drawn client-side by
Mermaid.js. Hand-drawn mode uses Mermaid ``look`` init directive.
"""

from typing import Dict
from sqjs.diagram_model import (
    DiagramNote,
    DiagramOutput,
    MessageType,
    OutputType,
    RenderMode,
    SequenceDiagramDescription,
    SequenceMessage,
)
from sqjs.mermaid_utils import sanitize_id, escape_label
from sqjs.sequence_parser import parse_sequence
import logging

log = logging.getLogger(__name__)

HAND_DRAWN_INIT = '%%{init: {"look": "handDrawn"}}%%'

MERMAID_ARROWS: Dict[MessageType, str] = {
    MessageType.SYNC: "->>",
    MessageType.ASYNC: "-)",
    MessageType.RETURN: "-->>",
    MessageType.RETURN_ASYNC: "--)",
}


class MermaidCompiler:
    """Compiles diagram source to Mermaid.js text syntax."""

    def compile(self, content: str, mode: RenderMode) -> DiagramOutput:
        """
        Compile diagram source.

        :param content: diagram source
        :param mode: drawing style
        :return: DiagramOutput with Mermaid text
        :raises DiagramSyntaxError: If source cannot be parsed
        """
        desc = parse_sequence(content)
        return self.render_sequence_diagram(desc, mode)

    def render_sequence_diagram(self, desc: SequenceDiagramDescription, mode: RenderMode) -> DiagramOutput:
        """
        Render a sequence diagram description to Mermaid.js syntax.

        :param desc: SequenceDiagramDescription
        :param mode: drawing style
        :return: DiagramOutput with Mermaid text
        """
        try:
            lines = []
            if mode == RenderMode.HAND:
                lines.append(HAND_DRAWN_INIT)
            lines.append("sequenceDiagram")
            if desc.title:
                lines.append(f"    title {escape_label(desc.title)}")

            ids = {participant.id: sanitize_id(participant.id) for participant in desc.participants}

            for participant in desc.participants:
                safe_id = ids[participant.id]
                if participant.name != safe_id:
                    lines.append(f"    participant {safe_id} as {escape_label(participant.name)}")
                else:
                    lines.append(f"    participant {safe_id}")

            for event in desc.events:
                if isinstance(event, SequenceMessage):
                    lines.append(self._generate_sequence_message(event, ids))
                else:
                    lines.append(self._generate_note(event, ids))

            content = "\n".join(lines)
            return DiagramOutput(output_type=OutputType.TEXT, content=content)

        except Exception as e:
            log.error(f"Failed to render Mermaid sequence diagram: {e}")
            return DiagramOutput(
                output_type=OutputType.TEXT,
                content="",
                error=f"Mermaid sequence rendering failed: {e}",
            )

    def _generate_sequence_message(self, message: SequenceMessage, ids: Dict[str, str]) -> str:
        arrow = MERMAID_ARROWS[message.message_type]
        label = escape_label(message.label)
        return f"    {ids[message.from_id]}{arrow}{ids[message.to_id]}: {label}"

    def _generate_note(self, note: DiagramNote, ids: Dict[str, str]) -> str:
        targets = ",".join(ids[target] for target in note.attached_to)
        return f"    Note {note.position.value} {targets}: {escape_label(note.text)}"
