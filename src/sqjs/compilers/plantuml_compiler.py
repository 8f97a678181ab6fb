"""
PlantUML compiler - Generates sequence diagrams via PlantUML HTTP server.

Diagram source is converted to PlantUML syntax, sent to a PlantUML server and
SVG comes back. Hand-drawn mode uses ``skinparam handwritten``.
"""

import asyncio
from typing import Dict, List
import requests
import logging
from sqjs.diagram_model import (
    DiagramCompileError,
    DiagramNote,
    DiagramOutput,
    MessageType,
    OutputType,
    RenderMode,
    SequenceDiagramDescription,
    SequenceMessage,
)
from sqjs.mermaid_utils import escape_plantuml, sanitize_id
from sqjs.sequence_parser import parse_sequence

log = logging.getLogger(__name__)

PLANTUML_ARROWS: Dict[MessageType, str] = {
    MessageType.SYNC: "->",
    MessageType.ASYNC: "->>",
    MessageType.RETURN: "-->",
    MessageType.RETURN_ASYNC: "-->>",
}


class PlantUMLServerError(DiagramCompileError):
    """Raised when PlantUML server request fails."""

    pass


class PlantUMLClient:
    """HTTP client for PlantUML server communication."""

    def __init__(self, server_url: str, timeout: int = 30):
        """
        Initialize PlantUML client.

        :param server_url: Base URL of PlantUML server (e.g., http://localhost:10005/)
        :param timeout: Request timeout in seconds
        """
        self.server_url = server_url.rstrip("/")
        self.timeout = timeout

    def generate_svg(self, plantuml_text: str) -> str:
        """
        Send PlantUML text to server and get SVG back.

        :param plantuml_text: PlantUML diagram syntax
        :return: SVG XML string
        :raises PlantUMLServerError: If server request fails or rejects the diagram
        """
        try:
            response = requests.post(
                f"{self.server_url}/svg",
                data=plantuml_text.encode("utf-8"),
                timeout=self.timeout,
                headers={"Content-Type": "text/plain; charset=utf-8"},
            )
        except requests.exceptions.Timeout:
            raise PlantUMLServerError(f"PlantUML server request timed out after {self.timeout} seconds")
        except requests.exceptions.ConnectionError as e:
            raise PlantUMLServerError(f"Failed to connect to PlantUML server at {self.server_url}: {e}")
        except requests.exceptions.RequestException as e:
            raise PlantUMLServerError(f"PlantUML server request failed: {e}")

        if response.status_code == 400:
            # Server describes the problem in headers, body is an error image
            log.error(f"Got bad request {response.status_code}")
            log.error(plantuml_text)
            detail = response.headers.get("X-PlantUML-Diag-Error-Message", "diagram rejected")
            raise PlantUMLServerError(f"PlantUML syntax error: {detail}")
        if response.status_code == 200:
            return response.text
        raise PlantUMLServerError(f"PlantUML server returned HTTP {response.status_code}: {response.text}")


class PlantUMLCompiler:
    """Compiles diagram source to SVG through a PlantUML server."""

    def __init__(self, server_url: str, timeout: int = 30):
        """
        Initialize PlantUML compiler.

        :param server_url: PlantUML server URL
        :param timeout: Request timeout in seconds
        """
        self.client = PlantUMLClient(server_url, timeout)

    async def compile(self, content: str, mode: RenderMode) -> DiagramOutput:
        """
        Compile diagram source to PlantUML SVG.

        HTTP call runs in a worker thread so event loop is free for other renders.

        :param content: diagram source
        :param mode: drawing style
        :return: DiagramOutput with SVG content
        :raises DiagramSyntaxError: If source cannot be parsed
        :raises PlantUMLServerError: If server request fails
        """
        plantuml_text = self.generate_sequence_diagram_syntax(parse_sequence(content), mode)
        try:
            svg_content = await asyncio.to_thread(self.client.generate_svg, plantuml_text)
        except PlantUMLServerError as e:
            log.error(f"PlantUML server error: {e}")
            log.error(f"PlantUML sequence syntax ({len(plantuml_text)} chars)")
            raise
        return DiagramOutput(output_type=OutputType.SVG, content=svg_content)

    def generate_sequence_diagram_syntax(self, desc: SequenceDiagramDescription, mode: RenderMode) -> str:
        """
        Generate PlantUML sequence diagram syntax.

        :param desc: SequenceDiagramDescription
        :param mode: drawing style
        :return: PlantUML syntax string
        """
        lines: List[str] = ["@startuml"]
        if mode == RenderMode.HAND:
            lines.append("skinparam handwritten true")
        if desc.title:
            lines.append(f"title {escape_plantuml(desc.title)}")

        ids = {participant.id: sanitize_id(participant.id, for_plantuml=True) for participant in desc.participants}

        for participant in desc.participants:
            safe_id = ids[participant.id]
            if participant.name != safe_id:
                lines.append(f'participant "{escape_plantuml(participant.name)}" as {safe_id}')
            else:
                lines.append(f"participant {safe_id}")

        for event in desc.events:
            if isinstance(event, SequenceMessage):
                lines.append(self._generate_sequence_message_syntax(event, ids))
            else:
                lines.append(self._generate_note_syntax(event, ids))

        lines.append("@enduml")
        return "\n".join(lines)

    def _generate_sequence_message_syntax(self, message: SequenceMessage, ids: Dict[str, str]) -> str:
        arrow = PLANTUML_ARROWS[message.message_type]
        label = escape_plantuml(message.label)
        return f"{ids[message.from_id]} {arrow} {ids[message.to_id]}: {label}"

    def _generate_note_syntax(self, note: DiagramNote, ids: Dict[str, str]) -> str:
        targets = ", ".join(ids[target] for target in note.attached_to)
        return f"note {note.position.value} {targets}: {escape_plantuml(note.text)}"
