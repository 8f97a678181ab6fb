"""
Diagram description model - Compiler-agnostic sequence diagram structures.

Source text is parsed into these structures once, then diagram compilers
(Mermaid, PlantUML) turn them into format-specific drawable output.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, List, Optional, Protocol, Union

from sqjs.config import THEMES


class OutputType(str, Enum):
    """Type of diagram output."""

    TEXT = "text"  # Mermaid text syntax
    SVG = "svg"  # PlantUML SVG output


class RenderMode(str, Enum):
    """Compiler level drawing style."""

    SIMPLE = "simple"
    HAND = "hand"

    @classmethod
    def for_theme(cls, theme: str) -> "RenderMode":
        """
        :raises ValueError: If theme is not one of :data:`sqjs.config.THEMES`
        """
        if theme not in THEMES:
            raise ValueError(f'Invalid theme: "{theme}". Must be one of: {", ".join(THEMES)}.')
        return cls.HAND if theme == "hand-drawn" else cls.SIMPLE


class MessageType(str, Enum):
    """Type of message in sequence diagram."""

    SYNC = "sync"  # -> solid line, filled arrow
    ASYNC = "async"  # ->> solid line, open arrow
    RETURN = "return"  # --> dashed line, filled arrow
    RETURN_ASYNC = "return_async"  # -->> dashed line, open arrow


class NotePosition(str, Enum):
    LEFT = "left of"
    RIGHT = "right of"
    OVER = "over"


@dataclass
class SequenceParticipant:
    """Represents a participant in a sequence diagram."""

    id: str  # Identifier used in messages
    name: str  # Display name


@dataclass
class SequenceMessage:
    """Represents a message in a sequence diagram."""

    from_id: str
    to_id: str
    label: str
    message_type: MessageType = MessageType.SYNC
    line_number: Optional[int] = None


@dataclass
class DiagramNote:
    """Represents a note in a diagram."""

    text: str
    position: NotePosition
    attached_to: List[str] = field(default_factory=list)  # Participant IDs
    line_number: Optional[int] = None


SequenceEvent = Union[SequenceMessage, DiagramNote]


@dataclass
class SequenceDiagramDescription:
    """Complete description of a sequence diagram."""

    title: Optional[str] = None
    participants: List[SequenceParticipant] = field(default_factory=list)
    #: Messages and notes in source order
    events: List[SequenceEvent] = field(default_factory=list)

    @property
    def messages(self) -> List[SequenceMessage]:
        return [event for event in self.events if isinstance(event, SequenceMessage)]

    @property
    def notes(self) -> List[DiagramNote]:
        return [event for event in self.events if isinstance(event, DiagramNote)]


@dataclass(frozen=True)
class DiagramOutput:
    """Container for compiled diagram output."""

    output_type: OutputType
    content: str  # Either Mermaid text or SVG XML
    error: Optional[str] = None


class DiagramCompileError(Exception):
    """Raised when diagram compiler cannot produce output."""

    pass


class DiagramSyntaxError(DiagramCompileError):
    """Raised when source cannot be parsed. Message contains ``line N``."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"Parse error on line {line_number}: {message}"
        super().__init__(message)


class DiagramCompiler(Protocol):
    """Protocol for diagram compilers."""

    def compile(self, content: str, mode: RenderMode) -> Union[DiagramOutput, Awaitable[DiagramOutput]]:
        """
        Compile validated diagram source to drawable output.

        :param content: raw diagram source
        :param mode: drawing style
        :return: Diagram output (text or SVG), may be awaitable
        :raises DiagramCompileError: If source cannot be compiled
        """
        ...
