"""
Core data model - sources, validation results, metrics and render results.

Everything here is immutable once created. Results are shared between caches
and callers, so nobody is allowed to change them in place.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from sqjs.diagram_model import DiagramOutput


class ErrorKind(str, Enum):
    """Category of reportable failure."""

    SYNTAX = "syntax"  # Validator or compiler detected bad source
    RENDER = "render"  # Compiler failed to produce output
    UNKNOWN = "unknown"  # Anything unexpected


class RenderStatus(str, Enum):
    """Outcome of a render attempt."""

    SUCCESS = "success"
    ERROR = "error"
    EMPTY = "empty"


def simple_hash(text: str) -> int:
    """Java style string hash, used only for building block identifiers.

    :param text: text to hash
    :return: non negative 32-bit hash
    """
    value = 0
    for char in text:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    if value & 0x80000000:
        value -= 0x100000000
    return abs(value)


def make_block_id(content: str, position: int = 0) -> str:
    """Build a stable block identity from content hash and position in document.

    :param content: diagram source
    :param position: first line of the block in its document
    :return: block identifier
    """
    return f"sqjs-{simple_hash(content)}-{position}"


@dataclass(frozen=True)
class DiagramSource:
    """One block of diagram source, as handed over by the caller."""

    content: str
    block_id: str
    line_count: int

    @classmethod
    def from_text(cls, content: str, position: int = 0) -> "DiagramSource":
        return cls(content=content, block_id=make_block_id(content, position), line_count=len(content.split("\n")))


@dataclass(frozen=True)
class RenderError:
    """Reportable failure with optional location and hint."""

    kind: ErrorKind
    message: str
    line_number: Optional[int] = None
    suggestion: Optional[str] = None


@dataclass(frozen=True)
class ValidationWarning:
    """Non fatal notice found during validation."""

    message: str
    line_number: Optional[int] = None


@dataclass(frozen=True)
class TitleValidation:
    """Result of validating a single Title line."""

    is_valid: bool
    title: Optional[str] = None
    error: Optional[RenderError] = None


@dataclass(frozen=True)
class ParticipantValidation:
    """Result of validating a single participant declaration."""

    is_valid: bool
    declaration_order: int
    short_name: Optional[str] = None
    display_name: Optional[str] = None
    has_alias: bool = False
    error: Optional[RenderError] = None
    line_number: Optional[int] = None


@dataclass(frozen=True)
class ValidationResult:
    """Consolidated result of validating whole diagram source."""

    is_valid: bool
    is_empty: bool = False
    title: Optional[TitleValidation] = None
    participants: Tuple[ParticipantValidation, ...] = ()
    #: short name -> display name, valid participants only (read only view)
    participant_map: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    errors: Tuple[RenderError, ...] = ()
    warnings: Tuple[ValidationWarning, ...] = ()


@dataclass(frozen=True)
class DiagramMetrics:
    """Complexity snapshot of a diagram."""

    participant_count: int
    message_count: int
    exceeds_threshold: bool

    @classmethod
    def zero(cls) -> "DiagramMetrics":
        return cls(participant_count=0, message_count=0, exceeds_threshold=False)


@dataclass(frozen=True)
class RenderResult:
    """Outcome of a full render attempt."""

    status: RenderStatus
    metrics: DiagramMetrics
    artifact: Optional["DiagramOutput"] = None
    error: Optional[RenderError] = None
    #: All validation errors, when render stopped on invalid source
    errors: Tuple[RenderError, ...] = ()
