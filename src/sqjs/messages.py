"""User facing texts for render outcomes."""

from typing import List

from sqjs.complexity import MESSAGE_THRESHOLD, PARTICIPANT_THRESHOLD
from sqjs.model import DiagramMetrics, RenderError, ValidationWarning

EMPTY_BLOCK_NOTICE = "Empty sequence diagram block. Add diagram content to render."


def format_error(error: RenderError) -> str:
    """
    Format error as text block.

    Example::

        Syntax Error (Line 3): Missing sender participant
          Suggestion: Add a participant before the arrow: Sender->Receiver
    """
    header = "Syntax Error"
    if error.line_number:
        header = f"{header} (Line {error.line_number})"
    lines = [f"{header}: {error.message}"]
    if error.suggestion:
        lines.append(f"  Suggestion: {error.suggestion}")
    return "\n".join(lines)


def format_warning(warning: ValidationWarning) -> str:
    if warning.line_number:
        return f"Warning (Line {warning.line_number}): {warning.message}"
    return f"Warning: {warning.message}"


def format_performance_warning(metrics: DiagramMetrics) -> str:
    """Warning shown next to successfully rendered large diagram."""
    reasons: List[str] = []
    if metrics.participant_count > PARTICIPANT_THRESHOLD:
        reasons.append(f"{metrics.participant_count} participants")
    if metrics.message_count > MESSAGE_THRESHOLD:
        reasons.append(f"{metrics.message_count} messages")
    return (
        f"Large Diagram Warning: This diagram is complex: {', '.join(reasons)}. "
        "Rendering may take longer than usual."
    )
