"""
Mermaid utilities for safe name handling.

Participant names in source may contain spaces or punctuation, Mermaid ids
may not. These helpers produce safe ids and escaped labels.
"""

import html
import re


def sanitize_id(name: str, for_plantuml: bool = False) -> str:
    """
    Generate a safe diagram identifier from a name.

    Examples:
        "User Interface" -> "User_Interface"
        "my-service" -> "my_service"
        "Class::Name" -> "Class_Name"
        "1st" -> "_1st"

    :param name: Original name
    :param for_plantuml: PlantUML also accepts dots in identifiers
    :return: Safe identifier
    """
    safe = name.replace("::", "_")
    safe = safe.replace("-", "_")
    safe = safe.replace(" ", "_")

    allowed = r"[^a-zA-Z0-9_.]" if for_plantuml else r"[^a-zA-Z0-9_]"
    safe = re.sub(allowed, "", safe)

    # Ids can't start with a number
    if safe and safe[0].isdigit():
        safe = "_" + safe

    if not safe:
        safe = "Participant"

    return safe


def escape_label(text: str) -> str:
    """
    Escape text for use in Mermaid labels and notes.

    Handles:
    - Literal ``\\n`` (js-sequence-diagrams line break) converted to ``<br/>``
    - HTML entities (decoded)
    - Semicolons and hashes, which Mermaid treats as statement separator and entity marker

    :param text: Original text
    :return: Escaped text safe for Mermaid labels
    """
    if not text:
        return ""

    text = html.unescape(text)
    text = text.replace("\r", " ").replace("\n", " ")
    text = text.replace("\\n", "<br/>")
    text = re.sub(r"[#;]", lambda m: f"#{ord(m.group())};", text)
    text = re.sub(r"[ \t]+", " ", text)
    return text.strip()


def escape_plantuml(text: str) -> str:
    """Escape text for PlantUML labels, ``\\n`` stays as PlantUML line break."""
    return text.replace('"', '\\"').replace("\r", " ").replace("\n", " ").strip()
