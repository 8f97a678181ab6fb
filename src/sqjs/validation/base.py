"""
Line patterns and error texts used by the syntax validator.

Texts are part of the user facing contract: editors and tests match on them,
so change them only together with the tests.
"""

import re
from typing import Optional, Tuple

from sqjs.model import ErrorKind, RenderError

# ============================================================================
# Line patterns
# ============================================================================

#: Title line with colon, text after colon is captured.
TITLE_RE = re.compile(r"^title\s*:(.*)$", re.IGNORECASE | re.DOTALL)
#: Title keyword used without colon.
TITLE_NO_COLON_RE = re.compile(r"^title(\s+|$)", re.IGNORECASE)
#: Any line starting with participant keyword.
PARTICIPANT_KEYWORD_RE = re.compile(r"^participant(\s|$)", re.IGNORECASE)
#: Trailing `` as <Alias>``, only tried where a whitespace run starts.
ALIAS_TAIL_RE = re.compile(r"(?<!\s)(\s+)as\s+([A-Za-z0-9_]+)\s*$", re.IGNORECASE)
#: participant <Name>
PARTICIPANT_SIMPLE_RE = re.compile(r"^participant\s+([A-Za-z0-9_]+)\s*$", re.IGNORECASE)
#: First token after participant keyword.
PARTICIPANT_IDENTIFIER_RE = re.compile(r"^participant\s+(\S+)", re.IGNORECASE)
IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9_]+$")
NOTE_RE = re.compile(r"^Note (left of|right of|over)")
#: Sender, arrow, receiver, message
ARROW_RE = re.compile(r"^([^-]+)(-{1,2}>+)([^:]*):?\s*(.*)$", re.DOTALL)

# ============================================================================
# Messages and suggestions
# ============================================================================

TITLE_MISSING_COLON = 'Invalid Title syntax. Missing colon after "Title" keyword'
TITLE_MISSING_COLON_HINT = 'Ensure line starts with "Title:" (case-insensitive) followed by a colon and title text'
TITLE_EMPTY_WARNING = "Title has no text"

PARTICIPANT_EMPTY_ALIAS = "empty participant alias not allowed"
PARTICIPANT_EMPTY_ALIAS_HINT = "Provide a non-empty display name or remove the alias declaration"
PARTICIPANT_LEADING_DIGIT = "Invalid participant identifier. Cannot start with a number"
PARTICIPANT_LEADING_DIGIT_HINT = "Participant names must start with a letter or underscore"
PARTICIPANT_BAD_CHARS = "Invalid participant identifier. Must be alphanumeric or underscore only"
PARTICIPANT_BAD_CHARS_HINT = "Use only letters, numbers, and underscores in participant names"
PARTICIPANT_BAD_ALIAS = "Invalid participant alias syntax"
PARTICIPANT_BAD_ALIAS_HINT = "Use format: participant [Display Name] as [Alias]  (no quotes needed)"
PARTICIPANT_GENERIC = "Invalid participant syntax. Expected: participant [Name] or participant [Display Name] as [Alias]"
PARTICIPANT_GENERIC_HINT = "Check participant declaration format (no quotes needed)"

NOTE_INCOMPLETE_WARNING = 'Note syntax incomplete - should be "Note [position]: text"'

MESSAGE_MISSING_ARROW = "Invalid syntax - missing arrow"
MESSAGE_MISSING_ARROW_HINT = "Check for missing arrows (->) or colons (:)"
MESSAGE_INCOMPLETE_ARROW = "Incomplete arrow - missing receiver"
MESSAGE_INCOMPLETE_ARROW_HINT = "Add a participant after the arrow: Participant->Other"
MESSAGE_MISSING_SENDER = "Missing sender participant"
MESSAGE_MISSING_SENDER_HINT = "Add a participant before the arrow: Sender->Receiver"
MESSAGE_MISSING_RECEIVER = "Missing receiver participant after arrow"
MESSAGE_FORMAT_HINT = "Format should be: Participant->Other: Message"
MESSAGE_GENERIC = "Invalid syntax"
MESSAGE_GENERIC_HINT = "Verify all messages follow the format: Participant->Other: Message"


def syntax_error(message: str, suggestion: str, line_number: Optional[int] = None) -> RenderError:
    return RenderError(kind=ErrorKind.SYNTAX, message=message, line_number=line_number, suggestion=suggestion)


def starts_with_digit(identifier: str) -> bool:
    return bool(identifier) and identifier[0].isdigit()


def match_participant_alias(line: str) -> Optional[Tuple[str, str]]:
    """
    Split ``participant <Display Name> as <Alias>`` into display name and alias.

    Accepts the same lines as ``^participant\\s+(.+?)\\s+as\\s+(\\w+)\\s*$`` would,
    but every whitespace run is scanned once, so long runs of blanks stay linear.

    :param line: trimmed source line
    :return: stripped display name (may be empty) and alias, or None
    """
    if not PARTICIPANT_KEYWORD_RE.match(line):
        return None
    rest = line[len("participant") :]
    tail = ALIAS_TAIL_RE.search(rest)
    if tail is None:
        return None
    head = rest[: tail.start()]
    # Blank display name still needs separator, one character and separator
    if not head and len(tail.group(1)) < 3:
        return None
    return head.strip(), tail.group(2)
