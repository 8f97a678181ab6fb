"""
Syntax validator for sequence diagram source.

Validation is line oriented pattern matching. Each non blank line is one of:

* title line (``Title: text``), only first one is used
* participant declaration (``participant Name`` or ``participant Long Name as Alias``)
* note (``Note left of A: text``)
* message (``Sender->Receiver: text``)

Problems never raise, they are collected as :class:`RenderError` values with
line numbers and suggestions.
"""

import logging
from types import MappingProxyType
from typing import Dict, List, Optional

from sqjs.cache import ValidationCache
from sqjs.model import (
    ParticipantValidation,
    RenderError,
    TitleValidation,
    ValidationResult,
    ValidationWarning,
)
from sqjs.validation import base as b

log = logging.getLogger(__name__)


class SyntaxValidator:
    """Validates diagram source, caching results by content hash."""

    def __init__(self, cache: Optional[ValidationCache] = None):
        self.cache = cache if cache is not None else ValidationCache()

    def validate_title(self, line: str, line_number: Optional[int] = None) -> TitleValidation:
        """
        Validate Title declaration.

        Empty title text is not an error, it is treated as no title.

        :param line: trimmed source line
        :param line_number: 1-based line number for error reporting
        :return: TitleValidation
        """
        match = b.TITLE_RE.match(line)
        if match is None:
            return TitleValidation(
                is_valid=False,
                error=b.syntax_error(b.TITLE_MISSING_COLON, b.TITLE_MISSING_COLON_HINT, line_number),
            )
        title = match.group(1).strip()
        if not title:
            return TitleValidation(is_valid=False)
        return TitleValidation(is_valid=True, title=title)

    def validate_participant(
        self, line: str, declaration_order: int, line_number: Optional[int] = None
    ) -> ParticipantValidation:
        """
        Validate participant declaration.

        Accepted shapes are ``participant Name`` and ``participant Display Name as Alias``.
        Display name may contain spaces and any characters, names and aliases are
        letters, digits and underscore, not starting with a digit.

        :param line: trimmed source line
        :param declaration_order: 0-based index of this declaration
        :param line_number: 1-based line number for error reporting
        :return: ParticipantValidation
        """

        def invalid(message: str, suggestion: str) -> ParticipantValidation:
            return ParticipantValidation(
                is_valid=False,
                declaration_order=declaration_order,
                error=b.syntax_error(message, suggestion, line_number),
                line_number=line_number,
            )

        alias_match = b.match_participant_alias(line)
        if alias_match:
            display_name, short_name = alias_match
            if not display_name:
                return invalid(b.PARTICIPANT_EMPTY_ALIAS, b.PARTICIPANT_EMPTY_ALIAS_HINT)
            if b.starts_with_digit(short_name):
                return invalid(b.PARTICIPANT_LEADING_DIGIT, b.PARTICIPANT_LEADING_DIGIT_HINT)
            return ParticipantValidation(
                is_valid=True,
                declaration_order=declaration_order,
                short_name=short_name,
                display_name=display_name,
                has_alias=True,
                line_number=line_number,
            )

        simple_match = b.PARTICIPANT_SIMPLE_RE.match(line)
        if simple_match:
            short_name = simple_match.group(1)
            if b.starts_with_digit(short_name):
                return invalid(b.PARTICIPANT_LEADING_DIGIT, b.PARTICIPANT_LEADING_DIGIT_HINT)
            return ParticipantValidation(
                is_valid=True,
                declaration_order=declaration_order,
                short_name=short_name,
                display_name=short_name,
                line_number=line_number,
            )

        if " as " in line:
            return invalid(b.PARTICIPANT_BAD_ALIAS, b.PARTICIPANT_BAD_ALIAS_HINT)

        identifier_match = b.PARTICIPANT_IDENTIFIER_RE.match(line)
        if identifier_match:
            identifier = identifier_match.group(1)
            if b.starts_with_digit(identifier):
                return invalid(b.PARTICIPANT_LEADING_DIGIT, b.PARTICIPANT_LEADING_DIGIT_HINT)
            if not b.IDENTIFIER_RE.match(identifier):
                return invalid(b.PARTICIPANT_BAD_CHARS, b.PARTICIPANT_BAD_CHARS_HINT)

        return invalid(b.PARTICIPANT_GENERIC, b.PARTICIPANT_GENERIC_HINT)

    def validate_message(self, line: str, line_number: Optional[int] = None) -> Optional[RenderError]:
        """
        Validate message line (``Sender->Receiver: Message``).

        :param line: trimmed source line
        :param line_number: 1-based line number for error reporting
        :return: error or None if line is fine
        """
        match = b.ARROW_RE.match(line)
        if match is None:
            if "->" not in line:
                return b.syntax_error(b.MESSAGE_MISSING_ARROW, b.MESSAGE_MISSING_ARROW_HINT, line_number)
            if line.endswith("->"):
                return b.syntax_error(b.MESSAGE_INCOMPLETE_ARROW, b.MESSAGE_INCOMPLETE_ARROW_HINT, line_number)
            if line.startswith("->") or line.startswith("-->"):
                return b.syntax_error(b.MESSAGE_MISSING_SENDER, b.MESSAGE_MISSING_SENDER_HINT, line_number)
            return b.syntax_error(b.MESSAGE_GENERIC, b.MESSAGE_GENERIC_HINT, line_number)

        sender, _arrow, receiver, _text = match.groups()
        if not sender.strip():
            return b.syntax_error(b.MESSAGE_MISSING_SENDER, b.MESSAGE_FORMAT_HINT, line_number)
        if not receiver.strip():
            return b.syntax_error(b.MESSAGE_MISSING_RECEIVER, b.MESSAGE_FORMAT_HINT, line_number)
        return None

    def validate(self, source: str) -> ValidationResult:
        """
        Validate complete diagram source.

        :param source: diagram source
        :return: ValidationResult, cached by content hash
        """
        cached = self.cache.get(source)
        if cached is not None:
            log.debug("Validation cache hit")
            return cached

        try:
            result = self._validate(source)
        except Exception as err:
            log.exception(f"Unexpected error during validation: {err}")
            result = ValidationResult(
                is_valid=False,
                errors=(b.syntax_error("Unexpected error during validation", "Please check your diagram syntax"),),
            )

        self.cache.set(source, result)
        return result

    def _validate(self, source: str) -> ValidationResult:
        if not source.strip():
            return ValidationResult(is_valid=True, is_empty=True)

        errors: List[RenderError] = []
        warnings: List[ValidationWarning] = []
        participants: List[ParticipantValidation] = []
        title: Optional[TitleValidation] = None

        for index, line in enumerate(source.split("\n")):
            line_number = index + 1
            trimmed = line.strip()
            if not trimmed:
                continue

            if b.TITLE_RE.match(trimmed):
                # Only first title counts, others are ignored
                if title is None:
                    title = self.validate_title(trimmed, line_number)
                    if not title.is_valid and title.error is None:
                        warnings.append(ValidationWarning(b.TITLE_EMPTY_WARNING, line_number))
                continue

            if "->" not in trimmed and b.TITLE_NO_COLON_RE.match(trimmed):
                bad_title = self.validate_title(trimmed, line_number)
                errors.append(bad_title.error)
                if title is None:
                    title = bad_title
                continue

            if b.PARTICIPANT_KEYWORD_RE.match(trimmed):
                participant = self.validate_participant(trimmed, len(participants), line_number)
                participants.append(participant)
                if participant.error is not None:
                    errors.append(participant.error)
                continue

            if b.NOTE_RE.match(trimmed):
                if ":" not in trimmed:
                    warnings.append(ValidationWarning(b.NOTE_INCOMPLETE_WARNING, line_number))
                continue

            error = self.validate_message(trimmed, line_number)
            if error is not None:
                errors.append(error)

        participant_map: Dict[str, str] = {}
        for participant in participants:
            if participant.is_valid and participant.short_name and participant.display_name:
                participant_map[participant.short_name] = participant.display_name

        is_valid = all(p.is_valid for p in participants) and not errors
        if errors:
            log.debug(f"Validation found {len(errors)} error(s)")

        return ValidationResult(
            is_valid=is_valid,
            title=title,
            participants=tuple(participants),
            participant_map=MappingProxyType(participant_map),
            errors=tuple(errors),
            warnings=tuple(warnings),
        )
