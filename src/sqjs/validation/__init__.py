"""Syntax validation of diagram source."""

from sqjs.validation.syntax import SyntaxValidator

__all__ = ["SyntaxValidator"]
