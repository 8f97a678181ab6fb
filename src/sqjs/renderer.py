"""
Diagram renderer - the single entry point turning source into a render result.

Render steps, in order:

1. aborted token fails right away
2. blank source short-circuits to ``empty``
3. invalid source short-circuits to ``error`` with validator errors
4. render cache hit returns cached result
5. complexity analysis
6. cancellation checkpoint
7. diagram compiler (the only step that may suspend)
8. cancellation checkpoint
9. successful result goes to render cache

Abort is the only condition raised to the caller, as :class:`RenderAbortedError`.
Everything else ends up in :class:`RenderResult`.
"""

import inspect
import logging
import re
from typing import Optional

from sqjs.cache import ContentCache
from sqjs.cancellation import CancellationToken, RenderAbortedError
from sqjs.complexity import ComplexityAnalyzer
from sqjs.config import Theme
from sqjs.diagram_model import DiagramCompileError, DiagramCompiler, DiagramOutput, DiagramSyntaxError, RenderMode
from sqjs.model import (
    DiagramMetrics,
    DiagramSource,
    ErrorKind,
    RenderError,
    RenderResult,
    RenderStatus,
)
from sqjs.validation import SyntaxValidator

log = logging.getLogger(__name__)

#: Default size of render result cache
CACHE_SIZE = 50

LINE_NUMBER_RE = re.compile(r"line\s+(\d+)", re.IGNORECASE)

SUGGESTION_SYNTAX = "Check for missing arrows (->) or colons (:)"
SUGGESTION_MESSAGE_FORMAT = "Verify all messages follow the format: Participant->Other: Message"
SUGGESTION_ABORT = "Render was cancelled"
SUGGESTION_GENERIC = "Check your sequence diagram syntax"


def extract_line_number(message: str) -> Optional[int]:
    match = LINE_NUMBER_RE.search(message)
    return int(match.group(1)) if match else None


def get_suggestion(message: str) -> str:
    lowered = message.lower()
    if "parse" in lowered or "syntax" in lowered:
        return SUGGESTION_SYNTAX
    if "unexpected" in lowered:
        return SUGGESTION_MESSAGE_FORMAT
    if "abort" in lowered:
        return SUGGESTION_ABORT
    return SUGGESTION_GENERIC


def classify_failure(error: BaseException) -> RenderError:
    """
    Turn compiler failure into a reportable error.

    :param error: exception raised by compiler
    :return: RenderError with line number and suggestion when they can be found
    """
    if isinstance(error, DiagramSyntaxError):
        kind = ErrorKind.SYNTAX
    elif isinstance(error, DiagramCompileError):
        kind = ErrorKind.RENDER
    else:
        kind = ErrorKind.UNKNOWN
    message = str(error) or "Unknown error"
    line_number = getattr(error, "line_number", None) or extract_line_number(message)
    return RenderError(kind=kind, message=message, line_number=line_number, suggestion=get_suggestion(message))


def cache_key(source: DiagramSource, theme: str) -> str:
    # block_id already combines content hash and position
    return f"{source.block_id}:{theme}"


class DiagramRenderer:
    """Orchestrates validation, caching, analysis and compilation of diagrams."""

    def __init__(
        self,
        compiler: DiagramCompiler,
        validator: Optional[SyntaxValidator] = None,
        cache: Optional[ContentCache[RenderResult]] = None,
        cache_size: int = CACHE_SIZE,
    ):
        """
        :param compiler: external diagram compiler
        :param validator: syntax validator, owns validation cache
        :param cache: render result cache, created with ``cache_size`` when not given
        :param cache_size: maximum amount of cached render results
        """
        self.compiler = compiler
        self.validator = validator if validator is not None else SyntaxValidator()
        self.cache = cache if cache is not None else ContentCache(max_size=cache_size)
        self.analyzer = ComplexityAnalyzer()

    async def render(
        self,
        source: DiagramSource,
        theme: Theme,
        token: Optional[CancellationToken] = None,
    ) -> RenderResult:
        """
        Render a sequence diagram.

        :param source: diagram source and block identity
        :param theme: ``simple`` or ``hand-drawn``
        :param token: cancellation token from :class:`RenderCancellation`
        :return: RenderResult
        :raises RenderAbortedError: If token was aborted before a checkpoint
        :raises ValueError: If theme is not supported
        """
        mode = RenderMode.for_theme(theme)
        if token is not None:
            token.raise_if_aborted()

        if not source.content.strip():
            return RenderResult(status=RenderStatus.EMPTY, metrics=DiagramMetrics.zero())

        validation = self.validator.validate(source.content)
        if not validation.is_valid:
            log.debug(f"Block {source.block_id} failed validation with {len(validation.errors)} error(s)")
            return RenderResult(
                status=RenderStatus.ERROR,
                metrics=self.analyzer.analyze(source),
                error=validation.errors[0] if validation.errors else None,
                errors=validation.errors,
            )

        key = cache_key(source, theme)
        cached = self.cache.get(key)
        if cached is not None:
            log.debug(f"Render cache hit for {key}")
            return cached

        metrics = self.analyzer.analyze(source)

        if token is not None:
            token.raise_if_aborted()

        try:
            output = self.compiler.compile(source.content, mode)
            if inspect.isawaitable(output):
                output = await output
        except RenderAbortedError:
            raise
        except DiagramCompileError as err:
            log.debug(f"Compiler rejected block {source.block_id}: {err}")
            return RenderResult(status=RenderStatus.ERROR, metrics=metrics, error=classify_failure(err))
        except Exception as err:
            log.exception(f"Unexpected compiler failure for block {source.block_id}")
            return RenderResult(status=RenderStatus.ERROR, metrics=metrics, error=classify_failure(err))

        # Compiler is not interrupted, drop its output if we were cancelled meanwhile
        if token is not None:
            token.raise_if_aborted()

        if not isinstance(output, DiagramOutput) or not output.content or output.error:
            message = getattr(output, "error", None) or "Failed to generate diagram output"
            return RenderResult(
                status=RenderStatus.ERROR,
                metrics=metrics,
                error=RenderError(
                    kind=ErrorKind.RENDER,
                    message=message,
                    line_number=extract_line_number(message),
                    suggestion=get_suggestion(message),
                ),
            )

        result = RenderResult(status=RenderStatus.SUCCESS, metrics=metrics, artifact=output)
        self.cache.set(key, result)
        return result

    def analyze_complexity(self, source: DiagramSource) -> DiagramMetrics:
        """Complexity metrics without rendering."""
        return self.analyzer.analyze(source)

    def clear_cache(self) -> None:
        """Drop all cached render results, called when theme changes."""
        log.debug(f"Clearing {len(self.cache)} cached render result(s)")
        self.cache.clear()
