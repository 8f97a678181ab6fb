"""Tests for renderer.py - render steps, caching, cancellation and error classification."""

import asyncio
import pytest
from sqjs.cache import ContentCache
from sqjs.cancellation import RenderAbortedError, RenderCancellation
from sqjs.compilers import MermaidCompiler
from sqjs.diagram_model import DiagramCompileError, DiagramOutput, DiagramSyntaxError, OutputType, RenderMode
from sqjs.model import DiagramMetrics, DiagramSource, ErrorKind, RenderStatus
from sqjs.renderer import (
    SUGGESTION_ABORT,
    SUGGESTION_GENERIC,
    SUGGESTION_MESSAGE_FORMAT,
    SUGGESTION_SYNTAX,
    DiagramRenderer,
    cache_key,
    classify_failure,
    extract_line_number,
    get_suggestion,
)
from sqjs.validation import base as b


def render(renderer, content, theme="simple", token=None, position=0):
    return asyncio.run(renderer.render(DiagramSource.from_text(content, position), theme, token))


class TestRenderShortCircuits:
    """Empty and invalid sources never reach the compiler."""

    @pytest.mark.parametrize("content", ["", "   ", "\n \t\n"])
    def test_empty(self, renderer, compiler, content):
        result = render(renderer, content)
        assert result.status == RenderStatus.EMPTY
        assert result.metrics == DiagramMetrics.zero()
        assert result.artifact is None
        assert compiler.calls == []
        assert len(renderer.cache) == 0

    def test_invalid_source(self, renderer, compiler):
        result = render(renderer, "participant 1bad\n->Alice: Message")
        assert result.status == RenderStatus.ERROR
        assert result.error.message == b.PARTICIPANT_LEADING_DIGIT
        assert result.error.kind == ErrorKind.SYNTAX
        assert len(result.errors) == 2
        assert result.errors[0] is result.error
        assert compiler.calls == []

    def test_invalid_source_not_cached(self, renderer, compiler):
        render(renderer, "->Alice: Message")
        render(renderer, "->Alice: Message")
        assert len(renderer.cache) == 0

    def test_invalid_source_has_metrics(self, renderer):
        result = render(renderer, "A->B: ok\n->B: broken")
        assert result.metrics.message_count == 2


class TestRenderSuccess:
    """Compilation and render cache."""

    def test_success(self, renderer, compiler, simple_diagram):
        result = render(renderer, simple_diagram)
        assert result.status == RenderStatus.SUCCESS
        assert result.artifact.content == f"compiled:simple:{simple_diagram}"
        assert result.error is None
        assert result.metrics == DiagramMetrics(participant_count=2, message_count=2, exceeds_threshold=False)
        assert compiler.calls == [(simple_diagram, RenderMode.SIMPLE)]

    def test_hand_drawn_mode(self, renderer, compiler, simple_diagram):
        render(renderer, simple_diagram, theme="hand-drawn")
        assert compiler.calls[0][1] == RenderMode.HAND

    def test_async_compiler(self, async_compiler, validator, simple_diagram):
        renderer = DiagramRenderer(async_compiler, validator)
        result = render(renderer, simple_diagram)
        assert result.status == RenderStatus.SUCCESS
        assert len(async_compiler.calls) == 1

    def test_cache_hit(self, renderer, compiler, simple_diagram):
        first = render(renderer, simple_diagram)
        second = render(renderer, simple_diagram)
        assert second is first
        assert len(compiler.calls) == 1

    def test_cache_is_per_theme(self, renderer, compiler, simple_diagram):
        render(renderer, simple_diagram, theme="simple")
        render(renderer, simple_diagram, theme="hand-drawn")
        assert len(compiler.calls) == 2
        assert len(renderer.cache) == 2

    def test_cache_is_per_position(self, renderer, compiler, simple_diagram):
        render(renderer, simple_diagram, position=1)
        render(renderer, simple_diagram, position=20)
        assert len(compiler.calls) == 2

    def test_cache_key(self):
        source = DiagramSource.from_text("A->B: x", 3)
        assert cache_key(source, "simple") == f"{source.block_id}:simple"

    def test_lru_eviction(self, compiler, validator):
        renderer = DiagramRenderer(compiler, validator, cache_size=2)
        for content in ["A->B: 1", "A->B: 2", "A->B: 3"]:
            render(renderer, content)
        render(renderer, "A->B: 1")
        assert len(compiler.calls) == 4
        assert len(renderer.cache) == 2

    def test_injected_cache(self, compiler, validator, simple_diagram):
        cache = ContentCache(max_size=5)
        renderer = DiagramRenderer(compiler, validator, cache=cache)
        render(renderer, simple_diagram)
        assert len(cache) == 1

    def test_clear_cache(self, renderer, compiler, simple_diagram):
        render(renderer, simple_diagram)
        renderer.clear_cache()
        assert len(renderer.cache) == 0
        render(renderer, simple_diagram)
        assert len(compiler.calls) == 2

    def test_analyze_complexity(self, renderer, compiler, full_diagram):
        metrics = renderer.analyze_complexity(DiagramSource.from_text(full_diagram))
        assert metrics.participant_count == 3
        assert metrics.message_count == 4
        assert compiler.calls == []


class TestRenderCancellation:
    """Abort checkpoints."""

    def test_aborted_before_start(self, renderer, compiler, simple_diagram):
        registry = RenderCancellation()
        token = registry.start("block")
        registry.cancel("block")
        with pytest.raises(RenderAbortedError):
            render(renderer, simple_diagram, token=token)
        assert compiler.calls == []

    def test_aborted_before_start_even_when_empty(self, renderer):
        registry = RenderCancellation()
        token = registry.start("block")
        registry.cancel_all()
        with pytest.raises(RenderAbortedError):
            render(renderer, "", token=token)

    def test_aborted_during_compile(self, renderer, compiler, simple_diagram):
        registry = RenderCancellation()
        token = registry.start("block")
        compiler.during = lambda: registry.start("block")
        with pytest.raises(RenderAbortedError, match="superseded"):
            render(renderer, simple_diagram, token=token)
        assert len(compiler.calls) == 1
        assert len(renderer.cache) == 0

    def test_cached_result_served_to_fresh_token(self, renderer, compiler, simple_diagram):
        registry = RenderCancellation()
        render(renderer, simple_diagram, token=registry.start("block"))
        result = render(renderer, simple_diagram, token=registry.start("block"))
        assert result.status == RenderStatus.SUCCESS
        assert len(compiler.calls) == 1

    def test_compiler_raising_abort_propagates(self, renderer, compiler, simple_diagram):
        compiler.error = RenderAbortedError("cancelled")
        with pytest.raises(RenderAbortedError):
            render(renderer, simple_diagram)


class TestRenderFailures:
    """Compiler failures end up as classified errors."""

    def test_syntax_error(self, renderer, compiler, simple_diagram):
        compiler.error = DiagramSyntaxError("Unexpected 'x'", 2)
        result = render(renderer, simple_diagram)
        assert result.status == RenderStatus.ERROR
        assert result.error.kind == ErrorKind.SYNTAX
        assert result.error.line_number == 2
        assert result.error.suggestion == SUGGESTION_SYNTAX
        assert result.artifact is None
        assert len(renderer.cache) == 0

    def test_compile_error(self, renderer, compiler, simple_diagram):
        compiler.error = DiagramCompileError("server unreachable")
        result = render(renderer, simple_diagram)
        assert result.error.kind == ErrorKind.RENDER
        assert result.error.line_number is None
        assert result.error.suggestion == SUGGESTION_GENERIC

    def test_unexpected_error(self, renderer, compiler, simple_diagram):
        compiler.error = RuntimeError("Unexpected token on LINE 7")
        result = render(renderer, simple_diagram)
        assert result.status == RenderStatus.ERROR
        assert result.error.kind == ErrorKind.UNKNOWN
        assert result.error.line_number == 7
        assert result.error.suggestion == SUGGESTION_MESSAGE_FORMAT

    def test_empty_output(self, renderer, compiler, simple_diagram):
        compiler.output = DiagramOutput(output_type=OutputType.TEXT, content="")
        result = render(renderer, simple_diagram)
        assert result.status == RenderStatus.ERROR
        assert result.error.kind == ErrorKind.RENDER
        assert result.error.message == "Failed to generate diagram output"

    def test_output_with_error(self, renderer, compiler, simple_diagram):
        compiler.output = DiagramOutput(output_type=OutputType.TEXT, content="", error="Mermaid failed on line 3")
        result = render(renderer, simple_diagram)
        assert result.error.message == "Mermaid failed on line 3"
        assert result.error.line_number == 3

    def test_not_an_output(self, renderer, compiler, simple_diagram):
        compiler.output = "<svg/>"
        result = render(renderer, simple_diagram)
        assert result.status == RenderStatus.ERROR
        assert result.error.kind == ErrorKind.RENDER

    def test_unknown_theme_raises(self, renderer, compiler, simple_diagram):
        """Unsupported theme is a caller bug, not a diagram error."""
        with pytest.raises(ValueError, match="Invalid theme"):
            render(renderer, simple_diagram, theme="neon")
        assert compiler.calls == []
        assert len(renderer.cache) == 0

    def test_failures_not_cached(self, renderer, compiler, simple_diagram):
        compiler.error = DiagramCompileError("flaky")
        render(renderer, simple_diagram)
        compiler.error = None
        result = render(renderer, simple_diagram)
        assert result.status == RenderStatus.SUCCESS
        assert len(compiler.calls) == 2

    def test_mermaid_parse_error_has_line(self, validator):
        # Validator accepts message without colon, parser does not
        renderer = DiagramRenderer(MermaidCompiler(), validator)
        result = render(renderer, "Alice->Bob: Hi\nAlice->Bob")
        assert result.status == RenderStatus.ERROR
        assert result.error.kind == ErrorKind.SYNTAX
        assert result.error.line_number == 2
        assert result.error.suggestion == SUGGESTION_SYNTAX


class TestClassification:
    """Helpers used for error classification."""

    @pytest.mark.parametrize(
        "message,expected",
        [("Parse error on line 3", 3), ("error at LINE 12: x", 12), ("line3", None), ("no location", None)],
    )
    def test_extract_line_number(self, message, expected):
        assert extract_line_number(message) == expected

    @pytest.mark.parametrize(
        "message,expected",
        [
            ("Parse error", SUGGESTION_SYNTAX),
            ("Bad SYNTAX", SUGGESTION_SYNTAX),
            ("Unexpected token", SUGGESTION_MESSAGE_FORMAT),
            ("operation aborted", SUGGESTION_ABORT),
            ("something else", SUGGESTION_GENERIC),
        ],
    )
    def test_get_suggestion(self, message, expected):
        assert get_suggestion(message) == expected

    def test_empty_message(self):
        error = classify_failure(RuntimeError())
        assert error.message == "Unknown error"
        assert error.kind == ErrorKind.UNKNOWN


class TestRenderMode:
    @pytest.mark.parametrize("theme,mode", [("simple", RenderMode.SIMPLE), ("hand-drawn", RenderMode.HAND)])
    def test_for_theme(self, theme, mode):
        assert RenderMode.for_theme(theme) == mode

    @pytest.mark.parametrize("theme", ["neon", "", "Hand-Drawn"])
    def test_unknown_theme(self, theme):
        with pytest.raises(ValueError, match="Invalid theme"):
            RenderMode.for_theme(theme)
