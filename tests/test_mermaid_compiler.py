"""Tests for mermaid_compiler.py and mermaid_utils.py - Mermaid sequence diagram output."""

import pytest
from sqjs.compilers.mermaid_compiler import HAND_DRAWN_INIT, MermaidCompiler
from sqjs.diagram_model import (
    DiagramSyntaxError,
    OutputType,
    RenderMode,
    SequenceDiagramDescription,
    SequenceMessage,
    SequenceParticipant,
)
from sqjs.mermaid_utils import escape_label, escape_plantuml, sanitize_id


class TestMermaidCompiler:
    """Mermaid text generation."""

    def test_full_diagram(self, full_diagram):
        output = MermaidCompiler().compile(full_diagram, RenderMode.SIMPLE)
        assert output.output_type == OutputType.TEXT
        assert output.error is None
        assert output.content == "\n".join(
            [
                "sequenceDiagram",
                "    title Checkout",
                "    participant Customer",
                "    participant Shop",
                "    participant PG as Payment Gateway",
                "    Customer->>Shop: Place order",
                "    Shop-)PG: Charge card",
                "    Note right of PG: Async call",
                "    PG--)Shop: Charged",
                "    Shop-->>Customer: Confirmation",
            ]
        )

    def test_hand_drawn(self, simple_diagram):
        output = MermaidCompiler().compile(simple_diagram, RenderMode.HAND)
        lines = output.content.split("\n")
        assert lines[0] == HAND_DRAWN_INIT
        assert lines[1] == "sequenceDiagram"

    def test_simple_mode_has_no_init(self, simple_diagram):
        output = MermaidCompiler().compile(simple_diagram, RenderMode.SIMPLE)
        assert "%%{init" not in output.content

    def test_note_over_multiple(self):
        output = MermaidCompiler().compile("Note over A,B: both", RenderMode.SIMPLE)
        assert "    Note over A,B: both" in output.content

    def test_parse_error_raises(self):
        with pytest.raises(DiagramSyntaxError):
            MermaidCompiler().compile("A->B", RenderMode.SIMPLE)

    def test_render_failure_returns_error_output(self):
        # Message refers to participant that is not in the description
        desc = SequenceDiagramDescription(
            participants=[SequenceParticipant(id="A", name="A")],
            events=[SequenceMessage(from_id="A", to_id="Ghost", label="boo")],
        )
        output = MermaidCompiler().render_sequence_diagram(desc, RenderMode.SIMPLE)
        assert output.content == ""
        assert "Mermaid sequence rendering failed" in output.error


class TestMermaidUtils:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("User Interface", "User_Interface"),
            ("my-service", "my_service"),
            ("Class::Name", "Class_Name"),
            ("1st", "_1st"),
            ("!!!", "Participant"),
        ],
    )
    def test_sanitize_id(self, name, expected):
        assert sanitize_id(name) == expected

    def test_sanitize_id_plantuml_keeps_dots(self):
        assert sanitize_id("api.v2", for_plantuml=True) == "api.v2"
        assert sanitize_id("api.v2") == "apiv2"

    def test_escape_label_line_break(self):
        assert escape_label("first\\nsecond") == "first<br/>second"

    def test_escape_label_special_characters(self):
        assert escape_label("a;b#c") == "a#59;b#35;c"

    def test_escape_label_entities_and_whitespace(self):
        assert escape_label("  fish &amp; chips \n now ") == "fish & chips now"

    def test_escape_label_empty(self):
        assert escape_label("") == ""

    def test_escape_plantuml(self):
        assert escape_plantuml('say "hi"\n') == 'say \\"hi\\"'
