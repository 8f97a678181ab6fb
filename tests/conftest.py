"""Shared pytest fixtures for sqjs tests."""

import pytest
from pathlib import Path
from typing import Callable, List, Optional, Tuple
from sqjs.cache import ValidationCache
from sqjs.config import Configuration
from sqjs.diagram_model import DiagramOutput, OutputType, RenderMode
from sqjs.renderer import DiagramRenderer
from sqjs.validation import SyntaxValidator


SIMPLE_DIAGRAM = "Alice->Bob: Hello\nBob->Alice: Hi"

FULL_DIAGRAM = """Title: Checkout
participant Customer
participant Shop
participant Payment Gateway as PG
Customer->Shop: Place order
Shop->>PG: Charge card
Note right of PG: Async call
PG-->>Shop: Charged
Shop-->Customer: Confirmation"""


class FakeClock:
    """Manually advanced time source for TTL tests."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCompiler:
    """Synchronous compiler recording every call."""

    def __init__(self, error: Optional[BaseException] = None, output: Optional[DiagramOutput] = None):
        self.error = error
        self.output = output
        self.calls: List[Tuple[str, RenderMode]] = []
        #: Called during compile, lets tests cancel while compiler "runs"
        self.during: Optional[Callable[[], None]] = None

    def compile(self, content: str, mode: RenderMode) -> DiagramOutput:
        self.calls.append((content, mode))
        if self.during is not None:
            self.during()
        if self.error is not None:
            raise self.error
        if self.output is not None:
            return self.output
        return DiagramOutput(output_type=OutputType.TEXT, content=f"compiled:{mode.value}:{content}")


class AsyncFakeCompiler(FakeCompiler):
    """Coroutine based compiler, same behaviour as :class:`FakeCompiler`."""

    async def compile(self, content: str, mode: RenderMode) -> DiagramOutput:
        return FakeCompiler.compile(self, content, mode)


@pytest.fixture
def data_path() -> Path:
    return Path(__file__).parent / "data"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def compiler() -> FakeCompiler:
    return FakeCompiler()


@pytest.fixture
def async_compiler() -> AsyncFakeCompiler:
    return AsyncFakeCompiler()


@pytest.fixture
def validator(clock) -> SyntaxValidator:
    return SyntaxValidator(ValidationCache(max_size=100, ttl=300.0, clock=clock))


@pytest.fixture
def renderer(compiler, validator) -> DiagramRenderer:
    return DiagramRenderer(compiler, validator)


@pytest.fixture
def config() -> Configuration:
    return Configuration()


@pytest.fixture
def simple_diagram() -> str:
    return SIMPLE_DIAGRAM


@pytest.fixture
def full_diagram() -> str:
    return FULL_DIAGRAM
