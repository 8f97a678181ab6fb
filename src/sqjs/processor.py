"""
Block processor - caller side of the render contract.

Finds ``sqjs`` fenced blocks in Markdown, gives every block its own
cancellation token, renders it and turns the result into an outcome with
user facing messages. Cancelled renders produce no messages at all.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from sqjs.cancellation import RenderAbortedError, RenderCancellation
from sqjs.config import THEMES, Theme
from sqjs.diagram_model import DiagramOutput
from sqjs.messages import EMPTY_BLOCK_NOTICE, format_error, format_performance_warning
from sqjs.model import DiagramSource, RenderResult, RenderStatus
from sqjs.renderer import DiagramRenderer
from sqjs.theme import ThemeManager

log = logging.getLogger(__name__)

FENCE_OPEN_RE = re.compile(r"^(`{3,}|~{3,})\s*sqjs\s*$")


class OutcomeKind(str, Enum):
    DIAGRAM = "diagram"
    ERROR = "error"
    EMPTY = "empty"
    CANCELLED = "cancelled"


@dataclass
class BlockOutcome:
    """What a caller shows for one block."""

    block_id: str
    kind: OutcomeKind
    artifact: Optional[DiagramOutput] = None
    messages: List[str] = field(default_factory=list)
    result: Optional[RenderResult] = None


def extract_blocks(markdown: str) -> List[Tuple[str, int]]:
    """
    Find fenced ``sqjs`` blocks.

    :param markdown: document text
    :return: list of (block content, 0-based line of opening fence)
    """
    blocks: List[Tuple[str, int]] = []
    lines = markdown.split("\n")
    index = 0
    while index < len(lines):
        match = FENCE_OPEN_RE.match(lines[index].strip())
        if match is None:
            index += 1
            continue
        fence = match.group(1)
        start = index
        body: List[str] = []
        index += 1
        while index < len(lines) and not lines[index].strip().startswith(fence):
            body.append(lines[index])
            index += 1
        # Unclosed fence runs to end of document, like Markdown renderers do
        blocks.append(("\n".join(body), start))
        index += 1
    return blocks


class BlockProcessor:
    """Renders diagram blocks with per block cancellation."""

    def __init__(
        self,
        renderer: DiagramRenderer,
        theme: Theme = "simple",
        cancellation: Optional[RenderCancellation] = None,
    ):
        self.renderer = renderer
        self.theme = theme
        self.cancellation = cancellation if cancellation is not None else RenderCancellation()

    async def process(self, content: str, position: int = 0) -> BlockOutcome:
        """
        Render one block.

        :param content: raw block content
        :param position: line of block in its document, part of block identity
        :return: BlockOutcome
        """
        source = DiagramSource.from_text(content, position)
        token = self.cancellation.start(source.block_id)
        try:
            result = await self.renderer.render(source, self.theme, token)
        except RenderAbortedError as err:
            log.debug(f"Render of {source.block_id} cancelled: {err.reason}")
            return BlockOutcome(block_id=source.block_id, kind=OutcomeKind.CANCELLED)
        finally:
            self.cancellation.complete(source.block_id, token)
        return self._outcome(source, result)

    async def process_document(self, markdown: str) -> List[BlockOutcome]:
        """Render all blocks of a document concurrently."""
        blocks = extract_blocks(markdown)
        return list(await asyncio.gather(*(self.process(content, position) for content, position in blocks)))

    def cancel_all_renders(self) -> None:
        """Abort everything in flight, for mode switch or teardown."""
        self.cancellation.cancel_all()

    def set_theme(self, theme: Theme) -> bool:
        """
        Switch theme for following renders.

        Cached renders are theme specific, so a real change clears the render cache.

        :return: True if theme changed
        :raises ValueError: If theme is not supported
        """
        if not ThemeManager.is_valid_theme(theme):
            raise ValueError(f'Invalid theme: "{theme}". Must be one of: {", ".join(THEMES)}.')
        if theme == self.theme:
            return False
        log.debug(f"Block theme changed from {self.theme} to {theme}")
        self.theme = theme
        self.renderer.clear_cache()
        return True

    def _outcome(self, source: DiagramSource, result: RenderResult) -> BlockOutcome:
        if result.status == RenderStatus.EMPTY:
            return BlockOutcome(
                block_id=source.block_id, kind=OutcomeKind.EMPTY, messages=[EMPTY_BLOCK_NOTICE], result=result
            )
        if result.status == RenderStatus.ERROR:
            errors = result.errors or ([result.error] if result.error else [])
            return BlockOutcome(
                block_id=source.block_id,
                kind=OutcomeKind.ERROR,
                messages=[format_error(error) for error in errors],
                result=result,
            )
        messages = []
        if result.metrics.exceeds_threshold:
            messages.append(format_performance_warning(result.metrics))
        return BlockOutcome(
            block_id=source.block_id,
            kind=OutcomeKind.DIAGRAM,
            artifact=result.artifact,
            messages=messages,
            result=result,
        )
