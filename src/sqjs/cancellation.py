"""
Render cancellation.

Every render operation gets its own :class:`CancellationToken`, keyed by block
identity. Starting a new render for a block aborts the previous token for that
block. Cancellation is cooperative: the renderer checks the token at its
checkpoints, nothing gets interrupted.
"""

import logging
from typing import Dict, Optional

log = logging.getLogger(__name__)

REASON_SUPERSEDED = "superseded"
REASON_CANCELLED = "cancelled"


class RenderAbortedError(Exception):
    """Raised when render operation was cancelled. Callers treat it as no result, no error."""

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        message = "Render operation aborted"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class CancellationToken:
    """Read-only view on cancellation state of one render operation."""

    __slots__ = ("_aborted", "_reason")

    def __init__(self) -> None:
        self._aborted = False
        self._reason: Optional[str] = None

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def raise_if_aborted(self) -> None:
        if self._aborted:
            raise RenderAbortedError(self._reason)

    def __repr__(self) -> str:
        return f"CancellationToken(aborted={self._aborted}, reason={self._reason!r})"


def _abort(token: CancellationToken, reason: str) -> None:
    # First reason wins
    if not token._aborted:
        token._aborted = True
        token._reason = reason


class RenderCancellation:
    """Tracks in-flight render operations by block id."""

    def __init__(self) -> None:
        self._operations: Dict[str, CancellationToken] = {}

    def start(self, block_id: str) -> CancellationToken:
        """
        Start tracking a new render operation.

        Any pending operation for the same block is aborted and replaced.

        :param block_id: identifier of the diagram block
        :return: fresh token to pass to the renderer
        """
        self.cancel(block_id, REASON_SUPERSEDED)
        token = CancellationToken()
        self._operations[block_id] = token
        return token

    def cancel(self, block_id: str, reason: str = REASON_CANCELLED) -> None:
        token = self._operations.pop(block_id, None)
        if token is not None:
            log.debug(f"Cancelling render of {block_id}: {reason}")
            _abort(token, reason)

    def cancel_all(self, reason: str = REASON_CANCELLED) -> None:
        """Abort every pending operation, used on mode switch or teardown."""
        if self._operations:
            log.debug(f"Cancelling {len(self._operations)} pending render(s)")
        for token in self._operations.values():
            _abort(token, reason)
        self._operations.clear()

    def complete(self, block_id: str, token: Optional[CancellationToken] = None) -> None:
        """
        Stop tracking finished operation.

        :param block_id: identifier of the diagram block
        :param token: if given, only forget the block when this token is still the registered one
        """
        current = self._operations.get(block_id)
        if current is None:
            return
        if token is not None and token is not current:
            return
        del self._operations[block_id]

    def is_pending(self, block_id: str) -> bool:
        return block_id in self._operations

    def pending_count(self) -> int:
        return len(self._operations)
