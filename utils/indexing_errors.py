"""
Indexing Error Taxonomy

Every failure raised while projecting chain events is fatal for the run:
the dispatcher rolls the event back and halts instead of skipping it.
"""

from typing import Optional


class IndexingError(Exception):
    """Base class for all indexing failures"""
    pass


class EventDecodeError(IndexingError):
    """Raised when a log envelope or one of its parameters is malformed"""

    def __init__(self, message: str, event_name: Optional[str] = None, param: Optional[str] = None):
        self.event_name = event_name
        self.param = param
        prefix = event_name or "event"
        if param:
            prefix = f"{prefix}.{param}"
        super().__init__(f"{prefix}: {message}")


class OutOfOrderEventError(IndexingError):
    """Raised when a log arrives at or before the last applied position"""

    def __init__(self, position, cursor):
        self.position = position
        self.cursor = cursor
        super().__init__(
            f"Log at (block, tx, log) {position} is not after last applied position {cursor}"
        )


class LedgerInvariantError(IndexingError):
    """Raised when an escrow aggregate would violate its accounting invariants"""
    pass


class IndexingHaltError(IndexingError):
    """Operator-visible halt wrapping the failure that stopped indexing"""

    def __init__(self, message: str, envelope=None, cause: Optional[BaseException] = None):
        self.envelope = envelope
        self.cause = cause
        super().__init__(message)
