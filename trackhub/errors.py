# trackhub error taxonomy
# Rev 0.1.0

from __future__ import annotations
from typing import Iterable, Optional


class TrackhubError(Exception):
    """Base class for every error raised by the trackhub core."""


class ValidationError(TrackhubError, ValueError):
    """Malformed input to a store mutation. Raised before any state change."""

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(TrackhubError, LookupError):
    """A mutation referenced an id absent from the relevant collection."""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class SyncError(TrackhubError, RuntimeError):
    """
    A remote persistence call failed (network, server, timeout) or a refresh
    failed partially. `failed` names the operations / collections involved.
    """

    def __init__(self, message: str, *, failed: Iterable[str] = ()):
        super().__init__(message)
        self.failed = list(failed)
