from __future__ import annotations

from typing import ContextManager, Optional, Protocol


class TransactionManager(Protocol):
    """Unit-of-work boundary used by services.

    ``DatabaseConnection`` satisfies this; tests pass an in-memory stand-in.
    """

    def transaction(self, *, timeout_seconds: Optional[int] = None) -> ContextManager[None]:
        raise NotImplementedError

    def savepoint(self) -> ContextManager[None]:
        raise NotImplementedError
