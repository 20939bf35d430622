from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from .errors import RequestAborted


class AbortSignal:
    def __init__(self) -> None:
        self._aborted = False
        self.reason: str | None = None

    @property
    def aborted(self) -> bool:
        return self._aborted

    def abort(self, reason: str = "scope closed") -> None:
        if not self._aborted:
            self._aborted = True
            self.reason = reason

    def raise_if_aborted(self) -> None:
        if self._aborted:
            raise RequestAborted(self.reason)


@asynccontextmanager
async def page_scope() -> AsyncIterator[AbortSignal]:
    """Signal shared by every fetch a page starts.

    Aborted on teardown, so a fetch that outlives its page (e.g. the loser
    of a gather that already raised) never writes into the store.
    """
    signal = AbortSignal()
    try:
        yield signal
    finally:
        signal.abort("page finished")
