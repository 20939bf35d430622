from __future__ import annotations

import logging
from collections import OrderedDict, deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from ..cancel import AbortSignal
from ..errors import RequestAborted, error_message


log = logging.getLogger(__name__)

S = TypeVar("S")
T = TypeVar("T")


@dataclass(frozen=True)
class Action:
    type: str
    payload: Any = None
    meta: Any = None


class Slice(Generic[S]):
    """One independently reduced partition of the client state.

    Case handlers are pure: ``(state, action) -> new state``. States are
    frozen dataclasses, so handlers return ``dataclasses.replace(...)`` copies.
    """

    def __init__(self, name: str, initial: Callable[[], S]) -> None:
        self.name = name
        self.initial = initial
        self._cases: dict[str, Callable[[S, Action], S]] = {}

    def case(self, *types: str):
        def deco(fn: Callable[[S, Action], S]):
            for t in types:
                self._cases[t] = fn
            return fn

        return deco

    def action(self, name: str) -> "ActionCreator":
        return ActionCreator(f"{self.name}/{name}")

    def reduce(self, state: S | None, action: Action) -> S:
        if state is None:
            state = self.initial()
        handler = self._cases.get(action.type)
        return handler(state, action) if handler else state


@dataclass(frozen=True)
class ActionCreator:
    type: str

    def __call__(self, payload: Any = None, meta: Any = None) -> Action:
        return Action(self.type, payload, meta)


class AsyncThunk(Generic[T]):
    """Async action: pending -> awaited side effect -> fulfilled | rejected.

    Calling the thunk re-raises the failure after ``rejected`` is dispatched,
    so callers can branch on the error. Once ``signal`` is aborted nothing
    more is dispatched for that call.
    """

    def __init__(self, type_prefix: str, payload_creator: Callable[..., Awaitable[T]]) -> None:
        self.type_prefix = type_prefix
        self.payload_creator = payload_creator
        self.pending = f"{type_prefix}/pending"
        self.fulfilled = f"{type_prefix}/fulfilled"
        self.rejected = f"{type_prefix}/rejected"

    async def __call__(
        self,
        store: "Store",
        api: Any,
        *args: Any,
        signal: AbortSignal | None = None,
        **kwargs: Any,
    ) -> T:
        meta = args[0] if len(args) == 1 else (args or None)
        return await run_thunk(
            store,
            self.type_prefix,
            lambda: self.payload_creator(api, *args, signal=signal, **kwargs),
            signal=signal,
            meta=meta,
        )


async def run_thunk(
    store: "Store",
    type_prefix: str,
    fn: Callable[[], Awaitable[T]],
    signal: AbortSignal | None = None,
    meta: Any = None,
) -> T:
    if signal:
        signal.raise_if_aborted()
    store.dispatch(Action(f"{type_prefix}/pending", meta=meta))
    try:
        result = await fn()
    except RequestAborted:
        raise
    except Exception as e:
        if signal and signal.aborted:
            raise RequestAborted(signal.reason) from e
        store.dispatch(Action(f"{type_prefix}/rejected", error_message(e), meta=meta))
        raise
    if signal:
        signal.raise_if_aborted()
    store.dispatch(Action(f"{type_prefix}/fulfilled", result, meta=meta))
    return result


class Store:
    def __init__(self, slices: list[Slice[Any]]) -> None:
        self._slices = {s.name: s for s in slices}
        self._state = self._initial()
        self.history: deque[str] = deque(maxlen=200)

    def _initial(self) -> dict[str, Any]:
        return {name: s.reduce(None, Action("@@init")) for name, s in self._slices.items()}

    def reset(self) -> None:
        """Put every slice back to its initial state; used when the user changes."""
        self._state = self._initial()
        self.history.append("@@reset")
        log.debug("store reset")

    @property
    def state(self) -> "RootState":
        return RootState(self._state)

    def dispatch(self, action: Action) -> Action:
        self._state = {name: s.reduce(self._state[name], action) for name, s in self._slices.items()}
        self.history.append(action.type)
        log.debug("dispatch %s", action.type)
        return action

    def select(self, selector: Callable[["RootState"], T]) -> T:
        return selector(self.state)


@dataclass(frozen=True)
class RootState:
    slices: dict[str, Any] = field(default_factory=dict)

    def __getattr__(self, name: str) -> Any:
        try:
            return self.slices[name]
        except KeyError:
            raise AttributeError(name) from None


class StoreRegistry:
    """Process-wide map of browser session id -> Store.

    Bounded: once ``limit`` browsers are tracked, the least recently used
    store is evicted.
    """

    def __init__(self, factory: Callable[[], Store], limit: int = 1000) -> None:
        self.factory = factory
        self.limit = limit
        self._stores: OrderedDict[str, Store] = OrderedDict()

    def __len__(self) -> int:
        return len(self._stores)

    def get(self, sid: str) -> Store:
        store = self._stores.get(sid)
        if store is None:
            store = self._stores[sid] = self.factory()
            while len(self._stores) > self.limit:
                evicted, _ = self._stores.popitem(last=False)
                log.debug("store evicted (sid=%s)", evicted)
        else:
            self._stores.move_to_end(sid)
        return store

    def peek(self, sid: str) -> Store | None:
        """The store for ``sid`` if one exists; never creates one."""
        return self._stores.get(sid)

    def drop(self, sid: str) -> None:
        self._stores.pop(sid, None)
