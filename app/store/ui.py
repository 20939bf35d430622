from __future__ import annotations

import itertools
from dataclasses import dataclass, field, replace
from typing import Literal, Optional

from .core import Action, Slice


NotificationType = Literal["success", "error", "info", "warning", "loading"]

_ids = itertools.count(1)


@dataclass(frozen=True)
class Notification:
    id: str
    type: NotificationType
    message: str
    duration: Optional[int] = None


@dataclass(frozen=True)
class UIState:
    notifications: tuple[Notification, ...] = field(default_factory=tuple)


ui_slice: Slice[UIState] = Slice("ui", UIState)

_add = ui_slice.action("add_notification")
remove_notification = ui_slice.action("remove_notification")


def add_notification(type: NotificationType, message: str, duration: Optional[int] = None) -> Action:
    # The id is minted here so the reducer stays pure.
    return _add(Notification(id=str(next(_ids)), type=type, message=message, duration=duration))


@ui_slice.case(_add.type)
def _add_notification(state: UIState, action: Action) -> UIState:
    return replace(state, notifications=state.notifications + (action.payload,))


@ui_slice.case(remove_notification.type)
def _remove_notification(state: UIState, action: Action) -> UIState:
    return replace(state, notifications=tuple(n for n in state.notifications if n.id != action.payload))


def select_notifications(state) -> tuple[Notification, ...]:
    return state.ui.notifications


def drain_notifications(store) -> list[Notification]:
    """Hand the queued notifications to the renderer and drop them."""
    pending = list(store.select(select_notifications))
    for n in pending:
        store.dispatch(remove_notification(n.id))
    return pending
