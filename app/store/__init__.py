from .assignment import assignment_slice
from .auth import auth_slice
from .core import Action, AsyncThunk, RootState, Slice, Store, StoreRegistry, run_thunk
from .courses import course_slice
from .quiz import quiz_slice
from .ui import ui_slice


def make_store() -> Store:
    return Store([auth_slice, course_slice, quiz_slice, assignment_slice, ui_slice])


__all__ = [
    "Action",
    "AsyncThunk",
    "RootState",
    "Slice",
    "Store",
    "StoreRegistry",
    "make_store",
    "run_thunk",
]
