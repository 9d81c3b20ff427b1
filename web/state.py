"""
web/state.py -- Client view state and its transitions.

ViewState is everything the machine page shows besides the taxonomy: the form
fields, the last-fetched record list, the detail panel, the delete selection
and edit mode. It is a frozen dataclass; every user action is a pure function
taking a ViewState and returning a new one. Routes in web/routes.py do the I/O
(calling MachineService) and feed the outcome through these functions, so the
rules below are testable without HTTP:

  - selecting a category resets the type (its options come from the taxonomy)
  - View All shows the last-fetched complete records, no fetch
  - View Filtered filters the last-fetched full list client-side; an empty
    category or type matches everything
  - a failed fetch/save/delete only sets the message; prior state stays
  - Cancel clears category, type, purpose, message, detail panel, edit mode

ViewStateStore keeps one ViewState per browser session, in memory, bounded
(least recently used sessions are dropped first).
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Optional

from machines.models import MachineRecord
from machines.service import is_complete
from web.taxonomy import Taxonomy

SAVE_PROMPT = "All fields are required."
DELETE_PROMPT = "Please select a machine to delete."
SAVED_MESSAGE = "Machine data saved successfully!"
DELETED_MESSAGE = "Machine deleted successfully!"


@dataclass(frozen=True)
class ViewState:
    category: str = ""
    machine_type: str = ""
    purpose: str = ""
    message: str = ""
    # Blocking validation prompt; shown once, then cleared by acknowledge().
    prompt: str = ""
    records: tuple[MachineRecord, ...] = ()
    complete: tuple[MachineRecord, ...] = ()
    # None hides the detail panel; an empty tuple shows it with no rows.
    detail: Optional[tuple[MachineRecord, ...]] = None
    delete_id: str = ""
    edit_id: Optional[str] = None
    fetched: bool = False

    @property
    def edit_mode(self) -> bool:
        return self.edit_id is not None


# ---------------------------------------------------------------------------
# Form field transitions
# ---------------------------------------------------------------------------


def select_category(state: ViewState, category: str, taxonomy: Taxonomy) -> ViewState:
    """Set the category. A different category clears the type selection."""
    category = category if taxonomy.has_category(category) else ""
    if category == state.category:
        return state
    return replace(state, category=category, machine_type="")


def select_type(state: ViewState, machine_type: str, taxonomy: Taxonomy) -> ViewState:
    """Set the type if it is offered for the current category, else clear it."""
    if machine_type not in taxonomy.types_for(state.category):
        machine_type = ""
    return replace(state, machine_type=machine_type)


def set_purpose(state: ViewState, purpose: str) -> ViewState:
    return replace(state, purpose=purpose)


def select_for_deletion(state: ViewState, record_id: str) -> ViewState:
    return replace(state, delete_id=record_id)


def begin_edit(state: ViewState, record_id: str) -> ViewState:
    """Load a fetched record into the form; the next Save updates its purpose."""
    record = next((r for r in state.records if r.id == record_id), None)
    if record is None:
        return replace(state, message="Machine not found.")
    return replace(
        state,
        category=record.machine_name,
        machine_type=record.machine_type,
        purpose=record.purpose,
        edit_id=record.id,
        message="",
    )


# ---------------------------------------------------------------------------
# Fetch outcomes
# ---------------------------------------------------------------------------


def loaded(state: ViewState, records: Iterable[MachineRecord]) -> ViewState:
    records = tuple(records)
    return replace(
        state,
        records=records,
        complete=tuple(r for r in records if is_complete(r)),
        fetched=True,
    )


def failed(state: ViewState, message: str) -> ViewState:
    """Any failed fetch, save or delete: show the message, keep everything else."""
    return replace(state, message=message)


# ---------------------------------------------------------------------------
# Button actions
# ---------------------------------------------------------------------------


def view_all(state: ViewState) -> ViewState:
    return replace(state, detail=state.complete)


def view_filtered(state: ViewState) -> ViewState:
    matches = tuple(
        r
        for r in state.records
        if (not state.category or r.machine_name == state.category)
        and (not state.machine_type or r.machine_type == state.machine_type)
    )
    return replace(state, detail=matches)


def cancel(state: ViewState) -> ViewState:
    return replace(
        state,
        category="",
        machine_type="",
        purpose="",
        message="",
        prompt="",
        detail=None,
        edit_id=None,
    )


def check_save(state: ViewState) -> Optional[str]:
    """Return the prompt that blocks Save, or None when Save may proceed."""
    if not state.category or not state.machine_type or not state.purpose:
        return SAVE_PROMPT
    return None


def saved(state: ViewState) -> ViewState:
    return replace(state, message=SAVED_MESSAGE, edit_id=None)


def check_delete(state: ViewState) -> Optional[str]:
    if not state.delete_id:
        return DELETE_PROMPT
    return None


def deleted(state: ViewState) -> ViewState:
    edit_id = None if state.edit_id == state.delete_id else state.edit_id
    return replace(state, message=DELETED_MESSAGE, delete_id="", edit_id=edit_id)


def prompted(state: ViewState, prompt: str) -> ViewState:
    return replace(state, prompt=prompt)


def acknowledge(state: ViewState) -> ViewState:
    """Clear the one-shot prompt after it has been rendered."""
    if not state.prompt:
        return state
    return replace(state, prompt="")


# ---------------------------------------------------------------------------
# Per-session registry
# ---------------------------------------------------------------------------


class ViewStateStore:
    """In-memory ViewState per session key, evicting least recently used.

    Route handlers run in a thread pool, so every access takes the lock.
    State is per process; a restart or a second worker starts sessions fresh
    (the page refetches on the next visit).
    """

    def __init__(self, max_sessions: int = 1000) -> None:
        self.max_sessions = max_sessions
        self._states: OrderedDict[str, ViewState] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> ViewState:
        with self._lock:
            state = self._states.get(key)
            if state is None:
                return ViewState()
            self._states.move_to_end(key)
            return state

    def put(self, key: str, state: ViewState) -> None:
        with self._lock:
            self._states[key] = state
            self._states.move_to_end(key)
            while len(self._states) > self.max_sessions:
                self._states.popitem(last=False)

    def discard(self, key: str) -> None:
        with self._lock:
            self._states.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)
