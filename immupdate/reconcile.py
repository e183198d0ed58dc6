"""
immupdate.reconcile — Run a path against a root value.

ALGORITHM:
    1. Descend from the root, one step at a time.  At each slot, unwrap an
       optional container, then apply the step's modifiers:
         • absent + Default       → continue with a shallow copy of it,
                                    and remember that this slot was made up
         • absent + AbortIfAbsent → abort
         • AbortIfNot(p)          → abort unless p(value)
       Below an absent slot with no Default, every read is MISSING.
    2. Apply the terminal operation to the value at the last slot.
    3. If no slot was made up by a Default and the new leaf *is* the old
       one, return the root unchanged.  None landing on a missing or None
       slot counts as the same; anything written over an empty optional
       does not.  DELETE is a no-op exactly when the key is missing.
    4. Otherwise rebuild from the leaf back to the root, copying only the
       containers on the path and rewrapping slots that held optionals.

Every call ends in exactly one of three outcomes: NOOP and ABORTED return
the root object itself; UPDATED returns a new root that shares every
branch off the path with the old one.
"""

import copy
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional, Sequence

from .core import (
    DELETE, MISSING,
    Modify, Set, Step, Terminal,
    format_path, is_absent, read, write,
)
from .errors import AbsentContainerError, StepTypeError
from .optional import OptionalAdapter

logger = logging.getLogger(__name__)


class Outcome(Enum):
    """How a reconcile call ended."""
    NOOP = auto()       # Nothing changed, root returned as is
    ABORTED = auto()    # A guard failed, root returned as is
    UPDATED = auto()    # New root built


@dataclass
class ReconcileResult:
    """Result of running one path."""
    value: Any
    outcome: Outcome

    def __repr__(self) -> str:
        return f"ReconcileResult({self.outcome.name})"


@dataclass(slots=True)
class _Slot:
    step: Step
    raw: Any            # As stored in the parent; MISSING if not there
    value: Any          # Unwrapped, or the default copy
    wrapped: bool       # raw was an optional container
    empty: bool         # raw was the empty container
    defaulted: bool


def _path_to(steps: Sequence[Step], i: int) -> str:
    return format_path(s.accessor for s in steps[1:i + 1])


def _fresh_default(value: Any, adapter: OptionalAdapter) -> Any:
    # The caller keeps their instance; the tree gets its own top level.
    return copy.copy(adapter.unwrap(value))


def _descend(root: Any, steps: Sequence[Step],
             adapter: OptionalAdapter) -> Optional[list[_Slot]]:
    """Walk the path.  Returns None when a guard aborts."""
    slots: list[_Slot] = []
    parent: Any = MISSING

    for i, step in enumerate(steps):
        if step.accessor is None:
            raw = root
        elif is_absent(parent):
            raw = MISSING
        else:
            raw = read(parent, step.accessor)

        wrapped = adapter.is_optional(raw)
        empty = adapter.is_empty(raw)
        value = None if empty else adapter.unwrap(raw)
        defaulted = False

        if is_absent(value):
            if step.default is not None:
                value = _fresh_default(step.default.value, adapter)
                defaulted = True
            elif step.aborts_if_absent:
                logger.debug("update aborted: %s is absent", _path_to(steps, i))
                return None

        for predicate in step.predicates:
            if not predicate(None if is_absent(value) else value):
                logger.debug("update aborted: predicate failed at %s", _path_to(steps, i))
                return None

        slots.append(_Slot(step, raw, value, wrapped, empty, defaulted))
        parent = value

    return slots


def _compute_leaf(leaf: _Slot, terminal: Terminal) -> Any:
    if isinstance(terminal, Set):
        return terminal.value
    if isinstance(terminal, Modify):
        return terminal.fn(None if is_absent(leaf.value) else leaf.value)
    raise TypeError(f"Unknown terminal operation: {type(terminal)}")


def _unchanged(leaf: _Slot, new: Any) -> bool:
    if new is DELETE:
        return leaf.raw is MISSING
    if leaf.empty:
        # A write over an empty container is never a no-op.
        return False
    if is_absent(leaf.value):
        return new is None
    return new is leaf.value


def _rebuild(slots: list[_Slot], new: Any, adapter: OptionalAdapter) -> Any:
    """Write `new` at the leaf and copy every container back to the root."""
    steps = [s.step for s in slots]
    child = new

    for i in range(len(slots) - 1, 0, -1):
        slot, parent = slots[i], slots[i - 1]
        if is_absent(parent.value):
            raise AbsentContainerError(
                f"cannot write {_path_to(steps, i)}: {_path_to(steps, i - 1)} is absent "
                f"(use with_default() or abort_if_absent() on it)")
        if child is not DELETE:
            child = adapter.rewrap(slot.wrapped, child)
        child = write(parent.value, slot.step.accessor, child)

    if child is DELETE:
        raise StepTypeError("cannot delete the root value")
    return adapter.rewrap(slots[0].wrapped, child)


def reconcile(root: Any, steps: Sequence[Step], terminal: Terminal,
              adapter: OptionalAdapter) -> ReconcileResult:
    """
    Apply `terminal` at the end of `steps`, starting from `root`.

    `steps` normally starts with the root step (accessor None); one is
    added when it doesn't.  `root` and every Default value are left
    untouched.  Exceptions from predicates and modify functions propagate.
    """
    steps = tuple(steps)
    if not steps or steps[0].accessor is not None:
        steps = (Step(None),) + steps

    slots = _descend(root, steps, adapter)
    if slots is None:
        return ReconcileResult(root, Outcome.ABORTED)

    leaf = slots[-1]
    new = _compute_leaf(leaf, terminal)

    if not any(s.defaulted for s in slots) and _unchanged(leaf, new):
        logger.debug("update of %s is a no-op", _path_to(steps, len(steps) - 1))
        return ReconcileResult(root, Outcome.NOOP)

    value = _rebuild(slots, new, adapter)
    logger.debug("updated %s", _path_to(steps, len(steps) - 1))
    return ReconcileResult(value, Outcome.UPDATED)
