"""
immupdate
=========

Copy-on-write updates for immutable, tree-shaped data.

    update({"a": 33}, {"a": 33})                     → the same dict
    update({"a": 1, "b": 2}, {"a": DELETE})          → {"b": 2}

    deep_update({"a": {"b": 1}}).at("a").at("b").set(2)
                                                     → {"a": {"b": 2}}
    deep_update({"items": []}).at("items").at(0).abort_if_absent().set(1)
                                                     → the same dict

Only the containers on the updated path are copied.  Everything else is
shared, by reference, between the old and the new value, and an update
that changes nothing returns the very object it was given.

Optional containers (`returns.maybe.Maybe`) met along the way are
unwrapped on the way down and rewrapped on the way up.
"""

import logging

from immupdate.core import (
    # Markers
    DELETE,
    MISSING,
    # Steps
    Key,
    Index,
    DictKey,
    Step,
    Set,
    Modify,
    # Shallow update
    update,
)
from immupdate.errors import (
    ImmupdateError, PathBuilderError, StepTypeError,
    StepIndexError, AbsentContainerError,
)
from immupdate.optional import (
    OptionalAdapter, MaybeAdapter, get_default_adapter, set_default_adapter,
)
from immupdate.path import PathBuilder, deep_update
from immupdate.reconcile import Outcome, ReconcileResult, reconcile

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
__all__ = [
    "DELETE", "MISSING",
    "Key", "Index", "DictKey", "Step", "Set", "Modify",
    "update",
    "ImmupdateError", "PathBuilderError", "StepTypeError",
    "StepIndexError", "AbsentContainerError",
    "OptionalAdapter", "MaybeAdapter", "get_default_adapter", "set_default_adapter",
    "PathBuilder", "deep_update",
    "Outcome", "ReconcileResult", "reconcile",
]
