"""
immupdate.path — Fluent, immutable path builder.

    deep_update(person)
        .at("prefs").with_default({"notify": False})
        .at("csv_separator")
        .set(",")

Each call returns a new PathBuilder; none of them touches the data.  The
whole path runs in one pass when `set()` or `modify()` is called.
"""

from typing import Any, Callable, Hashable, Optional

from .core import (
    AbortIfAbsent, AbortIfNot, Accessor,
    DictKey, Index, Key, Modify, Set, Step, Terminal,
    format_path,
)
from .optional import OptionalAdapter, get_default_adapter
from .reconcile import ReconcileResult, reconcile


def _accessor_for(key: Hashable) -> Accessor:
    # bool is an int subclass but never a list position
    if isinstance(key, str):
        return Key(key)
    if isinstance(key, int) and not isinstance(key, bool):
        return Index(key)
    return DictKey(key)


class PathBuilder:
    """
    A root value plus the steps recorded so far.

    Modifiers (`with_default`, `abort_if_absent`, `abort_if_not`) apply to
    the most recent step, or to the root before the first `at()`.
    """
    __slots__ = ("_root", "_steps", "_adapter")

    def __init__(self, root: Any, steps: tuple[Step, ...] = (Step(None),),
                 adapter: Optional[OptionalAdapter] = None):
        self._root = root
        self._steps = steps
        self._adapter = adapter if adapter is not None else get_default_adapter()

    @property
    def root(self) -> Any:
        return self._root

    @property
    def steps(self) -> tuple[Step, ...]:
        return self._steps

    @property
    def path(self) -> tuple[Accessor, ...]:
        return tuple(s.accessor for s in self._steps[1:])

    def __repr__(self) -> str:
        return f"PathBuilder({format_path(self.path)})"

    def _extend(self, step: Step) -> "PathBuilder":
        return PathBuilder(self._root, self._steps + (step,), self._adapter)

    def _replace_last(self, step: Step) -> "PathBuilder":
        return PathBuilder(self._root, self._steps[:-1] + (step,), self._adapter)

    # ── navigation ───────────────────────────────────────────────

    def at(self, key: Hashable) -> "PathBuilder":
        """
        Step into `key`: a str is a field name, an int a list position,
        anything else a mapping key.
        """
        return self._extend(Step(_accessor_for(key)))

    def at_key(self, key: Hashable) -> "PathBuilder":
        """Step into a mapping entry, whatever the key's type."""
        return self._extend(Step(DictKey(key)))

    # ── modifiers ────────────────────────────────────────────────

    def with_default(self, value: Any) -> "PathBuilder":
        """Use a copy of `value` when the current step is absent."""
        return self._replace_last(self._steps[-1].with_default(value))

    def abort_if_absent(self) -> "PathBuilder":
        """Leave the root untouched when the current step is absent."""
        return self._replace_last(self._steps[-1].with_guard(AbortIfAbsent()))

    def abort_if_not(self, predicate: Callable[[Any], bool]) -> "PathBuilder":
        """
        Leave the root untouched unless `predicate(value)` is true.

        The predicate gets the unwrapped value, or None when the step is
        absent and has no default.
        """
        return self._replace_last(self._steps[-1].with_guard(AbortIfNot(predicate)))

    # ── terminal operations ──────────────────────────────────────

    def run(self, terminal: Terminal) -> ReconcileResult:
        """Run the path and report the outcome along with the value."""
        return reconcile(self._root, self._steps, terminal, self._adapter)

    def set(self, value: Any) -> Any:
        """Replace the value at the end of the path (DELETE removes it)."""
        return self.run(Set(value)).value

    def modify(self, fn: Callable[[Any], Any]) -> Any:
        """Replace the value at the end of the path with `fn(value)`."""
        return self.run(Modify(fn)).value


def deep_update(root: Any, *, adapter: Optional[OptionalAdapter] = None) -> PathBuilder:
    """Start a path at `root`."""
    return PathBuilder(root, adapter=adapter)
