"""
immupdate.optional — Transparent handling of optional containers.

A path may run through slots that hold an optional value rather than the
value itself.  The reconciler never looks inside such a container on its
own; it asks an adapter three questions at every slot:

    is_optional(v)   does this slot hold a container at all?
    is_empty(v)      is it the empty container?
    unwrap(v)        the contained value (v unchanged if not a container)

and one more on the way back up:

    rewrap(was_optional, new)   put `new` back the way the slot held it

The default adapter understands `returns.maybe.Maybe`:

    deep_update({"a": Nothing}).at("a").set({"b": 10})
        → {"a": Some({"b": 10})}
"""

import logging
from typing import Any

from returns.maybe import Maybe, Nothing

logger = logging.getLogger(__name__)


class OptionalAdapter:
    """
    Adapter for trees with no optional containers.

    Every value is plain: nothing is unwrapped and nothing is rewrapped.
    Subclass and override all four methods to support a container type.
    """
    __slots__ = ()

    def is_optional(self, value: Any) -> bool:
        return False

    def is_empty(self, value: Any) -> bool:
        return False

    def unwrap(self, value: Any) -> Any:
        return value

    def rewrap(self, was_optional: bool, value: Any) -> Any:
        return value

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class MaybeAdapter(OptionalAdapter):
    """Adapter for `returns.maybe.Maybe` (`Some(x)` / `Nothing`)."""
    __slots__ = ()

    def is_optional(self, value: Any) -> bool:
        return isinstance(value, Maybe)

    def is_empty(self, value: Any) -> bool:
        return value is Nothing

    def unwrap(self, value: Any) -> Any:
        if isinstance(value, Maybe) and value is not Nothing:
            return value.unwrap()
        return value

    def rewrap(self, was_optional: bool, value: Any) -> Any:
        """
        Wrap `value` for a slot that held a Maybe.

        None becomes `Nothing`; anything else becomes `Some(value)`.
        Plain slots get `value` back untouched.
        """
        if not was_optional:
            return value
        return Maybe.from_optional(value)


_default_adapter: OptionalAdapter = MaybeAdapter()


def get_default_adapter() -> OptionalAdapter:
    """The adapter `deep_update` uses when none is passed."""
    return _default_adapter


def set_default_adapter(adapter: OptionalAdapter) -> OptionalAdapter:
    """Replace the process-wide default adapter; returns the previous one."""
    global _default_adapter
    if not isinstance(adapter, OptionalAdapter):
        raise TypeError(f"Expected an OptionalAdapter, got {type(adapter).__name__}")
    previous, _default_adapter = _default_adapter, adapter
    logger.debug("default optional adapter set to %r", adapter)
    return previous
