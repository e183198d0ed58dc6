"""
immupdate.core — Markers, path steps and copy-on-write container access
========================================================================

THE MODEL
─────────

A value is a tree of containers:

    • Records    — Mapping objects, dataclass instances, namedtuples
    • Sequences  — list and tuple
    • Optionals  — zero-or-one containers, recognised by an adapter
                   (see immupdate.optional)

Everything else is a leaf.  Nothing in this package mutates a container
in place: every write returns a new container that shares all of its
untouched members with the old one.

A path into the tree is a sequence of Steps.  Each Step has one accessor
and, optionally, modifiers that decide what happens when the value it
reaches is absent:

    Key(name)        record field / mapping entry
    Index(position)  sequence slot
    DictKey(key)     mapping entry, any hashable key

    Default(value)   substitute `value` when absent
    AbortIfAbsent    abandon the whole update when absent
    AbortIfNot(p)    abandon the whole update when p(value) is false

ABSENCE
───────

A slot is absent when it is MISSING (the key is not there, or the index
is past the end) or when it holds None.  Guards and defaults treat both
the same way.  Writes do not: writing None into a missing key adds the
key, and deleting a key that holds None removes it.
"""

import copy
import dataclasses
from collections.abc import Hashable, Mapping, MutableMapping
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from .errors import PathBuilderError, StepIndexError, StepTypeError


# ═══════════════════════════════════════════════════════════════════
#  MARKERS
# ═══════════════════════════════════════════════════════════════════

class _Marker:
    """A named singleton that survives copy and pickle as itself."""
    __slots__ = ("_name",)

    def __init__(self, name: str):
        self._name = name

    def __repr__(self) -> str:
        return self._name

    def __reduce__(self) -> str:
        return self._name

    def __copy__(self) -> "_Marker":
        return self

    def __deepcopy__(self, memo) -> "_Marker":
        return self


#: Patch / set / modify value meaning "remove this key".
DELETE = _Marker("DELETE")

#: What a read returns for a key or index that is not there.
MISSING = _Marker("MISSING")


def is_absent(value: Any) -> bool:
    return value is MISSING or value is None


# ═══════════════════════════════════════════════════════════════════
#  STEPS
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class Key:
    """A named field: mapping entry, dataclass field or namedtuple field."""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Index:
    """A position in a list or tuple."""
    position: int

    def __str__(self) -> str:
        return str(self.position)


@dataclass(frozen=True, slots=True)
class DictKey:
    """A mapping entry under any hashable key; the entry may be missing."""
    key: Hashable

    def __str__(self) -> str:
        return f"[{self.key!r}]"


Accessor = Union[Key, Index, DictKey]


@dataclass(frozen=True, slots=True)
class AbortIfAbsent:
    pass


@dataclass(frozen=True, slots=True)
class AbortIfNot:
    predicate: Callable[[Any], bool]


Guard = Union[AbortIfAbsent, AbortIfNot]


@dataclass(frozen=True, slots=True)
class Default:
    value: Any


@dataclass(frozen=True, slots=True)
class Step:
    """
    One segment of a path.

    `accessor` is None for the root step, which carries the modifiers
    attached before the first `at()`.
    """
    accessor: Optional[Accessor]
    default: Optional[Default] = None
    guards: tuple[Guard, ...] = ()

    @property
    def aborts_if_absent(self) -> bool:
        return any(isinstance(g, AbortIfAbsent) for g in self.guards)

    @property
    def predicates(self) -> tuple[Callable[[Any], bool], ...]:
        return tuple(g.predicate for g in self.guards if isinstance(g, AbortIfNot))

    def with_default(self, value: Any) -> "Step":
        if self.default is not None:
            raise PathBuilderError(f"step {self._label()} already has a default")
        if self.aborts_if_absent:
            raise PathBuilderError(
                f"step {self._label()} aborts when absent; a default would never apply")
        return dataclasses.replace(self, default=Default(value))

    def with_guard(self, guard: Guard) -> "Step":
        if any(type(g) is type(guard) for g in self.guards):
            raise PathBuilderError(
                f"step {self._label()} already has a {type(guard).__name__} guard")
        if isinstance(guard, AbortIfAbsent) and self.default is not None:
            raise PathBuilderError(
                f"step {self._label()} has a default; it can never be absent")
        return dataclasses.replace(self, guards=self.guards + (guard,))

    def _label(self) -> str:
        return "(root)" if self.accessor is None else repr(str(self.accessor))


@dataclass(frozen=True, slots=True)
class Set:
    value: Any


@dataclass(frozen=True, slots=True)
class Modify:
    fn: Callable[[Any], Any]


Terminal = Union[Set, Modify]


def format_path(accessors) -> str:
    """Render accessors as `a/b/0`, or `(root)` for an empty path."""
    return "/".join(str(a) for a in accessors) or "(root)"


# ═══════════════════════════════════════════════════════════════════
#  CONTAINER ACCESS
# ═══════════════════════════════════════════════════════════════════

def _is_namedtuple(value: Any) -> bool:
    return isinstance(value, tuple) and hasattr(type(value), "_fields")


def _is_dataclass_instance(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and not _is_namedtuple(value)


def _describe(value: Any) -> str:
    if value is None or value is MISSING:
        return "an absent value"
    return f"a {type(value).__name__}"


def _check_field(record: Any, name: str) -> None:
    if _is_dataclass_instance(record):
        names = [f.name for f in dataclasses.fields(record)]
    else:
        names = record._fields
    if name not in names:
        raise StepTypeError(f"{type(record).__name__} has no field {name!r}")


def read(container: Any, accessor: Accessor) -> Any:
    """Return the value `accessor` reaches inside `container`, or MISSING."""
    if isinstance(accessor, Key):
        return _read_key(container, accessor.name)
    if isinstance(accessor, Index):
        return _read_index(container, accessor.position)
    if isinstance(accessor, DictKey):
        if not isinstance(container, Mapping):
            raise StepTypeError(
                f"dictionary key {accessor.key!r} used on {_describe(container)}")
        return container.get(accessor.key, MISSING)
    raise TypeError(f"Unknown accessor type: {type(accessor)}")


def _read_key(container: Any, name: str) -> Any:
    if isinstance(container, Mapping):
        return container.get(name, MISSING)
    if _is_dataclass_instance(container) or _is_namedtuple(container):
        _check_field(container, name)
        return getattr(container, name)
    raise StepTypeError(f"key {name!r} used on {_describe(container)}")


def _read_index(container: Any, position: int) -> Any:
    if not _is_sequence(container):
        raise StepTypeError(f"index {position} used on {_describe(container)}")
    if position < 0:
        raise StepIndexError(f"negative index {position} is not supported")
    if position < len(container):
        return container[position]
    return MISSING


def write(container: Any, accessor: Accessor, value: Any) -> Any:
    """
    Return a copy of `container` holding `value` at `accessor`.

    `value` may be DELETE.  Deleting something that is not there returns
    `container` itself.  Members other than the written one are shared.
    """
    if isinstance(accessor, Key):
        return _write_key(container, accessor.name, value)
    if isinstance(accessor, Index):
        return _write_index(container, accessor.position, value)
    if isinstance(accessor, DictKey):
        if not isinstance(container, Mapping):
            raise StepTypeError(
                f"dictionary key {accessor.key!r} used on {_describe(container)}")
        return _write_mapping(container, accessor.key, value)
    raise TypeError(f"Unknown accessor type: {type(accessor)}")


def _write_mapping(container: Mapping, key: Hashable, value: Any) -> Mapping:
    if value is DELETE and key not in container:
        return container

    if isinstance(container, MutableMapping):
        clone = copy.copy(container)
        if value is DELETE:
            del clone[key]
        else:
            clone[key] = value
        return clone

    # Read-only mappings (MappingProxyType and friends) are rebuilt
    entries = dict(container)
    if value is DELETE:
        del entries[key]
    else:
        entries[key] = value
    return type(container)(entries)


def _write_key(container: Any, name: str, value: Any) -> Any:
    if isinstance(container, Mapping):
        return _write_mapping(container, name, value)

    if _is_dataclass_instance(container) or _is_namedtuple(container):
        _check_field(container, name)
        if value is DELETE:
            raise StepTypeError(
                f"cannot delete field {name!r} of {type(container).__name__}")
        if _is_namedtuple(container):
            return container._replace(**{name: value})
        return dataclasses.replace(container, **{name: value})

    raise StepTypeError(f"key {name!r} used on {_describe(container)}")


def _write_index(container: Any, position: int, value: Any) -> Any:
    if not _is_sequence(container):
        raise StepTypeError(f"index {position} used on {_describe(container)}")
    if position < 0:
        raise StepIndexError(f"negative index {position} is not supported")

    size = len(container)
    if value is DELETE:
        if position >= size:
            return container
        items = list(container)
        del items[position]
    elif position < size:
        items = list(container)
        items[position] = value
    elif position == size:
        items = list(container)
        items.append(value)
    else:
        raise StepIndexError(
            f"cannot write index {position} into a sequence of length {size}")

    if type(container) is list:
        return items
    if isinstance(container, list):
        clone = copy.copy(container)
        clone[:] = items
        return clone
    return type(container)(items)


# ═══════════════════════════════════════════════════════════════════
#  SHALLOW UPDATE
# ═══════════════════════════════════════════════════════════════════

def update(record: Any, patch: Mapping) -> Any:
    """
    Merge a flat `patch` into `record`.

    For each key in the patch:
        • DELETE removes the key (nothing happens if it is already gone)
        • any other value replaces the current one unless it *is* the
          current one (identity, not equality)

    Returns `record` itself when no key changed, otherwise a new record
    of the same type carrying every original key not deleted or replaced.

        update({"a": 33}, {"a": 33})      → the same dict
        update({"a": 1, "b": 2}, {"a": DELETE})  → {"b": 2}
    """
    changes: dict[Accessor, Any] = {}
    for key, value in patch.items():
        accessor = Key(key) if isinstance(key, str) else DictKey(key)
        current = read(record, accessor)
        if value is DELETE:
            if current is MISSING:
                continue
        elif value is current:
            continue
        changes[accessor] = value

    if not changes:
        return record

    if isinstance(record, MutableMapping):
        clone = copy.copy(record)
        for accessor, value in changes.items():
            key = accessor.name if isinstance(accessor, Key) else accessor.key
            if value is DELETE:
                del clone[key]
            else:
                clone[key] = value
        return clone

    result = record
    for accessor, value in changes.items():
        result = write(result, accessor, value)
    return result
