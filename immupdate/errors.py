"""
immupdate.errors — Failure types raised for programmer errors.

Expected absence is never an error: it is data, and guards turn it into
an aborted update.  These classes cover the cases where the caller built
a path that cannot apply to the value it was run against.

Each class also derives from the builtin that best describes it, so
`except TypeError` keeps working for callers that don't import these.
"""

__all__ = [
    "ImmupdateError",
    "PathBuilderError",
    "StepTypeError",
    "StepIndexError",
    "AbsentContainerError",
]


class ImmupdateError(Exception):
    """Base class for all immupdate failures."""


class PathBuilderError(ImmupdateError, ValueError):
    """Conflicting or repeated modifiers attached to a single step."""


class StepTypeError(ImmupdateError, TypeError):
    """A step accessor does not fit the container found at that position."""


class StepIndexError(ImmupdateError, IndexError):
    """Negative index, or a write past the end of a sequence."""


class AbsentContainerError(ImmupdateError, LookupError):
    """A write had to go through a value that does not exist."""
