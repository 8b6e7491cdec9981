"""
Error taxonomy.

Expected failures travel as values (`Error(MutationFailure(...))`);
configuration and list-resolution problems are raised.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any


# ═══════════════════════════════════════════════════════════════════════════════
# Identity — Non-fatal
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class IdentityResolutionFailure:
    """
    An object could not be given an EntityKey.

    Not fatal: the object is stored embedded under its parent instead.
    """

    typename: str | None
    reason: str

    def __str__(self) -> str:
        return f"{self.typename or '<unknown type>'}: {self.reason}"


# ═══════════════════════════════════════════════════════════════════════════════
# Lists — Raised
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ListResolutionError(Exception):
    """
    A list operation could not find its target.

    Raised when the list name is unknown, the anchor is ambiguous and no
    parent id was given, or the anchor cannot be reached in the store.
    """

    list_name: str
    message: str

    def __str__(self) -> str:
        return f"list {self.list_name!r}: {self.message}"


@dataclass(frozen=True, slots=True)
class DuplicateListRegistration(Exception):
    """Two different fields claim the same list name."""

    list_name: str
    existing: str
    attempted: str

    def __str__(self) -> str:
        return (
            f"list {self.list_name!r} is already registered for field "
            f"{self.existing!r}, cannot register it for {self.attempted!r}"
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Operations — Returned
# ═══════════════════════════════════════════════════════════════════════════════


class FailureKind(Enum):
    """Why an operation sent to the network failed."""

    SERVER = auto()  # Response carried `errors`
    NETWORK = auto()  # Transport raised
    EMPTY = auto()  # Response carried neither data nor errors


@dataclass(frozen=True, slots=True)
class OperationFailure:
    """A network operation failed."""

    kind: FailureKind
    operation: str
    message: str
    errors: tuple[Mapping[str, Any], ...] = ()


@dataclass(frozen=True, slots=True)
class MutationFailure(OperationFailure):
    """
    A mutation failed.

    rolled_back: optimistic values were reverted before this was returned.
    """

    rolled_back: bool = False


def describe_errors(errors: tuple[Mapping[str, Any], ...]) -> str:
    """Join GraphQL error messages into one line."""
    messages = [str(e.get("message", e)) for e in errors]
    return "; ".join(messages) if messages else "unknown error"


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "IdentityResolutionFailure",
    "ListResolutionError",
    "DuplicateListRegistration",
    "FailureKind",
    "OperationFailure",
    "MutationFailure",
    "describe_errors",
)
