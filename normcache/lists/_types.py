"""
List types — registrations and insert predicates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from normcache._types import MISSING, EntityKey, base_name
from normcache.document._types import Pairs

# ═══════════════════════════════════════════════════════════════════════════════
# ListRegistration — One Mounted Instance of a Named List
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ListRegistration:
    """
    Where a named list lives.

    anchor: record the path starts from (ROOT for lists at query root).
    field_path: slots walked from the anchor; the last one holds the members.
    filters: the list field's own arguments, used by @when/@when_not.

    One name may have several registrations: the same field under different
    anchors (e.g. two users' friend lists) or with different arguments.
    """

    name: str
    anchor: EntityKey
    field_path: tuple[str, ...]
    filters: Pairs = ()

    def __post_init__(self) -> None:
        if not self.field_path:
            raise ValueError(f"List {self.name!r} needs a non-empty field path")

    @property
    def shape(self) -> tuple[str, ...]:
        """Field names along the path, arguments stripped."""
        return tuple(base_name(slot) for slot in self.field_path)


# ═══════════════════════════════════════════════════════════════════════════════
# FilterContext — @when / @when_not Predicate
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class FilterContext:
    """
    Decides whether an insert applies to a list instance.

    values: fields carried by the mutation response for the inserted object.
    when: every pair must match.
    when_not: the insert is skipped if every pair matches.

    A list instance's own filter arguments take precedence over response
    values with the same name.
    """

    values: Pairs = ()
    when: Pairs = ()
    when_not: Pairs = ()

    def accepts(self, filters: Pairs = ()) -> bool:
        context: dict[str, Any] = {**dict(self.values), **dict(filters)}

        for name, expected in self.when:
            if context.get(name, MISSING) != expected:
                return False

        if self.when_not and all(
            context.get(name, MISSING) == expected for name, expected in self.when_not
        ):
            return False

        return True


__all__ = ("ListRegistration", "FilterContext")
