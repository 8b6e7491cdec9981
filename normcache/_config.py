"""
Cache configuration — identity policy and notification behavior.
"""

from __future__ import annotations

from dataclasses import dataclass


# ═══════════════════════════════════════════════════════════════════════════════
# CacheConfig — Full Configuration
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """
    Cache configuration.

    Fluent builder pattern — chain methods to configure.

    Example:
        config = (
            CacheConfig()
            .with_default_keys("id")
            .with_keys("Book", "isbn")
            .with_keys("Seat", "row", "number")
        )

    Note: Immutable — each method returns new CacheConfig.
    """

    default_keys: tuple[str, ...] = ("id",)
    type_keys: tuple[tuple[str, tuple[str, ...]], ...] = ()
    typename_field: str = "__typename"
    # Push the first derived value to a sink as soon as it subscribes.
    notify_initial: bool = True

    def keys_for(self, typename: str) -> tuple[str, ...]:
        """Key fields that identify records of `typename`."""
        for name, fields in self.type_keys:
            if name == typename:
                return fields
        return self.default_keys

    def with_default_keys(self, *fields: str) -> CacheConfig:
        """
        Set the id-like fields used for every type without an override.

        Example:
            .with_default_keys("id")
            .with_default_keys("uuid")
        """
        if not fields:
            raise ValueError("At least one key field is required")
        return CacheConfig(
            default_keys=fields,
            type_keys=self.type_keys,
            typename_field=self.typename_field,
            notify_initial=self.notify_initial,
        )

    def with_keys(self, typename: str, *fields: str) -> CacheConfig:
        """
        Override key fields for a single type.

        Several fields form a composite key, joined in the given order.

        Example:
            .with_keys("Book", "isbn")
            .with_keys("Seat", "row", "number")
        """
        if not fields:
            raise ValueError(f"At least one key field is required for {typename}")
        others = tuple((name, keys) for name, keys in self.type_keys if name != typename)
        return CacheConfig(
            default_keys=self.default_keys,
            type_keys=(*others, (typename, fields)),
            typename_field=self.typename_field,
            notify_initial=self.notify_initial,
        )

    def with_typename_field(self, name: str) -> CacheConfig:
        """Set the response field carrying the concrete type name."""
        return CacheConfig(
            default_keys=self.default_keys,
            type_keys=self.type_keys,
            typename_field=name,
            notify_initial=self.notify_initial,
        )

    def with_initial_push(self, enabled: bool = True) -> CacheConfig:
        """
        Whether subscribing pushes the current value immediately.

        Example:
            .with_initial_push(False)  # sinks only see changes
        """
        return CacheConfig(
            default_keys=self.default_keys,
            type_keys=self.type_keys,
            typename_field=self.typename_field,
            notify_initial=enabled,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("CacheConfig",)
