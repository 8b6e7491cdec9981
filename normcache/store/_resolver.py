"""
Reference resolver — identity for response objects.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from kungfu import Result, Ok, Error

from normcache._config import CacheConfig
from normcache._errors import IdentityResolutionFailure
from normcache._types import EntityKey

logger = logging.getLogger(__name__)


class Resolver:
    """
    Computes the EntityKey of a response object.

    An object needs a typename (from the response, or the compiled hint)
    and a non-null value for every configured key field of that type.

    Example:
        resolver = Resolver(CacheConfig().with_keys("Book", "isbn"))
        resolver.resolve({"__typename": "Book", "isbn": "978-0"})
        # EntityKey(typename="Book", id="978-0")
    """

    __slots__ = ("_config",)

    def __init__(self, config: CacheConfig) -> None:
        self._config = config

    def typename(self, obj: Mapping[str, Any], hint: str | None = None) -> str | None:
        value = obj.get(self._config.typename_field)
        return str(value) if value else hint

    def identify(
        self,
        obj: object,
        hint: str | None = None,
    ) -> Result[EntityKey, IdentityResolutionFailure]:
        """Resolve identity, explaining why when it cannot."""
        if not isinstance(obj, Mapping):
            return Error(IdentityResolutionFailure(hint, "not an object"))

        typename = self.typename(obj, hint)
        if typename is None:
            return Error(IdentityResolutionFailure(None, "no typename"))

        parts: list[str] = []
        for name in self._config.keys_for(typename):
            value = obj.get(name)
            if value is None:
                return Error(IdentityResolutionFailure(typename, f"missing key field {name!r}"))
            parts.append(str(value))

        return Ok(EntityKey(typename, ":".join(parts)))

    def resolve(self, obj: object, hint: str | None = None) -> EntityKey | None:
        """EntityKey for `obj`, or None for objects without identity."""
        match self.identify(obj, hint):
            case Ok(key):
                return key
            case Error(failure):
                logger.debug("Storing object embedded (%s)", failure)
                return None

    def embedded(
        self,
        parent: EntityKey,
        field: str,
        typename: str | None,
        index: int | None = None,
    ) -> EntityKey:
        """Key for an identity-less object, derived from where it sits."""
        path = f"{parent}.{field}" if index is None else f"{parent}.{field}[{index}]"
        return EntityKey(typename or "__Embedded__", path, embedded=True)


__all__ = ("Resolver",)
