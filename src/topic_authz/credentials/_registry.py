"""SchemeRegistry — stores and retrieves password hash schemes by name."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, TypeVar, runtime_checkable

__all__ = ["HashScheme", "SchemeRegistry", "get_default_schemes", "hash_scheme"]


@runtime_checkable
class HashScheme(Protocol):
    """Structural type for a password verification strategy.

    ``verify`` must return ``False`` on mismatch; it may raise on a
    malformed stored hash, which the caller treats as a mismatch.
    """

    def verify(self, password: str, stored_hash: str, salt: str | None) -> bool: ...

    def hash(self, password: str, salt: str | None = None) -> str: ...


S = TypeVar("S", bound=Callable[[], HashScheme])


class SchemeRegistry:
    """Registry that maps scheme identifiers to :class:`HashScheme` objects.

    The identifier is what the store keeps next to each password hash, so a
    new scheme only needs registering here; the authentication path stays
    unchanged.

    Example::

        registry = SchemeRegistry()
        registry.register("bcrypt", BcryptScheme())
        registry.lookup("bcrypt").verify("secret", stored, None)
    """

    def __init__(self) -> None:
        self._schemes: dict[str, HashScheme] = {}

    def register(self, name: str, scheme: HashScheme, *, replace: bool = False) -> None:
        """Register *scheme* under *name*.

        Raises:
            ValueError: If *name* is already registered and *replace* is false.
        """
        key = name.strip().lower()
        if not key:
            raise ValueError("scheme name must not be empty")
        if key in self._schemes and not replace:
            raise ValueError(f"Hash scheme {key!r} is already registered")
        self._schemes[key] = scheme

    def lookup(self, name: str) -> HashScheme | None:
        """Return the scheme registered under *name*, or ``None``."""
        return self._schemes.get(name.strip().lower())

    def has_scheme(self, name: str) -> bool:
        return name.strip().lower() in self._schemes

    def names(self) -> list[str]:
        return sorted(self._schemes)

    def clear(self) -> None:
        """Remove all registered schemes. Primarily for test teardown."""
        self._schemes.clear()


_default_schemes = SchemeRegistry()


def get_default_schemes() -> SchemeRegistry:
    """Return the process-wide scheme registry used when none is given."""
    return _default_schemes


def hash_scheme(
    name: str,
    *,
    registry: SchemeRegistry | None = None,
    replace: bool = False,
) -> Callable[[S], S]:
    """Class decorator that instantiates and registers a hash scheme.

    Example::

        @hash_scheme("plain-for-tests")
        class PlainScheme:
            def verify(self, password, stored_hash, salt):
                return password == stored_hash

            def hash(self, password, salt=None):
                return password
    """

    def decorator(cls: S) -> S:
        target = registry if registry is not None else get_default_schemes()
        target.register(name, cls(), replace=replace)
        return cls

    return decorator
