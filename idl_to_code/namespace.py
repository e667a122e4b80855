"""
Hierarchical registry of reserved names.
"""

from __future__ import annotations

from .errors import ConflictError


class Namespace:
    """A set of reserved names with an optional parent.

    A child sees every name reserved by its ancestors, but names it
    reserves itself stay invisible to them.
    """

    def __init__(self, parent: Namespace | None = None):
        self._parent = parent
        self._taken: set[str] = set()

    def is_taken(self, name: str) -> bool:
        """Check whether the name is reserved here or in any ancestor."""
        if name in self._taken:
            return True
        return self._parent is not None and self._parent.is_taken(name)

    def reserve(self, name: str) -> None:
        """Reserve the given name.

        Args:
            name: Name or collision key to reserve

        Raises:
            ConflictError: If the name is already reserved in this
                namespace or one of its ancestors
        """
        if self.is_taken(name):
            raise ConflictError(f"{name!r} is already taken", name=name)
        self._taken.add(name)

    def new_name(self, base: str) -> str:
        """Reserve and return a name derived from base.

        The base is used as-is when free. Otherwise an increasing counter
        is appended (base2, base3, ...) until an unreserved name is found.
        """
        name = base
        counter = 2
        while self.is_taken(name):
            name = f"{base}{counter}"
            counter += 1
        self._taken.add(name)
        return name

    def child(self) -> Namespace:
        """Return a new namespace scoped under this one."""
        return Namespace(self)

    def forget(self, name: str) -> None:
        """Release a name reserved in this namespace.

        Forgetting a name that was never reserved here is a no-op.
        """
        self._taken.discard(name)
