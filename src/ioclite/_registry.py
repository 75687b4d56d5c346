from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from ._errors import DuplicateRegistrationError, describe


if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


class Lifetime(Enum):
    SINGLETON = "singleton"
    TRANSIENT = "transient"


@dataclass(eq=False)
class Registration:
    target: Any
    implementation: type | None
    lifetime: Lifetime
    factory: Callable[..., object] | None = None
    cached_instance: object | None = None  # singleton only, set once
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)
    _built: bool = field(default=False, init=False, repr=False)

    @property
    def is_built(self) -> bool:
        return self._built

    def store(self, instance: object) -> None:
        """Cache the first built singleton instance; `None` is a valid instance."""
        if self.lifetime is Lifetime.SINGLETON and not self._built:
            self.cached_instance = instance
            self._built = True

    @property
    def implementation_name(self) -> str:
        return describe(self.implementation if self.implementation is not None else self.factory)


class Registry:
    """Mapping of service tokens to their registrations.

    Append-only: a token can be registered once and is never removed.
    """

    def __init__(self) -> None:
        self._registrations: dict[Any, Registration] = {}

    def add(self, registration: Registration) -> None:
        if registration.target in self._registrations:
            raise DuplicateRegistrationError(registration.target)
        self._registrations[registration.target] = registration

    def lookup(self, token: Any) -> Registration | None:
        try:
            return self._registrations.get(token)
        except TypeError:
            return None

    def __contains__(self, token: object) -> bool:
        try:
            return token in self._registrations
        except TypeError:
            # unhashable annotations can never be registered
            return False

    def __len__(self) -> int:
        return len(self._registrations)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._registrations)
