"""Minimal inversion-of-control container.

This package maps service types (ABCs, protocols, classes or any hashable
token) to implementation classes or factories, and builds instances on
request by recursively constructing their constructor dependencies.

Exports:
- `Container`: registration (transient or singleton) and resolution.
- `Lifetime`: instance reuse policy, `SINGLETON` or `TRANSIENT`.
- `Registration`: the stored binding, including the cached singleton.
- `constructor`: decorator marking alternate constructor classmethods.
- Errors: `ContainerError` and its subclasses `DuplicateRegistrationError`,
  `ResolutionError`, `NotRegisteredError`, `NoSuitableConstructorError`,
  `ConstructionFailedError`.
"""

from ._constructors import constructor
from ._container import Container
from ._errors import (
    ConstructionFailedError,
    ContainerError,
    DuplicateRegistrationError,
    NoSuitableConstructorError,
    NotRegisteredError,
    ResolutionError,
)
from ._registry import Lifetime, Registration


__all__ = [
    "ConstructionFailedError",
    "Container",
    "ContainerError",
    "DuplicateRegistrationError",
    "Lifetime",
    "NoSuitableConstructorError",
    "NotRegisteredError",
    "Registration",
    "ResolutionError",
    "constructor",
]
