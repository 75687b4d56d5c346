from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping


def describe(token: Any) -> str:
    """Human readable name of a service token or implementation."""
    if token is None:
        return "<none>"
    name = getattr(token, "__name__", None)
    if isinstance(name, str):
        return name
    return repr(token)


class ContainerError(RuntimeError):
    pass


class DuplicateRegistrationError(ContainerError):
    def __init__(self, service: Any) -> None:
        self.service = service
        super().__init__(f"Service {describe(service)} is already registered.")


class ResolutionError(ContainerError):
    pass


class NotRegisteredError(ResolutionError):
    def __init__(self, service: Any) -> None:
        self.service = service
        super().__init__(f"Service {describe(service)} was not registered.")


class NoSuitableConstructorError(ResolutionError):
    """No constructor candidate has all of its parameters registered.

    `missing` maps each candidate name to the parameters that could not be
    satisfied, rendered as `name: token`.
    """

    def __init__(self, service: Any, implementation: str, missing: Mapping[str, list[str]]) -> None:
        self.service = service
        self.implementation = implementation
        self.missing = dict(missing)

        details = "; ".join(f"{name}({', '.join(params)})" for name, params in self.missing.items())
        msg = f"Cannot construct {describe(service)} (implementation {implementation}): no suitable constructor"
        if details:
            msg = f"{msg}, unregistered parameters: {details}"
        super().__init__(msg)


class ConstructionFailedError(ResolutionError):
    """A constructor was selected but building the instance failed.

    Nested failures wrap each other, one per build frame, so `str()` of the
    outermost error reads from the requested service down to the root cause.
    """

    def __init__(self, service: Any, implementation: str, cause: BaseException) -> None:
        self.service = service
        self.implementation = implementation
        self.cause = cause
        super().__init__(f"Cannot construct {describe(service)} (implementation {implementation}): {cause}")

    def chain(self) -> Iterator[BaseException]:
        err: BaseException = self
        while isinstance(err, ConstructionFailedError):
            yield err
            err = err.cause
        yield err

    @property
    def root_cause(self) -> BaseException:
        *_, last = self.chain()
        return last
