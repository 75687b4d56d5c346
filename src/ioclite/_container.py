from __future__ import annotations

import inspect
import logging
import threading
from typing import TYPE_CHECKING, Any, TypeVar, overload

from ._constructors import ConstructorCandidate, candidates_for, candidates_for_factory
from ._errors import ConstructionFailedError, NoSuitableConstructorError, NotRegisteredError, describe
from ._registry import Lifetime, Registration, Registry
from ._validation import check_instance, validate_binding


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable

    T = TypeVar("T")

    Token = type[T] | str


class Container:
    """Minimal DI container.

    - register implementation types or factories against a service token
    - lifetimes: singleton / transient
    - resolve with constructor injection, picking the satisfiable constructor
      with the fewest parameters.

    Dependency cycles are not detected: resolving one ends in RecursionError.
    """

    def __init__(self) -> None:
        self._registry = Registry()
        self._lock = threading.RLock()

    def register_transient(
        self,
        service: Token[T],
        impl: type | None = None,
        *,
        factory: Callable[..., Any] | None = None,
    ) -> Registration:
        """Register `service` so that every resolution builds a new instance."""
        return self.register(service, impl, factory=factory, lifetime=Lifetime.TRANSIENT)

    def register_singleton(
        self,
        service: Token[T],
        impl: type | None = None,
        *,
        factory: Callable[..., Any] | None = None,
    ) -> Registration:
        """Register `service` so that it is built once and then shared."""
        return self.register(service, impl, factory=factory, lifetime=Lifetime.SINGLETON)

    def register(
        self,
        service: Token[T],
        impl: type | None = None,
        *,
        factory: Callable[..., Any] | None = None,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> Registration:
        """Register a concrete type or a factory for a service token.

        Example:
          container.register(INumberProvider, ConstantNumberProvider)
          container.register(Printer, lifetime=Lifetime.SINGLETON)
          container.register("clock", factory=make_clock)

        A class token without `impl` or `factory` is its own implementation.
        Constructibility is only checked when the service is resolved.
        """
        if impl is not None and factory is not None:
            msg = "Provide either `impl` or `factory`, not both."
            raise ValueError(msg)

        if impl is None and factory is None:
            if not inspect.isclass(service):
                msg = f"Either `impl` or `factory` must be provided for non-type token {service!r}."
                raise ValueError(msg)
            impl = service

        if impl is not None:
            if not inspect.isclass(impl):
                msg = f"Implementation must be a class, got {impl!r}"
                raise TypeError(msg)
            # Only type tokens can be validated; strings and other tokens cannot.
            if inspect.isclass(service):
                validate_binding(service, impl)
        elif not callable(factory):
            msg = f"Factory must be callable, got {factory!r}"
            raise TypeError(msg)

        registration = Registration(target=service, implementation=impl, lifetime=lifetime, factory=factory)
        with self._lock:
            self._registry.add(registration)

        logger.debug("Registered %s -> %s (%s)", describe(service), registration.implementation_name, lifetime.value)
        return registration

    def lookup(self, service: Token[T]) -> Registration | None:
        with self._lock:
            return self._registry.lookup(service)

    def is_registered(self, service: object) -> bool:
        with self._lock:
            return service in self._registry

    def __contains__(self, service: object) -> bool:
        return self.is_registered(service)

    @overload
    def resolve(self, service: type[T]) -> T: ...

    @overload
    def resolve(self, service: str) -> object: ...

    def resolve(self, service: Token[T]) -> object:
        """Resolve the service token to an instance, building its dependencies."""
        with self._lock:
            registration = self._registry.lookup(service)

        if registration is None:
            raise NotRegisteredError(service)

        return self.build(registration)

    def build(self, registration: Registration) -> object:
        """Produce an instance for `registration`.

        Singletons are built at most once; a failed build caches nothing, so
        the next request starts over.
        """
        with registration._lock:  # noqa: SLF001
            # Return cached singleton if present
            if registration.is_built:
                logger.debug("Singleton cache hit for %s", describe(registration.target))
                return registration.cached_instance

            candidate = self._select_constructor(registration)

            try:
                instance = self._invoke(registration, candidate)
            except RecursionError:
                raise
            except Exception as e:
                raise ConstructionFailedError(registration.target, registration.implementation_name, e) from e

            registration.store(instance)

            return instance

    def _select_constructor(self, registration: Registration) -> ConstructorCandidate:
        if registration.factory is not None:
            candidates = candidates_for_factory(registration.factory)
        else:
            candidates = candidates_for(registration.implementation)  # type: ignore[arg-type]

        # min() keeps the first of equal arity, i.e. declaration order
        with self._lock:
            satisfiable = [c for c in candidates if c.is_satisfiable(self._registry)]
            missing = {c.name: [str(dep) for dep in c.missing(self._registry)] for c in candidates}
        if not satisfiable:
            raise NoSuitableConstructorError(registration.target, registration.implementation_name, missing)

        chosen = min(satisfiable, key=lambda c: c.arity)
        logger.debug(
            "Building %s with %s.%s (%d dependencies)",
            describe(registration.target),
            registration.implementation_name,
            chosen.name,
            chosen.arity,
        )
        return chosen

    def _invoke(self, registration: Registration, candidate: ConstructorCandidate) -> object:
        values: dict[str, object] = {}

        for dep in candidate.parameters:
            values[dep.name] = self._build_dependency(dep.token)

        for dep in candidate.optional:
            if self.is_registered(dep.token):
                values[dep.name] = self._build_dependency(dep.token)

        instance = candidate(values)

        if registration.factory is not None and inspect.isclass(registration.target):
            check_instance(registration.target, instance)

        return instance

    def _build_dependency(self, token: Any) -> object:
        # looked up fresh on every build, never cached per candidate
        with self._lock:
            registration = self._registry.lookup(token)
        if registration is None:
            raise NotRegisteredError(token)
        return self.build(registration)
