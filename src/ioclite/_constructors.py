from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar, get_type_hints

from ._errors import describe


if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from ._registry import Registry

    F = TypeVar("F")


logger = logging.getLogger(__name__)

_MARKER = "__ioclite_constructor__"
_SKIPPED_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


def constructor(func: F) -> F:
    """Mark a classmethod or staticmethod as an additional constructor candidate.

    A plain function is turned into a classmethod:

        class Settings:
            def __init__(self, source: SettingsSource, env: Environment): ...

            @constructor
            def defaults(cls) -> Settings:
                return cls(DictSource({}), Environment("dev"))
    """
    if isinstance(func, (classmethod, staticmethod)):
        setattr(func.__func__, _MARKER, True)
        return func

    if not callable(func):
        msg = f"@constructor expects a function, classmethod or staticmethod, got {func!r}"
        raise TypeError(msg)

    setattr(func, _MARKER, True)
    return classmethod(func)  # type: ignore[return-value]


@dataclass(frozen=True)
class Dependency:
    name: str
    token: Any
    positional: bool = False  # positional-only parameter

    @property
    def annotated(self) -> bool:
        return self.token is not inspect.Parameter.empty

    def __str__(self) -> str:
        if not self.annotated:
            return f"{self.name}: no-annotation"
        return f"{self.name}: {describe(self.token)}"


@dataclass(frozen=True)
class ConstructorCandidate:
    """One way of building an implementation.

    `parameters` are the required dependencies, in declaration order; they
    decide satisfiability and arity. `optional` parameters carry a default
    and are injected only when their annotation happens to be registered.
    """

    name: str
    invoke: Callable[..., object]
    parameters: tuple[Dependency, ...] = ()
    optional: tuple[Dependency, ...] = ()

    @property
    def arity(self) -> int:
        return len(self.parameters)

    def missing(self, registry: Registry) -> list[Dependency]:
        return [dep for dep in self.parameters if not dep.annotated or dep.token not in registry]

    def is_satisfiable(self, registry: Registry) -> bool:
        return not self.missing(registry)

    def __call__(self, values: Mapping[str, object]) -> object:
        args: list[object] = []
        kwargs: dict[str, object] = {}
        gap = False
        for dep in (*self.parameters, *self.optional):
            if dep.name not in values:
                gap = gap or dep.positional
                continue
            if dep.positional:
                if gap:
                    # cannot skip a positional-only default and fill a later one
                    continue
                args.append(values[dep.name])
            else:
                kwargs[dep.name] = values[dep.name]
        return self.invoke(*args, **kwargs)


def candidates_for(cls: type) -> list[ConstructorCandidate]:
    """Enumerate the constructor candidates of `cls`.

    `__init__` comes first, followed by `@constructor` methods in declaration
    order, from the class itself up through its bases. The order is the
    tie-break between candidates of equal arity.
    """
    candidates = [_init_candidate(cls)]

    seen: set[str] = set()
    for klass in cls.__mro__:
        for name, attr in vars(klass).items():
            if name in seen:
                continue
            seen.add(name)
            if not isinstance(attr, (classmethod, staticmethod)):
                continue
            if getattr(attr.__func__, _MARKER, False):
                hints = _get_type_hints(attr.__func__, f"{cls.__name__}.{name}")
                candidates.append(_candidate(name, getattr(cls, name), hints))

    return candidates


def candidates_for_factory(factory: Callable[..., object]) -> list[ConstructorCandidate]:
    name = describe(factory)
    return [_candidate(name, factory, _get_type_hints(factory, name))]


def _init_candidate(cls: type) -> ConstructorCandidate:
    if cls.__init__ is object.__init__ and cls.__new__ is object.__new__:
        return ConstructorCandidate("__init__", cls)

    if cls.__init__ is object.__init__:
        hints = _get_type_hints(cls.__new__, f"{cls.__name__}.__new__")
    else:
        hints = _get_type_hints(inspect.getattr_static(cls, "__init__"), f"{cls.__name__}.__init__")

    return _candidate("__init__", cls, hints)


def _candidate(name: str, target: Callable[..., object], hints: dict[str, Any]) -> ConstructorCandidate:
    try:
        sig = inspect.signature(target)
    except (TypeError, ValueError):
        # builtins and extension types without introspectable signatures
        return ConstructorCandidate(name, target)

    required: list[Dependency] = []
    optional: list[Dependency] = []

    for param_name, p in sig.parameters.items():
        if p.kind in _SKIPPED_KINDS:
            continue

        dep = Dependency(
            name=param_name,
            token=hints.get(param_name, inspect.Parameter.empty),
            positional=p.kind is inspect.Parameter.POSITIONAL_ONLY,
        )
        if p.default is inspect.Parameter.empty:
            required.append(dep)
        elif dep.annotated:
            optional.append(dep)

    return ConstructorCandidate(name, target, tuple(required), tuple(optional))


def _get_type_hints(obj: Any, owner: str) -> dict[str, Any]:
    try:
        hints = get_type_hints(obj)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s type hints", exc.name, owner)
        hints = {}

    hints.pop("return", None)
    return hints
