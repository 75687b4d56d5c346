"""Registration-time checks that an implementation can stand in for a service.

Ordinary classes and ABCs are checked with `issubclass`. Protocols are
accepted when they appear in the implementation's MRO, otherwise their
members are compared structurally: presence, required positional arity and
return annotations. The structural check is best-effort.
"""

from __future__ import annotations

import inspect
import typing
from typing import Any, Protocol, cast, get_type_hints


_POSITIONAL_KINDS = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def is_protocol(tp: object) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def is_protocol(tp: object) -> bool:
        return (
            inspect.isclass(tp)
            and issubclass(tp, cast("type", Protocol))
            and bool(getattr(tp, "_is_protocol", False))
        )


def is_runtime_checkable_protocol(tp: object) -> bool:
    if not is_protocol(tp):
        return False

    try:
        isinstance(None, tp)  # type: ignore[arg-type]
    except TypeError:
        return False
    else:
        return True


def validate_binding(service: type, impl: type) -> None:
    """Raise TypeError unless `impl` is an acceptable implementation of `service`."""
    if not is_protocol(service):
        if not issubclass(impl, service):
            msg = f"Implementation {impl.__name__} must be a subclass of {service.__name__}"
            raise TypeError(msg)
        return

    if service in getattr(impl, "__mro__", ()):
        return

    problems = _structural_problems(service, impl)
    if problems:
        msg = (
            f"Implementation {impl.__name__} does not structurally conform to protocol "
            f"{service.__name__}: {'; '.join(problems)}"
        )
        raise TypeError(msg)


def check_instance(service: type, instance: object) -> None:
    """Check a factory-produced instance against a class service.

    Protocols that are not runtime checkable are compared structurally via the
    instance's type.
    """
    if is_protocol(service):
        if is_runtime_checkable_protocol(service):
            if not isinstance(instance, service):
                msg = f"Resolved instance {type(instance).__name__} does not implement runtime protocol {service.__name__}"
                raise TypeError(msg)
            return
        try:
            validate_binding(service, type(instance))
        except TypeError as e:
            msg = f"Resolved instance {type(instance).__name__} does not conform to protocol {service.__name__}"
            raise TypeError(msg) from e
        return

    if not isinstance(instance, service):
        msg = f"Resolved instance {type(instance).__name__} is not an instance of {service.__name__}"
        raise TypeError(msg)


def _structural_problems(proto: type, impl: type) -> list[str]:
    missing: list[str] = []
    mismatches: list[str] = []

    try:
        proto_hints = get_type_hints(proto)
    except (TypeError, NameError):
        proto_hints = {}

    # attributes declared as annotations
    for name in proto_hints:
        if not name.startswith("_") and not hasattr(impl, name):
            missing.append(name)

    for name, proto_attr in proto.__dict__.items():
        if name.startswith("_") or not inspect.isfunction(proto_attr):
            continue

        if not hasattr(impl, name):
            missing.append(name)
            continue

        impl_attr = getattr(impl, name)
        if not callable(impl_attr):
            mismatches.append(f"{name}: not callable on {impl.__name__}")
            continue

        mismatches.extend(_signature_mismatches(name, proto_attr, impl_attr))

    problems = []
    if missing:
        problems.append(f"missing members: {', '.join(missing)}")
    if mismatches:
        problems.append(f"signature mismatches: {', '.join(mismatches)}")
    return problems


def _signature_mismatches(name: str, proto_attr: Any, impl_attr: Any) -> list[str]:
    try:
        proto_sig = inspect.signature(proto_attr)
        impl_sig = inspect.signature(impl_attr)
    except (TypeError, ValueError) as e:
        return [f"{name}: unable to compare signatures ({e})"]

    found = []

    proto_arity = _required_positional(proto_sig)
    impl_arity = _required_positional(impl_sig)
    if impl_arity < proto_arity:
        found.append(
            f"{name}: impl has fewer required positional params ({impl_arity}) than protocol ({proto_arity})"
        )

    proto_ret = proto_sig.return_annotation
    impl_ret = impl_sig.return_annotation
    if inspect.Signature.empty in (proto_ret, impl_ret) or Any in (proto_ret, impl_ret):
        return found

    if not _is_return_type_compatible(impl_ret, proto_ret):
        found.append(f"{name}: return type {impl_ret!r} is not compatible with protocol return type {proto_ret!r}")

    return found


def _required_positional(sig: inspect.Signature) -> int:
    return sum(
        1
        for p in sig.parameters.values()
        if p.name != "self" and p.kind in _POSITIONAL_KINDS and p.default is inspect.Parameter.empty
    )


def _is_return_type_compatible(impl_ret: object, proto_ret: object) -> bool:
    if impl_ret == proto_ret:
        return True

    if isinstance(impl_ret, type) and isinstance(proto_ret, type):
        return issubclass(impl_ret, proto_ret)

    # Union, TypeVar, string annotations...: conservative
    return False
