import unittest
from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

import pytest

from ioclite import ConstructionFailedError, Container


class TestRuntimeProtocolNonConformance(unittest.TestCase):
    cont: Container

    @runtime_checkable
    class RepoProtocol(Protocol):
        def get(self) -> int: ...

    class BadRepo:
        # Missing `get`, does not conform to RepoProtocol
        def other(self) -> str:
            return "nope"

    def setUp(self):
        self.cont = Container()

    def test_resolve_fails_when_factory_returns_non_conforming_instance(self):
        self.cont.register_transient(self.RepoProtocol, factory=lambda: self.BadRepo())
        # factory path does not raise at register time, but fails at resolution.
        with pytest.raises(ConstructionFailedError) as ctx:
            self.cont.resolve(self.RepoProtocol)
        assert isinstance(ctx.value.cause, TypeError)

    def test_register_raises_type_error_for_non_conforming_class(self):
        with pytest.raises(TypeError):
            self.cont.register_transient(self.RepoProtocol, self.BadRepo)

    def test_rejected_registration_is_not_stored(self):
        with pytest.raises(TypeError):
            self.cont.register_singleton(self.RepoProtocol, self.BadRepo)
        assert self.RepoProtocol not in self.cont


class TestRuntimeProtocolConformance(unittest.TestCase):
    cont: Container

    @runtime_checkable
    class RepoProtocol(Protocol):
        def get(self) -> int: ...

    class GoodRepo:
        def get(self) -> int:
            return 42

    def setUp(self):
        self.cont = Container()

    def test_resolve_succeeds_when_factory_returns_conforming_instance(self):
        self.cont.register_transient(self.RepoProtocol, factory=lambda: self.GoodRepo())

        repo = self.cont.resolve(self.RepoProtocol)

        assert isinstance(repo, self.GoodRepo)
        assert repo.get() == 42

    def test_register_succeeds_for_conforming_class(self):
        self.cont.register_transient(self.RepoProtocol, self.GoodRepo)

        repo = self.cont.resolve(self.RepoProtocol)

        assert isinstance(repo, self.GoodRepo)
        assert repo.get() == 42


class TestProtocolSignatureNonConformance(unittest.TestCase):
    cont: Container

    @runtime_checkable
    class RepoProtocol(Protocol):
        def get(self, key: str) -> int: ...

    def setUp(self):
        self.cont = Container()

    def test_register_raises_type_error_for_method_with_wrong_arity(self):
        class GetNoArgs:
            # Wrong arity: missing an argument
            def get(self) -> int:
                return 1

        with pytest.raises(TypeError, match="fewer required positional params"):
            self.cont.register_transient(self.RepoProtocol, GetNoArgs)

    def test_register_raises_type_error_for_non_callable_attribute(self):
        class GetIsNotCallable:
            # Attribute exists but is not callable
            get = 123

        with pytest.raises(TypeError, match="not callable"):
            self.cont.register_transient(self.RepoProtocol, GetIsNotCallable)

    def test_register_raises_type_error_for_wrong_return_type(self):
        class GetReturnsWrongType:
            # Return type mismatch
            def get(self, key: str) -> str:
                return "not an int"

        with pytest.raises(TypeError, match="return type"):
            self.cont.register_transient(self.RepoProtocol, GetReturnsWrongType)

    def test_impl_with_more_optional_args_conforms(self):
        class Impl:
            def get(self, key: str, default: int = 0) -> int:
                return default

        self.cont.register_transient(self.RepoProtocol, Impl)

        assert self.cont.resolve(self.RepoProtocol).get("k") == 0


class TestNonRuntimeProtocol(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_register_any_impl_with_empty_protocol_succeeds(self):
        class EmptyProto(Protocol): ...

        class AnyClass: ...

        self.cont.register_transient(EmptyProto, impl=AnyClass)

        resolved = self.cont.resolve(EmptyProto)
        assert isinstance(resolved, AnyClass)

    def test_register_impl_requires_impl_to_structurally_conform_to_protocol(self):
        class Fooer(Protocol):
            def foo(self) -> None: ...

        class FooerImpl:
            def foo(self) -> None:
                pass

        self.cont.register_transient(Fooer, impl=FooerImpl)

        resolved = self.cont.resolve(Fooer)
        assert isinstance(resolved, FooerImpl)

    def test_register_proto_impl_missing_member_raises_type_error(self):
        class SupportsFoo(Protocol):
            def foo(self, a) -> int: ...
            def bar(self) -> int: ...

        class Impl:
            def foo(self, a, b) -> int: ...

        with pytest.raises(TypeError, match="missing members: bar"):
            self.cont.register_transient(SupportsFoo, impl=Impl)

    def test_factory_result_is_checked_structurally(self):
        class NonRuntimeProtocol(Protocol):
            def do(self) -> None: ...

        self.cont.register_transient(NonRuntimeProtocol, factory=lambda: object())

        with pytest.raises(ConstructionFailedError) as ctx:
            self.cont.resolve(NonRuntimeProtocol)
        assert "does not conform to protocol NonRuntimeProtocol" in str(ctx.value)


class TestRegisterImplTokenConstraints(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_register_impl_requires_impl_to_be_subclass_of_concrete_token(self):
        class Base: ...

        class NotDerived: ...

        with pytest.raises(TypeError, match="must be a subclass of Base"):
            self.cont.register_transient(Base, impl=NotDerived)

    def test_register_abc_with_concrete_subclass(self):
        class INumberProvider(ABC):
            @abstractmethod
            def get_number(self) -> int: ...

        class Constant(INumberProvider):
            def get_number(self) -> int:
                return 42

        self.cont.register_transient(INumberProvider, Constant)

        assert self.cont.resolve(INumberProvider).get_number() == 42

    def test_abstract_implementation_fails_at_build_time_not_registration(self):
        class INumberProvider(ABC):
            @abstractmethod
            def get_number(self) -> int: ...

        self.cont.register_transient(INumberProvider)

        with pytest.raises(ConstructionFailedError) as ctx:
            self.cont.resolve(INumberProvider)
        assert isinstance(ctx.value.cause, TypeError)

    def test_string_tokens_are_not_validated(self):
        class AnyClass: ...

        self.cont.register_transient("anything", AnyClass)

        assert isinstance(self.cont.resolve("anything"), AnyClass)
