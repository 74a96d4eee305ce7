"""Unit tests for Mocker."""

import logging
from abc import ABC, abstractmethod
from typing import Annotated, ClassVar, Optional
from unittest.mock import Mock

import pytest
import requests

from automocker.application.mocker import Mocker
from automocker.application.substitute import Substitute
from automocker.domain import (
    DuplicateRegistrationError,
    IMocker,
    Inject,
    MockerOptions,
    SubstituteNotFoundError,
    TypeMapping,
    UnconfiguredCallError,
    UnresolvedTypeError,
    constructor,
)
from automocker.infrastructure.well_known import FakeHttpAdapter, FileSystem, HttpSession, MemoryFileSystem


class ICarService(ABC):
    @abstractmethod
    def get_price(self, model: str) -> int: ...


class CarService(ICarService):
    def get_price(self, model: str) -> int:
        return 100


class IOrphanService(ABC):
    @abstractmethod
    def run(self) -> None: ...


class Engine:
    def __init__(self, power: int = 100):
        self.power = power

    def describe(self) -> str:
        return f"{self.power} hp"


class Car:
    def __init__(self, service: ICarService, engine: Engine):
        self.service = service
        self.engine = engine

    def price(self) -> int:
        return self.service.get_price("car")


class Bicycle:
    def __init__(self):
        self.wheels = 2

    @constructor(public=False)
    @classmethod
    def _tandem(cls, rider: ICarService) -> "Bicycle":
        bicycle = cls()
        bicycle.rider = rider
        return bicycle


class Wallet:
    service: ICarService
    owner: str
    orphan: IOrphanService
    _hidden: ICarService
    limit: ClassVar[int] = 3

    def balance(self) -> int:
        return 10


class Report:
    clock: Annotated[ICarService, Inject()]


class TreeNode:
    parent: Annotated[Optional["TreeNode"], Inject()] = None

    def __init__(self, service: ICarService):
        self.service = service


class Mechanic:
    def inspect(self, service: ICarService, model: str) -> int:
        return service.get_price(model)

    def _repair(self, engine: Engine) -> str:
        return engine.describe()

    def _reset(self) -> bool:
        return True

    @staticmethod
    def rate(hours: int) -> int:
        return hours * 10


class TestMockerBasics:
    """Test cases for creating a mocker."""

    def test_implements_interface(self):
        """Test that Mocker implements IMocker."""
        assert isinstance(Mocker(), IMocker)

    def test_default_options(self):
        """Test that a mocker without options uses the defaults."""
        mocker = Mocker()

        assert mocker.options == MockerOptions()
        assert mocker.strict is False

    def test_strict_setter(self):
        """Test that strict can be switched on."""
        mocker = Mocker()

        mocker.strict = True

        assert mocker.options.strict is True
        with pytest.raises(UnconfiguredCallError):
            mocker.get_substitute(ICarService).object.get_price("car")

    def test_initial_mappings(self):
        """Test that mappings passed to the constructor are registered."""
        mocker = Mocker(mappings={ICarService: TypeMapping(abstract_type=ICarService, concrete_type=CarService)})

        assert type(mocker.resolve(ICarService)) is CarService

    def test_scanning_follows_options(self):
        """Test that scan_implementations is read from the live options."""
        mocker = Mocker()

        mocker.options.scan_implementations = False

        with pytest.raises(UnresolvedTypeError, match="scanning is disabled"):
            mocker.resolve(ICarService)


class TestResolve:
    """Test cases for resolve and create_instance."""

    def test_resolve_builds_with_substitutes(self):
        """Test that dependencies are substituted."""
        mocker = Mocker()

        car = mocker.resolve(Car)

        assert car.service is mocker.get_substitute(ICarService).object
        assert car.price() == 0
        assert car.engine.describe() == "100 hp"

    def test_resolve_caches_instance(self):
        """Test that resolve returns the cached instance."""
        mocker = Mocker()

        assert mocker.resolve(Car) is mocker.resolve(Car)

    def test_resolve_with_arguments_is_not_cached(self):
        """Test that explicit arguments build a new instance."""
        mocker = Mocker()

        assert mocker.resolve(Engine, 5) is not mocker.resolve(Engine, 5)
        assert mocker.resolve(Engine, 5).power == 5

    def test_create_instance_is_fresh(self):
        """Test that create_instance always builds a new instance."""
        mocker = Mocker()

        first = mocker.create_instance(Car)
        second = mocker.create_instance(Car)

        assert first is not second
        assert first.service is second.service

    def test_create_instance_with_overrides(self):
        """Test overriding one parameter."""
        mocker = Mocker()
        engine = Engine(1)

        car = mocker.create_instance(Car, overrides={Engine: engine})

        assert car.engine is engine

    def test_create_instance_non_public(self):
        """Test building with a non-public constructor."""
        mocker = Mocker()

        bicycle = mocker.create_instance_non_public(Bicycle)

        assert bicycle.rider is mocker.get_object(ICarService)

    def test_create_instance_by_type(self):
        """Test building with the constructor taking the given types."""
        mocker = Mocker()

        car = mocker.create_instance_by_type(Car, ICarService, Engine)

        assert isinstance(car, Car)

    def test_self_typed_injected_member(self):
        """Test that an injected member of the built type receives its substitute."""
        mocker = Mocker()

        node = mocker.resolve(TreeNode)

        parent = mocker.get_substitute(TreeNode).object
        assert node.parent is parent
        assert parent.parent is parent
        assert node.service is mocker.get_object(ICarService)


class TestSubstitutes:
    """Test cases for substitute management."""

    def test_get_substitute_is_identity_cached(self):
        """Test that the same type always yields the same substitute."""
        mocker = Mocker()

        substitute = mocker.get_substitute(ICarService)

        assert isinstance(substitute, Substitute)
        assert mocker.get_substitute(ICarService) is substitute

    def test_get_substitute_of_sealed_type_raises(self):
        """Test that sealed types cannot be substituted."""
        with pytest.raises(TypeError, match="sealed"):
            Mocker().get_substitute(int)

    def test_get_required_substitute(self):
        """Test that get_required_substitute does not create substitutes."""
        mocker = Mocker()

        with pytest.raises(SubstituteNotFoundError):
            mocker.get_required_substitute(ICarService)

        substitute = mocker.get_substitute(ICarService)
        assert mocker.get_required_substitute(ICarService) is substitute

    def test_create_substitute_with_arguments(self):
        """Test that constructor arguments reach a partial substitute."""
        mocker = Mocker()

        substitute = mocker.create_substitute(Engine, 250)

        assert substitute.object.power == 250
        assert substitute.object.describe() == "250 hp"
        assert mocker.constructor_history.get(Engine)[-1].arguments == [250]

    def test_create_substitute_twice_raises(self):
        """Test that create_substitute refuses an existing type."""
        mocker = Mocker()
        mocker.get_substitute(ICarService)

        with pytest.raises(DuplicateRegistrationError):
            mocker.create_substitute(ICarService)

    def test_create_standalone_substitute(self):
        """Test that standalone substitutes are not registered."""
        mocker = Mocker()

        substitute = mocker.create_standalone_substitute(ICarService)

        assert isinstance(substitute.object, ICarService)
        assert not mocker.contains(ICarService)

    def test_add_substitute(self):
        """Test seeding a hand-written fake."""
        mocker = Mocker()
        fake = Mock(spec=ICarService)
        fake.get_price.return_value = 42

        assert mocker.add_substitute(ICarService, fake) is fake
        assert mocker.get_substitute(ICarService) is fake
        assert mocker.resolve(Car).price() == 42

    def test_add_substitute_overwrite(self):
        """Test that overwrite replaces an existing substitute."""
        mocker = Mocker()
        mocker.get_substitute(ICarService)
        fake = Mock(spec=ICarService)

        with pytest.raises(DuplicateRegistrationError):
            mocker.add_substitute(ICarService, fake)

        mocker.add_substitute(ICarService, fake, overwrite=True)
        assert mocker.get_substitute(ICarService) is fake

    def test_remove_substitute(self):
        """Test removing a substitute."""
        mocker = Mocker()
        first = mocker.get_substitute(ICarService)

        assert mocker.remove_substitute(ICarService) is True
        assert not mocker.contains(ICarService)
        assert mocker.get_substitute(ICarService) is not first

    def test_configure_substitute(self):
        """Test configuring behavior in one call."""
        mocker = Mocker()

        substitute = mocker.configure_substitute(ICarService, lambda s: s.setup("get_price").returns(10))

        assert substitute is mocker.get_substitute(ICarService)
        assert mocker.resolve(Car).price() == 10

    def test_configure_substitute_resets_existing(self):
        """Test that earlier setups are forgotten unless asked to keep them."""
        mocker = Mocker()
        mocker.configure_substitute(ICarService, lambda s: s.setup("get_price").with_args("car").returns(10))

        mocker.configure_substitute(ICarService, lambda s: s.setup("get_price").with_args("bus").returns(20))
        assert mocker.get_object(ICarService).get_price("car") == 0

        mocker.configure_substitute(
            ICarService, lambda s: s.setup("get_price").with_args("car").returns(30), reset_existing=False
        )
        assert mocker.get_object(ICarService).get_price("bus") == 20
        assert mocker.get_object(ICarService).get_price("car") == 30


class TestTypeMappings:
    """Test cases for register_type_mapping."""

    def test_register_is_chainable(self):
        """Test that register_type_mapping returns the mocker."""
        mocker = Mocker()

        result = mocker.register_type_mapping(ICarService, CarService).register_type_mapping(
            Engine, factory=lambda m: Engine(500)
        )

        assert result is mocker
        assert type(mocker.resolve(ICarService)) is CarService
        assert mocker.get_object(Engine).power == 500

    def test_factory_receives_mocker(self):
        """Test that factories receive the session."""
        mocker = Mocker()
        received = []
        mocker.register_type_mapping(ICarService, CarService, factory=lambda m: received.append(m) or CarService())

        mocker.resolve(ICarService)

        assert received == [mocker]

    def test_registering_drops_cached_instance(self):
        """Test that a new mapping replaces the cached instance."""

        class FastEngine(Engine):
            pass

        mocker = Mocker()
        engine = mocker.resolve(Engine)

        mocker.register_type_mapping(Engine, FastEngine)

        assert mocker.resolve(Engine) is not engine
        assert type(mocker.resolve(Engine)) is FastEngine


class TestHelpers:
    """Test cases for the injection and call helpers."""

    def test_get_object(self):
        """Test the value injected for a type."""
        mocker = Mocker()

        assert mocker.get_object(int) == 0
        assert mocker.get_object(ICarService) is mocker.get_substitute(ICarService).object
        assert mocker.get_object(FileSystem) is mocker.file_system

    def test_add_injections(self):
        """Test filling tagged members of an existing object."""
        mocker = Mocker()
        report = Report()

        assert mocker.add_injections(report) == ["clock"]
        assert report.clock is mocker.get_object(ICarService)

    def test_add_properties(self, caplog):
        """Test filling public annotated attributes that are unset."""
        mocker = Mocker()
        wallet = Wallet()

        with caplog.at_level(logging.WARNING, logger="automocker.application.mocker"):
            assigned = mocker.add_properties(wallet)

        assert assigned == ["service", "owner"]
        assert wallet.service is mocker.get_object(ICarService)
        assert wallet.owner == ""
        assert not hasattr(wallet, "_hidden")
        assert "Could not fill Wallet.orphan" in caplog.text

    def test_call_method_fills_missing_arguments(self):
        """Test calling a function with only some arguments given."""
        mocker = Mocker()

        def quote(service: ICarService, model: str, *, discount: int = 0) -> int:
            return service.get_price(model) - discount

        mocker.get_substitute(ICarService).setup("get_price").returns(50)

        assert mocker.call_method(quote, discount=5) == 45
        assert mocker.call_method(quote, CarService(), "x") == 100

    def test_call_method_keyword_before_resolved_parameters(self):
        """Test that parameters after a keyword argument are resolved into their own slots."""
        mocker = Mocker()

        def handler(count: int, label: str, service: ICarService):
            return count, label, service

        count, label, service = mocker.call_method(handler, label="x")

        assert (count, label) == (0, "x")
        assert service is mocker.get_object(ICarService)

    def test_call_method_on_bound_method(self):
        """Test that bound methods skip self."""
        mocker = Mocker()
        car = mocker.resolve(Car)

        def repaint(self, engine: Engine) -> Engine:
            return engine

        car.repaint = repaint.__get__(car, Car)

        assert isinstance(mocker.call_method(car.repaint), Engine)

    def test_invoke_method(self):
        """Test calling a public method by name with resolved arguments."""
        mocker = Mocker()
        mocker.get_substitute(ICarService).setup("get_price").returns(7)

        assert mocker.invoke_method(Mechanic(), "inspect") == 7
        assert mocker.invoke_method(Mechanic(), "inspect", CarService(), "x") == 100

    def test_invoke_static_method_on_class(self):
        """Test calling a static method through the class."""
        mocker = Mocker()

        assert mocker.invoke_method(Mechanic, "rate", 3) == 30
        assert mocker.invoke_method(Mechanic, "rate") == 0

    def test_invoke_method_falls_back_to_non_public(self, caplog):
        """Test that non-public methods are used when not strict."""
        mocker = Mocker()

        with caplog.at_level(logging.INFO, logger="automocker.application.mocker"):
            result = mocker.invoke_method(Mechanic(), "_repair")

        assert result == "100 hp"
        assert "Using non-public method Mechanic._repair" in caplog.text
        assert mocker.invoke_method(Mechanic(), "_repair", Engine(5), non_public=True) == "5 hp"

    def test_invoke_method_strict(self):
        """Test that strict sessions only reach non-public methods on request."""
        mocker = Mocker(MockerOptions(strict=True))

        with pytest.raises(AttributeError, match="Mechanic has no public method '_reset'"):
            mocker.invoke_method(Mechanic(), "_reset")

        assert mocker.invoke_method(Mechanic(), "_reset", non_public=True) is True

    def test_invoke_missing_method(self):
        """Test that an unknown method name fails."""
        with pytest.raises(AttributeError, match="Mechanic has no method 'fly'"):
            Mocker().invoke_method(Mechanic(), "fly")

    def test_get_required_object(self):
        """Test that a resolved value is returned and None is rejected."""
        mocker = Mocker()
        mocker.register_type_mapping(IOrphanService, factory=lambda m: None)

        assert mocker.get_required_object(ICarService) is mocker.get_object(ICarService)
        with pytest.raises(UnresolvedTypeError, match="resolved to None"):
            mocker.get_required_object(IOrphanService)

    def test_get_list(self):
        """Test building test data from the item index."""
        initialized = []

        cars = Mocker.get_list(3, lambda index: f"car-{index}", lambda index, car: initialized.append((index, car)))

        assert cars == ["car-0", "car-1", "car-2"]
        assert initialized == [(0, "car-0"), (1, "car-1"), (2, "car-2")]
        assert Mocker.get_list(3, None) == []

    def test_get_arg_data_for_class(self):
        """Test the values that would be passed to a constructor."""
        mocker = Mocker()

        service, engine = mocker.get_arg_data(Car)

        assert service is mocker.get_object(ICarService)
        assert isinstance(engine, Engine)

    def test_get_arg_data_for_function(self):
        """Test the values that would be passed to a function."""
        mocker = Mocker()

        def handler(service: ICarService, retries: int = 3):
            pass

        assert mocker.get_arg_data(handler) == [mocker.get_object(ICarService), 3]

    def test_has_parameterless_constructor(self):
        """Test detecting zero-argument constructors."""
        mocker = Mocker()

        assert mocker.has_parameterless_constructor(Bicycle)
        assert not mocker.has_parameterless_constructor(Car)


class TestInnerMockResolution:
    """Test cases for filling attributes of new substitutes."""

    def test_substitute_attributes_are_filled(self):
        """Test that None-valued annotated attributes of new substitutes are filled."""
        mocker = Mocker()

        wallet = mocker.get_object(Wallet)

        assert wallet.service is mocker.get_object(ICarService)
        assert wallet.balance() == 10

    def test_disabled(self):
        """Test that inner_mock_resolution=False leaves attributes unset."""
        mocker = Mocker(MockerOptions(inner_mock_resolution=False))

        wallet = mocker.get_object(Wallet)

        assert not hasattr(wallet, "service")

    def test_strict_skips_filling(self):
        """Test that strict sessions do not fill attributes."""
        mocker = Mocker(MockerOptions(strict=True))

        wallet = mocker.get_object(Wallet)

        assert not hasattr(wallet, "service")


class TestWellKnown:
    """Test cases for the well-known instances."""

    def test_shared_instances(self):
        """Test that the well-known properties return the session's instances."""
        mocker = Mocker()

        assert isinstance(mocker.file_system, MemoryFileSystem)
        assert isinstance(mocker.http_client, HttpSession)
        assert isinstance(mocker.http_adapter, FakeHttpAdapter)
        assert mocker.get_object(requests.Session) is mocker.http_client

    def test_http_client_uses_fake_transport(self):
        """Test that the pre-built session answers from the fake adapter."""
        mocker = Mocker(MockerOptions(http_base_url="http://api.test", http_content='{"ok": true}'))

        response = mocker.http_client.get("/status")

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert mocker.http_adapter.requests[0].url == "http://api.test/status"


class TestLifecycle:
    """Test cases for clear, close and the context manager."""

    def test_clear_forgets_session_state(self):
        """Test that clear drops substitutes, instances and history but keeps mappings."""
        mocker = Mocker()
        mocker.register_type_mapping(ICarService, CarService)
        car = mocker.resolve(Car)

        mocker.clear()

        assert not mocker.contains(Engine)
        assert len(mocker.constructor_history) == 0
        assert mocker.resolve(Car) is not car
        assert type(mocker.resolve(ICarService)) is CarService

    def test_context_manager_closes(self):
        """Test that leaving the block closes the session."""
        with Mocker() as mocker:
            file_system = mocker.file_system
            mocker.get_substitute(ICarService)

        assert not mocker.contains(ICarService)
        assert mocker.file_system is not file_system
