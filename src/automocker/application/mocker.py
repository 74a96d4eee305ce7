import inspect
import logging
import typing
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, get_origin

from automocker.application.circular_detector import CircularDependencyDetector
from automocker.application.constructor_history import ConstructorHistory
from automocker.application.constructor_selector import ConstructorSelector
from automocker.application.introspection import (
    describe_parameters,
    get_annotated_members,
    is_abstract,
    is_sealed,
    type_name,
)
from automocker.application.mock_registry import MockRegistry
from automocker.application.object_builder import ObjectBuilder
from automocker.application.parameter_resolver import ParameterResolver, injectable
from automocker.application.substitute import Substitute
from automocker.application.type_resolver import TypeResolver
from automocker.domain import AutoMockError, IMocker, MockerOptions, TypeMapping, UnresolvedTypeError
from automocker.infrastructure.well_known import FakeHttpAdapter, HttpSession, MemoryFileSystem, WellKnownInstances

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Mocker(IMocker):
    """Resolution session: builds classes under test with their dependencies substituted.

    Abstract dependencies receive behavior-less substitutes, concrete ones
    receive partial substitutes that run their real members, and a few
    well-known types receive shared in-memory instances. Within one session
    the same type always receives the same substitute.

    Attributes:
        _options: The session options.
        _type_resolver: Explicit mappings and implementation scanning.
        _registry: One substitute per type.
        _instances: Instances cached by ``resolve``.
        _history: Every constructor invocation.
        _detector: The resolution stack.
        _well_known: The shared convenience instances.

    Example:
        >>> mocker = Mocker()
        >>> car = mocker.resolve(Car)
        >>> mocker.get_substitute(ICarService).setup("get_price").returns(10)
        >>> car.price()
        10
    """

    def __init__(
        self,
        options: Optional[MockerOptions] = None,
        mappings: Optional[Dict[Type, TypeMapping]] = None,
    ) -> None:
        """Initialize an empty session.

        Args:
            options: Session options, defaults to ``MockerOptions()``.
            mappings: Initial type mappings keyed by the requested type.
        """
        self._options = options or MockerOptions()
        self._type_resolver = TypeResolver(options=self._options)
        for mapping in (mappings or {}).values():
            self._type_resolver.add_mapping(mapping)

        self._registry = MockRegistry(self._create_substitute, self._on_substitute_created)
        self._instances: Dict[Type, Any] = {}
        self._history = ConstructorHistory()
        self._detector = CircularDependencyDetector()
        self._well_known = WellKnownInstances(self._options)

        self._parameter_resolver = ParameterResolver(
            self, self._type_resolver, self._registry, self._well_known, self._options
        )
        self._selector = ConstructorSelector(self._parameter_resolver, self._options)
        self._builder = ObjectBuilder(
            self,
            self._type_resolver,
            self._selector,
            self._parameter_resolver,
            self._detector,
            self._history,
        )

    @property
    def options(self) -> MockerOptions:
        return self._options

    @property
    def strict(self) -> bool:
        """Whether the session is strict.

        Strict sessions make unconfigured substitute calls raise and skip the
        well-known instances and the non-public constructor fallback. Changing
        it affects substitutes created afterwards.
        """
        return self._options.strict

    @strict.setter
    def strict(self, value: bool) -> None:
        self._options.strict = value

    @property
    def constructor_history(self) -> ConstructorHistory:
        return self._history

    @property
    def well_known(self) -> WellKnownInstances:
        return self._well_known

    @property
    def file_system(self) -> MemoryFileSystem:
        return self._well_known.file_system

    @property
    def http_client(self) -> HttpSession:
        return self._well_known.http_client

    @property
    def http_adapter(self) -> FakeHttpAdapter:
        return self._well_known.http_adapter

    def resolve(self, requested_type: Type[T], *args: Any, overrides: Optional[dict] = None) -> T:
        """Build an instance of the requested type with its dependencies resolved.

        Concrete types are constructed directly, abstract ones through their
        mapping or single implementation. Without explicit arguments or
        overrides the instance is cached, so resolving the type again returns it.

        Args:
            requested_type: The type to build.
            *args: Explicit constructor arguments.
            overrides: Per-call values keyed by parameter name or type.

        Returns:
            The instance.

        Raises:
            UnresolvedTypeError: If the type or a dependency cannot be resolved.
            AmbiguousResolutionError: If several implementations compete.
            NoMatchingConstructorError: If no constructor fits.
            AmbiguousConstructorError: If several constructors fit equally.
            CyclicDependencyError: If the type depends on itself.

        Example:
            >>> car = mocker.resolve(Car)
            >>> assert car.service is mocker.get_object(ICarService)
        """
        cacheable = not args and not overrides
        if cacheable and requested_type in self._instances:
            return self._instances[requested_type]

        instance = self._builder.build(requested_type, *args, overrides=overrides)
        if cacheable:
            self._instances[requested_type] = instance
        return instance

    def create_instance(self, requested_type: Type[T], *args: Any, overrides: Optional[dict] = None) -> T:
        """Build a new instance every time, never cached."""
        return self._builder.build(requested_type, *args, overrides=overrides)

    def create_instance_non_public(
        self, requested_type: Type[T], *args: Any, overrides: Optional[dict] = None
    ) -> T:
        """Build a new instance with a non-public constructor."""
        return self._builder.build(requested_type, *args, overrides=overrides, include_non_public=True)

    def create_instance_by_type(
        self, requested_type: Type[T], *parameter_types: Type, overrides: Optional[dict] = None
    ) -> T:
        """Build a new instance with the constructor taking exactly these parameter types.

        Example:
            >>> car = mocker.create_instance_by_type(Car, IEngine, IDriver)
        """
        return self._builder.build_by_types(requested_type, parameter_types, overrides=overrides)

    def get_substitute(self, substitute_type: Type[T]) -> Any:
        """Return the session's substitute for the type, creating it on first use.

        Returns exactly what was seeded with ``add_substitute`` when the type was seeded.

        Raises:
            TypeError: If the type is sealed or not a class.
        """
        return self._registry.get_or_create(substitute_type)

    def get_required_substitute(self, substitute_type: Type[T]) -> Any:
        """Return the substitute for the type without creating one.

        Raises:
            SubstituteNotFoundError: If the type has no substitute.
        """
        return self._registry.get_required(substitute_type)

    def create_substitute(self, substitute_type: Type[T], *args: Any) -> Substitute:
        """Create and register a substitute, passing constructor arguments to concrete types.

        Raises:
            DuplicateRegistrationError: If the type already has a substitute.
        """
        return self._registry.create(substitute_type, *args)

    def create_standalone_substitute(self, substitute_type: Type[T], *args: Any) -> Substitute:
        """Create a substitute that is not registered in the session."""
        return self._create_substitute(substitute_type, *args)

    def register_type_mapping(
        self,
        abstract_type: Type,
        concrete_type: Optional[Type] = None,
        factory: Optional[Callable[[IMocker], Any]] = None,
        replace: bool = False,
        arguments: Optional[List[Any]] = None,
    ) -> "Mocker":
        """Register what to build when the abstract type is requested.

        Args:
            abstract_type: The requested type.
            concrete_type: The class to build, defaults to the requested type.
            factory: Receives the mocker and returns the instance.
            replace: Replace an existing mapping.
            arguments: Default constructor arguments for the concrete type.

        Returns:
            The mocker, for chaining.

        Raises:
            InvalidTypeMappingError: If the mapping can never produce an instance.
            DuplicateRegistrationError: If a mapping exists and replace is False.

        Example:
            >>> mocker.register_type_mapping(ICarService, CarService).register_type_mapping(
            ...     IClock, factory=lambda m: FixedClock(2024)
            ... )
        """
        mapping = TypeMapping(
            abstract_type=abstract_type,
            concrete_type=concrete_type or abstract_type,
            factory=factory,
            arguments=list(arguments or []),
        )
        self._type_resolver.add_mapping(mapping, replace=replace)
        self._instances.pop(abstract_type, None)
        return self

    def add_substitute(self, substitute_type: Type, substitute: Any, overwrite: bool = False) -> Any:
        """Seed the session with a substitute: a ``Substitute``, a ``Mock`` or any fake.

        Raises:
            DuplicateRegistrationError: If the type has a substitute and overwrite is False.
        """
        self._registry.add(substitute_type, substitute, overwrite=overwrite)
        return substitute

    def remove_substitute(self, substitute_type: Type, substitute: Any = None) -> bool:
        return self._registry.remove(substitute_type, substitute)

    def contains(self, substitute_type: Type) -> bool:
        return self._registry.contains(substitute_type)

    def configure_substitute(
        self,
        substitute_type: Type[T],
        configurator: Callable[[Any], None],
        reset_existing: bool = True,
    ) -> Any:
        """Fetch or create a substitute and apply behavior configuration.

        Args:
            substitute_type: The substituted type.
            configurator: Receives the substitute.
            reset_existing: Forget earlier setups of an existing ``Substitute`` first.

        Example:
            >>> mocker.configure_substitute(
            ...     ICarService, lambda s: s.setup("get_price").returns(10)
            ... )
        """
        substitute = self._registry.get(substitute_type)
        if substitute is None:
            substitute = self._registry.get_or_create(substitute_type)
        elif reset_existing and isinstance(substitute, Substitute):
            substitute.reset()
        configurator(substitute)
        return substitute

    def get_object(self, dependency_type: Type[T]) -> T:
        """Return the value that would be injected for a parameter of this type."""
        return self._parameter_resolver.resolve_type(dependency_type)

    def get_required_object(self, dependency_type: Type[T]) -> T:
        """Return the value ``get_object`` would inject, failing when it is None.

        Raises:
            UnresolvedTypeError: If the type resolves to None.
        """
        value = self.get_object(dependency_type)
        if value is None:
            raise UnresolvedTypeError(dependency_type, "resolved to None")
        return value

    def add_injections(self, obj: Any, reference_type: Optional[Type] = None) -> List[str]:
        """Fill the ``Annotated[..., Inject()]`` members of an object that are unset."""
        return self._builder.inject_members(obj, reference_type)

    def add_properties(self, obj: Any, reference_type: Optional[Type] = None) -> List[str]:
        """Fill the public annotated attributes of an object that are ``None``.

        Best effort: attributes whose type cannot be resolved are logged and skipped.

        Returns:
            The names of the attributes that were assigned.
        """
        assigned = []
        for name, annotation in get_annotated_members(reference_type or type(obj)).items():
            if name.startswith("_") or get_origin(annotation) is typing.ClassVar:
                continue
            if getattr(obj, name, None) is not None:
                continue
            try:
                setattr(obj, name, self._parameter_resolver.resolve_type(annotation))
            except (AutoMockError, AttributeError, TypeError) as error:
                logger.warning("Could not fill %s.%s: %s", type_name(type(obj)), name, error)
                continue
            assigned.append(name)
        return assigned

    def call_method(self, method: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Call a function, resolving every parameter the caller did not pass.

        Example:
            >>> mocker.call_method(car.drive, speed=120)  # the other parameters are resolved
        """
        bound = inspect.signature(method).bind_partial(*args, **kwargs)
        owner = _owner_of(method)
        for parameter in describe_parameters(method):
            if parameter.name not in bound.arguments:
                bound.arguments[parameter.name] = self._parameter_resolver.resolve_parameter(parameter, owner=owner)
        return method(*bound.args, **bound.kwargs)

    def invoke_method(self, target: Any, name: str, *args: Any, non_public: bool = False, **kwargs: Any) -> Any:
        """Call a method by name, resolving every argument the caller did not pass.

        Names starting with an underscore are non-public. They are used when
        ``non_public`` is set, and otherwise only as a fallback outside strict
        sessions, as constructor selection does.

        Args:
            target: An instance, or a class for class and static methods.
            name: The method name.
            *args: Leading arguments; the rest are resolved.
            non_public: Allow non-public methods.
            **kwargs: Arguments passed by keyword.

        Raises:
            AttributeError: If no callable member with that name can be used.

        Example:
            >>> mocker.invoke_method(car, "_refuel", 40)
        """
        owner = target if inspect.isclass(target) else type(target)
        hidden = name.startswith("_")
        method = getattr(target, name, None)
        if not callable(method) or (hidden and not non_public and self.strict):
            visibility = "" if non_public or not self.strict else "public "
            raise AttributeError(f"{type_name(owner)} has no {visibility}method '{name}'")

        if hidden and not non_public:
            logger.info("Using non-public method %s.%s", type_name(owner), name)
        return self.call_method(method, *args, **kwargs)

    @staticmethod
    def get_list(
        count: int,
        func: Optional[Callable[[int], T]],
        init_action: Optional[Callable[[int, T], None]] = None,
    ) -> List[T]:
        """Build a list of test items from their index.

        Args:
            count: The number of items.
            func: Receives the index and returns the item. None gives an empty list.
            init_action: Receives the index and the item after it is created.

        Example:
            >>> cars = Mocker.get_list(3, lambda i: Car(name=str(i)))
        """
        if func is None:
            return []
        items = []
        for index in range(count):
            item = func(index)
            if init_action is not None:
                init_action(index, item)
            items.append(item)
        return items

    def get_arg_data(self, target: Any, overrides: Optional[dict] = None) -> List[Any]:
        """Return the values that would be passed to a class's constructor or to a function."""
        if inspect.isclass(target):
            concrete_type = self._type_resolver.resolve(target).concrete_type
            _, values = self._selector.select(concrete_type, overrides=overrides)
            return values
        return [
            self._parameter_resolver.resolve_parameter(parameter, overrides, _owner_of(target))
            for parameter in describe_parameters(target)
        ]

    def has_parameterless_constructor(self, requested_type: Type, include_non_public: bool = False) -> bool:
        return any(
            candidate.arity == 0
            for candidate in self._selector.candidates(requested_type, include_non_public)
        )

    def clear(self) -> None:
        """Forget every substitute, cached instance and history entry. Mappings are kept."""
        self._registry.clear()
        self._instances.clear()
        self._history.clear()
        self._detector.clear()

    def close(self) -> None:
        """Release the well-known instances and clear the session."""
        self._well_known.close()
        self.clear()

    def __enter__(self) -> "Mocker":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        self.close()
        return False

    def _create_substitute(self, contract: Type, *args: Any) -> Substitute:
        if is_sealed(contract):
            raise TypeError(f"Cannot create a substitute for sealed type {type_name(contract)}")

        with self._detector.track(contract):
            if is_abstract(contract):
                return Substitute(contract, strict=self.strict)
            return Substitute(
                contract,
                strict=self.strict,
                factory=lambda proxy_type: self._construct_partial(contract, proxy_type, args),
            )

    def _construct_partial(self, contract: Type, proxy_type: Type, args: tuple) -> Any:
        candidate, values = self._selector.select(contract, args)
        instance = candidate.create(values, target=proxy_type)
        self._history.record(contract, candidate, values)
        return instance

    def _on_substitute_created(self, substitute_type: Type, substitute: Any) -> None:
        obj = injectable(substitute)
        self._builder.inject_members(obj, substitute_type)
        if self._options.inner_mock_resolution and not self.strict:
            self.add_properties(obj, substitute_type)


def _owner_of(func: Any) -> Optional[Type]:
    owner = getattr(func, "__self__", None)
    if owner is None or inspect.isclass(owner):
        return owner
    return type(owner)
