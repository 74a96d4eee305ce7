"""Application layer - Generated substitutes with an explicit setup table."""

import inspect
import logging
import types
from typing import Any, Callable, Dict, List, Optional, Tuple, Type
from unittest.mock import Mock

from automocker.application.introspection import (
    PROXY_MARKER,
    default_value,
    get_annotated_members,
    is_abstract,
    is_sealed,
    resolve_type_hints,
    type_name,
)
from automocker.domain import UnconfiguredCallError

logger = logging.getLogger(__name__)

SUBSTITUTE_ATTRIBUTE = "__automocker_substitute__"

_UNSET = object()


class Setup:
    """One entry of a substitute's call-pattern table.

    Created by ``Substitute.setup``. Without ``with_args`` the entry matches
    every call of the member. A setup only takes part in matching once a
    response has been chosen.

    Example:
        >>> substitute.setup("get_price").with_args("ABC").returns(10)
        >>> substitute.setup("get_price").raises(KeyError("unknown"))
    """

    def __init__(self, substitute: "Substitute", member: str) -> None:
        self._substitute = substitute
        self._member = member
        self._pattern: Optional[Dict[str, Any]] = None
        self._response: Optional[Callable[[Any, Tuple[Any, ...], Dict[str, Any]], Any]] = None

    @property
    def member(self) -> str:
        return self._member

    @property
    def is_configured(self) -> bool:
        return self._response is not None

    def with_args(self, *args: Any, **kwargs: Any) -> "Setup":
        """Only match calls with these arguments. ``unittest.mock.ANY`` matches any value."""
        self._pattern = self._substitute._normalize(self._member, args, kwargs)
        return self

    def returns(self, value: Any) -> "Substitute":
        self._response = lambda instance, args, kwargs: value
        return self._substitute

    def raises(self, exception: Any) -> "Substitute":
        def respond(instance, args, kwargs):
            raise exception() if isinstance(exception, type) else exception

        self._response = respond
        return self._substitute

    def calls(self, func: Callable[..., Any]) -> "Substitute":
        """Answer matching calls with ``func(*args, **kwargs)``."""
        self._response = lambda instance, args, kwargs: func(*args, **kwargs)
        return self._substitute

    def calls_base(self) -> "Substitute":
        """Answer matching calls with the contract's own implementation.

        Raises:
            TypeError: If the member has no implementation to call.
        """
        base = self._substitute._base_call(self._member)
        if base is None:
            raise TypeError(f"{type_name(self._substitute.contract)}.{self._member} has no base implementation")
        self._response = base
        return self._substitute

    def matches(self, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> bool:
        if self._pattern is None:
            return True
        return self._pattern == self._substitute._normalize(self._member, args, kwargs)

    def invoke(self, instance: Any, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Any:
        return self._response(instance, args, kwargs)


class Substitute:
    """A generated stand-in for a contract type with configurable behavior.

    The stand-in (``object``) is an instance of a subclass of the contract
    generated at runtime, so it passes ``isinstance`` checks. Every public
    method is routed through the setup table and recorded on ``mock``.
    Properties, and the annotated data members of abstract contracts, are
    stubbed and settable.

    Unconfigured calls raise ``UnconfiguredCallError`` when strict. Otherwise
    they run the contract's implementation when ``call_base`` is on and the
    member is not abstract, and return the default value of the member's
    return annotation in every other case.

    Attributes:
        contract: The substituted type.
        strict: Whether unconfigured calls raise.
        call_base: Whether unconfigured calls run the contract's implementation.
        mock: Call recorder; assert with the standard ``unittest.mock`` API.

    Example:
        >>> substitute = Substitute(ICarService)
        >>> substitute.setup("get_price").returns(10)
        >>> substitute.object.get_price("ABC")
        10
        >>> substitute.mock.get_price.assert_called_once_with("ABC")
    """

    def __init__(
        self,
        contract: Type,
        strict: bool = False,
        call_base: Optional[bool] = None,
        factory: Optional[Callable[[Type], Any]] = None,
    ) -> None:
        """Generate the proxy type and create the stand-in object.

        Args:
            contract: The type to substitute.
            strict: Raise on calls that have no setup.
            call_base: Run the contract's implementation for unconfigured calls.
                Defaults to True for concrete classes and False for abstract ones.
            factory: Receives the generated proxy type and returns the stand-in.
                Used to run a concrete contract's constructor. Without a factory
                the stand-in is allocated without calling ``__init__``.

        Raises:
            TypeError: If the contract is sealed or not a class.
        """
        if is_sealed(contract):
            raise TypeError(f"Cannot create a substitute for sealed type {type_name(contract)}")

        self.contract = contract
        self.strict = strict
        self.call_base = not is_abstract(contract) if call_base is None else call_base
        self.mock = Mock(spec=contract)

        self._setups: List[Setup] = []
        self._property_values: Dict[str, Any] = {}
        self._methods: Dict[str, Any] = {}
        self._properties: Dict[str, Optional[property]] = {}
        self._signatures: Dict[str, Optional[inspect.Signature]] = {}
        self._annotations: Dict[str, Any] = {}

        self.proxy_type = self._build_proxy_type()
        self.object = self._create_object(factory)
        logger.debug("Created substitute for %s", type_name(contract))

    def __repr__(self) -> str:
        return f"Substitute({type_name(self.contract)}, strict={self.strict}, call_base={self.call_base})"

    @property
    def members(self) -> List[str]:
        """Names of every proxied method and stubbed property."""
        return sorted(list(self._methods) + list(self._properties))

    def setup(self, member: str) -> Setup:
        """Start a setup for a method or property.

        Raises:
            AttributeError: If the contract has no such proxied member.
        """
        if member not in self._methods and member not in self._properties:
            raise AttributeError(f"{type_name(self.contract)} has no substitutable member '{member}'")
        entry = Setup(self, member)
        self._setups.append(entry)
        return entry

    def setup_property(self, name: str, value: Any) -> "Substitute":
        """Set the value returned by a stubbed property.

        Raises:
            AttributeError: If the contract has no such property.
        """
        if name not in self._properties:
            raise AttributeError(f"{type_name(self.contract)} has no property '{name}'")
        self._property_values[name] = value
        return self

    def reset(self) -> None:
        """Forget every setup, property value and recorded call."""
        self._setups.clear()
        self._property_values.clear()
        self.mock.reset_mock()

    def _build_proxy_type(self) -> Type:
        contract = self.contract
        abstract_members = set(getattr(contract, "__abstractmethods__", ()))
        namespace: Dict[str, Any] = {
            PROXY_MARKER: True,
            SUBSTITUTE_ATTRIBUTE: self,
            "__module__": contract.__module__,
        }

        for name in dir(contract):
            if name.startswith("_") and name not in abstract_members:
                continue
            attribute = inspect.getattr_static(contract, name)
            if isinstance(attribute, property):
                namespace[name] = self._stub_property(name, attribute)
            elif inspect.isfunction(attribute):
                namespace[name] = self._proxy_method(name, attribute)

        if is_abstract(contract):
            for name, annotation in get_annotated_members(contract).items():
                if name.startswith("_") or name in namespace or hasattr(contract, name):
                    continue
                self._annotations[name] = annotation
                namespace[name] = self._stub_property(name, None)

        proxy_type = types.new_class(
            f"{contract.__name__}Substitute",
            (contract,),
            exec_body=lambda body: body.update(namespace),
        )
        proxy_type.__qualname__ = f"{contract.__qualname__}Substitute"
        # Members that cannot be proxied (abstract static or class methods) must not block instantiation.
        proxy_type.__abstractmethods__ = frozenset()
        return proxy_type

    def _create_object(self, factory: Optional[Callable[[Type], Any]]) -> Any:
        if factory is not None:
            return factory(self.proxy_type)
        return self.proxy_type.__new__(self.proxy_type)

    def _proxy_method(self, name: str, function: Any) -> Any:
        substitute = self
        self._methods[name] = function
        self._annotations[name] = resolve_type_hints(function, self.contract).get("return")
        try:
            signature = inspect.signature(function)
            self._signatures[name] = signature.replace(parameters=list(signature.parameters.values())[1:])
        except (TypeError, ValueError):
            self._signatures[name] = None
        setattr(self.mock, name, Mock())

        if inspect.iscoroutinefunction(function):

            async def proxy(self, *args, **kwargs):
                result = substitute._invoke(self, name, args, kwargs)
                if inspect.isawaitable(result):
                    return await result
                return result

        else:

            def proxy(self, *args, **kwargs):
                return substitute._invoke(self, name, args, kwargs)

        proxy.__name__ = name
        proxy.__qualname__ = f"{self.contract.__qualname__}Substitute.{name}"
        proxy.__doc__ = function.__doc__
        if self._signatures[name] is not None:
            proxy.__signature__ = inspect.signature(function)
        return proxy

    def _stub_property(self, name: str, base: Optional[property]) -> property:
        substitute = self
        self._properties[name] = base
        if base is not None and base.fget is not None:
            self._annotations[name] = resolve_type_hints(base.fget, self.contract).get("return")

        def getter(instance):
            return substitute._get_property(instance, name)

        def setter(instance, value):
            substitute._property_values[name] = value

        return property(getter, setter, doc=getattr(base, "__doc__", None))

    def _normalize(self, member: str, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Dict[str, Any]:
        signature = self._signatures.get(member)
        if signature is not None:
            try:
                bound = signature.bind_partial(*args, **kwargs)
                bound.apply_defaults()
                return dict(bound.arguments)
            except TypeError:
                pass
        return {"args": tuple(args), "kwargs": dict(kwargs)}

    def _find_setup(self, member: str, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Optional[Setup]:
        for entry in reversed(self._setups):
            if entry.member == member and entry.is_configured and entry.matches(args, kwargs):
                return entry
        return None

    def _base_call(self, member: str) -> Optional[Callable[[Any, Tuple[Any, ...], Dict[str, Any]], Any]]:
        if member in self._methods:
            function = self._methods[member]
            if getattr(function, "__isabstractmethod__", False):
                return None
            return lambda instance, args, kwargs: function(instance, *args, **kwargs)

        base = self._properties.get(member)
        if base is None or base.fget is None or getattr(base.fget, "__isabstractmethod__", False):
            return None
        return lambda instance, args, kwargs: base.fget(instance)

    def _invoke(self, instance: Any, member: str, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Any:
        getattr(self.mock, member)(*args, **kwargs)
        return self._respond(instance, member, args, kwargs)

    def _get_property(self, instance: Any, member: str) -> Any:
        value = self._property_values.get(member, _UNSET)
        if value is not _UNSET:
            return value
        return self._respond(instance, member, (), {})

    def _respond(self, instance: Any, member: str, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Any:
        entry = self._find_setup(member, args, kwargs)
        if entry is not None:
            return entry.invoke(instance, args, kwargs)
        if self.strict:
            raise UnconfiguredCallError(self.contract, member)
        if self.call_base:
            base = self._base_call(member)
            if base is not None:
                return base(instance, args, kwargs)
        return default_value(self._annotations.get(member))
