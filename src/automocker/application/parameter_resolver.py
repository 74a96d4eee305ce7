import logging
import typing
from typing import Any, Dict, Optional, Type, get_args, get_origin

from automocker.application.introspection import (
    default_value,
    is_abstract,
    is_sealed,
    type_name,
    unwrap_optional,
)
from automocker.application.mock_registry import MockRegistry
from automocker.application.substitute import Substitute
from automocker.application.type_resolver import TypeResolver
from automocker.domain import IMocker, MockerOptions, ParameterSpec, UnresolvedTypeError

logger = logging.getLogger(__name__)


def injectable(substitute: Any) -> Any:
    """Return the value to inject for a stored substitute.

    Generated substitutes inject their stand-in object. Anything else that was
    seeded into the registry is injected as is.
    """
    if isinstance(substitute, Substitute):
        return substitute.object
    return substitute


def _strip_annotated(annotation: Any) -> Any:
    if get_origin(annotation) is typing.Annotated:
        return get_args(annotation)[0]
    return annotation


class ParameterResolver:
    """Decides the value of each constructor parameter.

    Priority, first match wins:

    1. A per-call override keyed by parameter name or type.
    2. The declared default, unless ``mock_optional`` is on.
    3. The factory of an explicit type mapping.
    4. A well-known convenience instance (not in strict mode, and not when a
       substitute was registered for the type).
    5. The default value of sealed types and non-class annotations.
    6. An already registered substitute.
    7. For abstract types, a substitute, once the type resolver confirms the
       type has a mapping or an implementation.
    8. For other classes, a partial substitute that calls the real members.

    Attributes:
        _mocker: The session, handed to mapping factories.
        _type_resolver: Mapping and scan lookups.
        _registry: The session's substitutes.
        _well_known: The session's convenience instances.
        _options: The session options.
    """

    def __init__(
        self,
        mocker: IMocker,
        type_resolver: TypeResolver,
        registry: MockRegistry,
        well_known: Any,
        options: MockerOptions,
    ) -> None:
        self._mocker = mocker
        self._type_resolver = type_resolver
        self._registry = registry
        self._well_known = well_known
        self._options = options

    def resolve_parameter(
        self,
        parameter: ParameterSpec,
        overrides: Optional[Dict[Any, Any]] = None,
        owner: Optional[Type] = None,
    ) -> Any:
        """Resolve the value passed for one constructor parameter.

        Args:
            parameter: The parameter to resolve.
            overrides: Per-call values keyed by parameter name or type.
            owner: The class declaring the parameter, for error messages.

        Returns:
            The value to pass.

        Raises:
            UnresolvedTypeError: If the parameter has no type hint and no default,
                or its abstract type has no mapping and no implementation.
            AmbiguousResolutionError: If its abstract type has several implementations.
        """
        if overrides:
            if parameter.name in overrides:
                return overrides[parameter.name]
            if parameter.has_annotation and _is_hashable(parameter.annotation) and parameter.annotation in overrides:
                return overrides[parameter.annotation]

        if parameter.has_default and (not self._options.mock_optional or not parameter.has_annotation):
            return parameter.default

        if not parameter.has_annotation:
            raise UnresolvedTypeError(
                owner if owner is not None else object,
                f"parameter '{parameter.name}' has no type hint and no default value",
            )

        return self.resolve_type(parameter.annotation)

    def resolve_type(self, annotation: Any) -> Any:
        """Resolve the value injected for a type hint.

        Args:
            annotation: The type hint. ``Optional[X]`` resolves ``X``.

        Returns:
            A factory product, well-known instance, default value or substitute object.
        """
        annotation = _strip_annotated(annotation)
        inner, _ = unwrap_optional(annotation)
        if get_origin(inner) is not typing.Union:
            annotation = inner

        mapping = self._type_resolver.get_mapping(annotation) if _is_hashable(annotation) else None
        if mapping is not None and mapping.factory is not None:
            logger.debug("Resolving %s with its mapping factory", type_name(annotation))
            return mapping.factory(self._mocker)

        if (
            not self._options.strict
            and _is_hashable(annotation)
            and self._well_known.provides(annotation)
            and not self._registry.contains(annotation)
        ):
            return self._well_known.get(annotation)

        if is_sealed(annotation):
            return default_value(annotation)

        if self._registry.contains(annotation):
            return injectable(self._registry.get(annotation))

        if is_abstract(annotation):
            self._type_resolver.resolve(annotation)
        return injectable(self._registry.get_or_create(annotation))


def _is_hashable(value: Any) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return True
