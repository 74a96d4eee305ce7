import logging
from typing import Dict, List, Optional, Type

from automocker.application.introspection import is_abstract, is_protocol, is_proxy, type_name
from automocker.domain import (
    AmbiguousResolutionError,
    DuplicateRegistrationError,
    InvalidTypeMappingError,
    ITypeResolver,
    MockerOptions,
    ResolutionSource,
    ResolvedType,
    TypeMapping,
    UnresolvedTypeError,
)

logger = logging.getLogger(__name__)


def _root_package(cls: Type) -> str:
    return (cls.__module__ or "").split(".")[0]


class TypeResolver(ITypeResolver):
    """Maps requested types to the concrete type or factory that builds them.

    Explicit mappings are consulted first. Abstract types without a mapping
    fall back to scanning the subclasses defined in the same top-level package
    as the requested type.

    Attributes:
        _mappings: Explicit mappings keyed by the requested type.
        _options: The session options; ``scan_implementations`` is read on every resolve.
    """

    def __init__(
        self,
        mappings: Optional[Dict[Type, TypeMapping]] = None,
        options: Optional[MockerOptions] = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            mappings: Optional initial mappings (mock dependency injection).
            options: Session options, defaults to ``MockerOptions()``.
        """
        self._mappings: Dict[Type, TypeMapping] = dict(mappings or {})
        self._options = options or MockerOptions()

    def add_mapping(self, mapping: TypeMapping, replace: bool = False) -> None:
        """Register an explicit mapping after validating it.

        Args:
            mapping: The mapping to add.
            replace: Replace an existing mapping for the same type.

        Raises:
            InvalidTypeMappingError: If the mapping can never produce an instance.
            DuplicateRegistrationError: If a mapping exists and replace is False.

        Example:
            >>> resolver.add_mapping(TypeMapping(abstract_type=ICarService, concrete_type=CarService))
        """
        self.validate(mapping)
        if mapping.abstract_type in self._mappings and not replace:
            raise DuplicateRegistrationError(mapping.abstract_type, registry="type mapping")

        self._mappings[mapping.abstract_type] = mapping
        logger.debug(
            "Mapped %s to %s%s",
            type_name(mapping.abstract_type),
            type_name(mapping.concrete_type),
            " with factory" if mapping.factory else "",
        )

    @staticmethod
    def validate(mapping: TypeMapping) -> None:
        """Check that a mapping can produce an instance of the abstract type.

        Raises:
            InvalidTypeMappingError: If the concrete type is abstract without a factory,
                or does not derive from the abstract type.
        """
        abstract_type, concrete_type = mapping.abstract_type, mapping.concrete_type

        if is_abstract(concrete_type) and mapping.factory is None:
            if concrete_type is abstract_type:
                reason = "an abstract type cannot be mapped to itself without a factory"
            else:
                reason = f"{type_name(concrete_type)} is abstract; map to a concrete class"
            raise InvalidTypeMappingError(abstract_type, concrete_type, reason)

        if concrete_type is abstract_type or is_protocol(abstract_type):
            return
        if not issubclass(concrete_type, abstract_type):
            raise InvalidTypeMappingError(
                abstract_type,
                concrete_type,
                f"{type_name(concrete_type)} is not a subclass of {type_name(abstract_type)}",
            )

    def remove_mapping(self, abstract_type: Type) -> bool:
        """Remove the mapping for a type, returning whether one existed."""
        return self._mappings.pop(abstract_type, None) is not None

    def get_mapping(self, requested_type: Type) -> Optional[TypeMapping]:
        """Return the explicit mapping for a type, if any."""
        return self._mappings.get(requested_type)

    def resolve(self, requested_type: Type) -> ResolvedType:
        """Map the requested type to what should be built.

        1. An explicit mapping wins.
        2. A concrete type is returned unchanged.
        3. An abstract type is resolved to its single implementation.

        Args:
            requested_type: The type being requested.

        Returns:
            The resolved type description.

        Raises:
            UnresolvedTypeError: If an abstract type has no implementation.
            AmbiguousResolutionError: If it has more than one.
        """
        mapping = self._mappings.get(requested_type)
        if mapping is not None:
            return ResolvedType(
                requested_type=requested_type,
                concrete_type=mapping.concrete_type,
                source=ResolutionSource.MAPPING,
                factory=mapping.factory,
                arguments=list(mapping.arguments),
            )

        if not is_abstract(requested_type):
            return ResolvedType(
                requested_type=requested_type,
                concrete_type=requested_type,
                source=ResolutionSource.SELF,
            )

        if not self._options.scan_implementations:
            raise UnresolvedTypeError(requested_type, "no type mapping registered and scanning is disabled")

        implementations = self.find_implementations(requested_type)
        if len(implementations) > 1:
            raise AmbiguousResolutionError(requested_type, implementations)
        if not implementations:
            raise UnresolvedTypeError(
                requested_type,
                f"no type mapping registered and no implementation found in package '{_root_package(requested_type)}'",
            )

        logger.debug("Resolved %s to %s by scanning", type_name(requested_type), type_name(implementations[0]))
        return ResolvedType(
            requested_type=requested_type,
            concrete_type=implementations[0],
            source=ResolutionSource.SCAN,
        )

    def find_implementations(self, requested_type: Type) -> List[Type]:
        """Find the concrete classes implementing an abstract type.

        Walks the subclass tree breadth first. Abstract intermediates are not
        implementations and are not descended into, so classes reachable only
        through another interface are excluded. Generated substitute classes
        and classes from other top-level packages are ignored.

        Args:
            requested_type: The abstract type.

        Returns:
            The implementations, sorted by qualified name.
        """
        package = _root_package(requested_type)
        found: List[Type] = []
        seen = set()
        queue = list(requested_type.__subclasses__())

        while queue:
            subclass = queue.pop(0)
            if subclass in seen:
                continue
            seen.add(subclass)

            if is_proxy(subclass) or is_abstract(subclass):
                continue
            if _root_package(subclass) == package:
                found.append(subclass)
            queue.extend(subclass.__subclasses__())

        return sorted(found, key=lambda cls: f"{cls.__module__}.{cls.__qualname__}")

    def clear(self) -> None:
        """Remove every mapping."""
        self._mappings.clear()
