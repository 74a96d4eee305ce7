from typing import Any, List, Optional, Sequence, Type


def _name(obj: Any) -> str:
    return getattr(obj, "__name__", None) or repr(obj)


class AutoMockError(Exception):
    """Base exception for resolution and substitute errors."""


class UnresolvedTypeError(AutoMockError):
    """Raised when a requested type cannot be mapped to something buildable.

    This occurs when:
    - An abstract type has no mapping and no implementation in its package.
    - Subclass scanning is disabled and no mapping exists.
    - A constructor parameter lacks a type hint and has no default value.

    Attributes:
        requested_type: The type that could not be resolved.
        reason: Optional reason for the failure.
    """

    def __init__(self, requested_type: Type, reason: Optional[str] = None) -> None:
        self.requested_type = requested_type
        self.reason = reason
        message = f"Cannot resolve type: {_name(requested_type)}"
        if reason:
            message += f". Reason: {reason}"
        super().__init__(message)


class AmbiguousResolutionError(AutoMockError):
    """Raised when more than one implementation of an abstract type is found.

    Attributes:
        requested_type: The abstract type being resolved.
        implementations: The competing implementations.
    """

    def __init__(self, requested_type: Type, implementations: Sequence[Type]) -> None:
        self.requested_type = requested_type
        self.implementations = list(implementations)
        names = ", ".join(_name(cls) for cls in self.implementations)
        message = (
            f"Multiple implementations of {_name(requested_type)} found ({names}). "
            "Register a type mapping to choose one."
        )
        super().__init__(message)


class NoMatchingConstructorError(AutoMockError):
    """Raised when no constructor of a type can be used.

    Attributes:
        owner: The class whose constructors were searched.
        reason: Optional reason for the failure.
    """

    def __init__(self, owner: Type, reason: Optional[str] = None) -> None:
        self.owner = owner
        self.reason = reason
        message = f"Unable to find a matching constructor for {_name(owner)}"
        if reason:
            message += f". Reason: {reason}"
        super().__init__(message)


class AmbiguousConstructorError(AutoMockError):
    """Raised when several viable constructors share the largest arity.

    Attributes:
        owner: The class being built.
        candidates: Names of the tied constructors.
    """

    def __init__(self, owner: Type, candidates: Sequence[str]) -> None:
        self.owner = owner
        self.candidates = list(candidates)
        message = (
            f"Multiple constructors of {_name(owner)} with the same arity are usable "
            f"({', '.join(self.candidates)}). Cannot decide which to use."
        )
        super().__init__(message)


class DuplicateRegistrationError(AutoMockError):
    """Raised when registering a type that is already registered.

    Attributes:
        registered_type: The type that is already present.
        registry: Which registry rejected the entry.
    """

    def __init__(self, registered_type: Type, registry: str = "substitute") -> None:
        self.registered_type = registered_type
        self.registry = registry
        message = f"{_name(registered_type)} already has a {registry} registered"
        super().__init__(message)


class CyclicDependencyError(AutoMockError):
    """Raised when a cycle is detected in the constructor-parameter graph.

    Attributes:
        dependency_chain: List of types involved in the cycle.
    """

    def __init__(self, dependency_chain: List[Type]) -> None:
        self.dependency_chain = dependency_chain
        message = f"Cyclic dependency detected: {' -> '.join([_name(cls) for cls in dependency_chain])}"
        super().__init__(message)


class InvalidTypeMappingError(AutoMockError):
    """Raised for type mappings that can never produce a usable instance.

    Attributes:
        abstract_type: The type being mapped.
        concrete_type: The type it was mapped to.
    """

    def __init__(self, abstract_type: Type, concrete_type: Type, reason: str) -> None:
        self.abstract_type = abstract_type
        self.concrete_type = concrete_type
        super().__init__(f"Invalid mapping {_name(abstract_type)} -> {_name(concrete_type)}: {reason}")


class UnconfiguredCallError(AutoMockError):
    """Raised by strict substitutes when a member without a setup is used.

    Attributes:
        contract: The substituted type.
        member: Name of the member that was called.
    """

    def __init__(self, contract: Type, member: str) -> None:
        self.contract = contract
        self.member = member
        super().__init__(f"No setup configured for {_name(contract)}.{member}")


class SubstituteNotFoundError(AutoMockError):
    """Raised when a substitute is required but was never created."""

    def __init__(self, requested_type: Type) -> None:
        self.requested_type = requested_type
        super().__init__(f"No substitute registered for {_name(requested_type)}")
