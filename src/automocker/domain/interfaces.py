from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Type, TypeVar

from automocker.domain.models import ResolvedType, TypeMapping

T = TypeVar("T")


class IMocker(ABC):
    """Abstract interface for the resolution session used by tests."""

    @abstractmethod
    def resolve(self, requested_type: Type[T], *args: Any, overrides: Optional[dict] = None) -> T:
        """Build an instance of the requested type with its dependencies resolved.

        Args:
            requested_type: The type to build.
            *args: Optional explicit constructor arguments.
            overrides: Optional per-call values keyed by parameter name or type.
        """

    @abstractmethod
    def get_substitute(self, substitute_type: Type[T]) -> Any:
        """Return the cached substitute for the type, creating it if absent.

        Args:
            substitute_type: The type to substitute.
        """

    @abstractmethod
    def get_object(self, dependency_type: Type[T]) -> T:
        """Return the value that would be injected for the type.

        Args:
            dependency_type: The parameter type.
        """

    @abstractmethod
    def register_type_mapping(
        self,
        abstract_type: Type,
        concrete_type: Optional[Type] = None,
        factory: Optional[Callable[["IMocker"], Any]] = None,
        replace: bool = False,
        arguments: Optional[List[Any]] = None,
    ) -> "IMocker":
        """Register what to build when the abstract type is requested."""

    @abstractmethod
    def add_substitute(self, substitute_type: Type, substitute: Any, overwrite: bool = False) -> Any:
        """Seed the session with a caller-supplied substitute."""

    @abstractmethod
    def configure_substitute(
        self,
        substitute_type: Type[T],
        configurator: Callable[[Any], None],
        reset_existing: bool = True,
    ) -> Any:
        """Fetch or create a substitute and apply behavior configuration."""


class ITypeResolver(ABC):
    """Abstract interface for mapping requested types to buildable types."""

    @abstractmethod
    def resolve(self, requested_type: Type) -> ResolvedType:
        """Map the requested type to the type or factory that builds it.

        Args:
            requested_type: The type being requested.

        Raises:
            UnresolvedTypeError: If nothing can be built for the type.
            AmbiguousResolutionError: If several implementations compete.
        """

    @abstractmethod
    def add_mapping(self, mapping: TypeMapping, replace: bool = False) -> None:
        """Register an explicit mapping."""


class IMockRegistry(ABC):
    """Abstract interface for the per-session substitute cache."""

    @abstractmethod
    def get_or_create(self, substitute_type: Type) -> Any:
        """Return the cached substitute for the type, creating it if absent."""

    @abstractmethod
    def add(self, substitute_type: Type, substitute: Any, overwrite: bool = False) -> None:
        """Store a substitute for the type.

        Raises:
            DuplicateRegistrationError: If one exists and overwrite is False.
        """

    @abstractmethod
    def remove(self, substitute_type: Type, substitute: Any = None) -> bool:
        """Remove the substitute for the type, returning whether one was removed."""

    @abstractmethod
    def contains(self, substitute_type: Type) -> bool:
        """Return whether a substitute is registered for the type."""
