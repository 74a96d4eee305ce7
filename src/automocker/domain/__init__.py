"""
Domain layer - Core models and rules of resolution.

This layer contains the value objects, markers and errors of the resolution engine.
It has no dependencies on other layers.
"""

from .enums import Accessibility, ResolutionSource
from .exceptions import (
    AmbiguousConstructorError,
    AmbiguousResolutionError,
    AutoMockError,
    CyclicDependencyError,
    DuplicateRegistrationError,
    InvalidTypeMappingError,
    NoMatchingConstructorError,
    SubstituteNotFoundError,
    UnconfiguredCallError,
    UnresolvedTypeError,
)
from .interfaces import IMocker, IMockRegistry, ITypeResolver
from .markers import Inject, constructor
from .models import (
    ConstructorCandidate,
    ConstructorHistoryEntry,
    MockerOptions,
    ParameterSpec,
    ResolvedType,
    TypeMapping,
)

# Rebuild Pydantic models to resolve forward references
TypeMapping.model_rebuild()
ResolvedType.model_rebuild()

__all__ = [
    # Enums
    "Accessibility",
    "ResolutionSource",
    # Exceptions
    "AutoMockError",
    "UnresolvedTypeError",
    "AmbiguousResolutionError",
    "NoMatchingConstructorError",
    "AmbiguousConstructorError",
    "DuplicateRegistrationError",
    "CyclicDependencyError",
    "InvalidTypeMappingError",
    "UnconfiguredCallError",
    "SubstituteNotFoundError",
    # Interfaces
    "IMocker",
    "ITypeResolver",
    "IMockRegistry",
    # Markers
    "Inject",
    "constructor",
    # Models
    "TypeMapping",
    "ResolvedType",
    "ParameterSpec",
    "ConstructorCandidate",
    "ConstructorHistoryEntry",
    "MockerOptions",
]
