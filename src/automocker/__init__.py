"""
automocker: Auto-mocking dependency resolution for unit tests.

Public API exports for the automocker package.
"""

# Application exports
from automocker.application.mocker import Mocker
from automocker.application.substitute import Setup, Substitute

# Domain exports
from automocker.domain.exceptions import (
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
from automocker.domain.markers import Inject, constructor
from automocker.domain.models import MockerOptions, TypeMapping

# Infrastructure exports
from automocker.infrastructure.well_known import FakeHttpAdapter, FileSystem, HttpSession, MemoryFileSystem

__version__ = "0.1.0"

__all__ = [
    # Session
    "Mocker",
    "MockerOptions",
    "TypeMapping",
    # Substitutes
    "Substitute",
    "Setup",
    # Markers
    "Inject",
    "constructor",
    # Well-known instances
    "FileSystem",
    "MemoryFileSystem",
    "FakeHttpAdapter",
    "HttpSession",
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
]
