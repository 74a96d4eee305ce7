"""
Application layer - Resolution engine and session.

This layer contains the type resolver, substitute registry, parameter and
constructor resolution, and the mocker session that orchestrates them.
It depends on the Domain layer and on the well-known instances.
"""

from .circular_detector import CircularDependencyDetector
from .constructor_history import ConstructorHistory
from .constructor_selector import ConstructorSelector
from .mock_registry import MockRegistry
from .mocker import Mocker
from .object_builder import ObjectBuilder
from .parameter_resolver import ParameterResolver
from .substitute import Setup, Substitute
from .type_resolver import TypeResolver

__all__ = [
    "Mocker",
    "TypeResolver",
    "MockRegistry",
    "ParameterResolver",
    "ConstructorSelector",
    "ObjectBuilder",
    "ConstructorHistory",
    "CircularDependencyDetector",
    "Substitute",
    "Setup",
]
