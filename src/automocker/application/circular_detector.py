"""Application layer - Cyclic dependency detection."""

from contextlib import contextmanager
from typing import Iterator, List, Type

from automocker.domain import CyclicDependencyError


class CircularDependencyDetector:
    """Detects cycles in the constructor-parameter graph during a build.

    Keeps the stack of types currently being built or substituted. A session
    is owned by a single test, so the stack is a plain list.

    Attributes:
        _stack: Types currently being resolved, outermost first.
    """

    def __init__(self) -> None:
        """Initialize the detector with an empty resolution stack."""
        self._stack: List[Type] = []

    def push(self, dependency_type: Type) -> None:
        """Add a type to the resolution stack.

        Args:
            dependency_type: The type being resolved.

        Raises:
            CyclicDependencyError: If the type is already in the stack.

        Example:
            >>> detector = CircularDependencyDetector()
            >>> detector.push(ServiceA)
            >>> detector.push(ServiceB)
            >>> detector.push(ServiceA)  # Raises CyclicDependencyError
        """
        if dependency_type in self._stack:
            start = self._stack.index(dependency_type)
            raise CyclicDependencyError(self._stack[start:] + [dependency_type])

        self._stack.append(dependency_type)

    def pop(self) -> None:
        """Remove the most recent type from the resolution stack."""
        if self._stack:
            self._stack.pop()

    @contextmanager
    def track(self, dependency_type: Type) -> Iterator[None]:
        """Push the type for the duration of a ``with`` block."""
        self.push(dependency_type)
        try:
            yield
        finally:
            self.pop()

    def __contains__(self, dependency_type: Type) -> bool:
        return dependency_type in self._stack

    @property
    def path(self) -> List[Type]:
        """Copy of the current resolution stack."""
        return list(self._stack)

    def clear(self) -> None:
        """Clear the entire resolution stack."""
        self._stack.clear()
