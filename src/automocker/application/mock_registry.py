import logging
from typing import Any, Callable, Dict, List, Optional, Type

from automocker.application.introspection import type_name
from automocker.domain import DuplicateRegistrationError, IMockRegistry, SubstituteNotFoundError

logger = logging.getLogger(__name__)


class MockRegistry(IMockRegistry):
    """Identity cache of one substitute per type within a session.

    The registry does not know how substitutes are made: new ones come from
    ``factory``. After a new substitute is stored, ``on_created`` runs, so
    post-setup work that resolves further dependencies already sees it.

    Any object can be stored: a ``Substitute``, a ``unittest.mock.Mock`` or a
    hand-written fake. Lookups return exactly what was stored.

    Attributes:
        _substitutes: Stored substitutes keyed by type.
        _factory: Creates the substitute for a type, given optional constructor arguments.
        _on_created: Optional hook called with the type and the new substitute.
    """

    def __init__(
        self,
        factory: Callable[..., Any],
        on_created: Optional[Callable[[Type, Any], None]] = None,
    ) -> None:
        self._substitutes: Dict[Type, Any] = {}
        self._factory = factory
        self._on_created = on_created

    def get_or_create(self, substitute_type: Type) -> Any:
        """Return the stored substitute for the type, creating it on first use.

        Args:
            substitute_type: The type to substitute.

        Returns:
            The same substitute for every call within the session.
        """
        if substitute_type in self._substitutes:
            return self._substitutes[substitute_type]
        return self.create(substitute_type)

    def create(self, substitute_type: Type, *args: Any) -> Any:
        """Create and store a new substitute.

        Raises:
            DuplicateRegistrationError: If the type already has a substitute.
        """
        if substitute_type in self._substitutes:
            raise DuplicateRegistrationError(substitute_type)

        substitute = self._factory(substitute_type, *args)
        self._substitutes[substitute_type] = substitute
        logger.debug("Registered new substitute for %s", type_name(substitute_type))

        if self._on_created is not None:
            self._on_created(substitute_type, substitute)
        return substitute

    def add(self, substitute_type: Type, substitute: Any, overwrite: bool = False) -> None:
        """Store a caller-supplied substitute.

        Args:
            substitute_type: The type the substitute stands in for.
            substitute: Any object.
            overwrite: Replace an existing substitute.

        Raises:
            DuplicateRegistrationError: If one exists and overwrite is False.
        """
        if substitute_type in self._substitutes and not overwrite:
            raise DuplicateRegistrationError(substitute_type)
        self._substitutes[substitute_type] = substitute
        logger.debug("Added substitute for %s", type_name(substitute_type))

    def remove(self, substitute_type: Type, substitute: Any = None) -> bool:
        """Remove the substitute for a type.

        Args:
            substitute_type: The type to remove.
            substitute: When given, only remove if it is the stored object.

        Returns:
            True if a substitute was removed.
        """
        if substitute_type not in self._substitutes:
            return False
        if substitute is not None and self._substitutes[substitute_type] is not substitute:
            return False
        del self._substitutes[substitute_type]
        return True

    def contains(self, substitute_type: Type) -> bool:
        return substitute_type in self._substitutes

    def get(self, substitute_type: Type) -> Optional[Any]:
        return self._substitutes.get(substitute_type)

    def get_required(self, substitute_type: Type) -> Any:
        """Return the stored substitute.

        Raises:
            SubstituteNotFoundError: If the type has no substitute.
        """
        if substitute_type not in self._substitutes:
            raise SubstituteNotFoundError(substitute_type)
        return self._substitutes[substitute_type]

    def types(self) -> List[Type]:
        return list(self._substitutes)

    def clear(self) -> None:
        self._substitutes.clear()

    def __contains__(self, substitute_type: Type) -> bool:
        return self.contains(substitute_type)

    def __len__(self) -> int:
        return len(self._substitutes)
