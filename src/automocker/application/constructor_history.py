from typing import Any, Dict, Iterator, List, Optional, Sequence, Type

from automocker.domain import ConstructorCandidate, ConstructorHistoryEntry


class ConstructorHistory:
    """Per-type record of every constructor invocation in a session.

    Built instances and partial substitutes are recorded under the class that
    was constructed. Instances produced by a mapping factory are recorded
    under the requested type with no candidate.

    Example:
        >>> car = mocker.resolve(Car)
        >>> mocker.constructor_history.get_constructor(Car).arity
        1
    """

    def __init__(self) -> None:
        self._entries: Dict[Type, List[ConstructorHistoryEntry]] = {}

    def record(
        self,
        built_type: Type,
        candidate: Optional[ConstructorCandidate],
        arguments: Sequence[Any] = (),
    ) -> ConstructorHistoryEntry:
        entry = ConstructorHistoryEntry(candidate=candidate, arguments=list(arguments))
        self._entries.setdefault(built_type, []).append(entry)
        return entry

    def get(self, built_type: Type) -> List[ConstructorHistoryEntry]:
        """Return the entries for a type, oldest first."""
        return list(self._entries.get(built_type, []))

    def get_constructor(self, built_type: Type) -> Optional[ConstructorCandidate]:
        """Return the candidate used most recently for a type."""
        for entry in reversed(self._entries.get(built_type, [])):
            if entry.candidate is not None:
                return entry.candidate
        return None

    def types(self) -> List[Type]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, built_type: Type) -> bool:
        return built_type in self._entries

    def __iter__(self) -> Iterator[Type]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
