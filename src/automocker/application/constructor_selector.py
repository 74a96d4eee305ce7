import itertools
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

from automocker.application.introspection import is_assignable, list_constructors, type_name
from automocker.application.parameter_resolver import ParameterResolver
from automocker.domain import (
    AmbiguousConstructorError,
    AutoMockError,
    ConstructorCandidate,
    CyclicDependencyError,
    MockerOptions,
    NoMatchingConstructorError,
)

logger = logging.getLogger(__name__)

Selection = Tuple[ConstructorCandidate, List[Any]]


class ConstructorSelector:
    """Chooses which constructor of a concrete class to invoke.

    Without explicit arguments, every parameter of each candidate is resolved
    speculatively, largest arity first. The first arity group with a viable
    candidate wins, and more than one viable candidate in it is an error.

    When no public candidate works, the search is retried with the non-public
    candidates, unless the session is strict.

    Attributes:
        _parameter_resolver: Resolves the value of each parameter.
        _options: The session options.
    """

    def __init__(self, parameter_resolver: ParameterResolver, options: MockerOptions) -> None:
        self._parameter_resolver = parameter_resolver
        self._options = options

    def candidates(self, concrete_type: Type, include_non_public: bool = False) -> List[ConstructorCandidate]:
        """List the candidates of one accessibility, largest arity first.

        Args:
            concrete_type: The class to construct.
            include_non_public: List the non-public candidates instead of the public ones.
        """
        return [
            candidate
            for candidate in list_constructors(concrete_type)
            if candidate.is_public != include_non_public
        ]

    def select(
        self,
        concrete_type: Type,
        explicit_args: Optional[Sequence[Any]] = None,
        include_non_public: bool = False,
        overrides: Optional[Dict[Any, Any]] = None,
    ) -> Selection:
        """Choose a constructor and the argument values to call it with.

        Args:
            concrete_type: The class to construct.
            explicit_args: Caller-supplied arguments; selects by arity and argument type.
            include_non_public: Search the non-public candidates.
            overrides: Per-call parameter values keyed by name or type.

        Returns:
            The chosen candidate and one value per parameter.

        Raises:
            NoMatchingConstructorError: If no candidate fits.
            AmbiguousConstructorError: If several candidates of the largest viable arity fit.
            UnresolvedTypeError: If the candidate that came closest has an unresolvable parameter.
        """
        if explicit_args:
            return self._search(
                concrete_type,
                include_non_public,
                lambda candidates: self._match_arguments(concrete_type, candidates, explicit_args),
            )
        return self._search(
            concrete_type,
            include_non_public,
            lambda candidates: self._match_resolved(concrete_type, candidates, overrides),
        )

    def select_by_types(
        self,
        concrete_type: Type,
        parameter_types: Sequence[Type],
        include_non_public: bool = False,
        overrides: Optional[Dict[Any, Any]] = None,
    ) -> Selection:
        """Choose the constructor whose parameters are exactly the given types.

        Raises:
            NoMatchingConstructorError: If no candidate has that parameter list.
        """
        expected = list(parameter_types)

        def match(candidates: List[ConstructorCandidate]) -> Tuple[Optional[Selection], Optional[AutoMockError]]:
            for candidate in candidates:
                if [parameter.annotation for parameter in candidate.parameters] == expected:
                    values = [
                        self._parameter_resolver.resolve_parameter(parameter, overrides, concrete_type)
                        for parameter in candidate.parameters
                    ]
                    return (candidate, values), None
            names = ", ".join(type_name(t) for t in expected)
            return None, NoMatchingConstructorError(concrete_type, f"no constructor takes ({names})")

        return self._search(concrete_type, include_non_public, match)

    def _search(self, concrete_type: Type, include_non_public: bool, match) -> Selection:
        searches = [include_non_public]
        if not include_non_public and not self._options.strict:
            searches.append(True)

        failure: Optional[AutoMockError] = None
        for non_public in searches:
            candidates = self.candidates(concrete_type, non_public)
            if not candidates:
                continue
            selection, error = match(candidates)
            if selection is not None:
                if non_public and not include_non_public:
                    logger.info("Using non-public constructor %s", selection[0].display_name)
                logger.debug("Selected constructor %s", selection[0].display_name)
                return selection
            failure = failure or error

        if failure is not None:
            raise failure
        raise NoMatchingConstructorError(concrete_type, "no constructor candidates found")

    def _match_arguments(
        self,
        concrete_type: Type,
        candidates: List[ConstructorCandidate],
        arguments: Sequence[Any],
    ) -> Tuple[Optional[Selection], Optional[AutoMockError]]:
        for candidate in candidates:
            if candidate.arity != len(arguments):
                continue
            if all(
                not parameter.has_annotation or is_assignable(value, parameter.annotation)
                for parameter, value in zip(candidate.parameters, arguments)
            ):
                return (candidate, list(arguments)), None

        names = ", ".join(type(value).__name__ for value in arguments)
        return None, NoMatchingConstructorError(concrete_type, f"no constructor accepts ({names})")

    def _match_resolved(
        self,
        concrete_type: Type,
        candidates: List[ConstructorCandidate],
        overrides: Optional[Dict[Any, Any]],
    ) -> Tuple[Optional[Selection], Optional[AutoMockError]]:
        failure: Optional[AutoMockError] = None

        for _, group in itertools.groupby(candidates, key=lambda candidate: candidate.arity):
            viable: List[Selection] = []
            for candidate in group:
                try:
                    values = [
                        self._parameter_resolver.resolve_parameter(parameter, overrides, concrete_type)
                        for parameter in candidate.parameters
                    ]
                except CyclicDependencyError:
                    raise
                except AutoMockError as error:
                    logger.debug("Constructor %s is not viable: %s", candidate.display_name, error)
                    failure = failure or error
                    continue
                viable.append((candidate, values))

            if len(viable) > 1:
                raise AmbiguousConstructorError(concrete_type, [candidate.display_name for candidate, _ in viable])
            if viable:
                return viable[0], None

        return None, failure
