import logging
import typing
from typing import Any, Dict, List, Optional, Sequence, Type, get_args, get_origin

from automocker.application.circular_detector import CircularDependencyDetector
from automocker.application.constructor_history import ConstructorHistory
from automocker.application.constructor_selector import ConstructorSelector
from automocker.application.introspection import get_annotated_members, type_name
from automocker.application.parameter_resolver import ParameterResolver
from automocker.application.type_resolver import TypeResolver
from automocker.domain import ConstructorCandidate, IMocker, Inject, ResolvedType

logger = logging.getLogger(__name__)


def injection_targets(cls: Type) -> Dict[str, Any]:
    """Return the attributes tagged with ``Inject``, mapped to the type to inject."""
    targets: Dict[str, Any] = {}
    for name, annotation in get_annotated_members(cls).items():
        if get_origin(annotation) is not typing.Annotated:
            continue
        base, *metadata = get_args(annotation)
        for marker in metadata:
            if isinstance(marker, Inject):
                targets[name] = marker.dependency_type or base
                break
    return targets


class ObjectBuilder:
    """Builds instances: type resolution, constructor selection, invocation, injection.

    Every build is tracked on the session's resolution stack so a type that
    needs itself fails with ``CyclicDependencyError`` instead of recursing.

    Attributes:
        _mocker: The session, handed to mapping factories.
        _type_resolver: Maps the requested type to what gets built.
        _selector: Chooses the constructor.
        _parameter_resolver: Resolves values for injected members.
        _detector: The session's resolution stack.
        _history: The session's constructor history.
    """

    def __init__(
        self,
        mocker: IMocker,
        type_resolver: TypeResolver,
        selector: ConstructorSelector,
        parameter_resolver: ParameterResolver,
        detector: CircularDependencyDetector,
        history: ConstructorHistory,
    ) -> None:
        self._mocker = mocker
        self._type_resolver = type_resolver
        self._selector = selector
        self._parameter_resolver = parameter_resolver
        self._detector = detector
        self._history = history

    def build(
        self,
        requested_type: Type,
        *explicit_args: Any,
        overrides: Optional[Dict[Any, Any]] = None,
        include_non_public: bool = False,
    ) -> Any:
        """Build a new instance of the requested type.

        A mapping factory builds the instance when there is one. Otherwise the
        resolved class is constructed with the explicit arguments, or the
        mapping's default arguments when none are given, or resolved values.

        Args:
            requested_type: The type to build.
            *explicit_args: Constructor arguments chosen by the caller.
            overrides: Per-call parameter values keyed by name or type.
            include_non_public: Only consider non-public constructors.

        Returns:
            The new instance with its tagged members injected.

        Raises:
            UnresolvedTypeError: If the type cannot be resolved.
            AmbiguousResolutionError: If several implementations compete.
            NoMatchingConstructorError: If no constructor fits.
            AmbiguousConstructorError: If several constructors fit equally.
            CyclicDependencyError: If the type depends on itself.
        """
        resolved = self._type_resolver.resolve(requested_type)

        with self._detector.track(resolved.concrete_type):
            if resolved.factory is not None and not explicit_args:
                instance = resolved.factory(self._mocker)
                self._history.record(requested_type, None)
            else:
                arguments = list(explicit_args) or resolved.arguments
                candidate, values = self._selector.select(
                    resolved.concrete_type,
                    arguments,
                    include_non_public=include_non_public,
                    overrides=overrides,
                )
                instance = self._construct(resolved, candidate, values)

        # Tagged members are not part of the constructor graph.
        self.inject_members(instance, resolved.concrete_type)
        logger.debug("Built %s as %s", type_name(requested_type), type_name(type(instance)))
        return instance

    def build_by_types(
        self,
        requested_type: Type,
        parameter_types: Sequence[Type],
        overrides: Optional[Dict[Any, Any]] = None,
        include_non_public: bool = False,
    ) -> Any:
        """Build an instance with the constructor whose parameters are exactly the given types."""
        resolved = self._type_resolver.resolve(requested_type)

        with self._detector.track(resolved.concrete_type):
            candidate, values = self._selector.select_by_types(
                resolved.concrete_type,
                parameter_types,
                include_non_public=include_non_public,
                overrides=overrides,
            )
            instance = self._construct(resolved, candidate, values)
        self.inject_members(instance, resolved.concrete_type)
        return instance

    def inject_members(self, obj: Any, reference_type: Optional[Type] = None) -> List[str]:
        """Assign resolved values to tagged members the constructor left unset.

        Args:
            obj: The instance to fill.
            reference_type: Class whose annotations are read, defaults to the object's class.

        Returns:
            The names of the members that were assigned.
        """
        assigned = []
        for name, dependency_type in injection_targets(reference_type or type(obj)).items():
            if getattr(obj, name, None) is not None:
                continue
            setattr(obj, name, self._parameter_resolver.resolve_type(dependency_type))
            assigned.append(name)
        return assigned

    def _construct(self, resolved: ResolvedType, candidate: ConstructorCandidate, values: List[Any]) -> Any:
        instance = candidate.create(values)
        self._history.record(resolved.concrete_type, candidate, values)
        return instance
