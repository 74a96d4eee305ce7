"""Application layer - Type and constructor introspection helpers."""

import collections.abc
import enum
import inspect
import logging
import types
import typing
from typing import Any, Dict, List, Optional, Tuple, Type, Union, get_args, get_origin, get_type_hints

from automocker.domain import Accessibility, ConstructorCandidate, ParameterSpec
from automocker.domain.markers import get_constructor_marker

logger = logging.getLogger(__name__)

PROXY_MARKER = "__automocker_proxy__"

_EMPTY_SEQUENCE_ORIGINS = (
    list,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Iterable,
    collections.abc.Collection,
    collections.abc.Iterator,
    collections.abc.Generator,
)
_EMPTY_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)
_EMPTY_SET_ORIGINS = (set, collections.abc.Set, collections.abc.MutableSet)

_PRIMITIVE_DEFAULTS: Dict[type, Any] = {
    bool: False,
    int: 0,
    float: 0.0,
    complex: 0j,
    str: "",
    bytes: b"",
}


def type_name(obj: Any) -> str:
    return getattr(obj, "__name__", None) or repr(obj)


def is_proxy(cls: Any) -> bool:
    return inspect.isclass(cls) and cls.__dict__.get(PROXY_MARKER, False)


def is_protocol(cls: Any) -> bool:
    return inspect.isclass(cls) and bool(cls.__dict__.get("_is_protocol", False))


def is_abstract(cls: Any) -> bool:
    """Return whether the class is an interface: abstract methods left, or a Protocol."""
    return inspect.isclass(cls) and (inspect.isabstract(cls) or is_protocol(cls))


def is_sealed(cls: Any) -> bool:
    """Return whether the type cannot be substituted.

    Builtins, enums and ``@typing.final`` classes are sealed, as is anything
    that is not a class at all (typing constructs, ``Any``).
    """
    if cls is Any or not inspect.isclass(cls):
        return True
    if cls.__module__ == "builtins":
        return True
    if issubclass(cls, enum.Enum):
        return True
    return bool(getattr(cls, "__final__", False))


def unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
    """Strip ``None`` from an ``Optional``/``Union`` annotation.

    Returns:
        The inner annotation (the same Union minus None when several members
        remain) and whether None was present.
    """
    origin = get_origin(annotation)
    if origin is Union or _is_union_type(origin):
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        nullable = len(members) != len(get_args(annotation))
        if len(members) == 1:
            return members[0], nullable
        return Union[tuple(members)], nullable
    return annotation, False


def _is_union_type(origin: Any) -> bool:
    union_type = getattr(types, "UnionType", None)
    return union_type is not None and origin is union_type


def default_value(annotation: Any) -> Any:
    """Return the zero value of a type: 0, "", False, empty collections or None.

    Args:
        annotation: A type hint.

    Returns:
        The default value for the annotation.
    """
    if annotation is None or annotation is inspect.Parameter.empty or annotation is type(None):
        return None
    annotation, nullable = unwrap_optional(annotation)
    if nullable:
        return None

    origin = get_origin(annotation) or annotation
    if origin is typing.Annotated:
        return default_value(get_args(annotation)[0])
    if not inspect.isclass(origin):
        return None
    if origin in _PRIMITIVE_DEFAULTS:
        return _PRIMITIVE_DEFAULTS[origin]
    if origin is tuple:
        return ()
    if origin is frozenset:
        return frozenset()
    if origin is bytearray:
        return bytearray()
    if origin in _EMPTY_SEQUENCE_ORIGINS:
        return []
    if origin in _EMPTY_MAPPING_ORIGINS:
        return {}
    if origin in _EMPTY_SET_ORIGINS:
        return set()
    if issubclass(origin, enum.Enum):
        members = list(origin)
        return members[0] if members else None
    return None


def is_assignable(value: Any, annotation: Any) -> bool:
    """Return whether a runtime value can be passed for the annotation.

    None is accepted for optional and abstract annotations.
    """
    if annotation is Any or annotation is inspect.Parameter.empty:
        return True
    inner, nullable = unwrap_optional(annotation)
    if value is None:
        return nullable or is_abstract(inner)
    return is_type_assignable(type(value), inner)


def is_type_assignable(source: Any, annotation: Any) -> bool:
    """Return whether instances of ``source`` can be passed for the annotation."""
    if annotation is Any or annotation is inspect.Parameter.empty:
        return True
    inner, nullable = unwrap_optional(annotation)
    if source is type(None):
        return nullable or is_abstract(inner)
    origin = get_origin(inner)
    if origin is Union or _is_union_type(origin):
        return any(is_type_assignable(source, member) for member in get_args(inner))
    target = origin or inner
    if not inspect.isclass(target) or not inspect.isclass(source):
        return False
    try:
        return issubclass(source, target)
    except TypeError:
        # Non-runtime protocols refuse issubclass checks.
        return False


def resolve_type_hints(func: Any, owner: Optional[Type] = None) -> Dict[str, Any]:
    """Evaluate the type hints of a callable.

    Falls back to the owner's class-level hints, then to the raw annotations,
    when forward references cannot be evaluated.
    """
    try:
        return get_type_hints(func)
    except (NameError, TypeError) as error:
        logger.debug("Could not evaluate hints of %s: %s", type_name(func), error)
    hints: Dict[str, Any] = {}
    if owner is not None:
        try:
            hints.update(get_type_hints(owner))
        except (NameError, TypeError) as error:
            logger.debug("Could not evaluate class hints of %s: %s", type_name(owner), error)
    for name, value in getattr(func, "__annotations__", {}).items():
        if not isinstance(value, str):
            hints.setdefault(name, value)
    return hints


def describe_parameters(func: Any, owner: Optional[Type] = None, skip_first: bool = False) -> List[ParameterSpec]:
    """Describe the named parameters of a callable.

    ``*args`` and ``**kwargs`` are skipped.

    Args:
        func: The callable to inspect.
        owner: Class used as a fallback namespace for type hints.
        skip_first: Skip the first parameter (``self`` of an unbound ``__init__``).

    Raises:
        ValueError: If the callable has no retrievable signature.
    """
    signature = inspect.signature(func)
    hints = resolve_type_hints(func, owner)
    parameters = list(signature.parameters.values())
    if skip_first:
        parameters = parameters[1:]

    specs = []
    for parameter in parameters:
        if parameter.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        has_annotation = parameter.name in hints
        has_default = parameter.default is not inspect.Parameter.empty
        specs.append(
            ParameterSpec(
                name=parameter.name,
                annotation=hints.get(parameter.name),
                has_annotation=has_annotation,
                default=parameter.default if has_default else None,
                has_default=has_default,
                keyword_only=parameter.kind == inspect.Parameter.KEYWORD_ONLY,
            )
        )
    return specs


def list_constructors(cls: Type) -> List[ConstructorCandidate]:
    """Enumerate every constructor candidate of a class, sorted by descending arity.

    Candidates are ``__init__`` plus classmethods tagged with ``@constructor``.
    Candidates taking a parameter of the owner's own type are left out.
    """
    candidates: List[ConstructorCandidate] = []

    init = cls.__init__
    if init is object.__init__:
        candidates.append(ConstructorCandidate(owner=cls))
    else:
        try:
            parameters = describe_parameters(init, owner=cls, skip_first=True)
        except ValueError:
            # Builtin initializers expose no signature.
            parameters = []
        marker = get_constructor_marker(init)
        public = marker.public if marker else True
        candidates.append(
            ConstructorCandidate(
                owner=cls,
                parameters=parameters,
                accessibility=Accessibility.PUBLIC if public else Accessibility.NON_PUBLIC,
            )
        )

    seen = set()
    for klass in cls.__mro__:
        for name, member in vars(klass).items():
            if name in seen or not isinstance(member, classmethod):
                continue
            seen.add(name)
            marker = get_constructor_marker(member)
            if marker is None:
                continue
            public = marker.public and not name.startswith("_")
            candidates.append(
                ConstructorCandidate(
                    owner=cls,
                    name=name,
                    parameters=describe_parameters(getattr(cls, name), owner=cls),
                    accessibility=Accessibility.PUBLIC if public else Accessibility.NON_PUBLIC,
                )
            )

    candidates = [
        candidate
        for candidate in candidates
        if all(parameter.annotation is not cls for parameter in candidate.parameters)
    ]
    return sorted(candidates, key=lambda candidate: candidate.arity, reverse=True)


def get_annotated_members(cls: Type) -> Dict[str, Any]:
    """Return the class-level annotations of a class and its bases, extras included."""
    try:
        return get_type_hints(cls, include_extras=True)
    except (NameError, TypeError) as error:
        logger.debug("Could not evaluate class hints of %s: %s", type_name(cls), error)
    annotations: Dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        for name, value in vars(klass).get("__annotations__", {}).items():
            if not isinstance(value, str):
                annotations[name] = value
    return annotations
