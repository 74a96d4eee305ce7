"""Markers that classes under test use to guide resolution."""

from typing import Any, Optional, Type

CONSTRUCTOR_MARKER = "__automocker_constructor__"


class ConstructorMarker:
    """Attached to a function to make it a constructor candidate.

    Attributes:
        public: False to only consider the candidate on non-public searches.
    """

    def __init__(self, public: bool = True) -> None:
        self.public = public

    def __repr__(self) -> str:
        return f"ConstructorMarker(public={self.public})"


def constructor(func: Optional[Any] = None, *, public: bool = True) -> Any:
    """Tag a classmethod (or ``__init__``) as a constructor candidate.

    Works above or below ``@classmethod``. Classmethods whose name starts with
    an underscore are always non-public.

    Example:
        >>> class Car:
        ...     def __init__(self, engine: Engine):
        ...         self.engine = engine
        ...
        ...     @constructor
        ...     @classmethod
        ...     def with_driver(cls, engine: Engine, driver: Driver) -> "Car":
        ...         car = cls(engine)
        ...         car.driver = driver
        ...         return car
    """

    def decorate(target: Any) -> Any:
        function = target.__func__ if isinstance(target, (classmethod, staticmethod)) else target
        setattr(function, CONSTRUCTOR_MARKER, ConstructorMarker(public=public))
        return target

    if func is None:
        return decorate
    return decorate(func)


def get_constructor_marker(func: Any) -> Optional[ConstructorMarker]:
    function = getattr(func, "__func__", func)
    return getattr(function, CONSTRUCTOR_MARKER, None)


class Inject:
    """``Annotated`` metadata tagging a class attribute for injection.

    After construction, tagged attributes that the constructor left unset (or
    set to ``None``) receive the value the resolver would inject for the
    annotated type, or for ``dependency_type`` when given.

    Example:
        >>> class ReportService:
        ...     clock: Annotated[Clock, Inject()]
        ...     audit: Annotated[Optional[Auditor], Inject(FileAuditor)]
    """

    def __init__(self, dependency_type: Optional[Type] = None) -> None:
        self.dependency_type = dependency_type

    def __repr__(self) -> str:
        return f"Inject({getattr(self.dependency_type, '__name__', '')})"
