from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field

from automocker.domain.enums import Accessibility, ResolutionSource

if TYPE_CHECKING:
    from automocker.domain.interfaces import IMocker

INIT = "__init__"


class TypeMapping(BaseModel):
    """Value object pairing an abstract type with what should be built for it.

    Attributes:
        abstract_type: The type requested by constructors or tests.
        concrete_type: The class to build when the mapping is used.
        factory: Optional function that receives the mocker and returns the instance.
        arguments: Constructor arguments used when none are given explicitly.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    abstract_type: Type = Field(..., description="The type being mapped.")
    concrete_type: Type = Field(..., description="The class built for the abstract type.")
    factory: Optional[Callable[["IMocker"], Any]] = Field(
        default=None,
        description="Optional builder function that receives the mocker.",
    )
    arguments: List[Any] = Field(
        default_factory=list,
        description="Default constructor arguments for the concrete type.",
    )


class ResolvedType(BaseModel):
    """Result of mapping a requested type to the type that gets built."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    requested_type: Type
    concrete_type: Type
    source: ResolutionSource
    factory: Optional[Callable[["IMocker"], Any]] = None
    arguments: List[Any] = Field(default_factory=list)


class ParameterSpec(BaseModel):
    """One parameter of a constructor candidate.

    Attributes:
        name: The parameter name.
        annotation: The evaluated type hint, or None when the parameter has none.
        has_annotation: Whether a type hint was present.
        default: The default value when has_default is True.
        has_default: Whether the parameter declares a default value.
        keyword_only: Whether the parameter must be passed by keyword.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    annotation: Any = None
    has_annotation: bool = False
    default: Any = None
    has_default: bool = False
    keyword_only: bool = False


class ConstructorCandidate(BaseModel):
    """One way of constructing a class: ``__init__`` or a tagged classmethod.

    Attributes:
        owner: The class the candidate belongs to.
        name: ``__init__`` or the classmethod name.
        parameters: Ordered parameter descriptions, excluding self/cls.
        accessibility: Whether the candidate is public.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    owner: Type
    name: str = INIT
    parameters: List[ParameterSpec] = Field(default_factory=list)
    accessibility: Accessibility = Accessibility.PUBLIC

    @property
    def arity(self) -> int:
        return len(self.parameters)

    @property
    def is_public(self) -> bool:
        return self.accessibility == Accessibility.PUBLIC

    @property
    def display_name(self) -> str:
        params = ", ".join(
            f"{p.name}: {getattr(p.annotation, '__name__', p.annotation)}" if p.has_annotation else p.name
            for p in self.parameters
        )
        return f"{self.owner.__name__}.{self.name}({params})"

    def bind(self, arguments: Sequence[Any]) -> Tuple[List[Any], Dict[str, Any]]:
        """Split ordered argument values into positional and keyword arguments.

        Args:
            arguments: One value per parameter, in declaration order.

        Returns:
            Tuple of positional arguments and keyword arguments.
        """
        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        for parameter, value in zip(self.parameters, arguments):
            if parameter.keyword_only:
                kwargs[parameter.name] = value
            else:
                args.append(value)
        return args, kwargs

    def create(self, arguments: Sequence[Any], target: Optional[Type] = None) -> Any:
        """Invoke the candidate.

        Args:
            arguments: One value per parameter, in declaration order.
            target: Class to invoke the candidate on, defaults to the owner.
                Substitute proxies pass their generated subclass here.

        Returns:
            The constructed instance.
        """
        cls = target or self.owner
        args, kwargs = self.bind(arguments)
        if self.name == INIT:
            return cls(*args, **kwargs)
        return getattr(cls, self.name)(*args, **kwargs)


class ConstructorHistoryEntry(BaseModel):
    """A recorded constructor invocation.

    Attributes:
        candidate: The constructor used, None when a mapping factory built the instance.
        arguments: The argument values passed.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    candidate: Optional[ConstructorCandidate] = None
    arguments: List[Any] = Field(default_factory=list)


class MockerOptions(BaseModel):
    """Session configuration for a mocker.

    Attributes:
        strict: Disable well-known instances and non-public constructor escalation,
            and make unconfigured substitute calls raise.
        mock_optional: Resolve parameters that declare defaults instead of using the default.
        inner_mock_resolution: Fill None-valued annotated attributes of new substitutes.
        scan_implementations: Allow subclass scanning for abstract types.
        http_base_url: Base URL of the pre-built HTTP clients.
        http_status_code: Status code of the default fake HTTP response.
        http_content: Body of the default fake HTTP response.
    """

    model_config = ConfigDict(validate_assignment=True)

    strict: bool = Field(default=False, description="Strict resolution and substitute behavior.")
    mock_optional: bool = Field(default=False, description="Resolve parameters that have defaults.")
    inner_mock_resolution: bool = Field(default=True, description="Fill attributes of new substitutes.")
    scan_implementations: bool = Field(default=True, description="Scan subclasses for implementations.")
    http_base_url: str = Field(default="http://localhost", description="Base URL of the fake HTTP clients.")
    http_status_code: int = Field(default=200, ge=100, le=599, description="Default fake response status.")
    http_content: str = Field(default='[{"id":1}]', description="Default fake response body.")
