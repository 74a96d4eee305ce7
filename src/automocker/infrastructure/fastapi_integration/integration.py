import inspect
from typing import Any, Callable, Dict, Type, TypeVar, get_type_hints

from fastapi import FastAPI

from automocker.application import Mocker

T = TypeVar("T")


def create_mocker_dependency(mocker: Mocker, dependency_type: Type[T]) -> Callable[[], T]:
    """Create a FastAPI Depends() callable that hands out the mocker's value for a type.

    The value is what the mocker would inject into a constructor parameter of
    that type, so the endpoint receives the same substitute the test configures.

    Args:
        mocker: The mocker of the running test.
        dependency_type: The type to provide.

    Returns:
        A callable that FastAPI can use with Depends() or in ``dependency_overrides``.

    Example:
        >>> get_repo = create_mocker_dependency(mocker, UserRepository)
        >>> app.dependency_overrides[get_user_repository] = get_repo
    """

    def dependency() -> T:
        """Return the mocker's value for the dependency type."""
        return mocker.get_object(dependency_type)

    return dependency


def _provided_type(dependency: Any) -> Type:
    if inspect.isclass(dependency):
        return dependency
    return_type = get_type_hints(dependency).get("return")
    if return_type is None:
        raise TypeError(
            f"Cannot override {getattr(dependency, '__name__', dependency)!r}: "
            "dependency functions need a return annotation"
        )
    return return_type


def override_dependencies(app: FastAPI, mocker: Mocker, *dependencies: Any) -> Dict[Any, Callable[[], Any]]:
    """Point FastAPI dependencies at the mocker.

    Classes are overridden with their own type. Dependency functions are
    overridden with the type named by their return annotation.

    Args:
        app: The application under test.
        mocker: The mocker of the running test.
        *dependencies: Dependency callables or classes used with Depends().

    Returns:
        The installed overrides keyed by dependency.

    Raises:
        TypeError: If a dependency function has no return annotation.

    Example:
        >>> def get_user_service() -> UserService: ...
        >>> override_dependencies(app, automocker, get_user_service)
        >>> automocker.get_substitute(UserService).setup("count").returns(3)
    """
    installed = {
        dependency: create_mocker_dependency(mocker, _provided_type(dependency))
        for dependency in dependencies
    }
    app.dependency_overrides.update(installed)
    return installed


class MockerOverrides:
    """Context manager installing mocker-backed overrides and restoring the previous ones.

    Example:
        >>> with MockerOverrides(app, mocker, get_user_service):
        ...     response = client.get("/users/count")
    """

    def __init__(self, app: FastAPI, mocker: Mocker, *dependencies: Any) -> None:
        """Initialize the overrides.

        Args:
            app: The application under test.
            mocker: The mocker providing the values.
            *dependencies: Dependency callables or classes to override.
        """
        self._app = app
        self._mocker = mocker
        self._dependencies = dependencies
        self._previous: Dict[Any, Any] = {}

    def __enter__(self) -> Dict[Any, Callable[[], Any]]:
        overrides = self._app.dependency_overrides
        self._previous = {dependency: overrides[dependency] for dependency in self._dependencies if dependency in overrides}
        return override_dependencies(self._app, self._mocker, *self._dependencies)

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        overrides = self._app.dependency_overrides
        for dependency in self._dependencies:
            if dependency in self._previous:
                overrides[dependency] = self._previous[dependency]
            else:
                overrides.pop(dependency, None)
        self._previous = {}
        return False
