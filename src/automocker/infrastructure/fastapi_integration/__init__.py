"""
FastAPI integration module.

Provides helpers that point FastAPI dependencies at an automocker session.
"""

from .integration import MockerOverrides, create_mocker_dependency, override_dependencies

__all__ = [
    "create_mocker_dependency",
    "override_dependencies",
    "MockerOverrides",
]
