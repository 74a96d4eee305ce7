"""
Testing utilities module.

Provides the test base class and session helpers for pytest suites using automocker.
The ``automocker`` fixture lives in the ``plugin`` module, registered as a pytest plugin.
"""

from .utilities import MockerTestBase, mocker_session

__all__ = [
    "MockerTestBase",
    "mocker_session",
]
