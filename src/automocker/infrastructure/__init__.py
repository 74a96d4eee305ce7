"""
Infrastructure layer - External integrations.

This layer contains the well-known in-memory instances, the pytest tooling
and the FastAPI integration. The ``testing`` and ``fastapi_integration``
modules are imported explicitly; FastAPI is an optional dependency.
"""

from . import well_known

__all__ = [
    "well_known",
]
