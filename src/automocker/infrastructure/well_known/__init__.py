"""
Well-known instances module.

Provides the in-memory file system and fake HTTP session handed to
constructor parameters of those types.
"""

from .filesystem import FileSystem, MemoryFileSystem
from .http import FakeHttpAdapter, HttpSession, build_response
from .instances import WellKnownInstances

__all__ = [
    "FileSystem",
    "MemoryFileSystem",
    "FakeHttpAdapter",
    "HttpSession",
    "build_response",
    "WellKnownInstances",
]
