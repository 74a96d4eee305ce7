import logging
from typing import Any, Callable, Dict, Optional, Type

import requests
from requests.adapters import BaseAdapter

from automocker.domain import MockerOptions
from automocker.infrastructure.well_known.filesystem import FileSystem, MemoryFileSystem
from automocker.infrastructure.well_known.http import FakeHttpAdapter, HttpSession

logger = logging.getLogger(__name__)


class WellKnownInstances:
    """Convenience instances shared by everything built in one session.

    Parameters typed with a known type receive the shared instance instead of
    a substitute. Instances are created on first use from the session options.

    Attributes:
        _options: The session options (HTTP base URL and default response).
        _getters: Known types mapped to the function returning their instance.

    Example:
        >>> well_known = WellKnownInstances(MockerOptions())
        >>> well_known.get(FileSystem) is well_known.file_system
        True
    """

    def __init__(self, options: MockerOptions) -> None:
        self._options = options
        self._file_system: Optional[MemoryFileSystem] = None
        self._http_adapter: Optional[FakeHttpAdapter] = None
        self._http_client: Optional[HttpSession] = None
        self._getters: Dict[Type, Callable[[], Any]] = {
            FileSystem: lambda: self.file_system,
            MemoryFileSystem: lambda: self.file_system,
            BaseAdapter: lambda: self.http_adapter,
            FakeHttpAdapter: lambda: self.http_adapter,
            requests.Session: lambda: self.http_client,
            HttpSession: lambda: self.http_client,
        }

    @property
    def file_system(self) -> MemoryFileSystem:
        if self._file_system is None:
            self._file_system = MemoryFileSystem()
        return self._file_system

    @property
    def http_adapter(self) -> FakeHttpAdapter:
        if self._http_adapter is None:
            self._http_adapter = FakeHttpAdapter(self._options.http_status_code, self._options.http_content)
        return self._http_adapter

    @property
    def http_client(self) -> HttpSession:
        if self._http_client is None:
            self._http_client = HttpSession(self._options.http_base_url, self.http_adapter)
        return self._http_client

    def register(self, known_type: Type, getter: Callable[[], Any]) -> None:
        """Add or replace a known type."""
        self._getters[known_type] = getter

    def provides(self, known_type: Any) -> bool:
        return known_type in self._getters

    def get(self, known_type: Type) -> Any:
        """Return the shared instance for a known type.

        Raises:
            KeyError: If the type is not known.
        """
        instance = self._getters[known_type]()
        logger.debug("Using well-known instance for %s", getattr(known_type, "__name__", known_type))
        return instance

    def close(self) -> None:
        """Close the HTTP session and forget every created instance."""
        if self._http_client is not None:
            self._http_client.close()
        self._file_system = None
        self._http_adapter = None
        self._http_client = None
