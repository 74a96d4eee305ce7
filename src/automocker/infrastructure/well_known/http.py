import logging
from http import HTTPStatus
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from urllib.parse import urljoin

import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

logger = logging.getLogger(__name__)

HandlerResult = Union[requests.Response, Tuple[int, Union[str, bytes]]]


def build_response(
    request: requests.PreparedRequest,
    status_code: int,
    content: Union[str, bytes],
    headers: Optional[Dict[str, str]] = None,
) -> requests.Response:
    """Build a completed ``requests.Response`` for a prepared request."""
    response = requests.Response()
    response.status_code = status_code
    try:
        response.reason = HTTPStatus(status_code).phrase
    except ValueError:
        response.reason = ""
    response._content = content.encode("utf-8") if isinstance(content, str) else content
    # There is no raw stream behind the body.
    response._content_consumed = True
    response.encoding = "utf-8"
    response.headers = CaseInsensitiveDict(headers or {})
    response.url = request.url
    response.request = request
    return response


class FakeHttpAdapter(BaseAdapter):
    """Transport adapter that answers every request in-process.

    Every prepared request is recorded in ``requests``. Responses come from the
    handler set with ``set_handler`` when there is one, else from the canned
    status and body.

    Example:
        >>> adapter = FakeHttpAdapter()
        >>> adapter.respond_with(404, '{"error": "missing"}')
        >>> session.mount("http://", adapter)
    """

    def __init__(self, status_code: int = 200, content: Union[str, bytes] = "") -> None:
        super().__init__()
        self.requests: List[requests.PreparedRequest] = []
        self._status_code = status_code
        self._content = content
        self._headers: Dict[str, str] = {}
        self._handler: Optional[Callable[[requests.PreparedRequest], HandlerResult]] = None

    def respond_with(
        self,
        status_code: int,
        content: Union[str, bytes] = "",
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        """Change the canned response and drop any handler."""
        self._status_code = status_code
        self._content = content
        self._headers = dict(headers or {})
        self._handler = None

    def set_handler(self, handler: Callable[[requests.PreparedRequest], HandlerResult]) -> None:
        """Answer requests with ``handler(request)``.

        The handler returns a ``requests.Response`` or a ``(status_code, content)`` tuple.
        """
        self._handler = handler

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:
        self.requests.append(request)
        logger.debug("Fake HTTP %s %s", request.method, request.url)

        if self._handler is None:
            return build_response(request, self._status_code, self._content, self._headers)

        result = self._handler(request)
        if isinstance(result, requests.Response):
            return result
        status_code, content = result
        return build_response(request, status_code, content)

    def reset(self) -> None:
        """Forget recorded requests."""
        self.requests.clear()

    def close(self) -> None:
        pass


class HttpSession(requests.Session):
    """``requests.Session`` that resolves relative URLs against a base URL."""

    def __init__(self, base_url: str, adapter: Optional[BaseAdapter] = None) -> None:
        super().__init__()
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        if adapter is not None:
            self.mount("http://", adapter)
            self.mount("https://", adapter)

    def request(self, method: str, url: str, *args: Any, **kwargs: Any) -> requests.Response:
        return super().request(method, urljoin(self.base_url, url), *args, **kwargs)
