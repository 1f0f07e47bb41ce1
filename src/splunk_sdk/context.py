"""
HTTP plumbing for the Splunk REST API

A Context owns the aiohttp session used to talk to one splunkd management
port. Entities and collections address resources through a Namespace and a
ResourceName; the Context turns those into URLs, attaches authentication
and returns fully read Response objects.
"""

import logging
import ssl
from dataclasses import dataclass, field
from http.cookies import CookieError, SimpleCookie
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import quote

import aiohttp

from .arguments import encode_arguments, iter_arguments
from .atom import read_messages
from .exceptions import error_for_status

logger = logging.getLogger(__name__)

USER_AGENT = "splunk-sdk-async/1.0"

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True)
class Namespace:
    """
    User/app context of a REST request.

    The default namespace addresses /services; any other namespace addresses
    /servicesNS/<user>/<app> with '-' standing for all users or all apps.
    """
    user: Optional[str] = None
    app: Optional[str] = None

    WILDCARD = "-"

    @property
    def is_specific(self) -> bool:
        return self.user not in (None, self.WILDCARD) and self.app not in (None, self.WILDCARD)

    def __str__(self) -> str:
        if self.user is None and self.app is None:
            return "services"
        user = quote(self.user or self.WILDCARD, safe="")
        app = quote(self.app or self.WILDCARD, safe="")
        return f"servicesNS/{user}/{app}"


class ResourceName(tuple):
    """Path of a REST resource relative to its namespace"""

    def __new__(cls, *parts: Any) -> "ResourceName":
        flattened = []
        for part in parts:
            if isinstance(part, ResourceName):
                flattened.extend(part)
            else:
                flattened.append(str(part))
        return super().__new__(cls, flattened)

    @property
    def title(self) -> str:
        return self[-1] if self else ""

    @property
    def collection(self) -> "ResourceName":
        return ResourceName(*self[:-1])

    def __str__(self) -> str:
        return "/".join(quote(part, safe="") for part in self)

    def __repr__(self) -> str:
        return f"ResourceName({', '.join(repr(part) for part in self)})"


@dataclass
class Response:
    """A completely read HTTP response"""
    status: int
    reason: str = ""
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def header(self, name: str) -> Optional[str]:
        values = self.header_values(name)
        return values[0] if values else None

    def header_values(self, name: str) -> List[str]:
        name = name.lower()
        return [value for key, value in self.headers if key.lower() == name]

    def ensure_status(self, *codes: int) -> None:
        """Raise the RequestError matching this response unless its status is expected."""
        if self.status in codes:
            return
        raise error_for_status(self.status, self.reason, read_messages(self.text))


class Context:
    """Async HTTP client bound to one Splunk server"""

    def __init__(
        self,
        scheme: str = "https",
        host: str = "localhost",
        port: int = 8089,
        timeout: Optional[float] = None,
        verify_ssl: bool = True,
    ):
        if scheme not in ("http", "https"):
            raise ValueError("Scheme must be either 'http' or 'https'")
        if not host:
            raise ValueError("Host must be a non-empty string")
        if port < 1 or port > 65535:
            raise ValueError("Port must be between 1 and 65535")
        if timeout is not None and timeout <= 0:
            raise ValueError("Timeout must be a positive number of seconds")

        self.scheme = scheme
        self.host = host
        self.port = port
        self.timeout = timeout
        self.verify_ssl = verify_ssl

        self.session_key: Optional[str] = None
        self.token: Optional[str] = None
        self.cookies: Dict[str, str] = {}

        self.session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def from_config(cls, config) -> "Context":
        context = cls(
            scheme=config.scheme,
            host=config.host,
            port=config.port,
            timeout=config.timeout,
            verify_ssl=config.verify_ssl,
        )
        context.token = config.token
        context.session_key = config.session_key
        return context

    def __str__(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"

    async def __aenter__(self) -> "Context":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def open(self) -> aiohttp.ClientSession:
        """Create the HTTP session on first use"""
        if self.session is not None and not self.session.closed:
            return self.session

        ssl_context = None
        if self.scheme == "https":
            ssl_context = ssl.create_default_context()
            if not self.verify_ssl:
                ssl_context.check_hostname = False
                ssl_context.verify_mode = ssl.CERT_NONE

        connector = aiohttp.TCPConnector(ssl=ssl_context)
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        # Cookies are managed here so that Splunk session cookies win over keys
        self.session = aiohttp.ClientSession(
            connector=connector,
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
            cookie_jar=aiohttp.DummyCookieJar(),
        )
        return self.session

    async def close(self) -> None:
        """Close the HTTP session"""
        if self.session:
            await self.session.close()
            self.session = None

    def create_service_url(self, namespace: Namespace, resource: ResourceName, *argument_sets: Any) -> str:
        url = f"{self}/{namespace}/{resource}"
        query = encode_arguments(iter_arguments(*argument_sets))
        return f"{url}?{query}" if query else url

    def _auth_headers(self) -> Dict[str, str]:
        if self.cookies:
            cookie = "; ".join(f"{name}={value}" for name, value in self.cookies.items())
            return {"Cookie": cookie}
        if self.session_key:
            return {"Authorization": f"Splunk {self.session_key}"}
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    def _store_cookies(self, response: Response) -> None:
        for header in response.header_values("Set-Cookie"):
            cookie = SimpleCookie()
            try:
                cookie.load(header)
            except CookieError as e:
                logger.warning(f"Ignoring malformed Set-Cookie header: {e}")
                continue
            for name, morsel in cookie.items():
                self.cookies[name] = morsel.value

    async def get(self, namespace: Namespace, resource: ResourceName, *argument_sets: Any) -> Response:
        return await self.send("GET", namespace, resource, *argument_sets)

    async def delete(self, namespace: Namespace, resource: ResourceName, *argument_sets: Any) -> Response:
        return await self.send("DELETE", namespace, resource, *argument_sets)

    async def post(
        self,
        namespace: Namespace,
        resource: ResourceName,
        *argument_sets: Any,
        body: Union[str, bytes, None] = None,
        content_type: str = "text/plain",
    ) -> Response:
        """
        POST to a resource.

        Without a body the arguments are sent form-encoded. With a body the
        arguments go into the query string and the body is sent as is.
        """
        if body is None:
            return await self.send("POST", namespace, resource, *argument_sets)

        url = self.create_service_url(namespace, resource, *argument_sets)
        data = body.encode("utf-8") if isinstance(body, str) else body
        return await self._request("POST", url, {"Content-Type": content_type}, data)

    async def send(self, method: str, namespace: Namespace, resource: ResourceName, *argument_sets: Any) -> Response:
        """Send a GET, POST or DELETE request and read the response"""
        method = method.upper()

        if method not in ("GET", "POST", "DELETE"):
            raise ValueError(f"Unsupported HTTP method: {method}")

        if method == "POST":
            url = self.create_service_url(namespace, resource)
            body = encode_arguments(iter_arguments(*argument_sets)).encode("ascii")
            return await self._request(method, url, {"Content-Type": FORM_CONTENT_TYPE}, body)

        url = self.create_service_url(namespace, resource, *argument_sets)
        return await self._request(method, url, {}, b"")

    async def _request(self, method: str, url: str, headers: Dict[str, str], body: bytes) -> Response:
        request_headers = {**self._auth_headers(), **headers}

        logger.debug(f"{method} {url}")
        response = await self._send(method, url, request_headers, body)
        logger.debug(f"{method} {url} -> {response.status} {response.reason}")

        self._store_cookies(response)
        return response

    async def _send(self, method: str, url: str, headers: Dict[str, str], body: bytes) -> Response:
        session = await self.open()

        async with session.request(method, url, headers=headers, data=body or None) as response:
            content = await response.read()
            return Response(
                status=response.status,
                reason=response.reason or "",
                headers=list(response.headers.items()),
                body=content,
            )
