"""HTTP client abstraction for the distribution service and notifications.

This module provides:
- HttpClient: Protocol for the three request shapes appship needs
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Scripted implementation for testing

Non-2xx answers are returned as ``Ok(HttpResponse)`` carrying their
status; only transport failures (DNS, TLS, refused connection, timeout)
are ``Err(HttpError)``. Callers decide what a status means.
"""

from __future__ import annotations

import http.client
import json
import ssl
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable

from appship import __version__
from appship.core.result import Err, Ok, Result

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
    "MockHttpClient",
    "RealHttpClient",
    "with_query",
]


@dataclass(frozen=True, slots=True)
class HttpResponse:
    status: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@dataclass(frozen=True, slots=True)
class HttpError:
    """Transport-level failure: no HTTP response was received.

    Attributes:
        url: The URL that failed
        message: Human-readable error message
    """

    url: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} ({_redact(self.url)})"


def _redact(url: str) -> str:
    # Query strings carry the upload key; bot URLs carry the token.
    parts = urllib.parse.urlsplit(url)
    path = "/bot***/" + parts.path.split("/")[-1] if parts.path.startswith("/bot") else parts.path
    return urllib.parse.urlunsplit((parts.scheme, parts.netloc, path, "", ""))


def with_query(url: str, params: Mapping[str, str]) -> str:
    """Append URL-encoded query parameters to url."""
    if not params:
        return url
    return f"{url}?{urllib.parse.urlencode(dict(params))}"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations.

    Injected into services so unit tests never touch the network.
    """

    def get_text(
        self, url: str, params: Mapping[str, str] | None = None
    ) -> Result[HttpResponse, HttpError]:
        """GET url (with optional query parameters) and return the body as text."""
        ...

    def put_file(
        self, url: str, path: Path, headers: Mapping[str, str] | None = None
    ) -> Result[HttpResponse, HttpError]:
        """PUT the raw bytes of path to url, with an explicit Content-Length."""
        ...

    def post_json(self, url: str, body: Mapping[str, object]) -> Result[HttpResponse, HttpError]:
        """POST body encoded as JSON."""
        ...


class RealHttpClient:
    """Real HTTP client using urllib.

    Handles:
    - HTTPS with system certificates
    - Streaming file uploads
    - Error statuses returned as responses
    """

    def __init__(self, timeout: float | None = None, user_agent: str | None = None) -> None:
        """Initialize HTTP client.

        Args:
            timeout: Socket timeout in seconds (None leaves it to the OS)
            user_agent: User-Agent header value
        """
        self.timeout = timeout
        self.user_agent = user_agent or f"appship/{__version__}"
        self._ssl_context = ssl.create_default_context()

    def _send(
        self,
        url: str,
        *,
        method: str,
        data: bytes | BinaryIO | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Result[HttpResponse, HttpError]:
        """Send one request; HTTP error statuses come back as responses."""
        try:
            req = urllib.request.Request(url, data=data, method=method)
            for name, value in (headers or {}).items():
                req.add_header(name, value)
            req.add_header("User-Agent", self.user_agent)
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                body = response.read().decode("utf-8", errors="replace")
                return Ok(HttpResponse(status=response.status, body=body))
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace") if e.fp is not None else ""
            return Ok(HttpResponse(status=e.code, body=body))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, message="Request timed out"))
        except http.client.HTTPException as e:
            message = f"bad response: {type(e).__name__} {e}".rstrip()
            return Err(HttpError(url=url, message=message))
        except ValueError as e:
            return Err(HttpError(url=url, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, message=str(e)))

    def get_text(
        self, url: str, params: Mapping[str, str] | None = None
    ) -> Result[HttpResponse, HttpError]:
        return self._send(with_query(url, params or {}), method="GET")

    def put_file(
        self, url: str, path: Path, headers: Mapping[str, str] | None = None
    ) -> Result[HttpResponse, HttpError]:
        try:
            size = path.stat().st_size
            handle = path.open("rb")
        except OSError as e:
            return Err(HttpError(url=url, message=f"cannot read {path}: {e}"))

        # A file object body is streamed; Content-Length keeps it from being chunked.
        with handle:
            return self._send(
                url,
                method="PUT",
                data=handle,
                headers={**(headers or {}), "Content-Length": str(size)},
            )

    def post_json(self, url: str, body: Mapping[str, object]) -> Result[HttpResponse, HttpError]:
        return self._send(
            url,
            method="POST",
            data=json.dumps(dict(body)).encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )


@dataclass(frozen=True, slots=True)
class RecordedCall:
    """One request seen by MockHttpClient."""

    method: str
    url: str
    params: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    body: object = None


def _empty_calls() -> list[RecordedCall]:
    return []


@dataclass
class MockHttpClient:
    """Mock HTTP client for testing.

    Responses are keyed by (method, url) without the query string.
    Unscripted requests get a 404.

    Usage:
        client = MockHttpClient()
        client.set("GET", "https://appho.st/api/get_upload_url", HttpResponse(200, "https://s3/x"))
        client.get_text("https://appho.st/api/get_upload_url", {"key": "k"})
        assert client.calls[0].params == {"key": "k"}
    """

    calls: list[RecordedCall] = field(default_factory=_empty_calls)
    _responses: dict[tuple[str, str], HttpResponse | HttpError] = field(default_factory=dict)

    def set(self, method: str, url: str, response: HttpResponse | HttpError) -> None:
        self._responses[(method, url)] = response

    def _reply(self, method: str, url: str) -> Result[HttpResponse, HttpError]:
        response = self._responses.get((method, url))
        if response is None:
            return Ok(HttpResponse(status=404, body="Not found (mock)"))
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def get_text(
        self, url: str, params: Mapping[str, str] | None = None
    ) -> Result[HttpResponse, HttpError]:
        self.calls.append(RecordedCall("GET", url, params=dict(params or {})))
        return self._reply("GET", url)

    def put_file(
        self, url: str, path: Path, headers: Mapping[str, str] | None = None
    ) -> Result[HttpResponse, HttpError]:
        self.calls.append(
            RecordedCall("PUT", url, headers=dict(headers or {}), body=path.read_bytes())
        )
        return self._reply("PUT", url)

    def post_json(self, url: str, body: Mapping[str, object]) -> Result[HttpResponse, HttpError]:
        self.calls.append(RecordedCall("POST", url, body=dict(body)))
        return self._reply("POST", url)

    # Test helper methods

    @property
    def methods(self) -> list[str]:
        return [c.method for c in self.calls]

    def calls_to(self, url_prefix: str) -> list[RecordedCall]:
        return [c for c in self.calls if c.url.startswith(url_prefix)]
