"""Chainable HTTP requests with middleware, retries and result decoding."""

from __future__ import annotations

import dataclasses
import json
import time
from collections.abc import Callable, Mapping
from functools import reduce
from typing import Any, Protocol
from urllib.parse import urlencode, urljoin

import requests
from requests.structures import CaseInsensitiveDict

from maltose.internal import intlog
from maltose.mclient.response import Response
from maltose.mclient.retry import (
    RetryCondition,
    RetryConfig,
    calculate_retry_delay,
    default_retry_config,
    should_retry,
)

Handler = Callable[["Request"], Response]
Middleware = Callable[[Handler], Handler]

_DEFAULT_TIMEOUT = 30.0
_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
_JSON_CONTENT_TYPE = "application/json"


class _ClientLike(Protocol):
    """What a request needs from the client that created it."""

    config: Any
    middlewares: list

    def _do(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None,
    ) -> requests.Response: ...


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _encode_params(params: Mapping[str, str]) -> str:
    return urlencode(sorted(params.items()))


class Request:
    """A single HTTP request, configured by chained calls and then sent.

    Without a client the request is sent directly with a 30 second timeout;
    with one, the client's base URL, default headers, middlewares and
    transport are used.
    """

    def __init__(self, client: _ClientLike | None = None) -> None:
        self._client = client
        self._http_method = ""
        self.request_url: str | None = None
        self.headers: CaseInsensitiveDict = CaseInsensitiveDict()
        self._payload: Any = None
        self._query: dict[str, str] = {}
        self._form: dict[str, str] = {}
        self._middlewares: list[Middleware] = []
        self._response: Response | None = None
        self._result: Any = None
        self._error_result: Any = None
        self._retry_count = 0
        self._retry_interval = 0.0
        self._retry_condition: RetryCondition | None = None
        self._retry_config = RetryConfig()

    # -- inspection -------------------------------------------------------

    @property
    def http_method(self) -> str:
        """The HTTP method set so far, or an empty string."""
        return self._http_method

    @property
    def body(self) -> Any:
        """The body to be sent: bytes, a readable object, or None."""
        return self._payload

    def get_response(self) -> Response | None:
        return self._response

    def set_response(self, response: Response | None) -> None:
        self._response = response

    # -- building ---------------------------------------------------------

    def use(self, *middlewares: Middleware) -> Request:
        """Add middlewares that run after the client's own."""
        self._middlewares.extend(middlewares)
        return self

    def method(self, method: str) -> Request:
        self._http_method = method
        return self

    def url(self, url: str) -> Request:
        """Set the URL, resolved against the current one."""
        try:
            self.request_url = urljoin(self.request_url or "", url)
        except ValueError:
            pass
        return self

    def set_result(self, result: Any) -> Request:
        """Decode a successful response's JSON body into ``result``."""
        self._result = result
        return self

    def set_error(self, error: Any) -> Request:
        """Decode an unsuccessful response's JSON body into ``error``."""
        self._error_result = error
        return self

    def header(self, key: str, value: str) -> Request:
        self.headers[key] = value
        return self

    def set_header(self, key: str, value: str) -> Request:
        return self.header(key, value)

    def set_headers(self, headers: Mapping[str, str]) -> Request:
        for key, value in headers.items():
            self.header(key, value)
        return self

    def content_type(self, content_type: str) -> Request:
        return self.header("Content-Type", content_type)

    def set_query(self, key: str, value: str) -> Request:
        self._query[key] = value
        return self

    def set_query_map(self, params: Mapping[str, str]) -> Request:
        self._query.update(params)
        return self

    def set_form(self, key: str, value: str) -> Request:
        self._form[key] = value
        return self

    def set_form_map(self, params: Mapping[str, str]) -> Request:
        self._form.update(params)
        return self

    def set_body(self, body: Any) -> Request:
        """Set the body: text, bytes and readers as they are, anything else as JSON."""
        if isinstance(body, str):
            self._payload = body.encode("utf-8")
        elif isinstance(body, (bytes, bytearray)):
            self._payload = bytes(body)
        elif hasattr(body, "read"):
            self._payload = body
        else:
            try:
                encoded = json.dumps(body, default=_json_default).encode("utf-8")
            except (TypeError, ValueError) as exc:
                intlog.error("JSON marshal failed:", exc)
                return self
            self._payload = encoded
            if not self.headers.get("Content-Type"):
                self.content_type(_JSON_CONTENT_TYPE)
        return self

    def set_retry(self, config: RetryConfig) -> Request:
        self._retry_count = config.count
        self._retry_interval = config.base_interval
        self._retry_config = config
        return self

    def set_retry_simple(self, count: int, base_interval: float) -> Request:
        """Retry ``count`` times from ``base_interval`` seconds, default backoff and jitter."""
        config = dataclasses.replace(
            default_retry_config(), count=count, base_interval=base_interval
        )
        return self.set_retry(config)

    def set_retry_condition(self, condition: RetryCondition | None) -> Request:
        """Decide retries with ``condition(raw_response, error)``."""
        self._retry_condition = condition
        return self

    # -- sending ----------------------------------------------------------

    def send(self, url: str) -> Response:
        """Send to ``url`` with the method set so far, GET by default."""
        return self._do_request(self._http_method or "GET", url)

    def get(self, url: str) -> Response:
        return self.method("GET").send(url)

    def post(self, url: str) -> Response:
        return self.method("POST").send(url)

    def put(self, url: str) -> Response:
        return self.method("PUT").send(url)

    def delete(self, url: str) -> Response:
        return self.method("DELETE").send(url)

    def patch(self, url: str) -> Response:
        return self.method("PATCH").send(url)

    def head(self, url: str) -> Response:
        return self.method("HEAD").send(url)

    def options(self, url: str) -> Response:
        return self.method("OPTIONS").send(url)

    def do(self) -> Response:
        """Send to the URL set with ``url``, retrying with backoff between rounds."""
        if not self.request_url:
            raise ValueError("request URL is not set")
        condition = self._retry_condition
        response: Response | None = None
        error: Exception | None = None
        for attempt in range(self._retry_count + 1):
            if attempt > 0:
                time.sleep(
                    calculate_retry_delay(self._retry_config, self._retry_interval, attempt)
                )
            response, error = None, None
            try:
                response = self._do_request(
                    self._http_method or "GET", self.request_url or ""
                )
            except Exception as exc:  # noqa: BLE001 - any failure may be retried
                error = exc

            if error is None and response is not None:
                if condition is None:
                    status = response.status_code
                    if status < 500 and status != 429:
                        return response
                elif not condition(response.raw, None):
                    return response
            elif condition is None:
                continue
            elif not condition(None, error):
                raise error  # type: ignore[misc]

            if response is not None:
                response.close()

        if error is not None:
            raise error
        assert response is not None
        return response

    def _do_request(self, method: str, url: str) -> Response:
        max_attempts = max(self._retry_count + 1, 1)
        attempts = 0
        while True:
            attempts += 1
            response: Response | None = None
            error: Exception | None = None
            try:
                response = self._attempt(method, url)
            except Exception as exc:  # noqa: BLE001 - any failure may be retried
                error = exc

            raw = response.raw if response is not None else None
            if not should_retry(self._retry_condition, raw, error) or attempts >= max_attempts:
                break

            if response is not None:
                response.close()
            intlog.printf(
                "Retrying request (attempt %d/%d) after error: %s",
                attempts,
                max_attempts,
                error,
            )
            if self._retry_interval > 0:
                time.sleep(self._retry_interval)

        if error is not None:
            raise error
        assert response is not None
        try:
            response._parse_response()
        except Exception:
            response.close()
            raise
        return response

    def _full_url(self, url: str) -> str:
        full_url = url
        base_url = self._client_base_url()
        if base_url and not url.startswith(("http://", "https://")):
            if not base_url.endswith("/") and not url.startswith("/"):
                base_url += "/"
            elif base_url.endswith("/") and url.startswith("/"):
                url = url[1:]
            full_url = base_url + url
        if self._query:
            separator = "&" if "?" in full_url else "?"
            full_url = full_url + separator + _encode_params(self._query)
        return full_url

    def _attempt(self, method: str, url: str) -> Response:
        full_url = self._full_url(url)

        if self._form:
            body: bytes | None = _encode_params(self._form).encode("ascii")
            self.content_type(_FORM_CONTENT_TYPE)
        else:
            if hasattr(self._payload, "read"):
                data = self._payload.read()
                self._payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
            body = self._payload

        merged: CaseInsensitiveDict = CaseInsensitiveDict()
        for key, value in self._client_headers().items():
            if value:
                merged[key] = value
        for key, value in self.headers.items():
            merged[key] = value

        self._http_method = method
        self.request_url = full_url
        self.headers = merged
        self._payload = body

        def base_handler(request: Request) -> Response:
            raw = request._transport(
                request._http_method or "GET",
                request.request_url or "",
                request.headers,
                request._payload,
            )
            return Response(raw, request._result, request._error_result)

        chain = self._client_middlewares() + self._middlewares
        handler = reduce(lambda inner, mw: mw(inner), reversed(chain), base_handler)
        response = handler(self)
        self.set_response(response)
        return response

    def _transport(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None,
    ) -> requests.Response:
        if self._client is not None:
            return self._client._do(method, url, headers, body)
        return requests.request(
            method, url, headers=dict(headers), data=body, timeout=_DEFAULT_TIMEOUT
        )

    def _client_base_url(self) -> str:
        config = getattr(self._client, "config", None)
        return getattr(config, "base_url", "") or ""

    def _client_headers(self) -> Mapping[str, str]:
        config = getattr(self._client, "config", None)
        return getattr(config, "header", None) or {}

    def _client_middlewares(self) -> list[Middleware]:
        return list(getattr(self._client, "middlewares", None) or ())