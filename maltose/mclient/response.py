"""Responses returned by the HTTP client."""

from __future__ import annotations

import dataclasses
import json
from typing import Any

import requests

from maltose.internal import intlog


def _fill(target: Any, data: Any) -> None:
    """Store decoded JSON ``data`` into ``target`` in place."""
    if target is None or data is None:
        return
    if isinstance(target, dict):
        if not isinstance(data, dict):
            raise ValueError(f"cannot decode JSON {type(data).__name__} into dict")
        target.update(data)
        return
    if isinstance(target, list):
        if not isinstance(data, list):
            raise ValueError(f"cannot decode JSON {type(data).__name__} into list")
        target[:] = data
        return
    if isinstance(data, dict):
        if dataclasses.is_dataclass(target) and not isinstance(target, type):
            names = [f.name for f in dataclasses.fields(target)]
        elif hasattr(target, "__dict__"):
            names = list(vars(target))
        else:
            names = []
        if names:
            by_lower = {name.lower(): name for name in names}
            for key, value in data.items():
                name = key if key in names else by_lower.get(key.lower())
                if name is not None:
                    setattr(target, name, value)
            return
    raise ValueError(
        f"cannot decode JSON {type(data).__name__} into {type(target).__name__}"
    )


class Response:
    """An HTTP response with cached body, cookies and result targets."""

    def __init__(
        self,
        raw: requests.Response | None = None,
        result: Any = None,
        error_result: Any = None,
    ) -> None:
        self.raw = raw
        self._result = result
        self._error_result = error_result
        self._cookies: dict[str, str] | None = None
        self._body: bytes | None = None

    @property
    def status_code(self) -> int:
        return self.raw.status_code if self.raw is not None else 0

    @property
    def headers(self) -> Any:
        return self.raw.headers if self.raw is not None else {}

    @property
    def content_length(self) -> int:
        """Body length once read, else the Content-Length header, else -1."""
        if self._body is not None:
            return len(self._body)
        if self.raw is None:
            return 0
        try:
            return int(self.raw.headers.get("Content-Length", -1))
        except (TypeError, ValueError):
            return -1

    def _init_cookies(self) -> dict[str, str]:
        if self._cookies is None:
            self._cookies = {}
            if self.raw is not None:
                for cookie in self.raw.cookies:
                    self._cookies[cookie.name] = cookie.value or ""
        return self._cookies

    def get_cookie(self, key: str) -> str:
        """Value of cookie ``key``, or an empty string."""
        return self._init_cookies().get(key, "")

    def get_cookies(self) -> dict[str, str]:
        """All cookies of the response."""
        return self._init_cookies()

    def get_cookie_map(self) -> dict[str, str]:
        """A copy of the cookies of the response."""
        return dict(self._init_cookies())

    def _read_body(self) -> bytes:
        if self._body is None:
            content = self.raw.content if self.raw is not None else b""
            self.set_body_content(content or b"")
        return self._body or b""

    def read_all(self) -> bytes:
        """The whole body; it can be read any number of times."""
        if self.raw is None:
            return b""
        try:
            return self._read_body()
        except (requests.RequestException, OSError, RuntimeError) as exc:
            intlog.error("ReadAll error:", exc)
            return b""

    def read_all_string(self) -> str:
        return self.read_all().decode("utf-8", errors="replace")

    def parse(self, result: Any) -> Any:
        """Decode the JSON body into ``result`` in place and return the decoded value."""
        if self.raw is None:
            raise ValueError("response or response body is nil")
        data = json.loads(self._read_body())
        _fill(result, data)
        return data

    def is_success(self) -> bool:
        """Whether the status code is 2xx."""
        return self.raw is not None and 200 <= self.raw.status_code < 300

    def set_body_content(self, content: bytes) -> None:
        """Replace the body with ``content``."""
        self._body = bytes(content)

    def close(self) -> None:
        if self.raw is not None:
            self.raw.close()

    def set_result(self, result: Any) -> None:
        self._result = result

    def set_error(self, error: Any) -> None:
        self._error_result = error

    def get_result(self) -> Any:
        return self._result

    def get_error(self) -> Any:
        return self._error_result

    def _parse_response(self) -> None:
        """Decode the body into the result or error target, depending on the status."""
        if self.raw is None:
            raise ValueError("response is nil")
        intlog.printf(
            "parseResponse called, status code: %d, result: %s, errorResult: %s",
            self.status_code,
            self._result is not None,
            self._error_result is not None,
        )
        if self.is_success():
            if self._result is not None:
                intlog.printf("Parsing success response into result")
                self.parse(self._result)
        elif self._error_result is not None:
            intlog.printf("Parsing error response into errorResult")
            self.parse(self._error_result)