from __future__ import annotations

import json
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Mapping
from urllib.parse import urljoin

import requests

from ..config import ConsoleConfig
from .error_mapper import map_error
from .exceptions import ApiError, AuthError, ForbiddenError, TransportError

TRACE_HEADER = "X-Trace-ID"
TRACE_HEADER_ALIASES = (TRACE_HEADER, "X-Trace-Id", "X-Request-ID")

AuthErrorHandler = Callable[[ApiError], None]


@dataclass
class TraceContext:
    trace_id: str | None = None

    def ensure(self) -> str:
        if not self.trace_id:
            self.trace_id = str(uuid.uuid4())
        return self.trace_id

    def update_from_headers(self, headers: Mapping[str, str]) -> None:
        for key in TRACE_HEADER_ALIASES:
            trace_id = headers.get(key)
            if trace_id:
                self.trace_id = trace_id
                return


@dataclass
class HttpClient:
    config: ConsoleConfig
    trace: TraceContext | None = None
    session: requests.Session | None = None
    _auth_error_handler: AuthErrorHandler | None = None

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = requests.Session()
        if self.trace is None:
            self.trace = TraceContext()

    def register_auth_error_handler(self, handler: AuthErrorHandler | None) -> None:
        self._auth_error_handler = handler

    def _build_url(self, path: str) -> str:
        base = self.config.api_base_url.rstrip("/") + "/"
        return urljoin(base, path.lstrip("/"))

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        notify_auth_errors: bool = True,
    ) -> dict[str, Any] | list[Any] | None:
        if self.session is None:
            raise RuntimeError("HTTP session not initialized")
        request_headers = {"Accept": "application/json"}
        if headers:
            request_headers.update(headers)
        trace_context = self.trace or TraceContext()
        trace_context.trace_id = None
        request_headers[TRACE_HEADER] = trace_context.ensure()

        normalized_method = method.upper()
        url = self._build_url(path)
        # Mutations (login, 2FA, logout) are never replayed here.
        attempts = self.config.retries + 1 if normalized_method in {"GET", "HEAD"} else 1

        response: requests.Response | None = None
        for attempt in range(attempts):
            try:
                response = self.session.request(
                    method=normalized_method,
                    url=url,
                    headers=request_headers,
                    json=json_body,
                    params=params,
                    timeout=self.config.timeout_seconds,
                    verify=self.config.verify_ssl,
                )
            except requests.RequestException as exc:
                if attempt >= attempts - 1:
                    raise TransportError(
                        code="TRANSPORT_ERROR",
                        message=str(exc),
                        details={"type": type(exc).__name__},
                        trace_id=trace_context.trace_id,
                        status_code=0,
                        raw_payload=None,
                    ) from exc
            else:
                if response.status_code < 500 or attempt >= attempts - 1:
                    break
            time.sleep(self.config.retry_backoff_seconds * (2**attempt))

        if response is None:
            raise RuntimeError("HTTP request failed without response")

        trace_context.update_from_headers(response.headers)
        if response.ok:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError:
                return {"message": response.text}

        try:
            payload = response.json()
        except json.JSONDecodeError:
            payload = {"message": response.text}
        error = map_error(
            response.status_code,
            payload if isinstance(payload, dict) else {"details": payload},
            trace_context.trace_id,
        )
        if notify_auth_errors and self._auth_error_handler and isinstance(error, (AuthError, ForbiddenError)):
            self._auth_error_handler(error)
        raise error
