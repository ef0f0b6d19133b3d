from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .exceptions import InvalidResponseError
from .http_client import HttpClient

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class BaseClient:
    http: HttpClient

    @staticmethod
    def _auth_headers(token: str | None = None, tenant_id: str | None = None) -> dict[str, str]:
        headers: dict[str, str] = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if tenant_id:
            headers["X-Tenant-ID"] = tenant_id
        return headers

    def _request(self, method: str, path: str, *, token: str | None = None, tenant_id: str | None = None, **kwargs):
        headers = kwargs.pop("headers", {})
        merged = {**self._auth_headers(token, tenant_id), **headers}
        return self.http.request(method, path, headers=merged, **kwargs)

    def _parse(self, model: type[ModelT], data: Any) -> ModelT:
        try:
            return model.model_validate(data if data is not None else {})
        except PydanticValidationError as exc:
            trace = self.http.trace
            raise InvalidResponseError(
                code="INVALID_RESPONSE",
                message=f"Unexpected {model.__name__} payload from server",
                details=exc.errors(include_url=False),
                trace_id=trace.trace_id if trace else None,
                status_code=200,
                raw_payload=data,
            ) from exc
