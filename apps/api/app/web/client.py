"""Thin httpx wrapper around the CRM JSON API.

Successful responses are unwrapped from their ``{"data": ...}`` envelope.
Any non-2xx response raises ``ApiRequestError`` carrying the server's
``{"error", "details"}`` envelope.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx


logger = logging.getLogger("app.web.client")

DEFAULT_BASE_URL = "http://localhost:4000"


class ApiRequestError(Exception):
    def __init__(self, status_code: int, message: str, details: str | None = None) -> None:
        self.status_code = status_code
        self.message = message
        self.details = details
        super().__init__(f"{status_code}: {message}")


class ApiClient:
    def __init__(self, base_url: str = DEFAULT_BASE_URL, *, client: httpx.Client | None = None, timeout: float = 10.0):
        # An injected client keeps its own base URL and cookie jar.
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)
        self._owns_client = client is None

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        query = {key: value for key, value in (params or {}).items() if value not in (None, "")}
        response = self._client.request(method, path, params=query or None, json=json)
        if response.is_success:
            return response.json()["data"]

        error = _error_from_response(response)
        logger.info(
            "api.request_failed",
            extra={"method": method, "path": path, "status_code": response.status_code, "error": error.message},
        )
        raise error

    def get(self, path: str, **params: Any) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, payload: dict[str, Any]) -> Any:
        return self.request("POST", path, json=payload)

    def put(self, path: str, payload: dict[str, Any]) -> Any:
        return self.request("PUT", path, json=payload)

    def patch(self, path: str, payload: dict[str, Any]) -> Any:
        return self.request("PATCH", path, json=payload)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    def login(self, email: str, password: str) -> dict[str, Any]:
        return self.post("/api/auth/login", {"email": email, "password": password})

    def logout(self) -> dict[str, Any]:
        return self.post("/api/auth/logout", {})

    def me(self) -> dict[str, Any]:
        return self.get("/api/auth/me")


def _error_from_response(response: httpx.Response) -> ApiRequestError:
    try:
        body = response.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        return ApiRequestError(response.status_code, "Request failed")
    return ApiRequestError(
        response.status_code,
        str(body.get("error") or "Request failed"),
        body.get("details"),
    )
