"""HTTP client for the Roster API: what the admin form and user list call."""

from __future__ import annotations

from typing import Any

import httpx

DEFAULT_TIMEOUT_SEC = 10.0


class AdminApiError(Exception):
    """Raised when the API answers with success=false (or an unreadable body)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        errors: dict[str, list[str]] | None = None,
        error: str | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.errors = errors or {}
        self.error = error
        super().__init__(message)


class UserAdminClient:
    """
    Thin wrapper over the /api/v1 users and roles endpoints.

    Methods return the envelope's data (or message for delete) and raise
    AdminApiError on any failure envelope.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> UserAdminClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            response = self._http.request(method, path, json=json)
        except httpx.HTTPError as e:
            raise AdminApiError(f"Request failed: {e}") from e
        try:
            body = response.json()
        except ValueError as e:
            raise AdminApiError(
                f"Unexpected response (status {response.status_code})",
                status_code=response.status_code,
            ) from e
        if not isinstance(body, dict) or not body.get("success"):
            body = body if isinstance(body, dict) else {}
            raise AdminApiError(
                body.get("message") or body.get("detail") or f"HTTP {response.status_code}",
                status_code=response.status_code,
                errors=body.get("errors"),
                error=body.get("error"),
            )
        return body

    def list_roles(self) -> list[dict[str, Any]]:
        return self._request("GET", "/roles")["data"]

    def list_users_by_role(self) -> list[dict[str, Any]]:
        """[{role, users: [{id, full_name, email, created_at}]}], one entry per role."""
        return self._request("GET", "/users")["data"]

    def create_user(self, full_name: str, email: str, role_ids: list[int]) -> dict[str, Any]:
        payload = {"full_name": full_name, "email": email, "roles": role_ids}
        return self._request("POST", "/users", json=payload)["data"]

    def get_user(self, user_id: int) -> dict[str, Any]:
        return self._request("GET", f"/users/{user_id}")["data"]

    def update_user(
        self,
        user_id: int,
        *,
        full_name: str | None = None,
        email: str | None = None,
        role_ids: list[int] | None = None,
    ) -> dict[str, Any]:
        """PATCH only the given fields; role_ids replaces the whole role set."""
        payload: dict[str, Any] = {}
        if full_name is not None:
            payload["full_name"] = full_name
        if email is not None:
            payload["email"] = email
        if role_ids is not None:
            payload["roles"] = role_ids
        return self._request("PATCH", f"/users/{user_id}", json=payload)["data"]

    def delete_user(self, user_id: int) -> str:
        return self._request("DELETE", f"/users/{user_id}")["message"]
