"""Module: supabase_auth.

Thin client for the hosted auth provider's REST API (Supabase GoTrue). Only the
two calls the admin endpoint needs are implemented: resolving a bearer token to
a user, and hard-deleting a user account.
"""

import logging
from dataclasses import dataclass

import httpx

from portal.core.errors import InternalError, Unauthorized

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str | None = None


class SupabaseAuthClient:
    def __init__(
        self,
        base_url: str,
        service_role_key: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.service_role_key = service_role_key
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=f"{self.base_url}/auth/v1",
            timeout=self.timeout,
            transport=self._transport,
            headers={"apikey": self.service_role_key},
        )

    def get_user(self, token: str) -> AuthUser:
        try:
            with self._client() as client:
                r = client.get("/user", headers={"Authorization": f"Bearer {token}"})
        except httpx.HTTPError as exc:
            logger.error("Auth provider unreachable while verifying token: %s", exc)
            raise InternalError("Auth provider unavailable") from exc

        if r.status_code in (401, 403, 404, 422):
            raise Unauthorized("Invalid or expired token")
        if r.status_code != 200:
            logger.error("Auth provider returned %s while verifying token", r.status_code)
            raise InternalError("Auth provider error")

        data = r.json()
        user_id = data.get("id") if isinstance(data, dict) else None
        if not user_id:
            raise Unauthorized("Invalid or expired token")
        return AuthUser(id=str(user_id), email=data.get("email"))

    def delete_user(self, user_id: str, should_soft_delete: bool = False) -> None:
        try:
            with self._client() as client:
                r = client.request(
                    "DELETE",
                    f"/admin/users/{user_id}",
                    headers={"Authorization": f"Bearer {self.service_role_key}"},
                    json={"should_soft_delete": should_soft_delete},
                )
        except httpx.HTTPError as exc:
            logger.error("Auth provider unreachable while deleting user %s: %s", user_id, exc)
            raise InternalError("Failed to delete auth account") from exc

        # 404: account already gone, e.g. a retried permanent delete.
        if r.status_code == 404:
            logger.info("Auth account %s already absent", user_id)
            return
        if r.status_code >= 400:
            logger.error("Auth provider returned %s while deleting user %s", r.status_code, user_id)
            raise InternalError("Failed to delete auth account", {"status": r.status_code})
