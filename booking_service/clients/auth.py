"""
Auth Service Client

Verifies bearer tokens against the auth service and returns the principal
they belong to.
"""

from booking_service.clients.base import BaseClient
from booking_service.errors import IdentityUnavailable, Unauthenticated
from booking_service.models import Principal, ROLE_ADMIN, ROLE_USER


class AuthClient(BaseClient):
    service_name = "Auth service"
    unavailable_error = IdentityUnavailable

    def verify(self, token):
        """
        Verify a bearer token.

        Args:
            token: Raw token, without the ``Bearer`` prefix

        Returns:
            Principal the token was issued to

        Raises:
            Unauthenticated: Token missing, malformed, expired or rejected
            IdentityUnavailable: Auth service unreachable or failing
        """
        if not token or not token.strip():
            raise Unauthenticated("Access denied. No token provided.")

        response = self._send(
            "GET", "/verify", headers={"Authorization": f"Bearer {token.strip()}"}
        )
        self._raise_for_server_error(response)
        if response.status_code in (400, 401, 403):
            raise Unauthenticated()
        if response.status_code != 200:
            raise IdentityUnavailable(
                f"{self.service_name} returned error {response.status_code}"
            )

        body = self._decode(response)
        if not body.get("success"):
            raise Unauthenticated()
        try:
            user = body["data"]["user"]
            principal = Principal(
                id=str(user["id"]),
                email=user["email"],
                name=user["name"],
                role=user.get("role") or ROLE_USER,
            )
        except (KeyError, TypeError) as e:
            raise IdentityUnavailable(
                f"{self.service_name} returned a malformed user"
            ) from e
        if principal.role not in (ROLE_USER, ROLE_ADMIN):
            raise Unauthenticated(f"Unknown role: {principal.role}")
        return principal
