"""Auth API endpoints."""

from __future__ import annotations

from optix_flow.services.api.client import APIClient


class AuthAPI:
    """Session endpoints of the backend auth API."""

    def __init__(self, client: APIClient):
        self.client = client

    async def sign_in_with_password(self, email: str, password: str) -> dict:
        """Exchange credentials for a session."""
        response = await self.client.post(
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
            skip_auth=True,
        )
        return response.json()

    async def sign_up(self, email: str, password: str) -> dict:
        """Register a new account."""
        response = await self.client.post(
            "/auth/v1/signup",
            json={"email": email, "password": password},
            skip_auth=True,
        )
        return response.json()

    async def refresh(self, refresh_token: str) -> dict:
        """Exchange a refresh token for a new session."""
        response = await self.client.post(
            "/auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
            skip_auth=True,
        )
        return response.json()

    async def get_user(self) -> dict:
        """Return the user behind the stored access token."""
        response = await self.client.get("/auth/v1/user")
        return response.json()

    async def sign_out(self) -> None:
        """Revoke the current session."""
        await self.client.post("/auth/v1/logout")
