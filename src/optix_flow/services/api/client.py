"""API client for the Optix Flow backend."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from optix_flow.models.exceptions import BackendError
from optix_flow.services.config_service import ConfigService, get_config_service

logger = logging.getLogger(__name__)


def _error_from_response(response: httpx.Response) -> BackendError:
    """Build a BackendError from an error response body."""
    code = None
    details = None
    message = response.reason_phrase or f"HTTP {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        code = body.get("code") or body.get("error_code") or body.get("error")
        message = (
            body.get("message")
            or body.get("msg")
            or body.get("error_description")
            or message
        )
        details = body.get("details") or body.get("hint")
    if code is not None:
        code = str(code)
    return BackendError(
        message,
        name="HTTPStatusError",
        code=code,
        status=response.status_code,
        details=details,
        transient=response.status_code >= 500,
    )


class APIClient:
    """HTTP client for the hosted backend (REST data API and auth API)."""

    def __init__(
        self,
        config_service: ConfigService | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config_manager = config_service or get_config_service()
        self.config = self.config_manager.config
        self.base_url = self.config.backend.url
        self.timeout = self.config.backend.timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> APIClient:
        """Enter the async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit the async context manager and ensure the client is closed."""
        await self.close()

    def _get_headers(self, skip_auth: bool = False) -> dict[str, str]:
        """Get HTTP headers with authentication."""
        anon_key = self.config.backend.anon_key
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "apikey": anon_key,
        }

        token = None
        if not skip_auth:
            credentials = self.config_manager.load_credentials()
            if credentials:
                token = credentials.get("access_token")
        headers["Authorization"] = f"Bearer {token or anon_key}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _try_refresh_token(self) -> bool:
        """Try to refresh the access token using the refresh token.

        Returns True if successful, False otherwise.
        """
        credentials = self.config_manager.load_credentials()
        if not credentials or not credentials.get("refresh_token"):
            return False

        try:
            response = await self.request(
                "POST",
                "/auth/v1/token",
                params={"grant_type": "refresh_token"},
                json={"refresh_token": credentials["refresh_token"]},
                skip_auth=True,
                retry=0,
                refresh_on_401=False,
            )
        except BackendError as e:
            logger.warning("Token refresh failed: %s", e)
            return False

        data = response.json()
        if "access_token" not in data:
            return False

        self.config_manager.save_credentials(
            data["access_token"],
            data.get("refresh_token") or credentials["refresh_token"],
            user_id=credentials.get("user_id"),
            email=credentials.get("email"),
        )
        logger.info("Access token refreshed")
        return True

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        retry: int | None = None,
        skip_auth: bool = False,
        refresh_on_401: bool = True,
    ) -> httpx.Response:
        """Make an HTTP request to the backend.

        Raises:
            BackendError: On any HTTP error status or transport failure
        """
        if retry is None:
            retry = self.config.backend.retry

        client = await self._get_client()
        url = f"{path}" if path.startswith("/") else f"/{path}"

        last_error: BackendError | None = None
        for attempt in range(retry + 1):
            request_headers = self._get_headers(skip_auth=skip_auth)
            if headers:
                request_headers.update(headers)
            try:
                response = await client.request(
                    method=method,
                    url=url,
                    json=json,
                    params=params,
                    headers=request_headers,
                )
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status == 401 and not skip_auth and refresh_on_401:
                    if await self._try_refresh_token():
                        return await self.request(
                            method,
                            path,
                            json=json,
                            params=params,
                            headers=headers,
                            retry=0,
                            refresh_on_401=False,
                        )
                    raise _error_from_response(e.response) from e

                # Don't retry client errors (4xx)
                if 400 <= status < 500:
                    raise _error_from_response(e.response) from e
                last_error = _error_from_response(e.response)
            except httpx.RequestError as e:
                last_error = BackendError(
                    str(e) or type(e).__name__,
                    name=type(e).__name__,
                    transient=True,
                )

            if attempt < retry:
                # Wait before retry (simple exponential backoff)
                await asyncio.sleep(2**attempt)

        # All retries failed
        if last_error:
            raise last_error
        raise BackendError("Request failed after all retries")

    async def get(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make a GET request."""
        return await self.request("GET", path, params=params, headers=headers)

    async def post(
        self,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        skip_auth: bool = False,
    ) -> httpx.Response:
        """Make a POST request."""
        return await self.request(
            "POST", path, json=json, params=params, headers=headers, skip_auth=skip_auth
        )

    async def patch(
        self,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make a PATCH request."""
        return await self.request("PATCH", path, json=json, params=params, headers=headers)

    async def delete(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make a DELETE request."""
        return await self.request("DELETE", path, params=params, headers=headers)