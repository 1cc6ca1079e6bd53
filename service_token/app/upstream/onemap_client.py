"""
OneMap authentication client for the Token service.
"""

from typing import Any, Dict, Optional

import httpx

from shared.config import ONEMAP_AUTH_URL, OneMapCredentials
from shared.errors import InternalError, UpstreamError
from shared.logging import get_logger


class OneMapAuthClient:
    """Exchanges OneMap credentials for an access token.

    No retries are attempted. A non-success answer from OneMap is raised as
    ``UpstreamError`` carrying the status and JSON body unchanged, so the
    gateway can hand it straight back to its caller.
    """

    def __init__(
        self,
        auth_url: str = ONEMAP_AUTH_URL,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.auth_url = auth_url
        self.logger = get_logger("token.onemap_client")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def fetch_token(self, credentials: OneMapCredentials) -> Dict[str, Any]:
        """POST the credentials to OneMap and return the decoded response body."""
        try:
            response = await self._client.post(
                self.auth_url,
                json={
                    "email": credentials.email,
                    "password": credentials.password,
                },
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            self.logger.error("OneMap request failed", error=str(e))
            raise InternalError(
                f"OneMap request failed: {e}",
                details={"http_error": str(e)}
            ) from e

        try:
            body = response.json()
        except ValueError as e:
            self.logger.error(
                "OneMap returned a non-JSON body",
                status_code=response.status_code,
            )
            raise InternalError(
                "OneMap returned a non-JSON response.",
                details={"status_code": response.status_code}
            ) from e

        if not response.is_success:
            self.logger.warning("OneMap rejected token request", status_code=response.status_code)
            raise UpstreamError(response.status_code, body)

        return body
