"""
Mock OneMap server providing the authentication token endpoint.
"""

import os
import sys
import time
from typing import Any, Dict, Optional

import jwt
from fastapi import FastAPI, Body
from fastapi.responses import JSONResponse

# Add shared directory to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.config import ONEMAP_TOKEN_LIFETIME_SECONDS
from shared.logging import get_logger


class MockOneMapServer:
    """Mock OneMap server implementation."""

    def __init__(
        self,
        port: int = 8090,
        email: str = "proxy@example.com",
        password: str = "password123",
        token_lifetime: int = ONEMAP_TOKEN_LIFETIME_SECONDS,
    ):
        self.port = port
        self.email = email
        self.password = password
        self.token_lifetime = token_lifetime
        self.logger = get_logger("mock.onemap")
        self.app = FastAPI(title="Mock OneMap", version="1.0.0")

        # Mock signing key (real OneMap tokens are signed server-side)
        self.secret = "mock-onemap-signing-secret-0123456789"
        self.issuer = f"http://localhost:{port}/api/auth/post/getToken"
        self.tokens_issued = 0

        self._setup_routes()

    def _setup_routes(self):
        """Set up mock OneMap routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "mock-onemap",
                "message": "Mock OneMap server for the OneMap Token Proxy",
                "version": "1.0.0",
                "tokens_issued": self.tokens_issued,
            }

        @self.app.post("/api/auth/post/getToken")
        async def get_token(body: Optional[Dict[str, Any]] = Body(default=None)):
            """Exchange email/password for an access token."""
            body = body or {}
            email = body.get("email")
            password = body.get("password")

            if not email or not password:
                return JSONResponse(status_code=400, content={"error": "Email and password are required"})

            if email != self.email or password != self.password:
                self.logger.warning("Rejected mock login", email=email)
                return JSONResponse(status_code=401, content={"error": "Invalid email or password"})

            return self._issue_token(email)

    def _issue_token(self, email: str) -> Dict[str, Any]:
        """Issue a signed token for ``email``."""
        now = int(time.time())
        expires_at = now + self.token_lifetime
        payload = {
            "sub": email,
            "iss": self.issuer,
            "iat": now,
            "exp": expires_at,
            "nbf": now,
            "jti": f"mock-{self.tokens_issued}-{now}",
        }
        self.tokens_issued += 1
        self.logger.info("Issued mock token", expires_at=expires_at)

        return {
            "access_token": jwt.encode(payload, self.secret, algorithm="HS256"),
            "expiry_timestamp": str(expires_at),
        }


def create_app():
    """Create mock OneMap application."""
    server = MockOneMapServer()
    return server.app


if __name__ == "__main__":
    import uvicorn
    server = MockOneMapServer()
    uvicorn.run(server.app, host="0.0.0.0", port=server.port)
