"""
Token service for the OneMap Token Proxy.

Hands out OneMap access tokens without exposing the OneMap login to
callers, and reports the expiry window of a token.
"""

import time
from typing import Any, Callable, Dict, Optional

from fastapi import Query

from shared.base_service import BaseService, json_response
from shared.config import OneMapCredentials, ServiceConfig, get_config
from shared.errors import MissingParameter, ServerConfigurationError, UpstreamError
from shared.secrets_manager import get_secrets_manager

from .cache.token_cache import ACCESS_TOKEN_KEY, TokenCache, build_token_cache
from .upstream.onemap_client import OneMapAuthClient
from .validation.token_inspector import TokenInspector


SOURCE_CACHE = "cache"
SOURCE_ONEMAP = "onemap"

_UNSET: Any = object()


class TokenGatewayService(BaseService):
    """Token gateway service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        credentials: Optional[OneMapCredentials] = None,
        cache: Optional[TokenCache] = _UNSET,
        upstream: Optional[OneMapAuthClient] = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__("token", config=config or get_config("token"))

        # Read once; never mutated for the life of the service
        self.credentials = credentials or get_secrets_manager(self.config).get_onemap_credentials(self.config)
        self.cache = build_token_cache(self.config.cache_url) if cache is _UNSET else cache
        self.upstream = upstream or OneMapAuthClient(
            self.config.onemap_auth_url,
            timeout=self.config.upstream_timeout,
        )
        self.cache_ttl_seconds = self.config.cache_ttl_seconds
        self.inspector = TokenInspector(clock=clock)

        self.logger.info(
            "Token service configured",
            cache_type=self.cache.cache_type if self.cache else "disabled",
            credentials_configured=self.credentials.is_complete,
            cache_ttl_seconds=self.cache_ttl_seconds,
        )

        self._setup_token_routes()

    def _setup_token_routes(self):
        """Set up token-specific routes."""

        @self.app.api_route("/token", methods=["GET", "POST"])
        async def issue_token():
            """Return a OneMap access token, from cache when possible."""
            return json_response(await self.issue_token())

        @self.app.get("/token/status")
        async def token_status(token: Optional[str] = Query(default=None)):
            """Report the expiry window of a token."""
            return json_response(self.token_status(token))

    async def issue_token(self) -> Dict[str, Any]:
        """Return ``{access_token, source}`` for the configured OneMap account."""
        if not self.credentials.is_complete:
            raise ServerConfigurationError()

        cache_type = self.cache.cache_type if self.cache else "disabled"

        if self.cache is not None:
            cached_token = await self.cache.get(ACCESS_TOKEN_KEY)
            if cached_token:
                self.metrics.increment_counter("cache_hits_total", cache_type=cache_type)
                return {"access_token": cached_token, "source": SOURCE_CACHE}

        self.metrics.increment_counter("cache_misses_total", cache_type=cache_type)

        with self.metrics.time_operation("upstream_request_duration_seconds"):
            try:
                data = await self.upstream.fetch_token(self.credentials)
            except UpstreamError as e:
                self.metrics.increment_counter("upstream_requests_total", status=str(e.status_code))
                raise
            except Exception:
                self.metrics.increment_counter("upstream_requests_total", status="error")
                raise
        self.metrics.increment_counter("upstream_requests_total", status="success")

        token = data.get("access_token") if isinstance(data, dict) else None

        if self.cache is not None and token:
            await self.cache.put(ACCESS_TOKEN_KEY, token, expiration_ttl=self.cache_ttl_seconds)

        self.logger.info("Issued token from OneMap", cached=self.cache is not None and bool(token))
        return {"access_token": token, "source": SOURCE_ONEMAP}

    def token_status(self, token: Optional[str]) -> Dict[str, Any]:
        """Decode ``token`` and report whether it has expired."""
        if not token:
            raise MissingParameter()

        try:
            status = self.inspector.inspect(token)
        except Exception:
            self.metrics.increment_counter("token_status_checks_total", result="invalid")
            raise

        self.metrics.increment_counter(
            "token_status_checks_total",
            result="valid" if status.valid else "expired",
        )
        return status.model_dump()

    async def on_shutdown(self) -> None:
        await self.upstream.close()
        if self.cache is not None:
            await self.cache.close()

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check token service dependencies."""
        if self.cache is None:
            return {"cache": "disabled"}
        return {"cache": "ok" if await self.cache.health_check() else "error"}


def create_app(**kwargs):
    """Create FastAPI application."""
    service = TokenGatewayService(**kwargs)
    return service.app


if __name__ == "__main__":
    service = TokenGatewayService()
    service.run()
