"""
Shared utilities for the OneMap Token Proxy.

This package aggregates common building blocks consumed by the services:

- config: Service configuration via pydantic-settings
- secrets_manager: OneMap credentials from the environment or an encrypted file
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI service base with the response envelope

Do not import from service packages into shared/.
"""
