"""
Token Service package for the OneMap Token Proxy.

The service holds the OneMap login on the server side and hands callers a
OneMap access token, caching it between requests.

Structure:
- app.main: FastAPI app, routes, and lifecycle wiring.
- app.cache: Token cache interface with Redis and in-memory backends.
- app.upstream: HTTP client for the OneMap authentication endpoint.
- app.validation: Token status decoding.

Module import must not perform network calls; clients connect lazily.
"""
