#!/usr/bin/env python3
"""
Pre-populate the token cache with a fresh OneMap access token.

This helper mirrors the miss path of ``/token`` but can be executed manually
from a developer workstation or a deploy job, so the first caller after a
deploy or cache flush is served from cache.
"""

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Optional
import sys
import os

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from shared.config import ONEMAP_AUTH_URL, get_config  # noqa: E402
from shared.errors import TokenProxyException  # noqa: E402
from shared.secrets_manager import get_secrets_manager  # noqa: E402
from service_token.app.cache.token_cache import ACCESS_TOKEN_KEY, build_token_cache  # noqa: E402
from service_token.app.upstream.onemap_client import OneMapAuthClient  # noqa: E402


async def warm(
    *,
    cache_url: str,
    auth_url: str,
    ttl_seconds: int,
    force: bool,
    dry_run: bool,
    client: Optional[OneMapAuthClient] = None,
) -> Dict[str, Any]:
    """Fetch a token and write it into the cache; return a summary."""
    config = get_config("token", cache_url=cache_url, onemap_auth_url=auth_url)
    credentials = get_secrets_manager(config).get_onemap_credentials(config)
    if not credentials.is_complete:
        raise SystemExit("OneMap credentials are not configured (ONEMAP_EMAIL / ONEMAP_PASSWORD)")

    cache = build_token_cache(cache_url)
    if cache is None:
        raise SystemExit("A cache URL is required")

    client = client or OneMapAuthClient(auth_url, timeout=config.upstream_timeout)
    summary: Dict[str, Any] = {"cache_type": cache.cache_type, "ttl_seconds": ttl_seconds}
    try:
        if not force and await cache.get(ACCESS_TOKEN_KEY):
            summary.update({"status": "skipped", "reason": "token already cached"})
            return summary

        try:
            data = await client.fetch_token(credentials)
        except TokenProxyException as e:
            summary.update({"status": "failed", "reason": e.message})
            return summary

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            summary.update({"status": "failed", "reason": "no access_token in OneMap response"})
            return summary

        if dry_run:
            summary.update({"status": "dry_run", "written": False})
        else:
            written = await cache.put(ACCESS_TOKEN_KEY, token, expiration_ttl=ttl_seconds)
            summary.update({"status": "warmed" if written else "failed", "written": written})
        return summary
    finally:
        await client.close()
        await cache.close()


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Warm the token cache with a fresh OneMap access token.")
    parser.add_argument("--cache-url", default=os.getenv("TOKEN_PROXY_CACHE_URL", "redis://localhost:6379/0"), help="Cache URL")
    parser.add_argument("--auth-url", default=os.getenv("TOKEN_PROXY_ONEMAP_AUTH_URL", ONEMAP_AUTH_URL), help="OneMap getToken URL")
    parser.add_argument("--ttl", type=int, default=int(os.getenv("TOKEN_PROXY_CACHE_TTL_SECONDS", 216000)), help="Cache TTL in seconds")
    parser.add_argument("--force", action="store_true", help="Fetch a new token even if one is cached")
    parser.add_argument("--dry-run", action="store_true", help="Fetch a token but do not write it to the cache")
    parser.add_argument("--output", type=Path, default=None, help="Optional path to write JSON summary")
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    summary = asyncio.run(
        warm(
            cache_url=args.cache_url,
            auth_url=args.auth_url,
            ttl_seconds=args.ttl,
            force=args.force,
            dry_run=args.dry_run,
        )
    )
    rendered = json.dumps(summary, indent=2)
    if args.output:
        args.output.write_text(rendered)
    print(rendered)


if __name__ == "__main__":
    main()
