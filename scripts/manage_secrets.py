#!/usr/bin/env python3
"""
Manage the encrypted secrets file read by the token service.

Usage:
    TOKEN_PROXY_MASTER_KEY=... python scripts/manage_secrets.py set ONEMAP_EMAIL me@example.com
    python scripts/manage_secrets.py list
"""

import argparse
import json
import sys
import os
from typing import List, Optional

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from shared.secrets_manager import SecretsManager  # noqa: E402


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage encrypted token proxy secrets.")
    parser.add_argument("--secrets-file", default=os.getenv("TOKEN_PROXY_SECRETS_FILE", "secrets.json"), help="Secrets file path")
    parser.add_argument("--master-key", default=os.getenv("TOKEN_PROXY_MASTER_KEY"), help="Master key (defaults to TOKEN_PROXY_MASTER_KEY)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    set_parser = subparsers.add_parser("set", help="Encrypt and store a secret")
    set_parser.add_argument("key", help="Secret key, e.g. ONEMAP_EMAIL")
    set_parser.add_argument("value", help="Secret value")

    subparsers.add_parser("list", help="Show which secrets are available")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    manager = SecretsManager(master_key=args.master_key, secrets_file=args.secrets_file)

    if args.command == "set":
        if not manager.master_key:
            print("A master key is required to encrypt secrets", file=sys.stderr)
            return 1
        manager.set_secret(args.key, args.value)
        print(f"Stored {args.key} in {args.secrets_file}")
        return 0

    print(json.dumps(manager.list_secrets(), indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    sys.exit(main())
