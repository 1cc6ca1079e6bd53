"""
Token status inspection for the Token service.

Only the payload segment of the token is decoded. The signature is not
verified, so the result describes what the token claims about itself and
nothing more.
"""

import base64
import binascii
import json
import math
import time
from typing import Any, Callable, Dict, Optional, Union

from pydantic import BaseModel

from shared.errors import InvalidTokenFormat
from shared.logging import get_logger


Number = Union[int, float]


class TokenStatus(BaseModel):
    """Expiry facts reported for a token."""
    valid: bool
    expires_at: Optional[Any] = None
    time_left_seconds: Optional[Number] = None
    issued_at: Optional[Any] = None


def decode_segment(segment: str) -> bytes:
    """Decode a base64 segment in either the standard or URL-safe alphabet."""
    normalized = segment.strip().replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    return base64.b64decode(normalized, validate=True)


def _reject_constant(name: str) -> Any:
    raise InvalidTokenFormat(details={"reason": f"non-standard JSON constant {name}"})


def decode_payload(token: str) -> Dict[str, Any]:
    """Return the JSON object held in the token's middle segment."""
    segments = token.split(".")
    if len(segments) < 2:
        raise InvalidTokenFormat(details={"reason": "missing payload segment"})

    try:
        payload = json.loads(decode_segment(segments[1]), parse_constant=_reject_constant)
    except (binascii.Error, ValueError) as e:
        raise InvalidTokenFormat(details={"reason": str(e)}) from e

    if not isinstance(payload, dict):
        raise InvalidTokenFormat(details={"reason": "payload is not a JSON object"})
    return payload


def _is_number(value: Any) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _json_safe(value: Any) -> Any:
    """Replace numbers that JSON cannot carry (inf, ints beyond float range) with None."""
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_json_safe(item) for item in value]
    if isinstance(value, (int, float)) and not isinstance(value, bool) and not _is_number(value):
        return None
    return value


class TokenInspector:
    """Reports whether a token has expired according to its ``exp`` claim."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self.logger = get_logger("token.inspector")

    def now(self) -> int:
        """Current time in whole epoch seconds."""
        return math.floor(self._clock())

    def inspect(self, token: str) -> TokenStatus:
        payload = decode_payload(token)
        exp = _json_safe(payload.get("exp"))
        now = self.now()

        if _is_number(exp):
            expired = exp < now
            time_left = exp - now
        else:
            # Without a usable exp the token cannot be shown to be expired.
            expired = False
            time_left = None

        self.logger.debug("Inspected token", expired=expired, has_exp=time_left is not None)
        return TokenStatus(
            valid=not expired,
            expires_at=exp,
            time_left_seconds=time_left,
            issued_at=_json_safe(payload.get("iat")),
        )
