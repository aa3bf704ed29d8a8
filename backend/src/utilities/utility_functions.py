import json
from datetime import datetime, timezone
from typing import Any, Optional

from .constants import SUBSCRIBE_MODE


def now_ts() -> str:
    return datetime.now(timezone.utc).isoformat()


def canonical_payload(data: Any) -> str:
    # compact form, same text a JSON.stringify call would produce
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


# Server -> client frames are built as dicts
def make_sse_frame(event) -> dict:
    return {"event": event.topic, "data": event.payload, "id": str(event.id)}


def make_ack(status: bool = True) -> dict:
    return {"isSuccessful": status}


def check_handshake(
    mode: Optional[str],
    challenge: Optional[str],
    verify_token: Optional[str],
    expected_token: Optional[str],
) -> Optional[str]:
    '''Return the challenge to echo back, or None when the handshake fails.'''
    if not expected_token or not challenge:
        return None
    if mode != SUBSCRIBE_MODE or verify_token != expected_token:
        return None
    return challenge
