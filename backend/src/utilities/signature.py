import hashlib
import hmac
from typing import Optional, Union

from .constants import SIGNATURE_PREFIX

Payload = Union[bytes, str]


def _as_bytes(value: Payload) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def compute_signature(raw_payload: Payload, secret: str) -> str:
    '''Build the ``sha1=<hex>`` header value the webhook provider sends.'''
    digest = hmac.new(_as_bytes(secret), _as_bytes(raw_payload), hashlib.sha1).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(raw_payload: Payload, presented_signature: Optional[str], secret: Optional[str]) -> bool:
    '''
    Check an HMAC-SHA1 signature over the raw payload bytes.

    The presented value may carry the ``sha1=`` prefix or be the bare hex
    digest. Missing signature, missing secret, a different algorithm prefix
    or a mismatch all return False.
    '''
    if not presented_signature or not secret:
        return False

    presented = presented_signature
    if "=" in presented:
        algorithm, _, presented = presented.partition("=")
        if algorithm != SIGNATURE_PREFIX[:-1]:
            return False

    expected = compute_signature(raw_payload, secret)[len(SIGNATURE_PREFIX):]
    return hmac.compare_digest(expected.encode("ascii"), presented.encode("utf-8"))
