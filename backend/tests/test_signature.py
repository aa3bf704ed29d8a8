"""Tests for webhook signature verification."""

import hashlib
import hmac

import pytest

from utilities import compute_signature, verify_signature


def _mutate(text: str, index: int) -> str:
    return text[:index] + chr(ord(text[index]) ^ 1) + text[index + 1:]


class TestVerifySignature:
    def test_known_vector(self) -> None:
        expected = hmac.new(b"s", b"p", hashlib.sha1).hexdigest()
        assert compute_signature(b"p", "s") == f"sha1={expected}"
        assert verify_signature(b"p", f"sha1={expected}", "s")

    def test_bare_hex_digest_is_accepted(self) -> None:
        expected = hmac.new(b"s", b"p", hashlib.sha1).hexdigest()
        assert verify_signature(b"p", expected, "s")

    def test_str_and_bytes_payloads_agree(self) -> None:
        assert compute_signature("payload", "key") == compute_signature(b"payload", "key")

    def test_every_payload_mutation_fails(self) -> None:
        payload = '{"object":"page","entry":[{"id":"1"}]}'
        signature = compute_signature(payload, "s")
        for index in range(len(payload)):
            assert not verify_signature(_mutate(payload, index), signature, "s")

    def test_every_signature_mutation_fails(self) -> None:
        signature = compute_signature(b"p", "s")
        for index in range(len(signature)):
            assert not verify_signature(b"p", _mutate(signature, index), "s")

    def test_wrong_secret_fails(self) -> None:
        assert not verify_signature(b"p", compute_signature(b"p", "s"), "t")

    @pytest.mark.parametrize("signature", [None, ""])
    def test_missing_signature_fails(self, signature) -> None:
        assert not verify_signature(b"p", signature, "s")

    @pytest.mark.parametrize("secret", [None, ""])
    def test_missing_secret_fails(self, secret) -> None:
        signature = compute_signature(b"p", "s")
        assert not verify_signature(b"p", signature, secret)

    def test_other_algorithm_prefix_fails(self) -> None:
        digest = compute_signature(b"p", "s").split("=", 1)[1]
        assert not verify_signature(b"p", f"sha256={digest}", "s")
