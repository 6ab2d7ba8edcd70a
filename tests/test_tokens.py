"""Unit tests for auth/tokens.py -- token wire format, verification, and expiry.

Covers:
- encode/decode round trip preserves identity; exp - iat == ttl
- wire format: known HS256/JWT header segment, unpadded base64url, HMAC-SHA256
  signature that an independent computation reproduces
- wrong secret -> InvalidSignature
- any single-character change -> InvalidSignature or MalformedToken
- framing errors and non-base64url characters -> MalformedToken
- only the canonical signature encoding verifies
- correctly signed but malformed payloads -> MalformedToken
- expiry boundary (exp == now is valid, exp < now is TokenExpired)
- encode input checks: empty secret, non-positive ttl
"""

import base64
import hashlib
import hmac
import json

import pytest
from jose import jws
from jose.utils import base64url_decode, base64url_encode

from auth.clock import FixedClock
from auth.errors import (
    CryptoFailure,
    InvalidInput,
    InvalidSignature,
    MalformedToken,
    MissingSecret,
    TokenExpired,
)
from auth.models import Claims
from auth.tokens import decode_token, encode_token

SECRET = "s3cr3t"
NOW = 1_700_000_000
IDENTITY = Claims(subject="u1", username="alice", role="user")

_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"


def _b64(data: bytes) -> str:
    return base64url_encode(data).decode("ascii")


def _unb64(segment: str) -> bytes:
    return base64url_decode(segment.encode("ascii"))


def _mint(ttl: int = 86400, now: int = NOW, secret=SECRET) -> str:
    return encode_token(IDENTITY, secret, ttl, clock=FixedClock(now)).unwrap()


def _signed(header: object, payload: object, secret: str = SECRET) -> str:
    """Build a correctly signed token from arbitrary header/payload JSON."""
    h = _b64(json.dumps(header).encode())
    p = _b64(json.dumps(payload).encode())
    sig = hmac.new(secret.encode(), f"{h}.{p}".encode(), hashlib.sha256).digest()
    return f"{h}.{p}.{_b64(sig)}"


_HEADER = {"alg": "HS256", "typ": "JWT"}
_PAYLOAD = {"userId": "u1", "username": "alice", "role": "user", "iat": NOW, "exp": NOW + 60}


# ---------------------------------------------------------------------------
# Round trip
# ---------------------------------------------------------------------------


class TestRoundTrip:
    def test_identity_preserved(self):
        claims = decode_token(_mint(), SECRET, clock=FixedClock(NOW)).unwrap()
        assert (claims.subject, claims.username, claims.role) == ("u1", "alice", "user")

    def test_expiry_is_issued_at_plus_ttl(self):
        claims = decode_token(_mint(ttl=86400), SECRET, clock=FixedClock(NOW)).unwrap()
        assert claims.issued_at == NOW
        assert claims.expires_at == NOW + 86400

    def test_identity_timestamps_are_overwritten(self):
        stale = Claims(subject="u1", username="alice", role="user", issued_at=1, expires_at=2)
        token = encode_token(stale, SECRET, 60, clock=FixedClock(NOW)).unwrap()
        claims = decode_token(token, SECRET, clock=FixedClock(NOW)).unwrap()
        assert (claims.issued_at, claims.expires_at) == (NOW, NOW + 60)

    def test_bytes_secret_equivalent_to_str(self):
        token = _mint(secret=SECRET.encode("utf-8"))
        assert decode_token(token, SECRET, clock=FixedClock(NOW)).ok

    def test_non_ascii_claims(self):
        identity = Claims(subject="u-ü", username="zoë", role="user")
        token = encode_token(identity, SECRET, 60, clock=FixedClock(NOW)).unwrap()
        assert decode_token(token, SECRET, clock=FixedClock(NOW)).unwrap().username == "zoë"


# ---------------------------------------------------------------------------
# Wire format
# ---------------------------------------------------------------------------


class TestWireFormat:
    def test_three_unpadded_segments(self):
        token = _mint()
        assert token.count(".") == 2
        assert "=" not in token and "+" not in token and "/" not in token

    def test_header_segment(self):
        # base64url('{"alg":"HS256","typ":"JWT"}')
        assert _mint().split(".")[0] == "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9"

    def test_payload_keys_and_order(self):
        payload = json.loads(_unb64(_mint(ttl=60).split(".")[1]))
        assert list(payload) == ["userId", "username", "role", "iat", "exp"]
        assert payload == {"userId": "u1", "username": "alice", "role": "user", "iat": NOW, "exp": NOW + 60}

    def test_signature_is_hmac_sha256_over_first_two_segments(self):
        h, p, s = _mint().split(".")
        expected = hmac.new(SECRET.encode(), f"{h}.{p}".encode(), hashlib.sha256).digest()
        assert base64.urlsafe_b64decode(s + "=" * (-len(s) % 4)) == expected

    def test_externally_signed_token_accepted(self):
        claims = decode_token(_signed(_HEADER, _PAYLOAD), SECRET, clock=FixedClock(NOW)).unwrap()
        assert claims.subject == "u1"

    def test_interoperates_with_plain_jws(self):
        assert json.loads(jws.verify(_mint(), SECRET, algorithms=["HS256"])) == {**_PAYLOAD, "exp": NOW + 86400}
        token = jws.sign(_PAYLOAD, SECRET, algorithm="HS256")
        assert decode_token(token, SECRET, clock=FixedClock(NOW)).unwrap().expires_at == NOW + 60


# ---------------------------------------------------------------------------
# Tampering and framing
# ---------------------------------------------------------------------------


class TestRejection:
    def test_wrong_secret(self):
        result = decode_token(_mint(), "wrong", clock=FixedClock(NOW))
        assert isinstance(result.error, InvalidSignature)

    def test_every_single_character_flip_is_rejected(self):
        token = _mint()
        for i, ch in enumerate(token):
            if ch == ".":
                continue
            replacement = "A" if ch != "A" else "B"
            tampered = token[:i] + replacement + token[i + 1 :]
            result = decode_token(tampered, SECRET, clock=FixedClock(NOW))
            assert isinstance(result.error, (InvalidSignature, MalformedToken)), f"position {i} accepted"

    def test_swapped_payload_rejected(self):
        other = encode_token(
            Claims(subject="u2", username="mallory", role="admin"), "other-secret", 60, clock=FixedClock(NOW)
        ).unwrap()
        h, _, s = _mint().split(".")
        forged = f"{h}.{other.split('.')[1]}.{s}"
        assert isinstance(decode_token(forged, SECRET, clock=FixedClock(NOW)).error, InvalidSignature)

    @pytest.mark.parametrize(
        "token",
        ["", "abc", "a.b", "a.b.c.d", "a..c", ".b.c", "a.b.", "..", "...."],
    )
    def test_bad_framing(self, token):
        assert isinstance(decode_token(token, SECRET).error, MalformedToken)

    def test_non_string_token(self):
        assert isinstance(decode_token(12345, SECRET).error, MalformedToken)

    def test_non_ascii_segment(self):
        h, p, s = _mint().split(".")
        result = decode_token(f"{h}é.{p}.{s}", SECRET, clock=FixedClock(NOW))
        assert isinstance(result.error, (InvalidSignature, MalformedToken))

    @pytest.mark.parametrize("signature", ["\ud800", "sig\udfff", "é", "abc\x00"])
    def test_non_ascii_signature_segment(self, signature):
        h, p, _ = _mint().split(".")
        result = decode_token(f"{h}.{p}.{signature}", SECRET, clock=FixedClock(NOW))
        assert isinstance(result.error, MalformedToken)

    def test_padded_signature_rejected(self):
        assert isinstance(decode_token(_mint() + "=", SECRET, clock=FixedClock(NOW)).error, MalformedToken)

    def test_only_canonical_signature_encoding_accepted(self):
        h, p, s = _mint().split(".")
        for ch in _ALPHABET:
            if ch == s[-1]:
                continue
            result = decode_token(f"{h}.{p}.{s[:-1]}{ch}", SECRET, clock=FixedClock(NOW))
            assert isinstance(result.error, InvalidSignature), f"last character {ch!r} accepted"

    def test_undecodable_signature_length(self):
        h, p, s = _mint().split(".")
        result = decode_token(f"{h}.{p}.{s}A", SECRET, clock=FixedClock(NOW))
        assert isinstance(result.error, InvalidSignature)


class TestSignedButMalformed:
    @pytest.mark.parametrize(
        "payload",
        [
            {k: v for k, v in _PAYLOAD.items() if k != "exp"},
            {k: v for k, v in _PAYLOAD.items() if k != "userId"},
            {**_PAYLOAD, "admin": True},
            {**_PAYLOAD, "exp": True},
            {**_PAYLOAD, "exp": str(NOW + 60)},
            {**_PAYLOAD, "iat": 1.5},
            {**_PAYLOAD, "role": ["admin"]},
            {**_PAYLOAD, "userId": 7},
            ["not", "an", "object"],
            "just a string",
        ],
    )
    def test_bad_payload_shape(self, payload):
        result = decode_token(_signed(_HEADER, payload), SECRET, clock=FixedClock(NOW))
        assert isinstance(result.error, MalformedToken)

    @pytest.mark.parametrize(
        "header",
        [{"alg": "none", "typ": "JWT"}, {"alg": "HS512", "typ": "JWT"}, {"alg": "HS256"}, []],
    )
    def test_bad_header(self, header):
        result = decode_token(_signed(header, _PAYLOAD), SECRET, clock=FixedClock(NOW))
        assert isinstance(result.error, MalformedToken)

    def test_payload_not_json(self):
        h = _b64(json.dumps(_HEADER).encode())
        p = _b64(b"{not json")
        sig = hmac.new(SECRET.encode(), f"{h}.{p}".encode(), hashlib.sha256).digest()
        result = decode_token(f"{h}.{p}.{_b64(sig)}", SECRET)
        assert isinstance(result.error, MalformedToken)


# ---------------------------------------------------------------------------
# Expiry
# ---------------------------------------------------------------------------


class TestExpiry:
    def test_expired(self):
        # issued 100000s ago, expired 1s ago
        token = _mint(ttl=99_999, now=NOW - 100_000)
        assert isinstance(decode_token(token, SECRET, clock=FixedClock(NOW)).error, TokenExpired)

    def test_valid_through_exp_second(self):
        token = _mint(ttl=60)
        assert decode_token(token, SECRET, clock=FixedClock(NOW + 60)).ok
        assert isinstance(decode_token(token, SECRET, clock=FixedClock(NOW + 61)).error, TokenExpired)

    def test_clock_advance(self):
        clock = FixedClock(NOW)
        token = encode_token(IDENTITY, SECRET, 10, clock=clock).unwrap()
        clock.advance(11)
        assert isinstance(decode_token(token, SECRET, clock=clock).error, TokenExpired)

    def test_signature_checked_before_expiry(self):
        token = _mint(ttl=1, now=NOW - 100)
        assert isinstance(decode_token(token, "wrong", clock=FixedClock(NOW)).error, InvalidSignature)


# ---------------------------------------------------------------------------
# Encode input checks
# ---------------------------------------------------------------------------


class TestEncodeInput:
    @pytest.mark.parametrize("secret", ["", b""])
    def test_empty_secret(self, secret):
        result = encode_token(IDENTITY, secret, 60)
        assert isinstance(result.error, MissingSecret)
        assert isinstance(result.error, InvalidInput)
        assert isinstance(result.error, CryptoFailure)

    @pytest.mark.parametrize("ttl", [0, -1, True, 1.5, "60"])
    def test_bad_ttl(self, ttl):
        assert isinstance(encode_token(IDENTITY, SECRET, ttl).error, InvalidInput)

    def test_decode_empty_secret(self):
        assert isinstance(decode_token(_mint(), "").error, MissingSecret)

    def test_asymmetric_key_material_is_not_an_hmac_secret(self):
        secret = "ssh-rsa AAAAB3NzaC1yc2EAAAADAQABAAABAQ deploy@host"
        encoded = encode_token(IDENTITY, secret, 60).error
        decoded = decode_token(_mint(), secret).error
        assert isinstance(encoded, CryptoFailure) and not isinstance(encoded, MissingSecret)
        assert isinstance(decoded, CryptoFailure) and not isinstance(decoded, MissingSecret)

    def test_clock_read_once(self):
        class CountingClock:
            calls = 0

            def now(self):
                self.calls += 1
                return NOW

        clock = CountingClock()
        encode_token(IDENTITY, SECRET, 60, clock=clock)
        assert clock.calls == 1

    def test_unwrap_raises_error(self):
        with pytest.raises(InvalidSignature):
            decode_token(_mint(), "wrong", clock=FixedClock(NOW)).unwrap()
