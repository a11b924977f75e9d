from __future__ import annotations

import base64
from uuid import UUID

import pytest

from app.economy.redemptions.codes import (
    build_redemption_code,
    build_reward_code,
    parse_redemption_code,
    parse_reward_code,
    parse_uuid,
)
from app.economy.redemptions.errors import InvalidQrCodeError
from app.economy.redemptions.signing import (
    QrPayload,
    decode_qr,
    encode_qr,
    generate_nonce,
    generate_secret,
    has_valid_signature,
    sign_payload,
)

SCHEME = "mysteriSpots"
REWARD_ID = UUID("0b7c1a2e-3d4f-4a5b-9c6d-7e8f9a0b1c2d")
SECRET = "a1" * 32


def _payload(**overrides: object) -> QrPayload:
    values: dict[str, object] = {
        "v": 1,
        "sid": "5d6e7f80-1a2b-4c3d-8e9f-0a1b2c3d4e5f",
        "ts": 1_772_452_800_000,
        "nonce": "00ff" * 8,
    }
    values.update(overrides)
    return QrPayload(**values)  # type: ignore[arg-type]


def test_reward_deep_link_is_parsed() -> None:
    code = build_reward_code(REWARD_ID, scheme=SCHEME)

    assert code == f"mysteriSpots://reward/{REWARD_ID}"
    assert parse_reward_code(code, scheme=SCHEME) == str(REWARD_ID)


def test_legacy_reward_code_uses_second_segment() -> None:
    assert parse_reward_code(f"REWARD_{REWARD_ID}_2024", scheme=SCHEME) == str(REWARD_ID)


def test_raw_identifier_is_accepted() -> None:
    assert parse_reward_code("abcdefghij_0123", scheme=SCHEME) == "abcdefghij_0123"


@pytest.mark.parametrize("code", ["short", "otherScheme://reward/", "hello world!!"])
def test_unrecognized_reward_codes(code: str) -> None:
    assert parse_reward_code(code, scheme=SCHEME) is None


def test_redemption_code_forms() -> None:
    code = build_redemption_code(REWARD_ID, scheme=SCHEME)

    assert parse_redemption_code(code, scheme=SCHEME) == str(REWARD_ID)
    assert parse_redemption_code(f"legacy/{REWARD_ID}", scheme=SCHEME) == str(REWARD_ID)
    assert parse_redemption_code("a/b/c", scheme=SCHEME) is None
    assert parse_redemption_code("no-separator", scheme=SCHEME) is None


def test_parse_uuid() -> None:
    assert parse_uuid(str(REWARD_ID)) == REWARD_ID
    assert parse_uuid("abcdefghij_0123") is None


def test_generated_secrets_and_nonces_are_hex() -> None:
    secret = generate_secret()
    nonce = generate_nonce()

    assert len(secret) == 64
    assert len(nonce) == 32
    int(secret, 16)
    int(nonce, 16)
    assert generate_secret() != secret


def test_encoded_qr_carries_valid_signature() -> None:
    payload = _payload()

    signed = decode_qr(encode_qr(payload, secret=SECRET))

    assert signed.unsigned() == payload
    assert signed.sig == sign_payload(payload, secret=SECRET)
    assert has_valid_signature(signed, secret=SECRET) is True
    assert has_valid_signature(signed, secret="b2" * 32) is False


def test_signature_covers_every_field() -> None:
    base = sign_payload(_payload(), secret=SECRET)

    assert sign_payload(_payload(v=2), secret=SECRET) != base
    assert sign_payload(_payload(ts=1), secret=SECRET) != base
    assert sign_payload(_payload(nonce="ab"), secret=SECRET) != base


def test_tampered_payload_fails_signature_check() -> None:
    signed = decode_qr(encode_qr(_payload(), secret=SECRET))
    forged = signed.model_copy(update={"ts": signed.ts + 60_000})

    assert has_valid_signature(forged, secret=SECRET) is False


@pytest.mark.parametrize(
    "qr_data",
    [
        "%%%not-base64%%%",
        base64.b64encode(b"plain text").decode("ascii"),
        base64.b64encode(b'{"v":1,"sid":"x"}').decode("ascii"),
        base64.b64encode(
            b'{"v":1,"sid":"x","ts":1,"nonce":"n","sig":"' + b"0" * 64 + b'","extra":1}'
        ).decode("ascii"),
    ],
)
def test_decode_qr_rejects_malformed_input(qr_data: str) -> None:
    with pytest.raises(InvalidQrCodeError):
        decode_qr(qr_data)
