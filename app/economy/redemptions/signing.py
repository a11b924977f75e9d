from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import secrets

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.economy.redemptions.constants import QR_NONCE_BYTES, QR_SECRET_BYTES
from app.economy.redemptions.errors import InvalidQrCodeError


class QrPayload(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    v: int = Field(ge=1)
    sid: str = Field(min_length=1, max_length=64)
    ts: int = Field(ge=0)
    nonce: str = Field(min_length=1, max_length=64)

    def signing_input(self) -> str:
        return f"{self.v}|{self.sid}|{self.ts}|{self.nonce}"


class SignedQrPayload(QrPayload):
    sig: str = Field(min_length=64, max_length=64)

    def unsigned(self) -> QrPayload:
        return QrPayload(v=self.v, sid=self.sid, ts=self.ts, nonce=self.nonce)


def generate_secret() -> str:
    return secrets.token_hex(QR_SECRET_BYTES)


def generate_nonce() -> str:
    return secrets.token_hex(QR_NONCE_BYTES)


def sign_payload(payload: QrPayload, *, secret: str) -> str:
    digest = hmac.new(
        secret.encode("utf-8"),
        payload.signing_input().encode("utf-8"),
        hashlib.sha256,
    )
    return digest.hexdigest()


def encode_qr(payload: QrPayload, *, secret: str) -> str:
    signed = {**payload.model_dump(), "sig": sign_payload(payload, secret=secret)}
    raw = json.dumps(signed, separators=(",", ":")).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def decode_qr(qr_data: str) -> SignedQrPayload:
    try:
        raw = base64.b64decode(qr_data.strip(), validate=True)
        return SignedQrPayload.model_validate_json(raw)
    except (binascii.Error, ValueError, ValidationError) as exc:
        raise InvalidQrCodeError from exc


def has_valid_signature(signed: SignedQrPayload, *, secret: str) -> bool:
    expected = sign_payload(signed.unsigned(), secret=secret)
    return secrets.compare_digest(expected, signed.sig)
