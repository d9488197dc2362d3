"""
Operator credential: the locally held key for server-autonomous signing.

The credential never leaves this object: the write client asks it to
sign bytes and records ``key_id`` (the public key hex) for audit. The
private key never appears in ``repr``, logs or results.

Keys are Ed25519, given either as 32 raw bytes in hex or as a DER
(PKCS#8) encoding in hex, the two forms ledger portals hand out.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    PublicFormat,
    load_der_private_key,
)

OPERATOR_ID_ENV = "HEDERA_OPERATOR_ID"
OPERATOR_KEY_ENV = "HEDERA_OPERATOR_KEY"

_RAW_KEY_HEX_LEN = 64


def _load_private_key(key_hex: str) -> Ed25519PrivateKey:
    text = key_hex.strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    try:
        raw = bytes.fromhex(text)
    except ValueError as exc:
        raise ValueError("operator key must be hex-encoded") from exc

    if len(text) == _RAW_KEY_HEX_LEN:
        return Ed25519PrivateKey.from_private_bytes(raw)

    key = load_der_private_key(raw, password=None)
    if not isinstance(key, Ed25519PrivateKey):
        raise ValueError(
            f"operator key must be Ed25519, got: {type(key).__name__}"
        )
    return key


@dataclass(frozen=True)
class OperatorCredential:
    """Account id plus the Ed25519 key that signs for it."""

    account_id: str
    private_key: Ed25519PrivateKey = field(repr=False)

    def __post_init__(self) -> None:
        if not self.account_id:
            raise ValueError("account_id must be non-empty")

    @classmethod
    def from_hex(cls, account_id: str, key_hex: str) -> OperatorCredential:
        return cls(account_id=account_id, private_key=_load_private_key(key_hex))

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None
    ) -> OperatorCredential | None:
        """Load from HEDERA_OPERATOR_ID / HEDERA_OPERATOR_KEY.

        Returns None unless both variables are set and non-empty.
        """
        env = os.environ if environ is None else environ
        account_id = env.get(OPERATOR_ID_ENV, "").strip()
        key_hex = env.get(OPERATOR_KEY_ENV, "").strip()
        if not account_id or not key_hex:
            return None
        return cls.from_hex(account_id, key_hex)

    @property
    def public_key(self) -> Ed25519PublicKey:
        return self.private_key.public_key()

    @property
    def key_id(self) -> str:
        """Public key hex (64 chars). Safe for logging."""
        raw = self.public_key.public_bytes(Encoding.Raw, PublicFormat.Raw)
        return raw.hex()

    def sign(self, data: bytes) -> bytes:
        """Ed25519 signature over ``data`` (64 bytes)."""
        return self.private_key.sign(data)
