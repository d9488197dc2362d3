"""
Tests for OperatorCredential: key loading and signing.

Test plan:
- Raw 32-byte hex and DER (PKCS#8) hex load to the same key
- 0x prefix and whitespace tolerated
- Non-hex and non-Ed25519 keys rejected
- from_env: both variables required, otherwise None
- key_id is the public key hex; signatures verify
- repr never shows the private key
"""

from __future__ import annotations

import pytest
from cryptography.hazmat.primitives.asymmetric.ec import SECP256K1, generate_private_key
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
)

from agent_ledger.execution.credential import (
    OPERATOR_ID_ENV,
    OPERATOR_KEY_ENV,
    OperatorCredential,
)

ACCOUNT = "0.0.1001"


def _raw_hex(key: Ed25519PrivateKey) -> str:
    return key.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption()).hex()


def _der_hex(key: Ed25519PrivateKey) -> str:
    return key.private_bytes(Encoding.DER, PrivateFormat.PKCS8, NoEncryption()).hex()


class TestLoading:
    def test_raw_and_der_load_same_key(self) -> None:
        key = Ed25519PrivateKey.generate()
        raw = OperatorCredential.from_hex(ACCOUNT, _raw_hex(key))
        der = OperatorCredential.from_hex(ACCOUNT, _der_hex(key))
        assert raw.key_id == der.key_id

    def test_prefix_and_whitespace(self) -> None:
        key = Ed25519PrivateKey.generate()
        credential = OperatorCredential.from_hex(ACCOUNT, f"  0x{_raw_hex(key).upper()}\n")
        assert credential.account_id == ACCOUNT

    def test_non_hex_rejected(self) -> None:
        with pytest.raises(ValueError, match="hex"):
            OperatorCredential.from_hex(ACCOUNT, "not-a-key")

    def test_non_ed25519_rejected(self) -> None:
        ecdsa = generate_private_key(SECP256K1())
        der = ecdsa.private_bytes(Encoding.DER, PrivateFormat.PKCS8, NoEncryption())
        with pytest.raises(ValueError, match="Ed25519"):
            OperatorCredential.from_hex(ACCOUNT, der.hex())

    def test_empty_account_rejected(self) -> None:
        with pytest.raises(ValueError, match="account_id"):
            OperatorCredential(account_id="", private_key=Ed25519PrivateKey.generate())


class TestFromEnv:
    def test_both_set(self) -> None:
        key = Ed25519PrivateKey.generate()
        credential = OperatorCredential.from_env(
            {OPERATOR_ID_ENV: ACCOUNT, OPERATOR_KEY_ENV: _der_hex(key)}
        )
        assert credential is not None
        assert credential.account_id == ACCOUNT

    @pytest.mark.parametrize(
        "environ",
        [
            {},
            {OPERATOR_ID_ENV: ACCOUNT},
            {OPERATOR_KEY_ENV: "ab" * 32},
            {OPERATOR_ID_ENV: "  ", OPERATOR_KEY_ENV: "ab" * 32},
        ],
    )
    def test_missing_returns_none(self, environ: dict[str, str]) -> None:
        assert OperatorCredential.from_env(environ) is None

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(OPERATOR_ID_ENV, ACCOUNT)
        monkeypatch.setenv(OPERATOR_KEY_ENV, _raw_hex(Ed25519PrivateKey.generate()))
        credential = OperatorCredential.from_env()
        assert credential is not None


class TestSigning:
    def test_signature_verifies(self) -> None:
        credential = OperatorCredential(ACCOUNT, Ed25519PrivateKey.generate())
        signature = credential.sign(b"transaction body")
        assert len(signature) == 64
        credential.public_key.verify(signature, b"transaction body")

    def test_key_id_is_public_key_hex(self) -> None:
        credential = OperatorCredential(ACCOUNT, Ed25519PrivateKey.generate())
        assert len(credential.key_id) == 64
        int(credential.key_id, 16)

    def test_repr_hides_private_key(self) -> None:
        key = Ed25519PrivateKey.generate()
        credential = OperatorCredential.from_hex(ACCOUNT, _raw_hex(key))
        text = repr(credential)
        assert ACCOUNT in text
        assert "private_key" not in text
        assert _raw_hex(key) not in text
