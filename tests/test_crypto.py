"""
Tests for zenvpush.crypto — sealed box encoding of secret values.

Covers:
- Round-trip seal → open with the stub private key
- Randomized payloads per call
- key_id carried through
- Malformed or missing recipient keys
"""

from __future__ import annotations

import base64

import pytest
from nacl import exceptions as nacl_exceptions, public as nacl_public

from tests.conftest import KEY_ID, decode
from zenvpush.crypto import encode, seal
from zenvpush.errors import EncryptionError
from zenvpush.models import RepositoryPublicKey, SecretEntry


class TestRoundtrip:

    @pytest.mark.parametrize("value", [
        "VALUE1",
        "",
        "postgres://user:p@ss=word@host/db",
        "multi word value with spaces",
        "ünïcødé ✓ 🚀",
    ])
    def test_decodes_to_original(self, value, public_key, private_key):
        encoded = encode(SecretEntry("KEY", value), public_key)
        assert decode(encoded.payload, private_key) == value

    def test_carries_key_and_key_id(self, public_key):
        encoded = encode(SecretEntry("API_KEY", "abc"), public_key)
        assert encoded.key == "API_KEY"
        assert encoded.key_id == KEY_ID
        assert encoded.to_body() == {"encrypted_value": encoded.payload, "key_id": KEY_ID}

    def test_payload_is_not_plaintext(self, public_key):
        encoded = encode(SecretEntry("KEY", "plain-secret"), public_key)
        assert "plain-secret" not in encoded.payload
        assert b"plain-secret" not in base64.b64decode(encoded.payload)
        assert encoded.payload != "terces-nialp"

    def test_randomized_per_call(self, public_key):
        assert seal("same", public_key) != seal("same", public_key)

    def test_other_key_cannot_open(self, public_key):
        encoded = encode(SecretEntry("KEY", "value"), public_key)
        with pytest.raises(nacl_exceptions.CryptoError):
            decode(encoded.payload, nacl_public.PrivateKey.generate())


class TestRecipientKey:

    def test_missing_key(self):
        with pytest.raises(EncryptionError):
            seal("value", RepositoryPublicKey(key_id="1", key=""))

    def test_missing_key_id(self, public_key):
        with pytest.raises(EncryptionError):
            seal("value", RepositoryPublicKey(key_id="", key=public_key.key))

    def test_not_base64(self):
        with pytest.raises(EncryptionError):
            seal("value", RepositoryPublicKey(key_id="1", key="not base64!!"))

    def test_wrong_length(self):
        short = base64.b64encode(b"\x01" * 16).decode()
        with pytest.raises(EncryptionError):
            seal("value", RepositoryPublicKey(key_id="1", key=short))
