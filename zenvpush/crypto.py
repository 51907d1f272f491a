"""
Secret Encryption — libsodium sealed boxes for GitHub Actions secrets.

GitHub only accepts secret values encrypted with the repository's public key
(``GET /repos/{owner}/{repo}/actions/secrets/public-key``). A sealed box uses
an ephemeral sender key pair, so encrypting the same value twice gives
different payloads and only the holder of the private key can open it.

## Wire format

    encrypted_value = base64(crypto_box_seal(value_utf8, repo_public_key))
    key_id          = id of the public key used

## Usage

    from zenvpush.crypto import encode

    encoded = encode(entry, public_key)
    body = encoded.to_body()
"""

from __future__ import annotations

import base64
import binascii
import logging

from nacl import encoding, exceptions as nacl_exceptions, public as nacl_public

from .errors import EncryptionError
from .models import EncodedSecret, RepositoryPublicKey, SecretEntry

logger = logging.getLogger(__name__)


def _load_public_key(recipient_key: RepositoryPublicKey) -> nacl_public.PublicKey:
    if recipient_key is None or not recipient_key.key or not recipient_key.key_id:
        raise EncryptionError("Repository public key is not available")
    try:
        return nacl_public.PublicKey(
            recipient_key.key.encode("utf-8"), encoding.Base64Encoder
        )
    except (binascii.Error, ValueError, nacl_exceptions.CryptoError) as e:
        raise EncryptionError(f"Malformed repository public key {recipient_key.key_id}: {e}")


def seal(value: str, recipient_key: RepositoryPublicKey) -> str:
    """Encrypt ``value`` for ``recipient_key`` and return base64 text."""
    sealed_box = nacl_public.SealedBox(_load_public_key(recipient_key))
    encrypted = sealed_box.encrypt(value.encode("utf-8"))
    return base64.b64encode(encrypted).decode("utf-8")


def encode(entry: SecretEntry, recipient_key: RepositoryPublicKey) -> EncodedSecret:
    """Seal one secret entry with the repository public key."""
    return EncodedSecret(
        key=entry.key,
        payload=seal(entry.value, recipient_key),
        key_id=recipient_key.key_id,
    )
