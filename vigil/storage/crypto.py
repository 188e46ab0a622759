"""
Storage Crypto Core — Key derivation and record encryption/decryption.

Every record persisted by the confidential store is encrypted as:
    HKDF(MASTER_KEY_vN, "vigil-record-vN") → AEAD → [key_id|nonce|payload]

The storage key of the record is bound as associated data, so a ciphertext
cannot be moved to another slot without failing authentication.

Security Note:
    Never log plaintext or ciphertext values.
    Nonces are random 96-bit; collision probability negligible under normal usage.
"""
import os
import struct
import logging

from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

logger = logging.getLogger("vigil.storage")

NONCE_SIZE = 12  # 96-bit nonce
KEY_ID_SIZE = 2  # uint16 big-endian
KEY_LENGTH = 32  # AES-256
TAG_SIZE = 16

CIPHER_BACKENDS = {
    "aesgcm": AESGCM,
    "chacha20": ChaCha20Poly1305,
}


def get_cipher_cls(backend: str = "aesgcm") -> type:
    """Return the AEAD cipher class for a backend name.

    Raises:
        ValueError: If the backend is not supported.
    """
    try:
        return CIPHER_BACKENDS[backend.lower()]
    except KeyError:
        raise ValueError(f"Unsupported cipher backend: {backend}") from None


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(seed: bytes, context: str) -> bytes:
    """Derive a 32-byte encryption key using HKDF-SHA256.

    Args:
        seed: Input key material (master key bytes).
        context: Context string for domain separation (e.g. "vigil-record-v1").

    Returns:
        32-byte derived key.
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=None,  # deterministic derivation per key version
        info=context.encode("utf-8"),
    )
    return hkdf.derive(seed)


# ---------------------------------------------------------------------------
# Record encryption
# ---------------------------------------------------------------------------

def encrypt_record(
    plaintext: bytes,
    key_id: int,
    master_key: bytes,
    associated_data: bytes | None = None,
    backend: str = "aesgcm",
) -> bytes:
    """Encrypt a record with an embedded master key version.

    Format: [key_id 2B uint16 BE][nonce 12B][encrypted_payload + tag]

    Args:
        plaintext: Data to encrypt.
        key_id: Master key version identifier.
        master_key: Raw 32-byte master key for this version.
        associated_data: Authenticated but unencrypted context (storage key).
        backend: AEAD backend name.

    Returns:
        Ciphertext bytes with key_id prefix.
    """
    derived = derive_key(master_key, f"vigil-record-v{key_id}")
    cipher = get_cipher_cls(backend)(derived)
    nonce = os.urandom(NONCE_SIZE)
    ct = cipher.encrypt(nonce, plaintext, associated_data)
    return struct.pack("!H", key_id) + nonce + ct


def record_key_version(ciphertext: bytes) -> int:
    """Return the master key version embedded in a ciphertext."""
    if len(ciphertext) < KEY_ID_SIZE:
        raise ValueError(
            f"ciphertext too short: {len(ciphertext)} bytes"
        )
    return struct.unpack("!H", ciphertext[:KEY_ID_SIZE])[0]


def decrypt_record(
    ciphertext: bytes,
    master_keys: dict[int, bytes],
    associated_data: bytes | None = None,
    backend: str = "aesgcm",
) -> bytes:
    """Decrypt a record using its embedded key version.

    Args:
        ciphertext: Ciphertext in format [key_id 2B][nonce 12B][payload+tag].
        master_keys: Mapping of key_id → raw 32-byte master key.
        associated_data: The same associated data given at encryption.
        backend: AEAD backend name.

    Returns:
        Decrypted plaintext bytes.

    Raises:
        ValueError: If the ciphertext is truncated.
        KeyError: If the key_id extracted from ciphertext is not in master_keys.
        cryptography.exceptions.InvalidTag: If authentication fails.
    """
    _min = KEY_ID_SIZE + NONCE_SIZE + TAG_SIZE
    if len(ciphertext) < _min:
        raise ValueError(
            f"ciphertext too short: {len(ciphertext)} bytes "
            f"(minimum {_min})"
        )
    key_id = record_key_version(ciphertext)
    if key_id not in master_keys:
        raise KeyError(
            f"Master key version {key_id} not found in provided keys"
        )
    derived = derive_key(master_keys[key_id], f"vigil-record-v{key_id}")
    cipher = get_cipher_cls(backend)(derived)
    nonce = ciphertext[KEY_ID_SIZE:KEY_ID_SIZE + NONCE_SIZE]
    ct = ciphertext[KEY_ID_SIZE + NONCE_SIZE:]
    return cipher.decrypt(nonce, ct, associated_data)
