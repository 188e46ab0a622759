"""
Storage Configuration — Master key loading and validated settings.

Reads master keys from environment variables in the format:
    VIGIL_MASTER_KEY_v{N} = <base64-encoded 32-byte key>
    VIGIL_ACTIVE_KEY_ID = <integer>
    VIGIL_CIPHER_BACKEND = aesgcm | chacha20

Security Note:
    Never log key material. Only log key IDs and version numbers.
"""
import os
import re
import base64
import binascii
import secrets
import logging
from collections.abc import Mapping

from pydantic import BaseModel, Field, field_validator, model_validator

from .crypto import CIPHER_BACKENDS, KEY_LENGTH

logger = logging.getLogger("vigil.storage")

ENV_PREFIX = "VIGIL_"
_KEY_ENV_PATTERN = re.compile(rf"^{ENV_PREFIX}MASTER_KEY_v(\d+)$")
_MAX_KEY_VERSION = 2 ** 16 - 1  # stored as uint16 in every ciphertext


def _decode_master_key(name: str, encoded: str) -> bytes:
    try:
        raw = base64.b64decode(encoded.strip(), validate=True)
    except binascii.Error as err:
        raise ValueError(f"{name} is not valid base64") from err
    if len(raw) != KEY_LENGTH:
        raise ValueError(
            f"{name} must decode to exactly {KEY_LENGTH} bytes, got {len(raw)}"
        )
    return raw


def load_master_keys(environ: Mapping[str, str] | None = None) -> dict[int, bytes]:
    """Collect every ``VIGIL_MASTER_KEY_v{N}`` entry of ``environ``.

    Args:
        environ: Where to look; ``os.environ`` by default.

    Returns:
        Mapping of key version to raw 32-byte key.

    Raises:
        RuntimeError: If no master key is configured.
        ValueError: If a key is not base64, not 32 bytes long, or its
            version does not fit in a uint16.
    """
    environ = os.environ if environ is None else environ
    keys = {}
    for name in sorted(environ):
        match = _KEY_ENV_PATTERN.match(name)
        if match is None:
            continue
        version = int(match.group(1))
        if version > _MAX_KEY_VERSION:
            raise ValueError(f"{name}: key version {version} exceeds {_MAX_KEY_VERSION}")
        keys[version] = _decode_master_key(name, environ[name])
    if not keys:
        raise RuntimeError(
            f"No vigil master keys configured; set {ENV_PREFIX}MASTER_KEY_v1 "
            "to a base64-encoded 32-byte key"
        )
    logger.debug("Loaded master key version(s): %s", sorted(keys))
    return keys


def get_active_key_id(environ: Mapping[str, str] | None = None) -> int:
    """Return the key version named by ``VIGIL_ACTIVE_KEY_ID``.

    Raises:
        RuntimeError: If the variable is unset.
        ValueError: If it is not an integer.
    """
    environ = os.environ if environ is None else environ
    name = f"{ENV_PREFIX}ACTIVE_KEY_ID"
    if name not in environ:
        raise RuntimeError(f"{name} environment variable is not set")
    try:
        return int(environ[name])
    except ValueError as err:
        raise ValueError(f"{name} must be an integer") from err


def generate_master_key() -> str:
    """Return a fresh base64 master key, ready for ``VIGIL_MASTER_KEY_v{N}``."""
    return base64.b64encode(secrets.token_bytes(KEY_LENGTH)).decode("ascii")


class VaultConfig(BaseModel):
    """Validated confidential storage configuration."""

    master_keys: dict[int, bytes]
    active_key_id: int = Field(ge=0, lt=2 ** 16)
    cipher_backend: str = Field(default="aesgcm")

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("cipher_backend")
    @classmethod
    def validate_cipher(cls, v: str) -> str:
        """Validate cipher backend is supported."""
        v = v.lower()
        if v not in CIPHER_BACKENDS:
            raise ValueError(f"Unsupported cipher backend: {v}")
        return v

    @model_validator(mode="after")
    def validate_active_key_exists(self) -> "VaultConfig":
        """Ensure active_key_id is present in master_keys."""
        if self.active_key_id not in self.master_keys:
            raise ValueError(
                f"active_key_id {self.active_key_id} not found in "
                f"master_keys (available: {sorted(self.master_keys.keys())})"
            )
        return self

    @property
    def active_master_key(self) -> bytes:
        return self.master_keys[self.active_key_id]

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "VaultConfig":
        """Build the configuration from ``environ`` (``os.environ`` by default)."""
        environ = os.environ if environ is None else environ
        return cls(
            master_keys=load_master_keys(environ),
            active_key_id=get_active_key_id(environ),
            cipher_backend=environ.get(f"{ENV_PREFIX}CIPHER_BACKEND", "aesgcm"),
        )
