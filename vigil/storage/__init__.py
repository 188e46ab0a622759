"""Vigil Storage — Key-value stores for secret records.

Security Note (Threat Model):
    ``ConfidentialStore`` decrypts records in process memory while a request
    runs. A memory dump of the application process could expose master keys
    and plaintext. This is an accepted limitation; mitigation requires
    HSM/secure enclave integration which is out of scope.
"""

from .store import Store, MemoryStore, ConfidentialStore
from .key_rotation import rotate_master_key
from .config import VaultConfig, load_master_keys, generate_master_key

__all__ = [
    "Store",
    "MemoryStore",
    "ConfidentialStore",
    "rotate_master_key",
    "VaultConfig",
    "load_master_keys",
    "generate_master_key",
]
