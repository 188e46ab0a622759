"""
Stores — Key-value storage for secret records.

Keys are composite ``(owner, name, field)`` tuples; values are bytes.

- ``MemoryStore`` keeps plaintext records in a dict (tests, ephemeral use).
- ``ConfidentialStore`` encrypts every record under the active master key
  before handing it to a backing mapping.

Both support ``transaction()``: writes made inside the block are staged and
applied together on a clean exit, or discarded if the block raises.

Security Note:
    Never log record values or ciphertext. Only log owners, names and fields.
"""
import logging
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from typing import Optional

from .codec import encode_key
from .config import VaultConfig
from .crypto import encrypt_record, decrypt_record

logger = logging.getLogger("vigil.storage")

StoreKey = tuple[str, str, str]

# staged writes; None marks a removal
_Staged = dict[StoreKey, Optional[bytes]]


class Store:
    """Base store with staged, all-or-nothing transactions."""

    def __init__(self) -> None:
        self._pending: _Staged | None = None

    # ------------------------------------------------------------------
    # Backend hooks
    # ------------------------------------------------------------------

    def _read(self, key: StoreKey) -> bytes | None:
        raise NotImplementedError

    def _commit(self, staged: _Staged) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, key: StoreKey) -> bytes | None:
        if self._pending is not None and key in self._pending:
            return self._pending[key]
        return self._read(key)

    def insert(self, key: StoreKey, value: bytes) -> None:
        if self._pending is not None:
            self._pending[key] = value
        else:
            self._commit({key: value})

    def remove(self, key: StoreKey) -> None:
        if self._pending is not None:
            self._pending[key] = None
        else:
            self._commit({key: None})

    @property
    def in_transaction(self) -> bool:
        return self._pending is not None

    @contextmanager
    def transaction(self) -> Iterator["Store"]:
        """Group writes so that other readers see all of them or none.

        Nested transactions join the outermost one.
        """
        if self._pending is not None:
            yield self
            return
        self._pending = {}
        try:
            yield self
        except BaseException:
            self._pending = None
            raise
        staged, self._pending = self._pending, None
        if staged:
            self._commit(staged)


class MemoryStore(Store):
    """In-memory store holding plaintext records."""

    def __init__(self) -> None:
        super().__init__()
        self._data: dict[StoreKey, bytes] = {}

    def _read(self, key: StoreKey) -> bytes | None:
        return self._data.get(key)

    def _commit(self, staged: _Staged) -> None:
        for key, value in staged.items():
            if value is None:
                self._data.pop(key, None)
            else:
                self._data[key] = value

    def __len__(self) -> int:
        return len(self._data)


class ConfidentialStore(Store):
    """Store that encrypts every record at rest.

    Records are encrypted with the active master key of ``config`` and bound
    to their storage key as associated data. Older key versions remain
    readable as long as they are present in ``config.master_keys``.

    Args:
        config: Validated vault configuration; loaded from env if omitted.
        records: Backing mapping of storage key → ciphertext. Any
            ``MutableMapping[str, bytes]`` works (dict, shelve, ...).
    """

    def __init__(
        self,
        config: VaultConfig | None = None,
        records: MutableMapping[str, bytes] | None = None,
    ) -> None:
        super().__init__()
        self.config = config or VaultConfig.from_env()
        self.records: MutableMapping[str, bytes] = {} if records is None else records

    def _read(self, key: StoreKey) -> bytes | None:
        storage_key = encode_key(key)
        ciphertext = self.records.get(storage_key)
        if ciphertext is None:
            return None
        return decrypt_record(
            ciphertext,
            self.config.master_keys,
            storage_key.encode("utf-8"),
            self.config.cipher_backend,
        )

    def _commit(self, staged: _Staged) -> None:
        # encrypt everything first so a failure leaves the records untouched
        prepared: dict[str, bytes | None] = {}
        for key, value in staged.items():
            storage_key = encode_key(key)
            if value is None:
                prepared[storage_key] = None
            else:
                prepared[storage_key] = encrypt_record(
                    value,
                    self.config.active_key_id,
                    self.config.active_master_key,
                    storage_key.encode("utf-8"),
                    self.config.cipher_backend,
                )
        for storage_key, ciphertext in prepared.items():
            if ciphertext is None:
                self.records.pop(storage_key, None)
            else:
                self.records[storage_key] = ciphertext
        logger.debug(
            "Committed %d record(s) under key v%d",
            len(prepared), self.config.active_key_id,
        )

    def __len__(self) -> int:
        return len(self.records)
