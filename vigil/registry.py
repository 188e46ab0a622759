"""
SecretRegistry — Lifecycle and guarded reads of secrets.

Provides the operations behind every request kind:
- ``create_secret`` / ``reset_revelation_timestamp`` / ``delete_secret``
  — owner-only writes, always scoped to the caller
- ``revelation_timestamp`` / ``secret_value`` — owner, or revelation-set members
- ``revelation_set`` — the caller's own secrets only

Error policy for cross-owner reads:
    A caller that is not in the revelation set always gets
    ``PermissionDenied``, whether or not the secret exists, so non-members
    cannot even learn that a name is taken. Members get
    ``SecretDoesntExist`` once the secret is gone, and ``PermissionDenied``
    from ``secret_value`` while the revelation timestamp lies in the future.

Security Note:
    Never log secret values. Only log owners, names and operations.
"""
import logging

from .context import ExecutionContext
from .exceptions import (
    EnvironmentFault,
    PermissionDenied,
    SecretAlreadyExists,
    SecretDoesntExist,
)
from .policy import (
    RECORD_FIELDS,
    REVELATION_SET_FIELD,
    TIMESTAMP_FIELD,
    VALUE_FIELD,
    exists,
    is_revealable_to,
    load_record,
    load_revelation_set,
    record_key,
)
from .storage.codec import encode_record
from .types import RevelationSet, SecretId

logger = logging.getLogger("vigil")

_U64_MAX = 2 ** 64 - 1


class SecretRegistry:
    """Secret operations on behalf of the caller of one request."""

    def __init__(self, ctx: ExecutionContext):
        self.ctx = ctx

    @property
    def caller(self) -> str:
        return self.ctx.caller

    @property
    def store(self):
        return self.ctx.store

    def _own(self, name: str) -> SecretId:
        return (self.caller, name)

    def _current_time(self) -> int:
        """Ask the clock for the time; an unusable answer aborts the request."""
        now = self.ctx.clock.current_time()
        if isinstance(now, bool) or not isinstance(now, int) or not 0 <= now <= _U64_MAX:
            raise EnvironmentFault(
                f"received unexpected response to time request: {now!r}"
            )
        return now

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_secret(
        self,
        name: str,
        value: bytes,
        revelation_set: RevelationSet,
        revelation_timestamp: int,
    ) -> None:
        """Create a new secret owned by the caller.

        Raises:
            SecretAlreadyExists: If the caller already has a secret by this name.
        """
        secret_id = self._own(name)
        if exists(self.store, secret_id):
            raise SecretAlreadyExists()
        with self.store.transaction() as store:
            store.insert(
                record_key(secret_id, TIMESTAMP_FIELD),
                encode_record(revelation_timestamp),
            )
            store.insert(
                record_key(secret_id, REVELATION_SET_FIELD),
                encode_record(revelation_set.model_dump()),
            )
            store.insert(
                record_key(secret_id, VALUE_FIELD),
                encode_record(value),
            )
        logger.debug("Secret created: owner=%s name=%s", self.caller, name)

    def reset_revelation_timestamp(self, name: str, revelation_timestamp: int) -> None:
        """Move the deadline of one of the caller's secrets.

        Only the timestamp record is touched.

        Raises:
            SecretDoesntExist: If the caller has no secret by this name.
        """
        secret_id = self._own(name)
        if not exists(self.store, secret_id):
            raise SecretDoesntExist()
        self.store.insert(
            record_key(secret_id, TIMESTAMP_FIELD),
            encode_record(revelation_timestamp),
        )
        logger.debug(
            "Revelation timestamp reset: owner=%s name=%s", self.caller, name,
        )

    def delete_secret(self, name: str) -> None:
        """Delete one of the caller's secrets. Deleting twice is fine."""
        secret_id = self._own(name)
        if not exists(self.store, secret_id):
            return
        with self.store.transaction() as store:
            for field in RECORD_FIELDS:
                store.remove(record_key(secret_id, field))
        logger.debug("Secret deleted: owner=%s name=%s", self.caller, name)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def revelation_timestamp(self, owner: str, name: str) -> int:
        secret_id = (owner, name)
        if self.caller != owner and not is_revealable_to(
            self.store, secret_id, self.caller
        ):
            raise PermissionDenied()
        timestamp = load_record(self.store, secret_id, TIMESTAMP_FIELD)
        if timestamp is None:
            raise SecretDoesntExist()
        return timestamp

    def revelation_set(self, name: str) -> RevelationSet:
        secret_id = self._own(name)
        if not exists(self.store, secret_id):
            raise SecretDoesntExist()
        revelation_set = load_revelation_set(self.store, secret_id)
        if revelation_set is None:
            raise SecretDoesntExist()
        return revelation_set

    def secret_value(self, owner: str, name: str) -> bytes:
        """Return a secret value to its owner, or to a member once it is due.

        Raises:
            PermissionDenied: If the caller is not a member, or the
                revelation timestamp is still in the future.
            SecretDoesntExist: If the secret is gone.
            EnvironmentFault: If the clock misbehaves.
        """
        secret_id = (owner, name)
        if self.caller != owner:
            if not is_revealable_to(self.store, secret_id, self.caller):
                raise PermissionDenied()
            now = self._current_time()
            timestamp = load_record(self.store, secret_id, TIMESTAMP_FIELD)
            if timestamp is None:
                raise SecretDoesntExist()
            if timestamp > now:
                raise PermissionDenied()
        elif not exists(self.store, secret_id):
            raise SecretDoesntExist()
        value = load_record(self.store, secret_id, VALUE_FIELD)
        if value is None:
            raise SecretDoesntExist()
        logger.debug(
            "Secret revealed: owner=%s name=%s caller=%s", owner, name, self.caller,
        )
        return value
