"""
Access Policy — existence and revealability of stored secrets.

Each secret is stored as three records keyed ``(owner, name, field)``:

- ``t``: revelation timestamp (the one and only existence signal)
- ``s``: revelation set
- ``v``: secret value
"""
from typing import Any

from .storage.codec import decode_record
from .storage.store import Store, StoreKey
from .types import RevelationSet, SecretId, revelation_set_adapter

TIMESTAMP_FIELD = "t"
REVELATION_SET_FIELD = "s"
VALUE_FIELD = "v"

RECORD_FIELDS = (TIMESTAMP_FIELD, REVELATION_SET_FIELD, VALUE_FIELD)


def record_key(secret_id: SecretId, field: str) -> StoreKey:
    owner, name = secret_id
    return (owner, name, field)


def load_record(store: Store, secret_id: SecretId, field: str) -> Any:
    """Return the decoded record, or None when absent."""
    raw = store.get(record_key(secret_id, field))
    if raw is None:
        return None
    return decode_record(raw)


def load_revelation_set(store: Store, secret_id: SecretId) -> RevelationSet | None:
    data = load_record(store, secret_id, REVELATION_SET_FIELD)
    if data is None:
        return None
    return revelation_set_adapter.validate_python(data)


def exists(store: Store, secret_id: SecretId) -> bool:
    """A secret exists iff its timestamp record is present."""
    return store.get(record_key(secret_id, TIMESTAMP_FIELD)) is not None


def is_revealable_to(store: Store, secret_id: SecretId, entity: str) -> bool:
    """True iff a revelation set is stored and ``entity`` is a member of it."""
    revelation_set = load_revelation_set(store, secret_id)
    if revelation_set is None:
        return False
    return revelation_set.contains(entity)
