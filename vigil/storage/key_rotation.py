"""
Key Rotation — Batch re-encryption of confidential records.

Re-encrypts every record of a ``ConfidentialStore`` from one master key
version to another in configurable batches. Each batch is applied as a unit.
The operation is idempotent: records already at another version are skipped.

Security Note:
    Plaintext exists in memory only during re-encryption of each record.
    Never log plaintext or ciphertext values.
"""
import logging

from .crypto import decrypt_record, encrypt_record, record_key_version
from .store import ConfidentialStore

logger = logging.getLogger("vigil.storage")


def rotate_master_key(
    store: ConfidentialStore,
    old_key_id: int,
    new_key_id: int,
    master_keys: dict[int, bytes] | None = None,
    batch_size: int = 100,
) -> dict:
    """Re-encrypt all records from old_key_id to new_key_id in batches.

    Args:
        store: Confidential store whose records are rotated.
        old_key_id: Source key version to rotate from.
        new_key_id: Target key version to rotate to.
        master_keys: Mapping of all key versions to raw 32-byte keys;
            defaults to the store configuration.
        batch_size: Number of records to process per batch.

    Returns:
        Stats dict with keys: total, rotated, errors, skipped.

    Raises:
        KeyError: If old_key_id or new_key_id is not in master_keys.
        RuntimeError: If the store has an open transaction.
    """
    master_keys = master_keys if master_keys is not None else store.config.master_keys
    if old_key_id not in master_keys:
        raise KeyError(
            f"Old key version {old_key_id} not found in master_keys"
        )
    if new_key_id not in master_keys:
        raise KeyError(
            f"New key version {new_key_id} not found in master_keys"
        )
    if store.in_transaction:
        raise RuntimeError("Cannot rotate keys inside an open transaction")

    new_master_key = master_keys[new_key_id]
    backend = store.config.cipher_backend
    stats = {"total": 0, "rotated": 0, "errors": 0, "skipped": 0}

    logger.info(
        "Starting key rotation from v%d to v%d (batch_size=%d)",
        old_key_id, new_key_id, batch_size,
    )

    pending = []
    for storage_key in sorted(store.records.keys()):
        stats["total"] += 1
        try:
            version = record_key_version(store.records[storage_key])
        except ValueError as err:
            logger.error("Unreadable record %s: %s", storage_key, err)
            stats["errors"] += 1
            continue
        if version != old_key_id:
            stats["skipped"] += 1
            continue
        pending.append(storage_key)

    for start in range(0, len(pending), batch_size):
        batch = pending[start:start + batch_size]
        logger.info(
            "Processing batch %d (%d records)", start // batch_size + 1, len(batch),
        )
        updates: dict[str, bytes] = {}
        for storage_key in batch:
            aad = storage_key.encode("utf-8")
            try:
                plaintext = decrypt_record(
                    store.records[storage_key], master_keys, aad, backend,
                )
                updates[storage_key] = encrypt_record(
                    plaintext, new_key_id, new_master_key, aad, backend,
                )
            except Exception as err:
                logger.error(
                    "Error rotating record %s: %s", storage_key, err,
                )
                stats["errors"] += 1
        store.records.update(updates)
        stats["rotated"] += len(updates)

    logger.info(
        "Key rotation complete: %s", stats,
    )
    return stats
