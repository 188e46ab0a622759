"""
Tests for SecretRegistry and the access policy.

Tests cover:
- Existence decided by the timestamp record alone
- Membership decided by the revelation set record alone
- Time gate for members, `Anyone` semantics
- Reset isolation and all-or-nothing create/delete
- Clock faults
"""
import pytest

from vigil import (
    Anyone,
    Entities,
    ExecutionContext,
    EnvironmentFault,
    PermissionDenied,
    SecretDoesntExist,
    SecretRegistry,
)
from vigil.policy import (
    RECORD_FIELDS,
    REVELATION_SET_FIELD,
    TIMESTAMP_FIELD,
    VALUE_FIELD,
    exists,
    is_revealable_to,
    record_key,
)
from vigil.storage import MemoryStore
from vigil.storage.codec import encode_record

from conftest import BLOCK_TIMESTAMP, OWNER, BENEFICIARY, THIRD_PARTY

NAME = "k"
SECRET_ID = (OWNER, NAME)


@pytest.fixture
def registry(ctx):
    return SecretRegistry(ctx)


def as_caller(ctx, caller):
    return SecretRegistry(
        ExecutionContext(caller=caller, store=ctx.store, clock=ctx.clock)
    )


class BrokenClock:
    def __init__(self, answer):
        self.answer = answer

    def current_time(self):
        return self.answer


# --- Access policy ---

class TestAccessPolicy:
    """Existence and revealability predicates."""

    def test_exists_uses_timestamp_only(self, store):
        """Value and set records alone do not make a secret exist."""
        store.insert(record_key(SECRET_ID, VALUE_FIELD), encode_record(b"v"))
        store.insert(
            record_key(SECRET_ID, REVELATION_SET_FIELD),
            encode_record(Anyone().model_dump()),
        )
        assert exists(store, SECRET_ID) is False
        store.insert(record_key(SECRET_ID, TIMESTAMP_FIELD), encode_record(0))
        assert exists(store, SECRET_ID) is True

    def test_timestamp_alone_exists(self, store):
        store.insert(record_key(SECRET_ID, TIMESTAMP_FIELD), encode_record(7))
        assert exists(store, SECRET_ID) is True

    def test_revealable_requires_set_record(self, store):
        """Without a set record nobody is a member."""
        store.insert(record_key(SECRET_ID, TIMESTAMP_FIELD), encode_record(0))
        store.insert(record_key(SECRET_ID, VALUE_FIELD), encode_record(b"v"))
        assert is_revealable_to(store, SECRET_ID, BENEFICIARY) is False

    def test_revealable_membership(self, store):
        store.insert(
            record_key(SECRET_ID, REVELATION_SET_FIELD),
            encode_record(Entities(entities=[BENEFICIARY]).model_dump()),
        )
        assert is_revealable_to(store, SECRET_ID, BENEFICIARY) is True
        assert is_revealable_to(store, SECRET_ID, THIRD_PARTY) is False

    def test_anyone_contains_everybody(self):
        assert Anyone().contains(THIRD_PARTY) is True
        assert Entities().contains(THIRD_PARTY) is False


# --- Registry ---

class TestSecretRegistry:
    """Lifecycle and guarded reads."""

    def test_owner_omniscience(self, registry):
        """The owner reads everything regardless of the deadline."""
        registry.create_secret(NAME, b"v", Entities(), BLOCK_TIMESTAMP + 1000)
        assert registry.revelation_timestamp(OWNER, NAME) == BLOCK_TIMESTAMP + 1000
        assert registry.revelation_set(NAME) == Entities()
        assert registry.secret_value(OWNER, NAME) == b"v"

    def test_time_gate_boundary(self, ctx, registry):
        """Members read the value once now >= revelation timestamp."""
        registry.create_secret(NAME, b"v", Entities(entities=[BENEFICIARY]), BLOCK_TIMESTAMP + 1)
        member = as_caller(ctx, BENEFICIARY)
        with pytest.raises(PermissionDenied):
            member.secret_value(OWNER, NAME)
        ctx.clock.advance(1)
        assert member.secret_value(OWNER, NAME) == b"v"

    def test_anyone_still_time_gated(self, ctx, registry):
        registry.create_secret(NAME, b"v", Anyone(), BLOCK_TIMESTAMP + 5)
        stranger = as_caller(ctx, THIRD_PARTY)
        assert stranger.revelation_timestamp(OWNER, NAME) == BLOCK_TIMESTAMP + 5
        with pytest.raises(PermissionDenied):
            stranger.secret_value(OWNER, NAME)
        ctx.clock.advance(5)
        assert stranger.secret_value(OWNER, NAME) == b"v"

    def test_reset_isolation(self, registry, store):
        """A reset only rewrites the timestamp record."""
        registry.create_secret(NAME, b"v", Entities(entities=[BENEFICIARY]), 10)
        value_before = store.get(record_key(SECRET_ID, VALUE_FIELD))
        set_before = store.get(record_key(SECRET_ID, REVELATION_SET_FIELD))
        registry.reset_revelation_timestamp(NAME, 20)
        assert registry.revelation_timestamp(OWNER, NAME) == 20
        assert store.get(record_key(SECRET_ID, VALUE_FIELD)) == value_before
        assert store.get(record_key(SECRET_ID, REVELATION_SET_FIELD)) == set_before
        assert registry.revelation_set(NAME) == Entities(entities=[BENEFICIARY])

    def test_delete_removes_every_record(self, registry, store):
        registry.create_secret(NAME, b"v", Anyone(), 0)
        assert len(store) == len(RECORD_FIELDS)
        registry.delete_secret(NAME)
        registry.delete_secret(NAME)
        assert len(store) == 0

    def test_member_with_missing_timestamp(self, ctx, store):
        """A member gets SecretDoesntExist when only the timestamp is gone."""
        store.insert(
            record_key(SECRET_ID, REVELATION_SET_FIELD),
            encode_record(Anyone().model_dump()),
        )
        store.insert(record_key(SECRET_ID, VALUE_FIELD), encode_record(b"v"))
        member = as_caller(ctx, BENEFICIARY)
        with pytest.raises(SecretDoesntExist):
            member.secret_value(OWNER, NAME)
        with pytest.raises(SecretDoesntExist):
            member.revelation_timestamp(OWNER, NAME)

    def test_create_is_all_or_nothing(self, registry, store, monkeypatch):
        """A failure half-way through create leaves nothing behind."""
        calls = []
        original_insert = MemoryStore.insert

        def failing_insert(self, key, value):
            calls.append(key)
            if key[2] == VALUE_FIELD:
                raise OSError("disk full")
            original_insert(self, key, value)

        monkeypatch.setattr(MemoryStore, "insert", failing_insert)
        with pytest.raises(OSError):
            registry.create_secret(NAME, b"v", Anyone(), 0)
        assert len(calls) == len(RECORD_FIELDS)
        assert len(store) == 0
        assert not store.in_transaction

    @pytest.mark.parametrize("answer", [None, -1, 2 ** 64, "100000", 1.5, True])
    def test_clock_fault_aborts(self, store, answer):
        """An unusable time answer is an environment fault, not a request error."""
        owner = SecretRegistry(ExecutionContext(caller=OWNER, store=store))
        owner.create_secret(NAME, b"v", Anyone(), 0)
        member = SecretRegistry(
            ExecutionContext(caller=BENEFICIARY, store=store, clock=BrokenClock(answer))
        )
        with pytest.raises(EnvironmentFault):
            member.secret_value(OWNER, NAME)

    def test_owner_never_asks_clock(self, store):
        owner = SecretRegistry(
            ExecutionContext(caller=OWNER, store=store, clock=BrokenClock(None))
        )
        owner.create_secret(NAME, b"v", Anyone(), 0)
        assert owner.secret_value(OWNER, NAME) == b"v"

    def test_namespaces_are_per_owner(self, ctx, registry):
        """Two owners may use the same name."""
        registry.create_secret(NAME, b"mine", Anyone(), 0)
        other = as_caller(ctx, BENEFICIARY)
        other.create_secret(NAME, b"theirs", Entities(), 0)
        assert registry.secret_value(OWNER, NAME) == b"mine"
        assert other.secret_value(BENEFICIARY, NAME) == b"theirs"
        with pytest.raises(PermissionDenied):
            registry.secret_value(BENEFICIARY, NAME)

    def test_owner_reads_need_timestamp(self, registry, store):
        """Without a timestamp record the owner's secret does not exist."""
        store.insert(
            record_key(SECRET_ID, REVELATION_SET_FIELD),
            encode_record(Anyone().model_dump()),
        )
        store.insert(record_key(SECRET_ID, VALUE_FIELD), encode_record(b"v"))
        with pytest.raises(SecretDoesntExist):
            registry.revelation_set(NAME)
        with pytest.raises(SecretDoesntExist):
            registry.secret_value(OWNER, NAME)
        with pytest.raises(SecretDoesntExist):
            registry.revelation_timestamp(OWNER, NAME)


class TestExecutionContext:
    """Construction of request contexts."""

    def test_store_is_required(self):
        with pytest.raises(TypeError):
            ExecutionContext(caller=OWNER)

    def test_contexts_share_an_injected_store(self, store):
        SecretRegistry(ExecutionContext(caller=OWNER, store=store)).create_secret(
            NAME, b"v", Anyone(), 0,
        )
        reader = SecretRegistry(ExecutionContext(caller=BENEFICIARY, store=store))
        assert reader.secret_value(OWNER, NAME) == b"v"
