"""
Vigil Types — Requests, responses and revelation sets.

Every request and response is a tagged pydantic model; the ``kind`` field is
the discriminator used to validate raw mappings into the right variant.
"""
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

# Opaque, authenticated identity of a caller or owner.
Identity = str

SecretName = str

# Unsigned 64-bit time value.
Timestamp = Annotated[int, Field(ge=0, lt=2 ** 64)]

# (owner, secret name)
SecretId = tuple[str, str]


# ---------------------------------------------------------------------------
# Revelation sets
# ---------------------------------------------------------------------------

class Anyone(BaseModel):
    """Every identity is a member."""

    kind: Literal["anyone"] = "anyone"

    def contains(self, entity: str) -> bool:
        return True


class Entities(BaseModel):
    """Explicit membership."""

    kind: Literal["entities"] = "entities"
    entities: list[Identity] = Field(default_factory=list)

    def contains(self, entity: str) -> bool:
        return entity in self.entities


RevelationSet = Annotated[Union[Anyone, Entities], Field(discriminator="kind")]

revelation_set_adapter = TypeAdapter(RevelationSet)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class Instantiate(BaseModel):
    kind: Literal["instantiate"] = "instantiate"


class CreateSecret(BaseModel):
    """Requests the creation of a new secret scoped to the caller."""

    kind: Literal["create_secret"] = "create_secret"
    name: SecretName
    value: bytes
    # callers that can retrieve the revealed secret
    revelation_set: RevelationSet
    # when the secret is revealed unless refreshed
    revelation_timestamp: Timestamp


class ResetRevelationTimestamp(BaseModel):
    """Refreshes the deadline of one of the caller's secrets.

    A deadline in the past makes the secret revealable immediately.
    """

    kind: Literal["reset_revelation_timestamp"] = "reset_revelation_timestamp"
    name: SecretName
    revelation_timestamp: Timestamp


class DeleteSecret(BaseModel):
    kind: Literal["delete_secret"] = "delete_secret"
    name: SecretName


class GetRevelationTimestamp(BaseModel):
    """Owner or revelation-set members only."""

    kind: Literal["get_revelation_timestamp"] = "get_revelation_timestamp"
    owner: Identity
    name: SecretName


class GetRevelationSet(BaseModel):
    """Always scoped to the caller's own secrets."""

    kind: Literal["get_revelation_set"] = "get_revelation_set"
    name: SecretName


class GetSecretValue(BaseModel):
    """Owner, or members once the revelation timestamp has passed."""

    kind: Literal["get_secret_value"] = "get_secret_value"
    owner: Identity
    name: SecretName


Request = Annotated[
    Union[
        Instantiate,
        CreateSecret,
        ResetRevelationTimestamp,
        DeleteSecret,
        GetRevelationTimestamp,
        GetRevelationSet,
        GetSecretValue,
    ],
    Field(discriminator="kind"),
]

request_adapter = TypeAdapter(Request)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class Empty(BaseModel):
    kind: Literal["empty"] = "empty"


class RevelationTimestampResponse(BaseModel):
    kind: Literal["revelation_timestamp"] = "revelation_timestamp"
    revelation_timestamp: Timestamp


class RevelationSetResponse(BaseModel):
    kind: Literal["revelation_set"] = "revelation_set"
    revelation_set: RevelationSet


class SecretValueResponse(BaseModel):
    kind: Literal["secret_value"] = "secret_value"
    value: bytes


Response = Union[
    Empty,
    RevelationTimestampResponse,
    RevelationSetResponse,
    SecretValueResponse,
]
