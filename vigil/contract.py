"""
Vigil contract — Entry points and request dispatch.

A dead-man's switch that reveals secrets if they stop being refreshed.
Every entry point takes an :class:`ExecutionContext` and one request; each
call maps onto exactly one :class:`SecretRegistry` operation.

Reads go through ``call`` like writes do, so that the same permission logic
applies to both; the read-only ``query`` path is refused. The contract never
calls other contracts and can never be upgraded.
"""
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from .context import ExecutionContext
from .exceptions import BadRequest, UpgradeNotAllowed
from .registry import SecretRegistry
from .types import (
    CreateSecret,
    DeleteSecret,
    Empty,
    GetRevelationSet,
    GetRevelationTimestamp,
    GetSecretValue,
    Instantiate,
    ResetRevelationTimestamp,
    Response,
    RevelationSetResponse,
    RevelationTimestampResponse,
    SecretValueResponse,
    request_adapter,
)

logger = logging.getLogger("vigil")


def parse_request(request: Any):
    """Validate a raw mapping into a request model.

    Raises:
        BadRequest: If the request is malformed.
    """
    if isinstance(request, Mapping):
        try:
            return request_adapter.validate_python(request)
        except ValidationError as err:
            logger.debug("Rejected malformed request: %s", err.error_count())
            raise BadRequest() from err
    return request


class Vigil:
    """Stateless dispatcher; every method is a classmethod entry point."""

    @classmethod
    def instantiate(cls, ctx: ExecutionContext, request: Any) -> None:
        # The instantiate request must be `Instantiate`.
        if not isinstance(parse_request(request), Instantiate):
            raise BadRequest()
        logger.info("Vigil instantiated by %s", ctx.caller)

    @classmethod
    def call(cls, ctx: ExecutionContext, request: Any) -> Response:
        request = parse_request(request)
        registry = SecretRegistry(ctx)
        if isinstance(request, CreateSecret):
            registry.create_secret(
                request.name,
                request.value,
                request.revelation_set,
                request.revelation_timestamp,
            )
            return Empty()
        if isinstance(request, ResetRevelationTimestamp):
            registry.reset_revelation_timestamp(
                request.name, request.revelation_timestamp,
            )
            return Empty()
        if isinstance(request, DeleteSecret):
            registry.delete_secret(request.name)
            return Empty()
        if isinstance(request, GetRevelationTimestamp):
            return RevelationTimestampResponse(
                revelation_timestamp=registry.revelation_timestamp(
                    request.owner, request.name,
                )
            )
        if isinstance(request, GetRevelationSet):
            return RevelationSetResponse(
                revelation_set=registry.revelation_set(request.name)
            )
        if isinstance(request, GetSecretValue):
            return SecretValueResponse(
                value=registry.secret_value(request.owner, request.name)
            )
        raise BadRequest()

    @classmethod
    def query(cls, ctx: ExecutionContext, request: Any) -> Response:
        raise BadRequest()

    @classmethod
    def handle_reply(cls, ctx: ExecutionContext, reply: Any) -> Response | None:
        # This contract does not call other contracts.
        raise BadRequest()

    @classmethod
    def pre_upgrade(cls, ctx: ExecutionContext, request: Any) -> None:
        raise UpgradeNotAllowed()

    @classmethod
    def post_upgrade(cls, ctx: ExecutionContext, request: Any) -> None:
        raise UpgradeNotAllowed()
