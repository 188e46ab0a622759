"""Vigil — a dead-man's switch that reveals secrets unless refreshed.

Owners deposit a secret with a revelation timestamp and a revelation set;
once the timestamp passes without being reset, members of the set may read
the secret.
"""

from .version import __version__
from .context import ExecutionContext, Clock, SystemClock, FixedClock
from .contract import Vigil
from .registry import SecretRegistry
from .exceptions import (
    VigilError,
    UpgradeNotAllowed,
    BadRequest,
    PermissionDenied,
    SecretDoesntExist,
    SecretAlreadyExists,
    EnvironmentFault,
)
from .types import (
    Anyone,
    Entities,
    Instantiate,
    CreateSecret,
    ResetRevelationTimestamp,
    DeleteSecret,
    GetRevelationTimestamp,
    GetRevelationSet,
    GetSecretValue,
    Empty,
    RevelationTimestampResponse,
    RevelationSetResponse,
    SecretValueResponse,
)

__all__ = [
    "__version__",
    "ExecutionContext",
    "Clock",
    "SystemClock",
    "FixedClock",
    "Vigil",
    "SecretRegistry",
    "VigilError",
    "UpgradeNotAllowed",
    "BadRequest",
    "PermissionDenied",
    "SecretDoesntExist",
    "SecretAlreadyExists",
    "EnvironmentFault",
    "Anyone",
    "Entities",
    "Instantiate",
    "CreateSecret",
    "ResetRevelationTimestamp",
    "DeleteSecret",
    "GetRevelationTimestamp",
    "GetRevelationSet",
    "GetSecretValue",
    "Empty",
    "RevelationTimestampResponse",
    "RevelationSetResponse",
    "SecretValueResponse",
]
