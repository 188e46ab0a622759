"""
Vigil Errors — Flat, causeless error kinds returned by the contract.

Every kind carries a stable numeric ``code`` so that callers can tell them
apart without parsing messages. None of them is retried by the contract.
"""


class VigilError(Exception):
    """Base class for every error the contract reports to a caller."""

    code: int = -1
    message: str = "vigil error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class UpgradeNotAllowed(VigilError):
    code = 0
    message = "the contract is not upgradeable"


class BadRequest(VigilError):
    code = 1
    message = "bad request"


class PermissionDenied(VigilError):
    code = 2
    message = "permission denied"


class SecretDoesntExist(VigilError):
    code = 3
    message = "the secret doesn't exist"


class SecretAlreadyExists(VigilError):
    code = 4
    message = "the secret already exists"


class EnvironmentFault(RuntimeError):
    """The execution environment answered with something it never should.

    Not a :class:`VigilError`: it means the host is broken, not the request.
    """
