"""
Error taxonomy for the advisory service.

Only ValidationError, IdentityNotFound and UserAlreadyExists reach clients
as 4xx responses. UpstreamDegraded never leaves the adapter that raised it.
"""

from typing import Iterable, Optional


class AdvisoryError(Exception):
    """Base class for all advisory service errors."""


class ValidationError(AdvisoryError):
    """A required request field is missing or empty (HTTP 400)."""


class IdentityNotFound(AdvisoryError):
    """No user is registered under the given email (HTTP 404)."""


class UserAlreadyExists(AdvisoryError):
    """Registration attempted with an email that is already taken (HTTP 400)."""


class UpstreamDegraded(AdvisoryError):
    """An external provider failed; the adapter substitutes its fallback value."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class InternalError(AdvisoryError):
    """Unexpected failure outside the identity step (HTTP 500)."""


def scrub_secrets(message: str, secrets: Iterable[Optional[str]]) -> str:
    """Replace any configured credential found in ``message`` with '***'."""
    for secret in secrets:
        if secret:
            message = message.replace(secret, "***")
    return message
