"""dootask auth library."""

from .exceptions import AuthError, AuthErrorCodes
from .models import Identity
from .verifier import HttpIdentityVerifier, IdentityVerifier, StaticIdentityVerifier

__all__ = [
    "AuthError",
    "AuthErrorCodes",
    "HttpIdentityVerifier",
    "Identity",
    "IdentityVerifier",
    "StaticIdentityVerifier",
]
