"""KeyClaim Python SDK - challenge-response validation for the KeyClaim API."""

__version__ = "0.1.0"

from keyclaim.client import KeyClaimClient, create_client
from keyclaim.errors import KeyClaimError
from keyclaim.responses import RESPONSE_METHODS, generate_response
from keyclaim.types import (
    CreateChallengeResponse,
    KeyClaimConfig,
    Quota,
    ResponseMethod,
    ValidateChallengeResponse,
)

__all__ = [
    "KeyClaimClient",
    "create_client",
    "generate_response",
    "KeyClaimError",
    "KeyClaimConfig",
    "CreateChallengeResponse",
    "ValidateChallengeResponse",
    "Quota",
    "ResponseMethod",
    "RESPONSE_METHODS",
    "__version__",
]
