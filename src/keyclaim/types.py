"""Type definitions for KeyClaim SDK."""

from dataclasses import dataclass
from typing import Literal, Optional, Union

ResponseMethod = Literal["echo", "hmac", "hash", "custom"]


@dataclass(frozen=True)
class KeyClaimConfig:
    """Client credentials."""

    api_key: str
    secret: Optional[str] = None  # falls back to api_key


@dataclass
class CreateChallengeResponse:
    """Response from the /challenge/create endpoint."""

    challenge: str
    expires_in: int
    encrypted: Optional[bool] = None


@dataclass
class Quota:
    """Usage counters returned with a successful validation."""

    used: int
    remaining: int
    quota: Union[int, Literal["unlimited"]]


@dataclass
class ValidateChallengeResponse:
    """Response from the /challenge/validate endpoint."""

    valid: bool
    signature: Optional[str] = None
    quota: Optional[Quota] = None
    error: Optional[str] = None
